"""Frequency aggregations over blocker records.

Groups are ranked by count descending; ties keep the order in which each
key was first seen in the input, so results never depend on hash order.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

import pandas as pd

from blocker_app.analytics.metrics.derived import ensure_frame
from blocker_app.core.config import (
    DEFAULT_CATEGORY,
    DEFAULT_TOP_N,
    GROUPABLE_FIELDS,
    PROBLEM_AREA_MIN_COUNT,
    PROBLEM_AREA_TOP_N,
    REPEAT_GROUP_MIN_COUNT,
    UNKNOWN_VALUE,
    ConfigurationError,
)
from blocker_app.core.models import AggregationResult, IssueRecord, ProblemArea, RepeatGroup
from blocker_app.core.status import clean_text

_KEY = "group_key"


def _require_top_n(top_n: int | None) -> None:
    if top_n is not None and top_n < 0:
        raise ConfigurationError(f"top_n must be >= 0 or None, got {top_n}")


def _key_column(df: pd.DataFrame, field: str) -> pd.Series:
    if field not in GROUPABLE_FIELDS:
        raise ConfigurationError(f"Unknown grouping field {field!r}; expected one of {sorted(GROUPABLE_FIELDS)}")
    fallback = GROUPABLE_FIELDS[field]
    return df[field].map(lambda value: clean_text(value, fallback) if pd.notna(value) else fallback)


def rank_groups(grouped: pd.DataFrame, by: str = "count", top_n: int | None = None) -> pd.DataFrame:
    """Sort a grouped frame by ``by`` descending, ties in first-seen order."""
    out = grouped.reset_index(drop=True)
    out["first_seen"] = range(len(out))
    out = out.sort_values(by=[by, "first_seen"], ascending=[False, True]).drop(columns="first_seen")
    if top_n is not None:
        out = out.head(top_n)
    return out.reset_index(drop=True)


def _aggregate(df: pd.DataFrame, top_n: int | None) -> list[AggregationResult]:
    if df.empty:
        return []
    grouped = (
        df.groupby(_KEY, sort=False)
        .agg(
            count=("id", "size"),
            resolved_count=("is_resolved", "sum"),
            avg_resolution_hours=("duration_hours", "mean"),
        )
        .reset_index()
    )
    ranked = rank_groups(grouped, top_n=top_n)
    return [
        AggregationResult(
            key=str(row[_KEY]),
            count=int(row["count"]),
            resolved_count=int(row["resolved_count"]),
            avg_resolution_hours=round(float(row["avg_resolution_hours"]), 1)
            if pd.notna(row["avg_resolution_hours"])
            else 0.0,
        )
        for _, row in ranked.iterrows()
    ]


def group_by(
    records: Iterable[IssueRecord],
    key_fn: Callable[[IssueRecord], object],
    top_n: int | None = DEFAULT_TOP_N,
    *,
    fallback: str = UNKNOWN_VALUE,
) -> list[AggregationResult]:
    """Group records by an arbitrary key function and rank by count.

    Empty or missing keys are reported under ``fallback``. ``top_n=None``
    keeps every group.
    """
    _require_top_n(top_n)
    records = list(records)
    df = ensure_frame(records)
    if df.empty:
        return []
    df = df.copy()
    df[_KEY] = [clean_text(key_fn(r), fallback) for r in records]
    return _aggregate(df, top_n)


def aggregate_by_field(
    records: Iterable[IssueRecord] | pd.DataFrame,
    field: str,
    top_n: int | None = DEFAULT_TOP_N,
) -> list[AggregationResult]:
    """Frequency distribution of a named record field.

    Parameters
    ----------
    records : iterable of IssueRecord or prepared DataFrame
    field : str
        One of GROUPABLE_FIELDS (category, location, priority, status,
        assigned_actor_id, project_id).
    top_n : int or None
        Maximum groups returned; None for all.

    Raises
    ------
    ConfigurationError
        For unknown fields or a negative ``top_n``.
    """
    _require_top_n(top_n)
    df = ensure_frame(records)
    keys = _key_column(df, field)
    if df.empty:
        return []
    df = df.assign(**{_KEY: keys})
    return _aggregate(df, top_n)


def repeat_groups(
    records: Iterable[IssueRecord] | pd.DataFrame,
    field: str = "location",
    min_count: int = REPEAT_GROUP_MIN_COUNT,
    top_n: int | None = DEFAULT_TOP_N,
) -> list[RepeatGroup]:
    """Groups seen at least ``min_count`` times (e.g. repeat blocker locations)."""
    _require_top_n(top_n)
    df = ensure_frame(records)
    keys = _key_column(df, field)
    if df.empty:
        return []
    work = df.assign(**{_KEY: keys})
    work["category"] = work["category"].map(lambda v: clean_text(v, DEFAULT_CATEGORY))
    by_key = work.groupby(_KEY, sort=False)
    grouped = by_key.agg(count=("id", "size"), open_count=("is_open", "sum")).reset_index()
    grouped = grouped[grouped["count"] >= min_count]
    if grouped.empty:
        return []
    # unique() keeps first-seen order within each group
    categories = by_key["category"].unique()
    grouped = grouped.assign(categories=grouped[_KEY].map(lambda key: tuple(categories[key])))
    ranked = rank_groups(grouped, top_n=top_n)
    return [
        RepeatGroup(
            key=str(row[_KEY]),
            count=int(row["count"]),
            open_count=int(row["open_count"]),
            categories=tuple(row["categories"]),
        )
        for _, row in ranked.iterrows()
    ]


def problem_areas(
    records: Iterable[IssueRecord] | pd.DataFrame,
    min_count: int = PROBLEM_AREA_MIN_COUNT,
    top_n: int | None = PROBLEM_AREA_TOP_N,
) -> list[ProblemArea]:
    """Locations with at least ``min_count`` issues, busiest first."""
    _require_top_n(top_n)
    df = ensure_frame(records)
    keys = _key_column(df, "location")
    if df.empty:
        return []
    work = df.assign(**{_KEY: keys})
    grouped = (
        work.groupby(_KEY, sort=False)
        .agg(
            total=("id", "size"),
            open=("is_open", "sum"),
            avg_resolution_hours=("duration_hours", "mean"),
            top_category=("category", _most_common),
        )
        .reset_index()
    )
    grouped = grouped[grouped["total"] >= min_count]
    if grouped.empty:
        return []
    ranked = rank_groups(grouped, by="total", top_n=top_n)
    return [
        ProblemArea(
            area=str(row[_KEY]),
            total=int(row["total"]),
            open=int(row["open"]),
            top_category=str(row["top_category"]),
            avg_resolution_hours=round(float(row["avg_resolution_hours"]), 1)
            if pd.notna(row["avg_resolution_hours"])
            else 0.0,
        )
        for _, row in ranked.iterrows()
    ]


def _most_common(values: pd.Series) -> str:
    cleaned = values.map(lambda v: clean_text(v, DEFAULT_CATEGORY))
    if cleaned.empty:
        return DEFAULT_CATEGORY
    counts = cleaned.groupby(cleaned, sort=False).size()
    # idxmax returns the first key holding the maximum, i.e. first-seen on ties
    return str(counts.idxmax())
