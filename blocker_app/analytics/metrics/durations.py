"""Resolution and response duration analysis utilities.

All durations are reported in hours. Days are derived only where a
threshold is expressed in days (tiers, insights).
"""

from __future__ import annotations

from collections.abc import Iterable

import pandas as pd

from blocker_app.core.config import DEFAULT_LONGEST_N, FIRST_TOUCH_STATUS_PROFILE
from blocker_app.core.models import CategoryDuration, IssueRecord, ResolutionStats, ResolvedItem, StatusChange

from .derived import SECONDS_PER_HOUR, ensure_frame, mean_or_zero
from .window import normalize_timestamp


def first_touch_hours(created_at, history: Iterable[StatusChange], status: str) -> float | None:
    """Hours from creation to the first transition into ``status``.

    The history is sorted by timestamp before searching. Entries without a
    timestamp are skipped.

    Returns
    -------
    float or None
        None when no matching transition exists or it predates creation.
    """
    created = normalize_timestamp(created_at)
    if created is None or not history:
        return None
    events = []
    for change in history:
        ts = normalize_timestamp(change.timestamp)
        if ts is None:
            continue
        events.append((ts, change.status))
    events.sort(key=lambda tup: tup[0])
    for ts, event_status in events:
        if event_status != status:
            continue
        delta = (ts - created).total_seconds() / SECONDS_PER_HOUR
        if delta < 0:
            return None
        return delta
    return None


def add_response_hours(df: pd.DataFrame, status: str = FIRST_TOUCH_STATUS_PROFILE) -> pd.DataFrame:
    """Add a ``response_hours`` column (NaN where there is no first touch)."""
    out = df.copy()
    if out.empty:
        out["response_hours"] = pd.Series(dtype=float)
        return out
    out["response_hours"] = pd.to_numeric(
        out.apply(lambda row: first_touch_hours(row["created_at"], row["status_history"], status), axis=1),
        errors="coerce",
    )
    return out


def _durations_by(resolved: pd.DataFrame, column: str) -> tuple[CategoryDuration, ...]:
    if resolved.empty:
        return ()
    grouped = (
        resolved.groupby(column, sort=False)
        .agg(avg_hours=("duration_hours", "mean"), count=("duration_hours", "count"))
        .reset_index()
    )
    grouped["order"] = range(len(grouped))
    grouped = grouped.sort_values(by=["avg_hours", "order"], ascending=[False, True])
    return tuple(
        CategoryDuration(key=str(row[column]), avg_hours=float(row["avg_hours"]), count=int(row["count"]))
        for _, row in grouped.iterrows()
    )


def longest_resolutions(df: pd.DataFrame, n: int = DEFAULT_LONGEST_N) -> tuple[ResolvedItem, ...]:
    resolved = df[df["duration_hours"].notna()]
    if resolved.empty or n <= 0:
        return ()
    top = resolved.sort_values(by="duration_hours", ascending=False, kind="mergesort").head(n)
    return tuple(
        ResolvedItem(
            id=str(row["id"]),
            duration_hours=round(float(row["duration_hours"]), 1),
            category=row["category"],
            location=row["location"],
            priority=row["priority"],
            actor_id=row["assigned_actor_id"] if pd.notna(row["assigned_actor_id"]) else None,
            title=row["title"] if pd.notna(row["title"]) else None,
        )
        for _, row in top.iterrows()
    )


def compute_resolution_stats(
    records: Iterable[IssueRecord] | pd.DataFrame,
    longest_n: int = DEFAULT_LONGEST_N,
) -> ResolutionStats:
    """Summarise creation-to-resolution durations.

    Parameters
    ----------
    records : iterable of IssueRecord or prepared DataFrame
        Records to analyse.
    longest_n : int
        Number of slowest resolutions to return.

    Returns
    -------
    ResolutionStats
        Overall mean (hours), sample size, the ``longest_n`` slowest
        resolutions and per-category / per-actor means (slowest first, ties
        in first-seen order). Group means keep full precision so thresholds
        see the exact value. Unresolved and malformed records are excluded.
    """
    df = ensure_frame(records)
    if df.empty:
        return ResolutionStats()
    resolved = df[df["duration_hours"].notna()]
    if resolved.empty:
        return ResolutionStats()
    assigned = resolved[resolved["assigned_actor_id"].notna()]
    return ResolutionStats(
        avg_hours=mean_or_zero(resolved["duration_hours"]),
        sample_count=int(resolved["duration_hours"].count()),
        longest=longest_resolutions(resolved, longest_n),
        by_category=_durations_by(resolved, "category"),
        by_actor=_durations_by(assigned, "assigned_actor_id"),
    )
