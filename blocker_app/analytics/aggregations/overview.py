"""Headline counts and overdue tracking for a set of blocker records."""

from __future__ import annotations

import math
from collections.abc import Iterable

import pandas as pd

from blocker_app.analytics.metrics.derived import SECONDS_PER_HOUR, ensure_frame, mean_or_zero, percent, round_half_up
from blocker_app.analytics.metrics.durations import add_response_hours
from blocker_app.analytics.metrics.window import require_now
from blocker_app.core.config import DEFAULT_OVERDUE_N, FIRST_TOUCH_STATUS_TREND, HOURS_PER_DAY, ConfigurationError
from blocker_app.core.models import IssueRecord, OverdueItem, OverviewMetrics


def overdue_mask(df: pd.DataFrame, now) -> pd.Series:
    """Open records whose ``due_date`` lies before ``now``."""
    if df.empty:
        return pd.Series(dtype=bool)
    ref = require_now(now)
    due = df["due_date"]
    return (due.notna() & (due < ref) & df["is_open"]).astype(bool)


def compute_overview(records: Iterable[IssueRecord] | pd.DataFrame, *, now=None) -> OverviewMetrics:
    """Totals, rates, overdue count and mean first response.

    ``overdue`` needs the reference instant and stays 0 when ``now`` is
    None. ``avg_response_hours`` measures creation to the first
    ``assigned`` transition.
    """
    df = ensure_frame(records)
    total = len(df)
    if total == 0:
        if now is not None:
            require_now(now)
        return OverviewMetrics(
            total=0,
            open=0,
            resolved=0,
            rejected=0,
            completion_rate=0,
            rejection_rate=0.0,
            documentation_rate=0.0,
        )
    resolved = int(df["is_resolved"].sum())
    rejected = int(df["is_rejected"].sum())
    documented = int(df["has_documentation"].sum())
    overdue = int(overdue_mask(df, now).sum()) if now is not None else 0
    responses = add_response_hours(df, FIRST_TOUCH_STATUS_TREND)["response_hours"]
    return OverviewMetrics(
        total=total,
        open=int(df["is_open"].sum()),
        resolved=resolved,
        rejected=rejected,
        completion_rate=round_half_up(percent(resolved, total)),
        rejection_rate=round(percent(rejected, total), 1),
        documentation_rate=round(percent(documented, total), 1),
        overdue=overdue,
        avg_response_hours=mean_or_zero(responses),
    )


def overdue_items(
    records: Iterable[IssueRecord] | pd.DataFrame,
    now,
    n: int = DEFAULT_OVERDUE_N,
) -> tuple[OverdueItem, ...]:
    """The ``n`` most overdue open records, most days past due first.

    ``days_past_due`` is whole days, floored. Ties keep input order.
    """
    if n < 0:
        raise ConfigurationError(f"n must be >= 0, got {n}")
    ref = require_now(now)
    df = ensure_frame(records)
    if df.empty or n == 0:
        return ()
    late = df[overdue_mask(df, ref)]
    if late.empty:
        return ()
    hours = (ref - late["due_date"]).dt.total_seconds() / SECONDS_PER_HOUR
    late = late.assign(days_past_due=(hours / HOURS_PER_DAY).map(math.floor))
    top = late.sort_values(by="days_past_due", ascending=False, kind="mergesort").head(n)
    return tuple(
        OverdueItem(
            id=str(row["id"]),
            due_date=row["due_date"].to_pydatetime(),
            days_past_due=int(row["days_past_due"]),
            category=row["category"],
            priority=row["priority"],
            title=row["title"] if pd.notna(row["title"]) else None,
            actor_id=row["assigned_actor_id"] if pd.notna(row["assigned_actor_id"]) else None,
            project_id=row["project_id"] if pd.notna(row["project_id"]) else None,
        )
        for _, row in top.iterrows()
    )
