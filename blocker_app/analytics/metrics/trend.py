"""Time-bucketed trend series: created vs resolved, response times, peak hours."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, time, timedelta

import pandas as pd
import pytz

from blocker_app.core.config import (
    BUCKET_UNITS,
    FIRST_TOUCH_STATUS_TREND,
    SETTINGS,
    ConfigurationError,
    EngineSettings,
    require_window_days,
)
from blocker_app.core.models import HourlyCount, IssueRecord, TrendBucket, WeeklyResponse

from .derived import ensure_frame
from .durations import add_response_hours
from .window import require_now


def resolve_timezone(name: str):
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError as exc:
        raise ConfigurationError(f"Unknown timezone {name!r}") from exc


def week_key(day: date) -> str:
    """ISO week key such as ``2024-W07``."""
    iso = day.isocalendar()
    return f"{iso[0]}-W{iso[1]:02d}"


def _day_start(day: date, tz) -> datetime:
    return tz.localize(datetime.combine(day, time.min))


def bucket_days(window_days: int, now, tz) -> list[date]:
    """The ``window_days`` calendar days ending with the day containing ``now``."""
    require_window_days(window_days, minimum=1)
    today = require_now(now).tz_convert(tz).date()
    return [today - timedelta(days=offset) for offset in range(window_days - 1, -1, -1)]


def _local_dates(series: pd.Series, tz) -> pd.Series:
    stamps = series.dropna()
    if stamps.empty:
        return pd.Series(dtype=object)
    return stamps.dt.tz_convert(tz).dt.date


def build_trend(
    records: Iterable[IssueRecord] | pd.DataFrame,
    window_days: int,
    bucket_unit: str = "day",
    *,
    now,
    settings: EngineSettings = SETTINGS,
) -> list[TrendBucket]:
    """Count created and resolved records per time bucket, oldest first.

    Parameters
    ----------
    records : iterable of IssueRecord or prepared DataFrame
    window_days : int
        Lookback length in days (7/30/90 in the dashboards); must be >= 1.
    bucket_unit : str
        ``"day"`` for exactly ``window_days`` calendar-day buckets, or
        ``"week"`` for the ISO weeks covering those days (clipped to the
        window).
    now : datetime-like
        Reference instant; the last bucket contains it.
    settings : EngineSettings
        Supplies the timezone used for calendar boundaries.

    Notes
    -----
    ``created`` and ``resolved`` are independent: a record is created in
    one bucket and may be resolved in a later one. Only records resolved
    (``verified_complete`` with sane timestamps) count as resolved.

    Raises
    ------
    ConfigurationError
        For unknown units, non-positive windows or an unknown timezone.
    """
    if bucket_unit not in BUCKET_UNITS:
        raise ConfigurationError(f"Unknown bucket unit {bucket_unit!r}; expected one of {list(BUCKET_UNITS)}")
    tz = resolve_timezone(settings.timezone)
    days = bucket_days(window_days, now, tz)
    df = ensure_frame(records)

    created_counts: dict = {}
    resolved_counts: dict = {}
    if not df.empty:
        created_counts = _local_dates(df["created_at"], tz).value_counts().to_dict()
        resolved = df.loc[df["is_resolved"], "completed_at"]
        resolved_counts = _local_dates(resolved, tz).value_counts().to_dict()

    if bucket_unit == "day":
        return [
            TrendBucket(
                label=day.isoformat(),
                start=_day_start(day, tz),
                end=_day_start(day + timedelta(days=1), tz),
                created=int(created_counts.get(day, 0)),
                resolved=int(resolved_counts.get(day, 0)),
            )
            for day in days
        ]

    weeks: dict[str, list[date]] = {}
    for day in days:
        weeks.setdefault(week_key(day), []).append(day)
    return [
        TrendBucket(
            label=key,
            start=_day_start(week_days[0], tz),
            end=_day_start(week_days[-1] + timedelta(days=1), tz),
            created=int(sum(created_counts.get(d, 0) for d in week_days)),
            resolved=int(sum(resolved_counts.get(d, 0) for d in week_days)),
        )
        for key, week_days in weeks.items()
    ]


def build_weekly_response_trend(
    records: Iterable[IssueRecord] | pd.DataFrame,
    first_touch_status: str = FIRST_TOUCH_STATUS_TREND,
    *,
    settings: EngineSettings = SETTINGS,
) -> list[WeeklyResponse]:
    """Mean first-response hours per ISO week of creation.

    Weeks without any response sample are omitted rather than zero-filled.
    """
    tz = resolve_timezone(settings.timezone)
    df = ensure_frame(records)
    if df.empty:
        return []
    work = add_response_hours(df, first_touch_status)
    work = work[work["response_hours"].notna() & work["created_at"].notna()]
    if work.empty:
        return []
    work = work.assign(week=_local_dates(work["created_at"], tz).map(week_key))
    grouped = (
        work.groupby("week")
        .agg(avg_response_hours=("response_hours", "mean"), samples=("response_hours", "count"))
        .reset_index()
        .sort_values("week")
    )
    return [
        WeeklyResponse(
            week=str(row["week"]),
            avg_response_hours=round(float(row["avg_response_hours"]), 1),
            samples=int(row["samples"]),
        )
        for _, row in grouped.iterrows()
    ]


def hourly_distribution(
    records: Iterable[IssueRecord] | pd.DataFrame,
    field: str = "created_at",
    *,
    settings: EngineSettings = SETTINGS,
) -> list[HourlyCount]:
    """Count records per local hour of day (always 24 entries).

    ``field="completed_at"`` counts resolved records by completion hour.
    """
    if field not in ("created_at", "completed_at"):
        raise ConfigurationError(f"hourly_distribution supports created_at/completed_at, got {field!r}")
    tz = resolve_timezone(settings.timezone)
    df = ensure_frame(records)
    counts: dict = {}
    if not df.empty:
        source = df[field] if field == "created_at" else df.loc[df["is_resolved"], field]
        stamps = source.dropna()
        if not stamps.empty:
            counts = stamps.dt.tz_convert(tz).dt.hour.value_counts().to_dict()
    return [HourlyCount(hour=hour, count=int(counts.get(hour, 0))) for hour in range(24)]
