"""Timestamp normalization and reporting-window filters (pure functions)."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import timedelta

import pandas as pd
import pytz

from blocker_app.core.config import ConfigurationError, require_window_days
from blocker_app.core.models import IssueRecord


def normalize_timestamp(value, target_tz=pytz.UTC) -> pd.Timestamp | None:
    """Normalize a timestamp-like value into ``target_tz``.

    Naive values are taken to be UTC. Returns None when the input cannot be
    parsed.
    """
    if value is None or value == "":
        return None
    ts = pd.to_datetime(value, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    try:
        if getattr(ts, "tzinfo", None) is None:
            ts = ts.tz_localize(pytz.UTC)
    except (TypeError, ValueError):
        return None
    try:
        return ts.tz_convert(target_tz)
    except (TypeError, ValueError):
        return None


def require_now(now) -> pd.Timestamp:
    ts = normalize_timestamp(now)
    if ts is None:
        raise ConfigurationError(f"now must be a timestamp, got {now!r}")
    return ts


def window_bounds(window_days: int, now) -> tuple[pd.Timestamp, pd.Timestamp]:
    require_window_days(window_days)
    end = require_now(now)
    return end - timedelta(days=window_days), end


def filter_time_window(records: Iterable[IssueRecord], window_days: int, now) -> list[IssueRecord]:
    """Keep records created within ``[now - window_days, now]``.

    Raises
    ------
    ConfigurationError
        If ``window_days`` is negative or ``now`` is not a timestamp.
    """
    start, end = window_bounds(window_days, now)
    records = list(records)
    if not records:
        return []
    # One vectorised parse for the whole batch; naive values are UTC
    created = pd.to_datetime(pd.Series([r.created_at for r in records], dtype=object), utc=True, errors="coerce")
    mask = created.notna() & (created >= start) & (created <= end)
    return [r for r, keep in zip(records, mask.tolist()) if keep]


def filter_frame_window(df: pd.DataFrame, window_days: int, now) -> pd.DataFrame:
    """DataFrame counterpart of ``filter_time_window``."""
    start, end = window_bounds(window_days, now)
    if df.empty:
        return df
    created = df["created_at"]
    mask = created.notna() & (created >= start) & (created <= end)
    return df[mask].copy()
