"""Shared derived column computations for analytics."""

from __future__ import annotations

import math
from collections.abc import Iterable

import pandas as pd

from blocker_app.core.config import CLOSED_STATUSES, REJECTED_STATUS, RESOLVED_STATUS
from blocker_app.core.mappers import records_to_dataframe
from blocker_app.core.models import IssueRecord

SECONDS_PER_HOUR = 3600.0


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (not banker's rounding)."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return 0
    return int(math.floor(value + 0.5))


def percent(part: float, whole: float, *, empty: float = 0.0) -> float:
    """``part / whole * 100`` with ``empty`` returned when ``whole`` is zero."""
    if not whole:
        return empty
    return part / whole * 100.0


def mean_or_zero(values: pd.Series, digits: int = 1) -> float:
    numeric = pd.to_numeric(values, errors="coerce").dropna()
    if numeric.empty:
        return 0.0
    return round(float(numeric.mean()), digits)


def add_derived_metrics(df: pd.DataFrame) -> pd.DataFrame:
    """Add commonly used derived metrics to a records DataFrame.

    Adds the following columns:
        - malformed: completed_at earlier than created_at
        - is_resolved: status verified_complete and timestamps not malformed
        - is_open: status not verified_complete/cancelled
        - is_rejected: status rejected
        - duration_hours: creation to completion in hours (NaN unless resolved
          with both timestamps present)

    Parameters
    ----------
    df : pd.DataFrame
        Output of ``records_to_dataframe``.

    Returns
    -------
    pd.DataFrame
        Copy of input with derived columns added.
    """
    out = df.copy()
    created = out["created_at"]
    completed = out["completed_at"]
    status = out["status"].astype(str)

    out["malformed"] = (completed.notna() & created.notna() & (completed < created)).astype(bool)
    out["is_resolved"] = (status.eq(RESOLVED_STATUS) & ~out["malformed"]).astype(bool)
    out["is_open"] = (~status.isin(CLOSED_STATUSES)).astype(bool)
    out["is_rejected"] = status.eq(REJECTED_STATUS).astype(bool)

    hours = (completed - created).dt.total_seconds() / SECONDS_PER_HOUR
    out["duration_hours"] = hours.where(out["is_resolved"] & completed.notna())
    return out


def ensure_frame(data: Iterable[IssueRecord] | pd.DataFrame) -> pd.DataFrame:
    """Return a prepared records frame, building it once when given records.

    Frames already carrying the derived columns pass through untouched so a
    caller can build the frame once and reuse it for every statistic.
    """
    if isinstance(data, pd.DataFrame):
        if "is_resolved" in data.columns:
            return data
        return add_derived_metrics(data)
    return add_derived_metrics(records_to_dataframe(data))
