"""Compare a sub-population (team, project) against the whole population."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

import pandas as pd

from blocker_app.analytics.metrics.derived import ensure_frame, mean_or_zero, percent, round_half_up
from blocker_app.core.config import ConfigurationError
from blocker_app.core.models import ComparativeMetric, IssueRecord

IMPROVING = "improving"
DECLINING = "declining"
NEUTRAL = "neutral"


@dataclass(frozen=True, slots=True)
class MetricDefinition:
    name: str
    label: str
    unit: str
    # "higher", "lower", or None when the metric has no better direction
    better: str | None
    compute: Callable[[pd.DataFrame], float]
    # Whether a population has any samples for this metric
    has_samples: Callable[[pd.DataFrame], bool]


def _completion_rate(df: pd.DataFrame) -> float:
    if df.empty:
        return 0
    return round_half_up(percent(int(df["is_resolved"].sum()), len(df)))


def _avg_resolution_hours(df: pd.DataFrame) -> float:
    if df.empty:
        return 0.0
    return mean_or_zero(df["duration_hours"])


def _total_resolved(df: pd.DataFrame) -> float:
    if df.empty:
        return 0
    return int(df["is_resolved"].sum())


COMPARATIVE_METRICS: dict[str, MetricDefinition] = {
    "completion_rate": MetricDefinition(
        name="completion_rate",
        label="Completion Rate",
        unit="%",
        better="higher",
        compute=_completion_rate,
        has_samples=lambda df: not df.empty,
    ),
    "avg_resolution_hours": MetricDefinition(
        name="avg_resolution_hours",
        label="Avg Completion Time",
        unit="hours",
        better="lower",
        compute=_avg_resolution_hours,
        has_samples=lambda df: not df.empty and bool(df["duration_hours"].notna().any()),
    ),
    "total_resolved": MetricDefinition(
        name="total_resolved",
        label="Total Completed",
        unit="items",
        better=None,
        compute=_total_resolved,
        has_samples=lambda df: not df.empty,
    ),
}

DEFAULT_COMPARATIVE_METRICS: tuple[str, ...] = tuple(COMPARATIVE_METRICS)


def direction_for(definition: MetricDefinition, sub_value: float, population_value: float) -> str:
    if definition.better is None or sub_value == population_value:
        return NEUTRAL
    if definition.better == "higher":
        return IMPROVING if sub_value > population_value else DECLINING
    return IMPROVING if sub_value < population_value else DECLINING


def compare_subpopulation(
    sub_records: Iterable[IssueRecord] | pd.DataFrame,
    all_records: Iterable[IssueRecord] | pd.DataFrame,
    metrics: Sequence[str] = DEFAULT_COMPARATIVE_METRICS,
) -> list[ComparativeMetric]:
    """Compute each named metric for both populations with a direction.

    ``direction`` is declared per metric: higher completion rate and lower
    resolution time are improvements; ``total_resolved`` is always
    neutral. A side without samples yields ``neutral``.

    Raises
    ------
    ConfigurationError
        For metric names outside COMPARATIVE_METRICS.
    """
    unknown = [m for m in metrics if m not in COMPARATIVE_METRICS]
    if unknown:
        raise ConfigurationError(f"Unknown comparative metrics: {unknown}")
    sub_df = ensure_frame(sub_records)
    all_df = ensure_frame(all_records)

    results = []
    for name in metrics:
        definition = COMPARATIVE_METRICS[name]
        sub_value = definition.compute(sub_df)
        population_value = definition.compute(all_df)
        if definition.has_samples(sub_df) and definition.has_samples(all_df):
            direction = direction_for(definition, sub_value, population_value)
        else:
            direction = NEUTRAL
        results.append(
            ComparativeMetric(
                metric=name,
                label=definition.label,
                sub_value=sub_value,
                population_value=population_value,
                unit=definition.unit,
                direction=direction,
            )
        )
    return results
