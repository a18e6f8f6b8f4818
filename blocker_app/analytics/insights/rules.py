"""Rule-based insights and improvement areas derived from computed statistics.

Every rule is independent and evaluated in declaration order. A rule whose
condition is not met contributes nothing; all firing rules are returned.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass

from blocker_app.analytics.metrics.derived import percent, round_half_up
from blocker_app.core.config import HOURS_PER_DAY, SETTINGS, EngineSettings, ImprovementSettings
from blocker_app.core.models import (
    AggregationResult,
    ImprovementArea,
    Insight,
    PerformanceProfile,
    ResolutionStats,
)

logger = logging.getLogger(__name__)

SEVERITY_HIGH = "high"
SEVERITY_MEDIUM = "medium"
SEVERITY_POSITIVE = "positive"


@dataclass(frozen=True, slots=True)
class InsightInputs:
    """Everything a rule may look at; built once per generate_insights call."""

    aggregations: tuple[AggregationResult, ...]
    resolution_stats: ResolutionStats
    profiles: tuple[PerformanceProfile, ...]
    total_records: int
    settings: EngineSettings


InsightRule = Callable[[InsightInputs], Insight | None]


def _profile_values(profiles) -> tuple[PerformanceProfile, ...]:
    if isinstance(profiles, Mapping):
        return tuple(profiles.values())
    return tuple(profiles)


def _high_volume_rule(inputs: InsightInputs) -> Insight | None:
    if not inputs.aggregations or inputs.total_records <= 0:
        return None
    top = inputs.aggregations[0]
    share = percent(top.count, inputs.total_records)
    cfg = inputs.settings.insights
    if share <= cfg.high_volume_share_pct:
        return None
    return Insight(
        type="high_volume",
        title="Most Common Blocker Type",
        description=f"{top.key} represents {top.count} incidents ({round_half_up(share)}% of all blockers)",
        recommendation=(
            f"Focus on preventive measures for {top.key} issues. "
            "Consider additional training or process improvements."
        ),
        severity=SEVERITY_HIGH if top.count > cfg.high_volume_high_count else SEVERITY_MEDIUM,
    )


def _slow_resolution_rule(inputs: InsightInputs) -> Insight | None:
    by_category = inputs.resolution_stats.by_category
    if not by_category:
        return None
    slowest = by_category[0]
    days = slowest.avg_hours / HOURS_PER_DAY
    cfg = inputs.settings.insights
    if days <= cfg.slow_resolution_days:
        return None
    return Insight(
        type="slow_resolution",
        title="Slow Resolution Times",
        description=f"{slowest.key} blockers take an average of {days:.1f} days to resolve",
        recommendation=(
            "Review resolution process and consider additional resources "
            "or specialized contractors for this type."
        ),
        severity=SEVERITY_HIGH if days > cfg.slow_resolution_high_days else SEVERITY_MEDIUM,
    )


def _underperformance_rule(inputs: InsightInputs) -> Insight | None:
    poor = [p for p in inputs.profiles if p.tier == "poor"]
    if not poor:
        return None
    return Insight(
        type="contractor_performance",
        title="Contractor Performance Concerns",
        description=f"{len(poor)} contractor(s) showing below-average performance",
        recommendation="Schedule performance reviews and consider additional training or contractor rotation.",
        severity=SEVERITY_HIGH if len(poor) > inputs.settings.insights.underperformer_high_count else SEVERITY_MEDIUM,
    )


def _excellence_rule(inputs: InsightInputs) -> Insight | None:
    excellent = [p for p in inputs.profiles if p.tier == "excellent"]
    if not excellent:
        return None
    return Insight(
        type="positive",
        title="High-Performing Contractors",
        description=f"{len(excellent)} contractor(s) consistently delivering excellent results",
        recommendation="Consider expanding partnerships with these contractors and documenting their best practices.",
        severity=SEVERITY_POSITIVE,
    )


INSIGHT_RULES: tuple[InsightRule, ...] = (
    _high_volume_rule,
    _slow_resolution_rule,
    _underperformance_rule,
    _excellence_rule,
)


def generate_insights(
    aggregations: Sequence[AggregationResult],
    resolution_stats: ResolutionStats,
    profiles: Mapping[str, PerformanceProfile] | Iterable[PerformanceProfile],
    *,
    total_records: int | None = None,
    settings: EngineSettings = SETTINGS,
    rules: Iterable[InsightRule] = INSIGHT_RULES,
) -> list[Insight]:
    """Run every insight rule and collect the ones that fire.

    Parameters
    ----------
    aggregations : sequence of AggregationResult
        Category frequency groups, busiest first.
    resolution_stats : ResolutionStats
        Output of ``compute_resolution_stats``; ``by_category`` must be
        slowest first.
    profiles : mapping or iterable of PerformanceProfile
    total_records : int, optional
        Size of the population the aggregations came from. Defaults to the
        sum of group counts, which undercounts when the groups were
        truncated to a top-N.
    settings : EngineSettings
        Thresholds for the rules.

    Returns
    -------
    list[Insight]
        In rule declaration order.
    """
    aggregations = tuple(aggregations)
    if total_records is None:
        total_records = sum(a.count for a in aggregations)
    inputs = InsightInputs(
        aggregations=aggregations,
        resolution_stats=resolution_stats,
        profiles=_profile_values(profiles),
        total_records=total_records,
        settings=settings,
    )
    insights = []
    for rule in rules:
        insight = rule(inputs)
        if insight is not None:
            insights.append(insight)
    logger.debug("Generated %d insights", len(insights))
    return insights


def identify_improvement_areas(
    profiles: Mapping[str, PerformanceProfile] | Iterable[PerformanceProfile],
    settings: EngineSettings = SETTINGS,
) -> list[ImprovementArea]:
    """Group actors needing attention by completion, response time and quality."""
    cfg: ImprovementSettings = settings.improvement
    active = [p for p in _profile_values(profiles) if p.assigned > 0]
    areas = []

    low_completion = [
        p for p in active if p.assigned > cfg.low_completion_min_assigned and p.completion_rate < cfg.low_completion_rate
    ]
    if low_completion:
        areas.append(
            ImprovementArea(
                area="Completion Rate",
                description=f"{len(low_completion)} team members with <{cfg.low_completion_rate:g}% completion rate",
                priority=SEVERITY_HIGH,
                actors=tuple(p.display_name for p in low_completion),
            )
        )

    slow = [p for p in active if p.avg_response_hours > cfg.slow_response_hours]
    if slow:
        areas.append(
            ImprovementArea(
                area="Response Time",
                description=f"{len(slow)} members taking >{cfg.slow_response_hours:g}h to respond",
                priority=SEVERITY_MEDIUM,
                actors=tuple(p.display_name for p in slow),
            )
        )

    low_quality = [p for p in active if p.quality_score < cfg.low_quality_score]
    if low_quality:
        areas.append(
            ImprovementArea(
                area="Quality Score",
                description=f"{len(low_quality)} members with quality scores <{cfg.low_quality_score:g}%",
                priority=SEVERITY_MEDIUM,
                actors=tuple(p.display_name for p in low_quality),
            )
        )
    return areas
