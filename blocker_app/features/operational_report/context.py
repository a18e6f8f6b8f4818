"""Pure builders wiring the analytics into one result per dashboard."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import timedelta
from types import MappingProxyType

from blocker_app.analytics.aggregations.frequency import aggregate_by_field, problem_areas, repeat_groups
from blocker_app.analytics.aggregations.overview import compute_overview, overdue_items
from blocker_app.analytics.insights.rules import generate_insights, identify_improvement_areas
from blocker_app.analytics.metrics.derived import ensure_frame, round_half_up
from blocker_app.analytics.metrics.durations import compute_resolution_stats
from blocker_app.analytics.metrics.trend import build_trend, build_weekly_response_trend, hourly_distribution
from blocker_app.analytics.metrics.window import filter_time_window, normalize_timestamp, require_now
from blocker_app.analytics.performance.comparative import compare_subpopulation
from blocker_app.analytics.performance.ranking import rank_actors
from blocker_app.analytics.performance.scoring import compute_performance_profiles
from blocker_app.core.config import ACTIVE_ACTOR_DAYS, DEFAULT_TOP_N, DEFAULT_WINDOW_DAYS, SETTINGS, EngineSettings
from blocker_app.core.models import (
    Actor,
    AggregationResult,
    ComparativeMetric,
    HourlyCount,
    ImprovementArea,
    Insight,
    IssueRecord,
    OverdueItem,
    OverviewMetrics,
    PerformanceProfile,
    ProblemArea,
    RankedActor,
    RepeatGroup,
    ResolutionStats,
    TrendBucket,
    WeeklyResponse,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OperationalReport:
    """Everything the company-wide dashboards render for one window.

    Sequences are tuples and ``profiles`` is a read-only mapping.
    """

    window_days: int
    overview: OverviewMetrics
    by_category: tuple[AggregationResult, ...]
    by_location: tuple[AggregationResult, ...]
    by_priority: tuple[AggregationResult, ...]
    repeat_locations: tuple[RepeatGroup, ...]
    problem_areas: tuple[ProblemArea, ...]
    resolution: ResolutionStats
    profiles: Mapping[str, PerformanceProfile]
    leaderboard: tuple[RankedActor, ...]
    trend: tuple[TrendBucket, ...]
    weekly_response: tuple[WeeklyResponse, ...]
    hourly: tuple[HourlyCount, ...]
    insights: tuple[Insight, ...]
    improvement_areas: tuple[ImprovementArea, ...] = ()
    overdue_items: tuple[OverdueItem, ...] = ()


@dataclass(frozen=True, slots=True)
class TeamReport:
    team_id: str
    window_days: int
    total_members: int
    active_members: int
    total_assigned: int
    total_resolved: int
    avg_completion_rate: int
    profiles: Mapping[str, PerformanceProfile]
    leaderboard: tuple[RankedActor, ...]
    comparison: tuple[ComparativeMetric, ...]
    weekly_response: tuple[WeeklyResponse, ...]
    improvement_areas: tuple[ImprovementArea, ...] = ()


def build_operational_report(
    records: Iterable[IssueRecord],
    actors: Iterable[Actor],
    *,
    now,
    window_days: int = DEFAULT_WINDOW_DAYS,
    settings: EngineSettings = SETTINGS,
    trend_unit: str = "day",
    top_n: int | None = DEFAULT_TOP_N,
) -> OperationalReport:
    """Filter ``records`` to the window and compute every dashboard statistic.

    Parameters
    ----------
    records : iterable of IssueRecord
        Snapshot supplied by the data-access layer.
    actors : iterable of Actor
        Roster scored for the leaderboard.
    now : datetime-like
        Reference instant; the window ends here.
    window_days : int
        Lookback length; also the trend length.
    settings : EngineSettings
        Thresholds, weights and timezone.
    trend_unit : str
        ``"day"`` or ``"week"`` trend buckets.
    top_n : int or None
        Size of the frequency tables.

    Returns
    -------
    OperationalReport

    Raises
    ------
    ConfigurationError
        For invalid window, unit, timezone or top-N parameters.
    """
    windowed = filter_time_window(records, window_days, now)
    roster = list(actors)
    # One frame per report; every statistic below reuses it
    df = ensure_frame(windowed)
    logger.debug("Building operational report: %d records in %d-day window", len(df), window_days)

    by_category = aggregate_by_field(df, "category", top_n)
    resolution = compute_resolution_stats(df)
    profiles = compute_performance_profiles(df, roster, settings=settings)
    insights = generate_insights(
        by_category,
        resolution,
        profiles,
        total_records=len(df),
        settings=settings,
    )
    return OperationalReport(
        window_days=window_days,
        overview=compute_overview(df, now=now),
        by_category=tuple(by_category),
        by_location=tuple(aggregate_by_field(df, "location", top_n)),
        by_priority=tuple(aggregate_by_field(df, "priority", None)),
        repeat_locations=tuple(repeat_groups(df, "location", top_n=top_n)),
        problem_areas=tuple(problem_areas(df)),
        resolution=resolution,
        profiles=MappingProxyType(profiles),
        leaderboard=tuple(rank_actors(profiles, settings=settings)),
        trend=tuple(build_trend(df, max(window_days, 1), trend_unit, now=now, settings=settings)),
        weekly_response=tuple(build_weekly_response_trend(df, settings=settings)),
        hourly=tuple(hourly_distribution(df, settings=settings)),
        insights=tuple(insights),
        improvement_areas=tuple(identify_improvement_areas(profiles, settings)),
        overdue_items=overdue_items(df, now),
    )


def count_active_actors(actors: Sequence[Actor], now, days: int = ACTIVE_ACTOR_DAYS) -> int:
    """Actors whose ``last_active_at`` falls within the last ``days`` days."""
    end = require_now(now)
    start = end - timedelta(days=days)
    active = 0
    for actor in actors:
        seen = normalize_timestamp(actor.last_active_at)
        if seen is not None and seen >= start:
            active += 1
    return active


def build_team_report(
    team_id: str,
    records: Iterable[IssueRecord],
    actors: Iterable[Actor],
    *,
    now,
    window_days: int = DEFAULT_WINDOW_DAYS,
    settings: EngineSettings = SETTINGS,
) -> TeamReport:
    """Score one team's members and compare them with the whole population.

    Team records are the windowed records assigned to a member of
    ``team_id``. A team without members yields an empty report.
    """
    windowed = filter_time_window(records, window_days, now)
    members = [a for a in actors if a.team_id == team_id]
    member_ids = {a.id for a in members}
    team_records = [r for r in windowed if r.assigned_actor_id in member_ids]
    logger.debug(
        "Building team report for %s: %d members, %d of %d records",
        team_id,
        len(members),
        len(team_records),
        len(windowed),
    )

    team_df = ensure_frame(team_records)
    profiles = compute_performance_profiles(team_df, members, settings=settings)
    rates = [p.completion_rate for p in profiles.values()]
    return TeamReport(
        team_id=team_id,
        window_days=window_days,
        total_members=len(members),
        active_members=count_active_actors(members, now),
        total_assigned=sum(p.assigned for p in profiles.values()),
        total_resolved=sum(p.resolved for p in profiles.values()),
        avg_completion_rate=round_half_up(sum(rates) / len(rates)) if rates else 0,
        profiles=MappingProxyType(profiles),
        leaderboard=tuple(rank_actors(profiles, settings=settings)),
        comparison=tuple(compare_subpopulation(team_df, ensure_frame(windowed))),
        weekly_response=tuple(build_weekly_response_trend(team_df, settings=settings)),
        improvement_areas=tuple(identify_improvement_areas(profiles, settings)),
    )
