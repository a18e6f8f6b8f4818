"""Per-actor performance profiles: completion, documentation, quality, tier."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable

import pandas as pd

from blocker_app.analytics.aggregations.frequency import rank_groups
from blocker_app.analytics.metrics.derived import ensure_frame, percent, round_half_up
from blocker_app.analytics.metrics.durations import add_response_hours
from blocker_app.core.config import (
    FALLBACK_TIER,
    FIRST_TOUCH_STATUS_PROFILE,
    HOURS_PER_DAY,
    SETTINGS,
    TOP_CATEGORIES_PER_ACTOR,
    EngineSettings,
    ScoringWeights,
    TierThreshold,
)
from blocker_app.core.models import Actor, IssueRecord, PerformanceProfile

logger = logging.getLogger(__name__)


def quality_score(
    completion_rate: float,
    documentation_rate: float,
    rejection_penalty: float,
    weights: ScoringWeights | None = None,
) -> int:
    """Composite 0-100 score blending completion, documentation and rejections.

    >>> quality_score(90, 100, 0)
    95
    """
    weights = weights or ScoringWeights()
    raw = (
        completion_rate * weights.completion
        + documentation_rate * weights.documentation
        + (100 - rejection_penalty) * weights.rejection
    )
    return max(0, min(100, round_half_up(raw)))


def classify_tier(
    completion_rate: float,
    avg_resolution_days: float,
    tiers: Iterable[TierThreshold] | None = None,
) -> str:
    """First tier whose rate floor and speed ceiling are both met, else ``poor``."""
    for threshold in tiers if tiers is not None else SETTINGS.tiers:
        if (
            completion_rate >= threshold.min_completion_rate
            and avg_resolution_days <= threshold.max_avg_resolution_days
        ):
            return threshold.tier
    return FALLBACK_TIER


def _top_categories(group: pd.DataFrame, limit: int) -> tuple[tuple[str, int], ...]:
    counts = group.groupby("category", sort=False).size().rename("count").reset_index()
    ranked = rank_groups(counts, top_n=limit)
    return tuple((str(row["category"]), int(row["count"])) for _, row in ranked.iterrows())


def _actor_stats(df: pd.DataFrame, first_touch_status: str) -> tuple[pd.DataFrame, dict]:
    status = df["status"].astype(str)
    work = add_response_hours(df, first_touch_status).assign(
        in_progress=status.eq("in_progress"),
        awaiting_start=status.eq("assigned"),
    )
    stats = work.groupby("assigned_actor_id", sort=False).agg(
        assigned=("id", "size"),
        resolved=("is_resolved", "sum"),
        rejected=("is_rejected", "sum"),
        documented=("has_documentation", "sum"),
        in_progress=("in_progress", "sum"),
        awaiting_start=("awaiting_start", "sum"),
        avg_resolution_hours=("duration_hours", "mean"),
        resolution_samples=("duration_hours", "count"),
        avg_response_hours=("response_hours", "mean"),
    )
    categories = {
        actor_id: _top_categories(group, TOP_CATEGORIES_PER_ACTOR)
        for actor_id, group in work.groupby("assigned_actor_id", sort=False)
    }
    return stats, categories


def _hours(value) -> float:
    if value is None or pd.isna(value):
        return 0.0
    return float(value)


def build_profile(
    actor: Actor,
    *,
    assigned: int = 0,
    resolved: int = 0,
    rejected: int = 0,
    documented: int = 0,
    in_progress: int = 0,
    awaiting_start: int = 0,
    avg_resolution_hours: float = 0.0,
    resolution_samples: int = 0,
    avg_response_hours: float = 0.0,
    top_categories: tuple[tuple[str, int], ...] = (),
    settings: EngineSettings = SETTINGS,
) -> PerformanceProfile:
    """Score one actor from raw counts.

    Zero-assignment actors score ``completion_rate=0``, ``documentation_rate=100``
    and get no tier; they are absent from rankings rather than ``poor``.
    Tiers compare the unrounded mean resolution time; an actor without any
    timed resolution fails every speed ceiling.
    """
    completion_rate = round_half_up(percent(resolved, assigned))
    documentation_rate = percent(documented, assigned, empty=100.0)
    rejection_penalty = (rejected / assigned * settings.weights.rejection_penalty_scale) if assigned else 0.0
    tier = None
    if assigned > 0:
        avg_days = avg_resolution_hours / HOURS_PER_DAY if resolution_samples > 0 else math.inf
        tier = classify_tier(completion_rate, avg_days, settings.tiers)
    return PerformanceProfile(
        actor_id=actor.id,
        display_name=actor.display_name,
        role=actor.role,
        team_id=actor.team_id,
        assigned=assigned,
        resolved=resolved,
        rejected=rejected,
        documented=documented,
        in_progress=in_progress,
        awaiting_start=awaiting_start,
        completion_rate=completion_rate,
        documentation_rate=round(documentation_rate, 1),
        rejection_penalty=round(rejection_penalty, 1),
        quality_score=quality_score(completion_rate, documentation_rate, rejection_penalty, settings.weights),
        avg_response_hours=round(avg_response_hours, 1),
        avg_resolution_hours=round(avg_resolution_hours, 1),
        resolution_samples=resolution_samples,
        tier=tier,
        top_categories=top_categories,
    )


def compute_performance_profiles(
    records: Iterable[IssueRecord] | pd.DataFrame,
    actors: Iterable[Actor],
    *,
    settings: EngineSettings = SETTINGS,
    first_touch_status: str = FIRST_TOUCH_STATUS_PROFILE,
) -> dict[str, PerformanceProfile]:
    """Build a PerformanceProfile for every actor in the roster.

    Parameters
    ----------
    records : iterable of IssueRecord or prepared DataFrame
        Records in the reporting window.
    actors : iterable of Actor
        Roster; profiles are returned in roster order.
    settings : EngineSettings
        Scoring weights and tier thresholds.
    first_touch_status : str
        Status marking the start of work for response times.

    Returns
    -------
    dict[str, PerformanceProfile]
        Keyed by actor id. Records assigned to ids outside the roster are
        ignored.
    """
    roster = list(actors)
    df = ensure_frame(records)
    stats = pd.DataFrame()
    categories: dict = {}
    if not df.empty:
        roster_ids = {a.id for a in roster}
        assigned = df[df["assigned_actor_id"].notna()]
        outside = ~assigned["assigned_actor_id"].isin(roster_ids)
        if outside.any():
            logger.debug("Ignoring %d records assigned outside the roster", int(outside.sum()))
        assigned = assigned[~outside]
        if not assigned.empty:
            stats, categories = _actor_stats(assigned, first_touch_status)

    profiles: dict[str, PerformanceProfile] = {}
    for actor in roster:
        if actor.id in stats.index:
            row = stats.loc[actor.id]
            profiles[actor.id] = build_profile(
                actor,
                assigned=int(row["assigned"]),
                resolved=int(row["resolved"]),
                rejected=int(row["rejected"]),
                documented=int(row["documented"]),
                in_progress=int(row["in_progress"]),
                awaiting_start=int(row["awaiting_start"]),
                avg_resolution_hours=_hours(row["avg_resolution_hours"]),
                resolution_samples=int(row["resolution_samples"]),
                avg_response_hours=_hours(row["avg_response_hours"]),
                top_categories=categories.get(actor.id, ()),
                settings=settings,
            )
        else:
            profiles[actor.id] = build_profile(actor, settings=settings)
    logger.debug("Scored %d actors (%d with assignments)", len(profiles), len(stats))
    return profiles
