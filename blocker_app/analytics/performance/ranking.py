"""Leaderboard ranking, percentile tiers, and achievement badges."""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping

from blocker_app.analytics.metrics.derived import round_half_up
from blocker_app.core.config import SETTINGS, BadgeSettings, EngineSettings
from blocker_app.core.models import Badge, PerformanceProfile, RankedActor

TOP_10 = "top_10"
TOP_25 = "top_25"


def ranking_key(profile: PerformanceProfile):
    """Completion rate desc, resolved desc, display name asc, actor id asc."""
    return (-profile.completion_rate, -profile.resolved, profile.display_name, profile.actor_id)


def percentile_tier(rank: int, total: int, badges: BadgeSettings | None = None) -> str | None:
    badges = badges or BadgeSettings()
    if total <= 0 or rank <= 0:
        return None
    if rank <= math.ceil(badges.top_10_fraction * total):
        return TOP_10
    if rank <= math.ceil(badges.top_25_fraction * total):
        return TOP_25
    return None


def leaderboard_score(profile: PerformanceProfile) -> int:
    raw = (
        profile.completion_rate * 0.4
        + profile.quality_score * 0.4
        + max(0.0, 100 - profile.avg_resolution_hours) * 0.2
    )
    return round_half_up(raw)


# ------------------ Achievement rules ------------------
# Each rule sees (profile, rank, total, settings) and yields at most one badge.
BadgeRule = Callable[[PerformanceProfile, int, int, BadgeSettings], Badge | None]


def _completion_badge(p: PerformanceProfile, rank: int, total: int, s: BadgeSettings) -> Badge | None:
    if p.completion_rate >= s.excellence_rate:
        return Badge("excellence_award", "Excellence Award", f"{s.excellence_rate:g}%+ completion rate")
    if p.completion_rate >= s.high_performer_rate:
        return Badge("high_performer", "High Performer", f"{s.high_performer_rate:g}%+ completion rate")
    return None


def _speed_badge(p: PerformanceProfile, rank: int, total: int, s: BadgeSettings) -> Badge | None:
    if p.resolution_samples <= 0:
        return None
    if p.avg_resolution_hours <= s.speed_demon_hours:
        return Badge("speed_demon", "Speed Demon", f"Average {s.speed_demon_hours:g}h completion")
    if p.avg_resolution_hours <= s.quick_resolver_hours:
        return Badge("quick_resolver", "Quick Resolver", "Fast completion times")
    return None


def _quality_badge(p: PerformanceProfile, rank: int, total: int, s: BadgeSettings) -> Badge | None:
    if p.quality_score >= s.quality_champion_score:
        return Badge("quality_champion", "Quality Champion", f"{s.quality_champion_score:g}%+ quality score")
    return None


def _rank_badge(p: PerformanceProfile, rank: int, total: int, s: BadgeSettings) -> Badge | None:
    if rank == 1:
        return Badge("top_performer", "Top Performer", "#1 in company")
    tier = percentile_tier(rank, total, s)
    if tier == TOP_10:
        return Badge("top_10", "Top 10%", "Elite performer")
    if tier == TOP_25:
        return Badge("top_25", "Top 25%", "Strong performer")
    return None


def _milestone_badge(p: PerformanceProfile, rank: int, total: int, s: BadgeSettings) -> Badge | None:
    if p.resolved >= s.century_completions:
        return Badge("century_club", "Century Club", f"{s.century_completions}+ completions")
    if p.resolved >= s.half_century_completions:
        return Badge("half_century", "Half Century", f"{s.half_century_completions}+ completions")
    return None


BADGE_RULES: tuple[BadgeRule, ...] = (
    _completion_badge,
    _speed_badge,
    _quality_badge,
    _rank_badge,
    _milestone_badge,
)


def generate_badges(
    profile: PerformanceProfile,
    rank: int,
    total: int,
    settings: BadgeSettings | None = None,
    rules: Iterable[BadgeRule] = BADGE_RULES,
) -> tuple[Badge, ...]:
    """Evaluate badge rules in declaration order, keeping at most ``max_badges``."""
    settings = settings or BadgeSettings()
    earned = []
    for rule in rules:
        badge = rule(profile, rank, total, settings)
        if badge is not None:
            earned.append(badge)
    return tuple(earned[: settings.max_badges])


def rank_actors(
    profiles: Mapping[str, PerformanceProfile] | Iterable[PerformanceProfile],
    *,
    settings: EngineSettings = SETTINGS,
) -> list[RankedActor]:
    """Order actors with assignments into a deterministic leaderboard.

    Actors with zero assigned records are left out entirely.
    """
    values = profiles.values() if isinstance(profiles, Mapping) else profiles
    ranked = sorted((p for p in values if p.assigned > 0), key=ranking_key)
    total = len(ranked)
    return [
        RankedActor(
            rank=rank,
            profile=profile,
            percentile_tier=percentile_tier(rank, total, settings.badges),
            leaderboard_score=leaderboard_score(profile),
            badges=generate_badges(profile, rank, total, settings.badges),
        )
        for rank, profile in enumerate(ranked, start=1)
    ]
