from blocker_app.analytics.performance.ranking import (
    generate_badges,
    leaderboard_score,
    percentile_tier,
    rank_actors,
)
from blocker_app.core.config import BadgeSettings
from blocker_app.core.models import PerformanceProfile


def _profile(actor_id, name, completion_rate, resolved, assigned=None, **kw):
    return PerformanceProfile(
        actor_id=actor_id,
        display_name=name,
        assigned=assigned if assigned is not None else max(resolved, 1),
        resolved=resolved,
        completion_rate=completion_rate,
        **kw,
    )


def test_higher_resolved_breaks_completion_tie():
    profiles = {
        "a": _profile("a", "Alex", 80, 8, assigned=10),
        "b": _profile("b", "Blair", 80, 12, assigned=15),
    }
    ranked = rank_actors(profiles)
    assert [r.actor_id for r in ranked] == ["b", "a"]
    assert [r.rank for r in ranked] == [1, 2]


def test_name_then_id_break_remaining_ties():
    profiles = [
        _profile("z", "Sam", 70, 7, assigned=10),
        _profile("y", "Dana", 70, 7, assigned=10),
        _profile("x", "Sam", 70, 7, assigned=10),
    ]
    ranked = rank_actors(profiles)
    assert [r.actor_id for r in ranked] == ["y", "x", "z"]


def test_ranking_is_deterministic():
    profiles = [_profile(str(i), f"Actor {i % 3}", 50 + i % 4, i % 5, assigned=10) for i in range(12)]
    first = [r.actor_id for r in rank_actors(profiles)]
    second = [r.actor_id for r in rank_actors(list(reversed(profiles)))]
    assert first == second


def test_zero_assigned_excluded():
    profiles = [_profile("a", "Alex", 90, 9, assigned=10), _profile("idle", "Idle", 0, 0, assigned=0)]
    ranked = rank_actors(profiles)
    assert [r.actor_id for r in ranked] == ["a"]


def test_percentile_tiers():
    assert percentile_tier(1, 20) == "top_10"
    assert percentile_tier(2, 20) == "top_10"
    assert percentile_tier(3, 20) == "top_25"
    assert percentile_tier(5, 20) == "top_25"
    assert percentile_tier(6, 20) is None
    # ceil keeps the leader of a tiny board in the top 10%
    assert percentile_tier(1, 3) == "top_10"


def test_badges_for_strong_performer():
    p = _profile(
        "a",
        "Alex",
        96,
        120,
        assigned=125,
        quality_score=95,
        avg_resolution_hours=3.0,
        resolution_samples=120,
    )
    badges = generate_badges(p, rank=1, total=10)
    assert [b.code for b in badges] == [
        "excellence_award",
        "speed_demon",
        "quality_champion",
        "top_performer",
        "century_club",
    ]


def test_speed_badge_needs_resolution_samples():
    p = _profile("a", "Alex", 10, 0, assigned=5, avg_resolution_hours=0.0, resolution_samples=0)
    assert generate_badges(p, rank=5, total=5) == ()


def test_badges_capped():
    p = _profile("a", "Alex", 96, 120, assigned=125, quality_score=95, resolution_samples=1)
    badges = generate_badges(p, rank=1, total=10, settings=BadgeSettings(max_badges=2))
    assert len(badges) == 2


def test_leaderboard_score():
    p = _profile("a", "Alex", 90, 9, assigned=10, quality_score=95, avg_resolution_hours=50.0)
    # 90*0.4 + 95*0.4 + 50*0.2 = 84
    assert leaderboard_score(p) == 84
    ranked = rank_actors([p])
    assert ranked[0].leaderboard_score == 84
    assert ranked[0].percentile_tier == "top_10"
