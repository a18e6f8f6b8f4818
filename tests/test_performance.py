from datetime import UTC, datetime, timedelta

from blocker_app.analytics.performance.scoring import (
    build_profile,
    classify_tier,
    compute_performance_profiles,
    quality_score,
)
from blocker_app.core.models import Actor, IssueRecord, StatusChange

BASE = datetime(2024, 4, 1, 7, 0, tzinfo=UTC)


def _records_for(actor_id, assigned, resolved, hours=24, documented=0, rejected=0):
    records = []
    for i in range(assigned):
        if i < resolved:
            status, completed = "verified_complete", BASE + timedelta(hours=hours)
        elif i < resolved + rejected:
            status, completed = "rejected", None
        else:
            status, completed = "in_progress", None
        records.append(
            IssueRecord(
                id=f"{actor_id}-{i}",
                created_at=BASE,
                status=status,
                completed_at=completed,
                assigned_actor_id=actor_id,
                has_documentation=i < documented,
                category="Electrical" if i % 2 == 0 else "Plumbing",
                status_history=(StatusChange("in_progress", BASE + timedelta(hours=2)),),
            )
        )
    return records


def test_example_profile_excellent_when_fast():
    actor = Actor(id="u1", display_name="Ana")
    profiles = compute_performance_profiles(_records_for("u1", 10, 9, hours=48, documented=10), [actor])
    p = profiles["u1"]
    assert p.assigned == 10
    assert p.resolved == 9
    assert p.completion_rate == 90
    assert p.documentation_rate == 100.0
    assert p.rejection_penalty == 0.0
    assert p.quality_score == 95
    assert p.avg_resolution_hours == 48.0
    assert p.tier == "excellent"


def test_example_profile_good_when_slow():
    actor = Actor(id="u1", display_name="Ana")
    profiles = compute_performance_profiles(_records_for("u1", 10, 9, hours=4 * 24, documented=10), [actor])
    assert profiles["u1"].tier == "good"


def test_zero_assignments_profile():
    profiles = compute_performance_profiles([], [Actor(id="u9", display_name="Idle")])
    p = profiles["u9"]
    assert p.completion_rate == 0
    assert p.tier is None
    assert p.documentation_rate == 100.0


def test_quality_score_clamped_for_total_rejection():
    p = build_profile(Actor(id="u2", display_name="Bo"), assigned=5, rejected=5)
    assert 0 <= p.quality_score <= 100
    assert p.rejection_penalty == 30.0
    assert p.quality_score == 14


def test_quality_score_bounds():
    assert quality_score(100, 100, 0) == 100
    assert quality_score(0, 0, 100) == 0
    assert quality_score(500, 500, -500) == 100


def test_classify_tier_thresholds():
    assert classify_tier(90, 3) == "excellent"
    assert classify_tier(80, 4) == "good"
    assert classify_tier(95, 7) == "average"
    assert classify_tier(40, 1) == "poor"


def test_response_hours_and_counts():
    actor = Actor(id="u3", display_name="Cy", team_id="t1")
    records = _records_for("u3", 4, 1, rejected=1, documented=2)
    p = compute_performance_profiles(records, [actor])["u3"]
    assert p.avg_response_hours == 2.0
    assert p.rejected == 1
    assert p.in_progress == 2
    assert p.documented == 2
    assert p.rejection_rate == 25.0
    assert p.team_id == "t1"
    assert p.top_categories == (("Electrical", 2), ("Plumbing", 2))


def test_records_outside_roster_are_ignored():
    roster = [Actor(id="u1", display_name="Ana")]
    records = _records_for("u1", 2, 1) + _records_for("ghost", 3, 3)
    profiles = compute_performance_profiles(records, roster)
    assert list(profiles) == ["u1"]
    assert profiles["u1"].assigned == 2


def test_resolutions_without_completion_time_do_not_earn_speed_tier():
    actor = Actor(id="u5", display_name="Eve")
    records = [
        IssueRecord(id=f"n-{i}", created_at=BASE, status="verified_complete", assigned_actor_id="u5")
        for i in range(5)
    ]
    p = compute_performance_profiles(records, [actor])["u5"]
    assert p.completion_rate == 100
    assert p.resolution_samples == 0
    assert p.avg_resolution_hours == 0.0
    assert p.tier == "poor"


def test_tier_uses_unrounded_resolution_mean():
    # 72.04h rounds to 72.0h (3.0 days) for display but is over the 3-day ceiling
    actor = Actor(id="u6", display_name="Fay")
    records = _records_for("u6", 10, 10, hours=72.04, documented=10)
    p = compute_performance_profiles(records, [actor])["u6"]
    assert p.avg_resolution_hours == 72.0
    assert p.tier == "good"


def test_malformed_resolution_counts_as_unresolved():
    actor = Actor(id="u7", display_name="Gil")
    records = [
        IssueRecord(
            id="m-1",
            created_at=BASE,
            status="verified_complete",
            completed_at=BASE - timedelta(hours=3),
            assigned_actor_id="u7",
        ),
        IssueRecord(
            id="m-2",
            created_at=BASE,
            status="verified_complete",
            completed_at=BASE + timedelta(hours=3),
            assigned_actor_id="u7",
        ),
    ]
    p = compute_performance_profiles(records, [actor])["u7"]
    assert p.assigned == 2
    assert p.resolved == 1
    assert p.completion_rate == 50
    assert p.resolution_samples == 1
