from datetime import UTC, datetime, timedelta

from blocker_app.analytics.insights.rules import generate_insights, identify_improvement_areas
from blocker_app.analytics.metrics.durations import compute_resolution_stats
from blocker_app.core.config import EngineSettings, InsightSettings
from blocker_app.core.models import (
    AggregationResult,
    CategoryDuration,
    IssueRecord,
    PerformanceProfile,
    ResolutionStats,
)


def _profile(actor_id, tier, **kw):
    defaults = {"assigned": 10, "resolved": 5, "completion_rate": 50, "quality_score": 85}
    defaults.update(kw)
    return PerformanceProfile(actor_id=actor_id, display_name=actor_id.title(), tier=tier, **defaults)


def _stats(*pairs):
    return ResolutionStats(by_category=tuple(CategoryDuration(key, hours, 1) for key, hours in pairs))


def test_excellence_and_underperformance_fire_together():
    profiles = {
        "a": _profile("a", "excellent"),
        "b": _profile("b", "poor"),
        "c": _profile("c", "good"),
    }
    insights = generate_insights([], ResolutionStats(), profiles)
    assert [i.type for i in insights] == ["contractor_performance", "positive"]
    assert insights[0].severity == "medium"
    assert insights[1].severity == "positive"


def test_underperformance_high_when_many_poor():
    profiles = [_profile(f"p{i}", "poor") for i in range(3)]
    (insight,) = generate_insights([], ResolutionStats(), profiles)
    assert insight.severity == "high"
    assert insight.description.startswith("3 contractor(s)")


def test_high_volume_uses_share_threshold():
    groups = [AggregationResult("Electrical", 12), AggregationResult("Plumbing", 8)]
    insights = generate_insights(groups, ResolutionStats(), [], total_records=20)
    assert [(i.type, i.severity) for i in insights] == [("high_volume", "high")]
    assert "60%" in insights[0].description


def test_high_volume_silent_below_share():
    groups = [AggregationResult(f"C{i}", 5) for i in range(5)]
    assert generate_insights(groups, ResolutionStats(), []) == []


def test_high_volume_medium_for_small_counts():
    settings = EngineSettings(insights=InsightSettings(high_volume_share_pct=10))
    groups = [AggregationResult("Doors", 4), AggregationResult("Glass", 2)]
    (insight,) = generate_insights(groups, ResolutionStats(), [], settings=settings)
    assert insight.severity == "medium"


def test_slow_resolution_thresholds_in_days():
    assert generate_insights([], _stats(("HVAC", 5 * 24)), []) == []
    (medium,) = generate_insights([], _stats(("HVAC", 6 * 24), ("Paint", 10)), [])
    assert (medium.type, medium.severity) == ("slow_resolution", "medium")
    assert "HVAC" in medium.description and "6.0 days" in medium.description
    (high,) = generate_insights([], _stats(("HVAC", 11 * 24)), [])
    assert high.severity == "high"


def test_rule_order_preserved():
    groups = [AggregationResult("Electrical", 30)]
    profiles = [_profile("a", "excellent"), _profile("b", "poor")]
    insights = generate_insights(groups, _stats(("Electrical", 12 * 24)), profiles)
    assert [i.type for i in insights] == ["high_volume", "slow_resolution", "contractor_performance", "positive"]


def test_no_conditions_no_insights():
    assert generate_insights([], ResolutionStats(), {}) == []


def test_improvement_areas():
    profiles = [
        _profile("low", "poor", assigned=5, completion_rate=40, quality_score=60),
        _profile("slow", "good", avg_response_hours=30.0, completion_rate=80, quality_score=90),
        _profile("few", "poor", assigned=2, completion_rate=0, quality_score=90),
        _profile("idle", None, assigned=0, completion_rate=0, quality_score=0, avg_response_hours=99.0),
    ]
    areas = identify_improvement_areas(profiles)
    assert [(a.area, a.priority, a.actors) for a in areas] == [
        ("Completion Rate", "high", ("Low",)),
        ("Response Time", "medium", ("Slow",)),
        ("Quality Score", "medium", ("Low",)),
    ]


def test_slow_resolution_compares_exact_mean():
    base = datetime(2024, 1, 1, tzinfo=UTC)
    records = [
        IssueRecord(
            id=f"h-{i}",
            created_at=base,
            category="HVAC",
            status="verified_complete",
            completed_at=base + timedelta(hours=120.02),
        )
        for i in range(2)
    ]
    (insight,) = generate_insights([], compute_resolution_stats(records), [])
    assert insight.type == "slow_resolution"
    assert insight.severity == "medium"
