from datetime import UTC, datetime, timedelta

from blocker_app.analytics.metrics.durations import compute_resolution_stats, first_touch_hours
from blocker_app.core.models import IssueRecord, StatusChange

BASE = datetime(2024, 3, 4, 9, 0, tzinfo=UTC)


def _resolved(i, hours, category="Electrical", actor="u1"):
    return IssueRecord(
        id=f"R-{i}",
        created_at=BASE,
        category=category,
        status="verified_complete",
        completed_at=BASE + timedelta(hours=hours),
        assigned_actor_id=actor,
        location=f"Zone {i}",
    )


def _sample_records():
    return [
        _resolved(1, 10, "Electrical", "u1"),
        _resolved(2, 30, "Plumbing", "u2"),
        _resolved(3, 20, "Electrical", "u2"),
        IssueRecord(id="open-1", created_at=BASE, category="Plumbing", status="in_progress"),
    ]


def test_average_excludes_unresolved():
    stats = compute_resolution_stats(_sample_records())
    assert stats.sample_count == 3
    assert stats.avg_hours == 20.0


def test_malformed_timestamps_are_excluded():
    records = _sample_records() + [
        IssueRecord(
            id="bad",
            created_at=BASE,
            status="verified_complete",
            completed_at=BASE - timedelta(hours=5),
        )
    ]
    stats = compute_resolution_stats(records)
    assert stats.sample_count == 3
    assert stats.avg_hours == 20.0


def test_longest_resolutions_sorted_desc():
    stats = compute_resolution_stats(_sample_records(), longest_n=2)
    assert [item.id for item in stats.longest] == ["R-2", "R-3"]
    top = stats.longest[0]
    assert top.duration_hours == 30.0
    assert top.category == "Plumbing"
    assert top.actor_id == "u2"
    assert top.location == "Zone 2"


def test_by_category_slowest_first():
    stats = compute_resolution_stats(_sample_records())
    assert [(c.key, c.avg_hours, c.count) for c in stats.by_category] == [
        ("Plumbing", 30.0, 1),
        ("Electrical", 15.0, 2),
    ]


def test_by_actor_means():
    stats = compute_resolution_stats(_sample_records())
    assert [(a.key, a.avg_hours) for a in stats.by_actor] == [("u2", 25.0), ("u1", 10.0)]


def test_empty_input_gives_zero_stats():
    stats = compute_resolution_stats([])
    assert stats.avg_hours == 0.0
    assert stats.sample_count == 0
    assert stats.longest == ()


def test_first_touch_sorts_history():
    history = (
        StatusChange("in_progress", BASE + timedelta(hours=6)),
        StatusChange("assigned", BASE + timedelta(hours=2)),
        StatusChange("in_progress", BASE + timedelta(hours=4)),
    )
    assert first_touch_hours(BASE, history, "in_progress") == 4.0
    assert first_touch_hours(BASE, history, "assigned") == 2.0


def test_first_touch_missing_status_is_none():
    history = (StatusChange("assigned", BASE + timedelta(hours=2)),)
    assert first_touch_hours(BASE, history, "in_progress") is None
    assert first_touch_hours(BASE, (), "assigned") is None
