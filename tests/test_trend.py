from datetime import UTC, datetime, timedelta

import pytest

from blocker_app.analytics.metrics.trend import (
    build_trend,
    build_weekly_response_trend,
    hourly_distribution,
    week_key,
)
from blocker_app.core.config import ConfigurationError, EngineSettings
from blocker_app.core.models import IssueRecord, StatusChange

# Wednesday
NOW = datetime(2024, 1, 17, 15, 0, tzinfo=UTC)


def _sample_records():
    return [
        IssueRecord(id="1", created_at=NOW - timedelta(days=3), status="in_progress"),
        IssueRecord(
            id="2",
            created_at=NOW - timedelta(days=3, hours=1),
            status="verified_complete",
            completed_at=NOW - timedelta(hours=2),
        ),
        IssueRecord(id="3", created_at=NOW - timedelta(hours=1), status="pending"),
        IssueRecord(id="old", created_at=NOW - timedelta(days=20), status="pending"),
    ]


def test_day_buckets_are_contiguous_and_oldest_first():
    buckets = build_trend(_sample_records(), 7, "day", now=NOW)
    assert len(buckets) == 7
    assert buckets[0].label == "2024-01-11"
    assert buckets[-1].label == "2024-01-17"
    for prev, nxt in zip(buckets, buckets[1:]):
        assert prev.end == nxt.start


def test_created_and_resolved_counted_independently():
    buckets = {b.label: b for b in build_trend(_sample_records(), 7, "day", now=NOW)}
    assert buckets["2024-01-14"].created == 2
    assert buckets["2024-01-14"].resolved == 0
    assert buckets["2024-01-17"].created == 1
    assert buckets["2024-01-17"].resolved == 1
    assert sum(b.created for b in buckets.values()) == 3


def test_bucket_count_matches_window():
    for days in (1, 30, 90):
        assert len(build_trend([], days, now=NOW)) == days


def test_week_buckets_clip_to_window():
    buckets = build_trend(_sample_records(), 7, "week", now=NOW)
    assert [b.label for b in buckets] == ["2024-W02", "2024-W03"]
    assert buckets[0].start == datetime(2024, 1, 11, tzinfo=UTC)
    assert sum(b.created for b in buckets) == 3


def test_timezone_shifts_day_boundaries():
    late = IssueRecord(id="x", created_at=datetime(2024, 1, 17, 2, 0, tzinfo=UTC))
    settings = EngineSettings(timezone="America/New_York")
    buckets = build_trend([late], 2, now=NOW, settings=settings)
    assert [(b.label, b.created) for b in buckets] == [("2024-01-16", 1), ("2024-01-17", 0)]


def test_invalid_parameters_raise():
    with pytest.raises(ConfigurationError):
        build_trend([], 7, "month", now=NOW)
    with pytest.raises(ConfigurationError):
        build_trend([], -3, now=NOW)
    with pytest.raises(ConfigurationError):
        build_trend([], 7, now=NOW, settings=EngineSettings(timezone="Mars/Olympus"))


def test_week_key_iso():
    assert week_key(datetime(2024, 12, 30).date()) == "2025-W01"


def test_weekly_response_omits_empty_weeks():
    records = [
        IssueRecord(
            id="a",
            created_at=datetime(2024, 1, 2, 8, tzinfo=UTC),
            status_history=(StatusChange("assigned", datetime(2024, 1, 2, 12, tzinfo=UTC)),),
        ),
        IssueRecord(
            id="b",
            created_at=datetime(2024, 1, 3, 8, tzinfo=UTC),
            status_history=(StatusChange("assigned", datetime(2024, 1, 3, 16, tzinfo=UTC)),),
        ),
        IssueRecord(id="c", created_at=datetime(2024, 1, 10, 8, tzinfo=UTC)),
        IssueRecord(
            id="d",
            created_at=datetime(2024, 1, 16, 8, tzinfo=UTC),
            status_history=(StatusChange("assigned", datetime(2024, 1, 16, 10, tzinfo=UTC)),),
        ),
    ]
    out = build_weekly_response_trend(records)
    assert [(w.week, w.avg_response_hours, w.samples) for w in out] == [
        ("2024-W01", 6.0, 2),
        ("2024-W03", 2.0, 1),
    ]


def test_hourly_distribution_has_24_hours():
    out = hourly_distribution(_sample_records())
    assert len(out) == 24
    assert sum(h.count for h in out) == 4
    assert out[14].count == 2
    assert out[14].label == "14:00"


def test_hourly_distribution_rejects_other_fields():
    with pytest.raises(ConfigurationError):
        hourly_distribution(_sample_records(), field="updated_at")
