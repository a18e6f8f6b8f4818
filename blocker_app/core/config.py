"""Central configuration, constants, and tunable analytics thresholds."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

# =============================================================================
# Time Settings
# =============================================================================
TIMEZONE = "UTC"  # Calendar-day boundaries for trend buckets

# =============================================================================
# Workflow Status Configuration
# =============================================================================
ISSUE_STATUSES: Sequence[str] = (
    "pending",
    "assigned",
    "in_progress",
    "completed",
    "verified_complete",
    "rejected",
    "cancelled",
)

RESOLVED_STATUS = "verified_complete"
REJECTED_STATUS = "rejected"
DEFAULT_STATUS = "pending"

# Statuses that close an issue (no longer counted as open)
CLOSED_STATUSES: frozenset[str] = frozenset({"verified_complete", "cancelled"})

# Map various status strings to canonical names
# Keys should be lowercase with spaces/hyphens already collapsed to "_"
STATUS_ALIASES: dict[str, str] = {
    "new": "pending",
    "open": "pending",
    "pending_review": "pending",
    "inprogress": "in_progress",
    "started": "in_progress",
    "working": "in_progress",
    "done": "completed",
    "verified": "verified_complete",
    "verifiedcomplete": "verified_complete",
    "resolved": "verified_complete",
    "canceled": "cancelled",
}

# First-touch statuses used by response-time metrics
FIRST_TOUCH_STATUS_PROFILE = "in_progress"  # actor profiles: time to start work
FIRST_TOUCH_STATUS_TREND = "assigned"  # weekly trend: time to first response

# =============================================================================
# Priority Configuration
# =============================================================================
PRIORITIES: Sequence[str] = ("low", "medium", "high", "critical")
DEFAULT_PRIORITY = "medium"

PRIORITY_ALIASES: dict[str, str] = {
    "urgent": "critical",
    "blocker": "critical",
    "normal": "medium",
    "minor": "low",
    "major": "high",
}

# =============================================================================
# Fallback Values
# =============================================================================
DEFAULT_CATEGORY = "Other"
DEFAULT_LOCATION = "Unknown Location"
UNASSIGNED_ACTOR = "Unassigned"
UNKNOWN_VALUE = "Unknown"

# Fields accepted by frequency aggregation and their fallback keys
GROUPABLE_FIELDS: dict[str, str] = {
    "category": DEFAULT_CATEGORY,
    "location": DEFAULT_LOCATION,
    "priority": DEFAULT_PRIORITY,
    "status": DEFAULT_STATUS,
    "assigned_actor_id": UNASSIGNED_ACTOR,
    "project_id": UNKNOWN_VALUE,
}

# =============================================================================
# Window / Size Defaults
# =============================================================================
DEFAULT_WINDOW_DAYS: int = 30
TREND_WINDOWS: Sequence[int] = (7, 30, 90)  # Lookbacks offered by the dashboards
BUCKET_UNITS: Sequence[str] = ("day", "week")
DEFAULT_TOP_N: int = 10
DEFAULT_LONGEST_N: int = 10
DEFAULT_OVERDUE_N: int = 10
REPEAT_GROUP_MIN_COUNT: int = 2  # "repeat location" = seen more than once
PROBLEM_AREA_MIN_COUNT: int = 3
PROBLEM_AREA_TOP_N: int = 8
TOP_CATEGORIES_PER_ACTOR: int = 3
ACTIVE_ACTOR_DAYS: int = 7
MAX_BADGES: int = 6

HOURS_PER_DAY = 24.0


class ConfigurationError(ValueError):
    """Raised for invalid engine parameters or settings (programmer error)."""


# =============================================================================
# Tunable Thresholds
# =============================================================================
@dataclass(frozen=True, slots=True)
class ScoringWeights:
    completion: float = 0.5
    documentation: float = 0.3
    rejection: float = 0.2
    # Rejection penalty is rejected/assigned scaled to this many points
    rejection_penalty_scale: float = 30.0


@dataclass(frozen=True, slots=True)
class TierThreshold:
    tier: str
    min_completion_rate: float
    max_avg_resolution_days: float


DEFAULT_TIERS: tuple[TierThreshold, ...] = (
    TierThreshold("excellent", 90, 3),
    TierThreshold("good", 75, 5),
    TierThreshold("average", 50, 8),
)
FALLBACK_TIER = "poor"
PERFORMANCE_TIERS: Sequence[str] = ("excellent", "good", "average", "poor")


@dataclass(frozen=True, slots=True)
class BadgeSettings:
    excellence_rate: float = 95
    high_performer_rate: float = 85
    speed_demon_hours: float = 4
    quick_resolver_hours: float = 8
    quality_champion_score: float = 90
    century_completions: int = 100
    half_century_completions: int = 50
    top_10_fraction: float = 0.10
    top_25_fraction: float = 0.25
    max_badges: int = MAX_BADGES


@dataclass(frozen=True, slots=True)
class InsightSettings:
    # Top category must exceed this share (percent of all records) to be flagged
    high_volume_share_pct: float = 25.0
    high_volume_high_count: int = 10
    slow_resolution_days: float = 5
    slow_resolution_high_days: float = 10
    underperformer_high_count: int = 2


@dataclass(frozen=True, slots=True)
class ImprovementSettings:
    low_completion_rate: float = 70
    low_completion_min_assigned: int = 3  # strictly more than this many assigned
    slow_response_hours: float = 24
    low_quality_score: float = 80


@dataclass(frozen=True, slots=True)
class EngineSettings:
    timezone: str = TIMEZONE
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    tiers: tuple[TierThreshold, ...] = DEFAULT_TIERS
    badges: BadgeSettings = field(default_factory=BadgeSettings)
    insights: InsightSettings = field(default_factory=InsightSettings)
    improvement: ImprovementSettings = field(default_factory=ImprovementSettings)


SETTINGS = EngineSettings()


def require_window_days(window_days: int, *, minimum: int = 0) -> int:
    """Validate a window length, raising ConfigurationError when invalid."""
    if isinstance(window_days, bool) or not isinstance(window_days, int):
        raise ConfigurationError(f"window_days must be an integer, got {window_days!r}")
    if window_days < minimum:
        raise ConfigurationError(f"window_days must be >= {minimum}, got {window_days}")
    return window_days
