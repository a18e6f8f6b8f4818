"""Domain data models for blocker records, actors, and analytics results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .config import DEFAULT_CATEGORY, DEFAULT_LOCATION, DEFAULT_PRIORITY, DEFAULT_STATUS, HOURS_PER_DAY


# ------------------ Inputs ------------------
@dataclass(frozen=True, slots=True)
class StatusChange:
    status: str
    timestamp: datetime | None


@dataclass(frozen=True, slots=True)
class IssueRecord:
    id: str
    created_at: datetime
    category: str = DEFAULT_CATEGORY
    priority: str = DEFAULT_PRIORITY
    status: str = DEFAULT_STATUS
    location: str = DEFAULT_LOCATION
    updated_at: datetime | None = None
    completed_at: datetime | None = None
    assigned_actor_id: str | None = None
    project_id: str | None = None
    status_history: tuple[StatusChange, ...] = ()
    has_documentation: bool = False
    title: str | None = None
    due_date: datetime | None = None


@dataclass(frozen=True, slots=True)
class Actor:
    id: str
    display_name: str
    role: str | None = None
    team_id: str | None = None
    last_active_at: datetime | None = None


# ------------------ Aggregations ------------------
@dataclass(frozen=True, slots=True)
class AggregationResult:
    key: str
    count: int
    resolved_count: int = 0
    avg_resolution_hours: float = 0.0

    @property
    def resolution_rate(self) -> int:
        if self.count <= 0:
            return 0
        return int(self.resolved_count / self.count * 100 + 0.5)


@dataclass(frozen=True, slots=True)
class RepeatGroup:
    key: str
    count: int
    open_count: int
    categories: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ProblemArea:
    area: str
    total: int
    open: int
    top_category: str
    avg_resolution_hours: float


@dataclass(frozen=True, slots=True)
class OverviewMetrics:
    total: int
    open: int
    resolved: int
    rejected: int
    completion_rate: int
    rejection_rate: float
    documentation_rate: float
    overdue: int = 0
    avg_response_hours: float = 0.0


@dataclass(frozen=True, slots=True)
class OverdueItem:
    id: str
    due_date: datetime
    days_past_due: int
    category: str
    priority: str
    title: str | None = None
    actor_id: str | None = None
    project_id: str | None = None


# ------------------ Durations ------------------
@dataclass(frozen=True, slots=True)
class ResolvedItem:
    id: str
    duration_hours: float
    category: str
    location: str
    priority: str
    actor_id: str | None = None
    title: str | None = None


@dataclass(frozen=True, slots=True)
class CategoryDuration:
    key: str
    avg_hours: float
    count: int


@dataclass(frozen=True, slots=True)
class ResolutionStats:
    avg_hours: float = 0.0
    sample_count: int = 0
    longest: tuple[ResolvedItem, ...] = ()
    by_category: tuple[CategoryDuration, ...] = ()
    by_actor: tuple[CategoryDuration, ...] = ()

    @property
    def avg_days(self) -> float:
        return self.avg_hours / HOURS_PER_DAY


# ------------------ Performance ------------------
@dataclass(frozen=True, slots=True)
class PerformanceProfile:
    actor_id: str
    display_name: str
    assigned: int = 0
    resolved: int = 0
    rejected: int = 0
    documented: int = 0
    in_progress: int = 0
    awaiting_start: int = 0
    completion_rate: int = 0
    documentation_rate: float = 100.0
    rejection_penalty: float = 0.0
    quality_score: int = 0
    avg_response_hours: float = 0.0
    avg_resolution_hours: float = 0.0
    resolution_samples: int = 0
    tier: str | None = None
    role: str | None = None
    team_id: str | None = None
    top_categories: tuple[tuple[str, int], ...] = ()

    @property
    def avg_resolution_days(self) -> float:
        return self.avg_resolution_hours / HOURS_PER_DAY

    @property
    def rejection_rate(self) -> float:
        if self.assigned <= 0:
            return 0.0
        return round(self.rejected / self.assigned * 100, 1)


@dataclass(frozen=True, slots=True)
class Badge:
    code: str
    title: str
    description: str


@dataclass(frozen=True, slots=True)
class RankedActor:
    rank: int
    profile: PerformanceProfile
    percentile_tier: str | None = None
    leaderboard_score: int = 0
    badges: tuple[Badge, ...] = ()

    @property
    def actor_id(self) -> str:
        return self.profile.actor_id


# ------------------ Trends / comparisons ------------------
@dataclass(frozen=True, slots=True)
class TrendBucket:
    label: str
    start: datetime
    end: datetime
    created: int = 0
    resolved: int = 0


@dataclass(frozen=True, slots=True)
class WeeklyResponse:
    week: str
    avg_response_hours: float
    samples: int


@dataclass(frozen=True, slots=True)
class HourlyCount:
    hour: int
    count: int

    @property
    def label(self) -> str:
        return f"{self.hour:02d}:00"


@dataclass(frozen=True, slots=True)
class ComparativeMetric:
    metric: str
    label: str
    sub_value: float
    population_value: float
    unit: str
    direction: str


# ------------------ Insights ------------------
@dataclass(frozen=True, slots=True)
class Insight:
    type: str
    title: str
    description: str
    recommendation: str
    severity: str


@dataclass(frozen=True, slots=True)
class ImprovementArea:
    area: str
    description: str
    priority: str
    actors: tuple[str, ...] = field(default_factory=tuple)
