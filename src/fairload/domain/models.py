"""Domain models for the load distribution engine.

This module contains the core data structures: task records and member
identities supplied by the storage layer, declared absences, and the
immutable result objects produced by the engine.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional


class TaskCategory(Enum):
    """Domain tag for a household task."""

    SCHOOL = "school"
    HEALTH = "health"
    ADMIN = "admin"
    ERRANDS = "errands"
    SOCIAL = "social"
    ACTIVITIES = "activities"
    LOGISTICS = "logistics"
    OTHER = "other"

    @classmethod
    def parse(cls, value) -> "TaskCategory":
        """Resolve a raw value to a category, falling back to OTHER."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.OTHER


class Recurrence(Enum):
    """How often a task repeats."""

    ONE_TIME = "one_time"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, value) -> "Recurrence":
        """Resolve a raw value to a recurrence, falling back to ONE_TIME."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.ONE_TIME
        raw = str(value).strip().lower().replace("-", "_")
        if raw == "once":
            return cls.ONE_TIME
        try:
            return cls(raw)
        except ValueError:
            return cls.ONE_TIME

    @property
    def is_recurring(self) -> bool:
        return self is not Recurrence.ONE_TIME


class FairnessStatus(Enum):
    """Qualitative tier derived from a fairness score."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    CRITICAL = "critical"


class TrendDirection(Enum):
    """Direction of fairness over a series of periods."""

    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class ChangeDirection(Enum):
    """Direction of a metric between two consecutive periods."""

    INCREASING = "increasing"
    STABLE = "stable"
    DECREASING = "decreasing"


class PeriodType(Enum):
    """Kind of period a fairness score covers."""

    WEEK = "week"
    MONTH = "month"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value) -> "PeriodType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.CUSTOM


class AlertLevel(Enum):
    """Severity of a balance alert."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AssignmentReason(Enum):
    """Why the advisor picked a member."""

    LEAST_LOADED = "least_loaded"
    PREFERRED = "preferred"
    ROTATION = "rotation"
    ONLY_MEMBER = "only_member"
    CATEGORY_PREFERENCE = "category_preference"
    ALREADY_ASSIGNED = "already_assigned"


# Input records


@dataclass(frozen=True)
class Member:
    """A household member who can carry load.

    Attributes:
        id: Unique identifier for the member.
        name: Display name for the member.
    """

    id: str
    name: str


@dataclass(frozen=True)
class TaskLoad:
    """A single unit of work contributing to load.

    Attributes:
        task_id: Unique identifier for the task.
        category: Domain tag used for the default weight.
        weight: Explicit weight override (None = use category default).
        priority: Ordinal urgency, 1 = most urgent, 3 = least urgent.
        critical: Whether the task is flagged as critical.
        recurrence: How often the task repeats.
        completed_at: Completion timestamp (None = still pending).
        assigned_to: Member ID carrying the task (None = unassigned).
        title: Human-readable title.
        deadline: Due date or time (None = no deadline).
    """

    task_id: str
    category: TaskCategory = TaskCategory.OTHER
    weight: Optional[float] = None
    priority: int = 2
    critical: bool = False
    recurrence: Recurrence = Recurrence.ONE_TIME
    completed_at: Optional[datetime] = None
    assigned_to: Optional[str] = None
    title: str = ""
    deadline: Optional[date] = None

    def __post_init__(self) -> None:
        # Raw strings and None resolve to their enum defaults.
        if not isinstance(self.category, TaskCategory):
            object.__setattr__(self, "category", TaskCategory.parse(self.category))
        if not isinstance(self.recurrence, Recurrence):
            object.__setattr__(self, "recurrence", Recurrence.parse(self.recurrence))

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    @property
    def is_assigned(self) -> bool:
        return self.assigned_to is not None


@dataclass(frozen=True)
class MemberExclusion:
    """A declared interval during which a member is unavailable.

    Attributes:
        member_id: Member the exclusion applies to.
        start: First unavailable date (inclusive).
        end: Last unavailable date (inclusive).
        reason: Optional free-form reason (e.g. "travel", "sick").
    """

    member_id: str
    start: date
    end: date
    reason: Optional[str] = None

    @property
    def num_days(self) -> int:
        """Number of days covered by the exclusion."""
        return max(0, (self.end - self.start).days + 1)

    def contains(self, day: date) -> bool:
        """Check if a date falls within this exclusion."""
        return self.start <= day <= self.end


# Distribution results


@dataclass(frozen=True)
class MemberLoad:
    """Aggregated load for one member.

    Attributes:
        member_id: Member identifier.
        member_name: Member display name.
        total_weight: Sum of contributing task weights.
        task_count: Number of contributing tasks.
        completed_count: Contributing tasks that are completed.
        pending_count: Contributing tasks not yet completed.
        percentage: Share of the household total (0-100, one decimal).
        category_breakdown: Summed weight per category.
    """

    member_id: str
    member_name: str
    total_weight: float = 0.0
    task_count: int = 0
    completed_count: int = 0
    pending_count: int = 0
    percentage: float = 0.0
    category_breakdown: dict[TaskCategory, float] = field(default_factory=dict)


@dataclass(frozen=True)
class Distribution:
    """Per-member load distribution for a household.

    Attributes:
        members: Member loads in input member order.
        total_weight: Sum of all member weights.
        total_tasks: Number of contributing tasks.
        balance_score: 0-100, 100 = perfectly balanced.
        most_loaded: Member with the highest weight (None if no members).
        least_loaded: Member with the lowest weight (None if no members).
    """

    members: tuple[MemberLoad, ...] = ()
    total_weight: float = 0.0
    total_tasks: int = 0
    balance_score: int = 100
    most_loaded: Optional[MemberLoad] = None
    least_loaded: Optional[MemberLoad] = None

    def get_member(self, member_id: str) -> Optional[MemberLoad]:
        """Look up a member load by ID."""
        for load in self.members:
            if load.member_id == member_id:
                return load
        return None

    @property
    def member_ids(self) -> list[str]:
        return [load.member_id for load in self.members]


@dataclass(frozen=True)
class WeeklyMemberStats:
    """Completed work for one member during one week."""

    member_id: str
    member_name: str
    completed_weight: float = 0.0
    completed_count: int = 0


@dataclass(frozen=True)
class WeeklyStats:
    """Completed work per member for an ISO week.

    Attributes:
        week: ISO week label (e.g. "2024-W03").
        start: Monday of the week.
        end: Sunday of the week.
        members: Per-member completed work.
        total_weight: Completed weight across members.
        total_count: Completed tasks across members.
    """

    week: str
    start: date
    end: date
    members: tuple[WeeklyMemberStats, ...] = ()
    total_weight: float = 0.0
    total_count: int = 0


# Exclusion and fairness results


@dataclass(frozen=True)
class ExclusionAdjustment:
    """Time-availability correction for one member over one period.

    Attributes:
        member_id: Member identifier.
        total_days_in_period: Inclusive day count of the period.
        excluded_days: Summed overlap of the member's exclusions.
        available_days: Days the member was available (never negative).
        adjustment_factor: available_days / total_days_in_period (0-1).
        reason: First exclusion reason encountered, if any.
    """

    member_id: str
    total_days_in_period: int
    excluded_days: int
    available_days: int
    adjustment_factor: float
    reason: Optional[str] = None


@dataclass(frozen=True)
class AdjustedMemberLoad:
    """A member's load for a fairness period, rescaled for availability."""

    member_id: str
    member_name: str
    total_weight: float = 0.0
    task_count: int = 0
    category_breakdown: dict[TaskCategory, float] = field(default_factory=dict)
    percentage: float = 0.0
    excluded_days: int = 0
    adjustment_factor: float = 1.0
    adjusted_percentage: float = 0.0


@dataclass(frozen=True)
class FairnessPeriod:
    """Bounds of the period a fairness score covers (inclusive)."""

    start: date
    end: date
    type: PeriodType = PeriodType.WEEK


@dataclass(frozen=True)
class ImbalanceDetails:
    """Gap between the most and least loaded members.

    Attributes:
        most_loaded: Member ID with the highest adjusted share.
        least_loaded: Member ID with the lowest adjusted share.
        gap: Absolute difference in adjusted percentage points.
        gap_percentage: Gap relative to the highest share (0-100).
    """

    most_loaded: Optional[str] = None
    least_loaded: Optional[str] = None
    gap: float = 0.0
    gap_percentage: int = 0


@dataclass(frozen=True)
class FairnessScore:
    """Headline fairness result for a period."""

    period: FairnessPeriod
    overall_score: int
    gini_coefficient: float
    status: FairnessStatus
    member_loads: tuple[AdjustedMemberLoad, ...] = ()
    category_fairness: dict[TaskCategory, int] = field(default_factory=dict)
    imbalance: ImbalanceDetails = field(default_factory=ImbalanceDetails)


@dataclass(frozen=True)
class MemberShare:
    """One member's part of a single category."""

    member_id: str
    member_name: str
    weight: float
    percentage: float


@dataclass(frozen=True)
class CategoryFairness:
    """Fairness analysis of a single category.

    Attributes:
        category: The analyzed category.
        total_weight: Summed weight of the category across members.
        member_shares: Members with weight in the category, largest first.
        fairness_score: Gini-derived score for the category (0-100).
        dominant_member: Member ID holding more than the dominance share.
        needs_attention: True if dominated or the score is low.
    """

    category: TaskCategory
    total_weight: float
    member_shares: tuple[MemberShare, ...] = ()
    fairness_score: int = 100
    dominant_member: Optional[str] = None
    needs_attention: bool = False


@dataclass(frozen=True)
class PeriodScore:
    """Fairness score of a single period, as input to trend analysis."""

    start: date
    end: date
    score: int
    gini: float = 0.0


@dataclass(frozen=True)
class FairnessTrend:
    """Fairness across consecutive periods.

    Attributes:
        periods: Period scores in chronological order.
        direction: Improving, stable or declining.
        average_score: Mean score across periods, rounded to an integer.
        best_period: Period with the highest score.
        worst_period: Period with the lowest score.
    """

    periods: tuple[PeriodScore, ...] = ()
    direction: TrendDirection = TrendDirection.STABLE
    average_score: int = 0
    best_period: Optional[PeriodScore] = None
    worst_period: Optional[PeriodScore] = None


@dataclass(frozen=True)
class FatigueState:
    """How worn down a member is by recent load.

    Attributes:
        member_id: Member identifier.
        fatigue_level: 0 = rested, 100 = exhausted.
        consecutive_high_load_days: Days in a row ending on the reference
            day with at least a healthy day's load.
        recent_average_load: Completed weight per day over the recent window.
        load_trend: Recent window compared with the window before it.
        last_rest_day: Last declared day off, if known.
    """

    member_id: str
    fatigue_level: int = 0
    consecutive_high_load_days: int = 0
    recent_average_load: float = 0.0
    load_trend: ChangeDirection = ChangeDirection.STABLE
    last_rest_day: Optional[date] = None


# Assignment results


@dataclass(frozen=True)
class Assignment:
    """Recommended assignee for a new or unassigned task."""

    member_id: str
    reason: AssignmentReason
    member_load: Optional[MemberLoad] = None


@dataclass(frozen=True)
class BatchAssignment:
    """Assignment of one task within a batch.

    Attributes:
        task_id: The assigned task.
        member_id: The chosen member.
        projected_weight: Member weight after taking this task.
    """

    task_id: str
    member_id: str
    projected_weight: float


@dataclass(frozen=True)
class RebalanceSuggestion:
    """A proposed transfer of a pending task between members.

    Attributes:
        task_id: Task to move.
        task_title: Title of the task.
        from_member_id: Current assignee.
        to_member_id: Proposed assignee.
        task_weight: Weight moved by the transfer.
        impact: Reduction of the percentage gap, in points.
    """

    task_id: str
    task_title: str
    from_member_id: str
    to_member_id: str
    task_weight: float
    impact: float


@dataclass(frozen=True)
class BalanceAlert:
    """Imbalance alert derived from a distribution."""

    level: AlertLevel
    message: str
    most_loaded: Optional[str] = None
    least_loaded: Optional[str] = None
    imbalance_percentage: float = 0.0
