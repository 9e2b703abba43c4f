"""Policy definitions for load and fairness rules.

This module contains the tunable constant sets used by the engine: task
weighting, fairness status thresholds, trend classification, assignment
options and rebalancing limits. Policies are kept separate from the engine
so they can be tested independently and swapped per household.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from fairload.domain.models import (
    FairnessStatus,
    Recurrence,
    TaskCategory,
)


class WeightPolicy(ABC):
    """Abstract base class for task weighting policies."""

    @abstractmethod
    def base_weight(self, category: TaskCategory) -> float:
        """Default weight of a task in the given category."""
        pass

    @abstractmethod
    def priority_multiplier(self, priority: int) -> float:
        """Multiplier for a priority ordinal (1 = most urgent)."""
        pass

    @abstractmethod
    def critical_multiplier(self, critical: bool) -> float:
        """Multiplier applied when a task is flagged critical."""
        pass

    @abstractmethod
    def recurrence_multiplier(self, recurrence: Recurrence) -> float:
        """Discount applied to recurring tasks."""
        pass

    @abstractmethod
    def deadline_multiplier(self, deadline: Optional[date], reference: date) -> float:
        """Pressure multiplier for a task due on `deadline`."""
        pass


@dataclass(frozen=True)
class DefaultWeightPolicy(WeightPolicy):
    """Default weighting policy.

    Category weights on a 1-5 scale:
    - health, admin: 4
    - school, activities: 3
    - errands, social, logistics, other: 2

    Multipliers:
    - Priority 1 (urgent): x1.5, priority 3 (low): x0.8
    - Critical: x1.3
    - Recurring (daily/weekly/monthly): x0.8
    - Deadline: overdue x1.8, today x1.5, tomorrow x1.3, within a week x1.1
    """

    category_weights: dict[TaskCategory, float] = field(
        default_factory=lambda: {
            TaskCategory.SCHOOL: 3.0,
            TaskCategory.HEALTH: 4.0,
            TaskCategory.ADMIN: 4.0,
            TaskCategory.ERRANDS: 2.0,
            TaskCategory.SOCIAL: 2.0,
            TaskCategory.ACTIVITIES: 3.0,
            TaskCategory.LOGISTICS: 2.0,
            TaskCategory.OTHER: 2.0,
        }
    )
    priority_multipliers: dict[int, float] = field(
        default_factory=lambda: {1: 1.5, 2: 1.0, 3: 0.8}
    )
    critical_boost: float = 1.3
    recurring_discount: float = 0.8
    overdue_pressure: float = 1.8
    due_today_pressure: float = 1.5
    due_tomorrow_pressure: float = 1.3
    due_this_week_pressure: float = 1.1

    def base_weight(self, category: TaskCategory) -> float:
        category = TaskCategory.parse(category)
        if category in self.category_weights:
            return self.category_weights[category]
        return self.category_weights.get(TaskCategory.OTHER, 2.0)

    def priority_multiplier(self, priority: int) -> float:
        return self.priority_multipliers.get(priority, 1.0)

    def critical_multiplier(self, critical: bool) -> float:
        return self.critical_boost if critical else 1.0

    def recurrence_multiplier(self, recurrence: Recurrence) -> float:
        return self.recurring_discount if Recurrence.parse(recurrence).is_recurring else 1.0

    def deadline_multiplier(self, deadline: Optional[date], reference: date) -> float:
        if deadline is None:
            return 1.0
        days_until_due = (_day(deadline) - _day(reference)).days
        if days_until_due < 0:
            return self.overdue_pressure
        if days_until_due == 0:
            return self.due_today_pressure
        if days_until_due == 1:
            return self.due_tomorrow_pressure
        if days_until_due <= 7:
            return self.due_this_week_pressure
        return 1.0


def _day(value: date) -> date:
    return value.date() if isinstance(value, datetime) else value


@dataclass(frozen=True)
class DecayPolicy:
    """Time decay for historical load.

    Load importance halves every `half_life_days`; anything older than
    `max_age_days` counts at `floor_factor`.
    """

    half_life_days: float = 14.0
    max_age_days: int = 90
    floor_factor: float = 0.1


@dataclass(frozen=True)
class FatiguePolicy:
    """Constants for estimating member fatigue.

    Fatigue starts at half the ratio of recent daily load to a healthy
    daily load, then grows with streaks of heavy days and with time since
    the last rest day.

    Attributes:
        window_days: Length of the recent window.
        healthy_daily_load: Daily weight a member can sustain.
        high_load_ratio: Multiple of the healthy load that marks a heavy day.
        streak_penalty: Fatigue added per consecutive heavy day.
        rest_grace_days: Days without rest before fatigue grows.
        rest_penalty_per_day: Fatigue added per day past the grace period.
        max_rest_penalty: Cap on the rest penalty.
        unknown_rest_penalty: Fatigue added when no rest day is known.
        trend_threshold: Relative change that counts as a load trend.
        multipliers: (max level, multiplier) tiers, checked in order.
        burnout_multiplier: Multiplier above the last tier.
    """

    window_days: int = 7
    healthy_daily_load: float = 12.0
    high_load_ratio: float = 1.2
    streak_penalty: int = 5
    rest_grace_days: int = 7
    rest_penalty_per_day: int = 2
    max_rest_penalty: int = 20
    unknown_rest_penalty: int = 10
    trend_threshold: float = 0.15
    multipliers: tuple[tuple[int, float], ...] = ((20, 1.0), (40, 1.1), (60, 1.2), (80, 1.4))
    burnout_multiplier: float = 1.6

    def multiplier_for(self, level: float) -> float:
        for max_level, multiplier in self.multipliers:
            if level <= max_level:
                return multiplier
        return self.burnout_multiplier


@dataclass(frozen=True)
class FairnessThresholds:
    """Score thresholds for fairness status tiers.

    Scores at or above a threshold get that tier; below `poor` is critical.
    """

    excellent: int = 85
    good: int = 70
    fair: int = 55
    poor: int = 40

    def status_for(self, score: float) -> FairnessStatus:
        if score >= self.excellent:
            return FairnessStatus.EXCELLENT
        if score >= self.good:
            return FairnessStatus.GOOD
        if score >= self.fair:
            return FairnessStatus.FAIR
        if score >= self.poor:
            return FairnessStatus.POOR
        return FairnessStatus.CRITICAL


@dataclass(frozen=True)
class CategoryPolicy:
    """Limits for single-category analysis.

    Attributes:
        dominance_share: Share (percent) above which one member dominates.
        attention_score: Category scores below this need attention.
    """

    dominance_share: float = 60.0
    attention_score: int = 50


@dataclass(frozen=True)
class TrendPolicy:
    """Constants for trend classification.

    Attributes:
        min_periods: Periods required before a direction is reported.
        threshold: Half-over-half mean difference that counts as movement.
        change_ratio: Relative change for period-over-period comparison.
        min_change: Absolute floor for period-over-period comparison.
    """

    min_periods: int = 4
    threshold: float = 5.0
    change_ratio: float = 0.1
    min_change: float = 1.0


@dataclass(frozen=True)
class AssignmentOptions:
    """Options for picking an assignee.

    Attributes:
        preferred_member_id: Member to favour when loads are close.
        equality_threshold: Percentage points within which loads count as equal.
        excluded_member_ids: Members that must not be picked.
    """

    preferred_member_id: Optional[str] = None
    equality_threshold: float = 5.0
    excluded_member_ids: frozenset[str] = frozenset()


@dataclass(frozen=True)
class RebalancePolicy:
    """Limits for rebalancing suggestions.

    Attributes:
        min_balance_score: Distributions at or above this score are left alone.
        rotation_weight_gap: Weight gap under which auto-assignment rotates.
        alert_thresholds: Balance scores for (none, low, medium) alert levels.
    """

    min_balance_score: int = 80
    rotation_weight_gap: float = 2.0
    alert_thresholds: tuple[int, int, int] = (80, 60, 40)


@dataclass(frozen=True)
class OptimizerConfig:
    """Configuration for the CP-SAT rebalance optimizer.

    Attributes:
        time_limit_seconds: Maximum solver runtime.
        num_workers: Number of parallel workers (0 = auto).
        max_moves: Maximum number of task transfers proposed.
        move_penalty: Objective cost per transfer, in tenths of weight.
        random_seed: Solver seed, fixed for repeatable results.
    """

    time_limit_seconds: float = 10.0
    num_workers: int = 1
    max_moves: int = 5
    move_penalty: int = 1
    random_seed: int = 0
