"""Load distribution and balance scoring.

This module folds weighted tasks into per-member totals, computes each
member's share of the household load, and scores how far the split is from
an equal one.

Tie-breaks follow the order of the input member list: when two members
carry the same weight, the one listed first is reported as most/least
loaded. Callers that need a specific order must sort members beforehand.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Sequence

from fairload.domain.models import (
    Distribution,
    Member,
    MemberLoad,
    TaskCategory,
    TaskLoad,
    WeeklyMemberStats,
    WeeklyStats,
)
from fairload.domain.policies import WeightPolicy
from fairload.engine.rounding import round_half_up, round_percentage, round_score
from fairload.engine.weights import compute_weight
from fairload.platform.logging import get_logger

logger = get_logger(__name__)


class _LoadAccumulator:
    """Mutable running totals for one member while folding tasks."""

    def __init__(self, member: Member):
        self.member = member
        self.total_weight = 0.0
        self.task_count = 0
        self.completed_count = 0
        self.pending_count = 0
        self.categories: dict[TaskCategory, float] = {}

    def add(self, task: TaskLoad, weight: float) -> None:
        self.total_weight += weight
        self.task_count += 1
        if task.is_completed:
            self.completed_count += 1
        else:
            self.pending_count += 1
        self.categories[task.category] = self.categories.get(task.category, 0.0) + weight

    def to_load(self, percentage: float) -> MemberLoad:
        return MemberLoad(
            member_id=self.member.id,
            member_name=self.member.name,
            total_weight=round_half_up(self.total_weight, 1),
            task_count=self.task_count,
            completed_count=self.completed_count,
            pending_count=self.pending_count,
            percentage=percentage,
            category_breakdown={
                category: round_half_up(weight, 1)
                for category, weight in self.categories.items()
            },
        )


def compute_distribution(
    tasks: Iterable[TaskLoad],
    members: Sequence[Member],
    policy: Optional[WeightPolicy] = None,
) -> Distribution:
    """Compute the load distribution for a household.

    Unassigned tasks and tasks assigned to members not in `members` are
    ignored. Every declared member gets a MemberLoad, even with no tasks.

    Args:
        tasks: Task records to aggregate.
        members: Declared household members, in tie-break order.
        policy: Weighting policy for task weights.

    Returns:
        Distribution with member loads in input member order.
    """
    accumulators: dict[str, _LoadAccumulator] = {}
    for member in members:
        if member.id not in accumulators:
            accumulators[member.id] = _LoadAccumulator(member)

    total_weight = 0.0
    total_tasks = 0

    for task in tasks:
        if task.assigned_to is None:
            continue
        accumulator = accumulators.get(task.assigned_to)
        if accumulator is None:
            continue
        weight = compute_weight(task, policy)
        accumulator.add(task, weight)
        total_weight += weight
        total_tasks += 1

    loads = tuple(
        acc.to_load(_share(acc.total_weight, total_weight))
        for acc in accumulators.values()
    )

    distribution = _build_distribution(loads, total_weight, total_tasks)
    logger.debug(
        "distribution_computed",
        members=len(loads),
        total_weight=distribution.total_weight,
        total_tasks=total_tasks,
        balance_score=distribution.balance_score,
    )
    return distribution


def compute_balance_score(member_loads: Sequence[MemberLoad]) -> int:
    """Score how close the split is to an equal share.

    Uses the mean absolute deviation of member percentages from
    100 / member_count: 0 deviation scores 100, 50 points scores 0.

    Args:
        member_loads: Member loads with percentages.

    Returns:
        Integer score in [0, 100].
    """
    if len(member_loads) <= 1:
        return 100

    if sum(load.total_weight for load in member_loads) == 0:
        return 100

    ideal = 100.0 / len(member_loads)
    deviations = [abs(load.percentage - ideal) for load in member_loads]
    average_deviation = sum(deviations) / len(deviations)

    score = max(0.0, 100.0 - average_deviation * 2)
    return min(100, round_score(score))


def find_extremes(
    member_loads: Sequence[MemberLoad],
) -> tuple[Optional[MemberLoad], Optional[MemberLoad]]:
    """Find the most and least loaded members.

    Ties resolve to the first member in `member_loads`.
    """
    most_loaded: Optional[MemberLoad] = None
    least_loaded: Optional[MemberLoad] = None
    for load in member_loads:
        if most_loaded is None or load.total_weight > most_loaded.total_weight:
            most_loaded = load
        if least_loaded is None or load.total_weight < least_loaded.total_weight:
            least_loaded = load
    return most_loaded, least_loaded


def apply_availability(
    distribution: Distribution,
    unavailable_member_ids: Iterable[str],
) -> Distribution:
    """Restrict a distribution to available members.

    Percentages, totals, balance score and extremes are recomputed over the
    remaining members. The input distribution is left untouched.
    """
    unavailable = set(unavailable_member_ids)
    remaining = [load for load in distribution.members if load.member_id not in unavailable]

    total_weight = sum(load.total_weight for load in remaining)
    total_tasks = sum(load.task_count for load in remaining)

    loads = tuple(
        MemberLoad(
            member_id=load.member_id,
            member_name=load.member_name,
            total_weight=load.total_weight,
            task_count=load.task_count,
            completed_count=load.completed_count,
            pending_count=load.pending_count,
            percentage=_share(load.total_weight, total_weight),
            category_breakdown=dict(load.category_breakdown),
        )
        for load in remaining
    )
    return _build_distribution(loads, total_weight, total_tasks)


def week_bounds(day: date) -> tuple[date, date]:
    """Get the Monday and Sunday of the week containing `day`."""
    if isinstance(day, datetime):
        day = day.date()
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)


def iso_week_label(day: date) -> str:
    """Format the ISO week of `day` as 'YYYY-Www'."""
    year, week, _ = day.isocalendar()
    return f"{year}-W{week:02d}"


def compute_weekly_stats(
    tasks: Iterable[TaskLoad],
    members: Sequence[Member],
    week_date: date,
    policy: Optional[WeightPolicy] = None,
) -> WeeklyStats:
    """Summarize work completed during the week containing `week_date`.

    Args:
        tasks: Task records; only completed ones inside the week count.
        members: Household members to report on.
        week_date: Any date inside the target week.
        policy: Weighting policy for task weights.

    Returns:
        WeeklyStats with one entry per member.
    """
    start, end = week_bounds(week_date)
    weights: dict[str, float] = {member.id: 0.0 for member in members}
    counts: dict[str, int] = {member.id: 0 for member in members}

    for task in tasks:
        if task.completed_at is None or task.assigned_to not in weights:
            continue
        completed_on = task.completed_at.date()
        if not start <= completed_on <= end:
            continue
        weights[task.assigned_to] += compute_weight(task, policy)
        counts[task.assigned_to] += 1

    member_stats = tuple(
        WeeklyMemberStats(
            member_id=member.id,
            member_name=member.name,
            completed_weight=round_half_up(weights[member.id], 1),
            completed_count=counts[member.id],
        )
        for member in members
    )

    return WeeklyStats(
        week=iso_week_label(start),
        start=start,
        end=end,
        members=member_stats,
        total_weight=round_half_up(sum(weights.values()), 1),
        total_count=sum(counts.values()),
    )


def _share(weight: float, total: float) -> float:
    """Percentage share of `weight` in `total`, 0 when total is 0."""
    if total <= 0:
        return 0.0
    return round_percentage(weight / total * 100)


def _build_distribution(
    loads: tuple[MemberLoad, ...],
    total_weight: float,
    total_tasks: int,
) -> Distribution:
    most_loaded, least_loaded = find_extremes(loads)
    return Distribution(
        members=loads,
        total_weight=round_half_up(total_weight, 1),
        total_tasks=total_tasks,
        balance_score=compute_balance_score(loads),
        most_loaded=most_loaded,
        least_loaded=least_loaded,
    )
