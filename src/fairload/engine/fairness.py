"""Fairness scoring.

This module measures inequality of load across household members with the
Gini coefficient and maps it to a 0-100 fairness score:

- Member shares are first rescaled for declared exclusions.
- The Gini coefficient is computed over the adjusted shares.
- Each category is scored the same way on its own.
- The gap between the most and least loaded members is reported.
"""

from datetime import date
from typing import Iterable, Optional, Sequence

from fairload.domain.models import (
    AdjustedMemberLoad,
    CategoryFairness,
    FairnessPeriod,
    FairnessScore,
    FairnessStatus,
    ImbalanceDetails,
    Member,
    MemberExclusion,
    MemberShare,
    PeriodType,
    TaskCategory,
    TaskLoad,
)
from fairload.domain.policies import CategoryPolicy, FairnessThresholds, WeightPolicy
from fairload.engine.exclusions import adjusted_percentage, as_date, compute_all_adjustments
from fairload.engine.rounding import round_half_up, round_percentage, round_score
from fairload.engine.weights import compute_weight
from fairload.platform.logging import get_logger

logger = get_logger(__name__)

DEFAULT_THRESHOLDS = FairnessThresholds()
DEFAULT_CATEGORY_POLICY = CategoryPolicy()


def gini(values: Sequence[float]) -> float:
    """Gini coefficient of non-negative values.

    0 means perfect equality; one member holding everything out of n
    gives (n - 1) / n.

    Returns:
        Coefficient clamped to [0, 1]; 0 for fewer than two values or a
        zero total.
    """
    if len(values) <= 1:
        return 0.0

    sorted_values = sorted(values)
    n = len(sorted_values)
    total = sum(sorted_values)
    if total == 0:
        return 0.0

    cumulative = 0.0
    cumulative_sum = 0.0
    for value in sorted_values:
        cumulative += value
        cumulative_sum += cumulative

    coefficient = (n + 1 - 2 * cumulative_sum / total) / n
    return max(0.0, min(1.0, coefficient))


def gini_to_score(coefficient: float) -> int:
    """Map a Gini coefficient to a 0-100 score (0 -> 100, 1 -> 0)."""
    return round_score((1 - coefficient) * 100)


def fairness_status(
    score: float,
    thresholds: Optional[FairnessThresholds] = None,
) -> FairnessStatus:
    """Status tier for a fairness score."""
    return (thresholds or DEFAULT_THRESHOLDS).status_for(score)


def completions_in_period(
    tasks: Iterable[TaskLoad],
    period_start: date,
    period_end: date,
) -> list[TaskLoad]:
    """Tasks completed between period_start and period_end (inclusive)."""
    period_start = as_date(period_start)
    period_end = as_date(period_end)
    return [
        task
        for task in tasks
        if task.completed_at is not None
        and period_start <= task.completed_at.date() <= period_end
    ]


def compute_member_loads(
    completions: Iterable[TaskLoad],
    members: Sequence[Member],
    exclusions: Sequence[MemberExclusion],
    period_start: date,
    period_end: date,
    weight_policy: Optional[WeightPolicy] = None,
) -> tuple[AdjustedMemberLoad, ...]:
    """Compute per-member loads adjusted for exclusions.

    Args:
        completions: Tasks completed during the period.
        members: Household members.
        exclusions: Declared exclusions.
        period_start: First day of the period.
        period_end: Last day of the period.
        weight_policy: Weighting policy for task weights.

    Returns:
        Member loads sorted by adjusted percentage, highest first. Ties keep
        the input member order.
    """
    member_ids = list(dict.fromkeys(member.id for member in members))
    names = {member.id: member.name for member in members}
    adjustments = compute_all_adjustments(member_ids, exclusions, period_start, period_end)

    weights: dict[str, float] = {member_id: 0.0 for member_id in member_ids}
    counts: dict[str, int] = {member_id: 0 for member_id in member_ids}
    categories: dict[str, dict[TaskCategory, float]] = {member_id: {} for member_id in member_ids}

    for task in completions:
        if task.assigned_to not in weights:
            continue
        weight = compute_weight(task, weight_policy)
        weights[task.assigned_to] += weight
        counts[task.assigned_to] += 1
        breakdown = categories[task.assigned_to]
        breakdown[task.category] = breakdown.get(task.category, 0.0) + weight

    total_weight = sum(weights.values())

    loads = []
    for member_id in member_ids:
        adjustment = adjustments[member_id]
        percentage = weights[member_id] / total_weight * 100 if total_weight > 0 else 0.0
        loads.append(
            AdjustedMemberLoad(
                member_id=member_id,
                member_name=names[member_id],
                total_weight=round_half_up(weights[member_id], 1),
                task_count=counts[member_id],
                category_breakdown={
                    category: round_half_up(weight, 1)
                    for category, weight in categories[member_id].items()
                },
                percentage=round_percentage(percentage),
                excluded_days=adjustment.excluded_days,
                adjustment_factor=adjustment.adjustment_factor,
                adjusted_percentage=round_percentage(
                    adjusted_percentage(percentage, adjustment.adjustment_factor)
                ),
            )
        )

    return tuple(sorted(loads, key=lambda load: -load.adjusted_percentage))


def compute_fairness_score(
    completions: Iterable[TaskLoad],
    members: Sequence[Member],
    exclusions: Sequence[MemberExclusion],
    period_start: date,
    period_end: date,
    period_type: PeriodType = PeriodType.WEEK,
    weight_policy: Optional[WeightPolicy] = None,
    thresholds: Optional[FairnessThresholds] = None,
) -> FairnessScore:
    """Compute the fairness score of a household over a period.

    Args:
        completions: Tasks completed during the period.
        members: Household members.
        exclusions: Declared exclusions.
        period_start: First day of the period (inclusive).
        period_end: Last day of the period (inclusive).
        period_type: Kind of period being scored.
        weight_policy: Weighting policy for task weights.
        thresholds: Status thresholds.

    Returns:
        FairnessScore for the period.
    """
    member_loads = compute_member_loads(
        completions, members, exclusions, period_start, period_end, weight_policy
    )

    coefficient = gini([load.adjusted_percentage for load in member_loads])
    overall_score = gini_to_score(coefficient)
    status = fairness_status(overall_score, thresholds)

    score = FairnessScore(
        period=FairnessPeriod(start=period_start, end=period_end, type=period_type),
        overall_score=overall_score,
        gini_coefficient=round_half_up(coefficient, 3),
        status=status,
        member_loads=member_loads,
        category_fairness=compute_category_scores(member_loads),
        imbalance=compute_imbalance(member_loads),
    )
    logger.debug(
        "fairness_computed",
        period_start=str(period_start),
        period_end=str(period_end),
        score=overall_score,
        gini=score.gini_coefficient,
        status=status.value,
    )
    return score


def compute_category_scores(
    member_loads: Sequence[AdjustedMemberLoad],
) -> dict[TaskCategory, int]:
    """Fairness score per category observed in any member's breakdown."""
    return {
        category: gini_to_score(gini(_category_weights(category, member_loads)))
        for category in _observed_categories(member_loads)
    }


def compute_imbalance(member_loads: Sequence[AdjustedMemberLoad]) -> ImbalanceDetails:
    """Gap between the first and last of loads sorted by adjusted share."""
    if not member_loads:
        return ImbalanceDetails()

    most = member_loads[0]
    least = member_loads[-1]
    if len(member_loads) == 1:
        return ImbalanceDetails(most_loaded=most.member_id, least_loaded=least.member_id)

    highest = most.adjusted_percentage
    gap = highest - least.adjusted_percentage
    gap_percentage = round_score(gap / highest * 100) if highest > 0 else 0

    return ImbalanceDetails(
        most_loaded=most.member_id,
        least_loaded=least.member_id,
        gap=round_half_up(gap, 1),
        gap_percentage=gap_percentage,
    )


def analyze_category_fairness(
    category: TaskCategory,
    member_loads: Sequence[AdjustedMemberLoad],
    policy: Optional[CategoryPolicy] = None,
) -> CategoryFairness:
    """Analyze how a single category is shared between members.

    Args:
        category: Category to analyze.
        member_loads: Member loads with category breakdowns.
        policy: Dominance and attention limits.

    Returns:
        CategoryFairness with member shares sorted largest first.
    """
    policy = policy or DEFAULT_CATEGORY_POLICY
    weights = _category_weights(category, member_loads)
    total = sum(weights)

    shares = [
        MemberShare(
            member_id=load.member_id,
            member_name=load.member_name,
            weight=weight,
            percentage=round_percentage(weight / total * 100) if total > 0 else 0.0,
        )
        for load, weight in zip(member_loads, weights)
        if weight > 0
    ]
    shares.sort(key=lambda share: -share.percentage)

    score = gini_to_score(gini(weights))
    dominant = None
    if shares and shares[0].percentage > policy.dominance_share:
        dominant = shares[0].member_id

    return CategoryFairness(
        category=category,
        total_weight=round_half_up(total, 1),
        member_shares=tuple(shares),
        fairness_score=score,
        dominant_member=dominant,
        needs_attention=dominant is not None or score < policy.attention_score,
    )


def all_category_fairness(
    member_loads: Sequence[AdjustedMemberLoad],
    policy: Optional[CategoryPolicy] = None,
) -> list[CategoryFairness]:
    """Analyze every observed category, heaviest category first."""
    analyses = [
        analyze_category_fairness(category, member_loads, policy)
        for category in _observed_categories(member_loads)
    ]
    return sorted(analyses, key=lambda analysis: -analysis.total_weight)


def _observed_categories(member_loads: Sequence[AdjustedMemberLoad]) -> list[TaskCategory]:
    seen: dict[TaskCategory, None] = {}
    for load in member_loads:
        for category in load.category_breakdown:
            seen.setdefault(category, None)
    return list(seen)


def _category_weights(
    category: TaskCategory,
    member_loads: Sequence[AdjustedMemberLoad],
) -> list[float]:
    return [load.category_breakdown.get(category, 0.0) for load in member_loads]
