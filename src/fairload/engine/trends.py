"""Trend analysis over consecutive fairness periods."""

from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from fairload.domain.models import (
    ChangeDirection,
    FairnessScore,
    FairnessTrend,
    Member,
    MemberExclusion,
    PeriodScore,
    PeriodType,
    TaskLoad,
    TrendDirection,
)
from fairload.domain.policies import TrendPolicy, WeightPolicy
from fairload.engine.fairness import completions_in_period, compute_fairness_score
from fairload.engine.rounding import round_score
from fairload.platform.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TREND_POLICY = TrendPolicy()


def compute_trend(
    periodic_scores: Iterable[PeriodScore],
    policy: Optional[TrendPolicy] = None,
) -> FairnessTrend:
    """Classify how fairness evolves across periods.

    The periods are sorted chronologically and split in two halves (the
    first half gets floor(n / 2) periods). A difference of the half means
    above the policy threshold is reported as improving or declining.
    With fewer than `policy.min_periods` periods the trend is always
    stable, however much the scores vary.

    Args:
        periodic_scores: Scores of individual periods, in any order.
        policy: Trend constants.

    Returns:
        FairnessTrend; empty input gives a stable trend with no best/worst.
    """
    policy = policy or DEFAULT_TREND_POLICY
    periods = sorted(periodic_scores, key=lambda p: p.start)

    if not periods:
        return FairnessTrend()

    average = sum(p.score for p in periods) / len(periods)

    best = periods[0]
    worst = periods[0]
    for period in periods[1:]:
        if period.score > best.score:
            best = period
        if period.score < worst.score:
            worst = period

    direction = TrendDirection.STABLE
    if len(periods) >= policy.min_periods:
        half = len(periods) // 2
        first_half = periods[:half]
        second_half = periods[half:]
        first_avg = sum(p.score for p in first_half) / len(first_half)
        second_avg = sum(p.score for p in second_half) / len(second_half)

        diff = second_avg - first_avg
        if diff > policy.threshold:
            direction = TrendDirection.IMPROVING
        elif diff < -policy.threshold:
            direction = TrendDirection.DECLINING

    logger.debug("trend_computed", periods=len(periods), direction=direction.value)

    return FairnessTrend(
        periods=tuple(periods),
        direction=direction,
        average_score=round_score(average),
        best_period=best,
        worst_period=worst,
    )


def classify_change(
    current: float,
    previous: float,
    policy: Optional[TrendPolicy] = None,
) -> ChangeDirection:
    """Compare a metric between two consecutive periods.

    The change must exceed `change_ratio` of the previous value, and at
    least `min_change`, to count as increasing or decreasing.
    """
    policy = policy or DEFAULT_TREND_POLICY
    diff = current - previous
    threshold = max(previous * policy.change_ratio, policy.min_change)

    if diff > threshold:
        return ChangeDirection.INCREASING
    if diff < -threshold:
        return ChangeDirection.DECREASING
    return ChangeDirection.STABLE


def weekly_periods(start: date, end: date) -> list[tuple[date, date]]:
    """Split start..end (inclusive) into consecutive 7-day periods.

    The last period is cut short at `end`.
    """
    periods = []
    current = start
    while current <= end:
        period_end = min(current + timedelta(days=6), end)
        periods.append((current, period_end))
        current = period_end + timedelta(days=1)
    return periods


def period_score(score: FairnessScore) -> PeriodScore:
    """Reduce a fairness score to its trend data point."""
    return PeriodScore(
        start=score.period.start,
        end=score.period.end,
        score=score.overall_score,
        gini=score.gini_coefficient,
    )


def compute_periodic_scores(
    tasks: Sequence[TaskLoad],
    members: Sequence[Member],
    exclusions: Sequence[MemberExclusion],
    periods: Iterable[tuple[date, date]],
    period_type: PeriodType = PeriodType.WEEK,
    weight_policy: Optional[WeightPolicy] = None,
    skip_empty: bool = True,
) -> list[PeriodScore]:
    """Score each period from a single task history.

    Args:
        tasks: Full task history; completions are bucketed per period.
        members: Household members.
        exclusions: Declared exclusions.
        periods: (start, end) pairs, inclusive.
        period_type: Kind of the periods.
        weight_policy: Weighting policy for task weights.
        skip_empty: Leave out periods without any completion.

    Returns:
        One PeriodScore per scored period, in the order given.
    """
    scores = []
    for start, end in periods:
        completions = completions_in_period(tasks, start, end)
        if skip_empty and not completions:
            continue
        fairness = compute_fairness_score(
            completions,
            members,
            exclusions,
            start,
            end,
            period_type=period_type,
            weight_policy=weight_policy,
        )
        scores.append(period_score(fairness))
    return scores
