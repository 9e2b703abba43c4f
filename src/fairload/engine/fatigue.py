"""Member fatigue.

Estimates how worn down a member is from their recent completed load. The
level runs from 0 (rested) to 100 (exhausted) and maps to a multiplier
that makes new work weigh more for tired members.

All windows are counted on calendar dates ending on the reference day: a
7 day window covers the reference day and the six days before it.
"""

from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, Optional

from fairload.domain.models import ChangeDirection, FatigueState, TaskLoad
from fairload.domain.policies import FatiguePolicy, WeightPolicy
from fairload.engine.exclusions import as_date
from fairload.engine.rounding import round_half_up, round_score
from fairload.engine.weights import DEFAULT_FATIGUE_POLICY, compute_weight
from fairload.platform.logging import get_logger

logger = get_logger(__name__)


def fatigue_multiplier(level: float, policy: Optional[FatiguePolicy] = None) -> float:
    """Multiplier for a fatigue level (1.0 when rested, 1.6 at burnout)."""
    return (policy or DEFAULT_FATIGUE_POLICY).multiplier_for(level)


def load_trend(
    tasks: Iterable[TaskLoad],
    member_id: str,
    reference: date,
    policy: Optional[FatiguePolicy] = None,
    weight_policy: Optional[WeightPolicy] = None,
) -> ChangeDirection:
    """Compare a member's recent window with the window before it.

    A relative change beyond the trend threshold counts as increasing or
    decreasing. Load appearing after an empty previous window is increasing.
    """
    policy = policy or DEFAULT_FATIGUE_POLICY
    daily = _daily_loads(tasks, member_id, weight_policy)
    reference = as_date(reference)

    recent = _window_load(daily, reference, 0, policy.window_days)
    previous = _window_load(daily, reference, policy.window_days, policy.window_days)

    if previous == 0:
        return ChangeDirection.INCREASING if recent > 0 else ChangeDirection.STABLE

    change = (recent - previous) / previous
    if change > policy.trend_threshold:
        return ChangeDirection.INCREASING
    if change < -policy.trend_threshold:
        return ChangeDirection.DECREASING
    return ChangeDirection.STABLE


def fatigue_level(
    tasks: Iterable[TaskLoad],
    member_id: str,
    reference: date,
    last_rest_day: Optional[date] = None,
    policy: Optional[FatiguePolicy] = None,
    weight_policy: Optional[WeightPolicy] = None,
) -> int:
    """Estimate a member's fatigue from 0 (rested) to 100 (exhausted).

    Args:
        tasks: Task history; only the member's completions count.
        member_id: Member to assess.
        reference: Day the assessment is made.
        last_rest_day: Last day off, if known.
        policy: Fatigue constants.
        weight_policy: Weighting policy for task weights.

    Returns:
        Integer fatigue level.
    """
    policy = policy or DEFAULT_FATIGUE_POLICY
    daily = _daily_loads(tasks, member_id, weight_policy)
    reference = as_date(reference)

    average = _window_load(daily, reference, 0, policy.window_days) / policy.window_days
    fatigue = min(100.0, average / policy.healthy_daily_load * 50)

    heavy_day = policy.healthy_daily_load * policy.high_load_ratio
    fatigue += _streak(daily, reference, heavy_day, policy.window_days) * policy.streak_penalty

    if last_rest_day is not None:
        days_since_rest = (reference - as_date(last_rest_day)).days
        if days_since_rest > policy.rest_grace_days:
            fatigue += min(
                policy.max_rest_penalty,
                (days_since_rest - policy.rest_grace_days) * policy.rest_penalty_per_day,
            )
    else:
        fatigue += policy.unknown_rest_penalty

    return min(100, max(0, round_score(fatigue)))


def build_fatigue_state(
    tasks: Iterable[TaskLoad],
    member_id: str,
    reference: date,
    last_rest_day: Optional[date] = None,
    policy: Optional[FatiguePolicy] = None,
    weight_policy: Optional[WeightPolicy] = None,
) -> FatigueState:
    """Full fatigue picture for one member."""
    policy = policy or DEFAULT_FATIGUE_POLICY
    tasks = list(tasks)
    daily = _daily_loads(tasks, member_id, weight_policy)
    day = as_date(reference)

    level = fatigue_level(tasks, member_id, day, last_rest_day, policy, weight_policy)
    state = FatigueState(
        member_id=member_id,
        fatigue_level=level,
        consecutive_high_load_days=_streak(
            daily, day, policy.healthy_daily_load, policy.window_days * 2
        ),
        recent_average_load=round_half_up(
            _window_load(daily, day, 0, policy.window_days) / policy.window_days, 1
        ),
        load_trend=load_trend(tasks, member_id, day, policy, weight_policy),
        last_rest_day=as_date(last_rest_day) if last_rest_day is not None else None,
    )

    logger.debug(
        "fatigue_assessed",
        member_id=member_id,
        fatigue_level=level,
        load_trend=state.load_trend.value,
    )
    return state


def _daily_loads(
    tasks: Iterable[TaskLoad],
    member_id: str,
    weight_policy: Optional[WeightPolicy],
) -> dict[date, float]:
    daily: dict[date, float] = defaultdict(float)
    for task in tasks:
        if task.assigned_to == member_id and task.completed_at is not None:
            daily[as_date(task.completed_at)] += compute_weight(task, weight_policy)
    return daily


def _window_load(daily: dict[date, float], reference: date, offset: int, days: int) -> float:
    """Load over `days` days ending `offset` days before the reference day."""
    end = reference - timedelta(days=offset)
    return sum(daily.get(end - timedelta(days=i), 0.0) for i in range(days))


def _streak(daily: dict[date, float], reference: date, threshold: float, max_days: int) -> int:
    """Consecutive days ending on the reference day with at least `threshold` load."""
    count = 0
    for i in range(max_days):
        if daily.get(reference - timedelta(days=i), 0.0) < threshold:
            break
        count += 1
    return count
