"""Task weighting.

Converts a task's attributes into a numeric load weight:

    weight = base * priority * critical * recurrence

where the base is the explicit override or the category default. Unknown
categories and ordinals fall back to the policy's default branch, so this
never raises.

For assignment decisions the weight can also carry deadline pressure and
the fatigue of the member who would take the task on.
"""

from datetime import date, datetime
from typing import Iterable, Optional

from fairload.domain.models import Recurrence, TaskCategory, TaskLoad
from fairload.domain.policies import (
    DecayPolicy,
    DefaultWeightPolicy,
    FatiguePolicy,
    WeightPolicy,
)
from fairload.engine.rounding import round_half_up

DEFAULT_WEIGHT_POLICY = DefaultWeightPolicy()
DEFAULT_DECAY_POLICY = DecayPolicy()
DEFAULT_FATIGUE_POLICY = FatiguePolicy()


def compute_weight(task: TaskLoad, policy: Optional[WeightPolicy] = None) -> float:
    """Compute the load weight of a task.

    Args:
        task: The task to weigh.
        policy: Weighting policy (defaults to DefaultWeightPolicy).

    Returns:
        Weight >= 0, rounded to one decimal.
    """
    policy = policy or DEFAULT_WEIGHT_POLICY

    if task.weight is not None:
        weight = float(task.weight)
    else:
        weight = policy.base_weight(TaskCategory.parse(task.category))

    weight *= policy.priority_multiplier(task.priority)
    weight *= policy.critical_multiplier(task.critical)
    weight *= policy.recurrence_multiplier(Recurrence.parse(task.recurrence))

    return round_half_up(max(0.0, weight), 1)


def compute_pressure_weight(
    task: TaskLoad,
    reference: date,
    fatigue: int = 0,
    policy: Optional[WeightPolicy] = None,
    fatigue_policy: Optional[FatiguePolicy] = None,
) -> float:
    """Weight of a task as felt by a member taking it on at `reference`.

    The plain weight is scaled by deadline pressure and, above the rested
    tier, by the fatigue multiplier of the receiving member.
    """
    policy = policy or DEFAULT_WEIGHT_POLICY
    fatigue_policy = fatigue_policy or DEFAULT_FATIGUE_POLICY
    weight = compute_weight(task, policy)
    weight *= policy.deadline_multiplier(task.deadline, reference)
    weight *= fatigue_policy.multiplier_for(fatigue)
    return round_half_up(max(0.0, weight), 1)


def time_decay(age_days: float, policy: Optional[DecayPolicy] = None) -> float:
    """Decay factor for load completed `age_days` ago.

    Returns 1.0 for today or future dates, halves every half-life, and
    bottoms out at the floor factor past the maximum age.
    """
    policy = policy or DEFAULT_DECAY_POLICY
    if age_days <= 0:
        return 1.0
    if age_days >= policy.max_age_days:
        return policy.floor_factor
    return 0.5 ** (age_days / policy.half_life_days)


def time_weighted_load(
    tasks: Iterable[TaskLoad],
    member_id: str,
    reference: datetime,
    weight_policy: Optional[WeightPolicy] = None,
    decay_policy: Optional[DecayPolicy] = None,
) -> float:
    """Sum a member's completed load, discounting older completions.

    Args:
        tasks: Task records to consider.
        member_id: Member whose load is summed.
        reference: Point in time ages are measured from.
        weight_policy: Weighting policy for task weights.
        decay_policy: Decay policy for ages.

    Returns:
        Decayed load rounded to one decimal.
    """
    total = 0.0
    for task in tasks:
        if task.assigned_to != member_id or task.completed_at is None:
            continue
        age_days = (reference - task.completed_at).days
        total += compute_weight(task, weight_policy) * time_decay(age_days, decay_policy)
    return round_half_up(total, 1)
