"""Assignment advice.

This module recommends who should take a new or unassigned task and which
pending tasks could be moved to reduce imbalance:

1. Least-loaded assignment with a soft preference for a given member
2. Rotation between members in distribution order
3. Category-preference assignment
4. Batch assignment of several tasks at once
5. Rebalancing suggestions from the most to the least loaded member

All pickers scan members in distribution order and keep the first member
on ties, so results only depend on their inputs.
"""

from datetime import date
from typing import Iterable, Mapping, Optional, Sequence

from fairload.domain.models import (
    Assignment,
    AssignmentReason,
    BatchAssignment,
    Distribution,
    MemberExclusion,
    MemberLoad,
    RebalanceSuggestion,
    TaskCategory,
    TaskLoad,
)
from fairload.domain.policies import AssignmentOptions, RebalancePolicy, WeightPolicy
from fairload.engine.distribution import apply_availability
from fairload.engine.exclusions import is_excluded_on
from fairload.engine.rounding import round_half_up
from fairload.engine.weights import compute_weight
from fairload.platform.logging import get_logger

logger = get_logger(__name__)

DEFAULT_OPTIONS = AssignmentOptions()
DEFAULT_REBALANCE_POLICY = RebalancePolicy()


def least_loaded_assignment(
    distribution: Distribution,
    options: Optional[AssignmentOptions] = None,
) -> Optional[Assignment]:
    """Pick the member with the lowest current weight.

    If `options.preferred_member_id` is available and its percentage is
    within `options.equality_threshold` points of the least loaded member,
    the preferred member is picked instead.

    Args:
        distribution: Current load distribution.
        options: Preference, threshold and excluded members.

    Returns:
        Assignment, or None if no member is available.
    """
    options = options or DEFAULT_OPTIONS
    available = _available_loads(distribution, options)
    if not available:
        return None

    if len(available) == 1:
        return Assignment(available[0].member_id, AssignmentReason.ONLY_MEMBER, available[0])

    least = _least_loaded(available)

    if options.preferred_member_id and options.preferred_member_id != least.member_id:
        preferred = next(
            (load for load in available if load.member_id == options.preferred_member_id),
            None,
        )
        if preferred is not None:
            diff = abs(preferred.percentage - least.percentage)
            if diff <= options.equality_threshold:
                return Assignment(preferred.member_id, AssignmentReason.PREFERRED, preferred)

    return Assignment(least.member_id, AssignmentReason.LEAST_LOADED, least)


def rotating_assignment(
    distribution: Distribution,
    last_assigned_id: Optional[str],
    options: Optional[AssignmentOptions] = None,
) -> Optional[Assignment]:
    """Alternate between members in distribution order.

    The member after `last_assigned_id` is picked, wrapping around at the
    end. With no (or an unknown) last assignee the first member is picked.
    With two members this alternates strictly.

    Args:
        distribution: Current load distribution.
        last_assigned_id: Member who received the previous task.
        options: Only `excluded_member_ids` is used.

    Returns:
        Assignment, or None if no member is available.
    """
    options = options or DEFAULT_OPTIONS
    available = _available_loads(distribution, options)
    if not available:
        return None

    if len(available) == 1:
        return Assignment(available[0].member_id, AssignmentReason.ONLY_MEMBER, available[0])

    ids = [load.member_id for load in available]
    if last_assigned_id not in ids:
        chosen = available[0]
    else:
        chosen = available[(ids.index(last_assigned_id) + 1) % len(available)]

    return Assignment(chosen.member_id, AssignmentReason.ROTATION, chosen)


def category_based_assignment(
    distribution: Distribution,
    category: TaskCategory,
    category_preferences: Mapping[str, Iterable[TaskCategory]],
    options: Optional[AssignmentOptions] = None,
    preference_threshold: float = 15.0,
) -> Optional[Assignment]:
    """Pick a member who prefers the task's category, if not overloaded.

    Among members preferring `category`, the least loaded is picked when its
    percentage is within `preference_threshold` points of the lowest
    percentage. Otherwise falls back to least_loaded_assignment.

    Args:
        distribution: Current load distribution.
        category: Category of the task to assign.
        category_preferences: Member ID -> preferred categories.
        options: Options for the fallback and excluded members.
        preference_threshold: Maximum extra share a preferring member may carry.
    """
    options = options or DEFAULT_OPTIONS
    available = _available_loads(distribution, options)
    if not available:
        return None

    preferring = [
        load
        for load in available
        if category in set(category_preferences.get(load.member_id, ()))
    ]
    if preferring:
        selected = _least_loaded(preferring)
        min_percentage = min(load.percentage for load in available)
        if selected.percentage - min_percentage <= preference_threshold:
            return Assignment(selected.member_id, AssignmentReason.CATEGORY_PREFERENCE, selected)

    return least_loaded_assignment(distribution, options)


def batch_assign(
    tasks: Iterable[TaskLoad],
    distribution: Distribution,
    options: Optional[AssignmentOptions] = None,
    weight_policy: Optional[WeightPolicy] = None,
) -> list[BatchAssignment]:
    """Assign several tasks, spreading them by projected load.

    Tasks are placed heaviest first; each goes to the member with the
    lowest projected weight so far.

    Args:
        tasks: Tasks to assign (their current assignee is ignored).
        distribution: Current load distribution.
        options: Only `excluded_member_ids` is used.
        weight_policy: Weighting policy for task weights.

    Returns:
        One BatchAssignment per task, in placement order.
    """
    options = options or DEFAULT_OPTIONS
    available = _available_loads(distribution, options)
    if not available:
        return []

    working = {load.member_id: load.total_weight for load in available}
    weighted = [(task, compute_weight(task, weight_policy)) for task in tasks]
    weighted.sort(key=lambda item: -item[1])

    results = []
    for task, weight in weighted:
        member_id = min(working, key=lambda mid: working[mid])
        working[member_id] = round_half_up(working[member_id] + weight, 1)
        results.append(
            BatchAssignment(
                task_id=task.task_id,
                member_id=member_id,
                projected_weight=working[member_id],
            )
        )
    return results


def suggest_rebalance(
    tasks: Iterable[TaskLoad],
    distribution: Distribution,
    max_suggestions: int = 5,
    policy: Optional[RebalancePolicy] = None,
    weight_policy: Optional[WeightPolicy] = None,
) -> list[RebalanceSuggestion]:
    """Propose moving pending tasks from the most to the least loaded member.

    Nothing is proposed when the balance score is at or above
    `policy.min_balance_score`. Pending tasks of the most loaded member are
    tried heaviest first; a task is proposed only if moving it (after the
    moves already proposed) shrinks the percentage gap between the two
    members. Completed tasks are never proposed.

    Args:
        tasks: Task records, typically the same ones the distribution used.
        distribution: Current load distribution.
        max_suggestions: Maximum number of suggestions.
        policy: Rebalancing limits.
        weight_policy: Weighting policy for task weights.

    Returns:
        Suggestions in proposal order; empty when already balanced.
    """
    policy = policy or DEFAULT_REBALANCE_POLICY

    if distribution.balance_score >= policy.min_balance_score:
        return []

    most = distribution.most_loaded
    least = distribution.least_loaded
    if most is None or least is None or most.member_id == least.member_id:
        return []

    total = distribution.total_weight
    if total <= 0 or max_suggestions <= 0:
        return []

    candidates = [
        (task, compute_weight(task, weight_policy))
        for task in tasks
        if task.assigned_to == most.member_id and not task.is_completed
    ]
    candidates.sort(key=lambda item: -item[1])

    from_weight = most.total_weight
    to_weight = least.total_weight
    suggestions: list[RebalanceSuggestion] = []

    for task, weight in candidates:
        if len(suggestions) >= max_suggestions:
            break
        if weight <= 0:
            continue

        current_gap = abs(from_weight - to_weight) / total * 100
        new_gap = abs((from_weight - weight) - (to_weight + weight)) / total * 100
        impact = round_half_up(current_gap - new_gap, 1)
        if impact <= 0:
            continue

        suggestions.append(
            RebalanceSuggestion(
                task_id=task.task_id,
                task_title=task.title,
                from_member_id=most.member_id,
                to_member_id=least.member_id,
                task_weight=weight,
                impact=impact,
            )
        )
        from_weight -= weight
        to_weight += weight

    logger.debug(
        "rebalance_suggested",
        from_member=most.member_id,
        to_member=least.member_id,
        candidates=len(candidates),
        suggestions=len(suggestions),
    )
    return suggestions


def determine_assignment(
    task: TaskLoad,
    distribution: Distribution,
    exclusions: Sequence[MemberExclusion] = (),
    on_date: Optional[date] = None,
    last_assigned_id: Optional[str] = None,
    policy: Optional[RebalancePolicy] = None,
    options: Optional[AssignmentOptions] = None,
) -> Optional[Assignment]:
    """Choose an assignee for a task automatically.

    Already assigned tasks keep their assignee. Members excluded on
    `on_date` are left out. When the remaining members' weights are within
    `policy.rotation_weight_gap` of each other the task rotates; otherwise
    it goes to the least loaded member.

    Returns:
        Assignment, or None if every member is excluded.
    """
    policy = policy or DEFAULT_REBALANCE_POLICY

    if task.assigned_to is not None:
        return Assignment(
            task.assigned_to,
            AssignmentReason.ALREADY_ASSIGNED,
            distribution.get_member(task.assigned_to),
        )

    if on_date is not None:
        unavailable = [
            load.member_id
            for load in distribution.members
            if is_excluded_on(load.member_id, exclusions, on_date)
        ]
        if unavailable:
            distribution = apply_availability(distribution, unavailable)

    if not distribution.members:
        logger.info("assignment_skipped", task_id=task.task_id, reason="all_members_excluded")
        return None

    weights = [load.total_weight for load in distribution.members]
    if len(weights) >= 2 and max(weights) - min(weights) <= policy.rotation_weight_gap:
        return rotating_assignment(distribution, last_assigned_id, options)

    return least_loaded_assignment(distribution, options)


def _available_loads(
    distribution: Distribution,
    options: AssignmentOptions,
) -> list[MemberLoad]:
    return [
        load
        for load in distribution.members
        if load.member_id not in options.excluded_member_ids
    ]


def _least_loaded(loads: Sequence[MemberLoad]) -> MemberLoad:
    least = loads[0]
    for load in loads[1:]:
        if load.total_weight < least.total_weight:
            least = load
    return least
