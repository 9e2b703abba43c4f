"""Tests for assignment advice and rebalancing."""

from datetime import date, datetime

import pytest

from fairload.domain.models import (
    AssignmentReason,
    Distribution,
    Member,
    MemberExclusion,
    TaskCategory,
    TaskLoad,
)
from fairload.domain.policies import AssignmentOptions
from fairload.engine.assignment import (
    batch_assign,
    category_based_assignment,
    determine_assignment,
    least_loaded_assignment,
    rotating_assignment,
    suggest_rebalance,
)
from fairload.engine.distribution import compute_distribution

MEMBERS = [Member("A", "Alex"), Member("B", "Sam")]


def distribution_for(members=MEMBERS, **weights: float) -> Distribution:
    tasks = [
        TaskLoad(f"t-{member_id}", weight=weight, assigned_to=member_id)
        for member_id, weight in weights.items()
    ]
    return compute_distribution(tasks, members)


def done(task_id: str, member_id: str, weight: float) -> TaskLoad:
    return TaskLoad(
        task_id, weight=weight, assigned_to=member_id, completed_at=datetime(2024, 1, 2, 9)
    )


def pending(task_id: str, member_id: str, weight: float) -> TaskLoad:
    return TaskLoad(task_id, title=f"Task {task_id}", weight=weight, assigned_to=member_id)


class TestLeastLoadedAssignment:
    """Tests for least_loaded_assignment."""

    def test_picks_lowest_weight(self):
        assignment = least_loaded_assignment(distribution_for(A=6, B=4))

        assert assignment.member_id == "B"
        assert assignment.reason == AssignmentReason.LEAST_LOADED
        assert assignment.member_load.total_weight == 4.0

    def test_tie_picks_first_member(self):
        assert least_loaded_assignment(distribution_for(A=5, B=5)).member_id == "A"

    def test_preferred_member_within_threshold(self):
        """A close-enough preferred member is chosen over the least loaded."""
        options = AssignmentOptions(preferred_member_id="A")
        assignment = least_loaded_assignment(distribution_for(A=5.2, B=4.8), options)

        assert assignment.member_id == "A"
        assert assignment.reason == AssignmentReason.PREFERRED

    def test_preferred_member_too_loaded(self):
        options = AssignmentOptions(preferred_member_id="A")
        assignment = least_loaded_assignment(distribution_for(A=6, B=4), options)

        assert assignment.member_id == "B"
        assert assignment.reason == AssignmentReason.LEAST_LOADED

    def test_preferred_member_is_least_loaded(self):
        options = AssignmentOptions(preferred_member_id="B")
        assignment = least_loaded_assignment(distribution_for(A=6, B=4), options)

        assert assignment.member_id == "B"
        assert assignment.reason == AssignmentReason.LEAST_LOADED

    def test_excluded_members_skipped(self):
        options = AssignmentOptions(excluded_member_ids=frozenset({"B"}))
        assignment = least_loaded_assignment(distribution_for(A=6, B=4), options)

        assert assignment.member_id == "A"
        assert assignment.reason == AssignmentReason.ONLY_MEMBER

    def test_no_candidates(self):
        assert least_loaded_assignment(Distribution()) is None
        options = AssignmentOptions(excluded_member_ids=frozenset({"A", "B"}))
        assert least_loaded_assignment(distribution_for(A=1, B=1), options) is None


class TestRotatingAssignment:
    """Tests for rotating_assignment."""

    def test_two_members_alternate(self):
        """With two members the assignee alternates strictly."""
        distribution = distribution_for(A=1, B=9)

        assert rotating_assignment(distribution, "A").member_id == "B"
        assert rotating_assignment(distribution, "B").member_id == "A"
        assert rotating_assignment(distribution, "A").reason == AssignmentReason.ROTATION

    def test_no_or_unknown_last_assignee(self):
        distribution = distribution_for(A=1, B=9)

        assert rotating_assignment(distribution, None).member_id == "A"
        assert rotating_assignment(distribution, "Z").member_id == "A"

    def test_wraps_around(self):
        members = MEMBERS + [Member("C", "Robin")]
        distribution = distribution_for(members, A=1, B=1, C=1)

        assert rotating_assignment(distribution, "B").member_id == "C"
        assert rotating_assignment(distribution, "C").member_id == "A"

    def test_single_and_empty(self):
        single = distribution_for([Member("A", "Alex")], A=3)

        assert rotating_assignment(single, "A").reason == AssignmentReason.ONLY_MEMBER
        assert rotating_assignment(Distribution(), None) is None


class TestCategoryBasedAssignment:
    """Tests for category_based_assignment."""

    PREFERENCES = {"B": [TaskCategory.HEALTH]}

    def test_preferring_member_within_threshold(self):
        assignment = category_based_assignment(
            distribution_for(A=4.5, B=5.5), TaskCategory.HEALTH, self.PREFERENCES
        )

        assert assignment.member_id == "B"
        assert assignment.reason == AssignmentReason.CATEGORY_PREFERENCE

    def test_overloaded_preferring_member_falls_back(self):
        assignment = category_based_assignment(
            distribution_for(A=4, B=6), TaskCategory.HEALTH, self.PREFERENCES
        )

        assert assignment.member_id == "A"
        assert assignment.reason == AssignmentReason.LEAST_LOADED

    def test_no_preference_for_category(self):
        assignment = category_based_assignment(
            distribution_for(A=4.5, B=5.5), TaskCategory.SCHOOL, self.PREFERENCES
        )
        assert assignment.member_id == "A"


class TestBatchAssign:
    """Tests for batch_assign."""

    def test_heaviest_first_to_lowest_projection(self):
        """Tasks are placed heaviest first on the lowest projected load."""
        tasks = [
            TaskLoad("t1", weight=3),
            TaskLoad("t2", weight=5),
            TaskLoad("t3", weight=2),
        ]
        results = batch_assign(tasks, compute_distribution([], MEMBERS))

        assert [(r.task_id, r.member_id, r.projected_weight) for r in results] == [
            ("t2", "A", 5.0),
            ("t1", "B", 3.0),
            ("t3", "B", 5.0),
        ]

    def test_starts_from_current_load(self):
        results = batch_assign([TaskLoad("t1", weight=1)], distribution_for(A=2, B=6))
        assert results[0].member_id == "A"
        assert results[0].projected_weight == 3.0

    def test_no_members(self):
        assert batch_assign([TaskLoad("t1", weight=1)], Distribution()) == []


class TestSuggestRebalance:
    """Tests for suggest_rebalance."""

    def test_balanced_distribution_has_no_suggestions(self):
        tasks = [pending("p1", "A", 5), pending("p2", "B", 5)]
        distribution = compute_distribution(tasks, MEMBERS)

        assert suggest_rebalance(tasks, distribution) == []

    def test_moves_heaviest_pending_task(self):
        """Only moves that shrink the gap are proposed."""
        tasks = [
            done("d1", "A", 2),
            pending("p1", "A", 4),
            pending("p2", "A", 3),
            pending("p3", "A", 1),
            done("d2", "B", 2),
        ]
        distribution = compute_distribution(tasks, MEMBERS)

        suggestions = suggest_rebalance(tasks, distribution)

        assert len(suggestions) == 1
        assert suggestions[0].task_id == "p1"
        assert suggestions[0].task_title == "Task p1"
        assert suggestions[0].from_member_id == "A"
        assert suggestions[0].to_member_id == "B"
        assert suggestions[0].task_weight == 4.0
        assert suggestions[0].impact == 66.7

    def test_successive_moves_are_cumulative(self):
        tasks = [done("d1", "A", 5), pending("p1", "A", 3), pending("p2", "A", 2)]
        distribution = compute_distribution(tasks, MEMBERS)

        suggestions = suggest_rebalance(tasks, distribution)

        assert [s.task_id for s in suggestions] == ["p1", "p2"]
        assert [s.impact for s in suggestions] == [60.0, 40.0]

    def test_completed_tasks_never_suggested(self):
        tasks = [done("d1", "A", 9), done("d2", "B", 1)]
        distribution = compute_distribution(tasks, MEMBERS)

        assert suggest_rebalance(tasks, distribution) == []

    def test_max_suggestions(self):
        tasks = [done("d1", "A", 5), pending("p1", "A", 3), pending("p2", "A", 2)]
        distribution = compute_distribution(tasks, MEMBERS)

        assert len(suggest_rebalance(tasks, distribution, max_suggestions=1)) == 1
        assert suggest_rebalance(tasks, distribution, max_suggestions=0) == []


class TestDetermineAssignment:
    """Tests for determine_assignment."""

    def test_already_assigned(self):
        distribution = distribution_for(A=6, B=4)
        task = TaskLoad("new", assigned_to="A")

        assignment = determine_assignment(task, distribution)

        assert assignment.member_id == "A"
        assert assignment.reason == AssignmentReason.ALREADY_ASSIGNED
        assert assignment.member_load.total_weight == 6.0

    def test_close_loads_rotate(self):
        """Loads within two weight points rotate."""
        distribution = distribution_for(A=5, B=6)
        assignment = determine_assignment(TaskLoad("new"), distribution, last_assigned_id="B")

        assert assignment.member_id == "A"
        assert assignment.reason == AssignmentReason.ROTATION

    def test_uneven_loads_go_to_least_loaded(self):
        distribution = distribution_for(A=8, B=2)
        assignment = determine_assignment(TaskLoad("new"), distribution, last_assigned_id="B")

        assert assignment.member_id == "B"
        assert assignment.reason == AssignmentReason.LEAST_LOADED

    def test_excluded_member_skipped(self):
        distribution = distribution_for(A=8, B=2)
        exclusions = [MemberExclusion("B", date(2024, 1, 1), date(2024, 1, 7))]

        assignment = determine_assignment(
            TaskLoad("new"), distribution, exclusions, date(2024, 1, 3)
        )

        assert assignment.member_id == "A"
        assert assignment.reason == AssignmentReason.ONLY_MEMBER

    def test_everyone_excluded(self):
        distribution = distribution_for(A=8, B=2)
        exclusions = [
            MemberExclusion("A", date(2024, 1, 1), date(2024, 1, 7)),
            MemberExclusion("B", date(2024, 1, 1), date(2024, 1, 7)),
        ]
        assert determine_assignment(TaskLoad("new"), distribution, exclusions, date(2024, 1, 3)) is None


@pytest.mark.parametrize("last,expected", [("A", "B"), ("B", "A")])
def test_rotation_scenario(last, expected):
    """Two members alternate regardless of load."""
    assert rotating_assignment(distribution_for(A=1, B=1), last).member_id == expected
