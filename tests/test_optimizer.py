"""Tests for the CP-SAT rebalance optimizer."""

from datetime import datetime

import pytest

from fairload.domain.models import Member, TaskLoad
from fairload.domain.policies import OptimizerConfig
from fairload.engine.distribution import compute_distribution
from fairload.engine.optimizer import OptimizationResult, RebalanceOptimizer

MEMBERS = [Member("A", "Alex"), Member("B", "Sam")]


def done(task_id: str, member_id: str, weight: float) -> TaskLoad:
    return TaskLoad(
        task_id, weight=weight, assigned_to=member_id, completed_at=datetime(2024, 1, 2, 9)
    )


def pending(task_id: str, member_id: str, weight: float) -> TaskLoad:
    return TaskLoad(task_id, title=f"Task {task_id}", weight=weight, assigned_to=member_id)


@pytest.fixture
def optimizer():
    return RebalanceOptimizer(OptimizerConfig(time_limit_seconds=5.0))


class TestRebalanceOptimizer:
    """Tests for RebalanceOptimizer."""

    def test_single_move_closes_gap(self, optimizer):
        """Moving the 4-point task evens out 10 vs 2."""
        tasks = [
            done("d1", "A", 2),
            pending("p1", "A", 4),
            pending("p2", "A", 3),
            pending("p3", "A", 1),
            done("d2", "B", 2),
        ]
        result = optimizer.optimize(tasks, compute_distribution(tasks, MEMBERS))

        assert result.is_optimal
        assert result.gap_before == 8.0
        assert result.gap_after == 0.0
        assert len(result.suggestions) == 1
        suggestion = result.suggestions[0]
        assert suggestion.task_id == "p1"
        assert suggestion.from_member_id == "A"
        assert suggestion.to_member_id == "B"
        assert suggestion.task_weight == 4.0

    def test_completed_tasks_stay(self, optimizer):
        """Only pending tasks can move."""
        tasks = [done("d1", "A", 9), done("d2", "B", 1)]
        result = optimizer.optimize(tasks, compute_distribution(tasks, MEMBERS))

        assert result.is_feasible
        assert result.suggestions == []
        assert result.gap_before == result.gap_after == 8.0

    def test_single_member(self, optimizer):
        members = [Member("A", "Alex")]
        tasks = [pending("p1", "A", 4)]
        result = optimizer.optimize(tasks, compute_distribution(tasks, members))

        assert result.suggestions == []
        assert result.gap_before == 0.0

    def test_move_budget(self):
        """No more moves than the budget allows."""
        members = MEMBERS + [Member("C", "Robin")]
        tasks = [pending("p1", "A", 5), pending("p2", "A", 5)]
        optimizer = RebalanceOptimizer(OptimizerConfig(time_limit_seconds=5.0, max_moves=1))

        result = optimizer.optimize(tasks, compute_distribution(tasks, members))

        assert result.is_feasible
        assert len(result.suggestions) == 1
        assert result.gap_before == 10.0
        assert result.gap_after == 5.0

    def test_balanced_household_stays(self, optimizer):
        """Moves that do not reduce the gap are not worth their penalty."""
        tasks = [pending("p1", "A", 3), pending("p2", "B", 3)]
        result = optimizer.optimize(tasks, compute_distribution(tasks, MEMBERS))

        assert result.is_optimal
        assert result.suggestions == []
        assert result.gap_after == 0.0

    def test_deterministic(self, optimizer):
        tasks = [
            pending("p1", "A", 2),
            pending("p2", "A", 2),
            pending("p3", "A", 2),
            pending("p4", "A", 2),
        ]
        distribution = compute_distribution(tasks, MEMBERS)

        first = optimizer.optimize(tasks, distribution)
        second = optimizer.optimize(tasks, distribution)

        assert first.gap_after == second.gap_after == 0.0
        assert len(first.suggestions) == len(second.suggestions) == 2


class TestOptimizationResult:
    """Tests for OptimizationResult status helpers."""

    def test_status_flags(self):
        assert OptimizationResult(status="OPTIMAL").is_optimal
        assert OptimizationResult(status="FEASIBLE").is_feasible
        assert not OptimizationResult(status="FEASIBLE").is_optimal
        assert not OptimizationResult(status="INFEASIBLE").is_feasible
