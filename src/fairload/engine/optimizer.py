"""OR-Tools CP-SAT optimizer for rebalancing pending tasks.

The greedy `suggest_rebalance` only moves tasks from the single most loaded
member to the single least loaded one. This module formulates rebalancing
as a small assignment problem instead: every pending task may stay with its
assignee or move to any other member, and the solver minimizes the gap
between the heaviest and lightest member load plus a penalty per move.

Weights are scaled to integer tenths for the solver.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from ortools.sat.python import cp_model

from fairload.domain.models import Distribution, RebalanceSuggestion, TaskLoad
from fairload.domain.policies import OptimizerConfig, WeightPolicy
from fairload.engine.rounding import round_half_up
from fairload.engine.weights import compute_weight
from fairload.platform.logging import get_logger

logger = get_logger(__name__)

WEIGHT_SCALE = 10


@dataclass
class OptimizationResult:
    """Result from the rebalance optimizer.

    Attributes:
        status: Solver status (OPTIMAL, FEASIBLE, etc.).
        suggestions: Proposed transfers, heaviest task first.
        gap_before: Max - min member weight before the transfers.
        gap_after: Max - min member weight after the transfers.
        objective_value: Final objective value, in tenths of weight.
        solve_time_seconds: Time taken to solve.
    """

    status: str
    suggestions: list[RebalanceSuggestion] = field(default_factory=list)
    gap_before: float = 0.0
    gap_after: float = 0.0
    objective_value: int = 0
    solve_time_seconds: float = 0.0

    @property
    def is_optimal(self) -> bool:
        return self.status == "OPTIMAL"

    @property
    def is_feasible(self) -> bool:
        return self.status in ("OPTIMAL", "FEASIBLE")


class RebalanceOptimizer:
    """Constraint Programming rebalancer using OR-Tools CP-SAT.

    Only pending tasks assigned to a member of the distribution can move.
    Completed tasks stay where they are and count as fixed load.
    """

    def __init__(
        self,
        config: Optional[OptimizerConfig] = None,
        weight_policy: Optional[WeightPolicy] = None,
    ):
        self.config = config or OptimizerConfig()
        self.weight_policy = weight_policy

    def optimize(
        self,
        tasks: Iterable[TaskLoad],
        distribution: Distribution,
    ) -> OptimizationResult:
        """Find the transfers that best even out member loads.

        Args:
            tasks: Task records, typically the ones the distribution used.
            distribution: Current load distribution; defines the members.

        Returns:
            OptimizationResult with suggestions and before/after gaps.
        """
        member_ids = distribution.member_ids
        fixed = {member_id: 0 for member_id in member_ids}
        movable: list[tuple[TaskLoad, float, int]] = []

        for task in tasks:
            if task.assigned_to not in fixed:
                continue
            weight = compute_weight(task, self.weight_policy)
            scaled = _scale(weight)
            if task.is_completed or scaled == 0:
                fixed[task.assigned_to] += scaled
            else:
                movable.append((task, weight, scaled))

        current = dict(fixed)
        for task, _, scaled in movable:
            current[task.assigned_to] += scaled
        gap_before = _gap(current)

        if len(member_ids) < 2 or not movable or self.config.max_moves <= 0:
            return OptimizationResult(
                status="OPTIMAL",
                gap_before=gap_before,
                gap_after=gap_before,
            )

        model = cp_model.CpModel()
        total = sum(current.values())

        # Decision variables: x[t][m] = 1 if task t ends up with member m
        x: list[dict[str, cp_model.IntVar]] = []
        for t_idx, (task, _, _) in enumerate(movable):
            x.append({
                member_id: model.NewBoolVar(f"x_{t_idx}_{member_id}")
                for member_id in member_ids
            })
            model.AddExactlyOne(x[t_idx].values())

        loads = {}
        for member_id in member_ids:
            load = model.NewIntVar(0, total, f"load_{member_id}")
            model.Add(
                load
                == fixed[member_id]
                + sum(scaled * x[t_idx][member_id] for t_idx, (_, _, scaled) in enumerate(movable))
            )
            loads[member_id] = load

        max_load = model.NewIntVar(0, total, "max_load")
        min_load = model.NewIntVar(0, total, "min_load")
        model.AddMaxEquality(max_load, list(loads.values()))
        model.AddMinEquality(min_load, list(loads.values()))

        # A move is any task not kept by its current assignee
        moves = sum(1 - x[t_idx][task.assigned_to] for t_idx, (task, _, _) in enumerate(movable))
        model.Add(moves <= self.config.max_moves)

        model.Minimize((max_load - min_load) + self.config.move_penalty * moves)

        # Hint the current assignment so the solver starts from it
        for t_idx, (task, _, _) in enumerate(movable):
            for member_id in member_ids:
                model.AddHint(x[t_idx][member_id], 1 if member_id == task.assigned_to else 0)

        solver = cp_model.CpSolver()
        solver.parameters.max_time_in_seconds = self.config.time_limit_seconds
        if self.config.num_workers > 0:
            solver.parameters.num_workers = self.config.num_workers
        solver.parameters.random_seed = self.config.random_seed

        status = solver.Solve(model)

        status_map = {
            cp_model.OPTIMAL: "OPTIMAL",
            cp_model.FEASIBLE: "FEASIBLE",
            cp_model.INFEASIBLE: "INFEASIBLE",
            cp_model.MODEL_INVALID: "MODEL_INVALID",
            cp_model.UNKNOWN: "UNKNOWN",
        }
        status_str = status_map.get(status, "UNKNOWN")

        if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
            logger.warning("optimizer_no_solution", status=status_str)
            return OptimizationResult(
                status=status_str,
                gap_before=gap_before,
                gap_after=gap_before,
                solve_time_seconds=solver.WallTime(),
            )

        moved = []
        for t_idx, (task, weight, scaled) in enumerate(movable):
            for member_id in member_ids:
                if member_id != task.assigned_to and solver.Value(x[t_idx][member_id]) == 1:
                    moved.append((task, weight, scaled, member_id))
        moved.sort(key=lambda item: -item[2])

        suggestions = self._build_suggestions(moved, current, total)
        after = {member_id: solver.Value(loads[member_id]) for member_id in member_ids}

        result = OptimizationResult(
            status=status_str,
            suggestions=suggestions,
            gap_before=gap_before,
            gap_after=_gap(after),
            objective_value=int(solver.ObjectiveValue()),
            solve_time_seconds=solver.WallTime(),
        )
        logger.debug(
            "optimizer_solved",
            status=status_str,
            movable=len(movable),
            moves=len(suggestions),
            gap_before=result.gap_before,
            gap_after=result.gap_after,
        )
        return result

    def _build_suggestions(
        self,
        moved: list[tuple[TaskLoad, float, int, str]],
        loads: dict[str, int],
        total: int,
    ) -> list[RebalanceSuggestion]:
        """Turn solver moves into suggestions.

        Moves are applied one after another; the impact of each is the
        change of the max - min percentage gap it causes at that point.
        """
        working = dict(loads)
        suggestions = []
        for task, weight, scaled, to_member in moved:
            gap_now = _gap_percentage(working, total)
            working[task.assigned_to] -= scaled
            working[to_member] += scaled
            impact = round_half_up(gap_now - _gap_percentage(working, total), 1)
            suggestions.append(
                RebalanceSuggestion(
                    task_id=task.task_id,
                    task_title=task.title,
                    from_member_id=task.assigned_to,
                    to_member_id=to_member,
                    task_weight=weight,
                    impact=impact,
                )
            )
        return suggestions


def _scale(weight: float) -> int:
    return int(round_half_up(weight * WEIGHT_SCALE, 0))


def _gap(loads: dict[str, int]) -> float:
    if not loads:
        return 0.0
    return round_half_up((max(loads.values()) - min(loads.values())) / WEIGHT_SCALE, 1)


def _gap_percentage(loads: dict[str, int], total: int) -> float:
    if total <= 0:
        return 0.0
    return (max(loads.values()) - min(loads.values())) / total * 100
