"""Command-line interface for the load distribution engine."""

import argparse
import json
import sys
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Any, Optional

from fairload.domain.models import (
    Member,
    MemberExclusion,
    PeriodType,
    Recurrence,
    TaskCategory,
    TaskLoad,
)
from fairload.domain.policies import OptimizerConfig
from fairload.engine.alerts import generate_balance_alert
from fairload.engine.assignment import batch_assign, determine_assignment, suggest_rebalance
from fairload.engine.distribution import compute_distribution, compute_weekly_stats
from fairload.engine.fairness import (
    all_category_fairness,
    completions_in_period,
    compute_fairness_score,
)
from fairload.engine.fatigue import build_fatigue_state
from fairload.engine.optimizer import RebalanceOptimizer
from fairload.engine.trends import compute_periodic_scores, compute_trend, weekly_periods
from fairload.engine.weights import compute_pressure_weight
from fairload.platform.logging import configure_logging, get_logger
from fairload.snapshot import HouseholdSnapshot, SnapshotError, load_snapshot, to_jsonable
from fairload.validation.validator import SnapshotValidator

logger = get_logger(__name__)

DEMO_START = date(2024, 1, 1)


def create_sample_household(
    member_count: int = 2,
    weeks: int = 4,
    start: date = DEMO_START,
) -> HouseholdSnapshot:
    """Create a sample household for demos and tests.

    The first member carries most of the load in the early weeks and the
    split evens out towards the end, so the trend improves. A handful of
    pending tasks stay with the first member.

    Args:
        member_count: Number of members to create (at least 1).
        weeks: Number of weeks of completed history.
        start: First day of the history (a Monday by default).
    """
    names = ["Alex", "Sam", "Robin", "Jordan", "Casey", "Morgan"]
    members = []
    for i in range(max(1, member_count)):
        name = names[i % len(names)]
        if i >= len(names):
            name = f"{name}{i // len(names) + 1}"
        members.append(Member(id=f"M{i + 1:02d}", name=name))

    categories = list(TaskCategory)
    tasks = []
    for day_offset in range(weeks * 7):
        day = start + timedelta(days=day_offset)
        week = day_offset // 7
        for slot in range(2):
            index = day_offset * 2 + slot
            # Early weeks skew towards the first member
            if slot == 0 or week >= weeks // 2:
                assignee = members[index % len(members)]
            else:
                assignee = members[0]
            tasks.append(
                TaskLoad(
                    task_id=f"T{index + 1:03d}",
                    title=f"{categories[index % len(categories)].value.title()} task {index + 1}",
                    category=categories[index % len(categories)],
                    priority=1 + index % 3,
                    critical=index % 11 == 0,
                    recurrence=Recurrence.WEEKLY if index % 4 == 0 else Recurrence.ONE_TIME,
                    completed_at=datetime.combine(day, time(9 + slot * 8)),
                    assigned_to=assignee.id,
                )
            )

    end = start + timedelta(days=weeks * 7 - 1)
    pending = [
        ("Book dentist appointment", TaskCategory.HEALTH, 1, members[0].id, 1),
        ("Renew insurance", TaskCategory.ADMIN, 2, members[0].id, 10),
        ("Sign school trip form", TaskCategory.SCHOOL, 2, members[0].id, 0),
        ("Buy birthday present", TaskCategory.SOCIAL, 3, members[0].id, None),
        ("Plan carpool", TaskCategory.LOGISTICS, 2, None, 3),
    ]
    for i, (title, category, priority, assignee_id, due_in) in enumerate(pending):
        tasks.append(
            TaskLoad(
                task_id=f"P{i + 1:02d}",
                title=title,
                category=category,
                priority=priority,
                assigned_to=assignee_id,
                deadline=end + timedelta(days=due_in) if due_in is not None else None,
            )
        )

    exclusions = []
    if len(members) > 1:
        exclusions.append(
            MemberExclusion(
                member_id=members[1].id,
                start=start + timedelta(days=2),
                end=start + timedelta(days=4),
                reason="travel",
            )
        )

    return HouseholdSnapshot(
        members=members,
        tasks=tasks,
        exclusions=exclusions,
        period_start=start,
        period_end=end,
        period_type=PeriodType.CUSTOM,
    )


def load_validated(path: str) -> HouseholdSnapshot:
    """Load a snapshot and reject it if validation fails.

    Raises:
        SnapshotError: If the snapshot cannot be parsed or is invalid.
    """
    snapshot = load_snapshot(path)
    result = SnapshotValidator().validate(snapshot)
    for warning in result.warnings:
        logger.warning("snapshot_warning", path=path, warning=warning)
    if not result.is_valid:
        details = "; ".join(str(error) for error in result.errors)
        raise SnapshotError(f"Snapshot {path} is invalid: {details}")
    return snapshot


def _resolve_period(
    snapshot: HouseholdSnapshot,
    start: Optional[str],
    end: Optional[str],
) -> tuple[date, date]:
    period_start, period_end = snapshot.resolve_period()
    try:
        if start:
            period_start = date.fromisoformat(start)
        if end:
            period_end = date.fromisoformat(end)
    except ValueError as exc:
        raise SnapshotError(f"Invalid period bound: {exc}") from exc
    if period_end < period_start:
        raise SnapshotError(f"Period ends ({period_end}) before it starts ({period_start})")
    return period_start, period_end


def analyze_snapshot(
    snapshot: HouseholdSnapshot,
    period_start: date,
    period_end: date,
) -> dict[str, Any]:
    """Run distribution, fairness and category analysis on a snapshot."""
    distribution = compute_distribution(snapshot.tasks, snapshot.members)
    completions = completions_in_period(snapshot.tasks, period_start, period_end)
    fairness = compute_fairness_score(
        completions,
        snapshot.members,
        snapshot.exclusions,
        period_start,
        period_end,
        period_type=snapshot.period_type,
    )
    return {
        "distribution": distribution,
        "alert": generate_balance_alert(distribution),
        "fairness": fairness,
        "categories": all_category_fairness(fairness.member_loads),
        "weekly_stats": compute_weekly_stats(snapshot.tasks, snapshot.members, period_end),
        "fatigue": [
            build_fatigue_state(snapshot.tasks, member.id, period_end)
            for member in snapshot.members
        ],
    }


def suggest_for_snapshot(
    snapshot: HouseholdSnapshot,
    max_suggestions: int = 5,
    optimize: bool = False,
    time_limit: float = 10.0,
) -> dict[str, Any]:
    """Propose rebalancing moves and assignees for unassigned tasks."""
    distribution = compute_distribution(snapshot.tasks, snapshot.members)
    unassigned = [
        task for task in snapshot.tasks if task.assigned_to is None and not task.is_completed
    ]
    output: dict[str, Any] = {
        "balance_score": distribution.balance_score,
        "suggestions": suggest_rebalance(snapshot.tasks, distribution, max_suggestions),
        "assignments": batch_assign(unassigned, distribution),
    }
    if optimize:
        optimizer = RebalanceOptimizer(
            OptimizerConfig(time_limit_seconds=time_limit, max_moves=max_suggestions)
        )
        output["optimized"] = optimizer.optimize(snapshot.tasks, distribution)
    return output


def trend_for_snapshot(
    snapshot: HouseholdSnapshot,
    period_start: date,
    period_end: date,
) -> dict[str, Any]:
    """Score each week of the period and classify the trend."""
    scores = compute_periodic_scores(
        snapshot.tasks,
        snapshot.members,
        snapshot.exclusions,
        weekly_periods(period_start, period_end),
    )
    return {"trend": compute_trend(scores)}


def print_json(payload: Any) -> None:
    print(json.dumps(to_jsonable(payload), indent=2))


def run_demo(member_count: int = 2, weeks: int = 4, output_path: Optional[str] = None) -> None:
    """Run the engine on a sample household and print a summary."""
    print(f"Analyzing sample household with {member_count} members over {weeks} weeks...")

    snapshot = create_sample_household(member_count, weeks)
    period_start, period_end = snapshot.resolve_period()

    analysis = analyze_snapshot(snapshot, period_start, period_end)
    distribution = analysis["distribution"]
    fairness = analysis["fairness"]

    print(f"\nLoad distribution ({distribution.total_tasks} tasks, "
          f"total weight {distribution.total_weight})")
    for load in distribution.members:
        print(f"  {load.member_name} ({load.member_id}): {load.total_weight} "
              f"({load.percentage}%), {load.pending_count} pending")
    print(f"  Balance score: {distribution.balance_score}/100")

    print(f"\nFairness {period_start} to {period_end}")
    print(f"  Score: {fairness.overall_score}/100 ({fairness.status.value}), "
          f"gini={fairness.gini_coefficient}")
    for load in fairness.member_loads:
        print(f"  {load.member_name}: {load.percentage}% raw, "
              f"{load.adjusted_percentage}% adjusted, {load.excluded_days} days excluded")

    attention = [c for c in analysis["categories"] if c.needs_attention]
    if attention:
        print("\nCategories needing attention:")
        for category in attention:
            print(f"  {category.category.value}: score {category.fairness_score}, "
                  f"dominant={category.dominant_member}")

    print("\nFatigue")
    for state in analysis["fatigue"]:
        print(f"  {state.member_id}: level {state.fatigue_level}, "
              f"{state.recent_average_load}/day, load {state.load_trend.value}")

    trend = trend_for_snapshot(snapshot, period_start, period_end)["trend"]
    print(f"\nTrend: {trend.direction.value}, average {trend.average_score}")
    for period in trend.periods:
        print(f"  {period.start} - {period.end}: {period.score}")

    alert = analysis["alert"]
    print(f"\nAlert ({alert.level.value}): {alert.message}")

    suggestions = suggest_rebalance(snapshot.tasks, distribution)
    if suggestions:
        print("\nRebalancing suggestions:")
        for suggestion in suggestions:
            print(f"  Move '{suggestion.task_title}' ({suggestion.task_weight}) "
                  f"{suggestion.from_member_id} -> {suggestion.to_member_id}, "
                  f"gap -{suggestion.impact} pts")

    next_day = period_end + timedelta(days=1)
    fatigue = {state.member_id: state.fatigue_level for state in analysis["fatigue"]}
    for task in snapshot.tasks:
        if task.assigned_to is None and not task.is_completed:
            assignment = determine_assignment(task, distribution, snapshot.exclusions, next_day)
            if assignment is not None:
                felt = compute_pressure_weight(task, next_day, fatigue.get(assignment.member_id, 0))
                print(f"\nNext assignee for '{task.title}': {assignment.member_id} "
                      f"({assignment.reason.value}), felt weight {felt}")

    if output_path:
        Path(output_path).write_text(json.dumps(snapshot.to_dict(), indent=2), encoding="utf-8")
        print(f"\nSample snapshot written to {output_path}")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="fairload - Household Load Distribution & Fairness Engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s demo                          Analyze a sample household
  %(prog)s demo --output household.json  Also save the sample snapshot

  %(prog)s analyze household.json        Distribution, fairness and alerts
  %(prog)s analyze household.json --start 2024-01-01 --end 2024-01-07

  %(prog)s suggest household.json        Rebalancing suggestions
  %(prog)s suggest household.json --optimize   Use the CP-SAT optimizer

  %(prog)s trend household.json          Weekly fairness trend
        """,
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Minimum log level written to stderr (default: WARNING)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Write logs as JSON lines",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Demo command
    demo_parser = subparsers.add_parser("demo", help="Analyze a sample household")
    demo_parser.add_argument(
        "--count", "-c",
        type=int,
        default=2,
        help="Number of members to generate (default: 2)",
    )
    demo_parser.add_argument(
        "--weeks", "-w",
        type=int,
        default=4,
        help="Weeks of history to generate (default: 4)",
    )
    demo_parser.add_argument(
        "--output", "-o",
        type=str,
        help="Write the sample snapshot to this JSON file",
    )

    # Analyze command
    analyze_parser = subparsers.add_parser("analyze", help="Analyze a household snapshot")
    analyze_parser.add_argument("snapshot", help="Path to the snapshot JSON file")
    analyze_parser.add_argument("--start", type=str, help="Period start (YYYY-MM-DD)")
    analyze_parser.add_argument("--end", type=str, help="Period end (YYYY-MM-DD)")

    # Suggest command
    suggest_parser = subparsers.add_parser("suggest", help="Suggest rebalancing moves")
    suggest_parser.add_argument("snapshot", help="Path to the snapshot JSON file")
    suggest_parser.add_argument(
        "--max", "-m",
        type=int,
        default=5,
        help="Maximum number of suggestions (default: 5)",
    )
    suggest_parser.add_argument(
        "--optimize",
        action="store_true",
        help="Also run the CP-SAT optimizer",
    )
    suggest_parser.add_argument(
        "--time-limit", "-t",
        type=float,
        default=10.0,
        help="CP-SAT solver time limit in seconds (default: 10)",
    )

    # Trend command
    trend_parser = subparsers.add_parser("trend", help="Weekly fairness trend")
    trend_parser.add_argument("snapshot", help="Path to the snapshot JSON file")
    trend_parser.add_argument("--start", type=str, help="Period start (YYYY-MM-DD)")
    trend_parser.add_argument("--end", type=str, help="Period end (YYYY-MM-DD)")

    args = parser.parse_args(argv)
    configure_logging(args.log_level, args.log_json)

    try:
        if args.command == "demo":
            run_demo(args.count, args.weeks, args.output)
            return 0
        elif args.command == "analyze":
            snapshot = load_validated(args.snapshot)
            period_start, period_end = _resolve_period(snapshot, args.start, args.end)
            print_json(analyze_snapshot(snapshot, period_start, period_end))
            return 0
        elif args.command == "suggest":
            snapshot = load_validated(args.snapshot)
            print_json(suggest_for_snapshot(snapshot, args.max, args.optimize, args.time_limit))
            return 0
        elif args.command == "trend":
            snapshot = load_validated(args.snapshot)
            period_start, period_end = _resolve_period(snapshot, args.start, args.end)
            print_json(trend_for_snapshot(snapshot, period_start, period_end))
            return 0
        else:
            parser.print_help()
            return 1
    except SnapshotError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
