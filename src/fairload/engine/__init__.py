"""Load distribution, fairness and assignment engine."""

from fairload.engine.alerts import generate_balance_alert
from fairload.engine.assignment import (
    batch_assign,
    category_based_assignment,
    determine_assignment,
    least_loaded_assignment,
    rotating_assignment,
    suggest_rebalance,
)
from fairload.engine.distribution import (
    apply_availability,
    compute_balance_score,
    compute_distribution,
    compute_weekly_stats,
    find_extremes,
    iso_week_label,
    week_bounds,
)
from fairload.engine.exclusions import (
    active_exclusions,
    adjusted_percentage,
    as_date,
    available_members,
    compute_all_adjustments,
    compute_exclusion_adjustment,
    exclusions_overlap,
    is_excluded_on,
    overlap_days,
)
from fairload.engine.fairness import (
    all_category_fairness,
    analyze_category_fairness,
    completions_in_period,
    compute_category_scores,
    compute_fairness_score,
    compute_imbalance,
    compute_member_loads,
    fairness_status,
    gini,
    gini_to_score,
)
from fairload.engine.fatigue import (
    build_fatigue_state,
    fatigue_level,
    fatigue_multiplier,
    load_trend,
)
from fairload.engine.optimizer import OptimizationResult, RebalanceOptimizer
from fairload.engine.rounding import round_half_up, round_percentage, round_score
from fairload.engine.trends import (
    classify_change,
    compute_periodic_scores,
    compute_trend,
    period_score,
    weekly_periods,
)
from fairload.engine.weights import (
    compute_pressure_weight,
    compute_weight,
    time_decay,
    time_weighted_load,
)

__all__ = [
    # Weights
    "compute_weight",
    "time_decay",
    "time_weighted_load",
    "compute_pressure_weight",
    # Fatigue
    "fatigue_level",
    "fatigue_multiplier",
    "load_trend",
    "build_fatigue_state",
    # Distribution
    "compute_distribution",
    "compute_balance_score",
    "find_extremes",
    "apply_availability",
    "compute_weekly_stats",
    "week_bounds",
    "iso_week_label",
    # Exclusions
    "compute_exclusion_adjustment",
    "compute_all_adjustments",
    "adjusted_percentage",
    "as_date",
    "overlap_days",
    "is_excluded_on",
    "active_exclusions",
    "exclusions_overlap",
    "available_members",
    # Fairness
    "gini",
    "gini_to_score",
    "fairness_status",
    "completions_in_period",
    "compute_member_loads",
    "compute_fairness_score",
    "compute_category_scores",
    "compute_imbalance",
    "analyze_category_fairness",
    "all_category_fairness",
    # Trends
    "compute_trend",
    "classify_change",
    "weekly_periods",
    "period_score",
    "compute_periodic_scores",
    # Assignment
    "least_loaded_assignment",
    "rotating_assignment",
    "category_based_assignment",
    "batch_assign",
    "suggest_rebalance",
    "determine_assignment",
    "generate_balance_alert",
    # Optimizer
    "RebalanceOptimizer",
    "OptimizationResult",
    # Rounding
    "round_half_up",
    "round_score",
    "round_percentage",
]
