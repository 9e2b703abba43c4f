"""Domain models and policies for load distribution."""

from fairload.domain.models import (
    AdjustedMemberLoad,
    AlertLevel,
    Assignment,
    AssignmentReason,
    BalanceAlert,
    BatchAssignment,
    CategoryFairness,
    ChangeDirection,
    Distribution,
    ExclusionAdjustment,
    FairnessPeriod,
    FairnessScore,
    FairnessStatus,
    FairnessTrend,
    FatigueState,
    ImbalanceDetails,
    Member,
    MemberExclusion,
    MemberLoad,
    MemberShare,
    PeriodScore,
    PeriodType,
    RebalanceSuggestion,
    Recurrence,
    TaskCategory,
    TaskLoad,
    TrendDirection,
    WeeklyMemberStats,
    WeeklyStats,
)
from fairload.domain.policies import (
    AssignmentOptions,
    CategoryPolicy,
    DecayPolicy,
    FatiguePolicy,
    DefaultWeightPolicy,
    FairnessThresholds,
    OptimizerConfig,
    RebalancePolicy,
    TrendPolicy,
    WeightPolicy,
)

__all__ = [
    # Enums
    "AlertLevel",
    "AssignmentReason",
    "ChangeDirection",
    "FairnessStatus",
    "PeriodType",
    "Recurrence",
    "TaskCategory",
    "TrendDirection",
    # Inputs
    "Member",
    "MemberExclusion",
    "TaskLoad",
    # Results
    "AdjustedMemberLoad",
    "Assignment",
    "BalanceAlert",
    "BatchAssignment",
    "CategoryFairness",
    "Distribution",
    "ExclusionAdjustment",
    "FairnessPeriod",
    "FairnessScore",
    "FairnessTrend",
    "FatigueState",
    "ImbalanceDetails",
    "MemberLoad",
    "MemberShare",
    "PeriodScore",
    "RebalanceSuggestion",
    "WeeklyMemberStats",
    "WeeklyStats",
    # Policies
    "AssignmentOptions",
    "CategoryPolicy",
    "DecayPolicy",
    "FatiguePolicy",
    "DefaultWeightPolicy",
    "FairnessThresholds",
    "OptimizerConfig",
    "RebalancePolicy",
    "TrendPolicy",
    "WeightPolicy",
]
