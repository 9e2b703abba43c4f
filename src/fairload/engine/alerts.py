"""Balance alerts derived from a load distribution."""

from typing import Optional

from fairload.domain.models import AlertLevel, BalanceAlert, Distribution
from fairload.domain.policies import RebalancePolicy
from fairload.engine.rounding import round_half_up
from fairload.platform.logging import get_logger

logger = get_logger(__name__)

DEFAULT_REBALANCE_POLICY = RebalancePolicy()


def generate_balance_alert(
    distribution: Distribution,
    policy: Optional[RebalancePolicy] = None,
) -> BalanceAlert:
    """Classify the imbalance of a distribution into an alert level.

    Balance scores at or above the first threshold raise no alert; each
    lower threshold steps the level up (low, medium, high).

    Args:
        distribution: Current load distribution.
        policy: Alert thresholds.

    Returns:
        BalanceAlert with a short human-readable message.
    """
    policy = policy or DEFAULT_REBALANCE_POLICY
    none_at, low_at, medium_at = policy.alert_thresholds

    most = distribution.most_loaded
    least = distribution.least_loaded
    if len(distribution.members) <= 1 or most is None or least is None:
        return BalanceAlert(level=AlertLevel.NONE, message="Nothing to balance.")

    gap = round_half_up(most.percentage - least.percentage, 1)
    score = distribution.balance_score

    if score >= none_at:
        return BalanceAlert(
            level=AlertLevel.NONE,
            message="Load is well balanced.",
            most_loaded=most.member_id,
            least_loaded=least.member_id,
            imbalance_percentage=gap,
        )

    if score >= low_at:
        level = AlertLevel.LOW
        message = f"{most.member_name} carries slightly more load than {least.member_name}."
    elif score >= medium_at:
        level = AlertLevel.MEDIUM
        message = (
            f"{most.member_name} carries {most.percentage}% of the load; "
            f"consider moving tasks to {least.member_name}."
        )
    else:
        level = AlertLevel.HIGH
        message = (
            f"{most.member_name} carries {most.percentage}% of the load while "
            f"{least.member_name} carries {least.percentage}%. Rebalancing is needed."
        )

    logger.debug(
        "balance_alert_generated",
        level=level.value,
        balance_score=score,
        most_loaded=most.member_id,
        least_loaded=least.member_id,
    )

    return BalanceAlert(
        level=level,
        message=message,
        most_loaded=most.member_id,
        least_loaded=least.member_id,
        imbalance_percentage=gap,
    )
