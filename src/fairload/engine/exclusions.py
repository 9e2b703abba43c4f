"""Exclusion handling.

Members can declare periods during which they are unavailable (travel,
sickness, ...). This module measures how much of a period each member was
actually available and rescales observed load shares to what they would
have been over the whole period.

Days are counted inclusively on calendar dates: a period from Monday to
Sunday has 7 days, and an exclusion from Monday to Monday covers 1 day.
"""

from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from fairload.domain.models import ExclusionAdjustment, Member, MemberExclusion
from fairload.platform.logging import get_logger

logger = get_logger(__name__)


def compute_exclusion_adjustment(
    member_id: str,
    exclusions: Iterable[MemberExclusion],
    period_start: date,
    period_end: date,
) -> ExclusionAdjustment:
    """Compute the availability adjustment for a member over a period.

    Overlaps of every exclusion belonging to the member are summed as-is;
    overlapping exclusion records are not merged with each other.

    Args:
        member_id: Member to compute the adjustment for.
        exclusions: Declared exclusions (any member).
        period_start: First day of the period (inclusive).
        period_end: Last day of the period (inclusive).

    Returns:
        ExclusionAdjustment with available days floored at 0.
    """
    period_start = as_date(period_start)
    period_end = as_date(period_end)
    total_days = max(0, (period_end - period_start).days + 1)

    excluded_days = 0
    reason: Optional[str] = None

    for exclusion in exclusions:
        if exclusion.member_id != member_id:
            continue
        days = overlap_days(exclusion, period_start, period_end)
        if days > 0:
            excluded_days += days
            if reason is None and exclusion.reason:
                reason = exclusion.reason

    available_days = max(0, total_days - excluded_days)
    factor = available_days / total_days if total_days > 0 else 0.0

    return ExclusionAdjustment(
        member_id=member_id,
        total_days_in_period=total_days,
        excluded_days=excluded_days,
        available_days=available_days,
        adjustment_factor=factor,
        reason=reason,
    )


def compute_all_adjustments(
    member_ids: Iterable[str],
    exclusions: Sequence[MemberExclusion],
    period_start: date,
    period_end: date,
) -> dict[str, ExclusionAdjustment]:
    """Compute adjustments for several members over the same period."""
    adjustments = {
        member_id: compute_exclusion_adjustment(member_id, exclusions, period_start, period_end)
        for member_id in member_ids
    }
    excluded = {mid: adj.excluded_days for mid, adj in adjustments.items() if adj.excluded_days}
    if excluded:
        logger.debug("exclusions_applied", excluded_days=excluded)
    return adjustments


def adjusted_percentage(raw_percentage: float, adjustment_factor: float) -> float:
    """Rescale a raw share to a full-availability equivalent.

    A member available half the period with a 20% share counts as 40%.
    Fully excluded members (factor 0) keep their raw share.
    """
    if adjustment_factor > 0:
        return raw_percentage / adjustment_factor
    return raw_percentage


def overlap_days(exclusion: MemberExclusion, period_start: date, period_end: date) -> int:
    """Number of days an exclusion overlaps a period (inclusive)."""
    start = max(as_date(exclusion.start), as_date(period_start))
    end = min(as_date(exclusion.end), as_date(period_end))
    if start > end:
        return 0
    return (end - start).days + 1


def is_excluded_on(member_id: str, exclusions: Iterable[MemberExclusion], day: date) -> bool:
    """Check if a member has an exclusion covering `day`."""
    day = as_date(day)
    return any(
        exclusion.member_id == member_id and exclusion.contains(day)
        for exclusion in exclusions
    )


def active_exclusions(exclusions: Iterable[MemberExclusion], day: date) -> list[MemberExclusion]:
    """Exclusions covering `day`, ordered by start date."""
    day = as_date(day)
    active = [exclusion for exclusion in exclusions if exclusion.contains(day)]
    return sorted(active, key=lambda e: e.start)


def exclusions_overlap(first: MemberExclusion, second: MemberExclusion) -> bool:
    """Check if two exclusions share at least one day.

    Adjacent exclusions (one ends the day before the other starts) do not
    overlap.
    """
    return first.start <= second.end and second.start <= first.end


def available_members(
    members: Sequence[Member],
    exclusions: Sequence[MemberExclusion],
    day: date,
) -> list[Member]:
    """Members without an exclusion covering `day`, in input order."""
    return [member for member in members if not is_excluded_on(member.id, exclusions, day)]


def as_date(value: date) -> date:
    """Calendar date of a date or datetime."""
    if isinstance(value, datetime):
        return value.date()
    return value
