"""Validation module for household snapshots.

The engine never raises on well-shaped input; it silently ignores tasks of
unknown members and falls back to defaults. This validator reports those
situations up front so callers can decide whether the data is usable.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from fairload.snapshot import HouseholdSnapshot


class ValidationErrorType(Enum):
    """Types of validation errors."""

    NO_MEMBERS = "no_members"
    DUPLICATE_MEMBER = "duplicate_member"
    DUPLICATE_TASK = "duplicate_task"
    NEGATIVE_WEIGHT = "negative_weight"
    INVERTED_EXCLUSION = "inverted_exclusion"
    INVERTED_PERIOD = "inverted_period"


@dataclass
class ValidationError:
    """A single validation error."""

    error_type: ValidationErrorType
    message: str
    member_id: Optional[str] = None
    task_id: Optional[str] = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"[{self.error_type.value}]"]
        if self.member_id:
            parts.append(f"Member {self.member_id}:")
        if self.task_id:
            parts.append(f"Task {self.task_id}:")
        parts.append(self.message)
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of validating a snapshot."""

    is_valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)


class SnapshotValidator:
    """Validates household snapshots before analysis.

    Example:
        >>> validator = SnapshotValidator()
        >>> result = validator.validate(snapshot)
        >>> if not result.is_valid:
        ...     for error in result.errors:
        ...         print(error)
    """

    def validate(self, snapshot: HouseholdSnapshot) -> ValidationResult:
        """Validate a complete snapshot.

        Args:
            snapshot: The snapshot to validate.

        Returns:
            ValidationResult with is_valid flag, errors and warnings.
        """
        result = ValidationResult(is_valid=True)

        member_ids = self._validate_members(snapshot, result)
        self._validate_tasks(snapshot, member_ids, result)
        self._validate_exclusions(snapshot, member_ids, result)
        self._validate_period(snapshot, result)

        return result

    def _validate_members(
        self,
        snapshot: HouseholdSnapshot,
        result: ValidationResult,
    ) -> set[str]:
        if not snapshot.members:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.NO_MEMBERS,
                    message="Snapshot has no members",
                )
            )

        seen: set[str] = set()
        for member in snapshot.members:
            if member.id in seen:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.DUPLICATE_MEMBER,
                        message="Member ID appears more than once",
                        member_id=member.id,
                    )
                )
            seen.add(member.id)
        return seen

    def _validate_tasks(
        self,
        snapshot: HouseholdSnapshot,
        member_ids: set[str],
        result: ValidationResult,
    ) -> None:
        seen: set[str] = set()
        for task in snapshot.tasks:
            if task.task_id in seen:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.DUPLICATE_TASK,
                        message="Task ID appears more than once",
                        task_id=task.task_id,
                    )
                )
            seen.add(task.task_id)

            if task.weight is not None and task.weight < 0:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.NEGATIVE_WEIGHT,
                        message=f"Weight {task.weight} is negative",
                        task_id=task.task_id,
                        details={"weight": task.weight},
                    )
                )

            if task.assigned_to is not None and task.assigned_to not in member_ids:
                result.add_warning(
                    f"Task {task.task_id} is assigned to unknown member "
                    f"{task.assigned_to} and will be ignored"
                )

            if task.priority not in (1, 2, 3):
                result.add_warning(
                    f"Task {task.task_id} has priority {task.priority} outside 1-3; "
                    "it is weighted as normal priority"
                )

    def _validate_exclusions(
        self,
        snapshot: HouseholdSnapshot,
        member_ids: set[str],
        result: ValidationResult,
    ) -> None:
        for exclusion in snapshot.exclusions:
            if exclusion.end < exclusion.start:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.INVERTED_EXCLUSION,
                        message=f"Exclusion ends ({exclusion.end}) before it starts ({exclusion.start})",
                        member_id=exclusion.member_id,
                    )
                )
            if exclusion.member_id not in member_ids:
                result.add_warning(
                    f"Exclusion for unknown member {exclusion.member_id} will be ignored"
                )

    def _validate_period(
        self,
        snapshot: HouseholdSnapshot,
        result: ValidationResult,
    ) -> None:
        start, end = snapshot.period_start, snapshot.period_end
        if start is not None and end is not None and end < start:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.INVERTED_PERIOD,
                    message=f"Period ends ({end}) before it starts ({start})",
                )
            )
