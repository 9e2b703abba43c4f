"""Validation module for verifying household snapshots."""

from fairload.validation.validator import (
    SnapshotValidator,
    ValidationError,
    ValidationErrorType,
    ValidationResult,
)

__all__ = [
    "SnapshotValidator",
    "ValidationError",
    "ValidationErrorType",
    "ValidationResult",
]
