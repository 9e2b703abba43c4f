"""Household snapshots: the JSON input of the command line tool.

A snapshot holds everything the engine needs for one household:

    {
        "members": [{"id": "m1", "name": "Alex"}],
        "tasks": [{"id": "t1", "category": "health", "priority": 1,
                   "assigned_to": "m1", "completed_at": "2024-01-02T09:00:00",
                   "deadline": "2024-01-05"}],
        "exclusions": [{"member_id": "m1", "start": "2024-01-03",
                        "end": "2024-01-04", "reason": "travel"}],
        "period": {"start": "2024-01-01", "end": "2024-01-07", "type": "week"},
        "last_assigned_id": "m1"
    }

Only "members" is required. Unknown categories and recurrences fall back to
their defaults; missing required keys and unparsable values raise
SnapshotError.
"""

import json
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from fairload.domain.models import (
    Member,
    MemberExclusion,
    PeriodType,
    Recurrence,
    TaskCategory,
    TaskLoad,
)
from fairload.engine.distribution import week_bounds
from fairload.engine.exclusions import as_date


class SnapshotError(ValueError):
    """Raised when a snapshot cannot be parsed."""


# Wire schema


class MemberRecord(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    name: Optional[str] = None


class TaskRecord(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True, populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("id", "task_id"))
    title: str = ""
    category: TaskCategory = TaskCategory.OTHER
    weight: Optional[float] = None
    priority: int = 2
    critical: bool = False
    recurrence: Recurrence = Recurrence.ONE_TIME
    assigned_to: Optional[str] = None
    completed_at: Optional[datetime] = None
    deadline: Optional[date] = None

    @field_validator("category", mode="before")
    @classmethod
    def parse_category(cls, value: Any) -> TaskCategory:
        return TaskCategory.parse(value)

    @field_validator("recurrence", mode="before")
    @classmethod
    def parse_recurrence(cls, value: Any) -> Recurrence:
        return Recurrence.parse(value)

    @field_validator("title", mode="before")
    @classmethod
    def default_title(cls, value: Any) -> Any:
        return value if value is not None else ""


class ExclusionRecord(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    member_id: str
    start: date
    end: date
    reason: Optional[str] = None


class PeriodRecord(BaseModel):
    start: Optional[date] = None
    end: Optional[date] = None
    type: PeriodType = PeriodType.WEEK

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, value: Any) -> PeriodType:
        return PeriodType.parse(value)


class SnapshotRecord(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    members: list[MemberRecord]
    tasks: list[TaskRecord] = Field(default_factory=list)
    exclusions: list[ExclusionRecord] = Field(default_factory=list)
    period: Optional[PeriodRecord] = None
    last_assigned_id: Optional[str] = None

    @field_validator("tasks", "exclusions", mode="before")
    @classmethod
    def default_list(cls, value: Any) -> Any:
        return value if value is not None else []


_RESULT_ADAPTER = TypeAdapter(Any)


@dataclass
class HouseholdSnapshot:
    """Parsed household data.

    Attributes:
        members: Household members, in tie-break order.
        tasks: Task records.
        exclusions: Declared exclusions.
        period_start: First day of the analysis period, if given.
        period_end: Last day of the analysis period, if given.
        period_type: Kind of the analysis period.
        last_assigned_id: Member who received the most recent task.
    """

    members: list[Member]
    tasks: list[TaskLoad] = field(default_factory=list)
    exclusions: list[MemberExclusion] = field(default_factory=list)
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    period_type: PeriodType = PeriodType.WEEK
    last_assigned_id: Optional[str] = None

    def resolve_period(self, today: Optional[date] = None) -> tuple[date, date]:
        """Bounds of the analysis period.

        Uses the declared period, else the span of completion dates, else
        the week containing `today`.
        """
        if self.period_start is not None and self.period_end is not None:
            return self.period_start, self.period_end

        completed = sorted(
            task.completed_at.date() for task in self.tasks if task.completed_at is not None
        )
        start = self.period_start or (completed[0] if completed else None)
        end = self.period_end or (completed[-1] if completed else None)
        if start is None or end is None:
            return week_bounds(today or date.today())
        return start, end

    def to_record(self) -> SnapshotRecord:
        period = None
        if self.period_start is not None and self.period_end is not None:
            period = PeriodRecord(
                start=self.period_start, end=self.period_end, type=self.period_type
            )
        return SnapshotRecord(
            members=[MemberRecord(id=m.id, name=m.name) for m in self.members],
            tasks=[
                TaskRecord(
                    id=task.task_id,
                    title=task.title,
                    category=task.category,
                    weight=task.weight,
                    priority=task.priority,
                    critical=task.critical,
                    recurrence=task.recurrence,
                    assigned_to=task.assigned_to,
                    completed_at=task.completed_at,
                    deadline=as_date(task.deadline) if task.deadline is not None else None,
                )
                for task in self.tasks
            ],
            exclusions=[
                ExclusionRecord(
                    member_id=e.member_id, start=e.start, end=e.end, reason=e.reason
                )
                for e in self.exclusions
            ],
            period=period,
            last_assigned_id=self.last_assigned_id,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON layout accepted by from_dict."""
        return self.to_record().model_dump(mode="json", exclude_none=True)

    @classmethod
    def from_record(cls, record: SnapshotRecord) -> "HouseholdSnapshot":
        period = record.period or PeriodRecord()
        return cls(
            members=[Member(id=m.id, name=m.name or m.id) for m in record.members],
            tasks=[
                TaskLoad(
                    task_id=t.id,
                    category=t.category,
                    weight=t.weight,
                    priority=t.priority,
                    critical=t.critical,
                    recurrence=t.recurrence,
                    completed_at=t.completed_at,
                    assigned_to=t.assigned_to,
                    title=t.title,
                    deadline=t.deadline,
                )
                for t in record.tasks
            ],
            exclusions=[
                MemberExclusion(member_id=e.member_id, start=e.start, end=e.end, reason=e.reason)
                for e in record.exclusions
            ],
            period_start=period.start,
            period_end=period.end,
            period_type=period.type,
            last_assigned_id=record.last_assigned_id,
        )

    @classmethod
    def from_dict(cls, data: Any) -> "HouseholdSnapshot":
        """Build a snapshot from decoded JSON."""
        try:
            record = SnapshotRecord.model_validate(data)
        except PydanticValidationError as exc:
            raise SnapshotError(_describe(exc)) from exc
        return cls.from_record(record)


def load_snapshot(path: Union[str, Path]) -> HouseholdSnapshot:
    """Read and parse a snapshot file.

    Raises:
        SnapshotError: If the file is missing, not JSON, or malformed.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SnapshotError(f"Cannot read snapshot {path}: {exc}") from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SnapshotError(f"Snapshot {path} is not valid JSON: {exc}") from exc
    return HouseholdSnapshot.from_dict(data)


def to_jsonable(value: Any) -> Any:
    """Convert engine results into JSON-compatible structures.

    Dataclasses become dicts, enums their values, dates ISO strings, and
    tuples lists. Dict keys are converted the same way.
    """
    return _RESULT_ADAPTER.dump_python(value, mode="json")


def _describe(exc: PydanticValidationError) -> str:
    """One line per problem, e.g. "tasks[3].id: Field required"."""
    problems = []
    for error in exc.errors():
        where = ""
        for part in error["loc"]:
            where += f"[{part}]" if isinstance(part, int) else f".{part}" if where else str(part)
        problems.append(f"{where or 'snapshot'}: {error['msg']}")
    return "; ".join(problems)
