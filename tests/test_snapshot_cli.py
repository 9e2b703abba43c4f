"""Tests for snapshot parsing and the command line tool."""

import json
from datetime import date, datetime

import pytest

from fairload.cli import create_sample_household, main
from fairload.domain.models import (
    FairnessStatus,
    PeriodType,
    Recurrence,
    TaskCategory,
    TaskLoad,
)
from fairload.snapshot import HouseholdSnapshot, SnapshotError, load_snapshot, to_jsonable


@pytest.fixture
def snapshot_data():
    return {
        "members": [{"id": "A", "name": "Alex"}, {"id": "B", "name": "Sam"}],
        "tasks": [
            {
                "id": "t1",
                "title": "Dentist",
                "category": "health",
                "priority": 1,
                "assigned_to": "A",
                "completed_at": "2024-01-02T09:30:00",
            },
            {"id": "t2", "category": "gardening", "recurrence": "once", "assigned_to": "B"},
            {"task_id": "t3", "weight": 2.5},
        ],
        "exclusions": [
            {"member_id": "B", "start": "2024-01-03", "end": "2024-01-04", "reason": "travel"}
        ],
        "period": {"start": "2024-01-01", "end": "2024-01-07", "type": "week"},
        "last_assigned_id": "A",
    }


@pytest.fixture
def snapshot_file(tmp_path):
    """Write the sample household to disk."""
    path = tmp_path / "household.json"
    path.write_text(json.dumps(create_sample_household().to_dict()), encoding="utf-8")
    return path


class TestHouseholdSnapshot:
    """Tests for snapshot parsing."""

    def test_from_dict(self, snapshot_data):
        snapshot = HouseholdSnapshot.from_dict(snapshot_data)

        assert [m.id for m in snapshot.members] == ["A", "B"]
        assert snapshot.tasks[0].category == TaskCategory.HEALTH
        assert snapshot.tasks[0].priority == 1
        assert snapshot.tasks[0].completed_at == datetime(2024, 1, 2, 9, 30)
        assert snapshot.tasks[1].category == TaskCategory.OTHER
        assert snapshot.tasks[1].recurrence == Recurrence.ONE_TIME
        assert snapshot.tasks[2].task_id == "t3"
        assert snapshot.tasks[2].weight == 2.5
        assert snapshot.tasks[2].assigned_to is None
        assert snapshot.exclusions[0].start == date(2024, 1, 3)
        assert snapshot.period_type == PeriodType.WEEK
        assert snapshot.last_assigned_id == "A"

    def test_member_name_defaults_to_id(self):
        snapshot = HouseholdSnapshot.from_dict({"members": [{"id": "A"}]})
        assert snapshot.members[0].name == "A"

    def test_missing_members(self):
        with pytest.raises(SnapshotError, match="members"):
            HouseholdSnapshot.from_dict({"tasks": []})

    def test_missing_task_id(self, snapshot_data):
        snapshot_data["tasks"].append({"category": "health"})
        with pytest.raises(SnapshotError, match=r"tasks\[3\]"):
            HouseholdSnapshot.from_dict(snapshot_data)

    def test_bad_date(self, snapshot_data):
        snapshot_data["exclusions"][0]["end"] = "next tuesday"
        with pytest.raises(SnapshotError, match="exclusions"):
            HouseholdSnapshot.from_dict(snapshot_data)

    def test_bad_weight(self, snapshot_data):
        snapshot_data["tasks"][0]["weight"] = "heavy"
        with pytest.raises(SnapshotError, match="weight"):
            HouseholdSnapshot.from_dict(snapshot_data)

    def test_numeric_ids_become_strings(self):
        snapshot = HouseholdSnapshot.from_dict(
            {"members": [{"id": 1}], "tasks": [{"id": 7, "assigned_to": 1}]}
        )
        assert snapshot.members[0].id == "1"
        assert snapshot.tasks[0].task_id == "7"
        assert snapshot.tasks[0].assigned_to == "1"

    def test_null_lists(self):
        snapshot = HouseholdSnapshot.from_dict(
            {"members": [{"id": "A"}], "tasks": None, "exclusions": None}
        )
        assert snapshot.tasks == []
        assert snapshot.exclusions == []

    def test_deadline(self, snapshot_data):
        snapshot_data["tasks"][1]["deadline"] = "2024-01-05"
        snapshot = HouseholdSnapshot.from_dict(snapshot_data)

        assert snapshot.tasks[1].deadline == date(2024, 1, 5)
        assert snapshot.tasks[0].deadline is None

    def test_error_names_every_problem(self, snapshot_data):
        """Each invalid field is reported with its location."""
        snapshot_data["tasks"][0]["weight"] = "heavy"
        snapshot_data["exclusions"][0]["start"] = "soon"
        with pytest.raises(SnapshotError) as excinfo:
            HouseholdSnapshot.from_dict(snapshot_data)

        message = str(excinfo.value)
        assert "tasks[0].weight" in message
        assert "exclusions[0].start" in message

    def test_not_an_object(self):
        with pytest.raises(SnapshotError, match="snapshot"):
            HouseholdSnapshot.from_dict(["A", "B"])

    def test_snapshot_error_is_value_error(self):
        assert issubclass(SnapshotError, ValueError)

    def test_to_dict_reloads(self):
        """The sample household survives serialization."""
        original = create_sample_household()
        reloaded = HouseholdSnapshot.from_dict(json.loads(json.dumps(original.to_dict())))
        assert reloaded == original

    def test_resolve_period(self, snapshot_data):
        snapshot = HouseholdSnapshot.from_dict(snapshot_data)
        assert snapshot.resolve_period() == (date(2024, 1, 1), date(2024, 1, 7))

        del snapshot_data["period"]
        snapshot = HouseholdSnapshot.from_dict(snapshot_data)
        assert snapshot.resolve_period() == (date(2024, 1, 2), date(2024, 1, 2))

    def test_resolve_period_without_completions(self):
        snapshot = HouseholdSnapshot.from_dict({"members": [{"id": "A"}]})
        assert snapshot.resolve_period(today=date(2024, 1, 3)) == (
            date(2024, 1, 1),
            date(2024, 1, 7),
        )

    def test_load_snapshot_errors(self, tmp_path):
        with pytest.raises(SnapshotError):
            load_snapshot(tmp_path / "missing.json")

        broken = tmp_path / "broken.json"
        broken.write_text("{not json", encoding="utf-8")
        with pytest.raises(SnapshotError, match="not valid JSON"):
            load_snapshot(broken)


class TestToJsonable:
    """Tests for result serialization."""

    def test_converts_nested_values(self):
        task = TaskLoad("t1", category=TaskCategory.HEALTH, completed_at=datetime(2024, 1, 2, 9))
        data = to_jsonable({"task": task, "status": FairnessStatus.GOOD, "day": date(2024, 1, 2)})

        assert data["task"]["category"] == "health"
        assert data["task"]["completed_at"] == "2024-01-02T09:00:00"
        assert data["status"] == "good"
        assert data["day"] == "2024-01-02"
        json.dumps(data)

    def test_enum_dict_keys(self):
        assert to_jsonable({TaskCategory.SCHOOL: 3.0}) == {"school": 3.0}

    def test_tuples_become_lists(self):
        assert to_jsonable((1, (2, 3))) == [1, [2, 3]]


class TestCli:
    """Smoke tests for the command line tool."""

    def test_demo(self, capsys):
        assert main(["demo"]) == 0

        output = capsys.readouterr().out
        assert "Balance score" in output
        assert "Trend:" in output
        assert "Fatigue" in output
        assert "felt weight" in output

    def test_demo_writes_snapshot(self, tmp_path, capsys):
        path = tmp_path / "demo.json"
        assert main(["demo", "--output", str(path)]) == 0

        snapshot = load_snapshot(path)
        assert len(snapshot.members) == 2

    def test_analyze(self, snapshot_file, capsys):
        assert main(["analyze", str(snapshot_file)]) == 0

        data = json.loads(capsys.readouterr().out)
        assert set(data) == {
            "distribution",
            "alert",
            "fairness",
            "categories",
            "weekly_stats",
            "fatigue",
        }
        assert [state["member_id"] for state in data["fatigue"]] == ["M01", "M02"]
        assert 0 <= data["fairness"]["overall_score"] <= 100
        assert data["fairness"]["period"]["start"] == "2024-01-01"

    def test_analyze_with_period_override(self, snapshot_file, capsys):
        argv = ["analyze", str(snapshot_file), "--start", "2024-01-08", "--end", "2024-01-14"]
        assert main(argv) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["fairness"]["period"] == {
            "start": "2024-01-08",
            "end": "2024-01-14",
            "type": "custom",
        }

    def test_suggest(self, snapshot_file, capsys):
        assert main(["suggest", str(snapshot_file), "--optimize", "--time-limit", "5"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert "suggestions" in data
        assert [a["task_id"] for a in data["assignments"]] == ["P05"]
        assert data["optimized"]["status"] in ("OPTIMAL", "FEASIBLE")

    def test_trend(self, snapshot_file, capsys):
        assert main(["trend", str(snapshot_file)]) == 0

        data = json.loads(capsys.readouterr().out)
        assert len(data["trend"]["periods"]) == 4
        assert data["trend"]["direction"] in ("improving", "stable", "declining")

    def test_invalid_snapshot_exits_with_error(self, tmp_path, capsys):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"members": [{"id": "A"}, {"id": "A"}]}), encoding="utf-8")

        assert main(["analyze", str(path)]) == 1
        assert "duplicate_member" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        assert main(["analyze", str(tmp_path / "nope.json")]) == 1
        assert "error:" in capsys.readouterr().err

    def test_no_command(self, capsys):
        assert main([]) == 1
