"""Tests for member fatigue."""

from datetime import date, datetime

import pytest

from fairload.domain.models import ChangeDirection, TaskLoad
from fairload.domain.policies import FatiguePolicy
from fairload.engine.fatigue import (
    build_fatigue_state,
    fatigue_level,
    fatigue_multiplier,
    load_trend,
)

REFERENCE = date(2024, 1, 14)


def done(task_id: str, member_id: str, weight: float, day: int) -> TaskLoad:
    return TaskLoad(
        task_id, weight=weight, assigned_to=member_id, completed_at=datetime(2024, 1, day, 9)
    )


@pytest.fixture
def heavy_streak():
    """Three heavy days in a row for A, plus noise that must not count."""
    return [
        done("t1", "A", 15, 12),
        done("t2", "A", 15, 13),
        done("t3", "A", 15, 14),
        done("t4", "B", 40, 14),
        TaskLoad("t5", weight=30, assigned_to="A"),
    ]


class TestFatigueMultiplier:
    """Tests for fatigue_multiplier."""

    @pytest.mark.parametrize(
        "level,expected",
        [
            (0, 1.0),
            (20, 1.0),
            (21, 1.1),
            (40, 1.1),
            (41, 1.2),
            (60, 1.2),
            (61, 1.4),
            (80, 1.4),
            (81, 1.6),
            (100, 1.6),
        ],
    )
    def test_tiers(self, level, expected):
        """Tier upper bounds are inclusive."""
        assert fatigue_multiplier(level) == expected

    def test_custom_tiers(self):
        policy = FatiguePolicy(multipliers=((50, 1.0),), burnout_multiplier=2.0)
        assert fatigue_multiplier(51, policy) == 2.0


class TestFatigueLevel:
    """Tests for fatigue_level."""

    def test_no_history_unknown_rest(self):
        """Without a known rest day a member starts at a moderate penalty."""
        assert fatigue_level([], "A", REFERENCE) == 10

    def test_rested_member(self):
        assert fatigue_level([], "A", REFERENCE, last_rest_day=REFERENCE) == 0

    def test_recent_rest_within_grace(self):
        """A rest day a week ago adds nothing."""
        assert fatigue_level([], "A", REFERENCE, last_rest_day=date(2024, 1, 7)) == 0

    def test_heavy_streak(self, heavy_streak):
        """Load, a three day heavy streak and 13 days without rest add up.

        45 / 7 / 12 * 50 = 26.8, streak 3 * 5 = 15, rest (13 - 7) * 2 = 12.
        """
        level = fatigue_level(heavy_streak, "A", REFERENCE, last_rest_day=date(2024, 1, 1))
        assert level == 54

    def test_rest_penalty_capped(self):
        """Long stretches without rest add at most 20."""
        level = fatigue_level([], "A", REFERENCE, last_rest_day=date(2023, 10, 1))
        assert level == 20

    def test_capped_at_100(self):
        tasks = [done(f"t{day}", "A", 100, day) for day in range(8, 15)]
        assert fatigue_level(tasks, "A", REFERENCE) == 100

    def test_streak_must_reach_reference_day(self):
        """A heavy streak that ended before the reference day adds nothing."""
        tasks = [done("t1", "A", 21, 12), done("t2", "A", 21, 13)]
        level = fatigue_level(tasks, "A", REFERENCE, last_rest_day=REFERENCE)

        # 42 / 7 / 12 * 50 = 25
        assert level == 25


class TestLoadTrend:
    """Tests for load_trend."""

    def test_no_load_is_stable(self):
        assert load_trend([], "A", REFERENCE) == ChangeDirection.STABLE

    def test_new_load_is_increasing(self):
        assert load_trend([done("t1", "A", 3, 10)], "A", REFERENCE) == ChangeDirection.INCREASING

    @pytest.mark.parametrize(
        "recent,expected",
        [
            (11, ChangeDirection.STABLE),
            (12, ChangeDirection.INCREASING),
            (8, ChangeDirection.DECREASING),
        ],
    )
    def test_relative_change(self, recent, expected):
        """Changes beyond 15% of the previous week count."""
        tasks = [done("t1", "A", 10, 3), done("t2", "A", recent, 10)]
        assert load_trend(tasks, "A", REFERENCE) == expected

    def test_older_load_ignored(self):
        """Load from before the previous window does not count."""
        tasks = [done("t1", "A", 50, 1)]
        assert load_trend(tasks, "A", date(2024, 1, 20)) == ChangeDirection.STABLE


class TestBuildFatigueState:
    """Tests for build_fatigue_state."""

    def test_state(self, heavy_streak):
        state = build_fatigue_state(
            heavy_streak, "A", datetime(2024, 1, 14, 20), last_rest_day=date(2024, 1, 1)
        )

        assert state.member_id == "A"
        assert state.fatigue_level == 54
        assert state.consecutive_high_load_days == 3
        assert state.recent_average_load == 6.4
        assert state.load_trend == ChangeDirection.INCREASING
        assert state.last_rest_day == date(2024, 1, 1)

    def test_idle_member(self, heavy_streak):
        state = build_fatigue_state(heavy_streak, "C", REFERENCE)

        assert state.fatigue_level == 10
        assert state.consecutive_high_load_days == 0
        assert state.recent_average_load == 0.0
        assert state.load_trend == ChangeDirection.STABLE
