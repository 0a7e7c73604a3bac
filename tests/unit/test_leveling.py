"""Leveling curve tests: XP application, cascading level-ups, validation."""

import pytest

from studyquest.progression.errors import InvalidCounterState
from studyquest.progression.leveling import (
    LevelState,
    apply_xp,
    cumulative_xp_for_level,
    next_requirement,
    xp_progress_percent,
)


class TestApplyXP:
    """Test apply_xp normalization."""

    def test_crossing_one_threshold(self):
        level = LevelState(current_level=1, total_xp=0, current_xp=450, next_level_xp=500)
        after = apply_xp(level, 100)
        assert after.current_level == 2
        assert after.current_xp == 50
        assert after.next_level_xp == 750
        assert after.total_xp == 100

    def test_below_threshold_accumulates(self):
        after = apply_xp(LevelState(), 499)
        assert after.current_level == 1
        assert after.current_xp == 499
        assert after.next_level_xp == 500

    def test_exact_threshold_levels_up(self):
        after = apply_xp(LevelState(), 500)
        assert after.current_level == 2
        assert after.current_xp == 0
        assert after.next_level_xp == 750

    def test_cascading_level_ups(self):
        """One large delta applies every level-up it pays for."""
        after = apply_xp(LevelState(), 4062)
        assert after.current_level == 5
        assert after.current_xp == 0
        assert after.next_level_xp == 2530
        assert after.total_xp == 4062

    def test_zero_delta_is_noop(self):
        level = LevelState(current_level=3, total_xp=1300, current_xp=50, next_level_xp=1125)
        assert apply_xp(level, 0) == level

    def test_negative_delta_rejected(self):
        with pytest.raises(InvalidCounterState):
            apply_xp(LevelState(), -10)

    def test_input_not_mutated(self):
        level = LevelState()
        apply_xp(level, 1000)
        assert level == LevelState()


class TestCurve:
    """The requirement grows by 1.5x, rounded down."""

    def test_requirement_sequence(self):
        requirements = [500]
        for _ in range(5):
            requirements.append(next_requirement(requirements[-1]))
        assert requirements == [500, 750, 1125, 1687, 2530, 3795]

    @pytest.mark.parametrize(
        ("target", "expected"),
        [(1, 0), (2, 500), (3, 1250), (4, 2375), (5, 4062), (6, 6592), (10, 37424), (11, 56634)],
    )
    def test_cumulative_xp(self, target, expected):
        assert cumulative_xp_for_level(target) == expected

    def test_cumulative_matches_apply(self):
        after = apply_xp(LevelState(), cumulative_xp_for_level(8))
        assert after.current_level == 8
        assert after.current_xp == 0


class TestProgressPercent:
    def test_half_way(self):
        assert xp_progress_percent(LevelState(total_xp=250, current_xp=250)) == 50

    def test_never_reports_full(self):
        assert xp_progress_percent(LevelState(total_xp=499, current_xp=499)) == 99


class TestValidate:
    """Malformed ledgers are rejected, never repaired."""

    def test_default_is_valid(self):
        LevelState().validate()

    @pytest.mark.parametrize(
        "level",
        [
            LevelState(current_level=0),
            LevelState(total_xp=-1),
            LevelState(next_level_xp=0),
            LevelState(current_level=1, total_xp=9000, current_xp=9000, next_level_xp=500),
            LevelState(current_xp=500, next_level_xp=500),
        ],
    )
    def test_invalid_states(self, level):
        with pytest.raises(InvalidCounterState):
            level.validate()

    def test_current_xp_may_exceed_total_xp(self):
        """A ledger seeded with in-level XP but no recorded total is accepted."""
        LevelState(current_level=1, total_xp=0, current_xp=450, next_level_xp=500).validate()
