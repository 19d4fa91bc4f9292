"""
Tests for winner selection and rotation targets.

Tests:
- Uniform draw over enabled participants
- Re-roll guard against repeating the previous winner
- Rotation target geometry and direction
- Rotation normalization
"""

import random
from collections import Counter

import pytest

from ..engine_core.errors import InsufficientParticipants
from ..engine_core.models import RotationDirection
from ..engine_core.selection import (
    MAX_REROLLS,
    normalize_rotation,
    rotation_target,
    select,
    slice_angle,
    slice_center,
)
from .conftest import make_participant


class ScriptedRandom:
    """Random stand-in that returns queued indices and counts draws."""

    def __init__(self, *values: int, repeat_last: bool = True):
        self.values = list(values)
        self.repeat_last = repeat_last
        self.calls = 0

    def randrange(self, n: int) -> int:
        self.calls += 1
        if len(self.values) > 1 or not self.repeat_last:
            return self.values.pop(0)
        return self.values[0]


@pytest.fixture
def three():
    return [make_participant("a"), make_participant("b"), make_participant("c")]


class TestSelect:
    """Tests for select()."""

    def test_requires_two_participants(self):
        with pytest.raises(InsufficientParticipants) as exc_info:
            select([make_participant("a")])
        assert exc_info.value.available == 1

    def test_empty_roster_raises(self):
        with pytest.raises(InsufficientParticipants):
            select([])

    def test_result_is_a_supplied_participant(self, three, rng):
        for _ in range(50):
            selection = select(three, rng=rng)
            assert three[selection.index] is selection.participant

    def test_no_previous_winner_takes_first_draw(self, three):
        scripted = ScriptedRandom(0)
        selection = select(three, rng=scripted)
        assert selection.index == 0
        assert scripted.calls == 1

    def test_rerolls_away_from_previous_winner(self, three):
        scripted = ScriptedRandom(0, 0, 2)
        selection = select(three, last_selected_id="a", rng=scripted)
        assert selection.participant.id == "c"
        assert scripted.calls == 3

    def test_accepts_repeat_after_bounded_rerolls(self, three):
        """A draw that keeps colliding is accepted after MAX_REROLLS re-rolls."""
        scripted = ScriptedRandom(1)
        selection = select(three, last_selected_id="b", rng=scripted)
        assert selection.participant.id == "b"
        assert scripted.calls == MAX_REROLLS + 1

    def test_unknown_previous_winner_is_ignored(self, three):
        scripted = ScriptedRandom(1)
        selection = select(three, last_selected_id="gone", rng=scripted)
        assert selection.participant.id == "b"
        assert scripted.calls == 1

    def test_previous_winner_is_rarely_repeated(self, three):
        rng = random.Random(42)
        counts = Counter(
            select(three, last_selected_id="a", rng=rng).participant.id
            for _ in range(1000)
        )
        assert counts["a"] < 1000 / 3
        assert counts["b"] > 300
        assert counts["c"] > 300

    def test_roughly_uniform_without_previous_winner(self, three):
        rng = random.Random(7)
        counts = Counter(select(three, rng=rng).participant.id for _ in range(3000))
        for pid in ("a", "b", "c"):
            assert 800 < counts[pid] < 1200


class TestRotation:
    """Tests for the rotation target."""

    def test_slice_geometry(self):
        assert slice_angle(4) == 90.0
        assert slice_center(0, 4) == 45.0
        assert slice_center(3, 4) == 315.0

    def test_slice_center_out_of_range(self):
        with pytest.raises(ValueError):
            slice_center(4, 4)

    def test_clockwise_target(self):
        assert rotation_target(0, 4, 0.0) == pytest.approx(1845.0)
        assert rotation_target(2, 4, 0.0) == pytest.approx(1665.0)

    def test_counter_clockwise_target(self):
        target = rotation_target(0, 4, 0.0, RotationDirection.COUNTER_CLOCKWISE)
        assert target == pytest.approx(-1845.0)

    def test_integer_direction(self):
        assert rotation_target(0, 4, 0.0, -1) == rotation_target(
            0, 4, 0.0, RotationDirection.COUNTER_CLOCKWISE
        )

    def test_invalid_direction(self):
        with pytest.raises(ValueError):
            rotation_target(0, 4, 0.0, 2)

    def test_target_is_relative_to_current_rotation(self):
        assert rotation_target(1, 3, 100.0) == pytest.approx(100.0 + rotation_target(1, 3, 0.0))

    def test_at_least_five_full_turns(self):
        for index in range(6):
            assert rotation_target(index, 6, 0.0) >= 5 * 360 - 270

    def test_normalize_rotation(self):
        assert normalize_rotation(1845.0) == pytest.approx(45.0)
        assert normalize_rotation(-1845.0) == pytest.approx(315.0)
        assert normalize_rotation(0.0) == 0.0
