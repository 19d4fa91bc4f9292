"""
Tests for the spin lifecycle.

Tests:
- Start/complete/cancel
- Guards (too few participants, spin already pending, stale spin id)
- Rotation bookkeeping
- Last-winner marker feeding the next selection
"""

import random

import pytest

from ..engine_core.errors import InsufficientParticipants, SpinInProgress, SpinNotFound
from ..engine_core.models import RotationDirection
from ..engine_core.selection import normalize_rotation, rotation_target
from ..session import SpinSession


@pytest.fixture
def session(populated_store, rng):
    return SpinSession(populated_store, rng=rng)


class TestSpinSession:
    """Tests for SpinSession."""

    def test_start_does_not_record(self, session, populated_store):
        plan = session.start_spin()

        assert session.is_spinning
        assert populated_store.list_history() == []
        assert plan.participant in populated_store.list_enabled_participants()
        assert plan.participant_count == 3

    def test_complete_records_winner(self, session, populated_store):
        plan = session.start_spin()
        entry = session.complete_spin(plan.spin_id)

        assert not session.is_spinning
        assert entry.participant_id == plan.participant.id
        assert entry.participant_name == plan.participant.name
        assert entry.sequence_number == 1
        assert populated_store.get_last_selected() == plan.participant.id

    def test_plan_uses_settings(self, session, populated_store):
        populated_store.update_settings(
            spin_duration_seconds=4,
            animation_speed_multiplier=1.5,
            rotation_direction=RotationDirection.COUNTER_CLOCKWISE,
        )
        plan = session.start_spin()

        assert plan.duration_seconds == 6.0
        assert plan.target_rotation == pytest.approx(
            rotation_target(plan.index, 3, 0.0, RotationDirection.COUNTER_CLOCKWISE)
        )
        assert plan.target_rotation < 0

    def test_rotation_is_normalized_after_complete(self, session):
        plan = session.start_spin()
        session.complete_spin(plan.spin_id)

        assert session.current_rotation == pytest.approx(normalize_rotation(plan.target_rotation))
        assert 0 <= session.current_rotation < 360

        second = session.start_spin()
        assert second.start_rotation == session.current_rotation

    def test_second_start_while_pending(self, session):
        session.start_spin()
        with pytest.raises(SpinInProgress):
            session.start_spin()

    def test_complete_with_wrong_id(self, session):
        session.start_spin()
        with pytest.raises(SpinNotFound):
            session.complete_spin("not-the-spin")
        assert session.is_spinning

    def test_complete_twice(self, session):
        plan = session.start_spin()
        session.complete_spin(plan.spin_id)
        with pytest.raises(SpinNotFound):
            session.complete_spin(plan.spin_id)

    def test_cancel(self, session, populated_store):
        session.start_spin()

        assert session.cancel_spin() is True
        assert session.cancel_spin() is False
        assert populated_store.list_history() == []
        session.start_spin()

    def test_needs_two_enabled(self, populated_store, rng):
        for participant in populated_store.list_participants()[1:]:
            populated_store.toggle_participant_enabled(participant.id)
        session = SpinSession(populated_store, rng=rng)

        assert not session.can_spin()
        with pytest.raises(InsufficientParticipants):
            session.start_spin()

    def test_can_spin(self, session):
        assert session.can_spin()
        session.start_spin()
        assert not session.can_spin()

    def test_disabled_never_selected(self, populated_store):
        carol = populated_store.list_participants()[2]
        populated_store.toggle_participant_enabled(carol.id)
        session = SpinSession(populated_store, rng=random.Random(3))

        for _ in range(30):
            _, entry = session.spin()
            assert entry.participant_id != carol.id

    def test_avoids_repeating_last_winner(self, populated_store):
        session = SpinSession(populated_store, rng=random.Random(99))
        winners = [session.spin()[1].participant_id for _ in range(100)]
        repeats = sum(1 for a, b in zip(winners, winners[1:]) if a == b)
        assert repeats == 0

    def test_sequence_numbers_across_spins(self, session):
        numbers = [session.spin()[1].sequence_number for _ in range(5)]
        assert numbers == [1, 2, 3, 4, 5]
