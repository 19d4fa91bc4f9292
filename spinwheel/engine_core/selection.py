"""
Selection - Picks the winner and computes where the wheel should stop.

Selection is uniform over the enabled participants with a best-effort
guard against picking the previous winner again: a colliding draw is
re-rolled a bounded number of times, and if every re-roll collides the
last draw is accepted.

The rotation target is a pure function of the chosen index, so the
same pick always animates to the same angle.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence
import random

from .errors import InsufficientParticipants
from .models import Participant, RotationDirection


MIN_PARTICIPANTS = 2
MAX_REROLLS = 10
FULL_ROTATIONS = 5
POINTER_ANGLE = 90.0

_default_rng = random.Random()


@dataclass(frozen=True)
class Selection:
    """The outcome of one draw."""
    index: int
    participant: Participant


def select(
    participants: Sequence[Participant],
    last_selected_id: str | None = None,
    rng: random.Random | None = None,
) -> Selection:
    """
    Pick a participant at random.

    Args:
        participants: Enabled participants, in wheel order
        last_selected_id: Id of the previous winner, if any
        rng: Random source (module-level random if omitted)

    Returns:
        Selection with the chosen index and participant

    Raises:
        InsufficientParticipants: fewer than two participants supplied
    """
    count = len(participants)
    if count < MIN_PARTICIPANTS:
        raise InsufficientParticipants(available=count, required=MIN_PARTICIPANTS)

    rng = rng or _default_rng
    index = rng.randrange(count)

    last_index = _index_of(participants, last_selected_id)
    if last_index is not None:
        attempts = 0
        while index == last_index and attempts < MAX_REROLLS:
            index = rng.randrange(count)
            attempts += 1

    return Selection(index=index, participant=participants[index])


def _index_of(participants: Sequence[Participant], participant_id: str | None) -> int | None:
    if participant_id is None:
        return None
    for i, participant in enumerate(participants):
        if participant.id == participant_id:
            return i
    return None


def slice_angle(participant_count: int) -> float:
    """Angular width of one slice in degrees."""
    if participant_count < 1:
        raise ValueError("participant_count must be positive")
    return 360.0 / participant_count


def slice_center(index: int, participant_count: int) -> float:
    """Angle of the middle of slice `index`."""
    if not 0 <= index < participant_count:
        raise ValueError(f"index {index} out of range for {participant_count} slices")
    width = slice_angle(participant_count)
    return index * width + width / 2


def rotation_target(
    chosen_index: int,
    participant_count: int,
    current_rotation: float,
    direction: RotationDirection | int = RotationDirection.CLOCKWISE,
) -> float:
    """
    Absolute rotation that brings the chosen slice to the pointer.

    Five full turns plus the offset that lines the slice center up with
    the pointer at 90 degrees, signed by direction and added to the
    rotation the wheel is currently at.
    """
    sign = _direction_sign(direction)
    offset = FULL_ROTATIONS * 360 + (POINTER_ANGLE - slice_center(chosen_index, participant_count))
    return current_rotation + offset * sign


def normalize_rotation(rotation: float) -> float:
    """Fold an accumulated rotation back into [0, 360)."""
    return rotation % 360


def _direction_sign(direction: RotationDirection | int) -> int:
    if isinstance(direction, RotationDirection):
        return direction.sign
    if direction in (1, -1):
        return int(direction)
    raise ValueError(f"direction must be +1 or -1, got {direction!r}")
