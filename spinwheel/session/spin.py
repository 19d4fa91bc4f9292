"""
Spin Session - Drives one wheel from selection to recorded result.

LIFECYCLE:
1. start_spin(): pick a winner from the enabled participants and compute
   the rotation target. Nothing is recorded yet.
2. The caller animates the wheel for plan.duration_seconds.
3. complete_spin(spin_id): append the history entry (which also updates
   the last-selected marker) and fold the wheel rotation back into
   [0, 360).

Only one spin can be pending at a time. Selection and commit are split
so the presentation layer can animate before the result is durable.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import random
import threading
import uuid

from ..engine_core.errors import InsufficientParticipants, SpinInProgress, SpinNotFound
from ..engine_core.models import HistoryEntry, Participant
from ..engine_core.selection import (
    MIN_PARTICIPANTS,
    normalize_rotation,
    rotation_target,
    select,
)
from ..store import EntityStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpinPlan:
    """
    Everything the presentation layer needs to animate a spin.

    target_rotation is absolute; the wheel animates from start_rotation
    to target_rotation over duration_seconds.
    """
    spin_id: str
    index: int
    participant: Participant
    participant_count: int
    start_rotation: float
    target_rotation: float
    duration_seconds: float


class SpinSession:
    """
    One wheel's spin state.

    Usage:
        session = SpinSession(store)

        plan = session.start_spin()
        animate(plan.start_rotation, plan.target_rotation, plan.duration_seconds)
        entry = session.complete_spin(plan.spin_id)
    """

    def __init__(
        self,
        store: EntityStore,
        rng: random.Random | None = None,
        current_rotation: float = 0.0,
    ):
        self.store = store
        self.rng = rng or random.Random()
        self.current_rotation = current_rotation
        self._pending: SpinPlan | None = None
        self._lock = threading.Lock()

    @property
    def pending(self) -> SpinPlan | None:
        return self._pending

    @property
    def is_spinning(self) -> bool:
        return self._pending is not None

    def can_spin(self) -> bool:
        """True when nothing is pending and at least two participants are enabled."""
        if self.is_spinning:
            return False
        return len(self.store.list_enabled_participants()) >= MIN_PARTICIPANTS

    def start_spin(self) -> SpinPlan:
        """
        Select a winner and plan the animation.

        Raises:
            SpinInProgress: a previous spin hasn't been completed or cancelled
            InsufficientParticipants: fewer than two enabled participants
        """
        with self._lock:
            if self._pending is not None:
                raise SpinInProgress(f"Spin {self._pending.spin_id} is still pending")

            participants = self.store.list_enabled_participants()
            if len(participants) < MIN_PARTICIPANTS:
                raise InsufficientParticipants(available=len(participants))

            settings = self.store.get_settings()
            selection = select(
                participants,
                last_selected_id=self.store.get_last_selected(),
                rng=self.rng,
            )
            target = rotation_target(
                selection.index,
                len(participants),
                self.current_rotation,
                settings.rotation_direction,
            )

            plan = SpinPlan(
                spin_id=uuid.uuid4().hex,
                index=selection.index,
                participant=selection.participant,
                participant_count=len(participants),
                start_rotation=self.current_rotation,
                target_rotation=target,
                duration_seconds=settings.animation_duration_seconds,
            )
            self._pending = plan

        logger.info(
            "Spin %s selected %s (slice %d of %d)",
            plan.spin_id, plan.participant.name, plan.index + 1, plan.participant_count,
        )
        return plan

    def complete_spin(self, spin_id: str) -> HistoryEntry:
        """
        Record the pending spin's winner.

        Raises:
            SpinNotFound: spin_id doesn't match the pending spin
        """
        with self._lock:
            plan = self._pending
            if plan is None or plan.spin_id != spin_id:
                raise SpinNotFound(f"No pending spin with id {spin_id}")

            entry = self.store.append_history(plan.participant.id, plan.participant.name)
            self.current_rotation = normalize_rotation(plan.target_rotation)
            self._pending = None

        logger.info("Spin %s recorded as #%d", spin_id, entry.sequence_number)
        return entry

    def cancel_spin(self) -> bool:
        """Drop the pending spin without recording it."""
        with self._lock:
            cancelled = self._pending is not None
            self._pending = None
        return cancelled

    def spin(self) -> tuple[SpinPlan, HistoryEntry]:
        """Select and record in one step, for callers that don't animate."""
        plan = self.start_spin()
        return plan, self.complete_spin(plan.spin_id)
