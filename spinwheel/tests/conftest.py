"""
Pytest fixtures for Spinwheel tests.
"""

import random

import pytest

from ..engine_core.models import HistoryEntry, Participant
from ..store import EntityStore, MemorySubstrate


def make_participant(pid: str, name: str | None = None, enabled: bool = True) -> Participant:
    return Participant(
        id=pid,
        name=name or pid.upper(),
        color="#FF6B6B",
        enabled=enabled,
        created_at="2024-01-01T00:00:00+00:00",
    )


def make_history(*participant_ids: str) -> list[HistoryEntry]:
    """Build a history log, oldest first, from a sequence of winner ids."""
    return [
        HistoryEntry(
            id=f"h{i}",
            participant_id=pid,
            participant_name=pid.upper(),
            timestamp=f"2024-01-01T00:00:{i:02d}+00:00",
            sequence_number=i,
        )
        for i, pid in enumerate(participant_ids, start=1)
    ]


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source so selection is reproducible."""
    return random.Random(1234)


@pytest.fixture
def substrate() -> MemorySubstrate:
    return MemorySubstrate()


@pytest.fixture
def store(substrate: MemorySubstrate) -> EntityStore:
    """Empty in-memory store."""
    return EntityStore(substrate)


@pytest.fixture
def populated_store(store: EntityStore) -> EntityStore:
    """Store with Alice, Bob and Carol on the wheel."""
    for name in ("Alice", "Bob", "Carol"):
        store.add_participant(name)
    return store
