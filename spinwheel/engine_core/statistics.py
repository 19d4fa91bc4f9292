"""
Statistics - Per-participant counters derived from the spin history.

Computed in one ordered pass over the log. Log order is authoritative;
timestamps are not consulted.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from .models import HistoryEntry, Participant


@dataclass
class ParticipantStats:
    """Derived counters for one participant."""
    participant_id: str
    win_count: int = 0
    percentage: float = 0.0
    current_streak: int = 0
    longest_streak: int = 0


def compute_statistics(
    participants: Iterable[Participant],
    history: Sequence[HistoryEntry],
) -> dict[str, ParticipantStats]:
    """
    Tally wins and streaks for every current participant.

    Entries that point at deleted participants count toward the total
    (and so toward everyone's percentage) and end whatever run was in
    progress, but are not credited to anyone.

    Returns:
        Mapping participant_id -> ParticipantStats, in roster order
    """
    stats = {p.id: ParticipantStats(participant_id=p.id) for p in participants}

    run_owner: str | None = None
    run_length = 0

    for entry in history:
        owner = entry.participant_id
        record = stats.get(owner)
        if record is not None:
            record.win_count += 1

        if owner == run_owner:
            run_length += 1
            continue

        _commit_run(stats, run_owner, run_length)
        run_owner = owner
        run_length = 1

    # The last run is still open
    _commit_run(stats, run_owner, run_length)
    final = stats.get(run_owner) if run_owner is not None else None
    if final is not None:
        final.current_streak = run_length

    total = len(history)
    for record in stats.values():
        record.percentage = _percentage(record.win_count, total)

    return stats


def _percentage(count: int, total: int) -> float:
    # Half-up to one decimal: 1 of 16 is 6.3, not 6.2
    if not total:
        return 0.0
    share = Decimal(count * 100) / Decimal(total)
    return float(share.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _commit_run(stats: dict[str, ParticipantStats], owner: str | None, length: int):
    if owner is None:
        return
    record = stats.get(owner)
    if record is not None and length > record.longest_streak:
        record.longest_streak = length


def ranked(stats: dict[str, ParticipantStats]) -> list[ParticipantStats]:
    """Order records by win count, most wins first. Ties keep roster order."""
    return sorted(stats.values(), key=lambda s: -s.win_count)
