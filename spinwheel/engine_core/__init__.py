"""
Engine Core - Selection, rotation targets and statistics.

The engine is pure:
1. Holds the domain models (participants, history, settings)
2. Picks a winner from the enabled participants
3. Computes the rotation the wheel animates to
4. Derives statistics from the history log

Persistence lives in spinwheel.store; nothing here reads or writes it.
"""

from .errors import (
    SpinwheelError,
    ValidationError,
    InvalidName,
    DuplicateName,
    CapacityExceeded,
    InsufficientParticipants,
    SpinInProgress,
    SpinNotFound,
    ParticipantNotFound,
    DecodeError,
    PersistenceError,
)
from .models import (
    Participant,
    HistoryEntry,
    SessionMarkers,
    Settings,
    RotationDirection,
    SliceAnimation,
    WinnerEffect,
    ViewSection,
)
from .selection import Selection, select, rotation_target, normalize_rotation
from .statistics import ParticipantStats, compute_statistics, ranked

__all__ = [
    "SpinwheelError",
    "ValidationError",
    "InvalidName",
    "DuplicateName",
    "CapacityExceeded",
    "InsufficientParticipants",
    "SpinInProgress",
    "SpinNotFound",
    "ParticipantNotFound",
    "DecodeError",
    "PersistenceError",
    "Participant",
    "HistoryEntry",
    "SessionMarkers",
    "Settings",
    "RotationDirection",
    "SliceAnimation",
    "WinnerEffect",
    "ViewSection",
    "Selection",
    "select",
    "rotation_target",
    "normalize_rotation",
    "ParticipantStats",
    "compute_statistics",
    "ranked",
]
