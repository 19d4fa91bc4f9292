"""
Engine errors.

Nothing in here is fatal. Validation and selection errors become
user-facing messages; decode and persistence errors are logged and
the caller falls back to defaults.
"""

from __future__ import annotations


class SpinwheelError(Exception):
    """Base class for all spinwheel errors."""


class ValidationError(SpinwheelError):
    """Raised when a participant or setting fails validation."""

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = errors
        super().__init__("; ".join(errors))


class InvalidName(ValidationError):
    """Name is empty or outside the allowed length."""


class DuplicateName(ValidationError):
    """Another current participant already uses this name."""


class CapacityExceeded(ValidationError):
    """The wheel already holds the maximum number of participants."""


class InsufficientParticipants(SpinwheelError):
    """Selection needs at least two enabled participants."""

    def __init__(self, available: int, required: int = 2):
        self.available = available
        self.required = required
        super().__init__(
            f"Need at least {required} enabled participants to spin, have {available}"
        )


class SpinInProgress(SpinwheelError):
    """A spin is already waiting to be committed."""


class SpinNotFound(SpinwheelError):
    """No pending spin matches the given id."""


class DecodeError(SpinwheelError):
    """A share token could not be decoded."""


class PersistenceError(SpinwheelError):
    """Reading or writing the persistence substrate failed."""


class ParticipantNotFound(SpinwheelError):
    """No participant has the given id."""
