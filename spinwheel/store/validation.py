"""
Participant validation - Name and roster checks.

Validates that:
1. Names are 2-15 characters after trimming
2. Names are unique (case-insensitive) among current participants
3. The roster stays within the participant limit
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable

from ..engine_core.errors import CapacityExceeded, DuplicateName, InvalidName
from ..engine_core.models import MAX_NAME_LENGTH, MAX_PARTICIPANTS, MIN_NAME_LENGTH, Participant


@dataclass
class ValidationResult:
    """Result of validation, with errors."""
    valid: bool
    errors: list[str] = field(default_factory=list)


def normalize_name(name: str) -> str:
    return name.strip()


def name_taken(
    name: str,
    participants: Iterable[Participant],
    exclude_id: str | None = None,
) -> bool:
    """Case-insensitive match against current participants."""
    wanted = normalize_name(name).casefold()
    return any(
        p.name.casefold() == wanted
        for p in participants
        if p.id != exclude_id
    )


def check_name(
    name: str,
    participants: list[Participant],
    exclude_id: str | None = None,
) -> ValidationResult:
    """Check a proposed name without raising."""
    errors = []
    name = normalize_name(name)

    if len(name) < MIN_NAME_LENGTH:
        errors.append(f"Name must be at least {MIN_NAME_LENGTH} characters")
    elif len(name) > MAX_NAME_LENGTH:
        errors.append(f"Name cannot exceed {MAX_NAME_LENGTH} characters")
    elif name_taken(name, participants, exclude_id=exclude_id):
        errors.append("This name already exists")

    return ValidationResult(valid=not errors, errors=errors)


def validate_new_participant(name: str, participants: list[Participant]) -> str:
    """
    Validate a participant about to be added.

    Returns:
        The trimmed name

    Raises:
        InvalidName, DuplicateName, CapacityExceeded
    """
    name = validate_name(name, participants)
    if len(participants) >= MAX_PARTICIPANTS:
        raise CapacityExceeded(f"Maximum {MAX_PARTICIPANTS} participants reached")
    return name


def validate_name(
    name: str,
    participants: list[Participant],
    exclude_id: str | None = None,
) -> str:
    """Raise on an invalid name, return it trimmed otherwise."""
    name = normalize_name(name)
    if not MIN_NAME_LENGTH <= len(name) <= MAX_NAME_LENGTH:
        raise InvalidName(
            f"Name must be between {MIN_NAME_LENGTH} and {MAX_NAME_LENGTH} characters"
        )
    if name_taken(name, participants, exclude_id=exclude_id):
        raise DuplicateName(f"A participant named '{name}' already exists")
    return name
