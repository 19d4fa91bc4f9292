"""
Entity Store - Owns the persisted participants, history, settings and markers.

Every operation:
1. Reads the full snapshot from the substrate
2. Mutates an in-memory copy
3. Writes the full snapshot back

Each operation holds the store lock for the whole cycle, so concurrent
callers (e.g. FastAPI's thread pool) never interleave mid-write.

PERSISTENCE RULES:
- A failed read is logged and treated as an empty snapshot (defaults)
- A failed write is logged and the operation carries on
- Settings are stored sparsely; defaults are merged in at read time

VALIDATION:
- Mutating entry points enforce the roster invariants themselves
  (name length, case-insensitive uniqueness, participant limit), so
  no caller can bypass them
"""

from __future__ import annotations
from enum import Enum
from functools import wraps
from typing import Any, Callable, TypeVar
import logging
import threading

from ..engine_core.errors import PersistenceError, ValidationError
from ..engine_core.models import (
    COLOR_PALETTE,
    HISTORY_LIMIT,
    MAX_PARTICIPANTS,
    HistoryEntry,
    Participant,
    SessionMarkers,
    Settings,
    ViewSection,
    coerce_setting,
    new_id,
    settings_key,
    SETTINGS_KEYS,
    utc_now_iso,
)
from .substrate import Substrate
from .validation import name_taken, validate_name, validate_new_participant

logger = logging.getLogger(__name__)

NAMESPACE = "SpinningWheel"

USERS = "users"
HISTORY = "history"
SETTINGS = "settings"
LAST_VIEW = "lastView"
FIRST_VISIT = "firstVisit"
LAST_SELECTED = "lastSelected"

EXPORT_VERSION = "1.0"

F = TypeVar("F", bound=Callable[..., Any])


def _locked(method: F) -> F:
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper  # type: ignore[return-value]


class EntityStore:
    """
    Persistence layer for the wheel.

    Usage:
        store = EntityStore(MemorySubstrate())

        alice = store.add_participant("Alice")
        store.add_participant("Bob", color="#4ECDC4")

        entry = store.append_history(alice.id, alice.name)
        store.get_last_selected()  # alice.id
    """

    def __init__(self, substrate: Substrate, namespace: str = NAMESPACE):
        self.substrate = substrate
        self.namespace = namespace
        self._lock = threading.RLock()

    # =========================================================================
    # Snapshot I/O
    # =========================================================================

    def _read(self) -> dict[str, Any]:
        try:
            data = self.substrate.get(self.namespace)
        except PersistenceError as e:
            logger.error("Error reading store snapshot: %s", e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> bool:
        try:
            return self.substrate.set(self.namespace, data)
        except PersistenceError as e:
            logger.error("Error saving store snapshot: %s", e)
            return False

    @staticmethod
    def _section(data: dict[str, Any], key: str, kind: type) -> Any:
        """Stored value for key, or an empty kind() if it is missing or the wrong shape."""
        value = data.get(key)
        if value is None:
            return kind()
        if not isinstance(value, kind):
            logger.warning("Ignoring unreadable %s in store snapshot: %r", key, value)
            return kind()
        return value

    @staticmethod
    def _participants(data: dict[str, Any]) -> list[Participant]:
        participants = []
        for raw in EntityStore._section(data, USERS, list):
            try:
                participants.append(Participant.from_dict(raw))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping unreadable participant record %r: %s", raw, e)
        return participants

    @staticmethod
    def _history(data: dict[str, Any]) -> list[HistoryEntry]:
        history = []
        for raw in EntityStore._section(data, HISTORY, list):
            try:
                history.append(HistoryEntry.from_dict(raw))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping unreadable history record %r: %s", raw, e)
        return history

    # =========================================================================
    # Participants
    # =========================================================================

    @_locked
    def list_participants(self) -> list[Participant]:
        """All participants in roster order."""
        return self._participants(self._read())

    @_locked
    def list_enabled_participants(self) -> list[Participant]:
        """Participants that take part in selection, in roster order."""
        return [p for p in self.list_participants() if p.enabled]

    @_locked
    def get_participant(self, participant_id: str) -> Participant | None:
        for p in self.list_participants():
            if p.id == participant_id:
                return p
        return None

    @_locked
    def participant_exists(self, name: str, exclude_id: str | None = None) -> bool:
        """Case-insensitive name check among current participants."""
        return name_taken(name, self.list_participants(), exclude_id=exclude_id)

    @_locked
    def add_participant(self, name: str, color: str | None = None) -> Participant:
        """
        Add a participant to the roster.

        Args:
            name: Display name, trimmed before validation
            color: Slice color; the first unused palette color if omitted

        Raises:
            InvalidName, DuplicateName, CapacityExceeded
        """
        data = self._read()
        participants = self._participants(data)
        name = validate_new_participant(name, participants)

        participant = Participant(
            id=new_id(),
            name=name,
            color=color or self._next_color(participants),
            enabled=True,
            created_at=utc_now_iso(),
        )
        participants.append(participant)
        data[USERS] = [p.to_dict() for p in participants]
        self._write(data)

        logger.info("Added participant %s (%s)", participant.name, participant.id)
        return participant

    @_locked
    def update_participant(
        self,
        participant_id: str,
        name: str | None = None,
        color: str | None = None,
    ) -> Participant | None:
        """
        Edit a participant's name and/or color.

        Returns the updated participant, or None if the id is unknown.
        The participant's own current name doesn't count as a duplicate.
        """
        data = self._read()
        participants = self._participants(data)

        for i, p in enumerate(participants):
            if p.id != participant_id:
                continue
            changes: dict[str, Any] = {}
            if name is not None:
                changes["name"] = validate_name(name, participants, exclude_id=participant_id)
            if color is not None:
                changes["color"] = color
            updated = p.with_changes(**changes)
            participants[i] = updated
            data[USERS] = [q.to_dict() for q in participants]
            self._write(data)
            return updated

        return None

    @_locked
    def toggle_participant_enabled(self, participant_id: str) -> Participant | None:
        """Flip the enabled flag. Returns None if the id is unknown."""
        data = self._read()
        participants = self._participants(data)

        for i, p in enumerate(participants):
            if p.id == participant_id:
                updated = p.with_changes(enabled=not p.enabled)
                participants[i] = updated
                data[USERS] = [q.to_dict() for q in participants]
                self._write(data)
                return updated

        return None

    @_locked
    def delete_participant(self, participant_id: str) -> bool:
        """
        Remove a participant.

        History entries that reference it are kept.
        """
        data = self._read()
        participants = self._participants(data)
        remaining = [p for p in participants if p.id != participant_id]
        if len(remaining) == len(participants):
            return False

        data[USERS] = [p.to_dict() for p in remaining]
        self._write(data)
        logger.info("Deleted participant %s", participant_id)
        return True

    @staticmethod
    def _next_color(participants: list[Participant]) -> str:
        used = {p.color.upper() for p in participants}
        for color in COLOR_PALETTE:
            if color.upper() not in used:
                return color
        return COLOR_PALETTE[len(participants) % len(COLOR_PALETTE)]

    # =========================================================================
    # History
    # =========================================================================

    @_locked
    def list_history(self) -> list[HistoryEntry]:
        """History, oldest first."""
        return self._history(self._read())

    @_locked
    def append_history(self, participant_id: str, participant_name: str) -> HistoryEntry:
        """
        Record a spin result.

        Sequence numbers continue from the newest retained entry, so they
        stay strictly increasing across evictions. Only the most recent
        HISTORY_LIMIT entries are kept. Also records the winner as the
        last selected participant.
        """
        data = self._read()
        history = self._history(data)

        next_number = history[-1].sequence_number + 1 if history else 1
        entry = HistoryEntry(
            id=new_id(),
            participant_id=participant_id,
            participant_name=participant_name,
            timestamp=utc_now_iso(),
            sequence_number=next_number,
        )
        history.append(entry)

        if len(history) > HISTORY_LIMIT:
            history = history[-HISTORY_LIMIT:]

        data[HISTORY] = [e.to_dict() for e in history]
        data[LAST_SELECTED] = participant_id
        self._write(data)

        logger.debug("Recorded spin #%d for %s", entry.sequence_number, participant_name)
        return entry

    @_locked
    def clear_history(self):
        data = self._read()
        data[HISTORY] = []
        self._write(data)
        logger.info("History cleared")

    # =========================================================================
    # Settings
    # =========================================================================

    @_locked
    def get_settings(self) -> Settings:
        return Settings.from_dict(self._section(self._read(), SETTINGS, dict))

    @_locked
    def get_setting(self, key: str) -> Any:
        """Read one setting by field name or persisted key."""
        try:
            name = settings_key(key)
        except KeyError:
            raise ValidationError(f"Unknown setting '{key}'")
        return getattr(self.get_settings(), name)

    @_locked
    def update_settings(self, **changes: Any) -> Settings:
        """
        Change one or more settings.

        Keys may be field names (spin_duration_seconds) or persisted keys
        (spinDuration). Only the changed keys are written.

        Raises:
            ValidationError: unknown key or invalid value; nothing is written
        """
        errors = []
        coerced: dict[str, Any] = {}
        for key, value in changes.items():
            try:
                name = settings_key(key)
                coerced[SETTINGS_KEYS[name]] = coerce_setting(name, value)
            except KeyError:
                errors.append(f"Unknown setting '{key}'")
            except (TypeError, ValueError) as e:
                errors.append(f"Invalid value for '{key}': {e}")
        if errors:
            raise ValidationError(errors)

        data = self._read()
        stored = dict(self._section(data, SETTINGS, dict))
        for key, value in coerced.items():
            stored[key] = value.value if isinstance(value, Enum) else value
        data[SETTINGS] = stored
        self._write(data)
        return Settings.from_dict(stored)

    def set_setting(self, key: str, value: Any) -> Settings:
        return self.update_settings(**{key: value})

    # =========================================================================
    # Session markers
    # =========================================================================

    @_locked
    def get_markers(self) -> SessionMarkers:
        data = self._read()
        return SessionMarkers(
            last_selected_participant_id=self._last_selected(data),
            last_viewed_section=self._view(data.get(LAST_VIEW)),
            first_run_completed=self._first_run_completed(data.get(FIRST_VISIT)),
        )

    @_locked
    def get_last_selected(self) -> str | None:
        return self._last_selected(self._read())

    @_locked
    def set_last_selected(self, participant_id: str | None):
        data = self._read()
        data[LAST_SELECTED] = participant_id
        self._write(data)

    @_locked
    def get_last_view(self) -> ViewSection:
        return self._view(self._read().get(LAST_VIEW))

    @_locked
    def set_last_view(self, section: ViewSection | str):
        """Remember the last section shown. The welcome screen is never remembered."""
        section = ViewSection(section)
        if section is ViewSection.WELCOME:
            return
        data = self._read()
        data[LAST_VIEW] = section.value
        self._write(data)

    @_locked
    def is_first_visit(self) -> bool:
        """True until the first run is marked done, and only while the roster is empty."""
        data = self._read()
        return not self._first_run_completed(data.get(FIRST_VISIT)) and not self._participants(data)

    @_locked
    def mark_first_visit_done(self):
        data = self._read()
        data[FIRST_VISIT] = True
        self._write(data)

    @staticmethod
    def _view(raw: Any) -> ViewSection:
        try:
            return ViewSection(raw) if raw else ViewSection.WHEEL
        except ValueError:
            return ViewSection.WHEEL

    @staticmethod
    def _last_selected(data: dict[str, Any]) -> str | None:
        raw = data.get(LAST_SELECTED)
        return raw if isinstance(raw, str) and raw else None

    @staticmethod
    def _first_run_completed(raw: Any) -> bool:
        # Older snapshots store the flag as the string "true"
        return raw is True or raw == "true"

    # =========================================================================
    # Bulk operations
    # =========================================================================

    @_locked
    def export_all(self) -> dict[str, Any]:
        """Full backup of everything in the store."""
        data = self._read()
        return {
            USERS: [p.to_dict() for p in self._participants(data)],
            HISTORY: [e.to_dict() for e in self._history(data)],
            SETTINGS: Settings.from_dict(self._section(data, SETTINGS, dict)).to_dict(),
            LAST_SELECTED: self._last_selected(data),
            LAST_VIEW: self._view(data.get(LAST_VIEW)).value,
            FIRST_VISIT: self._first_run_completed(data.get(FIRST_VISIT)),
            "exportDate": utc_now_iso(),
            "version": EXPORT_VERSION,
        }

    @_locked
    def import_all(self, backup: Any):
        """
        Replace stored data with a backup.

        Each key present in the backup replaces the stored value; absent
        keys are left alone. The whole backup is checked before anything
        is written.

        Raises:
            ValidationError: the backup is malformed or breaks roster invariants
        """
        if not isinstance(backup, dict):
            raise ValidationError("Backup must be a JSON object")

        data = self._read()

        if USERS in backup:
            data[USERS] = [p.to_dict() for p in self._checked_roster(backup[USERS])]

        if HISTORY in backup:
            history = self._checked_history(backup[HISTORY])
            data[HISTORY] = [e.to_dict() for e in history[-HISTORY_LIMIT:]]

        if isinstance(backup.get(SETTINGS), dict):
            data[SETTINGS] = self._checked_settings(backup[SETTINGS])

        if backup.get(LAST_SELECTED):
            data[LAST_SELECTED] = str(backup[LAST_SELECTED])
        if backup.get(LAST_VIEW):
            data[LAST_VIEW] = self._view(backup[LAST_VIEW]).value
        if backup.get(FIRST_VISIT):
            data[FIRST_VISIT] = self._first_run_completed(backup[FIRST_VISIT])

        self._write(data)
        logger.info("Imported backup")

    @_locked
    def apply_shared_state(self, participants: list[Participant], settings: dict[str, Any] | None):
        """Replace the roster (and settings, if given) with a shared configuration."""
        data = self._read()
        data[USERS] = [p.to_dict() for p in self._checked_roster([p.to_dict() for p in participants])]
        if isinstance(settings, dict):
            data[SETTINGS] = self._checked_settings(settings)
        self._write(data)
        logger.info("Applied shared wheel with %d participants", len(participants))

    @_locked
    def reset_all(self):
        """Delete everything."""
        try:
            self.substrate.remove(self.namespace)
        except PersistenceError as e:
            logger.error("Error resetting store: %s", e)
        logger.info("Store reset")

    @staticmethod
    def _checked_roster(raw_users: Any) -> list[Participant]:
        if not isinstance(raw_users, list):
            raise ValidationError("users must be a list")
        if len(raw_users) > MAX_PARTICIPANTS:
            raise ValidationError(f"Maximum {MAX_PARTICIPANTS} participants allowed")

        roster: list[Participant] = []
        for raw in raw_users:
            try:
                participant = Participant.from_dict(raw)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                raise ValidationError(f"Malformed participant record: {e}")
            participant = participant.with_changes(name=validate_name(participant.name, roster))
            roster.append(participant)
        return roster

    @staticmethod
    def _checked_history(raw_history: Any) -> list[HistoryEntry]:
        if not isinstance(raw_history, list):
            raise ValidationError("history must be a list")
        try:
            return [HistoryEntry.from_dict(raw) for raw in raw_history]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Malformed history record: {e}")

    @staticmethod
    def _checked_settings(raw_settings: dict[str, Any]) -> dict[str, Any]:
        # Keep only recognized keys; unreadable values fall back to defaults on read
        known = set(SETTINGS_KEYS.values())
        return {k: v for k, v in raw_settings.items() if k in known}
