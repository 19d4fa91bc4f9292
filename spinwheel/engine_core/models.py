"""
Domain models - Participants, history entries, settings and session markers.

Design principles:
- Plain dataclasses, no behaviour beyond copying and (de)serialization
- Serializable: to_dict/from_dict use the persisted key names
  (camelCase, shared with backups and share links)
- Lenient on read: missing keys fall back to defaults, never written eagerly
"""

from __future__ import annotations
from dataclasses import dataclass, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any
import uuid


MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 15
MAX_PARTICIPANTS = 20
HISTORY_LIMIT = 500
SPIN_DURATION_RANGE = (1, 20)

COLOR_PALETTE = [
    "#FF6B6B", "#4ECDC4", "#FFE66D", "#95E1D3",
    "#C7CEEA", "#FF8C42", "#FB5607", "#06D6A0",
    "#EF476F", "#FFD166", "#06FFA5", "#FF006E",
    "#9B59B6", "#3498DB", "#E74C3C", "#F39C12",
    "#1ABC9C", "#2ECC71", "#E91E63", "#00BCD4",
    "#FF5722", "#8E44AD",
]


def new_id() -> str:
    """Opaque unique token for participants and history entries."""
    return uuid.uuid4().hex


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class RotationDirection(Enum):
    """Direction the wheel turns."""
    CLOCKWISE = "clockwise"
    COUNTER_CLOCKWISE = "counter-clockwise"

    @property
    def sign(self) -> int:
        return -1 if self is RotationDirection.COUNTER_CLOCKWISE else 1


class SliceAnimation(Enum):
    NONE = "none"
    PULSE = "pulse"
    GLOW = "glow"


class WinnerEffect(Enum):
    CONFETTI = "confetti"
    FIREWORKS = "fireworks"
    NONE = "none"


class ViewSection(Enum):
    """Sections of the app a user can land on."""
    WELCOME = "welcome"
    WHEEL = "wheel"
    USERS = "users"
    HISTORY = "history"
    SETTINGS = "settings"


@dataclass
class Participant:
    """
    Someone on the wheel.

    The id never changes. Name and color are editable; a disabled
    participant stays on the roster and keeps its history but is
    left out of selection.
    """
    id: str
    name: str
    color: str
    enabled: bool = True
    created_at: str = ""

    def with_changes(self, **changes: Any) -> Participant:
        """Return a copy with some fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "enabled": self.enabled,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Participant:
        # Records written before the enabled flag existed count as enabled
        enabled = data.get("enabled")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            color=str(data.get("color") or COLOR_PALETTE[0]),
            enabled=True if enabled is None else bool(enabled),
            created_at=str(data.get("createdAt", "")),
        )


@dataclass
class HistoryEntry:
    """
    One recorded spin.

    participant_id is a weak reference: the participant may have been
    deleted since. participant_name is the name at the time of the spin.
    """
    id: str
    participant_id: str
    participant_name: str
    timestamp: str
    sequence_number: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.participant_id,
            "userName": self.participant_name,
            "timestamp": self.timestamp,
            "spinNumber": self.sequence_number,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryEntry:
        return cls(
            id=str(data["id"]),
            participant_id=str(data["userId"]),
            participant_name=str(data.get("userName", "")),
            timestamp=str(data.get("timestamp", "")),
            sequence_number=int(data["spinNumber"]),
        )


@dataclass
class SessionMarkers:
    """Process-wide markers: last winner, last view, first-run flag."""
    last_selected_participant_id: str | None = None
    last_viewed_section: ViewSection = ViewSection.WHEEL
    first_run_completed: bool = False


# Settings field -> persisted key
SETTINGS_KEYS = {
    "spin_duration_seconds": "spinDuration",
    "animation_speed_multiplier": "animationSpeed",
    "rotation_direction": "rotationDirection",
    "title": "wheelTitle",
    "slice_animation_style": "sliceAnimation",
    "sound_enabled": "soundEnabled",
    "dark_mode": "darkMode",
    "winner_effect_style": "winnerEffect",
}

_ENUM_SETTINGS = {
    "rotation_direction": RotationDirection,
    "slice_animation_style": SliceAnimation,
    "winner_effect_style": WinnerEffect,
}


@dataclass(frozen=True)
class Settings:
    """
    Wheel configuration.

    Only keys the user changed are persisted. Reading merges them
    over these defaults.
    """
    spin_duration_seconds: int = 7
    animation_speed_multiplier: float = 1.0
    rotation_direction: RotationDirection = RotationDirection.CLOCKWISE
    title: str = "Pick a Winner"
    slice_animation_style: SliceAnimation = SliceAnimation.NONE
    sound_enabled: bool = True
    dark_mode: bool = False
    winner_effect_style: WinnerEffect = WinnerEffect.CONFETTI

    @property
    def animation_duration_seconds(self) -> float:
        """How long the spin animation should run."""
        return self.spin_duration_seconds * self.animation_speed_multiplier

    def to_dict(self) -> dict[str, Any]:
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            data[SETTINGS_KEYS[f.name]] = value.value if isinstance(value, Enum) else value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Settings:
        """
        Build settings from a persisted mapping.

        Unknown keys are ignored. Missing or unreadable values fall back
        to the defaults.
        """
        if not isinstance(data, dict):
            data = {}
        defaults = cls()
        values: dict[str, Any] = {}
        for name, key in SETTINGS_KEYS.items():
            if key not in data:
                continue
            try:
                values[name] = coerce_setting(name, data[key])
            except (TypeError, ValueError):
                values[name] = getattr(defaults, name)
        return cls(**values)


def coerce_setting(name: str, value: Any) -> Any:
    """
    Convert a raw value to the type of the named setting.

    Raises ValueError/TypeError when the value cannot be converted or is
    out of range.
    """
    if name not in SETTINGS_KEYS:
        raise ValueError(f"Unknown setting '{name}'")

    if name in _ENUM_SETTINGS:
        enum_type = _ENUM_SETTINGS[name]
        return value if isinstance(value, enum_type) else enum_type(value)

    if name == "spin_duration_seconds":
        if isinstance(value, bool):
            raise TypeError("spin duration must be a number")
        duration = int(value)
        low, high = SPIN_DURATION_RANGE
        if not low <= duration <= high:
            raise ValueError(f"spin duration must be between {low} and {high} seconds")
        return duration

    if name == "animation_speed_multiplier":
        if isinstance(value, bool):
            raise TypeError("animation speed must be a number")
        speed = float(value)
        if speed <= 0:
            raise ValueError("animation speed must be positive")
        return speed

    if name == "title":
        title = str(value).strip()
        return title or Settings.title

    # sound_enabled, dark_mode
    if not isinstance(value, bool):
        raise TypeError(f"{name} must be true or false")
    return value


def settings_key(name: str) -> str:
    """
    Resolve a setting name to its field name.

    Accepts either the field name or the persisted key.
    """
    if name in SETTINGS_KEYS:
        return name
    for field_name, key in SETTINGS_KEYS.items():
        if key == name:
            return field_name
    raise KeyError(name)
