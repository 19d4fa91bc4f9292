"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract between the wheel UI and the engine.

Error Codes:
- VALIDATION_ERROR: Name, roster, setting or backup failed validation
- PARTICIPANT_NOT_FOUND: No participant with that id
- INSUFFICIENT_PARTICIPANTS: Fewer than two enabled participants to spin
- SPIN_IN_PROGRESS: A spin is waiting to be completed
- SPIN_NOT_FOUND: The spin id doesn't match the pending spin
- INVALID_SHARE_TOKEN: Share token could not be decoded
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field

from ..engine_core.models import (
    MAX_NAME_LENGTH,
    MIN_NAME_LENGTH,
    SPIN_DURATION_RANGE,
    RotationDirection,
    SliceAnimation,
    ViewSection,
    WinnerEffect,
)


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    PARTICIPANT_NOT_FOUND = "PARTICIPANT_NOT_FOUND"
    INSUFFICIENT_PARTICIPANTS = "INSUFFICIENT_PARTICIPANTS"
    SPIN_IN_PROGRESS = "SPIN_IN_PROGRESS"
    SPIN_NOT_FOUND = "SPIN_NOT_FOUND"
    INVALID_SHARE_TOKEN = "INVALID_SHARE_TOKEN"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class ParticipantInfo(BaseModel):
    """A participant on the wheel."""
    id: str
    name: str
    color: str
    enabled: bool = True
    created_at: str = ""

    model_config = {"from_attributes": True}


class HistoryEntryInfo(BaseModel):
    """One recorded spin."""
    id: str
    participant_id: str
    participant_name: str
    timestamp: str
    sequence_number: int

    model_config = {"from_attributes": True}


class StatisticsInfo(BaseModel):
    """Derived counters for one participant."""
    participant_id: str
    name: str
    color: str
    win_count: int = 0
    percentage: float = 0.0
    current_streak: int = 0
    longest_streak: int = 0


class SettingsInfo(BaseModel):
    """Wheel settings with defaults applied."""
    spin_duration_seconds: int
    animation_speed_multiplier: float
    rotation_direction: RotationDirection
    title: str
    slice_animation_style: SliceAnimation
    sound_enabled: bool
    dark_mode: bool
    winner_effect_style: WinnerEffect

    model_config = {"from_attributes": True}


class MarkersInfo(BaseModel):
    """Session markers."""
    last_selected_participant_id: Optional[str] = None
    last_viewed_section: ViewSection = ViewSection.WHEEL
    first_run_completed: bool = False
    is_first_visit: bool = False


# =============================================================================
# Request Models
# =============================================================================

class CreateParticipantRequest(BaseModel):
    """Request to add a participant."""
    name: str = Field(..., description=f"{MIN_NAME_LENGTH}-{MAX_NAME_LENGTH} characters, unique")
    color: Optional[str] = Field(None, description="Slice color; next palette color if omitted")


class UpdateParticipantRequest(BaseModel):
    """Request to edit a participant."""
    name: Optional[str] = None
    color: Optional[str] = None


class NameCheckRequest(BaseModel):
    """Live validation of a name before adding or renaming."""
    name: str
    exclude_id: Optional[str] = Field(None, description="Participant being renamed")


class SettingsUpdateRequest(BaseModel):
    """Partial settings update. Omitted fields are left unchanged."""
    spin_duration_seconds: Optional[int] = Field(
        None, ge=SPIN_DURATION_RANGE[0], le=SPIN_DURATION_RANGE[1]
    )
    animation_speed_multiplier: Optional[float] = Field(None, gt=0)
    rotation_direction: Optional[RotationDirection] = None
    title: Optional[str] = None
    slice_animation_style: Optional[SliceAnimation] = None
    sound_enabled: Optional[bool] = None
    dark_mode: Optional[bool] = None
    winner_effect_style: Optional[WinnerEffect] = None


class MarkersUpdateRequest(BaseModel):
    """Update view-level markers."""
    last_viewed_section: Optional[ViewSection] = None
    first_run_completed: Optional[bool] = Field(
        None, description="Only true is meaningful; the flag can't be unset"
    )


class ShareRequest(BaseModel):
    """Request to create a share token."""
    base_url: Optional[str] = Field(None, description="If given, a full link is returned too")


class ShareTokenRequest(BaseModel):
    """A share token, or a link carrying one."""
    token: Optional[str] = None
    link: Optional[str] = None


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class ParticipantListResponse(BaseModel):
    participants: list[ParticipantInfo]
    count: int
    can_spin: bool = False


class NameCheckResponse(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)


class DeleteResponse(BaseModel):
    success: bool
    id: str


class SpinResponse(BaseModel):
    """
    A selected but not yet recorded spin.

    Animate from start_rotation to target_rotation over duration_seconds,
    then POST /spins/{spin_id}/complete.
    """
    spin_id: str
    index: int
    participant: ParticipantInfo
    participant_count: int
    start_rotation: float
    target_rotation: float
    duration_seconds: float
    api_version: str = "v1"


class SpinResultResponse(BaseModel):
    """A recorded spin."""
    entry: HistoryEntryInfo
    rotation: float = Field(..., description="Wheel rotation after normalizing")
    api_version: str = "v1"


class HistoryResponse(BaseModel):
    """Spin history, newest first."""
    entries: list[HistoryEntryInfo]
    count: int
    total: int


class StatisticsResponse(BaseModel):
    """Statistics ordered by win count."""
    total_spins: int
    statistics: list[StatisticsInfo]


class ShareResponse(BaseModel):
    token: str
    link: Optional[str] = None


class SharedStateResponse(BaseModel):
    participants: list[ParticipantInfo]
    settings: SettingsInfo


class ApplyShareResponse(BaseModel):
    applied: bool
    participant_count: int = 0


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
