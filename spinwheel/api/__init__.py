"""
API Module - HTTP interface for the wheel UI.

Exposes the engine and store via REST API.
The UI:
1. Manages the participant roster
2. Starts a spin and animates to the returned rotation
3. Completes the spin so the winner is recorded
4. Reads history and statistics
5. Shares, backs up and restores the wheel

State is one wheel per store. No user accounts.
"""

from .schemas import (
    # Requests
    CreateParticipantRequest,
    UpdateParticipantRequest,
    NameCheckRequest,
    SettingsUpdateRequest,
    MarkersUpdateRequest,
    ShareRequest,
    ShareTokenRequest,
    # Responses
    ErrorCode,
    ErrorResponse,
    ParticipantListResponse,
    NameCheckResponse,
    SpinResponse,
    SpinResultResponse,
    HistoryResponse,
    StatisticsResponse,
    ShareResponse,
    SharedStateResponse,
    ApplyShareResponse,
    # Shared
    ParticipantInfo,
    HistoryEntryInfo,
    StatisticsInfo,
    SettingsInfo,
    MarkersInfo,
)
from .service import WheelService
from .app import create_app

__all__ = [
    # Requests
    "CreateParticipantRequest",
    "UpdateParticipantRequest",
    "NameCheckRequest",
    "SettingsUpdateRequest",
    "MarkersUpdateRequest",
    "ShareRequest",
    "ShareTokenRequest",
    # Responses
    "ErrorCode",
    "ErrorResponse",
    "ParticipantListResponse",
    "NameCheckResponse",
    "SpinResponse",
    "SpinResultResponse",
    "HistoryResponse",
    "StatisticsResponse",
    "ShareResponse",
    "SharedStateResponse",
    "ApplyShareResponse",
    # Shared
    "ParticipantInfo",
    "HistoryEntryInfo",
    "StatisticsInfo",
    "SettingsInfo",
    "MarkersInfo",
    # Service
    "WheelService",
    "create_app",
]
