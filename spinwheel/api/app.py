"""
FastAPI Application - REST API for the wheel UI.

Endpoints:
    GET    /api/v1/participants                 List participants
    POST   /api/v1/participants                 Add participant
    POST   /api/v1/participants/validate        Check a name before adding
    PATCH  /api/v1/participants/{id}            Edit name/color
    POST   /api/v1/participants/{id}/toggle     Enable/disable
    DELETE /api/v1/participants/{id}            Delete participant
    POST   /api/v1/spins                        Select a winner, get rotation target
    POST   /api/v1/spins/{spin_id}/complete     Record the winner after the animation
    DELETE /api/v1/spins/pending                Cancel the pending spin
    GET    /api/v1/history                      Spin history (newest first)
    DELETE /api/v1/history                      Clear history
    GET    /api/v1/history/export.csv           History as CSV
    GET    /api/v1/statistics                   Per-participant statistics
    GET    /api/v1/settings                     Read settings
    PATCH  /api/v1/settings                     Update settings
    GET    /api/v1/markers                      Session markers
    PUT    /api/v1/markers                      Update last view / first run
    POST   /api/v1/share                        Create share token/link
    POST   /api/v1/share/decode                 Preview a share token
    POST   /api/v1/share/apply                  Load a shared wheel
    GET    /api/v1/backup                       Export everything
    POST   /api/v1/backup                       Import a backup
    POST   /api/v1/reset                        Delete everything

Spin Flow:
    1. POST /spins returns the winner and the target rotation
    2. The UI animates for duration_seconds
    3. POST /spins/{spin_id}/complete records the result

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Any, Optional

from fastapi import Body, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .. import __version__
from ..config import AppConfig
from ..engine_core.errors import (
    DecodeError,
    InsufficientParticipants,
    ParticipantNotFound,
    SpinInProgress,
    SpinNotFound,
    SpinwheelError,
    ValidationError,
)
from ..store import EntityStore, JsonFileSubstrate
from .schemas import (
    ApplyShareResponse,
    CreateParticipantRequest,
    DeleteResponse,
    ErrorCode,
    ErrorResponse,
    HealthResponse,
    HistoryResponse,
    MarkersInfo,
    MarkersUpdateRequest,
    NameCheckRequest,
    NameCheckResponse,
    ParticipantInfo,
    ParticipantListResponse,
    SettingsInfo,
    SettingsUpdateRequest,
    SharedStateResponse,
    ShareRequest,
    ShareResponse,
    ShareTokenRequest,
    SpinResponse,
    SpinResultResponse,
    StatisticsResponse,
    UpdateParticipantRequest,
)
from .service import WheelService


# Engine error -> (error code, HTTP status); first match wins
ERROR_MAP: list[tuple[type[SpinwheelError], ErrorCode, int]] = [
    (ValidationError, ErrorCode.VALIDATION_ERROR, 400),
    (ParticipantNotFound, ErrorCode.PARTICIPANT_NOT_FOUND, 404),
    (InsufficientParticipants, ErrorCode.INSUFFICIENT_PARTICIPANTS, 409),
    (SpinInProgress, ErrorCode.SPIN_IN_PROGRESS, 409),
    (SpinNotFound, ErrorCode.SPIN_NOT_FOUND, 404),
    (DecodeError, ErrorCode.INVALID_SHARE_TOKEN, 400),
]


def make_error_response(
    error_code: ErrorCode,
    message: str,
    status_code: int = 400,
    details: Optional[dict] = None,
) -> JSONResponse:
    """Create a standardized error response."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=message,
            error_code=error_code,
            details=details,
        ).model_dump(mode="json"),
    )


def error_response_for(exc: SpinwheelError) -> JSONResponse:
    for error_type, code, status in ERROR_MAP:
        if isinstance(exc, error_type):
            details = {"errors": exc.errors} if isinstance(exc, ValidationError) else None
            return make_error_response(code, str(exc), status_code=status, details=details)
    return make_error_response(ErrorCode.INTERNAL_ERROR, str(exc), status_code=500)


def create_app(service: WheelService | None = None, config: AppConfig | None = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional WheelService (one backed by the JSON store in
            config.data_dir is created if not provided)
        config: Optional AppConfig (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    config = config or AppConfig.from_env()
    if service is None:
        service = WheelService(store=EntityStore(JsonFileSubstrate(config.data_dir)))

    app = FastAPI(
        title="Spinwheel API",
        description="""
Spin a wheel of participants, keep the history, read the statistics.

## Spin Flow

1. `POST /api/v1/spins` picks the winner and returns `target_rotation`
2. Animate the wheel for `duration_seconds`
3. `POST /api/v1/spins/{spin_id}/complete` records the result

## Error Codes

| Code | Description |
|------|-------------|
| `VALIDATION_ERROR` | Name, roster, setting or backup is invalid |
| `PARTICIPANT_NOT_FOUND` | No participant with that id |
| `INSUFFICIENT_PARTICIPANTS` | Fewer than two enabled participants |
| `SPIN_IN_PROGRESS` | A spin is waiting to be completed |
| `SPIN_NOT_FOUND` | Spin id doesn't match the pending spin |
| `INVALID_SHARE_TOKEN` | Share token could not be decoded |
        """,
        version=__version__,
        docs_url=None if config.is_production else "/api/docs",
        redoc_url=None if config.is_production else "/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.service = service

    @app.exception_handler(SpinwheelError)
    async def handle_engine_error(request: Request, exc: SpinwheelError) -> JSONResponse:
        return error_response_for(exc)

    error_responses = {
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    }

    # =========================================================================
    # Participant Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/participants",
        response_model=ParticipantListResponse,
        tags=["Participants"],
        summary="List participants",
    )
    def list_participants(
        enabled_only: Annotated[bool, Query(description="Only participants on the wheel")] = False,
    ) -> ParticipantListResponse:
        return service.list_participants(enabled_only=enabled_only)

    @app.post(
        "/api/v1/participants",
        response_model=ParticipantInfo,
        status_code=201,
        responses=error_responses,
        tags=["Participants"],
        summary="Add a participant",
    )
    def add_participant(body: CreateParticipantRequest) -> ParticipantInfo:
        """Names are 2-15 characters and unique ignoring case; at most 20 participants."""
        return service.add_participant(body.name, color=body.color)

    @app.post(
        "/api/v1/participants/validate",
        response_model=NameCheckResponse,
        tags=["Participants"],
        summary="Check a name without saving",
    )
    def validate_participant_name(body: NameCheckRequest) -> NameCheckResponse:
        return service.check_name(body.name, exclude_id=body.exclude_id)

    @app.patch(
        "/api/v1/participants/{participant_id}",
        response_model=ParticipantInfo,
        responses=error_responses,
        tags=["Participants"],
        summary="Edit a participant",
    )
    def update_participant(participant_id: str, body: UpdateParticipantRequest) -> ParticipantInfo:
        return service.update_participant(participant_id, name=body.name, color=body.color)

    @app.post(
        "/api/v1/participants/{participant_id}/toggle",
        response_model=ParticipantInfo,
        responses=error_responses,
        tags=["Participants"],
        summary="Enable or disable a participant",
    )
    def toggle_participant(participant_id: str) -> ParticipantInfo:
        return service.toggle_participant(participant_id)

    @app.delete(
        "/api/v1/participants/{participant_id}",
        response_model=DeleteResponse,
        responses=error_responses,
        tags=["Participants"],
        summary="Delete a participant (history is kept)",
    )
    def delete_participant(participant_id: str) -> DeleteResponse:
        return DeleteResponse(success=service.delete_participant(participant_id), id=participant_id)

    # =========================================================================
    # Spin Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/spins",
        response_model=SpinResponse,
        responses=error_responses,
        tags=["Spins"],
        summary="Select a winner",
    )
    def start_spin() -> SpinResponse:
        """
        Pick a winner among the enabled participants.

        Nothing is recorded until the spin is completed.
        """
        return service.start_spin()

    @app.post(
        "/api/v1/spins/{spin_id}/complete",
        response_model=SpinResultResponse,
        responses=error_responses,
        tags=["Spins"],
        summary="Record the winner",
    )
    def complete_spin(spin_id: str) -> SpinResultResponse:
        return service.complete_spin(spin_id)

    @app.delete(
        "/api/v1/spins/pending",
        tags=["Spins"],
        summary="Cancel the pending spin",
    )
    def cancel_spin() -> dict:
        return {"cancelled": service.cancel_spin()}

    # =========================================================================
    # History & Statistics Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/history",
        response_model=HistoryResponse,
        tags=["History"],
        summary="Spin history, newest first",
    )
    def get_history(
        limit: Annotated[Optional[int], Query(ge=1, description="Most recent N entries")] = None,
    ) -> HistoryResponse:
        return service.get_history(limit=limit)

    @app.delete(
        "/api/v1/history",
        tags=["History"],
        summary="Clear history",
    )
    def clear_history() -> dict:
        service.clear_history()
        return {"success": True}

    @app.get(
        "/api/v1/history/export.csv",
        response_class=PlainTextResponse,
        tags=["History"],
        summary="History as CSV",
    )
    def export_history_csv() -> PlainTextResponse:
        return PlainTextResponse(
            service.export_history_csv(),
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="wheel-history.csv"'},
        )

    @app.get(
        "/api/v1/statistics",
        response_model=StatisticsResponse,
        tags=["History"],
        summary="Per-participant statistics",
    )
    def get_statistics() -> StatisticsResponse:
        return service.get_statistics()

    # =========================================================================
    # Settings & Markers Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/settings",
        response_model=SettingsInfo,
        tags=["Settings"],
        summary="Read settings",
    )
    def get_settings() -> SettingsInfo:
        return service.get_settings()

    @app.patch(
        "/api/v1/settings",
        response_model=SettingsInfo,
        responses=error_responses,
        tags=["Settings"],
        summary="Update settings",
    )
    def update_settings(body: SettingsUpdateRequest) -> SettingsInfo:
        return service.update_settings(body)

    @app.get(
        "/api/v1/markers",
        response_model=MarkersInfo,
        tags=["Settings"],
        summary="Session markers",
    )
    def get_markers() -> MarkersInfo:
        return service.get_markers()

    @app.put(
        "/api/v1/markers",
        response_model=MarkersInfo,
        tags=["Settings"],
        summary="Update session markers",
    )
    def update_markers(body: MarkersUpdateRequest) -> MarkersInfo:
        return service.update_markers(body)

    # =========================================================================
    # Share Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/share",
        response_model=ShareResponse,
        tags=["Share"],
        summary="Create a share token",
    )
    def create_share(body: ShareRequest) -> ShareResponse:
        return service.create_share(base_url=body.base_url)

    @app.post(
        "/api/v1/share/decode",
        response_model=SharedStateResponse,
        responses=error_responses,
        tags=["Share"],
        summary="Preview a shared wheel",
    )
    def decode_share(body: ShareTokenRequest) -> SharedStateResponse:
        return service.decode_share(token=body.token, link=body.link)

    @app.post(
        "/api/v1/share/apply",
        response_model=ApplyShareResponse,
        tags=["Share"],
        summary="Load a shared wheel",
    )
    def apply_share(body: ShareTokenRequest) -> ApplyShareResponse:
        """An unusable token is ignored: `applied` is false and nothing changes."""
        return service.apply_share(token=body.token, link=body.link)

    # =========================================================================
    # Backup & Reset
    # =========================================================================

    @app.get("/api/v1/backup", tags=["Backup"], summary="Export all data")
    def export_backup() -> dict[str, Any]:
        return service.export_backup()

    @app.post(
        "/api/v1/backup",
        responses=error_responses,
        tags=["Backup"],
        summary="Import a backup",
    )
    def import_backup(data: Annotated[Any, Body()]) -> dict:
        service.import_backup(data)
        return {"success": True}

    @app.post("/api/v1/reset", tags=["Backup"], summary="Delete everything")
    def reset() -> dict:
        service.reset()
        return {"success": True}

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    def health_check() -> HealthResponse:
        return HealthResponse(status="healthy", service="spinwheel", version=__version__)

    @app.get("/", tags=["System"])
    def root():
        """Root endpoint with API info."""
        return {
            "name": "Spinwheel API",
            "version": __version__,
            "docs": None if config.is_production else "/api/docs",
            "health": "/health",
        }

    return app
