"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to store and engine calls
2. Owns the wheel's spin session
3. Joins statistics with participant details
4. Formats responses (Pydantic models, CSV)

This layer is framework-agnostic; engine errors propagate as
SpinwheelError subclasses and the web layer maps them to HTTP.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
import csv
import io
import logging

from .schemas import (
    ApplyShareResponse,
    HistoryEntryInfo,
    HistoryResponse,
    MarkersInfo,
    MarkersUpdateRequest,
    NameCheckResponse,
    ParticipantInfo,
    ParticipantListResponse,
    SettingsInfo,
    SettingsUpdateRequest,
    SharedStateResponse,
    ShareResponse,
    SpinResponse,
    SpinResultResponse,
    StatisticsInfo,
    StatisticsResponse,
)
from ..engine_core.errors import DecodeError, ParticipantNotFound, ValidationError
from ..engine_core.models import MAX_PARTICIPANTS, Settings
from ..engine_core.statistics import compute_statistics, ranked
from ..session import SpinSession
from ..share import codec
from ..store import EntityStore, MemorySubstrate, check_name

logger = logging.getLogger(__name__)


@dataclass
class WheelService:
    """
    Main service for one wheel.

    Usage:
        service = WheelService(store=EntityStore(JsonFileSubstrate(data_dir)))

        service.add_participant("Alice")
        service.add_participant("Bob")

        spin = service.start_spin()
        result = service.complete_spin(spin.spin_id)

        stats = service.get_statistics()
    """
    store: EntityStore = field(default_factory=lambda: EntityStore(MemorySubstrate()))
    session: SpinSession | None = None

    def __post_init__(self):
        if self.session is None:
            self.session = SpinSession(self.store)

    # =========================================================================
    # Participants
    # =========================================================================

    def list_participants(self, enabled_only: bool = False) -> ParticipantListResponse:
        participants = (
            self.store.list_enabled_participants()
            if enabled_only else self.store.list_participants()
        )
        return ParticipantListResponse(
            participants=[ParticipantInfo.model_validate(p) for p in participants],
            count=len(participants),
            can_spin=self.session.can_spin(),
        )

    def add_participant(self, name: str, color: str | None = None) -> ParticipantInfo:
        participant = self.store.add_participant(name, color=color)
        # First participant added dismisses the welcome screen
        if not self.store.get_markers().first_run_completed:
            self.store.mark_first_visit_done()
        return ParticipantInfo.model_validate(participant)

    def check_name(self, name: str, exclude_id: str | None = None) -> NameCheckResponse:
        participants = self.store.list_participants()
        result = check_name(name, participants, exclude_id=exclude_id)
        errors = list(result.errors)
        if result.valid and exclude_id is None and len(participants) >= MAX_PARTICIPANTS:
            errors.append(f"Maximum {MAX_PARTICIPANTS} participants reached")
        return NameCheckResponse(valid=not errors, errors=errors)

    def update_participant(
        self,
        participant_id: str,
        name: str | None = None,
        color: str | None = None,
    ) -> ParticipantInfo:
        participant = self.store.update_participant(participant_id, name=name, color=color)
        if participant is None:
            raise ParticipantNotFound(f"Participant {participant_id} not found")
        return ParticipantInfo.model_validate(participant)

    def toggle_participant(self, participant_id: str) -> ParticipantInfo:
        participant = self.store.toggle_participant_enabled(participant_id)
        if participant is None:
            raise ParticipantNotFound(f"Participant {participant_id} not found")
        return ParticipantInfo.model_validate(participant)

    def delete_participant(self, participant_id: str) -> bool:
        if not self.store.delete_participant(participant_id):
            raise ParticipantNotFound(f"Participant {participant_id} not found")
        return True

    # =========================================================================
    # Spins
    # =========================================================================

    def start_spin(self) -> SpinResponse:
        plan = self.session.start_spin()
        return SpinResponse(
            spin_id=plan.spin_id,
            index=plan.index,
            participant=ParticipantInfo.model_validate(plan.participant),
            participant_count=plan.participant_count,
            start_rotation=plan.start_rotation,
            target_rotation=plan.target_rotation,
            duration_seconds=plan.duration_seconds,
        )

    def complete_spin(self, spin_id: str) -> SpinResultResponse:
        entry = self.session.complete_spin(spin_id)
        return SpinResultResponse(
            entry=HistoryEntryInfo.model_validate(entry),
            rotation=self.session.current_rotation,
        )

    def cancel_spin(self) -> bool:
        return self.session.cancel_spin()

    # =========================================================================
    # History & statistics
    # =========================================================================

    def get_history(self, limit: int | None = None) -> HistoryResponse:
        """History, most recent first."""
        history = self.store.list_history()
        entries = list(reversed(history))
        if limit is not None:
            entries = entries[:limit]
        return HistoryResponse(
            entries=[HistoryEntryInfo.model_validate(e) for e in entries],
            count=len(entries),
            total=len(history),
        )

    def clear_history(self):
        self.store.clear_history()

    def export_history_csv(self) -> str:
        """History as CSV, oldest first."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(["Spin #", "Timestamp", "Participant"])
        for entry in self.store.list_history():
            writer.writerow([entry.sequence_number, entry.timestamp, entry.participant_name])
        return buffer.getvalue()

    def get_statistics(self) -> StatisticsResponse:
        participants = self.store.list_participants()
        history = self.store.list_history()
        stats = compute_statistics(participants, history)
        by_id = {p.id: p for p in participants}

        return StatisticsResponse(
            total_spins=len(history),
            statistics=[
                StatisticsInfo(
                    participant_id=s.participant_id,
                    name=by_id[s.participant_id].name,
                    color=by_id[s.participant_id].color,
                    win_count=s.win_count,
                    percentage=s.percentage,
                    current_streak=s.current_streak,
                    longest_streak=s.longest_streak,
                )
                for s in ranked(stats)
            ],
        )

    # =========================================================================
    # Settings & markers
    # =========================================================================

    def get_settings(self) -> SettingsInfo:
        return SettingsInfo.model_validate(self.store.get_settings())

    def update_settings(self, request: SettingsUpdateRequest) -> SettingsInfo:
        changes = request.model_dump(exclude_none=True)
        if not changes:
            return self.get_settings()
        return SettingsInfo.model_validate(self.store.update_settings(**changes))

    def get_markers(self) -> MarkersInfo:
        markers = self.store.get_markers()
        return MarkersInfo(
            last_selected_participant_id=markers.last_selected_participant_id,
            last_viewed_section=markers.last_viewed_section,
            first_run_completed=markers.first_run_completed,
            is_first_visit=self.store.is_first_visit(),
        )

    def update_markers(self, request: MarkersUpdateRequest) -> MarkersInfo:
        if request.last_viewed_section is not None:
            self.store.set_last_view(request.last_viewed_section)
        if request.first_run_completed:
            self.store.mark_first_visit_done()
        return self.get_markers()

    # =========================================================================
    # Sharing
    # =========================================================================

    def create_share(self, base_url: str | None = None) -> ShareResponse:
        token = codec.encode(self.store.list_participants(), self.store.get_settings())
        link = codec.build_share_link(base_url, token) if base_url else None
        return ShareResponse(token=token, link=link)

    def decode_share(self, token: str | None = None, link: str | None = None) -> SharedStateResponse:
        """
        Preview a shared wheel.

        Raises:
            DecodeError: no token, or the token is unusable
        """
        token = self._resolve_token(token, link)
        if token is None:
            raise DecodeError("No share token given")
        shared = codec.decode(token)
        return SharedStateResponse(
            participants=[ParticipantInfo.model_validate(p) for p in shared.participants],
            settings=SettingsInfo.model_validate(Settings.from_dict(shared.settings)),
        )

    def apply_share(self, token: str | None = None, link: str | None = None) -> ApplyShareResponse:
        """
        Replace the roster and settings with a shared wheel.

        An unusable token or link is ignored rather than reported as an error.
        """
        token = self._resolve_token(token, link)
        shared = codec.try_decode(token) if token else None
        if shared is None:
            return ApplyShareResponse(applied=False)

        try:
            self.store.apply_shared_state(shared.participants, shared.settings)
        except ValidationError as e:
            logger.warning("Ignoring shared link: %s", e)
            return ApplyShareResponse(applied=False)

        self.session.cancel_spin()
        return ApplyShareResponse(applied=True, participant_count=len(shared.participants))

    @staticmethod
    def _resolve_token(token: str | None, link: str | None) -> str | None:
        if token:
            return token
        if link:
            return codec.token_from_link(link)
        return None

    # =========================================================================
    # Backup & reset
    # =========================================================================

    def export_backup(self) -> dict[str, Any]:
        data = self.store.export_all()
        history = self.store.list_history()
        stats = compute_statistics(self.store.list_participants(), history)
        data["statistics"] = {
            pid: {
                "winCount": s.win_count,
                "percentage": s.percentage,
                "currentStreak": s.current_streak,
                "longestStreak": s.longest_streak,
            }
            for pid, s in stats.items()
        }
        return data

    def import_backup(self, data: Any):
        self.store.import_all(data)
        self.session.cancel_spin()

    def reset(self):
        self.session.cancel_spin()
        self.session.current_rotation = 0.0
        self.store.reset_all()
