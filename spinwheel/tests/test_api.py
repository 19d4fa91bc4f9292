"""
Tests for API service layer.

Tests:
- Service methods and response models
- Statistics joined with participant details
- CSV export
- Share and backup flows
- Error propagation
"""

import csv
import io
import random

import pytest

from ..api.schemas import MarkersUpdateRequest, SettingsUpdateRequest
from ..api.service import WheelService
from ..engine_core.errors import (
    DecodeError,
    DuplicateName,
    InsufficientParticipants,
    ParticipantNotFound,
    ValidationError,
)
from ..engine_core.models import MAX_PARTICIPANTS, RotationDirection, ViewSection
from ..session import SpinSession
from ..store import EntityStore, MemorySubstrate


@pytest.fixture
def service():
    """Fresh service with a seeded spin session."""
    store = EntityStore(MemorySubstrate())
    return WheelService(store=store, session=SpinSession(store, rng=random.Random(5)))


@pytest.fixture
def wheel(service):
    """Service with three participants."""
    for name in ("Alice", "Bob", "Carol"):
        service.add_participant(name)
    return service


class TestParticipants:
    """Tests for roster methods."""

    def test_add_and_list(self, service):
        service.add_participant("Alice")
        service.add_participant("Bob", color="#000000")

        result = service.list_participants()
        assert result.count == 2
        assert [p.name for p in result.participants] == ["Alice", "Bob"]
        assert result.participants[1].color == "#000000"
        assert result.can_spin

    def test_first_add_completes_first_run(self, service):
        assert service.get_markers().is_first_visit
        service.add_participant("Alice")
        markers = service.get_markers()
        assert markers.first_run_completed
        assert not markers.is_first_visit

    def test_duplicate_raises(self, wheel):
        with pytest.raises(DuplicateName):
            wheel.add_participant("ALICE")

    def test_check_name(self, wheel):
        assert wheel.check_name("Dave").valid
        assert not wheel.check_name("bob").valid
        assert not wheel.check_name("x").valid

    def test_check_name_reports_capacity(self, service):
        for i in range(MAX_PARTICIPANTS):
            service.add_participant(f"Person {i}")
        result = service.check_name("Newcomer")
        assert not result.valid
        assert result.errors == [f"Maximum {MAX_PARTICIPANTS} participants reached"]

    def test_check_name_when_renaming(self, wheel):
        bob = wheel.list_participants().participants[1]
        assert wheel.check_name("BOB", exclude_id=bob.id).valid

    def test_enabled_only(self, wheel):
        bob = wheel.list_participants().participants[1]
        wheel.toggle_participant(bob.id)

        result = wheel.list_participants(enabled_only=True)
        assert [p.name for p in result.participants] == ["Alice", "Carol"]

    def test_unknown_participant(self, wheel):
        with pytest.raises(ParticipantNotFound):
            wheel.update_participant("nope", name="Zed")
        with pytest.raises(ParticipantNotFound):
            wheel.toggle_participant("nope")
        with pytest.raises(ParticipantNotFound):
            wheel.delete_participant("nope")

    def test_update(self, wheel):
        alice = wheel.list_participants().participants[0]
        updated = wheel.update_participant(alice.id, name="Alicia", color="#111111")
        assert updated.name == "Alicia"
        assert updated.color == "#111111"


class TestSpins:
    """Tests for the spin flow through the service."""

    def test_spin_flow(self, wheel):
        spin = wheel.start_spin()
        assert spin.participant_count == 3
        assert wheel.get_history().total == 0

        result = wheel.complete_spin(spin.spin_id)
        assert result.entry.participant_id == spin.participant.id
        assert 0 <= result.rotation < 360
        assert wheel.get_history().total == 1

    def test_too_few_participants(self, service):
        service.add_participant("Solo")
        assert not service.list_participants().can_spin
        with pytest.raises(InsufficientParticipants):
            service.start_spin()

    def test_cancel(self, wheel):
        wheel.start_spin()
        assert wheel.cancel_spin()
        assert wheel.get_history().total == 0


class TestHistoryAndStatistics:
    """Tests for history, statistics and CSV export."""

    def spin_times(self, service, n):
        for _ in range(n):
            spin = service.start_spin()
            service.complete_spin(spin.spin_id)

    def test_history_newest_first(self, wheel):
        self.spin_times(wheel, 4)
        history = wheel.get_history()
        assert [e.sequence_number for e in history.entries] == [4, 3, 2, 1]

    def test_history_limit(self, wheel):
        self.spin_times(wheel, 4)
        history = wheel.get_history(limit=2)
        assert history.count == 2
        assert history.total == 4
        assert [e.sequence_number for e in history.entries] == [4, 3]

    def test_statistics(self, wheel):
        self.spin_times(wheel, 6)
        stats = wheel.get_statistics()

        assert stats.total_spins == 6
        assert sum(s.win_count for s in stats.statistics) == 6
        assert [s.win_count for s in stats.statistics] == sorted(
            (s.win_count for s in stats.statistics), reverse=True
        )
        assert {s.name for s in stats.statistics} == {"Alice", "Bob", "Carol"}

    def test_statistics_skip_deleted(self, wheel):
        self.spin_times(wheel, 5)
        alice = wheel.list_participants().participants[0]
        wheel.delete_participant(alice.id)

        stats = wheel.get_statistics()
        assert stats.total_spins == 5
        assert alice.id not in {s.participant_id for s in stats.statistics}

    def test_csv_export(self, wheel):
        self.spin_times(wheel, 3)
        rows = list(csv.reader(io.StringIO(wheel.export_history_csv())))

        assert rows[0] == ["Spin #", "Timestamp", "Participant"]
        assert [row[0] for row in rows[1:]] == ["1", "2", "3"]
        assert all(row[2] in {"Alice", "Bob", "Carol"} for row in rows[1:])

    def test_clear_history(self, wheel):
        self.spin_times(wheel, 2)
        wheel.clear_history()
        assert wheel.get_history().total == 0
        assert wheel.get_statistics().total_spins == 0


class TestSettingsAndMarkers:
    def test_defaults(self, service):
        settings = service.get_settings()
        assert settings.spin_duration_seconds == 7
        assert settings.rotation_direction is RotationDirection.CLOCKWISE

    def test_partial_update(self, service):
        settings = service.update_settings(SettingsUpdateRequest(title="Friday", dark_mode=True))
        assert settings.title == "Friday"
        assert settings.dark_mode is True
        assert settings.spin_duration_seconds == 7

    def test_empty_update(self, service):
        assert service.update_settings(SettingsUpdateRequest()) == service.get_settings()

    def test_markers(self, service):
        markers = service.update_markers(
            MarkersUpdateRequest(last_viewed_section=ViewSection.HISTORY)
        )
        assert markers.last_viewed_section is ViewSection.HISTORY

    def test_mark_first_run(self, service):
        markers = service.update_markers(MarkersUpdateRequest(first_run_completed=True))
        assert markers.first_run_completed
        assert not markers.is_first_visit


class TestSharing:
    """Tests for share tokens through the service."""

    def test_share_round_trip(self, wheel):
        wheel.update_settings(SettingsUpdateRequest(title="Shared"))
        share = wheel.create_share(base_url="https://wheel.example/")
        assert share.link.startswith("https://wheel.example/?share=")

        other = WheelService()
        result = other.apply_share(link=share.link)

        assert result.applied
        assert result.participant_count == 3
        assert [p.name for p in other.list_participants().participants] == ["Alice", "Bob", "Carol"]
        assert other.get_settings().title == "Shared"

    def test_token_without_link(self, wheel):
        assert wheel.create_share().link is None

    def test_decode_preview(self, wheel):
        token = wheel.create_share().token
        preview = WheelService().decode_share(token=token)
        assert len(preview.participants) == 3
        assert preview.settings.spin_duration_seconds == 7

    def test_decode_bad_token(self, service):
        with pytest.raises(DecodeError):
            service.decode_share(token="garbage!!")
        with pytest.raises(DecodeError):
            service.decode_share()

    def test_apply_bad_token_is_ignored(self, wheel):
        result = wheel.apply_share(token="garbage!!")
        assert not result.applied
        assert wheel.list_participants().count == 3

    def test_apply_invalid_roster_is_ignored(self, wheel):
        from ..engine_core.models import Participant
        from ..share import encode

        bad = [Participant(id="1", name="Al", color="#000"), Participant(id="2", name="al", color="#000")]
        result = wheel.apply_share(token=encode(bad, {}))
        assert not result.applied
        assert wheel.list_participants().count == 3

    def test_apply_cancels_pending_spin(self, wheel):
        token = wheel.create_share().token
        wheel.start_spin()
        assert wheel.apply_share(token=token).applied
        assert not wheel.session.is_spinning


class TestBackup:
    def test_export_includes_statistics(self, wheel):
        spin = wheel.start_spin()
        wheel.complete_spin(spin.spin_id)

        backup = wheel.export_backup()
        assert backup["statistics"][spin.participant.id]["winCount"] == 1
        assert backup["statistics"][spin.participant.id]["percentage"] == 100.0

    def test_import_into_fresh_service(self, wheel):
        spin = wheel.start_spin()
        wheel.complete_spin(spin.spin_id)
        backup = wheel.export_backup()

        other = WheelService()
        other.import_backup(backup)
        assert other.list_participants().count == 3
        assert other.get_history().total == 1

    def test_import_invalid(self, service):
        with pytest.raises(ValidationError):
            service.import_backup("not a backup")

    def test_reset(self, wheel):
        spin = wheel.start_spin()
        wheel.complete_spin(spin.spin_id)
        wheel.reset()

        assert wheel.list_participants().count == 0
        assert wheel.get_history().total == 0
        assert wheel.session.current_rotation == 0.0
        assert wheel.get_markers().is_first_visit
