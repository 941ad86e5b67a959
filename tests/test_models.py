"""Tests for domain models."""

from datetime import UTC, date, datetime, time, timedelta
from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError

from src.models.availability import AvailabilityBlock, BlockCategory
from src.models.base import BaseEntity
from src.models.delegation import DelegationAssignment
from src.models.meeting import Meeting, MeetingStatus
from src.models.override import ConflictOverrideRecord
from src.models.participant import Participant
from src.models.principal import Principal, PrincipalRole
from src.models.room import MeetingRoom

START = datetime(2030, 6, 3, 10, 0)


class TestBaseEntity:
    """Identity and audit columns."""

    def test_new_entity_gets_id_and_utc_timestamps(self):
        before = datetime.now(UTC)
        room = MeetingRoom(name="Huddle", code="HD-1", capacity=4, floor_number=1)
        after = datetime.now(UTC)

        assert isinstance(room.id, UUID)
        assert before <= room.created_at <= room.updated_at <= after

    def test_touch_moves_only_updated_at(self):
        room = MeetingRoom(name="Huddle", code="HD-1", capacity=4, floor_number=1)
        created = room.created_at
        room.touch()

        assert room.created_at == created
        assert room.updated_at >= created

    def test_audit_values_match_audit_fields(self):
        room = MeetingRoom(name="Huddle", code="HD-1", capacity=4, floor_number=1)

        restored = BaseEntity.audit_fields(*room.audit_values())

        assert restored == {"created_at": room.created_at, "updated_at": room.updated_at}

    def test_audit_fields_without_updated_column(self):
        fields = BaseEntity.audit_fields("2030-06-03T10:00:00+00:00")

        assert fields["created_at"] == datetime(2030, 6, 3, 10, tzinfo=UTC)
        assert fields["updated_at"] == fields["created_at"]


class TestPrincipal:
    """Tests for Principal model."""

    def test_creates_with_required_fields(self):
        principal = Principal(name="Hana", role=PrincipalRole.HOST)
        assert principal.is_active
        assert principal.work_start is None

    def test_rejects_half_configured_hours(self):
        with pytest.raises(ValidationError):
            Principal(name="Hana", role=PrincipalRole.HOST, work_start=time(9, 0))

    def test_is_admin_requires_active(self):
        assert Principal(name="A", role=PrincipalRole.ADMIN).is_admin
        assert not Principal(name="A", role=PrincipalRole.ADMIN, is_active=False).is_admin
        assert not Principal(name="S", role=PrincipalRole.SECRETARY).is_admin


class TestParticipant:
    """Tests for Participant model."""

    def test_principal_participant(self):
        p = Participant(principal_id=uuid4())
        assert not p.is_visitor

    def test_visitor_participant(self):
        p = Participant(visitor_name="  Val Visitor  ", visitor_email="val@example.com")
        assert p.is_visitor
        assert p.visitor_name == "Val Visitor"

    def test_rejects_blank_visitor_name(self):
        with pytest.raises(ValidationError):
            Participant(visitor_name="   ")

    def test_requires_exactly_one_identity(self):
        with pytest.raises(ValidationError):
            Participant()
        with pytest.raises(ValidationError):
            Participant(principal_id=uuid4(), visitor_name="Both")


class TestMeeting:
    """Tests for Meeting model."""

    def test_end_time_derived_from_duration(self):
        meeting = Meeting(host_id=uuid4(), start_time=START, duration_minutes=45)
        assert meeting.end_time == START + timedelta(minutes=45)
        assert meeting.status == MeetingStatus.SCHEDULED

    def test_rejects_non_positive_duration(self):
        with pytest.raises(ValidationError):
            Meeting(host_id=uuid4(), start_time=START, duration_minutes=0)

    def test_overlap_is_half_open(self):
        meeting = Meeting(host_id=uuid4(), start_time=START, duration_minutes=60)
        assert meeting.overlaps(START + timedelta(minutes=30), START + timedelta(hours=2))
        assert not meeting.overlaps(START + timedelta(hours=1), START + timedelta(hours=2))
        assert not meeting.overlaps(START - timedelta(hours=1), START)

    def test_principal_ids_deduplicated(self):
        host = uuid4()
        other = uuid4()
        meeting = Meeting(
            host_id=host,
            start_time=START,
            duration_minutes=30,
            participants=[
                Participant(principal_id=host),
                Participant(principal_id=other),
                Participant(visitor_name="Val"),
            ],
        )
        assert meeting.principal_ids == [host, other]

    def test_visit_window_must_be_paired_and_ordered(self):
        with pytest.raises(ValidationError):
            Meeting(
                host_id=uuid4(),
                start_time=START,
                duration_minutes=30,
                visit_start_date=date(2030, 6, 3),
            )
        with pytest.raises(ValidationError):
            Meeting(
                host_id=uuid4(),
                start_time=START,
                duration_minutes=30,
                visit_start_date=date(2030, 6, 5),
                visit_end_date=date(2030, 6, 3),
            )

    def test_multi_day_access(self):
        meeting = Meeting(
            host_id=uuid4(),
            start_time=START,
            duration_minutes=60,
            visit_start_date=date(2030, 6, 3),
            visit_end_date=date(2030, 6, 5),
        )
        assert meeting.is_multi_day
        assert meeting.grants_access_on(date(2030, 6, 4))
        assert not meeting.grants_access_on(date(2030, 6, 6))

    def test_single_day_access_only_on_meeting_day(self):
        meeting = Meeting(host_id=uuid4(), start_time=START, duration_minutes=60)
        assert not meeting.is_multi_day
        assert meeting.grants_access_on(START.date())
        assert not meeting.grants_access_on(START.date() + timedelta(days=1))

    def test_cancelled_meeting_grants_no_access(self):
        meeting = Meeting(
            host_id=uuid4(),
            start_time=START,
            duration_minutes=60,
            status=MeetingStatus.CANCELLED,
        )
        assert not meeting.is_committed
        assert not meeting.grants_access_on(START.date())

    @pytest.mark.parametrize(
        ("current", "target", "allowed"),
        [
            (MeetingStatus.SCHEDULED, MeetingStatus.ACTIVE, True),
            (MeetingStatus.SCHEDULED, MeetingStatus.CANCELLED, True),
            (MeetingStatus.SCHEDULED, MeetingStatus.COMPLETED, False),
            (MeetingStatus.ACTIVE, MeetingStatus.COMPLETED, True),
            (MeetingStatus.ACTIVE, MeetingStatus.CANCELLED, True),
            (MeetingStatus.CANCELLED, MeetingStatus.SCHEDULED, False),
            (MeetingStatus.COMPLETED, MeetingStatus.CANCELLED, False),
        ],
    )
    def test_status_transitions(self, current, target, allowed):
        meeting = Meeting(
            host_id=uuid4(), start_time=START, duration_minutes=30, status=current
        )
        assert meeting.can_transition_to(target) is allowed


class TestAvailabilityBlock:
    """Tests for AvailabilityBlock model."""

    def test_rejects_inverted_interval(self):
        with pytest.raises(ValidationError):
            AvailabilityBlock(principal_id=uuid4(), start_time=START, end_time=START)

    def test_label_falls_back_to_category(self):
        block = AvailabilityBlock(
            principal_id=uuid4(),
            start_time=START,
            end_time=START + timedelta(hours=1),
            category=BlockCategory.TIME_OFF,
        )
        assert block.label == "time off"
        assert block.model_copy(update={"reason": "Dentist"}).label == "Dentist"


class TestMeetingRoom:
    def test_display_location(self):
        room = MeetingRoom(name="Huddle", code="HD-1", capacity=6, floor_number=2)
        assert room.display_location == "Huddle - Floor 2"

    def test_rejects_zero_capacity(self):
        with pytest.raises(ValidationError):
            MeetingRoom(name="Closet", code="CL", capacity=0, floor_number=1)


class TestConflictOverrideRecord:
    """Tests for ConflictOverrideRecord."""

    def _record(self, **kwargs) -> ConflictOverrideRecord:
        fields = {
            "new_meeting_id": uuid4(),
            "participant_id": uuid4(),
            "approved_by": uuid4(),
            "override_reason": "urgent",
        }
        fields.update(kwargs)
        return ConflictOverrideRecord(**fields)

    def test_references_meeting(self):
        record = self._record(conflicting_meeting_id=uuid4())
        assert record.override_approved

    def test_requires_exactly_one_conflict_reference(self):
        with pytest.raises(ValidationError):
            self._record()
        with pytest.raises(ValidationError):
            self._record(conflicting_meeting_id=uuid4(), conflicting_block_id=uuid4())

    def test_rejects_blank_reason(self):
        with pytest.raises(ValidationError):
            self._record(conflicting_block_id=uuid4(), override_reason="  ")

    def test_is_immutable(self):
        record = self._record(conflicting_meeting_id=uuid4())
        with pytest.raises(ValidationError):
            record.override_reason = "changed"


class TestDelegationAssignment:
    def test_effective_window(self):
        assignment = DelegationAssignment(
            secretary_id=uuid4(),
            employee_id=uuid4(),
            assigned_at=START,
            valid_until=START + timedelta(days=7),
        )
        assert assignment.is_effective(START + timedelta(days=1))
        assert not assignment.is_effective(START - timedelta(minutes=1))
        assert not assignment.is_effective(START + timedelta(days=7))

    def test_inactive_never_effective(self):
        assignment = DelegationAssignment(
            secretary_id=uuid4(),
            employee_id=uuid4(),
            assigned_at=START,
            is_active=False,
        )
        assert not assignment.is_effective(START + timedelta(hours=1))
