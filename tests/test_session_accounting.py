# /tests/test_session_accounting.py

import pytest
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from app.db.models.meeting_models import Meeting
from app.services.attendance_helpers import session_accounting as sa

T0 = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)


def minutes(n: float) -> datetime:
    return T0 + timedelta(minutes=n)


# --- Fixtures ---

@pytest.fixture
def student():
    return SimpleNamespace(id="usr_student1", first_name="Sam", last_name="Lee", email="sam@example.com")


@pytest.fixture
def attendance(student):
    return sa.open_attendance_record("mtg_1", student)


@pytest.fixture
def meeting():
    """An ongoing one-hour meeting that started on time."""
    return Meeting(
        id="mtg_1", topic="Sorting", subject_id="sub_1", lecturer_id="usr_t1",
        scheduled_start=T0, scheduled_end=minutes(60), started_at=T0,
        status="ongoing", is_active=True,
    )


# --- Record Creation ---

def test_open_attendance_record_starts_absent(attendance):
    assert attendance.id.startswith("att_")
    assert attendance.student_name == "Sam Lee"
    assert attendance.status == "absent"
    assert attendance.total_duration == 0
    assert attendance.rejoin_count == 0
    assert attendance.sessions == []
    assert attendance.is_currently_present is False


# --- Join / Leave ---

def test_first_join_opens_session_and_marks_present(attendance):
    assert sa.record_join(attendance, minutes(0)) is True

    assert len(attendance.sessions) == 1
    assert attendance.sessions[0].is_active is True
    assert attendance.is_currently_present is True
    assert attendance.first_join_time == T0
    assert attendance.status == "present"
    assert attendance.rejoin_count == 0


def test_joining_twice_without_leaving_is_rejected(attendance):
    sa.record_join(attendance, minutes(0))
    assert sa.record_join(attendance, minutes(1)) is False

    assert len(attendance.sessions) == 1
    assert attendance.rejoin_count == 0
    assert attendance.first_join_time == T0


def test_leave_without_active_session_is_rejected(attendance):
    assert sa.record_leave(attendance, minutes(5)) is False
    assert attendance.total_duration == 0


def test_leave_closes_session_with_floored_duration(attendance):
    sa.record_join(attendance, minutes(0))
    assert sa.record_leave(attendance, T0 + timedelta(seconds=90, milliseconds=900)) is True

    session = attendance.sessions[0]
    assert session.is_active is False
    assert session.duration == 90
    assert attendance.total_duration == 90
    assert attendance.is_currently_present is False
    assert attendance.last_leave_time == T0 + timedelta(seconds=90, milliseconds=900)


def test_durations_accumulate_across_rejoins(attendance):
    """Two sessions of 10 and 30 minutes sum up; the second join counts as one rejoin."""
    sa.record_join(attendance, minutes(0))
    sa.record_leave(attendance, minutes(10))
    sa.record_join(attendance, minutes(20))
    sa.record_leave(attendance, minutes(50))

    assert attendance.total_duration == 2400
    assert attendance.total_duration == sum(s.duration for s in attendance.sessions)
    assert attendance.rejoin_count == len(attendance.sessions) - 1 == 1
    assert attendance.first_join_time == T0
    assert attendance.last_leave_time == minutes(50)


def test_clock_skew_never_produces_negative_duration(attendance):
    sa.record_join(attendance, minutes(10))
    sa.record_leave(attendance, minutes(5))

    assert attendance.sessions[0].duration == 0
    assert attendance.total_duration == 0


# --- Derived Values ---

def test_percentage_is_rounded_and_capped(attendance):
    attendance.total_duration = 600
    assert sa.calculate_attendance_percentage(attendance, 3600) == 16.67

    attendance.total_duration = 5000
    assert sa.calculate_attendance_percentage(attendance, 3600) == 100.0


def test_percentage_is_zero_for_unknown_meeting_duration(attendance):
    attendance.total_duration = 600
    assert sa.calculate_attendance_percentage(attendance, 0) == 0.0
    assert attendance.attendance_percentage == 0.0


def test_percentage_never_decreases_as_sessions_close(attendance):
    meeting_duration = 3600
    previous = 0.0
    for join_at, leave_at in [(0, 5), (10, 12), (30, 59)]:
        sa.record_join(attendance, minutes(join_at))
        sa.record_leave(attendance, minutes(leave_at))
        current = sa.calculate_attendance_percentage(attendance, meeting_duration)
        assert current >= previous
        previous = current
    assert previous <= 100.0


@pytest.mark.parametrize("join_offset, expected_late", [
    (timedelta(minutes=0), False),
    (timedelta(minutes=5), False),
    (timedelta(minutes=5, seconds=1), True),
    (timedelta(minutes=20), True),
])
def test_late_arrival_respects_grace_period(attendance, join_offset, expected_late):
    sa.record_join(attendance, T0 + join_offset)

    assert sa.check_late_arrival(attendance, T0, grace_period_minutes=5) is expected_late
    assert attendance.status == ("late" if expected_late else "present")


def test_late_check_without_join_does_nothing(attendance):
    assert sa.check_late_arrival(attendance, T0) is False
    assert attendance.status == "absent"


def test_settle_status_marks_short_attendance_partial(attendance, meeting):
    sa.record_join(attendance, minutes(0))
    sa.record_leave(attendance, minutes(10))
    sa.refresh_after_leave(attendance, meeting, minutes(10))

    assert attendance.attendance_percentage == 16.67
    assert attendance.status == "partial"


def test_partial_attendee_is_present_again_after_rejoining(attendance, meeting):
    sa.record_join(attendance, minutes(0))
    sa.record_leave(attendance, minutes(10))
    sa.refresh_after_leave(attendance, meeting, minutes(10))
    assert attendance.status == "partial"

    sa.record_join(attendance, minutes(15))
    assert attendance.status == "present"

    sa.record_leave(attendance, minutes(55))
    sa.refresh_after_leave(attendance, meeting, minutes(55))
    assert attendance.total_duration == 3000
    assert attendance.status == "present"


def test_settle_status_keeps_late_when_enough_time_attended(attendance, meeting):
    sa.record_join(attendance, minutes(10))
    sa.check_late_arrival(attendance, meeting.scheduled_start)
    sa.record_leave(attendance, minutes(60))
    sa.refresh_after_leave(attendance, meeting, minutes(60))

    assert attendance.is_late is True
    assert attendance.status == "late"


def test_settle_status_leaves_unjoined_record_absent(attendance):
    assert sa.settle_status(attendance) == "absent"


# --- Meeting Duration ---

def test_meeting_duration_before_start_is_zero(meeting):
    meeting.started_at = None
    assert sa.meeting_duration_seconds(meeting, minutes(30)) == 0


def test_meeting_duration_uses_actual_length_once_ended(meeting):
    meeting.ended_at = minutes(45)
    assert sa.meeting_duration_seconds(meeting, minutes(90)) == 2700


def test_meeting_duration_uses_schedule_while_ongoing(meeting):
    assert sa.meeting_duration_seconds(meeting, minutes(5)) == 3600


def test_meeting_duration_without_schedule_end_is_elapsed_time(meeting):
    meeting.scheduled_end = None
    assert sa.meeting_duration_seconds(meeting, minutes(25)) == 1500


# --- Finalization ---

def test_finalize_closes_sessions_and_marks_non_joiners_absent(meeting, student):
    meeting.ended_at = minutes(60)

    stayed = sa.open_attendance_record(meeting.id, student)
    sa.record_join(stayed, minutes(30))

    short_visitor = sa.open_attendance_record(
        meeting.id, SimpleNamespace(id="usr_student2", first_name="Kim", last_name="Ray", email="kim@example.com")
    )
    sa.record_join(short_visitor, minutes(0))
    sa.record_leave(short_visitor, minutes(5))

    never_joined = SimpleNamespace(id="usr_student3", first_name="Lou", last_name="Fox", email="lou@example.com")
    enrolled = [student, SimpleNamespace(id="usr_student2"), never_joined]

    result = sa.finalize_meeting_attendance(meeting, [stayed, short_visitor], enrolled, now=minutes(70))

    assert result["closed_sessions"] == 1
    assert result["total_records"] == 3
    assert [r.student_id for r in result["absent_records"]] == ["usr_student3"]
    assert result["absent_records"][0].status == "absent"

    assert stayed.is_currently_present is False
    assert stayed.sessions[0].leave_time == minutes(60)
    assert stayed.total_duration == 1800
    assert stayed.attendance_percentage == 50.0
    assert stayed.status == "present"

    assert short_visitor.status == "partial"


def test_finalize_without_end_closes_sessions_at_now(meeting, student):
    attendance = sa.open_attendance_record(meeting.id, student)
    sa.record_join(attendance, minutes(0))

    result = sa.finalize_meeting_attendance(meeting, [attendance], [], now=minutes(40))

    assert result["closed_sessions"] == 1
    assert attendance.total_duration == 2400
    assert attendance.last_leave_time == minutes(40)


def test_meeting_is_joinable_only_while_ongoing(meeting):
    assert sa.is_meeting_joinable(meeting) is True
    meeting.status = "completed"
    assert sa.is_meeting_joinable(meeting) is False
