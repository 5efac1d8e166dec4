# /smart-lms-backend/app/services/attendance_helpers/session_accounting.py

"""
This module holds the attendance session accounting rules.

It operates purely on in-memory ORM objects: a student's `Attendance` record
and its ordered list of `AttendanceSession` intervals. Nothing here opens a
database session or reads the clock implicitly; callers pass `now` so that the
arithmetic is deterministic and testable. Persistence is the caller's job.

Rules:
- at most one session is active per record;
- closing a session adds its whole-second length to `total_duration`;
- the percentage is `total_duration / meeting_duration`, capped at 100;
- a first join later than the scheduled start plus the grace period is late;
- a closed record below the partial threshold is `partial`.
"""

import math
import uuid
from datetime import datetime, timedelta
from typing import List, Dict, Optional

from app.core import config
from app.core.timeutils import ensure_utc
from app.db.models.attendance_models import Attendance, AttendanceSession
from ...models.attendance_model import AttendanceStatus
from ...models.meeting_model import MeetingStatus


# --- RECORD CREATION ---

def open_attendance_record(meeting_id: str, student: 'User') -> Attendance:
    """
    Builds a fresh, unsaved attendance record for a student. Column defaults
    only apply on flush, so every counter is set explicitly here.
    """
    return Attendance(
        id=f"att_{uuid.uuid4().hex[:12]}",
        meeting_id=meeting_id,
        student_id=student.id,
        student_name=f"{student.first_name} {student.last_name}",
        student_email=student.email,
        status=AttendanceStatus.ABSENT.value,
        first_join_time=None,
        last_leave_time=None,
        total_duration=0,
        rejoin_count=0,
        is_currently_present=False,
        attendance_percentage=0.0,
        is_late=False,
    )


def get_active_session(attendance: Attendance) -> Optional[AttendanceSession]:
    return next((s for s in attendance.sessions if s.is_active), None)


# --- JOIN / LEAVE ---

def record_join(attendance: Attendance, join_time: datetime) -> bool:
    """
    Opens a new session. Returns False (and changes nothing) when the student
    already has an active session.
    """
    if attendance.is_currently_present or get_active_session(attendance) is not None:
        return False

    join_time = ensure_utc(join_time)
    attendance.sessions.append(
        AttendanceSession(
            id=f"ses_{uuid.uuid4().hex[:12]}",
            join_time=join_time,
            leave_time=None,
            duration=0,
            is_active=True,
        )
    )
    attendance.is_currently_present = True

    if attendance.first_join_time is None:
        attendance.first_join_time = join_time

    # A returning partial attendee is present again until the next leave settles the record.
    if attendance.status in (AttendanceStatus.ABSENT.value, AttendanceStatus.PARTIAL.value):
        attendance.status = AttendanceStatus.PRESENT.value

    # Every join after the first is a rejoin.
    if len(attendance.sessions) > 1:
        attendance.rejoin_count = (attendance.rejoin_count or 0) + 1

    return True


def record_leave(attendance: Attendance, leave_time: datetime) -> bool:
    """
    Closes the active session and accumulates its duration. Returns False when
    there is no active session to close.
    """
    active_session = get_active_session(attendance)
    if active_session is None:
        return False

    leave_time = ensure_utc(leave_time)
    duration = session_length_seconds(active_session.join_time, leave_time)

    active_session.leave_time = leave_time
    active_session.is_active = False
    active_session.duration = duration

    attendance.total_duration = (attendance.total_duration or 0) + duration
    attendance.last_leave_time = leave_time
    attendance.is_currently_present = False
    return True


def session_length_seconds(join_time: datetime, leave_time: datetime) -> int:
    """Whole seconds between two instants, floored; clock skew never yields a negative length."""
    elapsed = (ensure_utc(leave_time) - ensure_utc(join_time)).total_seconds()
    return max(math.floor(elapsed), 0)


# --- DERIVED VALUES ---

def calculate_attendance_percentage(attendance: Attendance, meeting_duration: int) -> float:
    """Stores and returns the record's percentage of the meeting attended (0..100, 2 decimals)."""
    if not meeting_duration or meeting_duration <= 0:
        attendance.attendance_percentage = 0.0
        return 0.0
    percentage = (attendance.total_duration / meeting_duration) * 100
    attendance.attendance_percentage = min(round(percentage, 2), 100.0)
    return attendance.attendance_percentage


def check_late_arrival(
    attendance: Attendance,
    scheduled_start: Optional[datetime],
    grace_period_minutes: int = config.LATE_GRACE_PERIOD_MINUTES,
) -> bool:
    """Flags the record as late when its first join is after scheduled start + grace."""
    if attendance.first_join_time is None or scheduled_start is None:
        return False

    late_threshold = ensure_utc(scheduled_start) + timedelta(minutes=grace_period_minutes)
    attendance.is_late = ensure_utc(attendance.first_join_time) > late_threshold

    if attendance.is_late and attendance.status == AttendanceStatus.PRESENT.value:
        attendance.status = AttendanceStatus.LATE.value

    return attendance.is_late


def settle_status(
    attendance: Attendance,
    partial_threshold: float = config.PARTIAL_ATTENDANCE_THRESHOLD,
) -> str:
    """
    Derives the status of a record that is not currently in the meeting.
    Records with no sessions stay absent; a student still in the meeting
    keeps the status assigned on join.
    """
    if not attendance.sessions:
        attendance.status = AttendanceStatus.ABSENT.value
    elif attendance.is_currently_present:
        pass
    elif attendance.attendance_percentage < partial_threshold:
        attendance.status = AttendanceStatus.PARTIAL.value
    elif attendance.is_late:
        attendance.status = AttendanceStatus.LATE.value
    else:
        attendance.status = AttendanceStatus.PRESENT.value
    return attendance.status


def meeting_duration_seconds(meeting: 'Meeting', now: datetime) -> int:
    """
    The denominator of the attendance percentage.

    - not started yet: 0
    - ended: actual length (`ended_at - started_at`)
    - ongoing: the scheduled length when the schedule defines one, otherwise
      the time elapsed since the start. A fixed denominator keeps percentages
      from shrinking while the meeting is still running.
    """
    if meeting.started_at is None:
        return 0
    if meeting.ended_at is not None:
        return session_length_seconds(meeting.started_at, meeting.ended_at)
    if meeting.scheduled_start is not None and meeting.scheduled_end is not None:
        scheduled = session_length_seconds(meeting.scheduled_start, meeting.scheduled_end)
        if scheduled > 0:
            return scheduled
    return session_length_seconds(meeting.started_at, now)


def refresh_after_leave(attendance: Attendance, meeting: 'Meeting', now: datetime) -> None:
    """Recomputes percentage and status once a session has been closed."""
    calculate_attendance_percentage(attendance, meeting_duration_seconds(meeting, now))
    settle_status(attendance)


# --- FINALIZATION ---

def finalize_meeting_attendance(
    meeting: 'Meeting',
    records: List[Attendance],
    enrolled_students: List['User'],
    now: datetime,
) -> Dict:
    """
    Settles every student's attendance for a meeting.

    1. Closes all active sessions at the meeting's end (or `now` if it has not
       ended).
    2. Recomputes percentage and status for every record against the final
       meeting duration.
    3. Creates `absent` records for enrolled students who never joined.

    Returns the new absent records (to be persisted by the caller) and counts.
    """
    close_time = ensure_utc(meeting.ended_at) if meeting.ended_at is not None else ensure_utc(now)
    meeting_duration = meeting_duration_seconds(meeting, now)

    closed_sessions = 0
    for attendance in records:
        if record_leave(attendance, close_time):
            closed_sessions += 1
        if attendance.sessions:
            calculate_attendance_percentage(attendance, meeting_duration)
        settle_status(attendance)

    seen_students = {a.student_id for a in records}
    absent_records = [
        open_attendance_record(meeting.id, student)
        for student in enrolled_students
        if student.id not in seen_students
    ]

    return {
        "closed_sessions": closed_sessions,
        "absent_records": absent_records,
        "total_records": len(records) + len(absent_records),
    }


def is_meeting_joinable(meeting: 'Meeting') -> bool:
    return meeting.is_active and meeting.status == MeetingStatus.ONGOING.value
