# /smart-lms-backend/app/services/attendance_service.py

"""
This service module is the business logic layer for attendance.

It is a facade in the same shape as the other services: it loads data through
the `DatabaseService`, enforces who may see or change what, and hands the
actual rules over to the specialist helpers:

- `attendance_helpers.session_accounting` for join/leave/finalize arithmetic,
- `attendance_helpers.reporting` for statistics and report payloads,
- `attendance_helpers.export` for the CSV rendition.

Conventions shared with the routers: a missing resource is signalled by
returning `None`, an invalid state by `ValueError` and an ownership or role
violation by `PermissionError`.
"""

import logging
from datetime import datetime
from typing import List, Dict, Optional

from app.core.timeutils import utcnow, ensure_utc
from ..models.user_model import UserRole
from .database_service import DatabaseService
from .attendance_helpers import session_accounting, reporting, export

logger = logging.getLogger(__name__)


# --- AUTHORIZATION HELPERS ---

def ensure_can_manage_meeting(meeting, user) -> None:
    """Admins manage every meeting; teachers only the meetings they lecture."""
    if user.role == UserRole.ADMIN.value:
        return
    if user.role == UserRole.TEACHER.value and meeting.lecturer_id == user.id:
        return
    raise PermissionError("You are not authorized to access attendance for this meeting.")


def ensure_can_read_student(student_id: str, user) -> None:
    """Students may only read their own attendance."""
    if user.role == UserRole.STUDENT.value and user.id != student_id:
        raise PermissionError("You can only view your own attendance.")


# --- JOIN / LEAVE ---

def join_meeting(meeting_id: str, student, db: DatabaseService, now: Optional[datetime] = None) -> Optional[Dict]:
    """
    Records a student joining a meeting, creating the attendance record on the
    first join. Returns None when the meeting does not exist.
    """
    now = now or utcnow()
    if student.role != UserRole.STUDENT.value:
        raise PermissionError("Only students can record meeting attendance.")

    meeting = db.get_meeting_by_id(meeting_id)
    if meeting is None:
        return None
    if not session_accounting.is_meeting_joinable(meeting):
        raise ValueError("Meeting is not currently in progress.")

    attendance = db.get_attendance(meeting_id, student.id)
    if attendance is None:
        attendance = session_accounting.open_attendance_record(meeting_id, student)

    if not session_accounting.record_join(attendance, now):
        raise ValueError("Student is already marked as present in an active session.")

    session_accounting.check_late_arrival(attendance, meeting.scheduled_start)
    attendance = db.save_attendance(attendance)

    logger.info(
        f"Student {student.id} joined meeting {meeting_id} "
        f"(sessions={len(attendance.sessions)}, late={attendance.is_late})"
    )
    return {
        "message": "Attendance recorded - joined meeting",
        "meeting_id": meeting_id,
        "student_id": student.id,
        "join_time": now,
        "session_count": len(attendance.sessions),
        "is_late": attendance.is_late,
        "status": attendance.status,
    }


def leave_meeting(meeting_id: str, student, db: DatabaseService, now: Optional[datetime] = None) -> Optional[Dict]:
    """
    Records a student leaving a meeting. Returns None when the meeting or the
    student's attendance record does not exist.
    """
    now = now or utcnow()
    meeting = db.get_meeting_by_id(meeting_id)
    if meeting is None:
        return None

    attendance = db.get_attendance(meeting_id, student.id)
    if attendance is None:
        return None

    if not session_accounting.record_leave(attendance, now):
        raise ValueError("No active session found for this student.")

    session_accounting.refresh_after_leave(attendance, meeting, now)
    attendance = db.save_attendance(attendance)

    logger.info(
        f"Student {student.id} left meeting {meeting_id} "
        f"(total={attendance.total_duration}s, {attendance.attendance_percentage}%)"
    )
    return {
        "message": "Attendance recorded - left meeting",
        "meeting_id": meeting_id,
        "student_id": student.id,
        "leave_time": now,
        "total_duration": attendance.total_duration,
        "attendance_percentage": attendance.attendance_percentage,
        "status": attendance.status,
    }


def close_open_session(meeting_id: str, student_id: str, db: DatabaseService, now: Optional[datetime] = None):
    """
    Closes a student's active session if there is one, e.g. after a dropped
    real-time connection. Returns the updated record, or None if nothing was open.
    """
    now = now or utcnow()
    meeting = db.get_meeting_by_id(meeting_id)
    attendance = db.get_attendance(meeting_id, student_id)
    if meeting is None or attendance is None:
        return None
    if not session_accounting.record_leave(attendance, now):
        return None

    session_accounting.refresh_after_leave(attendance, meeting, now)
    logger.info(f"Closed dangling session of student {student_id} in meeting {meeting_id}")
    return db.save_attendance(attendance)


# --- FINALIZATION ---

def finalize_attendance(meeting, db: DatabaseService, now: Optional[datetime] = None) -> Dict:
    """Settles all attendance of an already-authorized meeting and persists the result."""
    now = now or utcnow()
    records = db.get_attendances_for_meeting(meeting.id)
    enrolled = db.get_enrolled_students(meeting.batch_id, meeting.semester_id) if meeting.batch_id else []

    result = session_accounting.finalize_meeting_attendance(meeting, records, enrolled, now)
    db.save_attendances(records + result["absent_records"])

    logger.info(
        f"Finalized attendance for meeting {meeting.id}: "
        f"{result['closed_sessions']} sessions closed, {len(result['absent_records'])} marked absent"
    )
    return {
        "message": "Attendance finalized successfully",
        "closed_sessions": result["closed_sessions"],
        "absent_marked": len(result["absent_records"]),
        "total_records": result["total_records"],
    }


def finalize_meeting(meeting_id: str, user, db: DatabaseService, now: Optional[datetime] = None) -> Optional[Dict]:
    meeting = db.get_meeting_by_id(meeting_id)
    if meeting is None:
        return None
    ensure_can_manage_meeting(meeting, user)
    return finalize_attendance(meeting, db, now=now)


# --- READ OPERATIONS ---

def get_meeting_attendance(meeting_id: str, user, db: DatabaseService, now: Optional[datetime] = None) -> Optional[Dict]:
    now = now or utcnow()
    meeting = db.get_meeting_by_id(meeting_id)
    if meeting is None:
        return None
    ensure_can_manage_meeting(meeting, user)

    records = db.get_attendances_for_meeting(meeting_id)
    return {
        "meeting": reporting.serialize_meeting(meeting, now=now),
        "statistics": reporting.calculate_statistics(records),
        "attendances": records,
    }


def get_student_attendance(
    student_id: str,
    user,
    db: DatabaseService,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    subject_id: Optional[str] = None,
) -> Optional[Dict]:
    """
    A student's attendance history (optionally filtered) together with the
    statistics over their whole history.
    """
    start_date, end_date = ensure_utc(start_date), ensure_utc(end_date)
    ensure_can_read_student(student_id, user)
    if db.get_user_by_id(student_id) is None:
        return None

    history = db.get_attendances_for_student(student_id, start_date=start_date, end_date=end_date, subject_id=subject_id)
    lifetime = db.get_attendances_for_student(student_id)
    return {
        "student_id": student_id,
        "statistics": reporting.calculate_statistics(lifetime),
        "count": len(history),
        "attendances": history,
    }


def get_admin_overview(
    db: DatabaseService,
    department_id: Optional[str] = None,
    course_id: Optional[str] = None,
    batch_id: Optional[str] = None,
    semester_id: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> Dict:
    start_date, end_date = ensure_utc(start_date), ensure_utc(end_date)
    filters = {
        "department_id": department_id,
        "course_id": course_id,
        "batch_id": batch_id,
        "semester_id": semester_id,
    }
    meetings = db.find_meetings(filters, start_date=start_date, end_date=end_date)
    records = db.get_attendances_for_meetings([m.id for m in meetings])
    overview = reporting.build_admin_overview(meetings, records)
    return {"count": len(overview), "overview": overview}


def get_attendance_details(attendance_id: str, user, db: DatabaseService) -> Optional[Dict]:
    attendance = db.get_attendance_by_id(attendance_id)
    if attendance is None:
        return None

    meeting = db.get_meeting_by_id(attendance.meeting_id)
    if user.role == UserRole.STUDENT.value:
        ensure_can_read_student(attendance.student_id, user)
    else:
        ensure_can_manage_meeting(meeting, user)

    student = db.get_user_by_id(attendance.student_id)
    return {
        "attendance": attendance,
        "student": {
            "id": attendance.student_id,
            "name": attendance.student_name,
            "email": attendance.student_email,
            "roll_number": getattr(student, "roll_number", None),
        },
        "meeting": reporting.serialize_meeting(meeting),
    }


def update_notes(attendance_id: str, notes: Optional[str], user, db: DatabaseService):
    attendance = db.get_attendance_by_id(attendance_id)
    if attendance is None:
        return None
    ensure_can_manage_meeting(db.get_meeting_by_id(attendance.meeting_id), user)

    attendance.notes = notes
    return db.save_attendance(attendance)


# --- REPORTS ---

def generate_meeting_report(meeting_id: str, user, db: DatabaseService, now: Optional[datetime] = None) -> Optional[Dict]:
    now = now or utcnow()
    meeting = db.get_meeting_by_id(meeting_id)
    if meeting is None:
        return None
    ensure_can_manage_meeting(meeting, user)

    records = db.get_attendances_for_meeting(meeting_id)
    students = db.get_users_by_ids([a.student_id for a in records])
    return reporting.build_meeting_report(meeting, records, {s.id: s for s in students}, now)


def generate_student_report(
    student_id: str,
    user,
    db: DatabaseService,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    subject_id: Optional[str] = None,
) -> Optional[Dict]:
    start_date, end_date = ensure_utc(start_date), ensure_utc(end_date)
    ensure_can_read_student(student_id, user)
    student = db.get_user_by_id(student_id)
    if student is None:
        return None

    records = db.get_attendances_for_student(student_id, start_date=start_date, end_date=end_date, subject_id=subject_id)
    meetings = [db.get_meeting_by_id(meeting_id) for meeting_id in {a.meeting_id for a in records}]
    meetings_by_id = {m.id: m for m in meetings if m is not None}
    return reporting.build_student_report(student, records, meetings_by_id, start_date=start_date, end_date=end_date)


def generate_batch_overview(
    batch_id: str,
    db: DatabaseService,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    subject_id: Optional[str] = None,
) -> Optional[Dict]:
    start_date, end_date = ensure_utc(start_date), ensure_utc(end_date)
    batch = db.get_batch_by_id(batch_id)
    if batch is None:
        return None

    meetings = db.find_meetings({"batch_id": batch_id, "subject_id": subject_id}, start_date=start_date, end_date=end_date)
    students = db.get_enrolled_students(batch_id)
    records = db.get_attendances_for_meetings([m.id for m in meetings])
    return reporting.build_batch_overview(batch, meetings, students, records, start_date=start_date, end_date=end_date)


def export_meeting_csv(meeting_id: str, user, db: DatabaseService, now: Optional[datetime] = None) -> Optional[str]:
    report = generate_meeting_report(meeting_id, user, db, now=now)
    if report is None:
        return None
    return export.meeting_report_to_csv(report)
