# /smart-lms-backend/app/services/attendance_helpers/reporting.py

"""
Specialist helpers that turn already-fetched attendance rows into report
payloads: per-meeting statistics, a student's history, a batch overview and
the admin overview.

Like the accounting helpers, these functions never query the database. The
attendance service fetches (and authorizes) the data and hands it over.
"""

from datetime import datetime
from typing import List, Dict, Optional

import pandas as pd

from app.core.timeutils import ensure_utc
from ...models.attendance_model import AttendanceStatus
from .session_accounting import meeting_duration_seconds

ATTENDED_STATUSES = [AttendanceStatus.PRESENT.value, AttendanceStatus.LATE.value]
EMPTY_STATISTICS = {
    "total": 0, "present_count": 0, "late_count": 0, "partial_count": 0,
    "absent_count": 0, "attendance_rate": 0.0, "average_attendance_percentage": 0.0,
}


# --- PURE UTILITY FUNCTIONS ---

def _percent(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


def format_duration(seconds: int) -> str:
    """Formats a duration as e.g. '1h 5m 3s'; zero is '0s'."""
    seconds = int(seconds or 0)
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)

    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)


def _records_frame(records: List['Attendance']) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "meeting_id": a.meeting_id,
                "student_id": a.student_id,
                "status": a.status,
                "attendance_percentage": float(a.attendance_percentage or 0.0),
                "total_duration": int(a.total_duration or 0),
                "rejoin_count": int(a.rejoin_count or 0),
            }
            for a in records
        ]
    )


def calculate_statistics(records: List['Attendance']) -> Dict:
    """
    Status counts, attendance rate ((present + late) / total) and the mean
    attendance percentage over a list of records.
    """
    df = _records_frame(records)
    if df.empty:
        return dict(EMPTY_STATISTICS)

    counts = df["status"].value_counts().to_dict()
    total = len(df)
    present = int(counts.get(AttendanceStatus.PRESENT.value, 0))
    late = int(counts.get(AttendanceStatus.LATE.value, 0))

    return {
        "total": total,
        "present_count": present,
        "late_count": late,
        "partial_count": int(counts.get(AttendanceStatus.PARTIAL.value, 0)),
        "absent_count": int(counts.get(AttendanceStatus.ABSENT.value, 0)),
        "attendance_rate": _percent(present + late, total),
        "average_attendance_percentage": round(float(df["attendance_percentage"].mean()), 2),
    }


def serialize_meeting(meeting: 'Meeting', now: Optional[datetime] = None) -> Dict:
    summary = {
        "id": meeting.id,
        "topic": meeting.topic,
        "description": meeting.description,
        "subject_id": meeting.subject_id,
        "lecturer_id": meeting.lecturer_id,
        "department_id": meeting.department_id,
        "course_id": meeting.course_id,
        "batch_id": meeting.batch_id,
        "semester_id": meeting.semester_id,
        "scheduled_start": ensure_utc(meeting.scheduled_start),
        "scheduled_end": ensure_utc(meeting.scheduled_end),
        "started_at": ensure_utc(meeting.started_at),
        "ended_at": ensure_utc(meeting.ended_at),
        "status": meeting.status,
    }
    if now is not None:
        summary["duration"] = meeting_duration_seconds(meeting, now)
    return summary


def _serialize_session(session: 'AttendanceSession') -> Dict:
    return {
        "id": session.id,
        "join_time": ensure_utc(session.join_time),
        "leave_time": ensure_utc(session.leave_time),
        "duration": session.duration,
        "is_active": session.is_active,
    }


# --- REPORT BUILDERS ---

def build_meeting_report(meeting: 'Meeting', records: List['Attendance'], students_by_id: Dict[str, 'User'], now: datetime) -> Dict:
    """Detailed report of one meeting: meeting info, statistics and one row per student."""
    statistics = calculate_statistics(records)
    df = _records_frame(records)
    statistics["average_duration"] = int(round(float(df["total_duration"].mean()))) if not df.empty else 0

    rows = []
    for a in records:
        student = students_by_id.get(a.student_id)
        rows.append({
            "id": a.id,
            "student": {
                "id": a.student_id,
                "name": a.student_name,
                "email": a.student_email,
                "roll_number": getattr(student, "roll_number", None),
            },
            "status": a.status,
            "first_join_time": ensure_utc(a.first_join_time),
            "last_leave_time": ensure_utc(a.last_leave_time),
            "total_duration": a.total_duration,
            "attendance_percentage": a.attendance_percentage,
            "session_count": len(a.sessions),
            "rejoin_count": a.rejoin_count,
            "is_late": a.is_late,
            "sessions": [_serialize_session(s) for s in a.sessions],
        })

    return {
        "meeting": serialize_meeting(meeting, now=now),
        "statistics": statistics,
        "attendances": rows,
    }


def build_student_report(
    student: 'User',
    records: List['Attendance'],
    meetings_by_id: Dict[str, 'Meeting'],
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> Dict:
    """A student's attendance across meetings with aggregate statistics."""
    statistics = calculate_statistics(records)
    df = _records_frame(records)
    statistics["total_duration"] = int(df["total_duration"].sum()) if not df.empty else 0
    statistics["total_rejoin_count"] = int(df["rejoin_count"].sum()) if not df.empty else 0

    rows = []
    for a in records:
        meeting = meetings_by_id.get(a.meeting_id)
        rows.append({
            "id": a.id,
            "meeting": {
                "id": meeting.id,
                "topic": meeting.topic,
                "subject_id": meeting.subject_id,
                "scheduled_start": ensure_utc(meeting.scheduled_start),
            } if meeting else None,
            "status": a.status,
            "first_join_time": ensure_utc(a.first_join_time),
            "last_leave_time": ensure_utc(a.last_leave_time),
            "total_duration": a.total_duration,
            "attendance_percentage": a.attendance_percentage,
            "session_count": len(a.sessions),
            "is_late": a.is_late,
        })

    return {
        "student": {
            "id": student.id,
            "name": f"{student.first_name} {student.last_name}",
            "email": student.email,
            "roll_number": student.roll_number,
        },
        "period": {"start_date": start_date, "end_date": end_date},
        "statistics": statistics,
        "attendances": rows,
    }


def build_batch_overview(
    batch: 'Batch',
    meetings: List['Meeting'],
    students: List['User'],
    records: List['Attendance'],
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> Dict:
    """
    Per-student attendance across all meetings of a batch. A meeting counts as
    attended when the student's record exists and is not `absent`; a missing
    record counts as absent.
    """
    df = _records_frame(records)
    attended_df = df[df["status"] != AttendanceStatus.ABSENT.value] if not df.empty else df
    total_meetings = len(meetings)

    student_overview = []
    for student in students:
        student_df = attended_df[attended_df["student_id"] == student.id] if not attended_df.empty else attended_df
        attended = len(student_df)
        present = int((student_df["status"] == AttendanceStatus.PRESENT.value).sum()) if attended else 0
        late = int((student_df["status"] == AttendanceStatus.LATE.value).sum()) if attended else 0
        student_overview.append({
            "student": {
                "id": student.id,
                "name": f"{student.first_name} {student.last_name}",
                "email": student.email,
                "roll_number": student.roll_number,
            },
            "total_meetings": total_meetings,
            "attended_meetings": attended,
            "present_count": present,
            "late_count": late,
            "absent_count": total_meetings - attended,
            "attendance_rate": _percent(present + late, total_meetings),
        })

    attendance_counts = attended_df.groupby("meeting_id").size().to_dict() if not attended_df.empty else {}
    possible = total_meetings * len(students)

    return {
        "batch": {
            "id": batch.id,
            "name": batch.name,
            "code": batch.code,
            "year": batch.year,
            "department_id": batch.department_id,
            "course_id": batch.course_id,
        },
        "period": {"start_date": start_date, "end_date": end_date},
        "statistics": {
            "total_meetings": total_meetings,
            "total_students": len(students),
            "overall_attendance_rate": _percent(len(attended_df), possible),
        },
        "meetings": [
            {
                "id": m.id,
                "topic": m.topic,
                "subject_id": m.subject_id,
                "scheduled_start": ensure_utc(m.scheduled_start),
                "status": m.status,
                "attendance_count": int(attendance_counts.get(m.id, 0)),
            }
            for m in meetings
        ],
        "student_overview": student_overview,
    }


def build_admin_overview(meetings: List['Meeting'], records: List['Attendance']) -> List[Dict]:
    """One statistics block per meeting, in the order the meetings were given."""
    records_by_meeting: Dict[str, List] = {}
    for a in records:
        records_by_meeting.setdefault(a.meeting_id, []).append(a)

    overview = []
    for meeting in meetings:
        stats = calculate_statistics(records_by_meeting.get(meeting.id, []))
        overview.append({
            "meeting": serialize_meeting(meeting),
            "attendance": {
                "total_students": stats["total"],
                "present_count": stats["present_count"],
                "late_count": stats["late_count"],
                "partial_count": stats["partial_count"],
                "absent_count": stats["absent_count"],
                "attendance_rate": stats["attendance_rate"],
            },
        })
    return overview
