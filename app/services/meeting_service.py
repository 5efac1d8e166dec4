# /smart-lms-backend/app/services/meeting_service.py

"""
Business logic for the meeting lifecycle:

    scheduled --start--> ongoing --end--> completed
    scheduled --cancel--> cancelled

The lifecycle drives attendance: students can only join an ongoing meeting,
and ending a meeting finalizes its attendance.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import List, Dict, Optional

from app.core import config
from app.core.timeutils import utcnow, ensure_utc
from ..models import meeting_model
from ..models.meeting_model import MeetingStatus
from ..models.user_model import UserRole
from .database_service import DatabaseService
from . import attendance_service

logger = logging.getLogger(__name__)


def _ensure_lecturer_or_admin(meeting, user, action: str) -> None:
    if user.role != UserRole.ADMIN.value and meeting.lecturer_id != user.id:
        raise PermissionError(f"You are not authorized to {action} this meeting.")


# --- CREATE / READ ---

def create_meeting(meeting_data: meeting_model.MeetingCreate, user, db: DatabaseService):
    """
    Creates a scheduled meeting for a subject. Only the subject's lecturer or
    an admin may do so; the lecturer and any academic ids not supplied are
    taken from the subject.
    """
    subject = db.get_subject_by_id(meeting_data.subject_id)
    if subject is None:
        return None
    if user.role != UserRole.ADMIN.value and subject.lecturer_id != user.id:
        raise PermissionError("You are not authorized to create meetings for this subject.")

    record = meeting_data.model_dump()
    for field in ("department_id", "course_id", "batch_id", "semester_id"):
        if not record.get(field):
            record[field] = getattr(subject, field)

    if not record["batch_id"]:
        raise ValueError("Could not determine the batch of this meeting from its subject.")

    record.update({
        "id": f"mtg_{uuid.uuid4().hex[:12]}",
        "lecturer_id": subject.lecturer_id,
        "scheduled_start": ensure_utc(meeting_data.scheduled_start),
        "scheduled_end": ensure_utc(meeting_data.scheduled_end),
        "status": MeetingStatus.SCHEDULED.value,
        "is_active": True,
    })
    meeting = db.add_meeting(record)
    logger.info(f"Meeting {meeting.id} scheduled for subject {subject.id} by {user.id}")
    return meeting


def list_meetings(
    user,
    db: DatabaseService,
    department_id: Optional[str] = None,
    course_id: Optional[str] = None,
    batch_id: Optional[str] = None,
    semester_id: Optional[str] = None,
    subject_id: Optional[str] = None,
    status: Optional[str] = None,
) -> List:
    """Active meetings matching the filters. Teachers see their own meetings, students those of their batch."""
    filters = {
        "department_id": department_id,
        "course_id": course_id,
        "batch_id": batch_id,
        "semester_id": semester_id,
        "subject_id": subject_id,
        "status": status,
    }
    if user.role == UserRole.TEACHER.value:
        filters["lecturer_id"] = user.id
    elif user.role == UserRole.STUDENT.value:
        if not user.batch_id:
            return []
        filters["batch_id"] = user.batch_id
    return db.find_meetings(filters)


def get_meeting(meeting_id: str, user, db: DatabaseService):
    """A single meeting, visible to the same users that would see it in `list_meetings`."""
    meeting = db.get_meeting_by_id(meeting_id)
    if meeting is None:
        return None
    if user.role == UserRole.TEACHER.value and meeting.lecturer_id != user.id:
        raise PermissionError("You are not authorized to view this meeting.")
    if user.role == UserRole.STUDENT.value and (not user.batch_id or meeting.batch_id != user.batch_id):
        raise PermissionError("You are not authorized to view this meeting.")
    return meeting


def update_meeting(meeting_id: str, meeting_update: meeting_model.MeetingUpdate, user, db: DatabaseService):
    meeting = db.get_meeting_by_id(meeting_id)
    if meeting is None:
        return None
    _ensure_lecturer_or_admin(meeting, user, "update")
    if meeting.status != MeetingStatus.SCHEDULED.value:
        raise ValueError("Cannot update a meeting that has already started or ended.")

    changes = meeting_update.model_dump(exclude_unset=True, exclude_none=True)
    start = ensure_utc(changes.get("scheduled_start", meeting.scheduled_start))
    end = ensure_utc(changes.get("scheduled_end", meeting.scheduled_end))
    if end is not None and end <= start:
        raise ValueError("scheduled_end must be after scheduled_start.")
    if "scheduled_start" in changes:
        changes["scheduled_start"] = start
    if "scheduled_end" in changes:
        changes["scheduled_end"] = end

    return db.update_meeting(meeting_id, changes)


# --- LIFECYCLE TRANSITIONS ---

def can_start_now(meeting, now: datetime, early_minutes: int = config.EARLY_START_MINUTES) -> bool:
    """A scheduled meeting may be started from `early_minutes` before its scheduled start."""
    if meeting.status != MeetingStatus.SCHEDULED.value or not meeting.is_active:
        return False
    return ensure_utc(now) >= ensure_utc(meeting.scheduled_start) - timedelta(minutes=early_minutes)


def check_can_start(meeting_id: str, user, db: DatabaseService, now: Optional[datetime] = None) -> Optional[Dict]:
    now = now or utcnow()
    meeting = db.get_meeting_by_id(meeting_id)
    if meeting is None:
        return None
    _ensure_lecturer_or_admin(meeting, user, "start")
    return {
        "can_start": can_start_now(meeting, now),
        "current_time": now,
        "scheduled_time": ensure_utc(meeting.scheduled_start),
        "status": meeting.status,
    }


def start_meeting(meeting_id: str, user, db: DatabaseService, now: Optional[datetime] = None):
    now = now or utcnow()
    meeting = db.get_meeting_by_id(meeting_id)
    if meeting is None:
        return None
    _ensure_lecturer_or_admin(meeting, user, "start")

    if meeting.status != MeetingStatus.SCHEDULED.value:
        raise ValueError(f"A meeting in status '{meeting.status}' cannot be started.")
    if not can_start_now(meeting, now):
        raise ValueError("Meeting cannot be started yet. Please wait until the scheduled time.")

    meeting = db.update_meeting(meeting_id, {"status": MeetingStatus.ONGOING.value, "started_at": now})
    logger.info(f"Meeting {meeting_id} started by {user.id}")
    return meeting


def end_meeting(meeting_id: str, user, db: DatabaseService, student_count: Optional[int] = None, now: Optional[datetime] = None) -> Optional[Dict]:
    """Completes an ongoing meeting and finalizes its attendance."""
    now = now or utcnow()
    meeting = db.get_meeting_by_id(meeting_id)
    if meeting is None:
        return None
    _ensure_lecturer_or_admin(meeting, user, "end")

    if meeting.status != MeetingStatus.ONGOING.value:
        raise ValueError(f"A meeting in status '{meeting.status}' cannot be ended.")

    changes = {"status": MeetingStatus.COMPLETED.value, "ended_at": now}
    if student_count is not None:
        changes["student_count"] = student_count
    meeting = db.update_meeting(meeting_id, changes)

    attendance_result = attendance_service.finalize_attendance(meeting, db, now=now)
    logger.info(f"Meeting {meeting_id} ended by {user.id}")
    return {
        "meeting": meeting,
        "attendance": {
            "closed_sessions": attendance_result["closed_sessions"],
            "absent_marked": attendance_result["absent_marked"],
            "total_records": attendance_result["total_records"],
        },
    }


def cancel_meeting(meeting_id: str, user, db: DatabaseService) -> bool:
    """Soft-deletes a scheduled meeting. Returns False when the meeting does not exist."""
    meeting = db.get_meeting_by_id(meeting_id)
    if meeting is None:
        return False
    _ensure_lecturer_or_admin(meeting, user, "cancel")
    if meeting.status != MeetingStatus.SCHEDULED.value:
        raise ValueError("Only scheduled meetings can be cancelled.")

    db.update_meeting(meeting_id, {"status": MeetingStatus.CANCELLED.value, "is_active": False})
    logger.info(f"Meeting {meeting_id} cancelled by {user.id}")
    return True
