# /smart-lms-backend/app/services/database_helpers/attendance_repository_sql.py

"""
Raw SQLAlchemy queries for the Attendance and AttendanceSession tables.

The session-accounting helpers mutate ORM objects in memory; this repository
is only responsible for loading and persisting them.
"""

from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session, selectinload

from app.db.models.attendance_models import Attendance
from app.db.models.meeting_models import Meeting


class AttendanceRepositorySQL:
    def __init__(self, db_session: Session):
        self.db = db_session

    def get_attendance_by_id(self, attendance_id: str) -> Optional[Attendance]:
        return (
            self.db.query(Attendance)
            .options(selectinload(Attendance.sessions))
            .filter(Attendance.id == attendance_id)
            .first()
        )

    def get_attendance(self, meeting_id: str, student_id: str) -> Optional[Attendance]:
        return (
            self.db.query(Attendance)
            .filter(Attendance.meeting_id == meeting_id, Attendance.student_id == student_id)
            .first()
        )

    def get_attendances_for_meeting(self, meeting_id: str) -> List[Attendance]:
        """All records of a meeting, earliest joiners first and never-joined last."""
        return (
            self.db.query(Attendance)
            .options(selectinload(Attendance.sessions))
            .filter(Attendance.meeting_id == meeting_id)
            .order_by(Attendance.first_join_time.is_(None), Attendance.first_join_time.asc())
            .all()
        )

    def get_attendances_for_meetings(self, meeting_ids: List[str]) -> List[Attendance]:
        if not meeting_ids:
            return []
        return self.db.query(Attendance).filter(Attendance.meeting_id.in_(meeting_ids)).all()

    def get_attendances_for_student(
        self,
        student_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        subject_id: Optional[str] = None,
    ) -> List[Attendance]:
        """A student's history, newest first, optionally windowed and narrowed to one subject."""
        query = self.db.query(Attendance).filter(Attendance.student_id == student_id)
        if start_date:
            query = query.filter(Attendance.created_at >= start_date)
        if end_date:
            query = query.filter(Attendance.created_at <= end_date)
        if subject_id:
            query = query.join(Meeting, Attendance.meeting_id == Meeting.id).filter(Meeting.subject_id == subject_id)
        return query.order_by(Attendance.created_at.desc()).all()

    def save_attendance(self, attendance: Attendance) -> Attendance:
        """Persists in-memory changes made to a loaded (or new) record and its sessions."""
        self.db.add(attendance)
        self.db.commit()
        self.db.refresh(attendance)
        return attendance

    def save_attendances(self, attendances: List[Attendance]) -> None:
        """Persists a batch of records in a single transaction."""
        self.db.add_all(attendances)
        self.db.commit()
