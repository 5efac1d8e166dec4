# /smart-lms-backend/app/services/database_service.py

"""
The `DatabaseService` is the single facade through which the business logic
layer reaches persistence. It owns one repository per aggregate and simply
delegates; no query is written here.
"""

from datetime import datetime
from typing import List, Dict, Optional, Tuple, Generator
from sqlalchemy.orm import Session
from fastapi import Depends

# --- Core Database Setup ---
from app.db.database import get_db

# --- Repository Imports ---
from .database_helpers.user_repository_sql import UserRepositorySQL
from .database_helpers.meeting_repository_sql import MeetingRepositorySQL
from .database_helpers.attendance_repository_sql import AttendanceRepositorySQL
from .database_helpers.emotion_repository_sql import EmotionRepositorySQL


class DatabaseService:
    def __init__(self, db_session: Session):
        if db_session is None:
            raise ValueError("A database session is required.")
        self.user_repo = UserRepositorySQL(db_session)
        self.meeting_repo = MeetingRepositorySQL(db_session)
        self.attendance_repo = AttendanceRepositorySQL(db_session)
        self.emotion_repo = EmotionRepositorySQL(db_session)

    # --- USER & ACADEMIC REFERENCE METHODS (DELEGATED) ---
    def get_user_by_id(self, user_id: str): return self.user_repo.get_user_by_id(user_id)
    def get_user_by_email(self, email: str): return self.user_repo.get_user_by_email(email)
    def get_users_by_ids(self, user_ids: List[str]): return self.user_repo.get_users_by_ids(user_ids)
    def add_user(self, record: Dict): return self.user_repo.add_user(record)
    def update_user(self, user_id: str, data: Dict): return self.user_repo.update_user(user_id, data)
    def get_enrolled_students(self, batch_id: str, semester_id: Optional[str] = None): return self.user_repo.get_enrolled_students(batch_id, semester_id)
    def get_batch_by_id(self, batch_id: str): return self.user_repo.get_batch_by_id(batch_id)
    def get_batch_by_code(self, code: str): return self.user_repo.get_batch_by_code(code)
    def add_batch(self, record: Dict): return self.user_repo.add_batch(record)
    def get_subject_by_id(self, subject_id: str): return self.user_repo.get_subject_by_id(subject_id)
    def add_subject(self, record: Dict): return self.user_repo.add_subject(record)

    # --- MEETING METHODS (DELEGATED) ---
    def get_meeting_by_id(self, meeting_id: str): return self.meeting_repo.get_meeting_by_id(meeting_id)
    def add_meeting(self, record: Dict): return self.meeting_repo.add_meeting(record)
    def update_meeting(self, meeting_id: str, data: Dict): return self.meeting_repo.update_meeting(meeting_id, data)
    def find_meetings(self, filters: Dict, start_date: Optional[datetime] = None, end_date: Optional[datetime] = None, active_only: bool = True):
        return self.meeting_repo.find_meetings(filters, start_date=start_date, end_date=end_date, active_only=active_only)

    # --- ATTENDANCE METHODS (DELEGATED) ---
    def get_attendance_by_id(self, attendance_id: str): return self.attendance_repo.get_attendance_by_id(attendance_id)
    def get_attendance(self, meeting_id: str, student_id: str): return self.attendance_repo.get_attendance(meeting_id, student_id)
    def get_attendances_for_meeting(self, meeting_id: str): return self.attendance_repo.get_attendances_for_meeting(meeting_id)
    def get_attendances_for_meetings(self, meeting_ids: List[str]): return self.attendance_repo.get_attendances_for_meetings(meeting_ids)
    def get_attendances_for_student(self, student_id: str, start_date: Optional[datetime] = None, end_date: Optional[datetime] = None, subject_id: Optional[str] = None):
        return self.attendance_repo.get_attendances_for_student(student_id, start_date=start_date, end_date=end_date, subject_id=subject_id)
    def save_attendance(self, attendance): return self.attendance_repo.save_attendance(attendance)
    def save_attendances(self, attendances: List) -> None: self.attendance_repo.save_attendances(attendances)

    # --- EMOTION METHODS (DELEGATED) ---
    def add_emotion(self, record: Dict): return self.emotion_repo.add_emotion(record)
    def get_emotions_for_meeting(self, meeting_id: str, since: Optional[datetime] = None): return self.emotion_repo.get_emotions_for_meeting(meeting_id, since=since)
    def get_student_timeline(self, meeting_id: str, student_id: str): return self.emotion_repo.get_student_timeline(meeting_id, student_id)
    def get_emotion_page(self, meeting_id: str, page: int, limit: int) -> Tuple[List, int]: return self.emotion_repo.get_emotion_page(meeting_id, page, limit)


# --- DEPENDENCY PROVIDER ---
def get_db_service(db: Session = Depends(get_db)) -> Generator[DatabaseService, None, None]:
    """FastAPI dependency that provides a request-scoped DatabaseService instance."""
    yield DatabaseService(db_session=db)
