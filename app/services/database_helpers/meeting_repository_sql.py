# /smart-lms-backend/app/services/database_helpers/meeting_repository_sql.py

from datetime import datetime
from typing import List, Dict, Optional
from sqlalchemy.orm import Session

from app.db.models.meeting_models import Meeting


class MeetingRepositorySQL:
    def __init__(self, db_session: Session):
        self.db = db_session

    def get_meeting_by_id(self, meeting_id: str) -> Optional[Meeting]:
        return self.db.query(Meeting).filter(Meeting.id == meeting_id).first()

    def add_meeting(self, record: Dict) -> Meeting:
        new_meeting = Meeting(**record)
        self.db.add(new_meeting)
        self.db.commit()
        self.db.refresh(new_meeting)
        return new_meeting

    def update_meeting(self, meeting_id: str, data: Dict) -> Optional[Meeting]:
        db_meeting = self.get_meeting_by_id(meeting_id)
        if db_meeting:
            for key, value in data.items():
                setattr(db_meeting, key, value)
            self.db.commit()
            self.db.refresh(db_meeting)
        return db_meeting

    def find_meetings(
        self,
        filters: Dict[str, Optional[str]],
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        active_only: bool = True,
    ) -> List[Meeting]:
        """
        Lists meetings matching every non-empty equality filter
        (e.g. `{"batch_id": ..., "status": ...}`) and, optionally, a
        scheduled-start date window. Newest first.
        """
        query = self.db.query(Meeting)
        if active_only:
            query = query.filter(Meeting.is_active.is_(True))
        for column_name, value in filters.items():
            if value:
                query = query.filter(getattr(Meeting, column_name) == value)
        if start_date:
            query = query.filter(Meeting.scheduled_start >= start_date)
        if end_date:
            query = query.filter(Meeting.scheduled_start <= end_date)
        return query.order_by(Meeting.scheduled_start.desc()).all()
