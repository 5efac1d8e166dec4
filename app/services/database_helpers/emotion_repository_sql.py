# /smart-lms-backend/app/services/database_helpers/emotion_repository_sql.py

from datetime import datetime
from typing import List, Dict, Optional, Tuple
from sqlalchemy.orm import Session

from app.db.models.emotion_models import StudentEmotion


class EmotionRepositorySQL:
    def __init__(self, db_session: Session):
        self.db = db_session

    def add_emotion(self, record: Dict) -> StudentEmotion:
        new_emotion = StudentEmotion(**record)
        self.db.add(new_emotion)
        self.db.commit()
        self.db.refresh(new_emotion)
        return new_emotion

    def get_emotions_for_meeting(self, meeting_id: str, since: Optional[datetime] = None) -> List[StudentEmotion]:
        """Samples of a meeting in chronological order, optionally only those at or after `since`."""
        query = self.db.query(StudentEmotion).filter(StudentEmotion.meeting_id == meeting_id)
        if since is not None:
            query = query.filter(StudentEmotion.timestamp >= since)
        return query.order_by(StudentEmotion.timestamp.asc()).all()

    def get_student_timeline(self, meeting_id: str, student_id: str) -> List[StudentEmotion]:
        return (
            self.db.query(StudentEmotion)
            .filter(StudentEmotion.meeting_id == meeting_id, StudentEmotion.student_id == student_id)
            .order_by(StudentEmotion.timestamp.asc())
            .all()
        )

    def get_emotion_page(self, meeting_id: str, page: int, limit: int) -> Tuple[List[StudentEmotion], int]:
        """One page of a meeting's samples, newest first, plus the total count."""
        query = self.db.query(StudentEmotion).filter(StudentEmotion.meeting_id == meeting_id)
        total = query.count()
        items = (
            query.order_by(StudentEmotion.timestamp.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return items, total
