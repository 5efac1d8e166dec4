# /smart-lms-backend/app/db/models/emotion_models.py

"""
This module defines the SQLAlchemy ORM model for `StudentEmotion`, one
facial-expression sample of one student during a meeting.

Classification happens in the student's browser; the backend only stores the
scores it receives and the derived `attentiveness` value.
"""

from sqlalchemy import Column, String, Float, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.sql import func

from ..base_class import Base


class StudentEmotion(Base):
    __table_args__ = (
        Index("ix_studentemotions_meeting_student_ts", "meeting_id", "student_id", "timestamp"),
    )

    id = Column(String, primary_key=True, index=True)
    meeting_id = Column(String, ForeignKey("meetings.id"), nullable=False, index=True)
    student_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)

    happy = Column(Float, nullable=False, default=0.0)
    sad = Column(Float, nullable=False, default=0.0)
    angry = Column(Float, nullable=False, default=0.0)
    surprised = Column(Float, nullable=False, default=0.0)
    fearful = Column(Float, nullable=False, default=0.0)
    disgusted = Column(Float, nullable=False, default=0.0)
    neutral = Column(Float, nullable=False, default=0.0)

    dominant_emotion = Column(String, nullable=False, default="neutral")
    face_detected = Column(Boolean, nullable=False, default=False)
    detection_confidence = Column(Float, nullable=False, default=0.0)
    attentiveness = Column(Float, nullable=False, default=0.0)
    is_present = Column(Boolean, nullable=False, default=True)
    session_id = Column(String, nullable=True)
