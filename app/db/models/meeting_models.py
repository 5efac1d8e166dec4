# /smart-lms-backend/app/db/models/meeting_models.py

"""
This module defines the SQLAlchemy ORM model for the `Meeting` entity, a
scheduled live class session. Its lifecycle timestamps (`started_at`,
`ended_at`) are the reference clock for attendance accounting.
"""

from sqlalchemy import Column, String, Integer, Boolean, JSON, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..base_class import Base


class Meeting(Base):
    id = Column(String, primary_key=True, index=True)
    topic = Column(String, nullable=False)
    description = Column(String, nullable=True)

    subject_id = Column(String, ForeignKey("subjects.id"), nullable=False, index=True)
    lecturer_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    department_id = Column(String, nullable=True, index=True)
    course_id = Column(String, nullable=True, index=True)
    batch_id = Column(String, ForeignKey("batches.id"), nullable=True, index=True)
    semester_id = Column(String, nullable=True, index=True)

    scheduled_start = Column(DateTime(timezone=True), nullable=False, index=True)
    scheduled_end = Column(DateTime(timezone=True), nullable=True)

    # 'scheduled', 'ongoing', 'completed' or 'cancelled'
    status = Column(String, index=True, nullable=False, default="scheduled")
    started_at = Column(DateTime(timezone=True), nullable=True)
    ended_at = Column(DateTime(timezone=True), nullable=True)

    student_count = Column(Integer, nullable=False, default=0)
    # Opaque join link handed over by the video provider; never interpreted here.
    room_url = Column(String, nullable=True)
    emotion_summary = Column(JSON, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    subject = relationship("Subject")
    lecturer = relationship("User")
    batch = relationship("Batch")
    # Attendance rows are removed together with their meeting.
    attendances = relationship("Attendance", back_populates="meeting", cascade="all, delete-orphan")
