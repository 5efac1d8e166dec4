# /smart-lms-backend/app/db/models/attendance_models.py

"""
This module defines the SQLAlchemy ORM models for the `Attendance` and
`AttendanceSession` entities.

An `Attendance` row is the single record of one student in one meeting. Every
continuous join-to-leave interval of that student is an `AttendanceSession`
child row, which is how rejoins are represented.
"""

from sqlalchemy import Column, String, Integer, Float, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..base_class import Base


class Attendance(Base):
    __table_args__ = (UniqueConstraint("meeting_id", "student_id", name="uq_attendance_meeting_student"),)

    id = Column(String, primary_key=True, index=True)
    meeting_id = Column(String, ForeignKey("meetings.id"), nullable=False, index=True)
    student_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    student_name = Column(String, nullable=False)
    student_email = Column(String, nullable=False)

    # 'present', 'absent', 'late' or 'partial'
    status = Column(String, index=True, nullable=False, default="absent")
    first_join_time = Column(DateTime(timezone=True), nullable=True)
    last_leave_time = Column(DateTime(timezone=True), nullable=True)
    total_duration = Column(Integer, nullable=False, default=0)  # seconds
    rejoin_count = Column(Integer, nullable=False, default=0)
    is_currently_present = Column(Boolean, nullable=False, default=False)
    attendance_percentage = Column(Float, nullable=False, default=0.0)
    is_late = Column(Boolean, nullable=False, default=False)
    notes = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    meeting = relationship("Meeting", back_populates="attendances")
    student = relationship("User")
    sessions = relationship(
        "AttendanceSession",
        back_populates="attendance",
        cascade="all, delete-orphan",
        order_by="AttendanceSession.join_time",
    )


class AttendanceSession(Base):
    id = Column(String, primary_key=True, index=True)
    attendance_id = Column(String, ForeignKey("attendances.id"), nullable=False, index=True)
    join_time = Column(DateTime(timezone=True), nullable=False)
    leave_time = Column(DateTime(timezone=True), nullable=True)
    duration = Column(Integer, nullable=False, default=0)  # seconds
    is_active = Column(Boolean, nullable=False, default=True)

    attendance = relationship("Attendance", back_populates="sessions")
