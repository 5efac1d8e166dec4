# /smart-lms-backend/app/db/models/user_model.py

"""
This module defines the SQLAlchemy ORM model for the `User` entity.

A single table holds admins, teachers and students, discriminated by `role`.
Role-specific fields (roll number, batch, teacher id, ...) are nullable and
only populated for the role that uses them.
"""

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func

from ..base_class import Base


class User(Base):
    id = Column(String, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)

    # 'admin', 'teacher' or 'student'
    role = Column(String, index=True, nullable=False)
    # Approval workflow: 'pending', 'approved' or 'rejected'
    status = Column(String, nullable=False, default="pending")
    is_active = Column(Boolean, nullable=False, default=True)

    # --- Student-only fields ---
    student_id = Column(String, nullable=True)
    roll_number = Column(String, nullable=True)
    batch_id = Column(String, ForeignKey("batches.id"), nullable=True, index=True)
    semester_id = Column(String, nullable=True)

    # --- Teacher-only fields ---
    teacher_id = Column(String, nullable=True)

    # --- Shared placement in the academic hierarchy ---
    department_id = Column(String, nullable=True)
    course_id = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
