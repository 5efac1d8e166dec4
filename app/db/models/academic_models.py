# /smart-lms-backend/app/db/models/academic_models.py

"""
Reference data from the academic hierarchy
(Department -> Course -> Batch -> Semester -> Subject).

Only the two levels that attendance reporting needs are modelled as tables.
Department, course and semester are carried as plain identifiers.
"""

from sqlalchemy import Column, String, Integer, ForeignKey
from sqlalchemy.orm import relationship

from ..base_class import Base


class Batch(Base):
    __tablename__ = "batches"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    code = Column(String, unique=True, index=True, nullable=False)
    year = Column(Integer, nullable=True)
    department_id = Column(String, nullable=True)
    course_id = Column(String, nullable=True)

    subjects = relationship("Subject", back_populates="batch")


class Subject(Base):
    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    code = Column(String, index=True, nullable=False)

    lecturer_id = Column(String, ForeignKey("users.id"), nullable=True, index=True)
    batch_id = Column(String, ForeignKey("batches.id"), nullable=True, index=True)
    semester_id = Column(String, nullable=True)
    department_id = Column(String, nullable=True)
    course_id = Column(String, nullable=True)

    batch = relationship("Batch", back_populates="subjects")
    lecturer = relationship("User")
