# /smart-lms-backend/app/services/database_helpers/user_repository_sql.py

"""
Raw SQLAlchemy queries for the User table and the academic reference tables
(Batch, Subject) that attendance reporting resolves against.
"""

from typing import List, Dict, Optional
from sqlalchemy.orm import Session

from app.db.models.user_model import User
from app.db.models.academic_models import Batch, Subject


class UserRepositorySQL:
    def __init__(self, db_session: Session):
        self.db = db_session

    # --- User Methods ---

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def get_users_by_ids(self, user_ids: List[str]) -> List[User]:
        if not user_ids:
            return []
        return self.db.query(User).filter(User.id.in_(user_ids)).all()

    def add_user(self, record: Dict) -> User:
        new_user = User(**record)
        self.db.add(new_user)
        self.db.commit()
        self.db.refresh(new_user)
        return new_user

    def update_user(self, user_id: str, data: Dict) -> Optional[User]:
        db_user = self.get_user_by_id(user_id)
        if db_user:
            for key, value in data.items():
                setattr(db_user, key, value)
            self.db.commit()
            self.db.refresh(db_user)
        return db_user

    def get_enrolled_students(self, batch_id: str, semester_id: Optional[str] = None) -> List[User]:
        """
        Active, approved students of a batch. When a semester is given the
        result is narrowed to students currently placed in that semester.
        """
        query = self.db.query(User).filter(
            User.role == "student",
            User.status == "approved",
            User.is_active.is_(True),
            User.batch_id == batch_id,
        )
        if semester_id:
            query = query.filter(User.semester_id == semester_id)
        return query.order_by(User.first_name, User.last_name).all()

    # --- Academic Reference Methods ---

    def get_batch_by_id(self, batch_id: str) -> Optional[Batch]:
        return self.db.query(Batch).filter(Batch.id == batch_id).first()

    def get_batch_by_code(self, code: str) -> Optional[Batch]:
        return self.db.query(Batch).filter(Batch.code == code).first()

    def add_batch(self, record: Dict) -> Batch:
        new_batch = Batch(**record)
        self.db.add(new_batch)
        self.db.commit()
        self.db.refresh(new_batch)
        return new_batch

    def get_subject_by_id(self, subject_id: str) -> Optional[Subject]:
        return self.db.query(Subject).filter(Subject.id == subject_id).first()

    def add_subject(self, record: Dict) -> Subject:
        new_subject = Subject(**record)
        self.db.add(new_subject)
        self.db.commit()
        self.db.refresh(new_subject)
        return new_subject
