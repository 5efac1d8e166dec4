# /smart-lms-backend/app/services/user_service.py

"""
Business logic for user accounts: self-registration of students and teachers,
credential checks at login and the admin approval workflow.

New accounts start as `pending` and can only log in once an admin approves
them. Admin accounts are created by the seeder and bypass approval.
"""

import logging
import uuid
from typing import Dict, Optional

from app.core import security
from ..models import user_model
from ..models.user_model import UserRole, UserStatus
from .database_service import DatabaseService

logger = logging.getLogger(__name__)


def create_user(db: DatabaseService, data: Dict, role: UserRole, status: UserStatus = UserStatus.PENDING):
    email = data["email"].lower()
    if db.get_user_by_email(email) is not None:
        raise ValueError("User already exists with this email address.")

    password = data.pop("password")
    record = {
        **data,
        "id": f"usr_{uuid.uuid4().hex[:12]}",
        "email": email,
        "hashed_password": security.get_password_hash(password),
        "role": role.value,
        "status": status.value,
        "is_active": True,
    }
    user = db.add_user(record)
    logger.info(f"Registered {role.value} {user.id} ({status.value})")
    return user


def register_student(db: DatabaseService, student: user_model.StudentRegister):
    return create_user(db, student.model_dump(), UserRole.STUDENT)


def register_teacher(db: DatabaseService, teacher: user_model.TeacherRegister):
    return create_user(db, teacher.model_dump(), UserRole.TEACHER)


def create_admin(db: DatabaseService, email: str, password: str, first_name: str = "System", last_name: str = "Admin"):
    """Creates an approved admin account. Used by the seeder only."""
    data = {"email": email, "password": password, "first_name": first_name, "last_name": last_name}
    return create_user(db, data, UserRole.ADMIN, status=UserStatus.APPROVED)


def authenticate_user(db: DatabaseService, email: str, password: str):
    """Returns the user when the credentials match, otherwise None."""
    user = db.get_user_by_email(email.lower())
    if not user or not security.verify_password(password, user.hashed_password):
        return None
    return user


def ensure_can_log_in(user) -> None:
    """Every role except admin needs an approved account to log in."""
    if user.role != UserRole.ADMIN.value and user.status != UserStatus.APPROVED.value:
        raise PermissionError(
            f"Your account is {user.status}. Please wait for admin approval."
        )


def update_user_status(user_id: str, status: UserStatus, db: DatabaseService):
    """Approves or rejects an account. Returns None when the user does not exist."""
    user = db.get_user_by_id(user_id)
    if user is None:
        return None
    if user.role == UserRole.ADMIN.value:
        raise ValueError("The status of an admin account cannot be changed.")

    user = db.update_user(user_id, {"status": status.value})
    logger.info(f"User {user_id} status set to {status.value}")
    return user


def get_account_status(user) -> Dict:
    return {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "status": user.status,
        "is_active": user.is_active,
    }
