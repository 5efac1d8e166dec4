# /smart-lms-backend/app/models/user_model.py

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.core.timeutils import UTCDateTime


# --- Core Enumerations ---
class UserRole(str, Enum):
    ADMIN = "admin"; TEACHER = "teacher"; STUDENT = "student"


class UserStatus(str, Enum):
    PENDING = "pending"; APPROVED = "approved"; REJECTED = "rejected"


# --- API Contract Models ---

class UserBase(BaseModel):
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)


class StudentRegister(UserBase):
    """Registration payload for a student. The account starts as pending."""
    password: str = Field(..., min_length=6)
    student_id: str = Field(..., min_length=1)
    roll_number: Optional[str] = None
    batch_id: Optional[str] = None
    semester_id: Optional[str] = None
    department_id: Optional[str] = None
    course_id: Optional[str] = None


class TeacherRegister(UserBase):
    """Registration payload for a teacher. The account starts as pending."""
    password: str = Field(..., min_length=6)
    teacher_id: str = Field(..., min_length=1)
    department_id: Optional[str] = None


class User(UserBase):
    """The public representation of a user. Never exposes the password hash."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    role: UserRole
    status: UserStatus
    is_active: bool
    student_id: Optional[str] = None
    roll_number: Optional[str] = None
    teacher_id: Optional[str] = None
    batch_id: Optional[str] = None
    semester_id: Optional[str] = None
    department_id: Optional[str] = None
    course_id: Optional[str] = None
    created_at: Optional[UTCDateTime] = None


class UserStatusUpdate(BaseModel):
    status: UserStatus


class AccountStatus(BaseModel):
    id: str
    email: EmailStr
    role: UserRole
    status: UserStatus
    is_active: bool


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
