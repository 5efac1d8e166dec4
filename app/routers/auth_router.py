# /smart-lms-backend/app/routers/auth_router.py

"""
This module defines the public-facing API for all authentication-related actions.

It includes endpoints for:
- Student and teacher self-registration (`/register/student`, `/register/teacher`)
- User login and token generation (`/token`)
- Retrieving the current user's profile and account status (`/me`, `/status`)
- Approving or rejecting accounts (`/users/{user_id}/status`, admin only)

The router only translates between HTTP and the `user_service`; the rules live
in the service.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

# --- Application-specific Imports ---
from app.models.user_model import User, StudentRegister, TeacherRegister, UserStatusUpdate, AccountStatus, Token
from app.db.models.user_model import User as UserModel
from app.services import user_service
from app.services.database_service import DatabaseService, get_db_service
from app.core import security
from app.core.deps import get_current_active_user, get_current_admin

# --- Router Initialization ---
router = APIRouter()


@router.post("/register/student", response_model=User, status_code=status.HTTP_201_CREATED)
def register_student(student_in: StudentRegister, db: DatabaseService = Depends(get_db_service)):
    """Registers a student. The account stays pending until an admin approves it."""
    try:
        return user_service.register_student(db=db, student=student_in)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/register/teacher", response_model=User, status_code=status.HTTP_201_CREATED)
def register_teacher(teacher_in: TeacherRegister, db: DatabaseService = Depends(get_db_service)):
    try:
        return user_service.register_teacher(db=db, teacher=teacher_in)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/token", response_model=Token)
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: DatabaseService = Depends(get_db_service)
):
    """
    Handles user login, compatible with the OAuth2 Password Flow.

    It authenticates the user with their email (via the 'username' field) and
    password. Deactivated accounts are refused with 401 and accounts that are
    not yet approved with 403.
    """
    user = user_service.authenticate_user(db, email=form_data.username, password=form_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is deactivated. Please contact support.",
        )
    try:
        user_service.ensure_can_log_in(user)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))

    access_token = security.create_access_token(subject=user.id)
    return Token(access_token=access_token, token_type="bearer")


@router.get("/me", response_model=User)
def read_current_user(current_user: UserModel = Depends(get_current_active_user)):
    """Retrieves the profile information for the currently authenticated user."""
    return current_user


@router.get("/status", response_model=AccountStatus)
def read_account_status(current_user: UserModel = Depends(get_current_active_user)):
    return user_service.get_account_status(current_user)


@router.put("/users/{user_id}/status", response_model=User)
def update_user_status(
    user_id: str,
    status_update: UserStatusUpdate,
    db: DatabaseService = Depends(get_db_service),
    admin: UserModel = Depends(get_current_admin),
):
    try:
        user = user_service.update_user_status(user_id, status_update.status, db)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"User with ID {user_id} not found")
    return user
