# /smart-lms-backend/app/core/deps.py

"""
FastAPI dependencies that resolve the authenticated user from a Bearer token
and enforce role checks. WebSocket connections authenticate through
`get_user_from_token` because they cannot carry an Authorization header from
the browser.
"""

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.db.models.user_model import User
from app.services.database_service import DatabaseService, get_db_service
from . import security

bearer_scheme = HTTPBearer(auto_error=False)


def get_user_from_token(token: Optional[str], db: DatabaseService) -> Optional[User]:
    """Returns the user a token belongs to, or None when the token is unusable."""
    if not token:
        return None
    payload = security.decode_access_token(token)
    if payload is None:
        return None
    return db.get_user_by_id(payload["sub"])


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: DatabaseService = Depends(get_db_service),
) -> User:
    """Get current authenticated user"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    user = get_user_from_token(credentials.credentials, db)
    if user is None:
        raise credentials_exception
    return user


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    """Get current active user"""
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User account is inactive",
        )
    return current_user


def require_roles(*roles: str):
    """Builds a dependency that admits only users holding one of `roles`."""

    def role_checker(current_user: User = Depends(get_current_active_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {', '.join(roles)}",
            )
        return current_user

    return role_checker


get_current_admin = require_roles("admin")
get_current_staff = require_roles("teacher", "admin")
get_current_student = require_roles("student")
