"""
Authentication and authorization dependencies for FastAPI.

This module provides FastAPI dependency functions for authentication,
role checks and branch scoping.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.scoping import BranchScope, build_branch_scope
from core.database import get_session
from core.security import (
    SecurityError,
    decode_token,
    get_user_id_from_token,
)
from db.enums import UserRole
from db.models import User

logger = logging.getLogger(__name__)

# HTTP Bearer security scheme; missing credentials are reported as 401 below
security = HTTPBearer(auto_error=False)


class AuthenticationError(HTTPException):
    """Custom authentication error."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(HTTPException):
    """Custom authorization error."""

    def __init__(self, detail: str = "Insufficient permissions"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_session),
) -> User:
    """Get the current authenticated user from the JWT bearer token.

    Raises:
        AuthenticationError: If the token is missing, invalid or expired, or
            the user no longer exists or is inactive
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()

    try:
        payload = decode_token(credentials.credentials)
        user_id = UUID(get_user_id_from_token(payload))
    except SecurityError as e:
        raise AuthenticationError(str(e))
    except ValueError:
        raise AuthenticationError("Invalid token: malformed subject")

    result = await db.execute(select(User).where(User.uuid == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("User account is inactive")

    return user


async def require_admin(
    user: User = Depends(get_current_user),
) -> User:
    """Require the 'admin' role."""
    if user.role != UserRole.ADMIN.value:
        raise AuthorizationError("Admin role required")
    return user


async def require_admin_or_manager(
    user: User = Depends(get_current_user),
) -> User:
    """Require the 'admin' or 'manager' role."""
    if user.role not in (UserRole.ADMIN.value, UserRole.MANAGER.value):
        raise AuthorizationError("Admin or manager role required")
    return user


async def get_branch_scope(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> BranchScope:
    """Resolve the caller's branch scope for branch-restricted reads.

    Admins are unrestricted. Any other role must be deployed to a branch;
    otherwise the request is refused instead of returning an empty or
    unfiltered result.

    Raises:
        AuthorizationError: Non-admin caller with no branch assigned
    """
    scope = await build_branch_scope(db, user)
    if not scope.is_admin and scope.branch_id is None:
        logger.warning(f"User {user.username} ({user.role}) has no branch assigned")
        raise AuthorizationError("No branch assigned to user")
    return scope
