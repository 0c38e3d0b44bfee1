"""
Authentication service: username/password login issuing a JWT.

Every failure path returns the same message so the response does not tell
a caller whether the username exists.
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.auth import LoginRequest, LoginResponse, SessionUser
from core.config import settings
from core.decorators import log_database_operation
from core.security import create_access_token, verify_password
from crud import UserCRUD
from db import Branch, Deployment, User

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"


class AuthService:
    """Service for login and session details."""

    @staticmethod
    async def authenticate(db: AsyncSession, username: str, password: str) -> Optional[User]:
        """Return the active user matching the credentials, or None."""
        user = await UserCRUD.find_by_username(db, username)
        if user is None or not user.is_active:
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user

    @staticmethod
    async def session_user(db: AsyncSession, user: User) -> SessionUser:
        """User details plus the branch resolved through the user's deployment."""
        stmt = (
            select(Branch.id, Branch.branch_city)
            .join(Deployment, Deployment.branch_id == Branch.id)
            .where(Deployment.user_id == user.uuid)
        )
        row = (await db.execute(stmt)).first()
        branch_id, branch_city = row if row is not None else (None, None)
        return SessionUser(
            uuid=user.uuid,
            username=user.username,
            role=user.role,
            emp_name=user.emp_name,
            branch_id=branch_id,
            branch_city=branch_city,
        )

    @staticmethod
    @log_database_operation("login", level="debug")
    async def login(db: AsyncSession, credentials: LoginRequest) -> Optional[LoginResponse]:
        """
        Authenticate and issue an access token.

        Returns:
            LoginResponse, or None when the credentials are rejected
        """
        user = await AuthService.authenticate(db, credentials.username, credentials.password)
        if user is None:
            logger.warning(f"Failed login for username '{credentials.username}'")
            return None

        token = create_access_token(user)
        logger.info(f"User {user.username} logged in")
        return LoginResponse(
            access_token=token,
            expires_in=settings.security.access_token_expire_minutes * 60,
            user=await AuthService.session_user(db, user),
        )
