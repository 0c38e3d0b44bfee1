"""
Password reset via emailed one-time tokens.

Only the SHA-256 of a token is stored. A token is valid until it expires
or is used once, whichever comes first.
"""
import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.email_service import EmailService
from core.config import settings
from core.decorators import transactional_database_operation
from core.exceptions import ValidationError
from core.security import generate_reset_token, hash_password, hash_token, password_strength_errors
from crud import UserCRUD
from db import PasswordResetToken, utc_now

logger = logging.getLogger(__name__)

INVALID_TOKEN = "Invalid or expired reset token"


class PasswordResetService:
    """Service for the forgot/validate/reset password flow."""

    @staticmethod
    async def _find_valid_token(db: AsyncSession, token: str) -> Optional[PasswordResetToken]:
        result = await db.execute(
            select(PasswordResetToken).where(PasswordResetToken.token_hash == hash_token(token))
        )
        reset_token = result.scalar_one_or_none()
        if reset_token is None or reset_token.used_at is not None:
            return None
        if reset_token.expires_at <= utc_now():
            return None
        return reset_token

    @staticmethod
    @transactional_database_operation("request password reset")
    async def request_reset(db: AsyncSession, email: str) -> Optional[str]:
        """
        Issue a token for the active user with this email and mail the link.

        Returns:
            The raw token when one was issued, else None. Callers must not
            reveal which case happened.
        """
        user = await UserCRUD.find_active_by_email(db, email)
        if user is None:
            logger.info("Password reset requested for unknown or inactive email")
            return None

        token = generate_reset_token()
        db.add(
            PasswordResetToken(
                user_id=user.uuid,
                token_hash=hash_token(token),
                expires_at=utc_now() + timedelta(minutes=settings.password_reset.token_expire_minutes),
            )
        )
        await db.flush()

        link = f"{settings.password_reset.frontend_reset_url}?token={token}"
        await EmailService.send_password_reset(user.email_id, user.emp_name, link)
        logger.info(f"Password reset token issued for {user.username}")
        return token

    @staticmethod
    async def validate_token(db: AsyncSession, token: str) -> bool:
        return await PasswordResetService._find_valid_token(db, token) is not None

    @staticmethod
    @transactional_database_operation("reset password")
    async def reset_password(db: AsyncSession, token: str, new_password: str) -> None:
        """
        Set a new password and burn the token.

        Raises:
            ValidationError: Weak password, or token invalid/expired/used
        """
        errors = password_strength_errors(new_password)
        if errors:
            raise ValidationError(errors[0])

        reset_token = await PasswordResetService._find_valid_token(db, token)
        if reset_token is None:
            raise ValidationError(INVALID_TOKEN)

        user = await UserCRUD.find_by_id(db, reset_token.user_id)
        if user is None or not user.is_active:
            raise ValidationError(INVALID_TOKEN)

        await UserCRUD.update(db, db_obj=user, obj_in={"password_hash": hash_password(new_password)}, commit=False)
        reset_token.used_at = utc_now()
        db.add(reset_token)
        logger.info(f"Password reset completed for {user.username}")
