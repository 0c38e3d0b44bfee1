"""
User CRUD for database operations.

Handles all database queries related to users.
"""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from crud.base_repository import BaseCRUD
from db import User


class UserCRUD(BaseCRUD[User]):
    """CRUD for User database operations."""

    model = User
    pk_name = "uuid"
    search_fields = ("emp_name", "username", "email_id")

    @classmethod
    async def find_by_username(
        cls, db: AsyncSession, username: str
    ) -> Optional[User]:
        """Find user by username (case-insensitive)."""
        stmt = select(User).where(func.lower(User.username) == username.strip().lower())
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @classmethod
    async def find_active_by_email(
        cls, db: AsyncSession, email: str
    ) -> Optional[User]:
        """Find an active user by email (case-insensitive)."""
        stmt = (
            select(User)
            .where(func.lower(User.email_id) == email.strip().lower())
            .where(User.is_active.is_(True))
            .limit(1)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()
