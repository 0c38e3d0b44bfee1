"""
Default data setup.

Seeds the bootstrap admin account from the ADMIN_* settings. Nothing is
created when ADMIN_PASSWORD is empty or an admin already exists.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.security import hash_password
from db import User, UserRole

logger = logging.getLogger(__name__)


class DatabaseSetup:
    """Handles default data setup."""

    def __init__(self):
        self.admin_username = settings.admin.username
        self.admin_password = settings.admin.password
        self.admin_email = settings.admin.email
        self.admin_full_name = settings.admin.emp_name

    async def create_admin_user(self, db: AsyncSession) -> bool:
        """
        Create the bootstrap admin if no admin exists yet.

        Returns:
            True if the admin exists or was created, False on failure
        """
        result = await db.execute(
            select(User.uuid).where(User.role == UserRole.ADMIN.value).limit(1)
        )
        if result.first() is not None:
            logger.info("Admin user already exists, skipping bootstrap")
            return True

        if not self.admin_password:
            logger.warning("No admin user exists and ADMIN_PASSWORD is not set; skipping bootstrap")
            return True

        existing = await db.execute(select(User).where(User.username == self.admin_username))
        if existing.scalar_one_or_none() is not None:
            logger.error(
                f"Cannot bootstrap admin: username '{self.admin_username}' is taken by a non-admin user"
            )
            return False

        db.add(
            User(
                username=self.admin_username,
                emp_name=self.admin_full_name,
                email_id=self.admin_email,
                password_hash=hash_password(self.admin_password),
                role=UserRole.ADMIN.value,
                is_active=True,
            )
        )
        await db.commit()
        logger.info(f"Created bootstrap admin user '{self.admin_username}'")
        return True

    async def run_setup(self, db: AsyncSession) -> bool:
        try:
            return await self.create_admin_user(db)
        except Exception as e:
            await db.rollback()
            logger.error(f"Default data setup failed: {e}")
            return False


async def setup_database_default_data(db: AsyncSession) -> bool:
    """
    Convenience function to setup database default data.

    Returns:
        True if setup was successful, False otherwise
    """
    return await DatabaseSetup().run_setup(db)
