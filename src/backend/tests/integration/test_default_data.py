"""
Tests for the bootstrap admin seeding run at startup.
"""

import pytest
from sqlalchemy import select

from core.security import verify_password
from db.enums import UserRole
from db.models import User
from db.setup import DatabaseSetup
from tests.factories import UserFactory, persist


def _setup(password: str = "Bootstrap#2024") -> DatabaseSetup:
    setup = DatabaseSetup()
    setup.admin_username = "root.admin"
    setup.admin_password = password
    setup.admin_email = "root.admin@branchops.local"
    setup.admin_full_name = "Root Admin"
    return setup


class TestBootstrapAdmin:
    """Seeding of the first admin account."""

    @pytest.mark.asyncio
    async def test_creates_admin_when_none_exists(self, db_session):
        assert await _setup().run_setup(db_session) is True

        result = await db_session.execute(select(User).where(User.username == "root.admin"))
        admin = result.scalar_one()
        assert admin.role == UserRole.ADMIN.value
        assert admin.is_active is True
        assert verify_password("Bootstrap#2024", admin.password_hash)

    @pytest.mark.asyncio
    async def test_skips_when_admin_exists(self, db_session, admin_user):
        assert await _setup().run_setup(db_session) is True

        result = await db_session.execute(select(User).where(User.username == "root.admin"))
        assert result.scalar_one_or_none() is None

    @pytest.mark.asyncio
    async def test_skips_without_password(self, db_session):
        assert await _setup(password="").run_setup(db_session) is True

        result = await db_session.execute(select(User))
        assert result.scalars().all() == []

    @pytest.mark.asyncio
    async def test_username_taken_by_non_admin(self, db_session):
        await persist(db_session, UserFactory.create(username="root.admin", role=UserRole.USER))

        assert await _setup().run_setup(db_session) is False
