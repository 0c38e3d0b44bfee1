"""
Pytest configuration and fixtures for testing.

Provides:
- Per-test SQLite database (aiosqlite, WAL mode so test and app sessions
  can read and write side by side)
- HTTP client bound to the app with the session dependency overridden
- Users with bearer tokens for each role

Usage:
    pytest -v
"""

import os
import tempfile

# Settings are read at import time; configure before importing the app.
_TEST_ROOT = tempfile.mkdtemp(prefix="branchops-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TEST_ROOT}/app.db")
os.environ.setdefault("SECURITY_SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("SECURITY_BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_ENABLE_FILE_LOGGING", "false")
os.environ.setdefault("EMAIL_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("RECORDING_UPLOAD_DIR", os.path.join(_TEST_ROOT, "audio"))
os.environ.setdefault("ADMIN_PASSWORD", "")

from typing import AsyncGenerator, Dict  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

import db.models  # noqa: E402,F401
from core.database import get_session  # noqa: E402
from db.models import Branch, User  # noqa: E402
from db.enums import UserRole  # noqa: E402
from tests.factories import (  # noqa: E402
    BranchFactory,
    DeploymentFactory,
    DeviceFactory,
    UserFactory,
    auth_headers,
    persist,
)


# ============================================================================
# Application
# ============================================================================

@pytest.fixture(scope="session")
def app():
    """Create the FastAPI app once; metrics collectors can only register once."""
    from app import create_app

    return create_app()


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """Fresh SQLite database file for each test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _sqlite_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for arranging and inspecting data directly."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(app, session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests use the per-test database."""

    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                if session.in_transaction():
                    await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ============================================================================
# Data Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await persist(db_session, UserFactory.create(username="admin", role=UserRole.ADMIN))


@pytest.fixture
def admin_headers(admin_user: User) -> Dict[str, str]:
    return auth_headers(admin_user)


@pytest_asyncio.fixture
async def branch(db_session: AsyncSession) -> Branch:
    return await persist(db_session, BranchFactory.create(branch_code="KHI-001", branch_name="Karachi Main"))


@pytest_asyncio.fixture
async def other_branch(db_session: AsyncSession) -> Branch:
    return await persist(db_session, BranchFactory.create(branch_code="LHE-001", branch_name="Lahore Mall Road"))


@pytest_asyncio.fixture
async def deployed_manager(db_session: AsyncSession, branch: Branch):
    """A manager deployed to `branch` with a device; returns (user, device, deployment)."""
    manager = UserFactory.create(username="manager.khi", role=UserRole.MANAGER)
    device = DeviceFactory.create(device_mac="AA:BB:CC:00:00:01", ip_address="10.0.1.10")
    await persist(db_session, manager, device)
    deployment = await persist(
        db_session,
        DeploymentFactory.create(device_id=device.id, branch_id=branch.id, user_id=manager.uuid),
    )
    return manager, device, deployment


@pytest.fixture
def manager_headers(deployed_manager) -> Dict[str, str]:
    return auth_headers(deployed_manager[0])


@pytest_asyncio.fixture
async def unassigned_user(db_session: AsyncSession) -> User:
    """Non-admin user with no deployment."""
    return await persist(db_session, UserFactory.create(username="floating.user", role=UserRole.USER))
