"""
Integration tests for the forgot / validate / reset password flow.
"""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select

from api.services.email_service import EmailService
from api.services.password_reset_service import PasswordResetService
from db.models import PasswordResetToken, utc_now
from tests.factories import UserFactory, persist

RESET_EMAIL = "reset.me@bank.example.com"


@pytest.fixture
def sent_emails(monkeypatch):
    mock = AsyncMock(return_value=True)
    monkeypatch.setattr(EmailService, "send_password_reset", mock)
    return mock


class TestForgotPassword:
    """Tests for POST /auth/forgot-password."""

    @pytest.mark.asyncio
    async def test_known_email_sends_link(self, client, db_session, session_factory, sent_emails):
        await persist(db_session, UserFactory.create(username="reset.me", email_id=RESET_EMAIL))

        response = await client.post("/api/auth/forgot-password", json={"email": RESET_EMAIL})

        assert response.status_code == 200
        assert response.json()["message"] == "If an account with that email exists, a reset link has been sent"
        sent_emails.assert_awaited_once()
        to_address, _, link = sent_emails.await_args.args
        assert to_address == RESET_EMAIL
        assert "token=" in link

        async with session_factory() as session:
            stored = (await session.execute(select(PasswordResetToken))).scalar_one()
        assert link.split("token=")[1] != stored.token_hash

    @pytest.mark.asyncio
    async def test_unknown_email_same_response(self, client, sent_emails):
        response = await client.post("/api/auth/forgot-password", json={"email": "nobody@bank.example.com"})

        assert response.status_code == 200
        assert response.json()["message"] == "If an account with that email exists, a reset link has been sent"
        sent_emails.assert_not_awaited()


class TestResetPassword:
    """Tests for token validation and reset."""

    @pytest.mark.asyncio
    async def test_full_flow(self, client, db_session, session_factory, sent_emails):
        await persist(db_session, UserFactory.create(username="reset.me", email_id=RESET_EMAIL))
        async with session_factory() as session:
            token = await PasswordResetService.request_reset(session, RESET_EMAIL)

        valid = await client.get(f"/api/auth/validate-reset-token/{token}")
        assert valid.json() == {"valid": True}

        response = await client.post(
            "/api/auth/reset-password", json={"token": token, "new_password": "BrandNew789"}
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Password has been reset"

        login = await client.post("/api/auth/login", json={"username": "reset.me", "password": "BrandNew789"})
        assert login.status_code == 200

        # Single use
        reused = await client.post(
            "/api/auth/reset-password", json={"token": token, "new_password": "Another789"}
        )
        assert reused.status_code == 400
        assert reused.json()["detail"] == "Invalid or expired reset token"
        assert (await client.get(f"/api/auth/validate-reset-token/{token}")).json() == {"valid": False}

    @pytest.mark.asyncio
    async def test_expired_token(self, client, db_session, session_factory, sent_emails):
        await persist(db_session, UserFactory.create(username="reset.me", email_id=RESET_EMAIL))
        async with session_factory() as session:
            token = await PasswordResetService.request_reset(session, RESET_EMAIL)
            stored = (await session.execute(select(PasswordResetToken))).scalar_one()
            stored.expires_at = utc_now() - timedelta(minutes=1)
            await session.commit()

        response = await client.post(
            "/api/auth/reset-password", json={"token": token, "new_password": "BrandNew789"}
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid or expired reset token"

    @pytest.mark.asyncio
    async def test_weak_password_checked_first(self, client):
        response = await client.post(
            "/api/auth/reset-password", json={"token": "whatever", "new_password": "nouppercase1"}
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Password must contain at least one uppercase letter"
