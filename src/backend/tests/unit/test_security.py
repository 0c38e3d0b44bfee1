"""
Unit tests for password hashing, password rules and JWT access tokens.
"""

from datetime import timedelta

import jwt
import pytest

from core.config import settings
from core.security import (
    TokenExpiredError,
    TokenInvalidError,
    create_access_token,
    decode_token,
    generate_reset_token,
    hash_password,
    hash_token,
    password_strength_errors,
    verify_password,
)
from db.enums import UserRole
from tests.factories import UserFactory


class TestPasswords:
    """Tests for bcrypt hashing and the strength rules."""

    def test_hash_and_verify(self):
        hashed = hash_password("Secr3tPass")
        assert hashed != "Secr3tPass"
        assert verify_password("Secr3tPass", hashed)
        assert not verify_password("wrong", hashed)

    def test_malformed_hash_does_not_verify(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False

    def test_strong_password_passes(self):
        assert password_strength_errors("Str0ngPass") == []

    @pytest.mark.parametrize(
        "password,fragment",
        [
            ("Sh0rt", "at least 8 characters"),
            ("alllower1", "uppercase"),
            ("ALLUPPER1", "lowercase"),
            ("NoDigitsHere", "number"),
        ],
    )
    def test_weak_passwords(self, password, fragment):
        errors = password_strength_errors(password)
        assert any(fragment in e for e in errors)


class TestAccessTokens:
    """Tests for JWT creation and validation."""

    def test_round_trip_claims(self):
        user = UserFactory.create(username="teller.one", role=UserRole.MANAGER)
        payload = decode_token(create_access_token(user))

        assert payload["sub"] == str(user.uuid)
        assert payload["username"] == "teller.one"
        assert payload["role"] == "manager"
        assert payload["type"] == "access"
        assert payload["iss"] == settings.security.jwt_issuer
        assert payload["aud"] == settings.security.jwt_audience
        assert payload["jti"]

    def test_expired_token(self):
        user = UserFactory.create()
        token = create_access_token(user, expires_delta=timedelta(seconds=-10))
        with pytest.raises(TokenExpiredError):
            decode_token(token)

    def test_wrong_signature(self):
        user = UserFactory.create()
        forged = jwt.encode(
            {"sub": str(user.uuid), "type": "access", "iss": settings.security.jwt_issuer,
             "aud": settings.security.jwt_audience},
            "some-other-secret-key-of-sufficient-length",
            algorithm="HS256",
        )
        with pytest.raises(TokenInvalidError):
            decode_token(forged)

    def test_wrong_token_type(self):
        token = jwt.encode(
            {"sub": "x", "type": "refresh", "iss": settings.security.jwt_issuer,
             "aud": settings.security.jwt_audience},
            settings.security.secret_key,
            algorithm=settings.security.algorithm,
        )
        with pytest.raises(TokenInvalidError):
            decode_token(token)


class TestResetTokens:

    def test_tokens_are_unique_and_hash_is_stable(self):
        first, second = generate_reset_token(), generate_reset_token()
        assert first != second
        assert hash_token(first) == hash_token(first)
        assert len(hash_token(first)) == 64
