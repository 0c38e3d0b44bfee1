"""
Security utilities: password hashing, JWT access tokens and password reset
tokens.

Access tokens are signed JWTs (HS256 by default) carrying the user id, the
username and the role; the caller's branch is looked up per request instead
of being frozen into the token, so redeployments take effect immediately.
"""

import hashlib
import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

import bcrypt
import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from core.config import settings
from db.models import User


class SecurityError(Exception):
    """Base exception for security-related errors."""

    pass


class TokenExpiredError(SecurityError):
    """Raised when a token has expired."""

    pass


class TokenInvalidError(SecurityError):
    """Raised when a token is invalid."""

    pass


# ============================================================================
# Passwords
# ============================================================================


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    salt = bcrypt.gensalt(rounds=settings.security.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its bcrypt hash.

    Malformed hashes verify as False rather than raising.
    """
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8"),
        )
    except ValueError:
        return False


def password_strength_errors(password: str) -> List[str]:
    """Return the unmet password rules (empty when the password is acceptable).

    Rules: at least 8 characters, one uppercase letter, one lowercase letter
    and one digit.
    """
    errors = []
    if len(password) < 8:
        errors.append("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one number")
    return errors


# ============================================================================
# JWT access tokens
# ============================================================================


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token for the given user.

    Args:
        user: Authenticated user
        expires_delta: Custom lifetime (defaults to SECURITY_ACCESS_TOKEN_EXPIRE_MINUTES)

    Returns:
        Encoded JWT string

    Raises:
        SecurityError: If token creation fails
    """
    now = datetime.now(timezone.utc)
    expire = now + (
        expires_delta
        if expires_delta is not None
        else timedelta(minutes=settings.security.access_token_expire_minutes)
    )

    payload = {
        "sub": str(user.uuid),
        "username": user.username,
        "role": user.role,
        "type": "access",
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
        "jti": str(uuid4()),
        "iss": settings.security.jwt_issuer,
        "aud": settings.security.jwt_audience,
    }

    try:
        return jwt.encode(
            payload,
            settings.security.secret_key,
            algorithm=settings.security.algorithm,
        )
    except Exception as e:
        raise SecurityError(f"Failed to create access token: {str(e)}")


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT token.

    Raises:
        TokenExpiredError: If token has expired
        TokenInvalidError: If token is invalid (signature, audience, issuer, type)
    """
    try:
        payload = jwt.decode(
            token,
            settings.security.secret_key,
            algorithms=[settings.security.algorithm],
            audience=settings.security.jwt_audience,
            issuer=settings.security.jwt_issuer,
        )
    except ExpiredSignatureError:
        raise TokenExpiredError("Token has expired")
    except InvalidTokenError as e:
        raise TokenInvalidError(f"Invalid token: {str(e)}")

    if payload.get("type") != "access":
        raise TokenInvalidError("Invalid token: unexpected token type")
    return payload


def get_user_id_from_token(payload: Dict[str, Any]) -> str:
    """Extract the user UUID (as a string) from a token payload.

    Raises:
        TokenInvalidError: If user ID is missing
    """
    sub = payload.get("sub")
    if not sub:
        raise TokenInvalidError("User ID missing from token")
    return str(sub)


# ============================================================================
# Password reset tokens
# ============================================================================


def generate_reset_token() -> str:
    """Generate a URL-safe one-time token for password reset links."""
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    """SHA-256 of a token; only the hash is persisted."""
    return hashlib.sha256(token.encode()).hexdigest()
