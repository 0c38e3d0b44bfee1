"""
Authentication endpoints.

- POST /auth/login
- GET /auth/me
- POST /auth/forgot-password
- GET /auth/validate-reset-token/{token}
- POST /auth/reset-password
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    ResetPasswordRequest,
    TokenValidationResponse,
)
from api.schemas.user import UserRead
from api.services.auth_service import INVALID_CREDENTIALS, AuthService
from api.services.password_reset_service import PasswordResetService
from api.services.user_service import UserService
from core.config import settings
from core.database import get_session
from core.dependencies import AuthenticationError, get_current_user
from core.exceptions import DomainError
from core.rate_limit import limiter
from core.schema_base import MessageResponse
from db import User

router = APIRouter()
logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, a reset link has been sent"


@router.post("/login", response_model=LoginResponse)
@limiter.limit(settings.rate_limit.login)
async def login(
    request: Request,  # Must be present for the rate limiter
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_session),
):
    """Exchange username and password for a bearer token."""
    response = await AuthService.login(db, credentials)
    if response is None:
        raise AuthenticationError(INVALID_CREDENTIALS)
    return response


@router.get("/me", response_model=UserRead)
async def me(
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Profile of the authenticated user, with the branch of their deployment."""
    user = await UserService.get_user(db, current_user.uuid)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    data: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_session),
):
    """Send a reset link; the response is identical whether or not the email is known."""
    await PasswordResetService.request_reset(db, data.email)
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.get("/validate-reset-token/{token}", response_model=TokenValidationResponse)
async def validate_reset_token(
    token: str,
    db: AsyncSession = Depends(get_session),
):
    return TokenValidationResponse(valid=await PasswordResetService.validate_token(db, token))


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    data: ResetPasswordRequest,
    db: AsyncSession = Depends(get_session),
):
    try:
        await PasswordResetService.reset_password(db, data.token, data.new_password)
    except DomainError as e:
        raise e.to_http()
    return MessageResponse(message="Password has been reset")
