"""
Authentication schemas: login, session payload and password reset.
"""
from typing import Optional
from uuid import UUID

from pydantic import Field

from core.schema_base import HTTPSchemaModel
from db.enums import UserRole


class LoginRequest(HTTPSchemaModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=72)


class SessionUser(HTTPSchemaModel):
    """User details the dashboard keeps for the logged-in session."""
    uuid: UUID
    username: str
    role: UserRole
    emp_name: str
    branch_id: Optional[int] = None
    branch_city: Optional[str] = None


class LoginResponse(HTTPSchemaModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: SessionUser


class ForgotPasswordRequest(HTTPSchemaModel):
    email: str = Field(..., min_length=3, max_length=150)


class ResetPasswordRequest(HTTPSchemaModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1, max_length=72)


class TokenValidationResponse(HTTPSchemaModel):
    valid: bool
