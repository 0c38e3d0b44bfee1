"""
User schemas for API validation and serialization.

password_hash never appears in any response model.
"""
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import Field, field_validator

from core.schema_base import HTTPSchemaModel, PaginatedResponse
from db.enums import UserRole


class UserBase(HTTPSchemaModel):
    """Base user schema with profile fields."""
    emp_name: str = Field(..., min_length=1, max_length=150)
    username: str = Field(..., min_length=3, max_length=100)
    role: UserRole = UserRole.USER
    gender: Optional[str] = Field(None, max_length=20)
    date_of_birth: Optional[date] = None
    cnic: Optional[str] = Field(None, max_length=20)
    phone_no: Optional[str] = Field(None, max_length=30)
    designation: Optional[str] = Field(None, max_length=100)
    department: Optional[str] = Field(None, max_length=100)
    joining_date: Optional[date] = None
    email_id: Optional[str] = Field(None, max_length=150)
    is_active: bool = True

    @field_validator("username")
    @classmethod
    def normalize_username(cls, v: str) -> str:
        return v.strip()


class UserCreate(UserBase):
    # bcrypt only looks at the first 72 bytes
    password: str = Field(..., min_length=1, max_length=72)


class UserUpdate(UserBase):
    """Full replacement of a user's profile; password changes only when given."""
    password: Optional[str] = Field(None, min_length=1, max_length=72)


class UserRead(HTTPSchemaModel):
    uuid: UUID
    emp_name: str
    username: str
    role: UserRole
    gender: Optional[str] = None
    date_of_birth: Optional[date] = None
    cnic: Optional[str] = None
    phone_no: Optional[str] = None
    designation: Optional[str] = None
    department: Optional[str] = None
    joining_date: Optional[date] = None
    email_id: Optional[str] = None
    is_active: bool
    branch_id: Optional[int] = None
    branch_name: Optional[str] = None
    branch_city: Optional[str] = None
    created_on: datetime
    updated_on: datetime


class UserSummary(HTTPSchemaModel):
    uuid: UUID
    username: str
    emp_name: str
    role: UserRole


UserListResponse = PaginatedResponse[UserRead]
