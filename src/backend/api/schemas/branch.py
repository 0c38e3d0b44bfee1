"""
Branch schemas for API validation and serialization.
"""
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from core.schema_base import HTTPSchemaModel, PaginatedResponse


class BranchBase(HTTPSchemaModel):
    """Base branch schema with common fields."""
    branch_code: str = Field(..., min_length=1, max_length=20)
    branch_name: str = Field(..., min_length=1, max_length=150)
    branch_city: Optional[str] = Field(None, max_length=100)
    branch_address: Optional[str] = Field(None, max_length=255)
    region: Optional[str] = Field(None, max_length=100)
    contact_phone: Optional[str] = Field(None, max_length=30)
    contact_email: Optional[str] = Field(None, max_length=150)
    is_active: bool = True

    @field_validator("branch_code", "branch_name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class BranchCreate(BranchBase):
    """Schema for creating a branch."""


class BranchUpdate(BranchBase):
    """Full replacement of a branch (PUT)."""


class BranchRead(BranchBase):
    id: int
    created_on: datetime
    updated_on: datetime


class BranchSummary(HTTPSchemaModel):
    id: int
    branch_code: str
    branch_name: str
    branch_city: Optional[str] = None


BranchListResponse = PaginatedResponse[BranchRead]
