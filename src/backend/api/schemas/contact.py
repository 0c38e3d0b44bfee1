"""
Contact schemas for API validation and serialization.
"""
from datetime import date, datetime
from uuid import UUID

from pydantic import Field, field_validator

from api.services.device_identity import normalize_mac
from core.schema_base import HTTPSchemaModel, PaginatedResponse


class ContactBase(HTTPSchemaModel):
    """All contact fields are mandatory."""
    emp_name: str = Field(..., min_length=1, max_length=150)
    device_mac: str = Field(..., min_length=1, max_length=32)
    branch_id: int
    branch_city: str = Field(..., min_length=1, max_length=100)
    branch_address: str = Field(..., min_length=1, max_length=255)
    gender: str = Field(..., min_length=1, max_length=20)
    date_of_birth: date
    cnic: str = Field(..., min_length=1, max_length=20)
    phone_no: str = Field(..., min_length=1, max_length=30)
    designation: str = Field(..., min_length=1, max_length=100)
    department: str = Field(..., min_length=1, max_length=100)
    joining_date: date
    email_id: str = Field(..., min_length=3, max_length=150)

    @field_validator("device_mac")
    @classmethod
    def validate_mac(cls, v: str) -> str:
        normalized = normalize_mac(v)
        if normalized is None:
            raise ValueError("Device MAC is required")
        return normalized


class ContactCreate(ContactBase):
    """Schema for creating a contact."""


class ContactUpdate(ContactBase):
    """Full replacement of a contact (PUT)."""


class ContactRead(ContactBase):
    uuid: UUID
    created_on: datetime
    updated_on: datetime


ContactListResponse = PaginatedResponse[ContactRead]
