"""
Device schemas for API validation and serialization.
"""
import ipaddress
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from api.services.device_identity import normalize_mac
from core.schema_base import HTTPSchemaModel, PaginatedResponse
from db.enums import DeviceStatus


class DeviceBase(HTTPSchemaModel):
    """Base device schema with common fields."""
    device_name: str = Field(..., min_length=1, max_length=100)
    device_mac: Optional[str] = Field(None, max_length=32)
    ip_address: Optional[str] = Field(None, max_length=45)
    device_type: Optional[str] = Field(None, max_length=50)
    device_status: DeviceStatus = DeviceStatus.ACTIVE
    notes: Optional[str] = None

    @field_validator("device_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Device name is required")
        return v

    @field_validator("device_mac")
    @classmethod
    def validate_mac(cls, v: Optional[str]) -> Optional[str]:
        return normalize_mac(v)

    @field_validator("ip_address")
    @classmethod
    def validate_ip_address(cls, v: Optional[str]) -> Optional[str]:
        """Validate IP address format if provided."""
        if v is None or not v.strip():
            return None
        return str(ipaddress.ip_address(v.strip()))


class DeviceCreate(DeviceBase):
    """Schema for creating a device."""


class DeviceUpdate(DeviceBase):
    """Full replacement of a device's editable fields."""


class DeviceRead(HTTPSchemaModel):
    id: int
    device_name: str
    device_mac: Optional[str] = None
    ip_address: Optional[str] = None
    device_type: Optional[str] = None
    device_status: DeviceStatus
    notes: Optional[str] = None
    branch_id: Optional[int] = None
    branch_name: Optional[str] = None
    created_on: datetime
    updated_on: datetime


class DeviceSummary(HTTPSchemaModel):
    id: int
    device_name: str
    device_mac: Optional[str] = None
    ip_address: Optional[str] = None


DeviceListResponse = PaginatedResponse[DeviceRead]
