"""
Heartbeat schemas for device ingest and the status listing.
"""
from datetime import datetime
from typing import Optional

from pydantic import Field

from core.schema_base import HTTPSchemaModel
from db.enums import HeartbeatStatus


class HeartbeatCreate(HTTPSchemaModel):
    """Payload sent by a recording device.

    Fields are optional at the schema level so a missing IP is reported with
    the ingest error message rather than a generic validation error.
    """
    ip_address: Optional[str] = Field(None, max_length=45)
    mac_address: Optional[str] = Field(None, max_length=32)


class HeartbeatAck(HTTPSchemaModel):
    success: bool = True
    message: str = "Heartbeat recorded"


class HeartbeatSubmitData(HTTPSchemaModel):
    id: int
    ip_address: str
    created_on: datetime


class HeartbeatSubmitResponse(HeartbeatAck):
    """Response of the device-compatible /heartbeat/submit route."""
    data: HeartbeatSubmitData


class DeviceHeartbeatStatus(HTTPSchemaModel):
    """One row per reporting device identity, with its derived status."""
    identity: str
    ip_address: str
    mac_address: Optional[str] = None
    device_id: Optional[int] = None
    device_name: Optional[str] = None
    branch_id: Optional[int] = None
    branch_code: Optional[str] = None
    branch_name: str
    branch_city: Optional[str] = None
    last_seen: datetime
    status: HeartbeatStatus
    age_minutes: float
    heartbeats_24h: int
    uptime: str


class HeartbeatSummary(HTTPSchemaModel):
    total: int = 0
    online: int = 0
    problematic: int = 0
    offline: int = 0
