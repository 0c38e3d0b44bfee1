"""
Recording schemas for API validation and serialization.
"""
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from api.services.device_identity import normalize_mac
from core.schema_base import HTTPSchemaModel, PaginatedResponse
from db.enums import RecordingStatus


class RecordingStart(HTTPSchemaModel):
    """Open a recording session; start_time is stamped by the server."""
    cnic: str = Field(..., min_length=1, max_length=20)
    ip_address: str = Field(..., min_length=1, max_length=45)
    mac_address: Optional[str] = Field(None, max_length=32)

    @field_validator("mac_address")
    @classmethod
    def validate_mac(cls, v: Optional[str]) -> Optional[str]:
        return normalize_mac(v)


class RecordingFinish(HTTPSchemaModel):
    """Close a recording session."""
    end_time: Optional[datetime] = None
    file_name: Optional[str] = Field(None, max_length=255)
    duration_seconds: Optional[int] = Field(None, ge=0)


class RecordingRead(HTTPSchemaModel):
    id: int
    cnic: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    file_name: Optional[str] = None
    ip_address: Optional[str] = None
    mac_address: Optional[str] = None
    duration_seconds: Optional[int] = None
    status: RecordingStatus
    device_id: Optional[int] = None
    device_name: Optional[str] = None
    branch_id: Optional[int] = None
    branch_name: Optional[str] = None
    playback_url: Optional[str] = None
    created_on: datetime


class VoiceUploadData(HTTPSchemaModel):
    id: int
    file_name: str
    playback_url: str
    duration_seconds: Optional[int] = None


class VoiceUploadResponse(HTTPSchemaModel):
    success: bool = True
    message: str = "Recording uploaded"
    data: VoiceUploadData


RecordingListResponse = PaginatedResponse[RecordingRead]
