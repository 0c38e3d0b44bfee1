"""
Database models and enums for the BranchOps dashboard.
"""
from .enums import (
    ComplaintPriority,
    ComplaintStatus,
    DeviceStatus,
    HeartbeatStatus,
    RecordingStatus,
    UserRole,
)
from .models import (
    Branch,
    Complaint,
    Contact,
    Deployment,
    Device,
    Heartbeat,
    PasswordResetToken,
    Recording,
    User,
    UUIDField,
    utc_now,
)

__all__ = [
    "Branch",
    "Complaint",
    "ComplaintPriority",
    "ComplaintStatus",
    "Contact",
    "Deployment",
    "Device",
    "DeviceStatus",
    "Heartbeat",
    "HeartbeatStatus",
    "PasswordResetToken",
    "Recording",
    "RecordingStatus",
    "User",
    "UserRole",
    "UUIDField",
    "utc_now",
]
