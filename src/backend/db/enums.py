"""
Enums for database models.

Values are stored as plain strings; these enums give the service and schema
layers a closed set to validate against.
"""
from enum import Enum


class UserRole(str, Enum):
    """Role of a dashboard user; determines branch visibility."""
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"


class DeviceStatus(str, Enum):
    """
    Operator-set device state.

    Independent of the heartbeat-derived status: a device can be "active"
    and offline, or "maintenance" and online.
    """
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"


class HeartbeatStatus(str, Enum):
    """Status derived from the age of a device's latest heartbeat."""
    ONLINE = "online"
    PROBLEMATIC = "problematic"
    OFFLINE = "offline"


class RecordingStatus(str, Enum):
    """Derived at query time from start/end time and file presence."""
    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"
    FAILED = "failed"


class ComplaintStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class ComplaintPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"
