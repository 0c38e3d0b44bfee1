"""
Database models for the BranchOps dashboard.

Tables:
- heartbeats: immutable liveness events from recording devices
- devices: device registry (auto-populated from heartbeats, editable by admins)
- branches: bank branches (soft-deleted through is_active)
- link_device_branch_user: one-to-one-to-one deployment linkage
- users: dashboard accounts
- recordings: voice recording metadata (status derived at query time)
- complaints, contacts: branch-level records
- password_reset_tokens: one-time password reset tokens
"""

from datetime import date, datetime, timezone
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.types import CHAR, TypeDecorator
from sqlmodel import Field, Relationship, SQLModel

from db.enums import ComplaintPriority, ComplaintStatus, DeviceStatus, UserRole


def utc_now() -> datetime:
    """
    Current time in UTC, timezone-naive, for database storage.

    All timestamps are stored as naive UTC; the API layer serializes them
    with a 'Z' suffix.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TableModel(SQLModel):
    """Base table model with common functionality."""

    pass


class UUIDField(TypeDecorator):
    """Platform-independent UUID type stored as CHAR(36)."""

    impl = CHAR(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, UUID):
            return value
        return UUID(value)


def _created_on_column() -> Column:
    return Column(DateTime, nullable=False, default=utc_now)


def _updated_on_column() -> Column:
    return Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)


# ============================================================================
# HEARTBEATS & DEVICES
# ============================================================================


class Heartbeat(TableModel, table=True):
    """
    Immutable liveness event.

    identity_key is computed once at ingest ("mac:<MAC>" or "ip:<IP>") and is
    what the status listing groups by; rows are never updated.
    """

    __tablename__ = "heartbeats"
    __table_args__ = (
        Index("ix_heartbeats_identity_received", "identity_key", "received_at"),
        Index("ix_heartbeats_received_at", "received_at"),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, primary_key=True, autoincrement=True),
    )
    ip_address: str = Field(
        sa_column=Column(String(45), nullable=False),
        description="Reporting IP address (IPv4 or IPv6)",
    )
    mac_address: Optional[str] = Field(
        default=None,
        sa_column=Column(String(17), nullable=True),
        description="Normalized MAC address (XX:XX:XX:XX:XX:XX) if reported",
    )
    identity_key: str = Field(
        sa_column=Column(String(64), nullable=False),
        description="Stable grouping key for the reporting device",
    )
    received_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False, default=utc_now),
        description="Server receive time (UTC)",
    )


class Device(TableModel, table=True):
    """
    Registered recording device.

    device_status is set by operators and is unrelated to the heartbeat-derived
    online/problematic/offline status. Devices are soft-deleted.
    """

    __tablename__ = "devices"

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, primary_key=True, autoincrement=True),
    )
    device_name: str = Field(
        sa_column=Column(String(100), nullable=False),
        description="Display name",
    )
    device_mac: Optional[str] = Field(
        default=None,
        sa_column=Column(String(17), nullable=True, unique=True),
        description="Normalized MAC address, unique when present",
    )
    ip_address: Optional[str] = Field(
        default=None,
        sa_column=Column(String(45), nullable=True, unique=True),
        description="IP address, unique when present",
    )
    device_type: Optional[str] = Field(
        default=None,
        sa_column=Column(String(50), nullable=True),
    )
    device_status: str = Field(
        default=DeviceStatus.ACTIVE.value,
        sa_column=Column(String(20), nullable=False, default=DeviceStatus.ACTIVE.value),
    )
    notes: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    is_deleted: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False),
        description="Soft delete flag",
    )
    created_on: datetime = Field(default_factory=utc_now, sa_column=_created_on_column())
    updated_on: datetime = Field(default_factory=utc_now, sa_column=_updated_on_column())


# ============================================================================
# BRANCHES, USERS & DEPLOYMENTS
# ============================================================================


class Branch(TableModel, table=True):
    """Bank branch. Never hard-deleted; is_active=False hides it."""

    __tablename__ = "branches"

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, primary_key=True, autoincrement=True),
    )
    branch_code: str = Field(sa_column=Column(String(20), nullable=False, unique=True))
    branch_name: str = Field(sa_column=Column(String(150), nullable=False))
    branch_city: Optional[str] = Field(default=None, sa_column=Column(String(100), nullable=True))
    branch_address: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))
    region: Optional[str] = Field(default=None, sa_column=Column(String(100), nullable=True))
    contact_phone: Optional[str] = Field(default=None, sa_column=Column(String(30), nullable=True))
    contact_email: Optional[str] = Field(default=None, sa_column=Column(String(150), nullable=True))
    is_active: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, default=True),
    )
    created_on: datetime = Field(default_factory=utc_now, sa_column=_created_on_column())
    updated_on: datetime = Field(default_factory=utc_now, sa_column=_updated_on_column())


class User(TableModel, table=True):
    """
    Dashboard account.

    The user's branch is not stored here: it is resolved through the
    deployment row (user -> deployment -> branch).
    """

    __tablename__ = "users"

    uuid: UUID = Field(
        default_factory=uuid4,
        sa_column=Column(UUIDField, primary_key=True),
    )
    emp_name: str = Field(sa_column=Column(String(150), nullable=False))
    username: str = Field(sa_column=Column(String(100), nullable=False, unique=True))
    password_hash: str = Field(sa_column=Column(String(255), nullable=False))
    role: str = Field(
        default=UserRole.USER.value,
        sa_column=Column(String(20), nullable=False, default=UserRole.USER.value),
    )
    gender: Optional[str] = Field(default=None, sa_column=Column(String(20), nullable=True))
    date_of_birth: Optional[date] = Field(default=None, sa_column=Column(Date, nullable=True))
    cnic: Optional[str] = Field(default=None, sa_column=Column(String(20), nullable=True))
    phone_no: Optional[str] = Field(default=None, sa_column=Column(String(30), nullable=True))
    designation: Optional[str] = Field(default=None, sa_column=Column(String(100), nullable=True))
    department: Optional[str] = Field(default=None, sa_column=Column(String(100), nullable=True))
    joining_date: Optional[date] = Field(default=None, sa_column=Column(Date, nullable=True))
    email_id: Optional[str] = Field(default=None, sa_column=Column(String(150), nullable=True, index=True))
    is_active: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, default=True),
    )
    created_on: datetime = Field(default_factory=utc_now, sa_column=_created_on_column())
    updated_on: datetime = Field(default_factory=utc_now, sa_column=_updated_on_column())

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


class Deployment(TableModel, table=True):
    """
    Device <-> branch <-> user link.

    Each of device_id, branch_id and user_id is unique across the table, so a
    device, a branch and a user can each take part in at most one deployment.
    """

    __tablename__ = "link_device_branch_user"

    uuid: UUID = Field(
        default_factory=uuid4,
        sa_column=Column(UUIDField, primary_key=True),
    )
    device_id: int = Field(
        sa_column=Column(Integer, ForeignKey("devices.id"), nullable=False, unique=True),
    )
    branch_id: int = Field(
        sa_column=Column(Integer, ForeignKey("branches.id"), nullable=False, unique=True),
    )
    user_id: UUID = Field(
        sa_column=Column(UUIDField, ForeignKey("users.uuid"), nullable=False, unique=True),
    )
    created_on: datetime = Field(default_factory=utc_now, sa_column=_created_on_column())
    updated_on: datetime = Field(default_factory=utc_now, sa_column=_updated_on_column())

    device: Optional[Device] = Relationship(sa_relationship_kwargs={"lazy": "selectin"})
    branch: Optional[Branch] = Relationship(sa_relationship_kwargs={"lazy": "selectin"})
    user: Optional[User] = Relationship(sa_relationship_kwargs={"lazy": "selectin"})


# ============================================================================
# RECORDINGS, COMPLAINTS, CONTACTS
# ============================================================================


class Recording(TableModel, table=True):
    """
    Voice recording metadata.

    There is no status column: completed / in_progress / failed is derived
    from end_time and file_name when queried.
    """

    __tablename__ = "recordings"
    __table_args__ = (
        Index("ix_recordings_start_time", "start_time"),
        Index("ix_recordings_cnic", "cnic"),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, primary_key=True, autoincrement=True),
    )
    cnic: Optional[str] = Field(default=None, sa_column=Column(String(20), nullable=True))
    start_time: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    end_time: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    file_name: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))
    ip_address: Optional[str] = Field(default=None, sa_column=Column(String(45), nullable=True))
    mac_address: Optional[str] = Field(default=None, sa_column=Column(String(17), nullable=True))
    duration_seconds: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))
    created_on: datetime = Field(default_factory=utc_now, sa_column=_created_on_column())


class Complaint(TableModel, table=True):
    """Customer complaint raised at a branch."""

    __tablename__ = "complaints"
    __table_args__ = (
        Index("ix_complaints_branch_status", "branch_id", "status"),
    )

    complaint_id: UUID = Field(
        default_factory=uuid4,
        sa_column=Column(UUIDField, primary_key=True),
    )
    branch_id: int = Field(sa_column=Column(Integer, ForeignKey("branches.id"), nullable=False))
    branch_name: str = Field(sa_column=Column(String(150), nullable=False))
    timestamp: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime, nullable=False, default=utc_now))
    customer_data: Optional[dict] = Field(default=None, sa_column=Column(JSON, nullable=True))
    complaint_text: str = Field(sa_column=Column(Text, nullable=False))
    status: str = Field(
        default=ComplaintStatus.PENDING.value,
        sa_column=Column(String(20), nullable=False, default=ComplaintStatus.PENDING.value),
    )
    priority: str = Field(
        default=ComplaintPriority.MEDIUM.value,
        sa_column=Column(String(20), nullable=False, default=ComplaintPriority.MEDIUM.value),
    )
    created_on: datetime = Field(default_factory=utc_now, sa_column=_created_on_column())
    updated_on: datetime = Field(default_factory=utc_now, sa_column=_updated_on_column())


class Contact(TableModel, table=True):
    """Branch staff contact card, tied to the device at their desk."""

    __tablename__ = "contacts"

    uuid: UUID = Field(
        default_factory=uuid4,
        sa_column=Column(UUIDField, primary_key=True),
    )
    emp_name: str = Field(sa_column=Column(String(150), nullable=False))
    device_mac: str = Field(sa_column=Column(String(17), nullable=False))
    branch_id: int = Field(sa_column=Column(Integer, ForeignKey("branches.id"), nullable=False))
    branch_city: str = Field(sa_column=Column(String(100), nullable=False))
    branch_address: str = Field(sa_column=Column(String(255), nullable=False))
    gender: str = Field(sa_column=Column(String(20), nullable=False))
    date_of_birth: date = Field(sa_column=Column(Date, nullable=False))
    cnic: str = Field(sa_column=Column(String(20), nullable=False))
    phone_no: str = Field(sa_column=Column(String(30), nullable=False))
    designation: str = Field(sa_column=Column(String(100), nullable=False))
    department: str = Field(sa_column=Column(String(100), nullable=False))
    joining_date: date = Field(sa_column=Column(Date, nullable=False))
    email_id: str = Field(sa_column=Column(String(150), nullable=False))
    created_on: datetime = Field(default_factory=utc_now, sa_column=_created_on_column())
    updated_on: datetime = Field(default_factory=utc_now, sa_column=_updated_on_column())


class PasswordResetToken(TableModel, table=True):
    """One-time password reset token; only the SHA-256 hash is stored."""

    __tablename__ = "password_reset_tokens"

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, primary_key=True, autoincrement=True),
    )
    user_id: UUID = Field(sa_column=Column(UUIDField, ForeignKey("users.uuid"), nullable=False))
    token_hash: str = Field(sa_column=Column(String(64), nullable=False, unique=True))
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    used_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    created_on: datetime = Field(default_factory=utc_now, sa_column=_created_on_column())


__all__: List[str] = [
    "utc_now",
    "UUIDField",
    "Heartbeat",
    "Device",
    "Branch",
    "User",
    "Deployment",
    "Recording",
    "Complaint",
    "Contact",
    "PasswordResetToken",
]
