"""
Test data factories for generating realistic test data.

Usage:
    branch = BranchFactory.create()
    device = DeviceFactory.create(device_mac="AA:BB:CC:DD:EE:FF")
"""

import uuid
from datetime import date, datetime, timedelta
from typing import Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from core.security import create_access_token, hash_password
from db.enums import ComplaintPriority, ComplaintStatus, DeviceStatus, UserRole
from db.models import (
    Branch,
    Complaint,
    Contact,
    Deployment,
    Device,
    Heartbeat,
    Recording,
    User,
    utc_now,
)

DEFAULT_PASSWORD = "Passw0rd!"


def _unique_suffix() -> str:
    """Generate a unique suffix for test data."""
    return uuid.uuid4().hex[:8]


class BranchFactory:
    """Factory for creating Branch instances."""

    @classmethod
    def create(
        cls,
        branch_code: Optional[str] = None,
        branch_name: Optional[str] = None,
        branch_city: str = "Karachi",
        is_active: bool = True,
    ) -> Branch:
        suffix = _unique_suffix()
        return Branch(
            branch_code=branch_code or f"BR-{suffix}",
            branch_name=branch_name or f"Branch {suffix}",
            branch_city=branch_city,
            branch_address="1 Main Street",
            region="South",
            is_active=is_active,
        )


class UserFactory:
    """Factory for creating User instances with a known password."""

    @classmethod
    def create(
        cls,
        username: Optional[str] = None,
        role: UserRole = UserRole.USER,
        password: str = DEFAULT_PASSWORD,
        email_id: Optional[str] = None,
        is_active: bool = True,
    ) -> User:
        username = username or f"user_{_unique_suffix()}"
        return User(
            username=username,
            emp_name=username.replace(".", " ").title(),
            email_id=email_id or f"{username}@bank.example.com",
            password_hash=hash_password(password),
            role=role.value,
            designation="Officer",
            department="Operations",
            is_active=is_active,
        )


class DeviceFactory:
    """Factory for creating Device instances."""

    @classmethod
    def create(
        cls,
        device_mac: Optional[str] = None,
        ip_address: Optional[str] = None,
        device_name: Optional[str] = None,
        device_status: DeviceStatus = DeviceStatus.ACTIVE,
    ) -> Device:
        return Device(
            device_name=device_name or f"Recorder {_unique_suffix()}",
            device_mac=device_mac,
            ip_address=ip_address,
            device_type="voice-recorder",
            device_status=device_status.value,
        )


class DeploymentFactory:
    @classmethod
    def create(cls, device_id: int, branch_id: int, user_id: UUID) -> Deployment:
        return Deployment(device_id=device_id, branch_id=branch_id, user_id=user_id)


class HeartbeatFactory:
    """Factory for heartbeat rows at a given age."""

    @classmethod
    def create(
        cls,
        ip_address: str,
        mac_address: Optional[str] = None,
        minutes_ago: float = 0,
        now: Optional[datetime] = None,
    ) -> Heartbeat:
        now = now or utc_now()
        key = f"mac:{mac_address}" if mac_address else f"ip:{ip_address}"
        return Heartbeat(
            ip_address=ip_address,
            mac_address=mac_address,
            identity_key=key,
            received_at=now - timedelta(minutes=minutes_ago),
        )


class RecordingFactory:
    @classmethod
    def create(
        cls,
        ip_address: str,
        mac_address: Optional[str] = None,
        cnic: str = "42101-1234567-1",
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        file_name: Optional[str] = None,
        duration_seconds: Optional[int] = None,
    ) -> Recording:
        return Recording(
            cnic=cnic,
            ip_address=ip_address,
            mac_address=mac_address,
            start_time=start_time,
            end_time=end_time,
            file_name=file_name,
            duration_seconds=duration_seconds,
        )


class ComplaintFactory:
    @classmethod
    def create(
        cls,
        branch: Branch,
        status: ComplaintStatus = ComplaintStatus.PENDING,
        priority: ComplaintPriority = ComplaintPriority.MEDIUM,
        complaint_text: str = "ATM card retained by machine",
        timestamp: Optional[datetime] = None,
    ) -> Complaint:
        return Complaint(
            branch_id=branch.id,
            branch_name=branch.branch_name,
            complaint_text=complaint_text,
            customer_data={"name": "Ali Raza", "phone": "0300-1234567"},
            status=status.value,
            priority=priority.value,
            timestamp=timestamp or utc_now(),
        )


class ContactFactory:
    @classmethod
    def create(cls, branch: Branch, emp_name: str = "Sana Iqbal", device_mac: str = "AA:BB:CC:DD:EE:01") -> Contact:
        return Contact(
            emp_name=emp_name,
            device_mac=device_mac,
            branch_id=branch.id,
            branch_city=branch.branch_city or "Karachi",
            branch_address=branch.branch_address or "1 Main Street",
            gender="Female",
            date_of_birth=date(1990, 4, 12),
            cnic="42101-7654321-2",
            phone_no="0321-7654321",
            designation="Teller",
            department="Operations",
            joining_date=date(2018, 1, 15),
            email_id="sana.iqbal@bank.example.com",
        )


# ============================================================================
# Helpers
# ============================================================================

def auth_headers(user: User) -> Dict[str, str]:
    """Bearer header for a user."""
    return {"Authorization": f"Bearer {create_access_token(user)}"}


async def persist(db_session: AsyncSession, *objects):
    """Add and commit the given objects; returns them (or the single object)."""
    for obj in objects:
        db_session.add(obj)
    await db_session.commit()
    return objects if len(objects) > 1 else objects[0]
