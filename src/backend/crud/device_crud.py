"""
Device CRUD for database operations.

Soft-deleted devices are invisible to every lookup here.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crud.base_repository import BaseCRUD
from db import Device


class DeviceCRUD(BaseCRUD[Device]):
    """CRUD for Device database operations."""

    model = Device
    search_fields = ("device_name", "ip_address", "device_mac")

    @classmethod
    async def find_by_id(cls, db: AsyncSession, id_value: int) -> Optional[Device]:
        stmt = select(Device).where(Device.id == id_value, Device.is_deleted.is_(False))
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @classmethod
    async def find_by_mac(cls, db: AsyncSession, mac: str) -> Optional[Device]:
        """
        Find a device by normalized MAC, including soft-deleted rows.

        The unique constraint covers deleted devices too, so uniqueness checks
        must see them.
        """
        result = await db.execute(select(Device).where(Device.device_mac == mac))
        return result.scalar_one_or_none()

    @classmethod
    async def find_by_ip(cls, db: AsyncSession, ip_address: str) -> Optional[Device]:
        """Find a device by IP, including soft-deleted rows."""
        result = await db.execute(select(Device).where(Device.ip_address == ip_address))
        return result.scalar_one_or_none()
