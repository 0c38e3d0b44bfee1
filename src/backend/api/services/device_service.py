"""
Device directory service.

Devices are created either by an admin or automatically on the first
heartbeat carrying an unknown MAC. Reads are branch-scoped; writes are
admin-only and enforced at the endpoint.
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import func, insert, or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.device import DeviceCreate, DeviceRead, DeviceUpdate
from api.services.device_identity import generated_device_name
from api.services.scoping import UNASSIGNED_BRANCH_NAME, BranchScope, apply_branch_scope
from core.decorators import (
    critical_database_operation,
    log_database_operation,
    transactional_database_operation,
)
from core.exceptions import ConflictError, NotFoundError
from core.metrics import devices_auto_registered
from crud import DeviceCRUD
from db import Branch, Deployment, Device, DeviceStatus, utc_now

logger = logging.getLogger(__name__)


def insert_ignoring_conflicts(db: AsyncSession, table):
    """
    INSERT that silently skips rows violating a unique constraint.

    ON CONFLICT DO NOTHING on PostgreSQL and SQLite, INSERT IGNORE on MySQL.
    Returns None for other dialects; use insert_in_savepoint there.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table).on_conflict_do_nothing()
    if dialect == "sqlite":
        return sqlite.insert(table).on_conflict_do_nothing()
    if dialect in ("mysql", "mariadb"):
        return insert(table).prefix_with("IGNORE")
    return None


async def insert_in_savepoint(db: AsyncSession, table, values: dict) -> bool:
    """
    Plain INSERT inside a SAVEPOINT; a unique violation only rolls back the
    savepoint and leaves the caller's transaction usable.

    Returns:
        True if the row was inserted
    """
    try:
        async with db.begin_nested():
            await db.execute(insert(table).values(**values))
    except IntegrityError:
        return False
    return True


def _device_read(device: Device, branch_id: Optional[int], branch_name: Optional[str]) -> DeviceRead:
    return DeviceRead(
        **device.model_dump(),
        branch_id=branch_id,
        branch_name=branch_name or UNASSIGNED_BRANCH_NAME,
    )


def _scoped_device_query(scope: BranchScope):
    stmt = (
        select(Device, Branch.id, Branch.branch_name)
        .outerjoin(Deployment, Deployment.device_id == Device.id)
        .outerjoin(Branch, Branch.id == Deployment.branch_id)
        .where(Device.is_deleted.is_(False))
    )
    return apply_branch_scope(stmt, scope, Branch.id)


class DeviceService:
    """Service for the device registry."""

    @staticmethod
    @log_database_operation("device auto-registration", level="debug")
    async def register_if_unknown(
        db: AsyncSession, mac_address: str, ip_address: Optional[str]
    ) -> bool:
        """
        Create an inactive device for a MAC seen for the first time.

        Runs inside the caller's transaction and never commits. Safe under
        concurrency: the unique device_mac constraint decides which insert
        wins, the others are no-ops.

        Returns:
            True if a device row was created
        """
        if ip_address:
            owner = await DeviceCRUD.find_by_ip(db, ip_address)
            if owner is not None and owner.device_mac != mac_address:
                # IP already belongs to another device; register without it
                ip_address = None

        now = utc_now()
        values = dict(
            device_name=generated_device_name(mac_address),
            device_mac=mac_address,
            ip_address=ip_address,
            device_status=DeviceStatus.INACTIVE.value,
            is_deleted=False,
            created_on=now,
            updated_on=now,
        )
        stmt = insert_ignoring_conflicts(db, Device.__table__)
        if stmt is None:
            created = await insert_in_savepoint(db, Device.__table__, values)
        else:
            result = await db.execute(stmt.values(**values))
            created = (result.rowcount or 0) > 0

        if created:
            devices_auto_registered.inc()
            logger.info(f"Auto-registered device {mac_address} ({ip_address or 'no ip'})")
        return created

    @staticmethod
    @critical_database_operation("list devices")
    async def list_devices(
        db: AsyncSession,
        scope: BranchScope,
        page: int = 1,
        per_page: int = 20,
        search: Optional[str] = None,
        device_status: Optional[DeviceStatus] = None,
    ) -> Tuple[List[DeviceRead], int]:
        """List non-deleted devices visible to the caller."""
        stmt = _scoped_device_query(scope)

        if device_status is not None:
            stmt = stmt.where(Device.device_status == DeviceStatus(device_status).value)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(
                or_(
                    Device.device_name.ilike(pattern),
                    Device.ip_address.ilike(pattern),
                    Device.device_mac.ilike(pattern),
                )
            )

        total = (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()

        stmt = stmt.order_by(Device.device_name, Device.id).offset((page - 1) * per_page).limit(per_page)
        rows = (await db.execute(stmt)).all()
        return [_device_read(device, branch_id, branch_name) for device, branch_id, branch_name in rows], total

    @staticmethod
    @critical_database_operation("get device")
    async def get_device(db: AsyncSession, scope: BranchScope, device_id: int) -> Optional[DeviceRead]:
        """Get one device; None when missing, deleted or outside the caller's branch."""
        stmt = _scoped_device_query(scope).where(Device.id == device_id)
        row = (await db.execute(stmt)).first()
        if row is None:
            return None
        device, branch_id, branch_name = row
        return _device_read(device, branch_id, branch_name)

    @staticmethod
    async def _check_unique(db: AsyncSession, data: dict, exclude_id: Optional[int] = None) -> None:
        if data.get("device_mac"):
            existing = await DeviceCRUD.find_by_mac(db, data["device_mac"])
            if existing is not None and existing.id != exclude_id:
                raise ConflictError("Device MAC already exists")
        if data.get("ip_address"):
            existing = await DeviceCRUD.find_by_ip(db, data["ip_address"])
            if existing is not None and existing.id != exclude_id:
                raise ConflictError("IP address already assigned to another device")

    @staticmethod
    @transactional_database_operation("create device")
    async def create_device(db: AsyncSession, device_data: DeviceCreate) -> Device:
        """
        Create a device.

        Raises:
            ConflictError: Duplicate MAC or IP
        """
        data = device_data.model_dump()
        data["device_status"] = DeviceStatus(data["device_status"]).value
        await DeviceService._check_unique(db, data)

        try:
            device = await DeviceCRUD.create(db, obj_in=data, commit=False)
        except IntegrityError:
            raise ConflictError("Device MAC or IP address already exists")

        logger.info(f"Created device {device.device_name} (id={device.id})")
        return device

    @staticmethod
    @transactional_database_operation("update device")
    async def update_device(db: AsyncSession, device_id: int, update_data: DeviceUpdate) -> Device:
        """
        Overwrite a device's editable fields.

        Raises:
            NotFoundError: Device missing or deleted
            ConflictError: Duplicate MAC or IP
        """
        device = await DeviceCRUD.find_by_id(db, device_id)
        if device is None:
            raise NotFoundError("Device not found")

        data = update_data.model_dump()
        data["device_status"] = DeviceStatus(data["device_status"]).value
        await DeviceService._check_unique(db, data, exclude_id=device_id)

        try:
            device = await DeviceCRUD.update(db, db_obj=device, obj_in=data, commit=False)
        except IntegrityError:
            raise ConflictError("Device MAC or IP address already exists")
        return device

    @staticmethod
    @transactional_database_operation("delete device")
    async def delete_device(db: AsyncSession, device_id: int) -> None:
        """
        Soft delete a device.

        Raises:
            NotFoundError: Device missing or already deleted
            ConflictError: Device is still deployed
        """
        device = await DeviceCRUD.find_by_id(db, device_id)
        if device is None:
            raise NotFoundError("Device not found")

        deployed = await db.execute(select(Deployment.uuid).where(Deployment.device_id == device_id))
        if deployed.first() is not None:
            raise ConflictError("Device is deployed to a branch; remove the deployment first")

        await DeviceCRUD.update(db, db_obj=device, obj_in={"is_deleted": True}, commit=False)
        logger.info(f"Soft-deleted device {device.device_name} (id={device_id})")

    @staticmethod
    async def get_read(db: AsyncSession, device: Device) -> DeviceRead:
        """Attach the deployment branch to a device row for responses."""
        stmt = (
            select(Branch.id, Branch.branch_name)
            .join(Deployment, Deployment.branch_id == Branch.id)
            .where(Deployment.device_id == device.id)
        )
        row = (await db.execute(stmt)).first()
        branch_id, branch_name = row if row is not None else (None, None)
        return _device_read(device, branch_id, branch_name)
