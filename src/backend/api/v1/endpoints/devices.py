"""
Device directory endpoints.

Reads are branch-scoped; writes are admin-only.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.device import DeviceCreate, DeviceListResponse, DeviceRead, DeviceUpdate
from api.services.device_service import DeviceService
from api.services.scoping import BranchScope
from core.config import settings
from core.database import get_session
from core.dependencies import get_branch_scope, require_admin
from core.exceptions import DomainError
from db import DeviceStatus, User

router = APIRouter()


@router.get("", response_model=DeviceListResponse)
async def list_devices(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.pagination.default_page_size, ge=1, le=settings.pagination.max_page_size),
    search: Optional[str] = Query(None, description="Search name, IP or MAC"),
    device_status: Optional[DeviceStatus] = Query(None),
    db: AsyncSession = Depends(get_session),
    scope: BranchScope = Depends(get_branch_scope),
):
    """List devices visible to the caller."""
    items, total = await DeviceService.list_devices(
        db, scope, page=page, per_page=limit, search=search, device_status=device_status
    )
    return DeviceListResponse(items=items, total=total, page=page, limit=limit)


@router.get("/{device_id}", response_model=DeviceRead)
async def get_device(
    device_id: int,
    db: AsyncSession = Depends(get_session),
    scope: BranchScope = Depends(get_branch_scope),
):
    device = await DeviceService.get_device(db, scope, device_id)
    if not device:
        raise HTTPException(status_code=404, detail="Device not found")
    return device


@router.post("", response_model=DeviceRead, status_code=201)
async def create_device(
    device_data: DeviceCreate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    """Create a device (admin only). MAC and IP must be unique."""
    try:
        device = await DeviceService.create_device(db, device_data)
    except DomainError as e:
        raise e.to_http()
    return await DeviceService.get_read(db, device)


@router.put("/{device_id}", response_model=DeviceRead)
async def update_device(
    device_id: int,
    update_data: DeviceUpdate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    """Overwrite a device (admin only)."""
    try:
        device = await DeviceService.update_device(db, device_id, update_data)
    except DomainError as e:
        raise e.to_http()
    return await DeviceService.get_read(db, device)


@router.delete("/{device_id}", status_code=204)
async def delete_device(
    device_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    """
    Soft delete a device (admin only).

    Refused while the device is part of a deployment.
    """
    try:
        await DeviceService.delete_device(db, device_id)
    except DomainError as e:
        raise e.to_http()
    return None
