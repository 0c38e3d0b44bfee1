"""
Recording endpoints (authenticated, branch-scoped reads).
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.recording import (
    RecordingFinish,
    RecordingListResponse,
    RecordingRead,
    RecordingStart,
)
from api.services.recording_service import RecordingService
from api.services.scoping import BranchScope
from core.config import settings
from core.database import get_session
from core.dependencies import get_branch_scope, get_current_user
from core.exceptions import DomainError
from db import RecordingStatus, User

router = APIRouter()


@router.get("", response_model=RecordingListResponse)
async def list_recordings(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.pagination.default_page_size, ge=1, le=settings.pagination.max_page_size),
    search: Optional[str] = Query(None, description="CNIC substring"),
    device: Optional[str] = Query(None, description="Device IP address"),
    branch_id: Optional[int] = Query(None, description="Branch filter (admin only)"),
    status: Optional[RecordingStatus] = Query(None),
    db: AsyncSession = Depends(get_session),
    scope: BranchScope = Depends(get_branch_scope),
):
    items, total = await RecordingService.list_recordings(
        db,
        scope,
        page=page,
        per_page=limit,
        search=search,
        device=device,
        branch_id=branch_id,
        status=status,
    )
    return RecordingListResponse(items=items, total=total, page=page, limit=limit)


@router.get("/devices", response_model=List[str])
async def list_recording_devices(
    db: AsyncSession = Depends(get_session),
    scope: BranchScope = Depends(get_branch_scope),
):
    """Names of devices with recordings visible to the caller."""
    return await RecordingService.list_device_names(db, scope)


@router.get("/{recording_id}", response_model=RecordingRead)
async def get_recording(
    recording_id: int,
    db: AsyncSession = Depends(get_session),
    scope: BranchScope = Depends(get_branch_scope),
):
    recording = await RecordingService.get_recording(db, scope, recording_id)
    if not recording:
        raise HTTPException(status_code=404, detail="Recording not found")
    return recording


@router.post("", response_model=RecordingRead, status_code=201)
async def start_recording(
    data: RecordingStart,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Open a recording session stamped with the current server time."""
    try:
        recording = await RecordingService.start_recording(db, data)
    except DomainError as e:
        raise e.to_http()
    return await RecordingService.get_recording(db, None, recording.id)


@router.put("/{recording_id}", response_model=RecordingRead)
async def finish_recording(
    recording_id: int,
    data: RecordingFinish,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Close a recording session (end time defaults to now)."""
    try:
        await RecordingService.finish_recording(db, recording_id, data)
    except DomainError as e:
        raise e.to_http()
    return await RecordingService.get_recording(db, None, recording_id)
