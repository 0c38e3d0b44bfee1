"""
Heartbeat endpoints.

Device traffic (no authentication):
- POST /heartbeats
- POST /heartbeat/submit

Dashboard (authenticated, branch-scoped):
- GET /heartbeats
- GET /heartbeats/summary
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.heartbeat import (
    DeviceHeartbeatStatus,
    HeartbeatAck,
    HeartbeatCreate,
    HeartbeatSubmitData,
    HeartbeatSubmitResponse,
    HeartbeatSummary,
)
from api.services.heartbeat_service import HeartbeatService
from api.services.scoping import BranchScope
from core.database import get_session
from core.dependencies import get_branch_scope
from core.exceptions import DomainError
from db import HeartbeatStatus

router = APIRouter()
submit_router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=HeartbeatAck)
async def record_heartbeat(
    payload: HeartbeatCreate,
    db: AsyncSession = Depends(get_session),
):
    """
    Record a heartbeat from a recording device.

    - **ip_address**: Device IP (required)
    - **mac_address**: Device MAC (optional; unknown MACs are auto-registered)
    """
    try:
        await HeartbeatService.record_heartbeat(db, payload)
    except DomainError as e:
        raise e.to_http()
    return HeartbeatAck()


@submit_router.post("/heartbeat/submit", response_model=HeartbeatSubmitResponse)
async def submit_heartbeat(
    payload: HeartbeatCreate,
    db: AsyncSession = Depends(get_session),
):
    """Device-compatible heartbeat route; also echoes the stored row."""
    try:
        heartbeat = await HeartbeatService.record_heartbeat(db, payload)
    except DomainError as e:
        raise e.to_http()
    return HeartbeatSubmitResponse(
        data=HeartbeatSubmitData(
            id=heartbeat.id,
            ip_address=heartbeat.ip_address,
            created_on=heartbeat.received_at,
        )
    )


@router.get("", response_model=List[DeviceHeartbeatStatus])
async def list_heartbeat_statuses(
    status: Optional[HeartbeatStatus] = Query(None, description="Filter by derived status"),
    db: AsyncSession = Depends(get_session),
    scope: BranchScope = Depends(get_branch_scope),
):
    """Latest heartbeat and derived status per device, newest first."""
    return await HeartbeatService.list_statuses(db, scope, status=status)


@router.get("/summary", response_model=HeartbeatSummary)
async def heartbeat_summary(
    db: AsyncSession = Depends(get_session),
    scope: BranchScope = Depends(get_branch_scope),
):
    """Device counts per derived status."""
    return HeartbeatSummary(**await HeartbeatService.summary(db, scope))
