"""
Complaint endpoints (authenticated, branch-scoped).
"""
from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.complaint import (
    ComplaintAnalytics,
    ComplaintCreate,
    ComplaintListResponse,
    ComplaintRead,
    ComplaintStats,
    ComplaintUpdate,
)
from api.services.complaint_service import ComplaintService
from api.services.scoping import BranchScope
from core.config import settings
from core.database import get_session
from core.dependencies import get_branch_scope
from core.exceptions import DomainError
from db import ComplaintPriority, ComplaintStatus

router = APIRouter()


@router.get("", response_model=ComplaintListResponse)
async def list_complaints(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.pagination.default_page_size, ge=1, le=settings.pagination.max_page_size),
    search: Optional[str] = Query(None, description="Search complaint text or branch name"),
    branch_id: Optional[int] = Query(None),
    status: Optional[ComplaintStatus] = Query(None),
    priority: Optional[ComplaintPriority] = Query(None),
    sort_by: Literal["created_on", "timestamp", "priority", "status"] = Query("created_on"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    db: AsyncSession = Depends(get_session),
    scope: BranchScope = Depends(get_branch_scope),
):
    items, total = await ComplaintService.list_complaints(
        db,
        scope,
        page=page,
        per_page=limit,
        search=search,
        branch_id=branch_id,
        status=status,
        priority=priority,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return ComplaintListResponse(items=items, total=total, page=page, limit=limit)


@router.get("/stats", response_model=ComplaintStats)
async def complaint_stats(
    db: AsyncSession = Depends(get_session),
    scope: BranchScope = Depends(get_branch_scope),
):
    return await ComplaintService.get_stats(db, scope)


@router.get("/analytics", response_model=ComplaintAnalytics)
async def complaint_analytics(
    db: AsyncSession = Depends(get_session),
    scope: BranchScope = Depends(get_branch_scope),
):
    """Six-month trend plus priority and status distributions."""
    return await ComplaintService.get_analytics(db, scope)


@router.get("/{complaint_id}", response_model=ComplaintRead)
async def get_complaint(
    complaint_id: UUID,
    db: AsyncSession = Depends(get_session),
    scope: BranchScope = Depends(get_branch_scope),
):
    complaint = await ComplaintService.get_complaint(db, scope, complaint_id)
    if not complaint:
        raise HTTPException(status_code=404, detail="Complaint not found")
    return complaint


@router.post("", response_model=ComplaintRead, status_code=201)
async def create_complaint(
    data: ComplaintCreate,
    db: AsyncSession = Depends(get_session),
    scope: BranchScope = Depends(get_branch_scope),
):
    """
    Log a complaint.

    - **branch_id**, **branch_name**, **complaint_text**: required
    - **customer_data**: JSON object (a plain string is kept as raw_data)
    """
    try:
        return await ComplaintService.create_complaint(db, scope, data)
    except DomainError as e:
        raise e.to_http()


@router.put("/{complaint_id}", response_model=ComplaintRead)
async def update_complaint(
    complaint_id: UUID,
    data: ComplaintUpdate,
    db: AsyncSession = Depends(get_session),
    scope: BranchScope = Depends(get_branch_scope),
):
    try:
        return await ComplaintService.update_complaint(db, scope, complaint_id, data)
    except DomainError as e:
        raise e.to_http()


@router.delete("/{complaint_id}", status_code=204)
async def delete_complaint(
    complaint_id: UUID,
    db: AsyncSession = Depends(get_session),
    scope: BranchScope = Depends(get_branch_scope),
):
    try:
        await ComplaintService.delete_complaint(db, scope, complaint_id)
    except DomainError as e:
        raise e.to_http()
    return None
