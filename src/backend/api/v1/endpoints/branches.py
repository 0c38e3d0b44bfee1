"""
Branch endpoints.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.branch import BranchCreate, BranchListResponse, BranchRead, BranchUpdate
from api.services.branch_service import BranchService
from core.config import settings
from core.database import get_session
from core.dependencies import get_current_user, require_admin
from core.exceptions import DomainError
from db import User

router = APIRouter()


@router.get("", response_model=BranchListResponse)
async def list_branches(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.pagination.default_page_size, ge=1, le=settings.pagination.max_page_size),
    search: Optional[str] = Query(None, description="Search name, code or city"),
    is_active: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    items, total = await BranchService.list_branches(
        db, page=page, per_page=limit, search=search, is_active=is_active
    )
    return BranchListResponse(items=items, total=total, page=page, limit=limit)


@router.get("/{branch_id}", response_model=BranchRead)
async def get_branch(
    branch_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    branch = await BranchService.get_branch(db, branch_id)
    if not branch:
        raise HTTPException(status_code=404, detail="Branch not found")
    return branch


@router.post("", response_model=BranchRead, status_code=201)
async def create_branch(
    branch_data: BranchCreate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    """
    Create a branch (admin only).

    - **branch_code**: Unique branch code
    - **branch_name**: Display name
    """
    try:
        return await BranchService.create_branch(db, branch_data)
    except DomainError as e:
        raise e.to_http()


@router.put("/{branch_id}", response_model=BranchRead)
async def update_branch(
    branch_id: int,
    update_data: BranchUpdate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    try:
        return await BranchService.update_branch(db, branch_id, update_data)
    except DomainError as e:
        raise e.to_http()


@router.delete("/{branch_id}", status_code=204)
async def delete_branch(
    branch_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    """Deactivate a branch (admin only)."""
    try:
        await BranchService.delete_branch(db, branch_id)
    except DomainError as e:
        raise e.to_http()
    return None
