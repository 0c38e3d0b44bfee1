"""
User management endpoints (admin only).
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.user import UserCreate, UserListResponse, UserRead, UserUpdate
from api.services.user_service import UserService
from core.config import settings
from core.database import get_session
from core.dependencies import require_admin
from core.exceptions import DomainError
from db import User, UserRole

router = APIRouter()


@router.get("", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.pagination.default_page_size, ge=1, le=settings.pagination.max_page_size),
    search: Optional[str] = Query(None, description="Search name, username or email"),
    role: Optional[UserRole] = Query(None),
    is_active: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    items, total = await UserService.list_users(
        db, page=page, per_page=limit, search=search, role=role, is_active=is_active
    )
    return UserListResponse(items=items, total=total, page=page, limit=limit)


@router.get("/{user_id}", response_model=UserRead)
async def get_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    user = await UserService.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.post("", response_model=UserRead, status_code=201)
async def create_user(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    """
    Create a user (admin only).

    - **username**: Unique login name
    - **password**: At least 8 characters with upper, lower case and a digit
    - **role**: admin, manager or user
    """
    try:
        user = await UserService.create_user(db, user_data)
    except DomainError as e:
        raise e.to_http()
    return await UserService.get_user(db, user.uuid)


@router.put("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: UUID,
    update_data: UserUpdate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    """Overwrite a user's profile; the password changes only when provided."""
    try:
        await UserService.update_user(db, user_id, update_data)
    except DomainError as e:
        raise e.to_http()
    return await UserService.get_user(db, user_id)


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    """Deactivate a user (admin only). Admins cannot deactivate themselves."""
    try:
        await UserService.delete_user(db, user_id, current_user)
    except DomainError as e:
        raise e.to_http()
    return None
