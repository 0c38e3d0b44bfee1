"""
Deployment endpoints (admin only).

A deployment links one device, one branch and one user; each can take part
in at most one deployment at a time.
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.deployment import DeploymentCreate, DeploymentRead, DeploymentUpdate
from api.services.deployment_service import DeploymentService
from core.config import settings
from core.database import get_session
from core.dependencies import require_admin
from core.exceptions import DomainError
from core.schema_base import PaginatedResponse
from db import User

router = APIRouter()


@router.get("", response_model=PaginatedResponse[DeploymentRead])
async def list_deployments(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.pagination.default_page_size, ge=1, le=settings.pagination.max_page_size),
    branch_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    items, total = await DeploymentService.list_deployments(
        db, page=page, per_page=limit, branch_id=branch_id
    )
    return PaginatedResponse[DeploymentRead](items=items, total=total, page=page, limit=limit)


@router.get("/{deployment_id}", response_model=DeploymentRead)
async def get_deployment(
    deployment_id: UUID,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    deployment = await DeploymentService.get_deployment(db, deployment_id)
    if not deployment:
        raise HTTPException(status_code=404, detail="Deployment not found")
    return deployment


@router.post("", response_model=DeploymentRead, status_code=201)
async def create_deployment(
    data: DeploymentCreate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    """
    Deploy a device to a branch with its responsible user.

    - **device_id**: Device to deploy
    - **branch_id**: Target branch
    - **user_id**: Responsible user
    """
    try:
        return await DeploymentService.create_deployment(db, data)
    except DomainError as e:
        raise e.to_http()


@router.put("/{deployment_id}", response_model=DeploymentRead)
async def update_deployment(
    deployment_id: UUID,
    data: DeploymentUpdate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    try:
        return await DeploymentService.update_deployment(db, deployment_id, data)
    except DomainError as e:
        raise e.to_http()


@router.delete("/{deployment_id}", status_code=204)
async def delete_deployment(
    deployment_id: UUID,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    try:
        await DeploymentService.delete_deployment(db, deployment_id)
    except DomainError as e:
        raise e.to_http()
    return None
