"""
Contact endpoints: authenticated reads, admin writes.
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.contact import ContactCreate, ContactListResponse, ContactRead, ContactUpdate
from api.services.contact_service import ContactService
from core.config import settings
from core.database import get_session
from core.dependencies import get_current_user, require_admin
from core.exceptions import DomainError
from db import User

router = APIRouter()


@router.get("", response_model=ContactListResponse)
async def list_contacts(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.pagination.default_page_size, ge=1, le=settings.pagination.max_page_size),
    search: Optional[str] = Query(None, description="Search name, CNIC or phone"),
    branch_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    items, total = await ContactService.list_contacts(
        db, page=page, per_page=limit, search=search, branch_id=branch_id
    )
    return ContactListResponse(items=items, total=total, page=page, limit=limit)


@router.get("/{contact_id}", response_model=ContactRead)
async def get_contact(
    contact_id: UUID,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    contact = await ContactService.get_contact(db, contact_id)
    if not contact:
        raise HTTPException(status_code=404, detail="Contact not found")
    return contact


@router.post("", response_model=ContactRead, status_code=201)
async def create_contact(
    data: ContactCreate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    try:
        return await ContactService.create_contact(db, data)
    except DomainError as e:
        raise e.to_http()


@router.put("/{contact_id}", response_model=ContactRead)
async def update_contact(
    contact_id: UUID,
    data: ContactUpdate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    try:
        return await ContactService.update_contact(db, contact_id, data)
    except DomainError as e:
        raise e.to_http()


@router.delete("/{contact_id}", status_code=204)
async def delete_contact(
    contact_id: UUID,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    try:
        await ContactService.delete_contact(db, contact_id)
    except DomainError as e:
        raise e.to_http()
    return None
