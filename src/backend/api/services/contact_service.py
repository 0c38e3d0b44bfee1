"""
Contact service.
"""
import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.contact import ContactCreate, ContactUpdate
from core.decorators import critical_database_operation, transactional_database_operation
from core.exceptions import NotFoundError
from crud import BranchCRUD, ContactCRUD
from db import Contact

logger = logging.getLogger(__name__)


class ContactService:
    """Service for branch staff contacts."""

    @staticmethod
    @critical_database_operation("list contacts")
    async def list_contacts(
        db: AsyncSession,
        page: int = 1,
        per_page: int = 20,
        search: Optional[str] = None,
        branch_id: Optional[int] = None,
    ) -> Tuple[List[Contact], int]:
        return await ContactCRUD.find_paginated(
            db,
            page=page,
            per_page=per_page,
            filters={"branch_id": branch_id},
            search=search,
            order_by=Contact.emp_name,
        )

    @staticmethod
    @critical_database_operation("get contact")
    async def get_contact(db: AsyncSession, contact_id: UUID) -> Optional[Contact]:
        return await ContactCRUD.find_by_id(db, contact_id)

    @staticmethod
    @transactional_database_operation("create contact")
    async def create_contact(db: AsyncSession, data: ContactCreate) -> Contact:
        if await BranchCRUD.find_by_id(db, data.branch_id) is None:
            raise NotFoundError("Branch not found")
        contact = await ContactCRUD.create(db, obj_in=data.model_dump(), commit=False)
        logger.info(f"Created contact {contact.emp_name} ({contact.uuid})")
        return contact

    @staticmethod
    @transactional_database_operation("update contact")
    async def update_contact(db: AsyncSession, contact_id: UUID, data: ContactUpdate) -> Contact:
        contact = await ContactCRUD.find_by_id(db, contact_id)
        if contact is None:
            raise NotFoundError("Contact not found")
        if await BranchCRUD.find_by_id(db, data.branch_id) is None:
            raise NotFoundError("Branch not found")
        return await ContactCRUD.update(db, db_obj=contact, obj_in=data.model_dump(), commit=False)

    @staticmethod
    @transactional_database_operation("delete contact")
    async def delete_contact(db: AsyncSession, contact_id: UUID) -> None:
        contact = await ContactCRUD.find_by_id(db, contact_id)
        if contact is None:
            raise NotFoundError("Contact not found")
        await ContactCRUD.delete(db, db_obj=contact, commit=False)
