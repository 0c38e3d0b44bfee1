"""
Branch service.
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.branch import BranchCreate, BranchUpdate
from core.decorators import critical_database_operation, transactional_database_operation
from core.exceptions import ConflictError, NotFoundError
from crud import BranchCRUD
from db import Branch

logger = logging.getLogger(__name__)


class BranchService:
    """Service for managing branches."""

    @staticmethod
    @critical_database_operation("list branches")
    async def list_branches(
        db: AsyncSession,
        page: int = 1,
        per_page: int = 20,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Tuple[List[Branch], int]:
        return await BranchCRUD.find_paginated(
            db,
            page=page,
            per_page=per_page,
            filters={"is_active": is_active},
            search=search,
            order_by=Branch.branch_name,
        )

    @staticmethod
    @critical_database_operation("get branch")
    async def get_branch(db: AsyncSession, branch_id: int) -> Optional[Branch]:
        return await BranchCRUD.find_by_id(db, branch_id)

    @staticmethod
    @transactional_database_operation("create branch")
    async def create_branch(db: AsyncSession, branch_data: BranchCreate) -> Branch:
        """
        Create a branch.

        Raises:
            ConflictError: Branch code already exists
        """
        if await BranchCRUD.find_by_code(db, branch_data.branch_code):
            raise ConflictError("Branch code already exists")
        try:
            branch = await BranchCRUD.create(db, obj_in=branch_data.model_dump(), commit=False)
        except IntegrityError:
            raise ConflictError("Branch code already exists")

        logger.info(f"Created branch {branch.branch_code} - {branch.branch_name}")
        return branch

    @staticmethod
    @transactional_database_operation("update branch")
    async def update_branch(db: AsyncSession, branch_id: int, update_data: BranchUpdate) -> Branch:
        branch = await BranchCRUD.find_by_id(db, branch_id)
        if branch is None:
            raise NotFoundError("Branch not found")
        if await BranchCRUD.find_by_code(db, update_data.branch_code, exclude_id=branch_id):
            raise ConflictError("Branch code already exists")
        try:
            return await BranchCRUD.update(db, db_obj=branch, obj_in=update_data.model_dump(), commit=False)
        except IntegrityError:
            raise ConflictError("Branch code already exists")

    @staticmethod
    @transactional_database_operation("delete branch")
    async def delete_branch(db: AsyncSession, branch_id: int) -> None:
        """Deactivate a branch; deployments pointing at it are kept."""
        branch = await BranchCRUD.find_by_id(db, branch_id)
        if branch is None:
            raise NotFoundError("Branch not found")
        await BranchCRUD.update(db, db_obj=branch, obj_in={"is_active": False}, commit=False)
        logger.info(f"Deactivated branch {branch.branch_code}")
