"""
Branch CRUD for database operations.
"""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from crud.base_repository import BaseCRUD
from db import Branch


class BranchCRUD(BaseCRUD[Branch]):
    """CRUD for Branch database operations."""

    model = Branch
    search_fields = ("branch_name", "branch_code", "branch_city")

    @classmethod
    async def find_by_code(
        cls, db: AsyncSession, branch_code: str, exclude_id: Optional[int] = None
    ) -> Optional[Branch]:
        """Find a branch by its code (case-insensitive), optionally ignoring one id."""
        stmt = select(Branch).where(func.lower(Branch.branch_code) == branch_code.strip().lower())
        if exclude_id is not None:
            stmt = stmt.where(Branch.id != exclude_id)
        result = await db.execute(stmt.limit(1))
        return result.scalar_one_or_none()
