"""
Branch scoping for read queries.

Admins see every row, including devices that are not deployed anywhere.
Managers and users see only rows that resolve to their own branch through
device -> deployment -> branch; rows with no resolvable branch are hidden
from them.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db.enums import UserRole
from db.models import Deployment, User

UNASSIGNED_BRANCH_NAME = "Unassigned"


@dataclass(frozen=True)
class BranchScope:
    """Who is asking, and which branch (if any) their results are limited to."""

    user_id: UUID
    role: UserRole
    branch_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def allows_branch(self, branch_id: Optional[int]) -> bool:
        """Whether a row belonging to branch_id is visible in this scope."""
        if self.is_admin:
            return True
        return branch_id is not None and branch_id == self.branch_id


def apply_branch_scope(stmt, scope: BranchScope, branch_column):
    """Restrict a SELECT to the caller's branch unless the caller is an admin."""
    if scope.is_admin:
        return stmt
    return stmt.where(branch_column == scope.branch_id)


async def resolve_user_branch_id(db: AsyncSession, user_id: UUID) -> Optional[int]:
    """Branch a user is deployed to, or None."""
    result = await db.execute(
        select(Deployment.branch_id).where(Deployment.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def build_branch_scope(db: AsyncSession, user: User) -> BranchScope:
    """
    Build the scope for a user.

    Non-admins get branch_id=None when they have no deployment; callers that
    require a branch must reject that case explicitly.
    """
    role = UserRole(user.role)
    if role == UserRole.ADMIN:
        return BranchScope(user_id=user.uuid, role=role)
    branch_id = await resolve_user_branch_id(db, user.uuid)
    return BranchScope(user_id=user.uuid, role=role, branch_id=branch_id)
