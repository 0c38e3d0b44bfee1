"""
Complaint service.

Complaints belong to a branch directly (branch_id column), so scoping is a
plain filter on that column.
"""
import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.complaint import (
    ComplaintAnalytics,
    ComplaintCreate,
    ComplaintStats,
    ComplaintUpdate,
    DistributionItem,
    MonthlyTrend,
)
from api.services.scoping import BranchScope, apply_branch_scope
from core.decorators import critical_database_operation, transactional_database_operation
from core.exceptions import NotFoundError, PermissionDeniedError
from crud import BranchCRUD, ComplaintCRUD
from db import Complaint, ComplaintPriority, ComplaintStatus, utc_now

logger = logging.getLogger(__name__)

SORT_FIELDS = ("created_on", "timestamp", "priority", "status")
TREND_MONTHS = 6

_priority_rank = case(
    (Complaint.priority == ComplaintPriority.LOW.value, 1),
    (Complaint.priority == ComplaintPriority.MEDIUM.value, 2),
    (Complaint.priority == ComplaintPriority.HIGH.value, 3),
    (Complaint.priority == ComplaintPriority.URGENT.value, 4),
    else_=0,
)


def _month_keys(now: datetime, months: int) -> List[str]:
    """YYYY-MM keys for the last `months` months, oldest first, including now."""
    year, month = now.year, now.month
    keys = []
    for _ in range(months):
        keys.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(keys))


def _distribution(counts: Dict[str, int], names: List[str]) -> List[DistributionItem]:
    total = sum(counts.values())
    return [
        DistributionItem(
            name=name,
            count=counts.get(name, 0),
            percentage=round(counts.get(name, 0) * 100.0 / total, 1) if total else 0.0,
        )
        for name in names
    ]


class ComplaintService:
    """Service for branch complaints."""

    @staticmethod
    def _ensure_branch_allowed(scope: BranchScope, branch_id: int) -> None:
        if not scope.allows_branch(branch_id):
            raise PermissionDeniedError("You can only manage complaints for your own branch")

    @staticmethod
    async def _scoped(db: AsyncSession, scope: BranchScope, complaint_id: UUID) -> Optional[Complaint]:
        complaint = await ComplaintCRUD.find_by_id(db, complaint_id)
        if complaint is None or not scope.allows_branch(complaint.branch_id):
            return None
        return complaint

    @staticmethod
    @critical_database_operation("list complaints")
    async def list_complaints(
        db: AsyncSession,
        scope: BranchScope,
        page: int = 1,
        per_page: int = 20,
        search: Optional[str] = None,
        branch_id: Optional[int] = None,
        status: Optional[ComplaintStatus] = None,
        priority: Optional[ComplaintPriority] = None,
        sort_by: str = "created_on",
        sort_order: str = "desc",
    ) -> Tuple[List[Complaint], int]:
        stmt = apply_branch_scope(select(Complaint), scope, Complaint.branch_id)
        if branch_id is not None:
            stmt = stmt.where(Complaint.branch_id == branch_id)
        if status is not None:
            stmt = stmt.where(Complaint.status == ComplaintStatus(status).value)
        if priority is not None:
            stmt = stmt.where(Complaint.priority == ComplaintPriority(priority).value)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(or_(Complaint.complaint_text.ilike(pattern), Complaint.branch_name.ilike(pattern)))

        total = (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()

        sort_column = _priority_rank if sort_by == "priority" else getattr(Complaint, sort_by)
        stmt = stmt.order_by(sort_column.asc() if sort_order == "asc" else sort_column.desc())
        stmt = stmt.offset((page - 1) * per_page).limit(per_page)
        result = await db.execute(stmt)
        return list(result.scalars().all()), total

    @staticmethod
    @critical_database_operation("get complaint")
    async def get_complaint(db: AsyncSession, scope: BranchScope, complaint_id: UUID) -> Optional[Complaint]:
        return await ComplaintService._scoped(db, scope, complaint_id)

    @staticmethod
    @transactional_database_operation("create complaint")
    async def create_complaint(db: AsyncSession, scope: BranchScope, data: ComplaintCreate) -> Complaint:
        """
        Raises:
            PermissionDeniedError: Non-admin creating for another branch
            NotFoundError: Branch does not exist
        """
        ComplaintService._ensure_branch_allowed(scope, data.branch_id)
        if await BranchCRUD.find_by_id(db, data.branch_id) is None:
            raise NotFoundError("Branch not found")

        values = data.model_dump()
        values["status"] = ComplaintStatus(values["status"]).value
        values["priority"] = ComplaintPriority(values["priority"]).value
        if values.get("timestamp") is None:
            values["timestamp"] = utc_now()

        complaint = await ComplaintCRUD.create(db, obj_in=values, commit=False)
        logger.info(f"Created complaint {complaint.complaint_id} for branch {complaint.branch_id}")
        return complaint

    @staticmethod
    @transactional_database_operation("update complaint")
    async def update_complaint(
        db: AsyncSession, scope: BranchScope, complaint_id: UUID, data: ComplaintUpdate
    ) -> Complaint:
        complaint = await ComplaintService._scoped(db, scope, complaint_id)
        if complaint is None:
            raise NotFoundError("Complaint not found")
        ComplaintService._ensure_branch_allowed(scope, data.branch_id)
        if await BranchCRUD.find_by_id(db, data.branch_id) is None:
            raise NotFoundError("Branch not found")

        values = data.model_dump()
        values["status"] = ComplaintStatus(values["status"]).value
        values["priority"] = ComplaintPriority(values["priority"]).value
        if values.get("timestamp") is None:
            values["timestamp"] = complaint.timestamp
        return await ComplaintCRUD.update(db, db_obj=complaint, obj_in=values, commit=False)

    @staticmethod
    @transactional_database_operation("delete complaint")
    async def delete_complaint(db: AsyncSession, scope: BranchScope, complaint_id: UUID) -> None:
        complaint = await ComplaintService._scoped(db, scope, complaint_id)
        if complaint is None:
            raise NotFoundError("Complaint not found")
        await ComplaintCRUD.delete(db, db_obj=complaint, commit=False)

    @staticmethod
    @critical_database_operation("complaint stats")
    async def get_stats(db: AsyncSession, scope: BranchScope, now: Optional[datetime] = None) -> ComplaintStats:
        now = now or utc_now()
        today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)

        def count_where(condition):
            return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)

        stmt = select(
            func.count(Complaint.complaint_id),
            count_where(Complaint.status == ComplaintStatus.PENDING.value),
            count_where(Complaint.status == ComplaintStatus.IN_PROGRESS.value),
            count_where(Complaint.status == ComplaintStatus.RESOLVED.value),
            count_where(Complaint.status == ComplaintStatus.CLOSED.value),
            count_where(Complaint.priority == ComplaintPriority.URGENT.value),
            count_where(Complaint.created_on >= today_start),
        )
        stmt = apply_branch_scope(stmt, scope, Complaint.branch_id)
        total, pending, in_progress, resolved, closed, urgent, today = (await db.execute(stmt)).one()
        return ComplaintStats(
            total=total,
            pending=pending,
            in_progress=in_progress,
            resolved=resolved,
            closed=closed,
            urgent=urgent,
            today=today,
        )

    @staticmethod
    @critical_database_operation("complaint analytics")
    async def get_analytics(
        db: AsyncSession, scope: BranchScope, now: Optional[datetime] = None
    ) -> ComplaintAnalytics:
        """Monthly trend over the last six months plus priority and status shares."""
        now = now or utc_now()
        months = _month_keys(now, TREND_MONTHS)
        window_start = datetime(int(months[0][:4]), int(months[0][5:]), 1)

        ts_stmt = apply_branch_scope(
            select(Complaint.timestamp).where(Complaint.timestamp >= window_start),
            scope,
            Complaint.branch_id,
        )
        per_month = {key: 0 for key in months}
        for ts in (await db.execute(ts_stmt)).scalars().all():
            key = f"{ts.year:04d}-{ts.month:02d}"
            if key in per_month:
                per_month[key] += 1

        async def grouped(column) -> Dict[str, int]:
            stmt = apply_branch_scope(
                select(column, func.count()).group_by(column), scope, Complaint.branch_id
            )
            return {name: count for name, count in (await db.execute(stmt)).all()}

        return ComplaintAnalytics(
            monthly_trends=[MonthlyTrend(month=key, count=per_month[key]) for key in months],
            priority_distribution=_distribution(
                await grouped(Complaint.priority), [p.value for p in ComplaintPriority]
            ),
            status_distribution=_distribution(
                await grouped(Complaint.status), [s.value for s in ComplaintStatus]
            ),
        )
