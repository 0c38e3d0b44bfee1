"""
Deployment linkage service.

A deployment ties exactly one device, one branch and one user together.
Each side may appear in at most one deployment; the checks below give the
readable error and the unique constraints on link_device_branch_user settle
any race between concurrent writers.
"""
import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.deployment import DeploymentCreate, DeploymentUpdate
from core.decorators import (
    critical_database_operation,
    log_database_operation,
    transactional_database_operation,
)
from core.exceptions import ConflictError, NotFoundError
from core.metrics import deployment_conflicts
from crud import BranchCRUD, DeviceCRUD, UserCRUD
from db import Deployment, utc_now

logger = logging.getLogger(__name__)

DEVICE_CONFLICT = "Device is already deployed to another branch"
BRANCH_CONFLICT = "Branch already has a device assigned"
USER_CONFLICT = "User is already assigned to another deployment"


class DeploymentService:
    """Service for device/branch/user deployments."""

    @staticmethod
    async def _check_links(
        db: AsyncSession,
        data: DeploymentCreate,
        exclude_uuid: Optional[UUID] = None,
    ) -> None:
        """Existence checks first (404), then one-deployment-per-side checks (400)."""
        if await DeviceCRUD.find_by_id(db, data.device_id) is None:
            raise NotFoundError("Device not found")
        if await BranchCRUD.find_by_id(db, data.branch_id) is None:
            raise NotFoundError("Branch not found")
        if await UserCRUD.find_by_id(db, data.user_id) is None:
            raise NotFoundError("User not found")

        for field, value, message in (
            ("device_id", data.device_id, DEVICE_CONFLICT),
            ("branch_id", data.branch_id, BRANCH_CONFLICT),
            ("user_id", data.user_id, USER_CONFLICT),
        ):
            stmt = select(Deployment.uuid).where(getattr(Deployment, field) == value)
            if exclude_uuid is not None:
                stmt = stmt.where(Deployment.uuid != exclude_uuid)
            if (await db.execute(stmt.limit(1))).first() is not None:
                deployment_conflicts.labels(field=field).inc()
                raise ConflictError(message)

    @staticmethod
    def _conflict_from_integrity(exc: IntegrityError) -> ConflictError:
        """Map a lost race on a unique constraint to the matching message."""
        text = str(exc.orig).lower()
        for field, message in (
            ("device_id", DEVICE_CONFLICT),
            ("branch_id", BRANCH_CONFLICT),
            ("user_id", USER_CONFLICT),
        ):
            if field in text:
                deployment_conflicts.labels(field=field).inc()
                return ConflictError(message)
        deployment_conflicts.labels(field="unknown").inc()
        return ConflictError("Deployment conflicts with an existing deployment")

    @staticmethod
    @critical_database_operation("list deployments")
    async def list_deployments(
        db: AsyncSession,
        page: int = 1,
        per_page: int = 20,
        branch_id: Optional[int] = None,
    ) -> Tuple[List[Deployment], int]:
        stmt = select(Deployment)
        if branch_id is not None:
            stmt = stmt.where(Deployment.branch_id == branch_id)

        total = (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()
        stmt = stmt.order_by(Deployment.created_on.desc()).offset((page - 1) * per_page).limit(per_page)
        result = await db.execute(stmt)
        return list(result.scalars().all()), total

    @staticmethod
    @critical_database_operation("get deployment")
    async def get_deployment(db: AsyncSession, deployment_uuid: UUID) -> Optional[Deployment]:
        result = await db.execute(select(Deployment).where(Deployment.uuid == deployment_uuid))
        return result.scalar_one_or_none()

    @staticmethod
    @transactional_database_operation("create deployment")
    @log_database_operation("deployment creation", level="info")
    async def create_deployment(db: AsyncSession, data: DeploymentCreate) -> Deployment:
        """
        Link a device, a branch and a user.

        Raises:
            NotFoundError: Device, branch or user does not exist
            ConflictError: Any of the three is already deployed
        """
        await DeploymentService._check_links(db, data)

        deployment = Deployment(
            device_id=data.device_id,
            branch_id=data.branch_id,
            user_id=data.user_id,
        )
        db.add(deployment)
        try:
            await db.flush()
        except IntegrityError as e:
            await db.rollback()
            raise DeploymentService._conflict_from_integrity(e)

        await db.refresh(deployment, attribute_names=["device", "branch", "user"])
        return deployment

    @staticmethod
    @transactional_database_operation("update deployment")
    async def update_deployment(
        db: AsyncSession, deployment_uuid: UUID, data: DeploymentUpdate
    ) -> Deployment:
        """
        Replace all three links of a deployment.

        Raises:
            NotFoundError: Deployment, device, branch or user does not exist
            ConflictError: A new link is already used by another deployment
        """
        deployment = await DeploymentService.get_deployment(db, deployment_uuid)
        if deployment is None:
            raise NotFoundError("Deployment not found")

        await DeploymentService._check_links(db, data, exclude_uuid=deployment_uuid)

        deployment.device_id = data.device_id
        deployment.branch_id = data.branch_id
        deployment.user_id = data.user_id
        deployment.updated_on = utc_now()
        try:
            await db.flush()
        except IntegrityError as e:
            await db.rollback()
            raise DeploymentService._conflict_from_integrity(e)

        # Reload relationships for the new links
        await db.refresh(deployment, attribute_names=["device", "branch", "user"])
        return deployment

    @staticmethod
    @transactional_database_operation("delete deployment")
    async def delete_deployment(db: AsyncSession, deployment_uuid: UUID) -> None:
        """
        Hard delete a deployment; the device, branch and user are untouched.

        Raises:
            NotFoundError: Deployment does not exist
        """
        deployment = await DeploymentService.get_deployment(db, deployment_uuid)
        if deployment is None:
            raise NotFoundError("Deployment not found")
        await db.delete(deployment)
        logger.info(
            f"Deleted deployment {deployment_uuid} "
            f"(device={deployment.device_id}, branch={deployment.branch_id})"
        )
