"""
Deployment (device <-> branch <-> user) schemas.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from api.schemas.branch import BranchSummary
from api.schemas.device import DeviceSummary
from api.schemas.user import UserSummary
from core.schema_base import HTTPSchemaModel


class DeploymentCreate(HTTPSchemaModel):
    device_id: int
    branch_id: int
    user_id: UUID


class DeploymentUpdate(DeploymentCreate):
    """Full replacement of a deployment's three links."""


class DeploymentRead(HTTPSchemaModel):
    uuid: UUID
    device_id: int
    branch_id: int
    user_id: UUID
    device: Optional[DeviceSummary] = None
    branch: Optional[BranchSummary] = None
    user: Optional[UserSummary] = None
    created_on: datetime
    updated_on: datetime
