"""
Complaint schemas for API validation and serialization.
"""
import json
from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from pydantic import Field, field_validator

from core.schema_base import HTTPSchemaModel, PaginatedResponse
from db.enums import ComplaintPriority, ComplaintStatus


class ComplaintBase(HTTPSchemaModel):
    """Base complaint schema with common fields."""
    branch_id: int
    branch_name: str = Field(..., min_length=1, max_length=150)
    complaint_text: str = Field(..., min_length=1)
    customer_data: Optional[Union[Dict[str, Any], str]] = None
    status: ComplaintStatus = ComplaintStatus.PENDING
    priority: ComplaintPriority = ComplaintPriority.MEDIUM
    timestamp: Optional[datetime] = None

    @field_validator("customer_data")
    @classmethod
    def parse_customer_data(cls, v):
        """Store customer data as an object; unparseable strings are kept as raw_data."""
        if v is None or isinstance(v, dict):
            return v
        try:
            parsed = json.loads(v)
        except (TypeError, ValueError):
            return {"raw_data": v}
        return parsed if isinstance(parsed, dict) else {"raw_data": parsed}

    @field_validator("complaint_text", "branch_name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class ComplaintCreate(ComplaintBase):
    """Schema for creating a complaint."""


class ComplaintUpdate(ComplaintBase):
    """Full replacement of a complaint (PUT)."""


class ComplaintRead(HTTPSchemaModel):
    complaint_id: UUID
    branch_id: int
    branch_name: str
    timestamp: datetime
    customer_data: Optional[Dict[str, Any]] = None
    complaint_text: str
    status: ComplaintStatus
    priority: ComplaintPriority
    created_on: datetime
    updated_on: datetime


class ComplaintStats(HTTPSchemaModel):
    total: int = 0
    pending: int = 0
    in_progress: int = 0
    resolved: int = 0
    closed: int = 0
    urgent: int = 0
    today: int = 0


class MonthlyTrend(HTTPSchemaModel):
    month: str  # YYYY-MM
    count: int


class DistributionItem(HTTPSchemaModel):
    name: str
    count: int
    percentage: float


class ComplaintAnalytics(HTTPSchemaModel):
    monthly_trends: List[MonthlyTrend]
    priority_distribution: List[DistributionItem]
    status_distribution: List[DistributionItem]


ComplaintListResponse = PaginatedResponse[ComplaintRead]
