"""
Base schema model for API requests and responses.

Responses use camelCase field names for the dashboard front end, requests
accept either snake_case (what devices and scripts send) or camelCase, and
datetimes are always serialized as UTC with a 'Z' suffix.
"""

from datetime import datetime, timezone
from typing import Any, Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict, field_serializer


def to_camel(string: str) -> str:
    """
    Convert snake_case to camelCase.

    Example:
        >>> to_camel("branch_code")
        'branchCode'
    """
    head, *tail = string.split("_")
    return head + "".join(word.capitalize() for word in tail)


def serialize_datetime(dt: datetime | None) -> str | None:
    """
    Serialize a datetime as ISO 8601 UTC with a 'Z' suffix.

    Naive values are assumed to already be UTC (that is how they are stored).
    """
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.isoformat() + "Z"


class HTTPSchemaModel(BaseModel):
    """
    Base model for all HTTP API schemas.

    - camelCase aliases on output, snake_case or camelCase on input
    - builds from ORM rows (from_attributes=True)
    - datetimes serialized with a 'Z' suffix
    """

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @field_serializer("*", mode="wrap")
    @classmethod
    def serialize_any_datetime(cls, value: Any, handler: Any) -> Any:
        if isinstance(value, datetime):
            return serialize_datetime(value)
        return handler(value)


ItemT = TypeVar("ItemT")


class PaginatedResponse(HTTPSchemaModel, Generic[ItemT]):
    """Page of results with the total row count before pagination."""

    items: List[ItemT]
    total: int
    page: int
    limit: int


class MessageResponse(HTTPSchemaModel):
    """Plain acknowledgement."""

    success: bool = True
    message: str
