"""
Domain exceptions raised by the service layer.

Endpoints translate these into HTTP responses; each carries the status code
it maps to so the translation stays in one place.
"""

from fastapi import HTTPException, status


class DomainError(Exception):
    """Base class for expected, user-facing failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_http(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.message)


class ValidationError(DomainError):
    """A required field is missing or a value is malformed."""


class NotFoundError(DomainError):
    """Exception raised when a resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(DomainError):
    """A uniqueness rule would be violated (duplicate code, MAC, deployment...)."""

    status_code = status.HTTP_400_BAD_REQUEST


class PermissionDeniedError(DomainError):
    """The caller is authenticated but may not perform the operation."""

    status_code = status.HTTP_403_FORBIDDEN
