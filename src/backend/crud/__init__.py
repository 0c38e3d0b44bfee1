"""
CRUD layer for database operations.

Data access only; business rules (uniqueness messages, scoping, deployment
checks) live in api.services.
"""

from .base_repository import BaseCRUD
from .branch_crud import BranchCRUD
from .complaint_crud import ComplaintCRUD
from .contact_crud import ContactCRUD
from .device_crud import DeviceCRUD
from .user_crud import UserCRUD

__all__ = [
    "BaseCRUD",
    "BranchCRUD",
    "ComplaintCRUD",
    "ContactCRUD",
    "DeviceCRUD",
    "UserCRUD",
]
