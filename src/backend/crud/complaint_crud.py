"""
Complaint CRUD for database operations.
"""

from crud.base_repository import BaseCRUD
from db import Complaint


class ComplaintCRUD(BaseCRUD[Complaint]):
    """CRUD for Complaint database operations."""

    model = Complaint
    pk_name = "complaint_id"
    search_fields = ("complaint_text", "branch_name")
