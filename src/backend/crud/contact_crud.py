"""
Contact CRUD for database operations.
"""

from crud.base_repository import BaseCRUD
from db import Contact


class ContactCRUD(BaseCRUD[Contact]):
    """CRUD for Contact database operations."""

    model = Contact
    pk_name = "uuid"
    search_fields = ("emp_name", "cnic", "phone_no")
