"""
Base CRUD with generic CRUD operations.

Provides reusable database operations that can be inherited by specific
repositories. Subclasses set `model` and, when the primary key is not
called `id`, `pk_name`.
"""
from typing import Any, Dict, Generic, List, Optional, Sequence, Tuple, Type, TypeVar

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from db.models import utc_now

# Type variable for the model class
ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseCRUD(Generic[ModelType]):
    """
    Generic repository providing common CRUD operations.

    Usage:
        class BranchCRUD(BaseCRUD[Branch]):
            model = Branch
            search_fields = ("branch_name", "branch_code")
    """

    model: Type[ModelType] = None
    pk_name: str = "id"
    search_fields: Sequence[str] = ()

    @classmethod
    def _pk(cls):
        return getattr(cls.model, cls.pk_name)

    @classmethod
    def _filtered(cls, stmt, filters: Optional[Dict[str, Any]], search: Optional[str]):
        if filters:
            for field, value in filters.items():
                if value is not None:
                    stmt = stmt.where(getattr(cls.model, field) == value)
        if search and cls.search_fields:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(
                or_(*(getattr(cls.model, field).ilike(pattern) for field in cls.search_fields))
            )
        return stmt

    @classmethod
    async def find_by_id(cls, db: AsyncSession, id_value: Any) -> Optional[ModelType]:
        """Find a single record by primary key."""
        result = await db.execute(select(cls.model).where(cls._pk() == id_value))
        return result.scalar_one_or_none()

    @classmethod
    async def find_one(
        cls,
        db: AsyncSession,
        *,
        filters: Dict[str, Any],
        exclude_id: Any = None,
    ) -> Optional[ModelType]:
        """
        Find a single record matching filters.

        Args:
            exclude_id: Primary key to leave out (used for uniqueness checks on update)
        """
        stmt = cls._filtered(select(cls.model), filters, None)
        if exclude_id is not None:
            stmt = stmt.where(cls._pk() != exclude_id)
        result = await db.execute(stmt.limit(1))
        return result.scalar_one_or_none()

    @classmethod
    async def find_paginated(
        cls,
        db: AsyncSession,
        *,
        page: int = 1,
        per_page: int = 20,
        filters: Optional[Dict[str, Any]] = None,
        search: Optional[str] = None,
        order_by: Optional[Any] = None,
    ) -> Tuple[List[ModelType], int]:
        """
        Find records with pagination and total count.

        Returns:
            Tuple of (list of records, total count)
        """
        stmt = cls._filtered(select(cls.model), filters, search)
        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await db.execute(count_stmt)).scalar_one()

        if order_by is not None:
            stmt = stmt.order_by(order_by)

        stmt = stmt.offset((page - 1) * per_page).limit(per_page)
        result = await db.execute(stmt)
        return list(result.scalars().all()), total

    @classmethod
    async def create(
        cls,
        db: AsyncSession,
        *,
        obj_in: Dict[str, Any],
        commit: bool = True
    ) -> ModelType:
        """Create a new record."""
        db_obj = cls.model(**obj_in)
        db.add(db_obj)
        if commit:
            await db.commit()
            await db.refresh(db_obj)
        else:
            await db.flush()
        return db_obj

    @classmethod
    async def update(
        cls,
        db: AsyncSession,
        *,
        db_obj: ModelType,
        obj_in: Dict[str, Any],
        commit: bool = True
    ) -> ModelType:
        """
        Overwrite the given fields on an existing record.

        PUT semantics: callers pass every writable field, so fields set to
        None are written as NULL.
        """
        for field, value in obj_in.items():
            setattr(db_obj, field, value)
        if hasattr(db_obj, "updated_on"):
            db_obj.updated_on = utc_now()
        db.add(db_obj)
        if commit:
            await db.commit()
            await db.refresh(db_obj)
        else:
            await db.flush()
        return db_obj

    @classmethod
    async def delete(cls, db: AsyncSession, *, db_obj: ModelType, commit: bool = True) -> None:
        """Hard delete a record."""
        await db.delete(db_obj)
        if commit:
            await db.commit()
        else:
            await db.flush()
