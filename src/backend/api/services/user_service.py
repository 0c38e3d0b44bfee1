"""
User account service.

The user's branch is not a column: it comes from the user's deployment row,
so every read joins through link_device_branch_user.
"""
import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.user import UserCreate, UserRead, UserUpdate
from core.decorators import critical_database_operation, transactional_database_operation
from core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from core.security import hash_password, password_strength_errors
from crud import UserCRUD
from db import Branch, Deployment, User, UserRole

logger = logging.getLogger(__name__)


def _user_query():
    return (
        select(User, Branch.id, Branch.branch_name, Branch.branch_city)
        .outerjoin(Deployment, Deployment.user_id == User.uuid)
        .outerjoin(Branch, Branch.id == Deployment.branch_id)
    )


def _user_read(user: User, branch_id, branch_name, branch_city) -> UserRead:
    return UserRead(
        **user.model_dump(exclude={"password_hash"}),
        branch_id=branch_id,
        branch_name=branch_name,
        branch_city=branch_city,
    )


def _check_password(password: str) -> None:
    errors = password_strength_errors(password)
    if errors:
        raise ValidationError(errors[0])


class UserService:
    """Service for dashboard user accounts."""

    @staticmethod
    @critical_database_operation("list users")
    async def list_users(
        db: AsyncSession,
        page: int = 1,
        per_page: int = 20,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
    ) -> Tuple[List[UserRead], int]:
        stmt = _user_query()
        if role is not None:
            stmt = stmt.where(User.role == UserRole(role).value)
        if is_active is not None:
            stmt = stmt.where(User.is_active.is_(is_active))
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(
                or_(User.emp_name.ilike(pattern), User.username.ilike(pattern), User.email_id.ilike(pattern))
            )

        total = (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()
        stmt = stmt.order_by(User.username).offset((page - 1) * per_page).limit(per_page)
        rows = (await db.execute(stmt)).all()
        return [_user_read(*row) for row in rows], total

    @staticmethod
    @critical_database_operation("get user")
    async def get_user(db: AsyncSession, user_id: UUID) -> Optional[UserRead]:
        row = (await db.execute(_user_query().where(User.uuid == user_id))).first()
        return _user_read(*row) if row is not None else None

    @staticmethod
    @transactional_database_operation("create user")
    async def create_user(db: AsyncSession, user_data: UserCreate) -> User:
        """
        Create a user with a bcrypt-hashed password.

        Raises:
            ConflictError: Username already exists
            ValidationError: Password too weak
        """
        if await UserCRUD.find_by_username(db, user_data.username):
            raise ConflictError("Username already exists")
        _check_password(user_data.password)

        data = user_data.model_dump(exclude={"password"})
        data["role"] = UserRole(data["role"]).value
        data["password_hash"] = hash_password(user_data.password)
        try:
            user = await UserCRUD.create(db, obj_in=data, commit=False)
        except IntegrityError:
            raise ConflictError("Username already exists")

        logger.info(f"Created user {user.username} ({user.role})")
        return user

    @staticmethod
    @transactional_database_operation("update user")
    async def update_user(db: AsyncSession, user_id: UUID, update_data: UserUpdate) -> User:
        user = await UserCRUD.find_by_id(db, user_id)
        if user is None:
            raise NotFoundError("User not found")

        existing = await UserCRUD.find_by_username(db, update_data.username)
        if existing is not None and existing.uuid != user_id:
            raise ConflictError("Username already exists")

        data = update_data.model_dump(exclude={"password"})
        data["role"] = UserRole(data["role"]).value
        if update_data.password:
            _check_password(update_data.password)
            data["password_hash"] = hash_password(update_data.password)

        try:
            return await UserCRUD.update(db, db_obj=user, obj_in=data, commit=False)
        except IntegrityError:
            raise ConflictError("Username already exists")

    @staticmethod
    @transactional_database_operation("delete user")
    async def delete_user(db: AsyncSession, user_id: UUID, current_user: User) -> None:
        """
        Deactivate a user.

        Raises:
            NotFoundError: User does not exist
            PermissionDeniedError: Caller tried to deactivate themselves
        """
        if user_id == current_user.uuid:
            raise PermissionDeniedError("You cannot delete your own account")
        user = await UserCRUD.find_by_id(db, user_id)
        if user is None:
            raise NotFoundError("User not found")
        await UserCRUD.update(db, db_obj=user, obj_in={"is_active": False}, commit=False)
        logger.info(f"Deactivated user {user.username}")
