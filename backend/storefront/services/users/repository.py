"""
User repository for account lookups and role counts.
"""

import uuid
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.logging import get_logger
from storefront.database.models import User, UserRole

logger = get_logger(__name__)


class UserRepositoryError(Exception):
    """Raised when a user query fails at the database level."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context


class UserRepository:
    """Repository for user reads."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        """
        Get user by ID.

        Raises:
            UserRepositoryError: If query fails
        """
        try:
            result = await self.session.execute(select(User).where(User.id == user_id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Failed to fetch user", user_id=str(user_id), error=str(e))
            raise UserRepositoryError(
                "Failed to fetch user",
                user_id=str(user_id),
                error=str(e),
            ) from e

    async def count_by_role(self, role: Optional[UserRole] = None) -> int:
        """
        Count users, optionally restricted to one role.

        Args:
            role: Role to count, or None for every user

        Raises:
            UserRepositoryError: If query fails
        """
        stmt = select(func.count()).select_from(User)
        if role is not None:
            stmt = stmt.where(User.role == role)
        try:
            result = await self.session.execute(stmt)
            return result.scalar_one()
        except SQLAlchemyError as e:
            logger.error(
                "Failed to count users",
                role=role.value if role else None,
                error=str(e),
            )
            raise UserRepositoryError(
                "Failed to count users",
                error=str(e),
            ) from e
