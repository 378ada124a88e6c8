"""
Product repository for the inventory store.

Stock is only ever changed with single conditional UPDATE statements so two
concurrent orders can never both take the last unit.
"""

import uuid
from typing import Any, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.logging import get_logger
from storefront.database.models import Product

logger = get_logger(__name__)


class ProductRepositoryError(Exception):
    """Raised when a product query fails at the database level."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context


class ProductRepository:
    """Repository for product reads and stock adjustments."""

    def __init__(self, session: AsyncSession):
        """
        Initialize product repository.

        Args:
            session: Async database session
        """
        self.session = session

    async def get_product_by_id(self, product_id: uuid.UUID) -> Optional[Product]:
        """
        Get product by ID.

        Args:
            product_id: Product identifier

        Returns:
            Product if found, None otherwise

        Raises:
            ProductRepositoryError: If query fails
        """
        try:
            result = await self.session.execute(
                select(Product).where(Product.id == product_id)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(
                "Failed to fetch product",
                product_id=str(product_id),
                error=str(e),
            )
            raise ProductRepositoryError(
                "Failed to fetch product",
                product_id=str(product_id),
                error=str(e),
            ) from e

    async def decrement_stock(self, product_id: uuid.UUID, quantity: int) -> bool:
        """
        Atomically take ``quantity`` units from stock.

        The update only matches while enough stock remains, so the check and
        the write happen in one statement.

        Args:
            product_id: Product identifier
            quantity: Units to remove, positive

        Returns:
            True if stock was decremented, False if it was insufficient

        Raises:
            ProductRepositoryError: If the update fails
        """
        stmt = (
            update(Product)
            .where(
                Product.id == product_id,
                Product.stock_quantity >= quantity,
            )
            .values(stock_quantity=Product.stock_quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(
                "Failed to decrement stock",
                product_id=str(product_id),
                quantity=quantity,
                error=str(e),
            )
            raise ProductRepositoryError(
                "Failed to decrement stock",
                product_id=str(product_id),
                error=str(e),
            ) from e

        decremented = result.rowcount > 0
        logger.debug(
            "Stock decrement attempted",
            product_id=str(product_id),
            quantity=quantity,
            decremented=decremented,
        )
        return decremented

    async def increment_stock(self, product_id: uuid.UUID, quantity: int) -> bool:
        """
        Return ``quantity`` units to stock.

        Returns:
            True if the product row was updated

        Raises:
            ProductRepositoryError: If the update fails
        """
        stmt = (
            update(Product)
            .where(Product.id == product_id)
            .values(stock_quantity=Product.stock_quantity + quantity)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(
                "Failed to increment stock",
                product_id=str(product_id),
                quantity=quantity,
                error=str(e),
            )
            raise ProductRepositoryError(
                "Failed to increment stock",
                product_id=str(product_id),
                error=str(e),
            ) from e

        logger.debug(
            "Stock restored",
            product_id=str(product_id),
            quantity=quantity,
        )
        return result.rowcount > 0

    async def count_products(self) -> int:
        """Count all products."""
        try:
            result = await self.session.execute(
                select(func.count()).select_from(Product)
            )
            return result.scalar_one()
        except SQLAlchemyError as e:
            logger.error("Failed to count products", error=str(e))
            raise ProductRepositoryError(
                "Failed to count products",
                error=str(e),
            ) from e
