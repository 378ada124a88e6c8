"""
Order data access repository.

This module implements the OrderRepository class providing async methods for
creating orders with items, updating order status, listing orders with
role-scoped filters and pagination, and aggregating order statistics. All
database failures are wrapped in ``OrderRepositoryError`` with structured
context; transaction boundaries belong to the caller.
"""

import uuid
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy import and_, distinct, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.logging import get_logger
from storefront.database.models import Order, OrderItem, Product
from storefront.services.orders.enums import OrderStatus
from storefront.services.orders.pricing import ZERO, to_money

logger = get_logger(__name__)


class OrderRepositoryError(Exception):
    """Base exception for order repository errors."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context


class OrderCreationError(OrderRepositoryError):
    """Raised when order creation fails."""

    pass


def _order_load_options() -> list[Any]:
    return [
        selectinload(Order.items).selectinload(OrderItem.product),
        selectinload(Order.user),
    ]


class OrderRepository:
    """
    Repository for order data access operations.

    Provides async methods for creating, reading, filtering and updating
    orders. Methods flush but never commit.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize order repository.

        Args:
            session: Async database session
        """
        self.session = session

    async def create_order_with_items(
        self,
        user_id: uuid.UUID,
        order_number: str,
        total_amount: Decimal,
        items: Sequence[dict[str, Any]],
    ) -> Order:
        """
        Create a pending order with its line items.

        Args:
            user_id: Customer placing the order
            order_number: Human-readable order number
            total_amount: Order total
            items: Line items with ``product_id``, ``quantity`` and ``price``

        Returns:
            Created order

        Raises:
            OrderCreationError: If the insert fails
        """
        try:
            logger.info(
                "Creating order with items",
                user_id=str(user_id),
                order_number=order_number,
                item_count=len(items),
            )

            order = Order(
                user_id=user_id,
                order_number=order_number,
                status=OrderStatus.PENDING,
                total_amount=total_amount,
            )
            order.items = [
                OrderItem(
                    product_id=item_data["product_id"],
                    quantity=item_data["quantity"],
                    price=item_data["price"],
                )
                for item_data in items
            ]

            self.session.add(order)
            await self.session.flush()

            logger.info(
                "Order created successfully",
                order_id=str(order.id),
                order_number=order_number,
                item_count=len(order.items),
            )

            return order

        except IntegrityError as e:
            logger.error(
                "Order creation failed - integrity error",
                error=str(e),
                order_number=order_number,
            )
            raise OrderCreationError(
                "Order creation failed due to data integrity violation",
                order_number=order_number,
                error=str(e),
            ) from e
        except SQLAlchemyError as e:
            logger.error(
                "Order creation failed - database error",
                error=str(e),
                order_number=order_number,
            )
            raise OrderCreationError(
                "Order creation failed due to database error",
                order_number=order_number,
                error=str(e),
            ) from e

    async def get_order_by_id(self, order_id: uuid.UUID) -> Optional[Order]:
        """
        Get order by ID with items, products and customer loaded.

        Args:
            order_id: Order identifier

        Returns:
            Order if found, None otherwise

        Raises:
            OrderRepositoryError: If query fails
        """
        try:
            logger.debug("Fetching order by ID", order_id=str(order_id))

            stmt = (
                select(Order)
                .where(Order.id == order_id)
                .options(*_order_load_options())
                .execution_options(populate_existing=True)
            )
            result = await self.session.execute(stmt)
            order = result.scalar_one_or_none()

            if order is None:
                logger.debug("Order not found", order_id=str(order_id))

            return order

        except SQLAlchemyError as e:
            logger.error(
                "Failed to fetch order",
                order_id=str(order_id),
                error=str(e),
            )
            raise OrderRepositoryError(
                "Failed to fetch order",
                order_id=str(order_id),
                error=str(e),
            ) from e

    async def get_order_by_number(self, order_number: str) -> Optional[Order]:
        """
        Get order by order number.

        Raises:
            OrderRepositoryError: If query fails
        """
        try:
            stmt = (
                select(Order)
                .where(Order.order_number == order_number)
                .options(*_order_load_options())
            )
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()

        except SQLAlchemyError as e:
            logger.error(
                "Failed to fetch order by number",
                order_number=order_number,
                error=str(e),
            )
            raise OrderRepositoryError(
                "Failed to fetch order by number",
                order_number=order_number,
                error=str(e),
            ) from e

    async def update_status(
        self,
        order_id: uuid.UUID,
        status: OrderStatus,
        expected_statuses: Optional[Iterable[OrderStatus]] = None,
    ) -> bool:
        """
        Persist a new status and bump ``updated_at``.

        With ``expected_statuses`` the UPDATE only matches a row whose stored
        status is one of them, making check and write a single statement.

        Args:
            order_id: Order identifier
            status: New status
            expected_statuses: Statuses the row must currently have

        Returns:
            True if the order row was updated

        Raises:
            OrderRepositoryError: If the update fails
        """
        try:
            conditions = [Order.id == order_id]
            if expected_statuses is not None:
                conditions.append(Order.status.in_(list(expected_statuses)))

            stmt = (
                update(Order)
                .where(and_(*conditions))
                .values(status=status, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
            result = await self.session.execute(stmt)
            updated = result.rowcount > 0

            logger.debug(
                "Order status updated",
                order_id=str(order_id),
                status=status.value,
                updated=updated,
            )
            return updated

        except SQLAlchemyError as e:
            logger.error(
                "Failed to update order status",
                order_id=str(order_id),
                status=status.value,
                error=str(e),
            )
            raise OrderRepositoryError(
                "Failed to update order status",
                order_id=str(order_id),
                error=str(e),
            ) from e

    async def list_orders(
        self,
        user_id: Optional[uuid.UUID] = None,
        vendor_id: Optional[uuid.UUID] = None,
        status: Optional[OrderStatus] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 15,
    ) -> tuple[Sequence[Order], int]:
        """
        List orders newest first with optional filters.

        Args:
            user_id: Only orders placed by this customer
            vendor_id: Only orders containing a product of this vendor
            status: Only orders in this status
            search: Case-insensitive order number substring
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            Tuple of (orders, total_count)

        Raises:
            OrderRepositoryError: If query fails
        """
        try:
            logger.debug(
                "Listing orders",
                user_id=str(user_id) if user_id else None,
                vendor_id=str(vendor_id) if vendor_id else None,
                status=status.value if status else None,
                search=search,
                skip=skip,
                limit=limit,
            )

            conditions = []
            if user_id is not None:
                conditions.append(Order.user_id == user_id)
            if vendor_id is not None:
                vendor_orders = (
                    select(OrderItem.order_id)
                    .join(Product, Product.id == OrderItem.product_id)
                    .where(Product.vendor_id == vendor_id)
                )
                conditions.append(Order.id.in_(vendor_orders))
            if status is not None:
                conditions.append(Order.status == status)
            if search:
                conditions.append(Order.order_number.ilike(f"%{search}%"))

            stmt = (
                select(Order)
                .where(and_(*conditions))
                .options(*_order_load_options())
                .order_by(Order.created_at.desc())
                .offset(skip)
                .limit(limit)
            )
            count_stmt = (
                select(func.count()).select_from(Order).where(and_(*conditions))
            )

            result = await self.session.execute(stmt)
            count_result = await self.session.execute(count_stmt)

            orders = result.scalars().all()
            total_count = count_result.scalar_one()

            logger.debug("Orders listed", count=len(orders), total=total_count)

            return orders, total_count

        except SQLAlchemyError as e:
            logger.error("Failed to list orders", error=str(e))
            raise OrderRepositoryError(
                "Failed to list orders",
                error=str(e),
            ) from e

    async def list_vendor_ids_for_order(self, order_id: uuid.UUID) -> set[uuid.UUID]:
        """
        Get the vendors owning at least one product in the order.

        Raises:
            OrderRepositoryError: If query fails
        """
        try:
            stmt = (
                select(distinct(Product.vendor_id))
                .join(OrderItem, OrderItem.product_id == Product.id)
                .where(OrderItem.order_id == order_id)
            )
            result = await self.session.execute(stmt)
            return set(result.scalars().all())

        except SQLAlchemyError as e:
            logger.error(
                "Failed to list vendors for order",
                order_id=str(order_id),
                error=str(e),
            )
            raise OrderRepositoryError(
                "Failed to list vendors for order",
                order_id=str(order_id),
                error=str(e),
            ) from e

    async def get_order_statistics(self) -> dict[str, Any]:
        """
        Aggregate order counts and revenue.

        Revenue is the sum of totals of orders that were not cancelled.

        Returns:
            Dictionary with ``total_orders``, ``orders_by_status`` and
            ``total_revenue``

        Raises:
            OrderRepositoryError: If query fails
        """
        try:
            status_stmt = select(Order.status, func.count()).group_by(Order.status)
            revenue_stmt = select(
                func.coalesce(func.sum(Order.total_amount), 0)
            ).where(Order.status != OrderStatus.CANCELLED)

            status_result = await self.session.execute(status_stmt)
            revenue_result = await self.session.execute(revenue_stmt)

            orders_by_status = {s.value: 0 for s in OrderStatus}
            for status, count in status_result.all():
                orders_by_status[OrderStatus(status).value] = count

            revenue = revenue_result.scalar_one()

            return {
                "total_orders": sum(orders_by_status.values()),
                "orders_by_status": orders_by_status,
                "total_revenue": to_money(revenue) if revenue is not None else ZERO,
            }

        except SQLAlchemyError as e:
            logger.error("Failed to aggregate order statistics", error=str(e))
            raise OrderRepositoryError(
                "Failed to aggregate order statistics",
                error=str(e),
            ) from e
