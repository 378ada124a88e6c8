"""
Order service orchestrating the order workflow.

This module implements the OrderService class which validates order requests,
prices them with exact decimal arithmetic, reserves stock and persists orders
in one atomic unit, and drives status changes and cancellations through the
state machine and the access policy.
"""

import uuid
from typing import Any, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.logging import get_logger, log_performance
from storefront.database.models import Order
from storefront.services.orders.enums import CANCELLABLE_STATUSES, OrderStatus
from storefront.services.orders.exceptions import (
    InsufficientStockError,
    InvalidOrderStateError,
    OrderAccessDeniedError,
    OrderNotFoundError,
    OrderValidationError,
    ProductNotFoundError,
    ProductUnavailableError,
)
from storefront.services.orders.policy import (
    Actor,
    OrderAccessContext,
    OrderAccessPolicy,
)
from storefront.services.orders.pricing import (
    calculate_line_subtotal,
    sum_money,
    to_money,
)
from storefront.services.orders.repository import OrderRepository
from storefront.services.orders.state_machine import OrderStateMachine
from storefront.services.products.repository import ProductRepository

logger = get_logger(__name__)

MAX_PER_PAGE = 100


class OrderService:
    """
    Order service orchestrating the order workflow.

    Attributes:
        session: Request-scoped async session
        repository: Order store
        product_repository: Inventory store
        state_machine: Status transition rules
        policy: View and modify authorization
    """

    def __init__(
        self,
        session: AsyncSession,
        order_repository: Optional[OrderRepository] = None,
        product_repository: Optional[ProductRepository] = None,
        state_machine: Optional[OrderStateMachine] = None,
        policy: Optional[OrderAccessPolicy] = None,
    ):
        """
        Initialize order service.

        Args:
            session: Async database session
            order_repository: Optional order store, defaults to one on ``session``
            product_repository: Optional inventory store, defaults to one on ``session``
            state_machine: Optional state machine instance
            policy: Optional access policy instance
        """
        self.session = session
        self.repository = order_repository or OrderRepository(session)
        self.product_repository = product_repository or ProductRepository(session)
        self.state_machine = state_machine or OrderStateMachine()
        self.policy = policy or OrderAccessPolicy()

    async def create_order(self, actor: Actor, items: Any) -> Order:
        """
        Place an order for the actor.

        Every product is checked before anything is written. Stock
        decrements and the order insert then run in one nested transaction,
        so a failure at any point leaves stock and orders untouched.

        Args:
            actor: Customer placing the order
            items: Non-empty list of ``{"product_id", "quantity"}`` mappings

        Returns:
            Created order with items, products and customer loaded

        Raises:
            OrderValidationError: If the item list is empty or malformed
            ProductNotFoundError: If a product does not exist
            ProductUnavailableError: If a product is not published
            InsufficientStockError: If stock does not cover a quantity
        """
        requested = self._normalize_items(items)

        logger.info(
            "Creating order",
            user_id=str(actor.user_id),
            item_count=len(requested),
        )

        with log_performance(logger, "create_order", item_count=len(requested)):
            async with self.session.begin_nested():
                lines: list[dict[str, Any]] = []
                for product_id, quantity in requested:
                    product = await self.product_repository.get_product_by_id(
                        product_id
                    )
                    if product is None:
                        raise ProductNotFoundError(
                            f"Product with ID {product_id} not found",
                            product_id=str(product_id),
                        )
                    if not product.is_published:
                        raise ProductUnavailableError(
                            f"Product {product.name} is not available",
                            product_id=str(product_id),
                            product_status=product.status.value,
                        )
                    if not product.has_stock_for(quantity):
                        raise InsufficientStockError(
                            f"Insufficient stock for product: {product.name}",
                            product_id=str(product_id),
                            requested=quantity,
                            available=product.stock_quantity,
                        )

                    unit_price = to_money(product.price)
                    lines.append(
                        {
                            "product_id": product.id,
                            "product_name": product.name,
                            "quantity": quantity,
                            "price": unit_price,
                            "subtotal": calculate_line_subtotal(unit_price, quantity),
                        }
                    )

                total_amount = sum_money(line["subtotal"] for line in lines)

                for line in lines:
                    decremented = await self.product_repository.decrement_stock(
                        line["product_id"], line["quantity"]
                    )
                    if not decremented:
                        raise InsufficientStockError(
                            f"Insufficient stock for product: {line['product_name']}",
                            product_id=str(line["product_id"]),
                            requested=line["quantity"],
                        )

                order = await self.repository.create_order_with_items(
                    user_id=actor.user_id,
                    order_number=self._generate_order_number(),
                    total_amount=total_amount,
                    items=[
                        {
                            "product_id": line["product_id"],
                            "quantity": line["quantity"],
                            "price": line["price"],
                        }
                        for line in lines
                    ],
                )

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            total_amount=str(total_amount),
        )

        return await self._reload(order.id)

    async def get_order(self, order_id: uuid.UUID, actor: Actor) -> Order:
        """
        Get an order the actor may view.

        Raises:
            OrderNotFoundError: If the order does not exist
            OrderAccessDeniedError: If the actor may not view it
        """
        order = await self._get_existing_order(order_id)
        context = await self._access_context(order)
        if not self.policy.can_view(actor, context):
            logger.warning(
                "Order view denied",
                order_id=str(order_id),
                actor_id=str(actor.user_id),
                role=actor.role.value,
            )
            raise OrderAccessDeniedError(
                "You are not authorized to view this order",
                order_id=str(order_id),
            )
        return order

    async def list_orders(
        self,
        actor: Actor,
        status: Optional[Any] = None,
        search: Optional[str] = None,
        page: int = 1,
        per_page: int = 15,
    ) -> tuple[Sequence[Order], int]:
        """
        List the orders visible to the actor, newest first.

        Customers see their own orders, vendors see orders containing their
        products and admins see every order.

        Args:
            actor: Requesting user
            status: Optional status filter
            search: Optional order number substring
            page: 1-based page number
            per_page: Page size, at most ``MAX_PER_PAGE``

        Returns:
            Tuple of (orders on the page, total matching orders)

        Raises:
            OrderValidationError: If the status or paging arguments are invalid
        """
        status_filter = self._parse_status(status) if status is not None else None
        if page < 1:
            raise OrderValidationError("page must be at least 1", page=page)
        if per_page < 1 or per_page > MAX_PER_PAGE:
            raise OrderValidationError(
                f"per_page must be between 1 and {MAX_PER_PAGE}",
                per_page=per_page,
            )

        user_id: Optional[uuid.UUID] = None
        vendor_id: Optional[uuid.UUID] = None
        if actor.is_customer:
            user_id = actor.user_id
        elif actor.is_vendor:
            vendor_id = actor.user_id

        return await self.repository.list_orders(
            user_id=user_id,
            vendor_id=vendor_id,
            status=status_filter,
            search=search.strip() if search else None,
            skip=(page - 1) * per_page,
            limit=per_page,
        )

    async def update_order_status(
        self,
        order_id: uuid.UUID,
        new_status: Any,
        actor: Actor,
    ) -> Order:
        """
        Move an order to a new status.

        Only the status and ``updated_at`` change. Moving an order to
        cancelled this way does not restore stock.

        Raises:
            OrderValidationError: If ``new_status`` is not a known status
            OrderNotFoundError: If the order does not exist
            OrderAccessDeniedError: If the actor may not modify it
            InvalidStatusTransitionError: If the transition is not allowed
            InvalidOrderStateError: If another request changed the status first
        """
        target_status = self._parse_status(new_status)
        order = await self._get_existing_order(order_id)
        await self._ensure_can_modify(order, actor)

        async with self.session.begin_nested():
            await self.state_machine.apply_transition(
                order,
                target_status,
                self.repository,
                actor_id=actor.user_id,
            )

        return await self._reload(order_id)

    async def cancel_order(self, order_id: uuid.UUID, actor: Actor) -> Order:
        """
        Cancel a pending or processing order and restore its stock.

        The status is claimed first with a write conditioned on the order
        still being cancellable, so only one of several concurrent cancels
        restores stock. Claiming and restoring happen in one nested
        transaction.

        Raises:
            OrderNotFoundError: If the order does not exist
            OrderAccessDeniedError: If the actor may not modify it
            InvalidOrderStateError: If the order can no longer be cancelled
        """
        order = await self._get_existing_order(order_id)
        await self._ensure_can_modify(order, actor)

        if not order.can_cancel:
            raise InvalidOrderStateError(
                f"Order cannot be cancelled in its current status: {order.status.value}",
                order_id=str(order_id),
                status=order.status.value,
            )

        async with self.session.begin_nested():
            claimed = await self.repository.update_status(
                order.id,
                OrderStatus.CANCELLED,
                expected_statuses=CANCELLABLE_STATUSES,
            )
            if not claimed:
                raise InvalidOrderStateError(
                    "Order is no longer cancellable",
                    order_id=str(order_id),
                    status=order.status.value,
                )
            for item in order.items:
                await self.product_repository.increment_stock(
                    item.product_id, item.quantity
                )

        logger.info(
            "Order cancelled",
            order_id=str(order_id),
            actor_id=str(actor.user_id),
            restored_items=len(order.items),
        )

        return await self._reload(order_id)

    def _normalize_items(self, items: Any) -> list[tuple[uuid.UUID, int]]:
        if not isinstance(items, (list, tuple)) or not items:
            raise OrderValidationError("Order must contain at least one item")

        normalized = []
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                raise OrderValidationError(
                    "Each order item must be an object",
                    item_index=index,
                )

            raw_product_id = item.get("product_id")
            if raw_product_id is None:
                raise OrderValidationError(
                    "Each order item requires a product_id",
                    item_index=index,
                )
            try:
                product_id = (
                    raw_product_id
                    if isinstance(raw_product_id, uuid.UUID)
                    else uuid.UUID(str(raw_product_id))
                )
            except ValueError as e:
                raise OrderValidationError(
                    "product_id must be a valid UUID",
                    item_index=index,
                ) from e

            quantity = item.get("quantity")
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
                raise OrderValidationError(
                    "quantity must be an integer of at least 1",
                    item_index=index,
                )

            normalized.append((product_id, quantity))

        return normalized

    def _parse_status(self, value: Any) -> OrderStatus:
        if isinstance(value, OrderStatus):
            return value
        try:
            return OrderStatus.from_string(str(value))
        except ValueError as e:
            raise OrderValidationError(str(e), status=str(value)) from e

    async def _get_existing_order(self, order_id: uuid.UUID) -> Order:
        order = await self.repository.get_order_by_id(order_id)
        if order is None:
            raise OrderNotFoundError(
                "Order not found",
                order_id=str(order_id),
            )
        return order

    async def _access_context(self, order: Order) -> OrderAccessContext:
        vendor_ids = await self.repository.list_vendor_ids_for_order(order.id)
        return OrderAccessContext.build(order.user_id, vendor_ids)

    async def _ensure_can_modify(self, order: Order, actor: Actor) -> None:
        context = await self._access_context(order)
        if not self.policy.can_modify(actor, context):
            logger.warning(
                "Order modification denied",
                order_id=str(order.id),
                actor_id=str(actor.user_id),
                role=actor.role.value,
            )
            raise OrderAccessDeniedError(
                "You are not authorized to modify this order",
                order_id=str(order.id),
            )

    async def _reload(self, order_id: uuid.UUID) -> Order:
        return await self._get_existing_order(order_id)

    def _generate_order_number(self) -> str:
        """
        Generate a unique order number.

        Returns:
            ``ORD-`` followed by 12 upper-case hexadecimal characters
        """
        return f"ORD-{uuid.uuid4().hex[:12].upper()}"
