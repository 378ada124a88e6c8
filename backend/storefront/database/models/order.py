"""
Order and order item models.

An order is created only by the order placement transaction and afterwards
changes only its status. Line items freeze the unit price at placement time
and derive their subtotal from price and quantity.
"""

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    CheckConstraint,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Numeric,
    String,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from storefront.database.base import BaseModel
from storefront.services.orders.enums import OrderStatus
from storefront.services.orders.pricing import calculate_line_subtotal

if TYPE_CHECKING:
    from storefront.database.models.product import Product
    from storefront.database.models.user import User


class Order(BaseModel):
    """
    Customer order.

    Attributes:
        id: Unique order identifier (UUID)
        user_id: Customer who placed the order
        order_number: Human-readable, unique and immutable order number
        total_amount: Sum of item subtotals at placement
        status: Current lifecycle status
        created_at: Placement timestamp
        updated_at: Last status change timestamp
    """

    __tablename__ = "orders"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Customer who placed the order",
    )

    order_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        comment="Human-readable order number",
    )

    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Order total: sum of item subtotals",
    )

    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(
            OrderStatus,
            name="order_status",
            native_enum=False,
            create_constraint=True,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=OrderStatus.PENDING,
        index=True,
        comment="Current order status",
    )

    user: Mapped["User"] = relationship(
        "User",
        back_populates="orders",
        foreign_keys=[user_id],
        lazy="selectin",
    )

    items: Mapped[list["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        foreign_keys="OrderItem.order_id",
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_orders_user_status", "user_id", "status"),
        Index("ix_orders_created_at", "created_at"),
        CheckConstraint(
            "total_amount >= 0",
            name="ck_orders_total_amount_non_negative",
        ),
        {"comment": "Customer orders"},
    )

    def __repr__(self) -> str:
        return (
            f"<Order(id={self.id}, order_number={self.order_number}, "
            f"user_id={self.user_id}, status={self.status.value}, "
            f"total_amount={self.total_amount})>"
        )

    @validates("order_number")
    def _validate_order_number(self, key: str, value: str) -> str:
        if self.order_number is not None and value != self.order_number:
            raise ValueError("order_number is immutable once assigned")
        return value

    @property
    def can_cancel(self) -> bool:
        return self.status.can_cancel()


class OrderItem(BaseModel):
    """
    Line item of an order.

    ``subtotal`` is derived: assigning ``price`` or ``quantity`` recomputes it,
    and a directly assigned subtotal that disagrees is rejected.

    Attributes:
        id: Unique order item identifier (UUID)
        order_id: Owning order
        product_id: Ordered product
        quantity: Units ordered, at least 1
        price: Unit price captured at placement
        subtotal: price * quantity
    """

    __tablename__ = "order_items"

    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Owning order",
    )

    product_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="Ordered product",
    )

    quantity: Mapped[int] = mapped_column(
        nullable=False,
        comment="Units ordered",
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Unit price captured at order placement",
    )

    subtotal: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="price * quantity",
    )

    order: Mapped["Order"] = relationship(
        "Order",
        back_populates="items",
        foreign_keys=[order_id],
        lazy="noload",
    )

    product: Mapped["Product"] = relationship(
        "Product",
        foreign_keys=[product_id],
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint(
            "quantity > 0",
            name="ck_order_items_quantity_positive",
        ),
        CheckConstraint(
            "price >= 0",
            name="ck_order_items_price_non_negative",
        ),
        CheckConstraint(
            "subtotal >= 0",
            name="ck_order_items_subtotal_non_negative",
        ),
        {"comment": "Order line items"},
    )

    def __repr__(self) -> str:
        return (
            f"<OrderItem(id={self.id}, order_id={self.order_id}, "
            f"quantity={self.quantity}, subtotal={self.subtotal})>"
        )

    def _expected_subtotal(
        self,
        price: Optional[Decimal],
        quantity: Optional[int],
    ) -> Optional[Decimal]:
        if price is None or quantity is None:
            return None
        return calculate_line_subtotal(price, quantity)

    @validates("price", "quantity")
    def _recompute_subtotal(self, key: str, value: Any) -> Any:
        price = value if key == "price" else self.price
        quantity = value if key == "quantity" else self.quantity
        expected = self._expected_subtotal(price, quantity)
        if expected is not None:
            self._syncing_subtotal = True
            try:
                self.subtotal = expected
            finally:
                self._syncing_subtotal = False
        return value

    @validates("subtotal")
    def _validate_subtotal(self, key: str, value: Decimal) -> Decimal:
        if getattr(self, "_syncing_subtotal", False):
            return value
        expected = self._expected_subtotal(self.price, self.quantity)
        if expected is not None and expected != value:
            raise ValueError("subtotal is derived from price and quantity")
        return value
