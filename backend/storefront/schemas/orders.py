"""
Order Pydantic schemas for API request/response validation.

Responses use fixed field names. Money amounts are serialized as strings with
two decimal places.
"""

from datetime import datetime
from decimal import Decimal
from math import ceil
from typing import Any, Optional, Sequence
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from storefront.services.orders.enums import OrderStatus
from storefront.services.orders.pricing import to_money


class OrderItemRequest(BaseModel):
    """Single requested line item."""

    model_config = ConfigDict(validate_assignment=True)

    product_id: UUID = Field(
        ...,
        description="Product ID",
    )
    quantity: int = Field(
        ...,
        ge=1,
        description="Quantity",
    )


class OrderCreateRequest(BaseModel):
    """Request schema for placing an order."""

    model_config = ConfigDict(validate_assignment=True)

    items: list[OrderItemRequest] = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Order items",
    )

    def to_item_dicts(self) -> list[dict[str, Any]]:
        return [item.model_dump() for item in self.items]


class OrderStatusUpdate(BaseModel):
    """Request schema for updating order status."""

    model_config = ConfigDict(validate_assignment=True)

    status: OrderStatus = Field(
        ...,
        description="New order status",
    )


class ProductSummary(BaseModel):
    """Product reference embedded in an order item."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    vendor_id: UUID


class CustomerSummary(BaseModel):
    """Customer who placed the order."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str


class OrderItemResponse(BaseModel):
    """Order line item response."""

    model_config = ConfigDict(from_attributes=True)

    product: Optional[ProductSummary] = None
    quantity: int
    price: Decimal
    subtotal: Decimal

    @field_serializer("price", "subtotal")
    def serialize_money(self, value: Decimal) -> str:
        return str(to_money(value))


class _OrderBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_number: str
    total_amount: Decimal
    status: OrderStatus
    customer: Optional[CustomerSummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_serializer("total_amount")
    def serialize_total(self, value: Decimal) -> str:
        return str(to_money(value))


class OrderResponse(_OrderBase):
    """Full order response with line items."""

    items: list[OrderItemResponse] = Field(default_factory=list)

    @classmethod
    def from_order(cls, order: Any) -> "OrderResponse":
        return cls(
            id=order.id,
            order_number=order.order_number,
            total_amount=order.total_amount,
            status=order.status,
            items=[
                OrderItemResponse(
                    product=(
                        ProductSummary.model_validate(item.product)
                        if item.product is not None
                        else None
                    ),
                    quantity=item.quantity,
                    price=item.price,
                    subtotal=item.subtotal,
                )
                for item in order.items
            ],
            customer=(
                CustomerSummary.model_validate(order.user)
                if order.user is not None
                else None
            ),
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderSummaryResponse(_OrderBase):
    """Order entry in list responses."""

    items_count: int = 0

    @classmethod
    def from_order(cls, order: Any) -> "OrderSummaryResponse":
        return cls(
            id=order.id,
            order_number=order.order_number,
            total_amount=order.total_amount,
            status=order.status,
            items_count=len(order.items),
            customer=(
                CustomerSummary.model_validate(order.user)
                if order.user is not None
                else None
            ),
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class PaginationMeta(BaseModel):
    """Page position within a list response."""

    current_page: int
    last_page: int
    per_page: int
    total: int


class OrderListResponse(BaseModel):
    """Paginated order list."""

    data: list[OrderSummaryResponse]
    meta: PaginationMeta

    @classmethod
    def build(
        cls,
        orders: Sequence[Any],
        total: int,
        page: int,
        per_page: int,
    ) -> "OrderListResponse":
        return cls(
            data=[OrderSummaryResponse.from_order(order) for order in orders],
            meta=PaginationMeta(
                current_page=page,
                last_page=max(1, ceil(total / per_page)),
                per_page=per_page,
                total=total,
            ),
        )


class OrderEnvelope(BaseModel):
    """Single order wrapped with a human-readable message."""

    message: str
    order: OrderResponse
