"""
Admin dashboard response schemas.
"""

from decimal import Decimal

from pydantic import BaseModel, Field, field_serializer

from storefront.services.orders.pricing import to_money


class StatisticsResponse(BaseModel):
    """Platform-wide counts."""

    total_users: int = Field(..., ge=0)
    total_customers: int = Field(..., ge=0)
    total_vendors: int = Field(..., ge=0)
    total_admins: int = Field(..., ge=0)
    total_products: int = Field(..., ge=0)
    total_orders: int = Field(..., ge=0)
    orders_by_status: dict[str, int] = Field(default_factory=dict)
    total_revenue: Decimal = Field(default=Decimal("0.00"))

    @field_serializer("total_revenue")
    def serialize_revenue(self, value: Decimal) -> str:
        return str(to_money(value))
