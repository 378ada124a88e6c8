"""
Tests for money arithmetic and the order model invariants.
"""

import uuid
from decimal import Decimal

import pytest

from storefront.database.models import Order, OrderItem
from storefront.services.orders.enums import OrderStatus
from storefront.services.orders.pricing import (
    calculate_line_subtotal,
    sum_money,
    to_money,
)


class TestPricing:
    """Fixed-point helpers."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("10", Decimal("10.00")),
            (3, Decimal("3.00")),
            ("2.675", Decimal("2.68")),
            ("2.665", Decimal("2.67")),
            (Decimal("0.005"), Decimal("0.01")),
        ],
    )
    def test_to_money_rounds_half_up(self, value, expected):
        assert to_money(value) == expected

    def test_to_money_rejects_floats(self):
        with pytest.raises(TypeError):
            to_money(0.1)

    def test_line_subtotal(self):
        assert calculate_line_subtotal("19.99", 3) == Decimal("59.97")

    def test_sum_is_exact(self):
        assert sum_money(["0.10"] * 10) == Decimal("1.00")

    def test_empty_sum_is_zero(self):
        assert sum_money([]) == Decimal("0.00")


class TestOrderItemModel:
    """Derived subtotal on line items."""

    def test_subtotal_is_computed_on_construction(self):
        item = OrderItem(product_id=uuid.uuid4(), quantity=3, price=Decimal("4.50"))

        assert item.subtotal == Decimal("13.50")

    def test_subtotal_follows_quantity_changes(self):
        item = OrderItem(product_id=uuid.uuid4(), quantity=1, price=Decimal("4.50"))

        item.quantity = 4

        assert item.subtotal == Decimal("18.00")

    def test_subtotal_follows_price_changes(self):
        item = OrderItem(product_id=uuid.uuid4(), quantity=2, price=Decimal("4.50"))

        item.price = Decimal("5.25")

        assert item.subtotal == Decimal("10.50")

    def test_conflicting_subtotal_is_rejected(self):
        item = OrderItem(product_id=uuid.uuid4(), quantity=2, price=Decimal("4.50"))

        with pytest.raises(ValueError, match="derived"):
            item.subtotal = Decimal("1.00")


class TestOrderModel:
    """Order model helpers."""

    def make_order(self, status: OrderStatus = OrderStatus.PENDING) -> Order:
        order = Order(
            user_id=uuid.uuid4(),
            order_number="ORD-ABCDEF012345",
            total_amount=Decimal("0.00"),
            status=status,
        )
        order.items = [
            OrderItem(product_id=uuid.uuid4(), quantity=2, price=Decimal("10.00")),
            OrderItem(product_id=uuid.uuid4(), quantity=1, price=Decimal("5.00")),
        ]
        return order

    def test_order_number_is_immutable(self):
        order = self.make_order()

        with pytest.raises(ValueError, match="immutable"):
            order.order_number = "ORD-000000000000"

    def test_status_helpers(self):
        assert self.make_order(OrderStatus.PROCESSING).can_cancel
        assert not self.make_order(OrderStatus.SHIPPED).can_cancel
        assert not self.make_order(OrderStatus.DELIVERED).can_cancel
