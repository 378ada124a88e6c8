"""
Pytest configuration and shared test fixtures.

Provides an in-memory inventory and order store with a session double whose
``begin_nested()`` restores the store when the block raises, so tests can
observe the all-or-nothing behavior of the order workflow without a database.
"""

import os

os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ.setdefault("APP_SECRET_KEY", "test-secret-key-for-the-storefront-suite")

import copy
import uuid
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence

import pytest

from storefront.database.models import (
    Order,
    OrderItem,
    Product,
    ProductStatus,
    User,
    UserRole,
    UserStatus,
)
from storefront.services.orders.enums import OrderStatus
from storefront.services.orders.policy import Actor


# ============================================================================
# In-memory store
# ============================================================================


class InMemoryStore:
    """Rows of the inventory and order stores kept in plain dictionaries."""

    def __init__(self) -> None:
        self.users: dict[uuid.UUID, User] = {}
        self.products: dict[uuid.UUID, dict[str, Any]] = {}
        self.orders: dict[uuid.UUID, dict[str, Any]] = {}

    def add_user(
        self,
        role: UserRole = UserRole.CUSTOMER,
        status: UserStatus = UserStatus.ACTIVE,
        name: str = "Test User",
    ) -> User:
        user_id = uuid.uuid4()
        user = User(
            id=user_id,
            name=name,
            email=f"{user_id.hex[:8]}@example.com",
            role=role,
            status=status,
        )
        self.users[user_id] = user
        return user

    def add_product(
        self,
        vendor_id: uuid.UUID,
        price: str = "10.00",
        stock: int = 10,
        status: ProductStatus = ProductStatus.PUBLISHED,
        name: Optional[str] = None,
    ) -> uuid.UUID:
        product_id = uuid.uuid4()
        self.products[product_id] = {
            "vendor_id": vendor_id,
            "name": name or f"Product {product_id.hex[:6]}",
            "price": Decimal(price),
            "stock_quantity": stock,
            "status": status,
        }
        return product_id

    def stock_of(self, product_id: uuid.UUID) -> int:
        return self.products[product_id]["stock_quantity"]

    def build_product(self, product_id: uuid.UUID) -> Product:
        row = self.products[product_id]
        return Product(
            id=product_id,
            vendor_id=row["vendor_id"],
            name=row["name"],
            slug=f"product-{product_id.hex[:12]}",
            price=row["price"],
            stock_quantity=row["stock_quantity"],
            status=row["status"],
        )

    def build_order(self, order_id: uuid.UUID) -> Order:
        row = self.orders[order_id]
        order = Order(
            id=order_id,
            user_id=row["user_id"],
            order_number=row["order_number"],
            total_amount=row["total_amount"],
            status=row["status"],
        )
        order.items = [
            OrderItem(
                id=line["id"],
                order_id=order_id,
                product_id=line["product_id"],
                quantity=line["quantity"],
                price=line["price"],
                product=self.build_product(line["product_id"]),
            )
            for line in row["items"]
        ]
        order.user = self.users.get(row["user_id"])
        return order

    def snapshot(self) -> tuple[dict, dict]:
        return copy.deepcopy(self.products), copy.deepcopy(self.orders)

    def restore(self, snapshot: tuple[dict, dict]) -> None:
        self.products, self.orders = snapshot


class FakeSession:
    """Session double exposing the nested transaction used by the services."""

    def __init__(self, store: InMemoryStore) -> None:
        self.store = store
        self.nested_calls = 0
        self.rollbacks = 0

    @asynccontextmanager
    async def begin_nested(self):
        self.nested_calls += 1
        saved = self.store.snapshot()
        try:
            yield self
        except BaseException:
            self.rollbacks += 1
            self.store.restore(saved)
            raise


class InMemoryProductRepository:
    """Inventory store over ``InMemoryStore`` with the conditional decrement."""

    def __init__(self, store: InMemoryStore) -> None:
        self.store = store
        self.lost_races: set[uuid.UUID] = set()

    async def get_product_by_id(self, product_id: uuid.UUID) -> Optional[Product]:
        if product_id not in self.store.products:
            return None
        return self.store.build_product(product_id)

    async def decrement_stock(self, product_id: uuid.UUID, quantity: int) -> bool:
        row = self.store.products.get(product_id)
        if row is None or product_id in self.lost_races:
            return False
        if row["stock_quantity"] < quantity:
            return False
        row["stock_quantity"] -= quantity
        return True

    async def increment_stock(self, product_id: uuid.UUID, quantity: int) -> bool:
        row = self.store.products.get(product_id)
        if row is None:
            return False
        row["stock_quantity"] += quantity
        return True

    async def count_products(self) -> int:
        return len(self.store.products)


class InMemoryOrderRepository:
    """Order store over ``InMemoryStore``."""

    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    async def create_order_with_items(
        self,
        user_id: uuid.UUID,
        order_number: str,
        total_amount: Decimal,
        items: Sequence[dict[str, Any]],
    ) -> Order:
        order_id = uuid.uuid4()
        self.store.orders[order_id] = {
            "user_id": user_id,
            "order_number": order_number,
            "total_amount": total_amount,
            "status": OrderStatus.PENDING,
            "items": [
                {
                    "id": uuid.uuid4(),
                    "product_id": item["product_id"],
                    "quantity": item["quantity"],
                    "price": item["price"],
                }
                for item in items
            ],
        }
        return self.store.build_order(order_id)

    async def get_order_by_id(self, order_id: uuid.UUID) -> Optional[Order]:
        if order_id not in self.store.orders:
            return None
        return self.store.build_order(order_id)

    async def get_order_by_number(self, order_number: str) -> Optional[Order]:
        for order_id, row in self.store.orders.items():
            if row["order_number"] == order_number:
                return self.store.build_order(order_id)
        return None

    async def update_status(
        self,
        order_id: uuid.UUID,
        status: OrderStatus,
        expected_statuses: Optional[Iterable[OrderStatus]] = None,
    ) -> bool:
        row = self.store.orders.get(order_id)
        if row is None:
            return False
        if expected_statuses is not None and row["status"] not in set(expected_statuses):
            return False
        row["status"] = status
        return True

    async def list_vendor_ids_for_order(self, order_id: uuid.UUID) -> set[uuid.UUID]:
        return {
            self.store.products[line["product_id"]]["vendor_id"]
            for line in self.store.orders[order_id]["items"]
        }


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def fake_session(store: InMemoryStore) -> FakeSession:
    return FakeSession(store)


@pytest.fixture
def product_repository(store: InMemoryStore) -> InMemoryProductRepository:
    return InMemoryProductRepository(store)


@pytest.fixture
def order_repository(store: InMemoryStore) -> InMemoryOrderRepository:
    return InMemoryOrderRepository(store)


@pytest.fixture
def customer(store: InMemoryStore) -> User:
    return store.add_user(UserRole.CUSTOMER, name="Casey Customer")


@pytest.fixture
def other_customer(store: InMemoryStore) -> User:
    return store.add_user(UserRole.CUSTOMER, name="Other Customer")


@pytest.fixture
def vendor(store: InMemoryStore) -> User:
    return store.add_user(UserRole.VENDOR, name="Vera Vendor")


@pytest.fixture
def other_vendor(store: InMemoryStore) -> User:
    return store.add_user(UserRole.VENDOR, name="Other Vendor")


@pytest.fixture
def admin(store: InMemoryStore) -> User:
    return store.add_user(UserRole.ADMIN, name="Ada Admin")


def actor_for(user: User) -> Actor:
    return Actor(user_id=user.id, role=user.role)


@pytest.fixture
def make_actor():
    """Build the ``Actor`` for a stored user."""
    return actor_for
