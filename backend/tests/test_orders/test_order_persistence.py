"""
OrderService against a real AsyncSession.

Runs the workflow on a SQLite database through aiosqlite so nested
transactions roll back as SAVEPOINTs and the conditional stock and status
UPDATE statements are executed by a database engine.
"""

import uuid
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import AsyncIterator

import pytest
from sqlalchemy import event, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from storefront.database.models import (
    Base,
    Order,
    Product,
    ProductStatus,
    User,
    UserRole,
)
from storefront.services.orders.enums import CANCELLABLE_STATUSES, OrderStatus
from storefront.services.orders.exceptions import (
    InsufficientStockError,
    InvalidOrderStateError,
    InvalidStatusTransitionError,
)
from storefront.services.orders.policy import Actor
from storefront.services.orders.repository import OrderRepository
from storefront.services.orders.service import OrderService


@asynccontextmanager
async def sqlite_session(path) -> AsyncIterator[AsyncSession]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{path}")

    # SAVEPOINT needs an explicit BEGIN under aiosqlite
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_implicit_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False)
    try:
        async with factory() as session:
            yield session
    finally:
        await engine.dispose()


async def seed(session: AsyncSession) -> tuple[Actor, uuid.UUID, uuid.UUID]:
    vendor = User(name="Vera Vendor", email="vera@example.com", role=UserRole.VENDOR)
    customer = User(name="Casey Customer", email="casey@example.com", role=UserRole.CUSTOMER)
    session.add_all([vendor, customer])
    await session.flush()

    mug = Product(
        vendor_id=vendor.id,
        name="Mug",
        slug="mug",
        price=Decimal("10.00"),
        stock_quantity=5,
        status=ProductStatus.PUBLISHED,
    )
    pen = Product(
        vendor_id=vendor.id,
        name="Pen",
        slug="pen",
        price=Decimal("5.00"),
        stock_quantity=1,
        status=ProductStatus.PUBLISHED,
    )
    session.add_all([mug, pen])
    await session.flush()

    return Actor(user_id=customer.id, role=UserRole.CUSTOMER), mug.id, pen.id


async def stock_of(session: AsyncSession, product_id: uuid.UUID) -> int:
    return await session.scalar(
        select(Product.stock_quantity).where(Product.id == product_id)
    )


async def order_count(session: AsyncSession) -> int:
    return await session.scalar(select(func.count()).select_from(Order))


@pytest.mark.asyncio
async def test_create_then_cancel_restores_stock(tmp_path):
    async with sqlite_session(tmp_path / "store.db") as session:
        actor, mug, pen = await seed(session)
        service = OrderService(session)

        order = await service.create_order(
            actor,
            [{"product_id": mug, "quantity": 2}, {"product_id": pen, "quantity": 1}],
        )

        assert order.total_amount == Decimal("25.00")
        assert order.status == OrderStatus.PENDING
        assert len(order.items) == 2
        assert await stock_of(session, mug) == 3
        assert await stock_of(session, pen) == 0

        cancelled = await service.cancel_order(order.id, actor)

        assert cancelled.status == OrderStatus.CANCELLED
        assert await stock_of(session, mug) == 5
        assert await stock_of(session, pen) == 1


@pytest.mark.asyncio
async def test_failed_create_rolls_back_to_savepoint(tmp_path):
    async with sqlite_session(tmp_path / "store.db") as session:
        actor, mug, _ = await seed(session)
        service = OrderService(session)

        # each line passes the stock check alone; the second decrement fails
        with pytest.raises(InsufficientStockError):
            await service.create_order(
                actor,
                [{"product_id": mug, "quantity": 3}, {"product_id": mug, "quantity": 3}],
            )

        assert await stock_of(session, mug) == 5
        assert await order_count(session) == 0

        await service.create_order(actor, [{"product_id": mug, "quantity": 3}])

        assert await stock_of(session, mug) == 2
        assert await order_count(session) == 1


@pytest.mark.asyncio
async def test_status_write_requires_expected_status(tmp_path):
    async with sqlite_session(tmp_path / "store.db") as session:
        actor, mug, _ = await seed(session)
        order = await OrderService(session).create_order(
            actor, [{"product_id": mug, "quantity": 2}]
        )
        repository = OrderRepository(session)

        found = await repository.get_order_by_number(order.order_number)
        assert found.id == order.id

        assert not await repository.update_status(
            order.id, OrderStatus.SHIPPED, expected_statuses={OrderStatus.PROCESSING}
        )
        assert await repository.update_status(
            order.id, OrderStatus.CANCELLED, expected_statuses=CANCELLABLE_STATUSES
        )
        assert not await repository.update_status(
            order.id, OrderStatus.CANCELLED, expected_statuses=CANCELLABLE_STATUSES
        )


@pytest.mark.asyncio
async def test_cancel_after_cancellation_leaves_stock(tmp_path):
    async with sqlite_session(tmp_path / "store.db") as session:
        actor, mug, _ = await seed(session)
        service = OrderService(session)
        order = await service.create_order(actor, [{"product_id": mug, "quantity": 2}])
        await service.cancel_order(order.id, actor)

        with pytest.raises(InvalidOrderStateError):
            await service.cancel_order(order.id, actor)

        assert await stock_of(session, mug) == 5


@pytest.mark.asyncio
async def test_invalid_transition_leaves_row_unchanged(tmp_path):
    async with sqlite_session(tmp_path / "store.db") as session:
        actor, mug, _ = await seed(session)
        service = OrderService(session)
        admin = Actor(user_id=uuid.uuid4(), role=UserRole.ADMIN)
        order = await service.create_order(actor, [{"product_id": mug, "quantity": 1}])

        with pytest.raises(InvalidStatusTransitionError):
            await service.update_order_status(order.id, OrderStatus.DELIVERED, admin)

        await service.update_order_status(order.id, OrderStatus.PROCESSING, admin)
        reloaded = await service.get_order(order.id, admin)

        assert reloaded.status == OrderStatus.PROCESSING
        assert await stock_of(session, mug) == 4
