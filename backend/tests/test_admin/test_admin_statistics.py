"""
Tests for admin statistics service and endpoint.
"""

import uuid
from decimal import Decimal
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from storefront.api.deps import get_current_user
from storefront.database.connection import get_db
from storefront.database.models import User, UserRole, UserStatus
from storefront.main import app
from storefront.services.admin.service import AdminService

ROLE_COUNTS = {None: 10, UserRole.CUSTOMER: 7, UserRole.VENDOR: 2, UserRole.ADMIN: 1}

ORDER_STATS = {
    "total_orders": 4,
    "orders_by_status": {
        "pending": 1,
        "processing": 1,
        "shipped": 0,
        "delivered": 1,
        "cancelled": 1,
    },
    "total_revenue": Decimal("125.50"),
}


@pytest.fixture
def user_repository() -> AsyncMock:
    repo = AsyncMock()
    repo.count_by_role = AsyncMock(side_effect=lambda role=None: ROLE_COUNTS[role])
    return repo


@pytest.fixture
def product_repository() -> AsyncMock:
    repo = AsyncMock()
    repo.count_products = AsyncMock(return_value=12)
    return repo


@pytest.fixture
def order_repository() -> AsyncMock:
    repo = AsyncMock()
    repo.get_order_statistics = AsyncMock(return_value=ORDER_STATS)
    return repo


@pytest.fixture
def admin_service(user_repository, product_repository, order_repository) -> AdminService:
    return AdminService(
        session=MagicMock(),
        user_repository=user_repository,
        product_repository=product_repository,
        order_repository=order_repository,
    )


@pytest.mark.asyncio
async def test_get_statistics_combines_store_counts(admin_service):
    statistics = await admin_service.get_statistics()

    assert statistics["total_users"] == 10
    assert statistics["total_customers"] == 7
    assert statistics["total_vendors"] == 2
    assert statistics["total_admins"] == 1
    assert statistics["total_products"] == 12
    assert statistics["total_orders"] == 4
    assert statistics["orders_by_status"]["cancelled"] == 1
    assert statistics["total_revenue"] == Decimal("125.50")


def make_user(role: UserRole) -> User:
    return User(
        id=uuid.uuid4(),
        name="Someone",
        email="someone@example.com",
        role=role,
        status=UserStatus.ACTIVE,
    )


async def override_get_db() -> AsyncGenerator[MagicMock, None]:
    yield MagicMock()


@pytest.fixture
def client():
    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_statistics_endpoint_for_admin(client):
    app.dependency_overrides[get_current_user] = lambda: make_user(UserRole.ADMIN)

    with patch("storefront.api.v1.admin.AdminService") as service_class:
        service_class.return_value.get_statistics = AsyncMock(
            return_value={
                "total_users": 10,
                "total_customers": 7,
                "total_vendors": 2,
                "total_admins": 1,
                "total_products": 12,
                **ORDER_STATS,
            }
        )
        response = client.get("/api/v1/admin/statistics")

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["total_users"] == 10
    assert body["total_revenue"] == "125.50"
    assert body["orders_by_status"]["delivered"] == 1


@pytest.mark.parametrize("role", [UserRole.CUSTOMER, UserRole.VENDOR])
def test_statistics_endpoint_requires_admin(client, role):
    app.dependency_overrides[get_current_user] = lambda: make_user(role)

    response = client.get("/api/v1/admin/statistics")

    assert response.status_code == status.HTTP_403_FORBIDDEN
