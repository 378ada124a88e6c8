"""
Database models package initialization.

Importing this package registers every model with ``Base.metadata`` so that
relationships resolve and Alembic autogeneration sees all tables.
"""

from storefront.database.base import Base, BaseModel, TimestampMixin, UUIDMixin
from storefront.database.models.order import Order, OrderItem
from storefront.database.models.product import Product, ProductStatus
from storefront.database.models.user import User, UserRole, UserStatus

__all__ = [
    "Base",
    "BaseModel",
    "TimestampMixin",
    "UUIDMixin",
    "Order",
    "OrderItem",
    "Product",
    "ProductStatus",
    "User",
    "UserRole",
    "UserStatus",
]
