"""
Product model backing the inventory store.

The order workflow reads price, stock and publication status from products
and adjusts stock only through the conditional UPDATE statements in
``ProductRepository``.
"""

import uuid
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    CheckConstraint,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.database.base import BaseModel

if TYPE_CHECKING:
    from storefront.database.models.user import User


class ProductStatus(str, Enum):
    """
    Product publication status.

    Attributes:
        DRAFT: Not yet visible to customers
        PUBLISHED: Listed and orderable
        ARCHIVED: Withdrawn from sale
    """

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"

    @property
    def is_orderable(self) -> bool:
        return self == ProductStatus.PUBLISHED


class Product(BaseModel):
    """
    Vendor-owned catalog product.

    Attributes:
        id: Unique product identifier (UUID)
        vendor_id: Owning vendor
        name: Product name
        slug: URL slug (unique)
        description: Optional long description
        price: Current unit price
        stock_quantity: Units available, never negative
        status: Publication status
    """

    __tablename__ = "products"

    vendor_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Vendor who owns the product",
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Product name",
    )

    slug: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="URL slug",
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Product description",
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Current unit price",
    )

    stock_quantity: Mapped[int] = mapped_column(
        nullable=False,
        default=0,
        comment="Units available for ordering",
    )

    status: Mapped[ProductStatus] = mapped_column(
        SQLEnum(
            ProductStatus,
            name="product_status",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=ProductStatus.DRAFT,
        index=True,
        comment="Publication status",
    )

    vendor: Mapped["User"] = relationship(
        "User",
        back_populates="products",
        foreign_keys=[vendor_id],
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_products_vendor_status", "vendor_id", "status"),
        CheckConstraint(
            "stock_quantity >= 0",
            name="ck_products_stock_non_negative",
        ),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        {"comment": "Vendor catalog products"},
    )

    def __repr__(self) -> str:
        return (
            f"<Product(id={self.id}, name='{self.name}', "
            f"stock_quantity={self.stock_quantity}, status={self.status.value})>"
        )

    @property
    def is_published(self) -> bool:
        return self.status.is_orderable

    def has_stock_for(self, quantity: int) -> bool:
        """Check whether the current stock covers ``quantity`` units."""
        return self.stock_quantity >= quantity
