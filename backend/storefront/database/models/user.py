"""
User model with role and account status.

Users are provisioned by the identity provider. The orders service reads them
to resolve the authenticated actor and to render the customer block of an
order; it never writes them.
"""

import enum
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Enum as SQLEnum, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.database.base import BaseModel

if TYPE_CHECKING:
    from storefront.database.models.order import Order
    from storefront.database.models.product import Product


class UserRole(str, enum.Enum):
    """User role enumeration for role-based access control."""

    CUSTOMER = "customer"
    VENDOR = "vendor"
    ADMIN = "admin"

    @classmethod
    def from_string(cls, value: str) -> "UserRole":
        """
        Convert string to UserRole enum.

        Raises:
            ValueError: If value is not a valid role
        """
        try:
            return cls(value.lower())
        except ValueError:
            raise ValueError(f"Invalid role: {value}")


class UserStatus(str, enum.Enum):
    """Account status; only active accounts may call protected endpoints."""

    ACTIVE = "active"
    SUSPENDED = "suspended"
    BANNED = "banned"

    @property
    def denial_message(self) -> str:
        """Message returned to a non-active account."""
        if self == UserStatus.SUSPENDED:
            return "Your account has been suspended. Please contact support."
        if self == UserStatus.BANNED:
            return "Your account has been banned. Please contact support."
        return "Your account is not active."


class User(BaseModel):
    """
    Platform user: customer, vendor or admin.

    Attributes:
        id: Unique user identifier (UUID)
        name: Display name
        email: Email address (unique)
        role: Role for access control
        status: Account status
        created_at: Creation timestamp
        updated_at: Last modification timestamp
    """

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display name",
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="User email address",
    )

    role: Mapped[UserRole] = mapped_column(
        SQLEnum(
            UserRole,
            name="user_role",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=UserRole.CUSTOMER,
        index=True,
        comment="User role for access control",
    )

    status: Mapped[UserStatus] = mapped_column(
        SQLEnum(
            UserStatus,
            name="user_status",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=UserStatus.ACTIVE,
        comment="Account status",
    )

    orders: Mapped[list["Order"]] = relationship(
        "Order",
        back_populates="user",
        foreign_keys="Order.user_id",
        lazy="noload",
    )

    products: Mapped[list["Product"]] = relationship(
        "Product",
        back_populates="vendor",
        foreign_keys="Product.vendor_id",
        lazy="noload",
    )

    __table_args__ = (
        Index("ix_users_role_status", "role", "status"),
        CheckConstraint("length(email) >= 3", name="ck_users_email_min_length"),
        {"comment": "Platform users: customers, vendors and admins"},
    )

    def __repr__(self) -> str:
        return (
            f"<User(id={self.id}, email='{self.email}', "
            f"role={self.role.value}, status={self.status.value})>"
        )

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_vendor(self) -> bool:
        return self.role == UserRole.VENDOR
