"""
Order authorization policy.

Pure decision functions over an explicit ``Actor`` and the facts about an
order that matter for access: its owner and the vendors whose products it
contains. Nothing here touches the database or ambient request state; the
vendor ids are fetched by the caller through the order store.
"""

import uuid
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable

from storefront.database.models.user import UserRole


@dataclass(frozen=True)
class Actor:
    """Authenticated caller of an order operation."""

    user_id: uuid.UUID
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_vendor(self) -> bool:
        return self.role == UserRole.VENDOR

    @property
    def is_customer(self) -> bool:
        return self.role == UserRole.CUSTOMER


@dataclass(frozen=True)
class OrderAccessContext:
    """Ownership facts about one order."""

    owner_id: uuid.UUID
    vendor_ids: FrozenSet[uuid.UUID] = field(default_factory=frozenset)

    @classmethod
    def build(
        cls,
        owner_id: uuid.UUID,
        vendor_ids: Iterable[uuid.UUID] = (),
    ) -> "OrderAccessContext":
        return cls(owner_id=owner_id, vendor_ids=frozenset(vendor_ids))


class OrderAccessPolicy:
    """
    Role and ownership rules for orders.

    A clause grants access as soon as it matches:
    1. admins may access every order;
    2. vendors may access orders containing at least one of their products;
    3. the customer who placed the order may access it.
    Everyone else is denied.
    """

    @staticmethod
    def _grants(actor: Actor, context: OrderAccessContext) -> bool:
        if actor.is_admin:
            return True
        if actor.is_vendor and actor.user_id in context.vendor_ids:
            return True
        if actor.user_id == context.owner_id:
            return True
        return False

    def can_view(self, actor: Actor, context: OrderAccessContext) -> bool:
        return self._grants(actor, context)

    def can_modify(self, actor: Actor, context: OrderAccessContext) -> bool:
        # Customers only reach modification through cancellation; status
        # updates are additionally gated to vendors and admins at the route.
        return self._grants(actor, context)
