"""Order state machine with transition validation.

This module implements the OrderStateMachine class which checks a requested
status change against the order lifecycle table and persists accepted
changes through the order repository.
"""

from typing import TYPE_CHECKING, Any, Optional, Set
from uuid import UUID

from storefront.core.logging import get_logger
from storefront.services.orders.enums import (
    OrderStatus,
    get_allowed_order_transitions,
    validate_order_status_transition,
)
from storefront.services.orders.exceptions import (
    InvalidOrderStateError,
    InvalidStatusTransitionError,
)

if TYPE_CHECKING:
    from storefront.services.orders.repository import OrderRepository

logger = get_logger(__name__)


class OrderStateMachine:
    """State machine for order lifecycle transitions.

    The machine holds no state of its own; the current status always comes
    from the order it is asked to move.
    """

    def validate_transition(
        self,
        order: Any,
        target_status: OrderStatus,
        actor_id: Optional[UUID] = None,
    ) -> bool:
        """Validate that ``target_status`` is a direct successor of the order's status.

        Args:
            order: Order instance to validate
            target_status: Desired target status
            actor_id: User requesting the transition

        Returns:
            True if transition is valid

        Raises:
            InvalidStatusTransitionError: If transition is not allowed
        """
        current_status = order.status

        if not validate_order_status_transition(current_status, target_status):
            allowed = self.get_available_transitions(order)
            logger.info(
                "State transition rejected",
                order_id=str(order.id),
                current_status=current_status.value,
                target_status=target_status.value,
                actor_id=str(actor_id) if actor_id else None,
            )
            if current_status.is_terminal():
                message = (
                    f"Order is {current_status.value}; no further status changes "
                    "are allowed"
                )
            else:
                message = (
                    f"Cannot change order status from {current_status.value} "
                    f"to {target_status.value}"
                )
            raise InvalidStatusTransitionError(
                message,
                current_status=current_status,
                target_status=target_status,
                allowed_transitions=sorted(s.value for s in allowed),
            )

        logger.debug(
            "State transition validated",
            order_id=str(order.id),
            transition=f"{current_status.value}->{target_status.value}",
        )
        return True

    async def apply_transition(
        self,
        order: Any,
        target_status: OrderStatus,
        repository: "OrderRepository",
        actor_id: Optional[UUID] = None,
    ) -> None:
        """Validate and persist a status change.

        The write only matches while the stored status is still the one that
        was validated, so a concurrent change makes it fail instead of
        overwriting. ``order`` itself is not modified; callers reload it.

        Args:
            order: Order instance to transition
            target_status: Target status
            repository: Order store used to persist the change
            actor_id: User requesting the transition

        Raises:
            InvalidStatusTransitionError: If transition is not allowed
            InvalidOrderStateError: If the stored status changed meanwhile
        """
        self.validate_transition(order, target_status, actor_id=actor_id)

        previous_status = order.status
        updated = await repository.update_status(
            order.id, target_status, expected_statuses={previous_status}
        )
        if not updated:
            logger.warning(
                "State transition lost to a concurrent update",
                order_id=str(order.id),
                expected_status=previous_status.value,
                target_status=target_status.value,
            )
            raise InvalidOrderStateError(
                "Order status was changed by another request",
                order_id=str(order.id),
                expected_status=previous_status.value,
            )

        logger.info(
            "Order status changed",
            order_id=str(order.id),
            from_status=previous_status.value,
            to_status=target_status.value,
            actor_id=str(actor_id) if actor_id else None,
        )

    def get_available_transitions(self, order: Any) -> Set[OrderStatus]:
        """Get the statuses reachable in one step from the order's status."""
        return get_allowed_order_transitions(order.status)
