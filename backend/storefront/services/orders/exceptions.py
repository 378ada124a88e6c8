"""
Order workflow error hierarchy.

Every business failure raised by the order workflow carries an
``OrderErrorKind`` so callers can branch on the kind instead of the message.
"""

from enum import Enum
from typing import Any


class OrderErrorKind(str, Enum):
    """Structured failure categories of the order workflow."""

    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"
    INSUFFICIENT_STOCK = "insufficient_stock"
    FORBIDDEN = "forbidden"
    INVALID_TRANSITION = "invalid_transition"
    INVALID_STATE = "invalid_state"


class OrderServiceError(Exception):
    """Base exception for order workflow errors."""

    kind: OrderErrorKind = OrderErrorKind.INVALID_INPUT

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind.value, "message": self.message}


class OrderValidationError(OrderServiceError):
    """Raised when an order request is empty or malformed."""

    kind = OrderErrorKind.INVALID_INPUT


class OrderNotFoundError(OrderServiceError):
    """Raised when the order does not exist."""

    kind = OrderErrorKind.NOT_FOUND


class ProductNotFoundError(OrderServiceError):
    """Raised when an ordered product does not exist."""

    kind = OrderErrorKind.NOT_FOUND


class ProductUnavailableError(OrderServiceError):
    """Raised when an ordered product is not published."""

    kind = OrderErrorKind.UNAVAILABLE


class InsufficientStockError(OrderServiceError):
    """Raised when stock does not cover the requested quantity."""

    kind = OrderErrorKind.INSUFFICIENT_STOCK


class OrderAccessDeniedError(OrderServiceError):
    """Raised when the actor may not view or modify the order."""

    kind = OrderErrorKind.FORBIDDEN


class InvalidStatusTransitionError(OrderServiceError):
    """Raised when the target status is not a successor of the current one."""

    kind = OrderErrorKind.INVALID_TRANSITION

    def __init__(self, message: str, current_status: Any, target_status: Any, **context: Any):
        super().__init__(message, **context)
        self.current_status = current_status
        self.target_status = target_status


class InvalidOrderStateError(OrderServiceError):
    """Raised when the order's status does not permit the operation."""

    kind = OrderErrorKind.INVALID_STATE
