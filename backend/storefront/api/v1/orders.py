"""
Order API endpoints.

Routes translate HTTP requests into order workflow calls. Business failures
propagate as ``OrderServiceError`` and are mapped to responses by the
application's exception handler.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, Request, status

from storefront.api.deps import CurrentActor, DatabaseSession, VendorActor
from storefront.core.config import get_settings
from storefront.core.logging import get_logger
from storefront.core.rate_limit import limiter
from storefront.schemas.orders import (
    OrderCreateRequest,
    OrderEnvelope,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
)
from storefront.services.orders.enums import OrderStatus
from storefront.services.orders.service import MAX_PER_PAGE, OrderService

logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get(
    "",
    response_model=OrderListResponse,
    summary="List orders",
    description="Orders visible to the caller, newest first",
)
async def list_orders(
    actor: CurrentActor,
    db: DatabaseSession,
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=50),
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.default_page_size, ge=1, le=MAX_PER_PAGE),
) -> OrderListResponse:
    orders, total = await OrderService(db).list_orders(
        actor,
        status=status_filter,
        search=search,
        page=page,
        per_page=per_page,
    )
    return OrderListResponse.build(orders, total, page, per_page)


@router.post(
    "",
    response_model=OrderEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Place order",
    description="Validate stock, reserve it and create a pending order atomically",
)
@limiter.limit(settings.order_create_rate_limit)
async def create_order(
    request: Request,
    payload: OrderCreateRequest,
    actor: CurrentActor,
    db: DatabaseSession,
) -> OrderEnvelope:
    """
    Place a new order for the authenticated user.

    Args:
        request: Incoming request, used by the rate limiter
        payload: Items to order
        actor: Authenticated caller
        db: Database session

    Returns:
        OrderEnvelope: Created order
    """
    order = await OrderService(db).create_order(actor, payload.to_item_dicts())
    return OrderEnvelope(
        message="Order created successfully",
        order=OrderResponse.from_order(order),
    )


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Get order",
)
async def get_order(
    order_id: UUID,
    actor: CurrentActor,
    db: DatabaseSession,
) -> OrderResponse:
    order = await OrderService(db).get_order(order_id, actor)
    return OrderResponse.from_order(order)


@router.put(
    "/{order_id}/status",
    response_model=OrderEnvelope,
    summary="Update order status",
    description="Move an order along its lifecycle (vendors and admins)",
)
async def update_order_status(
    order_id: UUID,
    payload: OrderStatusUpdate,
    actor: VendorActor,
    db: DatabaseSession,
) -> OrderEnvelope:
    order = await OrderService(db).update_order_status(order_id, payload.status, actor)
    logger.info(
        "Order status updated via API",
        order_id=str(order_id),
        status=order.status.value,
    )
    return OrderEnvelope(
        message="Order status updated successfully",
        order=OrderResponse.from_order(order),
    )


@router.delete(
    "/{order_id}",
    response_model=OrderEnvelope,
    summary="Cancel order",
    description="Cancel a pending or processing order and restore stock",
)
async def cancel_order(
    order_id: UUID,
    actor: CurrentActor,
    db: DatabaseSession,
) -> OrderEnvelope:
    order = await OrderService(db).cancel_order(order_id, actor)
    return OrderEnvelope(
        message="Order cancelled successfully",
        order=OrderResponse.from_order(order),
    )
