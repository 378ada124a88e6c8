"""
Vendor API endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Query

from storefront.api.deps import DatabaseSession, VendorActor
from storefront.core.config import get_settings
from storefront.schemas.orders import OrderListResponse
from storefront.services.orders.enums import OrderStatus
from storefront.services.orders.service import MAX_PER_PAGE, OrderService

settings = get_settings()

router = APIRouter(prefix="/vendor", tags=["vendor"])


@router.get(
    "/orders",
    response_model=OrderListResponse,
    summary="List vendor orders",
    description="Orders containing the vendor's products; admins see all orders",
)
async def list_vendor_orders(
    actor: VendorActor,
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
