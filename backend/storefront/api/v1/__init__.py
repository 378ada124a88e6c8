"""
API v1 package initialization.
"""

from storefront.api.v1.admin import router as admin_router
from storefront.api.v1.orders import router as orders_router
from storefront.api.v1.vendor import router as vendor_router

__all__ = ["admin_router", "orders_router", "vendor_router"]
