"""
Admin dashboard statistics.
"""

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.logging import get_logger
from storefront.database.models import UserRole
from storefront.services.orders.repository import OrderRepository
from storefront.services.products.repository import ProductRepository
from storefront.services.users.repository import UserRepository

logger = get_logger(__name__)


class AdminService:
    """
    Aggregates platform-wide counts for administrators.

    Attributes:
        user_repository: User store
        product_repository: Inventory store
        order_repository: Order store
    """

    def __init__(
        self,
        session: AsyncSession,
        user_repository: Optional[UserRepository] = None,
        product_repository: Optional[ProductRepository] = None,
        order_repository: Optional[OrderRepository] = None,
    ):
        self.user_repository = user_repository or UserRepository(session)
        self.product_repository = product_repository or ProductRepository(session)
        self.order_repository = order_repository or OrderRepository(session)

    async def get_statistics(self) -> dict[str, Any]:
        """
        Get admin dashboard statistics.

        Returns:
            User counts per role, product and order counts, orders per
            status and revenue from orders that were not cancelled
        """
        order_stats = await self.order_repository.get_order_statistics()

        statistics = {
            "total_users": await self.user_repository.count_by_role(),
            "total_customers": await self.user_repository.count_by_role(UserRole.CUSTOMER),
            "total_vendors": await self.user_repository.count_by_role(UserRole.VENDOR),
            "total_admins": await self.user_repository.count_by_role(UserRole.ADMIN),
            "total_products": await self.product_repository.count_products(),
            "total_orders": order_stats["total_orders"],
            "orders_by_status": order_stats["orders_by_status"],
            "total_revenue": order_stats["total_revenue"],
        }

        logger.info(
            "Admin statistics computed",
            total_users=statistics["total_users"],
            total_orders=statistics["total_orders"],
        )

        return statistics
