"""
Admin API endpoints.
"""

from fastapi import APIRouter

from storefront.api.deps import CurrentAdmin, DatabaseSession
from storefront.schemas.admin import StatisticsResponse
from storefront.services.admin.service import AdminService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/statistics",
    response_model=StatisticsResponse,
    summary="Platform statistics",
)
async def get_statistics(
    admin: CurrentAdmin,
    db: DatabaseSession,
) -> StatisticsResponse:
    statistics = await AdminService(db).get_statistics()
    return StatisticsResponse(**statistics)
