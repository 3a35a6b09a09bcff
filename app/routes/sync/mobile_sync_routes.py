from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from app.responses import APIResponse
from app.dependencies import get_service_registry
from app.services import ServiceRegistry
from app.schemas.mobile_order import MobileSyncRequest

mobile_sync_router = APIRouter()

@mobile_sync_router.post(
    "/orders",
    status_code=status.HTTP_200_OK,
    summary="Upload orders from a mobile device (or pull when no orders are sent)"
)
async def sync_orders(
    request: MobileSyncRequest,
    services: ServiceRegistry = Depends(get_service_registry)
):
    """
    Each order is validated and staged independently; the response carries
    one result per submitted order. Without `orders` this behaves as a pull.
    """
    if request.orders is None:
        result = await services.intake_service.pull(request.sales_rep_id, request.device_id)
        return APIResponse.success(
            data=result.to_response(),
            message=f"{len(result.orders)} pending order(s)"
        )

    result = await services.intake_service.ingest(
        request.orders, request.sales_rep_id, request.device_id
    )
    return APIResponse.success(data=result.to_response(), message=result.message)

@mobile_sync_router.get(
    "/orders/{sales_rep_id}",
    summary="Pull pending orders of a sales rep"
)
async def pull_orders(
    sales_rep_id: str,
    device_id: Optional[str] = Query(None, alias="deviceId"),
    services: ServiceRegistry = Depends(get_service_registry)
):
    result = await services.intake_service.pull(sales_rep_id, device_id)
    return APIResponse.success(
        data=result.to_response(),
        message=f"{len(result.orders)} pending order(s)"
    )
