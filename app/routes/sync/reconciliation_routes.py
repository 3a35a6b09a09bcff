from fastapi import APIRouter, Depends, Body
from typing import Optional

from app.responses import APIResponse
from app.dependencies import get_service_registry
from app.services import ServiceRegistry
from app.schemas.sync import FixOrphansRequest

reconciliation_router = APIRouter()

@reconciliation_router.get(
    "/orphans",
    summary="Detect orphan orders in the ledger"
)
async def detect_orphans(
    services: ServiceRegistry = Depends(get_service_registry)
):
    orphans = await services.reconciliation_service.detect_orphans()
    return APIResponse.success(
        data=[orphan.to_response() for orphan in orphans],
        message=f"{len(orphans)} orphan order(s) found"
    )

@reconciliation_router.post(
    "/orphans/fix",
    summary="Return orphan orders to the pending workflow"
)
async def fix_orphans(
    request: Optional[FixOrphansRequest] = Body(None),
    services: ServiceRegistry = Depends(get_service_registry)
):
    """
    Without `orderIds` every currently detected orphan is fixed. Ids that are
    no longer orphans are ignored, so repeating the call is harmless.
    """
    order_ids = request.order_ids if request else None
    result = await services.reconciliation_service.fix_orphans(order_ids)
    return APIResponse.success(data=result.to_response(), message=result.message)
