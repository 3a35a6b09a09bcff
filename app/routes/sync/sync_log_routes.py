from fastapi import APIRouter, Depends, Query
from typing import Optional

from app.responses import APIResponse
from app.dependencies import get_service_registry
from app.services import ServiceRegistry

sync_log_router = APIRouter()

@sync_log_router.get(
    "",
    summary="Recent sync events, newest first"
)
async def get_sync_logs(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    sales_rep_id: Optional[str] = Query(None, alias="salesRepId"),
    services: ServiceRegistry = Depends(get_service_registry)
):
    if sales_rep_id:
        logs = await services.sync_log_service.get_logs_for_sales_rep(sales_rep_id, limit or 20)
    else:
        logs = await services.sync_log_service.recent(limit)
    return APIResponse.success(data=[log.to_response() for log in logs])

@sync_log_router.get(
    "/stats",
    summary="Sync statistics"
)
async def get_sync_stats(
    services: ServiceRegistry = Depends(get_service_registry)
):
    stats = await services.sync_log_service.stats()
    return APIResponse.success(data=stats.to_response())

@sync_log_router.delete(
    "",
    summary="Clear the sync log"
)
async def clear_sync_logs(
    services: ServiceRegistry = Depends(get_service_registry)
):
    deleted = await services.sync_log_service.clear()
    message = services.notification_service.render('SYNC_LOGS_CLEARED', deleted=deleted)
    return APIResponse.success(data={"deleted": deleted}, message=message)
