from fastapi import APIRouter, Depends, Query

from app.responses import APIResponse
from app.dependencies import get_service_registry
from app.services import ServiceRegistry
from app.services.exceptions import NotFoundError
from app.schemas.mobile_order import OrderIdsRequest

import_router = APIRouter()

@import_router.get(
    "/pending",
    summary="List orders awaiting import or rejection"
)
async def get_pending_orders(
    services: ServiceRegistry = Depends(get_service_registry)
):
    orders = await services.staging_service.get_pending_orders()
    return APIResponse.success(data=[order.to_response() for order in orders])

@import_router.get(
    "/groups",
    summary="Pending orders grouped by sales rep"
)
async def get_groups(
    services: ServiceRegistry = Depends(get_service_registry)
):
    groups = await services.grouping_service.get_groups()
    return APIResponse.success(data=[group.to_response() for group in groups])

@import_router.get(
    "/groups/{sales_rep_id}",
    summary="Pending orders of one sales rep"
)
async def get_group(
    sales_rep_id: str,
    services: ServiceRegistry = Depends(get_service_registry)
):
    group = await services.grouping_service.get_group(sales_rep_id)
    return APIResponse.success(data=group.to_response())

@import_router.get(
    "/orders/{order_id}",
    summary="Get a single staged order with items"
)
async def get_order(
    order_id: str,
    services: ServiceRegistry = Depends(get_service_registry)
):
    staged = await services.staging_service.get_order_by_id(order_id)
    if staged:
        return APIResponse.success(data=services.staging_service.to_pending(staged).to_response())

    ledger_order = await services.ledger_service.get_pending_order(order_id)
    if ledger_order:
        pending = services.staging_service.to_pending(ledger_order, origin='ledger')
        return APIResponse.success(data=pending.to_response())

    raise NotFoundError('MobileOrder', order_id)

@import_router.post(
    "/import",
    summary="Import the given orders into the order ledger"
)
async def import_orders(
    request: OrderIdsRequest,
    services: ServiceRegistry = Depends(get_service_registry)
):
    """
    Orders already imported or rejected (by this or another operator) come
    back as `already_processed`; a failed ledger write leaves the order pending.
    """
    results = await services.import_service.import_selected(request.order_ids)
    report = services.import_service.last_report
    return APIResponse.success(
        data={
            "results": [result.to_response() for result in results],
            "reportId": report.id if report else None
        },
        message=services.import_service.last_message
    )

@import_router.post(
    "/reject",
    summary="Reject the given orders"
)
async def reject_orders(
    request: OrderIdsRequest,
    services: ServiceRegistry = Depends(get_service_registry)
):
    results = await services.import_service.reject_selected(request.order_ids)
    report = services.import_service.last_report
    return APIResponse.success(
        data={
            "results": [result.to_response() for result in results],
            "reportId": report.id if report else None
        },
        message=services.import_service.last_message
    )

@import_router.get(
    "/sales-reps/status",
    summary="Pending count and last sync per sales rep"
)
async def get_sales_rep_status(
    services: ServiceRegistry = Depends(get_service_registry)
):
    statuses = await services.grouping_service.get_sales_rep_sync_status()
    return APIResponse.success(data=[item.to_response() for item in statuses])

@import_router.get(
    "/reports",
    summary="Import/reject report history"
)
async def get_reports(
    limit: int = Query(50, ge=1, le=500),
    services: ServiceRegistry = Depends(get_service_registry)
):
    reports = await services.import_report_service.history(limit)
    return APIResponse.success(data=[report.to_response() for report in reports])

@import_router.get(
    "/reports/{report_id}",
    summary="Get a single import report"
)
async def get_report(
    report_id: str,
    text: bool = Query(False, description="Include the rendered text version"),
    services: ServiceRegistry = Depends(get_service_registry)
):
    report = await services.import_report_service.get(report_id)
    data = report.to_response()
    if text:
        data["text"] = services.import_report_service.render_text(report)
    return APIResponse.success(data=data)
