"""
Schemas Package
===============

Pydantic schemas untuk serialization dan validation
"""

from .base import BaseSchema, Money

# ==================== MOBILE ORDER DOMAIN ====================
from .mobile_order import (
    # Validated orders (tagged union)
    OrderItemData, SaleOrder, VisitOrder, ValidatedOrder,

    # Staging
    MobileOrderItemSchema, PendingOrder,

    # Intake
    MobileSyncRequest, ProcessedOrderResult, IngestSummary, IngestResult, PullResult,

    # Import / reject
    OrderIdsRequest, OrderProcessResult
)

# ==================== SYNC DOMAIN ====================
from .sync import (
    SalesRepOrderGroup, SalesRepSyncStatus,
    SyncLogSchema, SyncStatsSchema,
    OrphanOrderSchema, FixOrphansRequest, FixOrphansResult,
    ImportReportSchema, ImportReportSummary, ImportReportSalesRep,
    ImportReportOrderLine, ImportReportProduct
)

__all__ = [
    'BaseSchema', 'Money',
    'OrderItemData', 'SaleOrder', 'VisitOrder', 'ValidatedOrder',
    'MobileOrderItemSchema', 'PendingOrder',
    'MobileSyncRequest', 'ProcessedOrderResult', 'IngestSummary', 'IngestResult', 'PullResult',
    'OrderIdsRequest', 'OrderProcessResult',
    'SalesRepOrderGroup', 'SalesRepSyncStatus',
    'SyncLogSchema', 'SyncStatsSchema',
    'OrphanOrderSchema', 'FixOrphansRequest', 'FixOrphansResult',
    'ImportReportSchema', 'ImportReportSummary', 'ImportReportSalesRep',
    'ImportReportOrderLine', 'ImportReportProduct',
]
