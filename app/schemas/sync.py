"""
Sync Domain Schemas
===================

Schemas untuk grouping per sales rep, sync audit log, orphan reconciliation
dan import reports.
"""

from pydantic import Field
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime
from decimal import Decimal

from .base import BaseSchema, Money
from .mobile_order import PendingOrder


# ==================== GROUPING ====================

class SalesRepOrderGroup(BaseSchema):
    """Derived per-sales-rep view, recomputed on every query"""
    sales_rep_id: str
    sales_rep_name: Optional[str] = None
    orders: List[PendingOrder] = Field(default_factory=list)
    pending_orders_count: int = 0
    visits_count: int = 0
    total_value: Money = Decimal('0')
    orders_with_issues: int = 0

    @property
    def order_ids(self) -> List[str]:
        return [order.id for order in self.orders]


class SalesRepSyncStatus(BaseSchema):
    sales_rep_id: str
    sales_rep_name: Optional[str] = None
    last_sync: Optional[datetime] = None
    pending_orders: int = 0


# ==================== SYNC LOG ====================

class SyncLogSchema(BaseSchema):
    id: str
    event_type: Literal['upload', 'download', 'error']
    data_type: str = 'orders'
    sales_rep_id: Optional[str] = None
    records_count: int = 0
    status: str
    error_message: Optional[str] = None
    device_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    created_at: datetime


class SyncStatsSchema(BaseSchema):
    total_imported: int = 0
    today_imported: int = 0
    failed_imports: int = 0
    last_import_timestamp: Optional[datetime] = None


# ==================== RECONCILIATION ====================

class OrphanOrderSchema(BaseSchema):
    """Ledger row marked imported that never went through the import executor"""
    id: str
    code: int
    customer_id: str
    customer_name: str
    sales_rep_id: Optional[str] = None
    sales_rep_name: Optional[str] = None
    total: Money
    status: str
    source: str
    imported: bool
    mobile_order_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FixOrphansRequest(BaseSchema):
    # None = fix every orphan currently detected
    order_ids: Optional[List[str]] = None


class FixOrphansResult(BaseSchema):
    fixed: int = 0
    fixed_ids: List[str] = Field(default_factory=list)
    message: Optional[str] = None


# ==================== IMPORT REPORTS ====================

class ImportReportOrderLine(BaseSchema):
    id: str
    code: Optional[int] = None
    customer_name: str
    total: Money
    items_count: int = 0
    rejection_reason: Optional[str] = None


class ImportReportSalesRep(BaseSchema):
    sales_rep_id: Optional[str] = None
    sales_rep_name: Optional[str] = None
    orders_count: int = 0
    total_value: Money = Decimal('0')
    orders: List[ImportReportOrderLine] = Field(default_factory=list)


class ImportReportProduct(BaseSchema):
    product_name: str
    product_code: Optional[str] = None
    total_quantity: Money = Decimal('0')
    occurrences: int = 0


class ImportReportSummary(BaseSchema):
    total_orders: int = 0
    total_value: Money = Decimal('0')
    sales_reps_count: int = 0
    total_items: int = 0


class ImportReportSchema(BaseSchema):
    id: Optional[str] = None
    operation_type: Literal['import', 'reject']
    operator: str
    timestamp: datetime
    summary: ImportReportSummary
    sales_rep_breakdown: List[ImportReportSalesRep] = Field(default_factory=list)
    top_products: List[ImportReportProduct] = Field(default_factory=list)
    notes: Optional[str] = None
