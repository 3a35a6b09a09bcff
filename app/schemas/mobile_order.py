"""
Mobile Order Schemas
====================

Schemas untuk payload dari device, order yang sudah tervalidasi
(tagged union SaleOrder | VisitOrder), dan response staging.
"""

from pydantic import Field, field_validator
from typing import Any, Dict, List, Literal, Optional, Union
from typing_extensions import Annotated
from datetime import datetime
from decimal import Decimal

from .base import BaseSchema, Money
from .validators import (
    is_valid_uuid, validate_non_negative_number, validate_positive_number
)


# ==================== VALIDATED ORDERS ====================

class OrderItemData(BaseSchema):
    """Item yang sudah lolos validasi"""
    product_id: Optional[str] = None
    product_name: str = Field(min_length=1)
    product_code: str = Field(min_length=1)
    quantity: Decimal
    unit_price: Decimal
    discount: Decimal = Decimal('0')
    total: Decimal
    unit: str = 'UN'

    @field_validator('product_id', 'product_code', mode='before')
    @classmethod
    def coerce_str(cls, v):
        return str(v) if v is not None else v

    @field_validator('quantity')
    @classmethod
    def quantity_positive(cls, v):
        return validate_positive_number(v)

    @field_validator('unit_price', 'total')
    @classmethod
    def amounts_non_negative(cls, v):
        return validate_non_negative_number(v)

    @field_validator('discount', 'unit', mode='before')
    @classmethod
    def default_when_null(cls, v, info):
        if v is None:
            return Decimal('0') if info.field_name == 'discount' else 'UN'
        return v


class _ValidatedOrderBase(BaseSchema):
    id: str
    customer_id: str
    customer_name: str
    customer_code: Optional[str] = None
    sales_rep_id: str
    sales_rep_name: str
    date: str
    due_date: Optional[str] = None
    delivery_date: Optional[str] = None
    discount: Decimal = Decimal('0')
    status: str = 'pending'
    payment_status: str = 'pending'
    payment_table: Optional[str] = None
    payment_table_id: Optional[str] = None
    notes: Optional[str] = None
    delivery_address: Optional[str] = None
    delivery_city: Optional[str] = None
    delivery_state: Optional[str] = None
    delivery_zip: Optional[str] = None
    visit_notes: Optional[str] = None

    @field_validator('id', 'customer_id', 'customer_code', 'sales_rep_id', 'date', mode='before')
    @classmethod
    def coerce_str(cls, v):
        return str(v) if v is not None else v

    @field_validator('discount', 'status', 'payment_status', mode='before')
    @classmethod
    def default_when_null(cls, v, info):
        if v is None:
            return Decimal('0') if info.field_name == 'discount' else 'pending'
        return v


class SaleOrder(_ValidatedOrderBase):
    """Order dengan nilai: payment method dan minimal satu item"""
    kind: Literal['sale'] = 'sale'
    total: Decimal = Field(gt=0)
    payment_method: str
    payment_method_id: str
    items: List[OrderItemData] = Field(min_length=1)
    rejection_reason: Optional[str] = None

    @field_validator('payment_method_id')
    @classmethod
    def payment_method_uuid(cls, v):
        if not is_valid_uuid(v):
            raise ValueError('Payment method ID must be a valid UUID')
        return v


class VisitOrder(_ValidatedOrderBase):
    """Visit tanpa penjualan: total nol dengan alasan penolakan"""
    kind: Literal['visit'] = 'visit'
    total: Decimal = Decimal('0')
    rejection_reason: str = Field(min_length=1)
    payment_method: Optional[str] = None
    payment_method_id: Optional[str] = None
    items: List[OrderItemData] = Field(default_factory=list)

    @field_validator('total')
    @classmethod
    def total_zero(cls, v):
        if v != 0:
            raise ValueError('Visit orders must have a zero total')
        return v


ValidatedOrder = Annotated[Union[SaleOrder, VisitOrder], Field(discriminator='kind')]


# ==================== STAGING RESPONSES ====================

class MobileOrderItemSchema(BaseSchema):
    """Schema untuk MobileOrderItem / OrderItem"""
    id: Optional[str] = None
    line_number: int
    product_id: Optional[str] = None
    product_name: str
    product_code: Optional[str] = None
    quantity: Money
    unit_price: Money
    discount: Optional[Money] = None
    total: Money
    unit: Optional[str] = 'UN'


class PendingOrder(BaseSchema):
    """
    Snapshot of an order awaiting review. `origin` tells where the row lives:
    'staging' for mobile_orders, 'ledger' for orders returned by reconciliation.
    """
    id: str
    origin: Literal['staging', 'ledger'] = 'staging'
    mobile_order_id: Optional[str] = None
    code: Optional[int] = None
    customer_id: str
    customer_name: str
    customer_code: Optional[str] = None
    sales_rep_id: Optional[str] = None
    sales_rep_name: Optional[str] = None
    date: Optional[str] = None
    due_date: Optional[str] = None
    delivery_date: Optional[str] = None
    total: Money = Decimal('0')
    discount: Optional[Money] = None
    status: Optional[str] = None
    payment_status: Optional[str] = None
    payment_method: Optional[str] = None
    payment_method_id: Optional[str] = None
    payment_table: Optional[str] = None
    payment_table_id: Optional[str] = None
    notes: Optional[str] = None
    delivery_address: Optional[str] = None
    delivery_city: Optional[str] = None
    delivery_state: Optional[str] = None
    delivery_zip: Optional[str] = None
    rejection_reason: Optional[str] = None
    visit_notes: Optional[str] = None
    sync_status: str = 'pending'
    imported_to_orders: bool = False
    imported_order_id: Optional[str] = None
    imported_at: Optional[datetime] = None
    imported_by: Optional[str] = None
    items: List[MobileOrderItemSchema] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    @property
    def is_visit(self) -> bool:
        return self.total == 0 and bool(self.rejection_reason)


# ==================== INTAKE ====================

class MobileSyncRequest(BaseSchema):
    """Payload device: kirim orders, atau pull mode kalau orders tidak ada"""
    sales_rep_id: str = Field(min_length=1)
    # Raw dicts so one malformed order cannot reject the whole batch
    orders: Optional[List[Dict[str, Any]]] = None
    device_id: Optional[str] = None


class ProcessedOrderResult(BaseSchema):
    """Hasil per order dari intake"""
    local_id: Optional[str] = None
    server_id: Optional[str] = None
    code: Optional[int] = None
    status: Literal['synced', 'validation_error', 'items_error', 'duplicate', 'error']
    error_code: Optional[str] = None
    validation_errors: List[str] = Field(default_factory=list)
    message: Optional[str] = None


class IngestSummary(BaseSchema):
    total: int = 0
    synced: int = 0
    validation_errors: int = 0
    other_errors: int = 0


class IngestResult(BaseSchema):
    processed_orders: List[ProcessedOrderResult]
    summary: IngestSummary
    synced_at: datetime
    message: Optional[str] = None


class PullResult(BaseSchema):
    orders: List[PendingOrder]
    last_sync: datetime


# ==================== IMPORT / REJECT ====================

class OrderIdsRequest(BaseSchema):
    order_ids: List[str] = Field(min_length=1)


class OrderProcessResult(BaseSchema):
    """Hasil per order dari import/reject"""
    order_id: str
    status: Literal['imported', 'rejected', 'already_processed', 'not_found', 'error']
    origin: Optional[Literal['staging', 'ledger']] = None
    ledger_order_id: Optional[str] = None
    code: Optional[int] = None
    error_code: Optional[str] = None
    message: Optional[str] = None
