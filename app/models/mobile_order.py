# app/models/mobile_order.py
# Staging area untuk order dan visit yang dikirim dari device sales rep

from sqlalchemy import (
    Column, Integer, String, ForeignKey, Text, DateTime, Numeric, Boolean,
    event, inspect
)
from sqlalchemy.orm import relationship
from .base import BaseModel

class SyncStatus:
    """Nilai kolom mobile_orders.sync_status"""
    PENDING = 'pending'
    SYNCED = 'synced'
    VALIDATION_ERROR = 'validation_error'
    ITEMS_ERROR = 'items_error'
    IMPORTING = 'importing'
    IMPORTED = 'imported'
    REJECTED = 'rejected'

    CLAIMABLE = (PENDING, SYNCED)
    TERMINAL = (IMPORTED, REJECTED)


class MobileOrder(BaseModel):
    """Order atau visit dari device mobile, menunggu review back-office"""
    __tablename__ = 'mobile_orders'

    # Correlation id generated on the device
    mobile_order_id = Column(String(100), index=True)
    code = Column(Integer, unique=True, nullable=False, index=True)

    # Customer information
    customer_id = Column(String(100), nullable=False)
    customer_name = Column(String(200), nullable=False)
    customer_code = Column(String(50))

    # Sales rep
    sales_rep_id = Column(String(100), nullable=False, index=True)
    sales_rep_name = Column(String(200), nullable=False)

    # Dates as sent by the device
    date = Column(String(40), nullable=False)
    due_date = Column(String(40))
    delivery_date = Column(String(40))

    total = Column(Numeric(15, 2), nullable=False, default=0)
    discount = Column(Numeric(15, 2), default=0)

    # Business status
    status = Column(String(50), default='pending', nullable=False)
    payment_status = Column(String(50), default='pending')
    payment_method = Column(String(100))
    payment_method_id = Column(String(36))
    payment_table = Column(String(100))
    payment_table_id = Column(String(36))

    notes = Column(Text)
    delivery_address = Column(String(255))
    delivery_city = Column(String(100))
    delivery_state = Column(String(50))
    delivery_zip = Column(String(20))

    # Visit data
    rejection_reason = Column(Text)
    visit_notes = Column(Text)

    # Sync workflow
    sync_status = Column(String(30), default=SyncStatus.SYNCED, nullable=False, index=True)
    # Status held before the guarded claim, restored when an import fails
    claimed_from_status = Column(String(30))
    imported_to_orders = Column(Boolean, default=False, nullable=False)
    imported_order_id = Column(String(36), index=True)
    imported_at = Column(DateTime)
    imported_by = Column(String(100))
    rejected_at = Column(DateTime)
    rejected_by = Column(String(100))
    device_id = Column(String(100))

    items = relationship(
        'MobileOrderItem', back_populates='mobile_order',
        cascade='all, delete-orphan', order_by='MobileOrderItem.line_number',
        lazy='selectin'
    )

    def __repr__(self):
        return f'<MobileOrder {self.code} {self.sync_status}>'


class MobileOrderItem(BaseModel):
    """Item dalam mobile order"""
    __tablename__ = 'mobile_order_items'

    mobile_order_id = Column(String(36), ForeignKey('mobile_orders.id', ondelete='CASCADE'), nullable=False, index=True)
    mobile_order = relationship('MobileOrder', back_populates='items')

    line_number = Column(Integer, nullable=False)
    product_id = Column(String(100))
    product_name = Column(String(200), nullable=False)
    product_code = Column(String(50), nullable=False)
    quantity = Column(Numeric(12, 3), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    discount = Column(Numeric(12, 2), default=0)
    total = Column(Numeric(15, 2), nullable=False)
    unit = Column(String(10), default='UN')

    def __repr__(self):
        return f'<MobileOrderItem {self.line_number} {self.product_code}>'


# Fields that may still change after a row reaches imported/rejected
MUTABLE_AFTER_TERMINAL = {
    'sync_status', 'claimed_from_status', 'imported_to_orders', 'imported_order_id',
    'imported_at', 'imported_by', 'rejected_at', 'rejected_by', 'updated_at',
}


@event.listens_for(MobileOrder, 'before_update')
def _guard_terminal_business_fields(mapper, connection, target):
    state = inspect(target)
    previous_status = state.attrs.sync_status.history.deleted
    was_terminal = (previous_status[0] if previous_status else target.sync_status) in SyncStatus.TERMINAL
    if not was_terminal:
        return

    changed = [
        attr.key for attr in state.attrs
        if attr.key not in MUTABLE_AFTER_TERMINAL
        and attr.key != 'items'
        and attr.history.has_changes()
    ]
    if changed:
        from ..services.exceptions import ImmutableOrderError  # Avoid circular import
        raise ImmutableOrderError(target.id, changed)
