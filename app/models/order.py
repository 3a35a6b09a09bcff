# app/models/order.py
# Canonical order ledger: order resmi yang dipakai seluruh sistem bisnis

from sqlalchemy import (
    Column, Integer, String, ForeignKey, Text, DateTime, Numeric, Boolean
)
from sqlalchemy.orm import relationship
from .base import BaseModel

class OrderSource:
    MOBILE = 'mobile'
    ADMIN = 'admin'


class ImportStatus:
    PENDING = 'pending'
    IMPORTED = 'imported'
    REJECTED = 'rejected'


class ImportChannel:
    """Jalur yang menandai order sebagai imported"""
    EXECUTOR = 'executor'


class Order(BaseModel):
    """Canonical ledger order"""
    __tablename__ = 'orders'

    code = Column(Integer, unique=True, nullable=False, index=True)

    customer_id = Column(String(100), nullable=False)
    customer_name = Column(String(200), nullable=False)
    sales_rep_id = Column(String(100), index=True)
    sales_rep_name = Column(String(200))

    date = Column(String(40))
    due_date = Column(String(40))
    delivery_date = Column(String(40))
    total = Column(Numeric(15, 2), nullable=False, default=0)
    discount = Column(Numeric(15, 2), default=0)

    status = Column(String(50), default='pending', nullable=False)
    payment_status = Column(String(50), default='pending')
    payment_method = Column(String(100))
    payment_method_id = Column(String(36))
    payment_table = Column(String(100))
    payment_table_id = Column(String(36))
    notes = Column(Text)
    rejection_reason = Column(Text)
    visit_notes = Column(Text)

    # Mobile import tracking
    source = Column(String(20), default=OrderSource.ADMIN, nullable=False, index=True)
    imported = Column(Boolean, default=False, nullable=False, index=True)
    import_status = Column(String(20))
    imported_at = Column(DateTime)
    imported_by = Column(String(100))
    imported_via = Column(String(20))
    mobile_order_id = Column(String(36), index=True)

    items = relationship(
        'OrderItem', back_populates='order',
        cascade='all, delete-orphan', order_by='OrderItem.line_number',
        lazy='selectin'
    )

    def __repr__(self):
        return f'<Order {self.code} source={self.source} imported={self.imported}>'


class OrderItem(BaseModel):
    """Item order di ledger"""
    __tablename__ = 'order_items'

    order_id = Column(String(36), ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    order = relationship('Order', back_populates='items')

    line_number = Column(Integer, nullable=False)
    product_id = Column(String(100))
    product_name = Column(String(200), nullable=False)
    product_code = Column(String(50))
    quantity = Column(Numeric(12, 3), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    discount = Column(Numeric(12, 2), default=0)
    total = Column(Numeric(15, 2), nullable=False)
    unit = Column(String(10), default='UN')

    def __repr__(self):
        return f'<OrderItem {self.order_id}-{self.line_number}>'
