"""
Mobile Sync Models Package
==========================

Database models untuk mobile order synchronization.

Domain Structure:
- Core: Base model and shared helpers
- Staging: MobileOrder dan MobileOrderItem dari device sales rep
- Ledger: Order dan OrderItem (canonical order ledger)
- Audit: SyncLog (append-only) dan ImportReport
"""

# ==================== CORE IMPORTS ====================

from .base import BaseModel, utcnow, new_uuid

# ==================== STAGING DOMAIN ====================

from .mobile_order import (
    MobileOrder,
    MobileOrderItem,
    SyncStatus,
)

# ==================== LEDGER DOMAIN ====================

from .order import (
    Order,
    OrderItem,
    OrderSource,
    ImportStatus,
    ImportChannel,
)

# ==================== AUDIT DOMAIN ====================

from .sync_log import (
    SyncLog,
    SyncEventType,
    SyncDataType,
    SyncLogStatus,
    ImportReport,
)

__all__ = [
    'BaseModel', 'utcnow', 'new_uuid',
    'MobileOrder', 'MobileOrderItem', 'SyncStatus',
    'Order', 'OrderItem', 'OrderSource', 'ImportStatus', 'ImportChannel',
    'SyncLog', 'SyncEventType', 'SyncDataType', 'SyncLogStatus', 'ImportReport',
]
