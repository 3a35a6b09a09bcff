"""
Mobile Sync Routes Module
=========================

API Routes untuk mobile sync application
"""

from .sync import (
    mobile_sync_router, import_router, reconciliation_router, sync_log_router
)

__all__ = [
    'mobile_sync_router',
    'import_router',
    'reconciliation_router',
    'sync_log_router'
]
