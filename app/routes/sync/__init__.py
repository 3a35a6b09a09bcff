from .mobile_sync_routes import mobile_sync_router
from .import_routes import import_router
from .reconciliation_routes import reconciliation_router
from .sync_log_routes import sync_log_router

__all__ = [
    'mobile_sync_router',
    'import_router',
    'reconciliation_router',
    'sync_log_router'
]
