"""
Sync Domain Services
====================

Services untuk intake, staging, grouping, import/reject, reconciliation
dan sync audit log
"""

from .validation import (
    ValidationRules, DEFAULT_RULES, OrderValidationResult,
    validate_mobile_order, validate_order_item, classify_order, build_validated_order
)
from .staging_service import StagingService
from .intake_service import IntakeService
from .grouping import (
    SelectionState, group_orders_by_sales_rep, group_for_sales_rep,
    toggle_order, toggle_sales_rep, select_all, clear_selection, is_sales_rep_fully_selected
)
from .grouping_service import GroupingService
from .import_service import ImportService
from .reconciliation_service import ReconciliationService
from .sync_log_service import SyncLogService
from .import_workbench import ImportWorkbench

__all__ = [
    'ValidationRules', 'DEFAULT_RULES', 'OrderValidationResult',
    'validate_mobile_order', 'validate_order_item', 'classify_order', 'build_validated_order',
    'StagingService', 'IntakeService',
    'SelectionState', 'group_orders_by_sales_rep', 'group_for_sales_rep',
    'toggle_order', 'toggle_sales_rep', 'select_all', 'clear_selection', 'is_sales_rep_fully_selected',
    'GroupingService', 'ImportService', 'ReconciliationService', 'SyncLogService',
    'ImportWorkbench',
]
