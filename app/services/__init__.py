"""
Mobile Sync Services Module
===========================

Complete services layer untuk mobile order sync
Menggunakan dependency injection pattern untuk service management
"""

from .base import BaseService, transactional
from .exceptions import *

# Ledger Domain
from .ledger import LedgerService

# Sync Domain
from .sync import (
    StagingService, IntakeService, GroupingService, ImportService,
    ReconciliationService, SyncLogService, ImportWorkbench, ValidationRules
)

# Integration Domain
from .integration import NotificationService

# Reporting Domain
from .reporting import ImportReportService

__all__ = [
    # Base Classes
    'BaseService', 'transactional',

    # Ledger Domain
    'LedgerService',

    # Sync Domain
    'StagingService', 'IntakeService', 'GroupingService', 'ImportService',
    'ReconciliationService', 'SyncLogService', 'ImportWorkbench', 'ValidationRules',

    # Integration Domain
    'NotificationService',

    # Reporting Domain
    'ImportReportService',

    'ServiceRegistry', 'create_service_registry',
]


class ServiceRegistry:
    """
    Service Registry untuk dependency injection
    Mengelola lifecycle dan dependencies antar services
    """

    def __init__(self, db_session, config: dict, current_user: str = None):
        self.db_session = db_session
        self.config = config
        self.current_user = current_user or config.get('DEFAULT_OPERATOR', 'desktop')
        self._services = {}

        # Initialize core services first
        self._init_core_services()

        # Initialize domain services
        self._init_domain_services()

    def _init_core_services(self):
        """Initialize core services yang diperlukan services lain"""

        # Sync Log (needed by almost all services)
        self._services['sync_log'] = SyncLogService(
            db_session=self.db_session,
            current_user=self.current_user,
            default_limit=self.config.get('SYNC_LOG_DEFAULT_LIMIT', 20)
        )

        # Notification Service
        self._services['notification'] = NotificationService()

        # Ledger Service
        self._services['ledger'] = LedgerService(
            db_session=self.db_session,
            current_user=self.current_user
        )

        # Import reports
        self._services['import_reports'] = ImportReportService(
            db_session=self.db_session,
            current_user=self.current_user
        )

    def _init_domain_services(self):
        """Initialize domain services dengan dependencies"""

        self._services['staging'] = StagingService(
            db_session=self.db_session,
            current_user=self.current_user,
            ledger_service=self._services['ledger']
        )

        self._services['intake'] = IntakeService(
            db_session=self.db_session,
            current_user=self.current_user,
            sync_log_service=self._services['sync_log'],
            notification_service=self._services['notification'],
            staging_service=self._services['staging'],
            rules=ValidationRules(
                require_payment_method=self.config.get('VALIDATION_REQUIRE_PAYMENT_METHOD', True),
                require_customer=self.config.get('VALIDATION_REQUIRE_CUSTOMER', True),
                require_sales_rep=self.config.get('VALIDATION_REQUIRE_SALES_REP', True),
                require_items=self.config.get('VALIDATION_REQUIRE_ITEMS', True),
            ),
            reject_duplicates=self.config.get('REJECT_DUPLICATE_CLIENT_IDS', False)
        )

        self._services['grouping'] = GroupingService(
            db_session=self.db_session,
            current_user=self.current_user,
            sync_log_service=self._services['sync_log'],
            staging_service=self._services['staging']
        )

        self._services['import'] = ImportService(
            db_session=self.db_session,
            current_user=self.current_user,
            sync_log_service=self._services['sync_log'],
            notification_service=self._services['notification'],
            staging_service=self._services['staging'],
            ledger_service=self._services['ledger'],
            report_service=self._services['import_reports']
        )

        self._services['reconciliation'] = ReconciliationService(
            db_session=self.db_session,
            current_user=self.current_user,
            sync_log_service=self._services['sync_log'],
            notification_service=self._services['notification'],
            ledger_service=self._services['ledger']
        )

    def get_service(self, service_name: str):
        """Get service by name"""
        if service_name not in self._services:
            raise ValueError(f"Service '{service_name}' not found")
        return self._services[service_name]

    def create_workbench(self) -> ImportWorkbench:
        """Workbench baru untuk operator saat ini"""
        return ImportWorkbench(
            grouping_service=self.grouping_service,
            import_service=self.import_service,
            operator=self.current_user
        )

    # Convenience methods untuk frequently used services
    @property
    def staging_service(self) -> StagingService:
        return self._services['staging']

    @property
    def intake_service(self) -> IntakeService:
        """Get IntakeService - entry point dari device"""
        return self._services['intake']

    @property
    def grouping_service(self) -> GroupingService:
        return self._services['grouping']

    @property
    def import_service(self) -> ImportService:
        """Get ImportService - import/reject executor"""
        return self._services['import']

    @property
    def reconciliation_service(self) -> ReconciliationService:
        return self._services['reconciliation']

    @property
    def sync_log_service(self) -> SyncLogService:
        return self._services['sync_log']

    @property
    def ledger_service(self) -> LedgerService:
        return self._services['ledger']

    @property
    def notification_service(self) -> NotificationService:
        return self._services['notification']

    @property
    def import_report_service(self) -> ImportReportService:
        return self._services['import_reports']


# Factory function untuk easy service registry creation
def create_service_registry(db_session, config: dict, current_user: str = None) -> ServiceRegistry:
    """Factory function untuk membuat ServiceRegistry"""
    return ServiceRegistry(db_session, config, current_user)
