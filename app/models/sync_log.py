# app/models/sync_log.py
# Audit trail untuk event sinkronisasi (append-only)

from sqlalchemy import Column, Integer, String, Text, DateTime, Numeric, JSON
from .base import BaseModel, utcnow

class SyncEventType:
    UPLOAD = 'upload'
    DOWNLOAD = 'download'
    ERROR = 'error'

    ALL = (UPLOAD, DOWNLOAD, ERROR)


class SyncDataType:
    ORDERS = 'orders'
    IMPORT = 'import'
    RECONCILIATION = 'reconciliation'


class SyncLogStatus:
    COMPLETED = 'completed'
    FAILED = 'failed'


class SyncLog(BaseModel):
    """Satu event sinkronisasi. Tidak pernah di-update setelah ditulis."""
    __tablename__ = 'sync_logs'

    event_type = Column(String(20), nullable=False, index=True)
    data_type = Column(String(30), default=SyncDataType.ORDERS, nullable=False)
    sales_rep_id = Column(String(100), index=True)
    records_count = Column(Integer, default=0, nullable=False)
    status = Column(String(20), default=SyncLogStatus.COMPLETED, nullable=False)
    error_message = Column(Text)
    device_id = Column(String(100))
    details = Column(JSON)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f'<SyncLog {self.event_type} {self.status} {self.records_count}>'


class ImportReport(BaseModel):
    """Laporan hasil import/reject dari operator"""
    __tablename__ = 'import_reports'

    operation_type = Column(String(20), nullable=False)
    operator = Column(String(100), nullable=False)
    orders_count = Column(Integer, default=0, nullable=False)
    total_value = Column(Numeric(15, 2), default=0, nullable=False)
    sales_reps_count = Column(Integer, default=0, nullable=False)
    report_data = Column(JSON, nullable=False)

    def __repr__(self):
        return f'<ImportReport {self.operation_type} {self.orders_count}>'
