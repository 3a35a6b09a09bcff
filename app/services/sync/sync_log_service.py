"""
Sync Log Service
================

Audit trail untuk event sinkronisasi: append, read dan bulk clear saja.
Entries are never updated once written.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime, time
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func, desc, or_

from ..base import BaseService, transactional
from ...models import SyncLog, SyncEventType, SyncDataType, SyncLogStatus, utcnow
from ...schemas import SyncLogSchema, SyncStatsSchema


class SyncLogService(BaseService):
    """Service untuk sync audit log"""

    def __init__(self, db_session: AsyncSession, current_user: str = None,
                 default_limit: int = 20):
        super().__init__(db_session, current_user)
        self.default_limit = default_limit

    async def append(self, event_type: str, records_count: int = 0,
                     status: str = SyncLogStatus.COMPLETED, sales_rep_id: Optional[str] = None,
                     data_type: str = SyncDataType.ORDERS, error_message: Optional[str] = None,
                     device_id: Optional[str] = None,
                     details: Optional[Dict[str, Any]] = None) -> str:
        """Append one entry and commit; returns the new id"""
        if event_type not in SyncEventType.ALL:
            raise ValueError(f"Unknown sync event type: {event_type}")

        entry = SyncLog(
            event_type=event_type,
            data_type=data_type,
            sales_rep_id=sales_rep_id,
            records_count=records_count,
            status=status,
            error_message=error_message,
            device_id=device_id,
            details=details or {},
        )
        self.db_session.add(entry)
        try:
            await self.db_session.commit()
        except Exception:
            await self.db_session.rollback()
            raise

        self.logger.debug(f"Sync log {event_type}/{status} records={records_count}")
        return entry.id

    async def recent(self, limit: Optional[int] = None) -> List[SyncLogSchema]:
        """Newest first"""
        result = await self.db_session.execute(
            select(SyncLog)
            .order_by(desc(SyncLog.created_at))
            .limit(limit or self.default_limit)
        )
        return [SyncLogSchema.model_validate(entry) for entry in result.scalars().all()]

    async def get_logs_for_sales_rep(self, sales_rep_id: str, limit: int = 20) -> List[SyncLogSchema]:
        result = await self.db_session.execute(
            select(SyncLog)
            .filter(SyncLog.sales_rep_id == sales_rep_id)
            .order_by(desc(SyncLog.created_at))
            .limit(limit)
        )
        return [SyncLogSchema.model_validate(entry) for entry in result.scalars().all()]

    async def stats(self, now: Optional[datetime] = None) -> SyncStatsSchema:
        """
        total/today: records_count of completed order uploads (today = current UTC
        date). failed: error events or failed entries. last: newest completed
        order upload.
        """
        now = now or utcnow()
        start_of_day = datetime.combine(now.date(), time.min)

        completed_upload = (
            (SyncLog.event_type == SyncEventType.UPLOAD)
            & (SyncLog.status == SyncLogStatus.COMPLETED)
            & (SyncLog.data_type == SyncDataType.ORDERS)
        )

        total = await self.db_session.execute(
            select(func.coalesce(func.sum(SyncLog.records_count), 0)).filter(completed_upload)
        )
        today = await self.db_session.execute(
            select(func.coalesce(func.sum(SyncLog.records_count), 0))
            .filter(completed_upload, SyncLog.created_at >= start_of_day)
        )
        failed = await self.db_session.execute(
            select(func.count(SyncLog.id)).filter(or_(
                SyncLog.event_type == SyncEventType.ERROR,
                SyncLog.status == SyncLogStatus.FAILED
            ))
        )
        last = await self.db_session.execute(
            select(func.max(SyncLog.created_at)).filter(completed_upload)
        )

        return SyncStatsSchema(
            total_imported=int(total.scalar() or 0),
            today_imported=int(today.scalar() or 0),
            failed_imports=int(failed.scalar() or 0),
            last_import_timestamp=last.scalar(),
        )

    async def last_upload_by_sales_rep(self) -> Dict[str, datetime]:
        """Newest completed order upload per sales rep"""
        result = await self.db_session.execute(
            select(SyncLog.sales_rep_id, func.max(SyncLog.created_at))
            .filter(
                SyncLog.event_type == SyncEventType.UPLOAD,
                SyncLog.status == SyncLogStatus.COMPLETED,
                SyncLog.data_type == SyncDataType.ORDERS,
                SyncLog.sales_rep_id.is_not(None)
            )
            .group_by(SyncLog.sales_rep_id)
        )
        return {sales_rep_id: last_sync for sales_rep_id, last_sync in result.all()}

    @transactional
    async def clear(self) -> int:
        """Bulk delete every entry; returns the number of deleted rows"""
        result = await self.db_session.execute(delete(SyncLog))
        deleted = result.rowcount or 0
        self.logger.info(f"Cleared {deleted} sync log entries")
        return deleted
