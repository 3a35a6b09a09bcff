"""
Intake Service
==============

Order Intake Gateway: menerima batch order dari device, validasi per order,
lalu simpan ke staging store.

Orders in a batch are processed sequentially and independently: one bad order
never blocks the others. Each order is written in two phases (order row, then
items); when the items write fails the order row is deleted again.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession

from ..base import BaseService
from ..exceptions import OrderValidationError
from .validation import (
    ValidationRules, DEFAULT_RULES, INVALID_ORDER_DATA, build_validated_order
)
from ...models import SyncEventType, SyncLogStatus, utcnow
from ...schemas import ProcessedOrderResult, IngestSummary, IngestResult, PullResult

PERSISTENCE_ERROR = 'PERSISTENCE_ERROR'
DUPLICATE_ORDER = 'DUPLICATE_ORDER'


class IntakeService(BaseService):
    """Service untuk intake mobile orders"""

    def __init__(self, db_session: AsyncSession, current_user: str = None,
                 sync_log_service=None, notification_service=None,
                 staging_service=None, rules: ValidationRules = DEFAULT_RULES,
                 reject_duplicates: bool = False):
        super().__init__(db_session, current_user, sync_log_service, notification_service)
        self.staging_service = staging_service
        self.rules = rules
        self.reject_duplicates = reject_duplicates

    async def ingest(self, orders: Sequence[Any], sales_rep_id: str,
                     device_id: Optional[str] = None) -> IngestResult:
        """Validate and stage a batch; returns one result per submitted order"""
        self.logger.info(f"Ingesting {len(orders)} order(s) from sales rep {sales_rep_id}")

        processed = []
        for raw in orders:
            processed.append(await self._ingest_one(raw, sales_rep_id, device_id))

        summary = IngestSummary(
            total=len(processed),
            synced=sum(1 for result in processed if result.status == 'synced'),
            validation_errors=sum(1 for result in processed if result.status == 'validation_error'),
        )
        summary.other_errors = summary.total - summary.synced - summary.validation_errors
        all_synced = summary.synced == summary.total

        await self._log_sync_event(
            event_type=SyncEventType.UPLOAD if all_synced else SyncEventType.ERROR,
            status=SyncLogStatus.COMPLETED if all_synced else SyncLogStatus.FAILED,
            records_count=summary.synced,
            sales_rep_id=sales_rep_id,
            device_id=device_id,
            error_message=None if all_synced else self._failure_summary(processed),
            details={
                'summary': summary.model_dump(),
                'failed': [
                    result.model_dump(exclude_none=True)
                    for result in processed if result.status != 'synced'
                ],
            },
        )

        message = self._notify(
            'INGEST_COMPLETED' if all_synced else 'INGEST_PARTIAL',
            sales_rep_id=sales_rep_id, **summary.model_dump()
        )
        return IngestResult(
            processed_orders=processed,
            summary=summary,
            synced_at=utcnow(),
            message=message,
        )

    async def _ingest_one(self, raw: Any, sales_rep_id: str,
                          device_id: Optional[str]) -> ProcessedOrderResult:
        if not isinstance(raw, Mapping):
            return ProcessedOrderResult(
                status='validation_error',
                error_code=INVALID_ORDER_DATA,
                validation_errors=['Order must be an object'],
            )

        local_id = raw.get('id')
        local_id = str(local_id) if local_id is not None else None

        # 1. Validasi
        try:
            order = build_validated_order(raw, self.rules)
        except OrderValidationError as e:
            return ProcessedOrderResult(
                local_id=local_id,
                status='validation_error',
                error_code=e.result.error_code,
                validation_errors=list(e.result.errors),
            )

        # 2. Duplicate guard (opt-in)
        if self.reject_duplicates:
            existing = await self.staging_service.find_by_client_id(order.id, order.sales_rep_id)
            if existing:
                return ProcessedOrderResult(
                    local_id=local_id,
                    server_id=existing.id,
                    code=existing.code,
                    status='duplicate',
                    error_code=DUPLICATE_ORDER,
                    message=f"Order {local_id} was already synced as {existing.code}",
                )

        # 3. Order row
        try:
            staged = await self.staging_service.insert_order(order, sales_rep_id, device_id)
        except Exception as e:
            await self.db_session.rollback()
            self.logger.error(f"Failed to save order {local_id}: {str(e)}")
            return ProcessedOrderResult(
                local_id=local_id,
                status='error',
                error_code=PERSISTENCE_ERROR,
                message="Failed to save order",
            )

        staged_id, staged_code = staged.id, staged.code

        # 4. Items, kompensasi kalau gagal
        try:
            await self.staging_service.insert_items(staged_id, order.items)
        except Exception as e:
            await self.db_session.rollback()
            self.logger.error(f"Failed to save items of order {local_id}: {str(e)}")
            await self._compensate(staged_id)
            return ProcessedOrderResult(
                local_id=local_id,
                status='items_error',
                error_code=PERSISTENCE_ERROR,
                message="Failed to save order items",
            )

        self.logger.debug(f"Order {local_id} staged as {staged_code}")
        return ProcessedOrderResult(
            local_id=local_id,
            server_id=staged_id,
            code=staged_code,
            status='synced',
        )

    async def _compensate(self, order_id: str):
        try:
            await self.staging_service.delete_order(order_id)
        except Exception as e:
            await self.db_session.rollback()
            # Row stays behind without items; visible in the pending view
            self.logger.error(f"Compensating delete of {order_id} failed: {str(e)}")

    @staticmethod
    def _failure_summary(processed: List[ProcessedOrderResult]) -> str:
        counts: Dict[str, int] = {}
        for result in processed:
            if result.status != 'synced':
                counts[result.status] = counts.get(result.status, 0) + 1
        return ', '.join(f"{status}: {count}" for status, count in sorted(counts.items()))

    async def pull(self, sales_rep_id: str, device_id: Optional[str] = None) -> PullResult:
        """Pull mode: pending orders of one sales rep"""
        orders = await self.staging_service.get_pending_orders_by_sales_rep(sales_rep_id)

        await self._log_sync_event(
            event_type=SyncEventType.DOWNLOAD,
            status=SyncLogStatus.COMPLETED,
            records_count=len(orders),
            sales_rep_id=sales_rep_id,
            device_id=device_id,
            details={'mode': 'pull'},
        )
        self._notify('PULL_COMPLETED', count=len(orders), sales_rep_id=sales_rep_id)
        return PullResult(orders=orders, last_sync=utcnow())
