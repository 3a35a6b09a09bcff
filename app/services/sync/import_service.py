"""
Import Service
==============

Import/Reject Executor: memindahkan pending orders ke canonical ledger atau
menolaknya.

Every id goes through a guarded claim (one conditional UPDATE, committed
immediately) so concurrent operators can never import the same order twice:
the loser sees `already_processed`. A failed ledger write rolls back and the
claim is reverted to the status it was taken from.
"""

from typing import Dict, List, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession

from ..base import BaseService
from ..exceptions import PersistenceError
from ...models import SyncStatus, SyncEventType, SyncDataType, SyncLogStatus
from ...schemas import OrderProcessResult, PendingOrder, ImportReportSchema

PERSISTENCE_ERROR = 'PERSISTENCE_ERROR'


def _unique(order_ids: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(order_ids))


class ImportService(BaseService):
    """Service untuk import/reject mobile orders"""

    def __init__(self, db_session: AsyncSession, current_user: str = None,
                 sync_log_service=None, notification_service=None,
                 staging_service=None, ledger_service=None, report_service=None):
        super().__init__(db_session, current_user, sync_log_service, notification_service)
        self.staging_service = staging_service
        self.ledger_service = ledger_service
        self.report_service = report_service
        self.last_message: Optional[str] = None
        self.last_report: Optional[ImportReportSchema] = None
        self._snapshots: Dict[str, PendingOrder] = {}

    # ==================== IMPORT ====================

    async def import_selected(self, order_ids: Sequence[str],
                              imported_by: Optional[str] = None) -> List[OrderProcessResult]:
        operator = imported_by or self.current_user
        order_ids = _unique(order_ids)
        self.logger.info(f"Importing {len(order_ids)} order(s) by {operator}")
        self._snapshots = {}

        results = []
        for order_id in order_ids:
            results.append(await self._import_one(order_id, operator))

        await self._finish('import', results, operator)
        return results

    async def _import_one(self, order_id: str, operator: str) -> OrderProcessResult:
        try:
            claimed = await self.staging_service.update_sync_status(
                order_id, SyncStatus.CLAIMABLE, SyncStatus.IMPORTING
            )
        except Exception as e:
            await self.db_session.rollback()
            self.logger.error(f"Failed to claim mobile order {order_id}: {str(e)}")
            return self._error(order_id, "Failed to claim order")

        if claimed:
            return await self._import_staged(order_id, operator)

        # Ledger row returned to pending by reconciliation
        try:
            if await self.ledger_service.claim_pending_import(order_id, operator):
                ledger_order = await self.ledger_service.get_order(order_id)
                self._remember(ledger_order, 'ledger')
                return OrderProcessResult(
                    order_id=order_id, status='imported', origin='ledger',
                    ledger_order_id=order_id, code=ledger_order.code if ledger_order else None,
                )
        except Exception as e:
            await self.db_session.rollback()
            self.logger.error(f"Import of ledger order {order_id} failed: {str(e)}")
            return self._error(order_id, "Failed to import ledger order", 'ledger')

        return await self._unclaimed(order_id)

    async def _import_staged(self, order_id: str, operator: str) -> OrderProcessResult:
        try:
            staged = await self.staging_service.get_order_by_id(order_id)
            ledger_order = await self.ledger_service.write_order_from_mobile(staged, operator)
            ledger_order_id, ledger_code = ledger_order.id, ledger_order.code
            snapshot = self.staging_service.to_pending(staged)

            if not await self.staging_service.mark_imported(order_id, ledger_order_id, operator):
                raise PersistenceError(f"Mobile order {order_id} left the importing state", order_id)
            await self.db_session.commit()
        except Exception as e:
            await self.db_session.rollback()
            self.logger.error(f"Import of mobile order {order_id} failed: {str(e)}")
            await self._revert(order_id)
            return self._error(order_id, "Failed to write ledger order")

        self._snapshots[order_id] = snapshot
        self.logger.info(f"Mobile order {order_id} imported as ledger order {ledger_code}")
        return OrderProcessResult(
            order_id=order_id, status='imported', origin='staging',
            ledger_order_id=ledger_order_id, code=ledger_code,
        )

    async def _revert(self, order_id: str):
        try:
            if not await self.staging_service.revert_claim(order_id):
                self.logger.warning(f"Claim on {order_id} was not in importing state; nothing to revert")
        except Exception as e:
            await self.db_session.rollback()
            # Row stays in 'importing' until an operator intervenes
            self.logger.error(f"Failed to revert claim on {order_id}: {str(e)}")

    # ==================== REJECT ====================

    async def reject_selected(self, order_ids: Sequence[str],
                              rejected_by: Optional[str] = None) -> List[OrderProcessResult]:
        """Terminal: no ledger write and no un-reject"""
        operator = rejected_by or self.current_user
        order_ids = _unique(order_ids)
        self.logger.info(f"Rejecting {len(order_ids)} order(s) by {operator}")
        self._snapshots = {}

        results = []
        for order_id in order_ids:
            results.append(await self._reject_one(order_id, operator))

        await self._finish('reject', results, operator)
        return results

    async def _reject_one(self, order_id: str, operator: str) -> OrderProcessResult:
        try:
            if await self.staging_service.mark_rejected(order_id, operator):
                self._remember(await self.staging_service.get_order_by_id(order_id), 'staging')
                return OrderProcessResult(order_id=order_id, status='rejected', origin='staging')
            if await self.ledger_service.claim_pending_reject(order_id, operator):
                self._remember(await self.ledger_service.get_order(order_id), 'ledger')
                return OrderProcessResult(order_id=order_id, status='rejected', origin='ledger',
                                          ledger_order_id=order_id)
        except Exception as e:
            await self.db_session.rollback()
            self.logger.error(f"Reject of order {order_id} failed: {str(e)}")
            return self._error(order_id, "Failed to reject order")

        return await self._unclaimed(order_id)

    # ==================== HELPERS ====================

    async def _unclaimed(self, order_id: str) -> OrderProcessResult:
        """Claim lost: the row was processed already, or never existed"""
        staged = await self.staging_service.get_order_by_id(order_id)
        if staged:
            return OrderProcessResult(
                order_id=order_id, status='already_processed', origin='staging',
                ledger_order_id=staged.imported_order_id, code=staged.code,
                error_code='ALREADY_PROCESSED',
                message=f"Order is already {staged.sync_status}",
            )
        ledger_order = await self.ledger_service.get_order(order_id)
        if ledger_order:
            return OrderProcessResult(
                order_id=order_id, status='already_processed', origin='ledger',
                ledger_order_id=ledger_order.id, code=ledger_order.code,
                error_code='ALREADY_PROCESSED',
                message=f"Ledger order is {ledger_order.import_status or 'not pending'}",
            )
        return OrderProcessResult(
            order_id=order_id, status='not_found', error_code='NOT_FOUND',
            message=f"Order {order_id} not found",
        )

    @staticmethod
    def _error(order_id: str, message: str, origin: str = 'staging') -> OrderProcessResult:
        return OrderProcessResult(
            order_id=order_id, status='error', origin=origin,
            error_code=PERSISTENCE_ERROR, message=message,
        )

    async def _finish(self, operation: str, results: List[OrderProcessResult], operator: str):
        done_status = 'imported' if operation == 'import' else 'rejected'
        counts: Dict[str, int] = {}
        for result in results:
            counts[result.status] = counts.get(result.status, 0) + 1
        succeeded = counts.get(done_status, 0)
        failed = counts.get('error', 0)

        await self._log_sync_event(
            event_type=SyncEventType.ERROR if failed else SyncEventType.UPLOAD,
            status=SyncLogStatus.FAILED if failed else SyncLogStatus.COMPLETED,
            data_type=SyncDataType.IMPORT,
            records_count=succeeded,
            error_message=f"{failed} order(s) failed to {operation}" if failed else None,
            details={
                'operation': operation,
                'operator': operator,
                'requested': len(results),
                'counts': counts,
                'order_ids': [result.order_id for result in results if result.status == done_status],
            },
        )

        event = f"{operation.upper()}_COMPLETED" if succeeded == len(results) else f"{operation.upper()}_PARTIAL"
        self.last_message = self._notify(
            event,
            operator=operator,
            requested=len(results),
            succeeded=succeeded,
            already_processed=counts.get('already_processed', 0),
            not_found=counts.get('not_found', 0),
            failed=failed,
        )

        self.last_report = await self._record_report(operation, operator)

    def _remember(self, row, origin: str):
        """Snapshot of a processed row for the import report"""
        if row is not None:
            self._snapshots[row.id] = self.staging_service.to_pending(row, origin=origin)

    async def _record_report(self, operation: str, operator: str) -> Optional[ImportReportSchema]:
        """Import report untuk order yang berhasil diproses; never fails the call"""
        if not self.report_service or not self._snapshots:
            return None
        try:
            report = self.report_service.generate(self._snapshots.values(), operation, operator)
            return await self.report_service.save(report)
        except Exception as e:
            await self.db_session.rollback()
            self.logger.warning(f"Failed to save {operation} report: {str(e)}")
            return None
