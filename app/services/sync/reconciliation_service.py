"""
Reconciliation Service
======================

Deteksi dan perbaikan orphan orders di ledger: baris mobile yang ditandai
imported tanpa pernah melewati import executor.

Manual trigger only. Fixing returns rows to the pending workflow where they can
be imported or rejected like any staged order; re-running a fix is a no-op.
"""

from typing import List, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession

from ..base import BaseService
from ..exceptions import ReconciliationError
from ...models import SyncEventType, SyncDataType, SyncLogStatus
from ...schemas import OrphanOrderSchema, FixOrphansResult


class ReconciliationService(BaseService):
    """Service untuk orphan reconciliation"""

    def __init__(self, db_session: AsyncSession, current_user: str = None,
                 sync_log_service=None, notification_service=None, ledger_service=None):
        super().__init__(db_session, current_user, sync_log_service, notification_service)
        self.ledger_service = ledger_service

    async def detect_orphans(self) -> List[OrphanOrderSchema]:
        try:
            orphans = await self.ledger_service.find_orphans()
        except Exception as e:
            await self.db_session.rollback()
            raise await self._fail('detect', e) from e

        self.logger.info(f"Detected {len(orphans)} orphan order(s)")
        return [OrphanOrderSchema.model_validate(order) for order in orphans]

    async def fix_orphans(self, order_ids: Optional[Sequence[str]] = None) -> FixOrphansResult:
        """Reset orphans (all, or the given ids) to imported=False / pending"""
        try:
            fixed_ids = await self.ledger_service.reset_orphans(order_ids)
            await self.db_session.commit()
        except Exception as e:
            await self.db_session.rollback()
            self._notify('ORPHANS_FIX_FAILED', error=str(e))
            raise await self._fail('fix', e) from e

        if fixed_ids:
            await self._log_sync_event(
                event_type=SyncEventType.UPLOAD,
                status=SyncLogStatus.COMPLETED,
                data_type=SyncDataType.RECONCILIATION,
                records_count=len(fixed_ids),
                details={'operation': 'fix_orphans', 'order_ids': fixed_ids,
                         'operator': self.current_user},
            )

        message = self._notify('ORPHANS_FIXED', fixed=len(fixed_ids))
        self.logger.info(f"Fixed {len(fixed_ids)} orphan order(s)")
        return FixOrphansResult(fixed=len(fixed_ids), fixed_ids=fixed_ids, message=message)

    async def _fail(self, operation: str, error: Exception) -> ReconciliationError:
        self.logger.error(f"Orphan {operation} failed: {str(error)}")
        await self._log_sync_event(
            event_type=SyncEventType.ERROR,
            status=SyncLogStatus.FAILED,
            data_type=SyncDataType.RECONCILIATION,
            error_message=str(error),
            details={'operation': f"{operation}_orphans", 'operator': self.current_user},
        )
        return ReconciliationError(
            f"Failed to {operation} orphan orders: {str(error)}",
            details={'operation': operation}
        )
