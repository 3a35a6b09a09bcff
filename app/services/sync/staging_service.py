"""
Staging Service
===============

Staging area untuk mobile orders: menyimpan order yang lolos validasi dan
menyediakan pending view untuk operator.

Pending view = staged rows with sync_status pending/synced plus ledger rows
returned to the workflow by orphan reconciliation (origin='ledger').
"""

from typing import Any, Iterable, List, Optional, Sequence, Union
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, desc

from ..base import BaseService
from ...models import MobileOrder, MobileOrderItem, SyncStatus, utcnow
from ...schemas import PendingOrder, SaleOrder, VisitOrder, OrderItemData


class StagingService(BaseService):
    """Service untuk staging store (mobile_orders / mobile_order_items)"""

    def __init__(self, db_session: AsyncSession, current_user: str = None,
                 ledger_service=None):
        super().__init__(db_session, current_user)
        self.ledger_service = ledger_service

    # ==================== PENDING VIEW ====================

    async def get_pending_orders(self) -> List[PendingOrder]:
        """Every order awaiting review, newest first"""
        result = await self.db_session.execute(
            select(MobileOrder)
            .filter(MobileOrder.sync_status.in_(SyncStatus.CLAIMABLE))
            .order_by(desc(MobileOrder.created_at))
            .execution_options(populate_existing=True)
        )
        return await self._merge_with_ledger(result.scalars().all())

    async def get_pending_orders_by_sales_rep(self, sales_rep_id: str) -> List[PendingOrder]:
        result = await self.db_session.execute(
            select(MobileOrder)
            .filter(
                MobileOrder.sales_rep_id == sales_rep_id,
                MobileOrder.sync_status.in_(SyncStatus.CLAIMABLE)
            )
            .order_by(desc(MobileOrder.created_at))
            .execution_options(populate_existing=True)
        )
        return await self._merge_with_ledger(result.scalars().all(), sales_rep_id)

    async def _merge_with_ledger(self, staged: Iterable[MobileOrder],
                                 sales_rep_id: Optional[str] = None) -> List[PendingOrder]:
        pending = [self.to_pending(order) for order in staged]
        if self.ledger_service:
            ledger_rows = await self.ledger_service.get_pending_orders(sales_rep_id)
            pending.extend(self.to_pending(order, origin='ledger') for order in ledger_rows)
        pending.sort(key=lambda order: order.created_at or utcnow(), reverse=True)
        return pending

    @staticmethod
    def to_pending(order, origin: str = 'staging') -> PendingOrder:
        """Project a staged or ledger row into the PendingOrder shape"""
        pending = PendingOrder.model_validate(order)
        pending.origin = origin
        if origin == 'ledger':
            pending.sync_status = SyncStatus.PENDING
        return pending

    # ==================== LOOKUPS ====================

    async def get_order_by_id(self, order_id: str) -> Optional[MobileOrder]:
        result = await self.db_session.execute(
            select(MobileOrder)
            .filter(MobileOrder.id == order_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def find_by_client_id(self, mobile_order_id: str,
                                sales_rep_id: Optional[str] = None) -> Optional[MobileOrder]:
        """Staged row for a client-local order id (opt-in duplicate guard)"""
        query = select(MobileOrder).filter(MobileOrder.mobile_order_id == mobile_order_id)
        if sales_rep_id:
            query = query.filter(MobileOrder.sales_rep_id == sales_rep_id)
        result = await self.db_session.execute(query.order_by(MobileOrder.created_at))
        return result.scalars().first()

    # ==================== INTAKE WRITES ====================

    async def insert_order(self, order: Union[SaleOrder, VisitOrder], sales_rep_id: str,
                           device_id: Optional[str] = None) -> MobileOrder:
        """Write and commit the order row (without items)"""
        staged = MobileOrder(
            mobile_order_id=order.id,
            code=self._next_code(MobileOrder),
            customer_id=order.customer_id,
            customer_name=order.customer_name,
            customer_code=order.customer_code,
            sales_rep_id=order.sales_rep_id or sales_rep_id,
            sales_rep_name=order.sales_rep_name,
            date=order.date,
            due_date=order.due_date,
            delivery_date=order.delivery_date,
            total=order.total,
            discount=order.discount,
            status=order.status,
            payment_status=order.payment_status,
            payment_method=order.payment_method,
            payment_method_id=order.payment_method_id,
            payment_table=order.payment_table,
            payment_table_id=order.payment_table_id,
            notes=order.notes,
            delivery_address=order.delivery_address,
            delivery_city=order.delivery_city,
            delivery_state=order.delivery_state,
            delivery_zip=order.delivery_zip,
            rejection_reason=order.rejection_reason,
            visit_notes=order.visit_notes,
            sync_status=SyncStatus.SYNCED,
            imported_to_orders=False,
            device_id=device_id,
        )
        self.db_session.add(staged)
        await self._flush_with_code(staged)
        await self.db_session.commit()
        return staged

    async def insert_items(self, order_id: str, items: Sequence[OrderItemData]) -> List[MobileOrderItem]:
        """Write and commit the item rows; line numbers follow submission order"""
        rows = [
            MobileOrderItem(
                mobile_order_id=order_id,
                line_number=index,
                product_id=item.product_id,
                product_name=item.product_name,
                product_code=item.product_code,
                quantity=item.quantity,
                unit_price=item.unit_price,
                discount=item.discount,
                total=item.total,
                unit=item.unit,
            )
            for index, item in enumerate(items, start=1)
        ]
        if not rows:
            return []
        self.db_session.add_all(rows)
        await self.db_session.commit()
        return rows

    async def delete_order(self, order_id: str) -> bool:
        """Compensating delete for a half-written order; never used otherwise"""
        await self.db_session.execute(
            delete(MobileOrderItem).where(MobileOrderItem.mobile_order_id == order_id)
        )
        result = await self.db_session.execute(
            delete(MobileOrder).where(MobileOrder.id == order_id)
        )
        await self.db_session.commit()
        return result.rowcount == 1

    # ==================== GUARDED TRANSITIONS ====================

    async def update_sync_status(self, order_id: str, from_statuses: Sequence[str],
                                 to_status: str, **values: Any) -> bool:
        """
        Guarded claim: one conditional UPDATE, committed immediately.

        The previous status is kept in claimed_from_status by the same
        statement. Returns True only for the caller whose update matched.
        """
        statement = (
            update(MobileOrder)
            .where(MobileOrder.id == order_id, MobileOrder.sync_status.in_(list(from_statuses)))
            .values(
                sync_status=to_status,
                claimed_from_status=MobileOrder.sync_status,
                updated_at=utcnow(),
                **values
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db_session.execute(statement)
        await self.db_session.commit()
        claimed = result.rowcount == 1
        self.logger.debug(f"Claim {order_id} {list(from_statuses)} -> {to_status}: {claimed}")
        return claimed

    async def revert_claim(self, order_id: str) -> bool:
        """Restore a row stuck in 'importing' to the status it was claimed from"""
        statement = (
            update(MobileOrder)
            .where(MobileOrder.id == order_id, MobileOrder.sync_status == SyncStatus.IMPORTING)
            .values(
                sync_status=MobileOrder.claimed_from_status,
                claimed_from_status=None,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db_session.execute(statement)
        await self.db_session.commit()
        return result.rowcount == 1

    async def mark_imported(self, order_id: str, ledger_order_id: str, imported_by: str) -> bool:
        """importing -> imported; flushes only, committed with the ledger write"""
        statement = (
            update(MobileOrder)
            .where(MobileOrder.id == order_id, MobileOrder.sync_status == SyncStatus.IMPORTING)
            .values(
                sync_status=SyncStatus.IMPORTED,
                imported_to_orders=True,
                imported_order_id=ledger_order_id,
                imported_at=utcnow(),
                imported_by=imported_by,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db_session.execute(statement)
        return result.rowcount == 1

    async def mark_rejected(self, order_id: str, rejected_by: str) -> bool:
        """Guarded pending/synced -> rejected, committed immediately"""
        return await self.update_sync_status(
            order_id, SyncStatus.CLAIMABLE, SyncStatus.REJECTED,
            rejected_at=utcnow(), rejected_by=rejected_by
        )

