"""
Ledger Service
==============

Adapter untuk canonical order ledger (tabel orders / order_items).

The import executor writes here through `write_order_from_mobile`; orphan
reconciliation reads and resets rows through `find_orphans` / `reset_orphans`.
"""

from typing import List, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, exists, and_, or_, desc

from ..base import BaseService
from ...models import (
    Order, OrderItem, OrderSource, ImportStatus, ImportChannel, MobileOrder, SyncStatus, utcnow
)


def _orphan_criteria():
    """
    Mobile ledger rows marked imported outside the import executor that no
    staged row accounts for.
    """
    accounted_for = exists().where(and_(
        MobileOrder.sync_status == SyncStatus.IMPORTED,
        MobileOrder.imported_order_id == Order.id
    ))
    return and_(
        Order.source == OrderSource.MOBILE,
        Order.imported.is_(True),
        or_(Order.imported_via.is_(None), Order.imported_via != ImportChannel.EXECUTOR),
        ~accounted_for
    )


def _pending_criteria():
    """Mobile ledger rows returned to the import workflow"""
    return and_(
        Order.source == OrderSource.MOBILE,
        Order.imported.is_(False),
        Order.import_status == ImportStatus.PENDING
    )


class LedgerService(BaseService):
    """Service untuk canonical order ledger"""

    def __init__(self, db_session: AsyncSession, current_user: str = None):
        super().__init__(db_session, current_user)

    async def get_order(self, order_id: str) -> Optional[Order]:
        result = await self.db_session.execute(
            select(Order).filter(Order.id == order_id).execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def write_order_from_mobile(self, staged: MobileOrder, imported_by: str) -> Order:
        """
        Add a ledger row (and items) built from a staged mobile order.

        Only flushes; the caller owns the transaction so the ledger write and
        the staging transition commit or roll back together.
        """
        order = Order(
            code=self._next_code(Order),
            customer_id=staged.customer_id,
            customer_name=staged.customer_name,
            sales_rep_id=staged.sales_rep_id,
            sales_rep_name=staged.sales_rep_name,
            date=staged.date,
            due_date=staged.due_date,
            delivery_date=staged.delivery_date,
            total=staged.total,
            discount=staged.discount,
            status=staged.status or 'pending',
            payment_status=staged.payment_status,
            payment_method=staged.payment_method,
            payment_method_id=staged.payment_method_id,
            payment_table=staged.payment_table,
            payment_table_id=staged.payment_table_id,
            notes=staged.notes,
            rejection_reason=staged.rejection_reason,
            visit_notes=staged.visit_notes,
            source=OrderSource.MOBILE,
            imported=True,
            import_status=ImportStatus.IMPORTED,
            imported_at=utcnow(),
            imported_by=imported_by,
            imported_via=ImportChannel.EXECUTOR,
            mobile_order_id=staged.id,
        )
        order.items = [
            OrderItem(
                line_number=item.line_number,
                product_id=item.product_id,
                product_name=item.product_name,
                product_code=item.product_code,
                quantity=item.quantity,
                unit_price=item.unit_price,
                discount=item.discount,
                total=item.total,
                unit=item.unit,
            )
            for item in staged.items
        ]
        self.db_session.add(order)
        await self._flush_with_code(order)

        self.logger.info(f"Ledger order {order.code} written from mobile order {staged.code}")
        return order

    # ==================== PENDING (RECONCILED) ROWS ====================

    async def get_pending_orders(self, sales_rep_id: Optional[str] = None) -> List[Order]:
        query = select(Order).filter(_pending_criteria())
        if sales_rep_id:
            query = query.filter(Order.sales_rep_id == sales_rep_id)
        result = await self.db_session.execute(
            query.order_by(desc(Order.created_at)).execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_pending_order(self, order_id: str) -> Optional[Order]:
        result = await self.db_session.execute(
            select(Order).filter(Order.id == order_id, _pending_criteria())
        )
        return result.scalars().first()

    async def claim_pending_import(self, order_id: str, imported_by: str) -> bool:
        """Guarded single-statement transition pending -> imported"""
        statement = (
            update(Order)
            .where(Order.id == order_id, _pending_criteria())
            .values(
                imported=True,
                import_status=ImportStatus.IMPORTED,
                imported_at=utcnow(),
                imported_by=imported_by,
                imported_via=ImportChannel.EXECUTOR,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db_session.execute(statement)
        await self.db_session.commit()
        return result.rowcount == 1

    async def claim_pending_reject(self, order_id: str, rejected_by: str) -> bool:
        """Guarded single-statement transition pending -> rejected"""
        statement = (
            update(Order)
            .where(Order.id == order_id, _pending_criteria())
            .values(
                import_status=ImportStatus.REJECTED,
                imported_by=rejected_by,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db_session.execute(statement)
        await self.db_session.commit()
        return result.rowcount == 1

    # ==================== ORPHANS ====================

    async def find_orphans(self) -> List[Order]:
        result = await self.db_session.execute(
            select(Order)
            .filter(_orphan_criteria())
            .order_by(desc(Order.created_at))
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def reset_orphans(self, order_ids: Optional[Sequence[str]] = None) -> List[str]:
        """
        Return orphans to the pending workflow (imported=False, import_status=pending).

        Ids that no longer match the orphan predicate are ignored. Flushes only.
        """
        query = select(Order.id).filter(_orphan_criteria())
        if order_ids is not None:
            if not order_ids:
                return []
            query = query.filter(Order.id.in_(list(order_ids)))
        result = await self.db_session.execute(query)
        matched = [row[0] for row in result.all()]
        if not matched:
            return []

        statement = (
            update(Order)
            .where(Order.id.in_(matched), _orphan_criteria())
            .values(
                imported=False, import_status=ImportStatus.PENDING,
                imported_via=None, updated_at=utcnow()
            )
            .execution_options(synchronize_session=False)
        )
        await self.db_session.execute(statement)
        return matched
