"""
Tests for orphan detection and repair in the canonical ledger.
"""

from decimal import Decimal

import pytest
from sqlalchemy import update

from app.models import Order, OrderItem, OrderSource, ImportStatus, ImportChannel, utcnow
from app.services.exceptions import ReconciliationError


async def add_ledger_order(session, code, source=OrderSource.MOBILE, imported=True, **extra):
    order = Order(
        code=code,
        customer_id="C1",
        customer_name="Mercado Central",
        sales_rep_id="SR1",
        sales_rep_name="Ana",
        date="2024-05-01",
        total=Decimal("40"),
        payment_table_id="PT1",
        source=source,
        imported=imported,
        import_status=ImportStatus.IMPORTED if imported else None,
        **extra
    )
    order.items = [
        OrderItem(line_number=1, product_name="Coffee 500g", product_code="P1",
                  quantity=Decimal("4"), unit_price=Decimal("10"), total=Decimal("40")),
    ]
    session.add(order)
    await session.commit()
    return order.id


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------

class TestDetectOrphans:
    @pytest.mark.asyncio
    async def test_detects_mobile_rows_without_import(self, session, services):
        orphan_id = await add_ledger_order(session, 100)
        await add_ledger_order(session, 101, source=OrderSource.ADMIN)
        await add_ledger_order(session, 102, imported=False)

        orphans = await services.reconciliation_service.detect_orphans()

        assert [orphan.id for orphan in orphans] == [orphan_id]
        assert orphans[0].code == 100
        assert orphans[0].source == 'mobile'

    @pytest.mark.asyncio
    async def test_executor_imports_are_not_orphans(self, session, services, sale_payload):
        result = await services.intake_service.ingest([sale_payload()], "SR1")
        [imported] = await services.import_service.import_selected([result.processed_orders[0].server_id])

        # imported_at plays no part; the executor marker and staged row account for it
        await session.execute(
            update(Order).where(Order.id == imported.ledger_order_id).values(imported_at=None)
        )
        await session.commit()

        ledger = await services.ledger_service.get_order(imported.ledger_order_id)
        assert ledger.imported_via == ImportChannel.EXECUTOR
        assert await services.reconciliation_service.detect_orphans() == []

    @pytest.mark.asyncio
    async def test_writer_that_sets_import_timestamp(self, session, services):
        """A ledger row stamped imported by another writer is still an orphan"""
        orphan_id = await add_ledger_order(session, 100, imported_at=utcnow(), imported_by="legacy")

        [orphan] = await services.reconciliation_service.detect_orphans()
        assert orphan.id == orphan_id

        result = await services.reconciliation_service.fix_orphans()
        assert result.fixed_ids == [orphan_id]

        pending = await services.staging_service.get_pending_orders()
        assert [(order.id, order.origin) for order in pending] == [(orphan_id, 'ledger')]

    @pytest.mark.asyncio
    async def test_failure_is_wrapped_and_logged(self, services, monkeypatch):
        async def broken_find():
            raise RuntimeError("no such table: orders")

        monkeypatch.setattr(services.ledger_service, 'find_orphans', broken_find)

        with pytest.raises(ReconciliationError) as exc_info:
            await services.reconciliation_service.detect_orphans()
        assert 'no such table' in exc_info.value.message

        log = (await services.sync_log_service.recent())[0]
        assert log.event_type == 'error'
        assert log.data_type == 'reconciliation'


# ---------------------------------------------------------------------------
# Fix
# ---------------------------------------------------------------------------

class TestFixOrphans:
    @pytest.mark.asyncio
    async def test_fix_returns_rows_to_pending(self, session, services):
        orphan_id = await add_ledger_order(session, 100)

        result = await services.reconciliation_service.fix_orphans()

        assert result.fixed == 1
        assert result.fixed_ids == [orphan_id]
        assert result.message == "1 orphan order(s) returned to pending."

        ledger = await services.ledger_service.get_order(orphan_id)
        assert ledger.imported is False
        assert ledger.import_status == ImportStatus.PENDING

        pending = await services.staging_service.get_pending_orders()
        assert [(order.id, order.origin) for order in pending] == [(orphan_id, 'ledger')]
        assert await services.reconciliation_service.detect_orphans() == []

    @pytest.mark.asyncio
    async def test_fix_is_idempotent(self, session, services):
        await add_ledger_order(session, 100)
        await services.reconciliation_service.fix_orphans()

        again = await services.reconciliation_service.fix_orphans()
        assert again.fixed == 0
        assert again.message == "No orphan orders to fix."

    @pytest.mark.asyncio
    async def test_fix_selected_ids_only(self, session, services):
        first = await add_ledger_order(session, 100)
        second = await add_ledger_order(session, 101)

        result = await services.reconciliation_service.fix_orphans([second, "unknown"])

        assert result.fixed_ids == [second]
        remaining = await services.reconciliation_service.detect_orphans()
        assert [orphan.id for orphan in remaining] == [first]

    @pytest.mark.asyncio
    async def test_fixed_row_can_be_imported_once(self, session, services):
        orphan_id = await add_ledger_order(session, 100)
        await services.reconciliation_service.fix_orphans()

        [result] = await services.import_service.import_selected([orphan_id], "maria")
        assert result.status == 'imported'
        assert result.origin == 'ledger'
        assert result.code == 100

        ledger = await services.ledger_service.get_order(orphan_id)
        assert ledger.imported is True
        assert ledger.imported_at is not None
        assert ledger.imported_by == "maria"

        [again] = await services.import_service.import_selected([orphan_id])
        assert again.status == 'already_processed'
        assert await services.reconciliation_service.detect_orphans() == []

    @pytest.mark.asyncio
    async def test_fixed_row_can_be_rejected(self, session, services):
        orphan_id = await add_ledger_order(session, 100)
        await services.reconciliation_service.fix_orphans()

        [result] = await services.import_service.reject_selected([orphan_id])

        assert result.status == 'rejected'
        assert result.origin == 'ledger'
        ledger = await services.ledger_service.get_order(orphan_id)
        assert ledger.import_status == ImportStatus.REJECTED
        assert await services.staging_service.get_pending_orders() == []
