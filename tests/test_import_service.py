"""
Tests for the import/reject executor: guarded claims, ledger writes, revert on
failure and at-most-once import under concurrent operators.
"""

import asyncio

import pytest

from app.models import SyncStatus, OrderSource, ImportStatus
from app.services.exceptions import ImmutableOrderError


async def stage(services, payloads, sales_rep_id="SR1"):
    result = await services.intake_service.ingest(payloads, sales_rep_id)
    return [processed.server_id for processed in result.processed_orders]


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------

class TestImport:
    @pytest.mark.asyncio
    async def test_import_writes_ledger_order(self, services, sale_payload):
        [order_id] = await stage(services, [sale_payload()])

        [result] = await services.import_service.import_selected([order_id], "maria")

        assert result.status == 'imported'
        assert result.origin == 'staging'
        assert result.code == 1

        staged = await services.staging_service.get_order_by_id(order_id)
        assert staged.sync_status == SyncStatus.IMPORTED
        assert staged.imported_to_orders is True
        assert staged.imported_order_id == result.ledger_order_id
        assert staged.imported_by == "maria"
        assert staged.imported_at is not None

        ledger = await services.ledger_service.get_order(result.ledger_order_id)
        assert ledger.source == OrderSource.MOBILE
        assert ledger.imported is True
        assert ledger.import_status == ImportStatus.IMPORTED
        assert ledger.mobile_order_id == order_id
        assert [item.product_code for item in ledger.items] == ["P1", "P2"]

        assert await services.staging_service.get_pending_orders() == []

    @pytest.mark.asyncio
    async def test_import_visit(self, services, visit_payload):
        [order_id] = await stage(services, [visit_payload()])
        [result] = await services.import_service.import_selected([order_id])

        ledger = await services.ledger_service.get_order(result.ledger_order_id)
        assert ledger.total == 0
        assert ledger.rejection_reason == "Store closed"
        assert ledger.items == []

    @pytest.mark.asyncio
    async def test_second_import_is_already_processed(self, services, sale_payload):
        [order_id] = await stage(services, [sale_payload()])
        await services.import_service.import_selected([order_id])

        [result] = await services.import_service.import_selected([order_id])

        assert result.status == 'already_processed'
        assert result.error_code == 'ALREADY_PROCESSED'
        assert len(await services.ledger_service.find_orphans()) == 0

    @pytest.mark.asyncio
    async def test_unknown_id(self, services):
        [result] = await services.import_service.import_selected(["missing"])
        assert result.status == 'not_found'
        assert services.import_service.last_report is None

    @pytest.mark.asyncio
    async def test_duplicate_ids_processed_once(self, services, sale_payload):
        [order_id] = await stage(services, [sale_payload()])
        results = await services.import_service.import_selected([order_id, order_id])
        assert len(results) == 1

    @pytest.mark.asyncio
    async def test_ledger_failure_reverts_claim(self, services, sale_payload, monkeypatch):
        first, second = await stage(services, [sale_payload(), sale_payload()])
        original_write = services.ledger_service.write_order_from_mobile

        async def flaky_write(staged, imported_by):
            if staged.id == first:
                raise RuntimeError("ledger unavailable")
            return await original_write(staged, imported_by)

        monkeypatch.setattr(services.ledger_service, 'write_order_from_mobile', flaky_write)

        results = await services.import_service.import_selected([first, second])

        assert [result.status for result in results] == ['error', 'imported']
        assert results[0].error_code == 'PERSISTENCE_ERROR'
        assert results[0].message == "Failed to write ledger order"
        staged = await services.staging_service.get_order_by_id(first)
        assert staged.sync_status == SyncStatus.SYNCED
        assert staged.imported_to_orders is False
        assert [order.id for order in await services.staging_service.get_pending_orders()] == [first]
        assert 'failed' in services.import_service.last_message

    @pytest.mark.asyncio
    async def test_audit_and_report(self, services, sale_payload):
        ids = await stage(services, [sale_payload(), sale_payload()])
        await services.import_service.import_selected(ids, "maria")

        log = (await services.sync_log_service.recent())[0]
        assert log.data_type == 'import'
        assert log.records_count == 2
        assert log.details['operator'] == "maria"

        # Import entries do not count as order uploads
        stats = await services.sync_log_service.stats()
        assert stats.total_imported == 2

        report = services.import_service.last_report
        assert report.id is not None
        assert report.operator == "maria"
        assert report.summary.total_orders == 2
        assert services.import_service.last_message == "2 order(s) imported by maria."


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------

class TestConcurrentImport:
    @pytest.mark.asyncio
    async def test_at_most_once(self, session_factory, make_services, sale_payload):
        async with session_factory() as session:
            [order_id] = await stage(make_services(session), [sale_payload()])

        async def operator_import(name):
            async with session_factory() as session:
                services = make_services(session, operator=name)
                [result] = await services.import_service.import_selected([order_id])
                return result.status

        statuses = await asyncio.gather(*(operator_import(f"op{n}") for n in range(4)))

        assert statuses.count('imported') == 1
        assert statuses.count('already_processed') == 3

        async with session_factory() as session:
            services = make_services(session)
            staged = await services.staging_service.get_order_by_id(order_id)
            assert staged.sync_status == SyncStatus.IMPORTED
            ledger = await services.ledger_service.get_order(staged.imported_order_id)
            assert ledger.mobile_order_id == order_id

    @pytest.mark.asyncio
    async def test_different_orders_get_distinct_codes(self, session_factory, make_services,
                                                       sale_payload):
        async with session_factory() as session:
            order_ids = await stage(make_services(session), [sale_payload() for _ in range(4)])

        async def operator_import(name, order_id):
            async with session_factory() as session:
                services = make_services(session, operator=name)
                [result] = await services.import_service.import_selected([order_id])
                return result

        results = await asyncio.gather(*(
            operator_import(f"op{n}", order_id) for n, order_id in enumerate(order_ids)
        ))

        assert [result.status for result in results] == ['imported'] * 4
        assert sorted(result.code for result in results) == [1, 2, 3, 4]


# ---------------------------------------------------------------------------
# Reject
# ---------------------------------------------------------------------------

class TestReject:
    @pytest.mark.asyncio
    async def test_reject_is_terminal(self, services, sale_payload):
        [order_id] = await stage(services, [sale_payload()])

        [rejected] = await services.import_service.reject_selected([order_id], "maria")
        assert rejected.status == 'rejected'
        assert services.import_service.last_report.operation_type == 'reject'

        staged = await services.staging_service.get_order_by_id(order_id)
        assert staged.sync_status == SyncStatus.REJECTED
        assert staged.rejected_by == "maria"

        [again] = await services.import_service.import_selected([order_id])
        assert again.status == 'already_processed'

    @pytest.mark.asyncio
    async def test_rejected_business_fields_are_frozen(self, session, services, sale_payload):
        [order_id] = await stage(services, [sale_payload()])
        await services.import_service.reject_selected([order_id])

        staged = await services.staging_service.get_order_by_id(order_id)
        staged.customer_name = "Someone else"
        with pytest.raises(ImmutableOrderError):
            await session.commit()
        await session.rollback()
