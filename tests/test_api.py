"""
API tests: response envelope, intake, import workflow, reconciliation and
sync log endpoints over a temporary SQLite database.
"""

import asyncio
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import NullPool

from app import create_app
from app.database import build_engine, build_session_factory, get_db_session, init_models
from app.models import Order, OrderSource, ImportStatus


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def api_engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path}/api.db", poolclass=NullPool)
    asyncio.run(init_models(engine))
    yield engine
    asyncio.run(engine.dispose())


@pytest.fixture
def client(api_engine):
    factory = build_session_factory(api_engine)

    async def override_session():
        async with factory() as session:
            yield session

    app = create_app()
    app.dependency_overrides[get_db_session] = override_session
    return TestClient(app)


def upload(client, orders, sales_rep_id="SR1"):
    response = client.post(
        "/api/mobile-sync/orders",
        json={"salesRepId": sales_rep_id, "deviceId": "device-9", "orders": orders},
    )
    assert response.status_code == 200
    return response.json()["data"]


# ---------------------------------------------------------------------------
# System
# ---------------------------------------------------------------------------

class TestSystem:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Request-ID" in response.headers


# ---------------------------------------------------------------------------
# Intake
# ---------------------------------------------------------------------------

class TestMobileSync:
    def test_upload_batch(self, client, sale_payload, visit_payload):
        data = upload(client, [sale_payload(id="local-1"), sale_payload(items=[]), visit_payload()])

        assert data["summary"] == {"total": 3, "synced": 2, "validationErrors": 1, "otherErrors": 0}
        statuses = [order["status"] for order in data["processedOrders"]]
        assert statuses == ["synced", "validation_error", "synced"]
        assert data["processedOrders"][0]["localId"] == "local-1"
        assert data["processedOrders"][1]["errorCode"] == "MISSING_ITEMS"

    def test_pull_without_orders(self, client, sale_payload):
        upload(client, [sale_payload()])

        response = client.post("/api/mobile-sync/orders", json={"salesRepId": "SR1"})
        assert response.status_code == 200
        assert len(response.json()["data"]["orders"]) == 1

        response = client.get("/api/mobile-sync/orders/SR2", params={"deviceId": "device-9"})
        assert response.json()["data"]["orders"] == []

    def test_missing_sales_rep(self, client):
        response = client.post("/api/mobile-sync/orders", json={"orders": []})
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# Import workflow
# ---------------------------------------------------------------------------

class TestImportWorkflow:
    def test_pending_and_groups(self, client, sale_payload):
        upload(client, [sale_payload(), sale_payload(paymentTableId=None, paymentTable=None)])

        pending = client.get("/api/mobile-import/pending").json()["data"]
        assert len(pending) == 2
        assert pending[0]["origin"] == "staging"

        [group] = client.get("/api/mobile-import/groups").json()["data"]
        assert group["salesRepId"] == "SR1"
        assert group["pendingOrdersCount"] == 2
        assert group["totalValue"] == 300.0
        assert group["ordersWithIssues"] == 1

        response = client.get("/api/mobile-import/groups/SR9")
        assert response.status_code == 404
        assert response.json()["success"] is False
        assert response.json()["error_code"] == "NOT_FOUND"

    def test_import_then_already_processed(self, client, sale_payload):
        order_id = upload(client, [sale_payload()])["processedOrders"][0]["serverId"]

        response = client.post(
            "/api/mobile-import/import",
            json={"orderIds": [order_id]},
            headers={"X-Operator": "maria"},
        )
        body = response.json()
        assert response.status_code == 200
        assert body["message"] == "1 order(s) imported by maria."
        assert body["data"]["results"][0]["status"] == "imported"
        report_id = body["data"]["reportId"]

        again = client.post("/api/mobile-import/import", json={"orderIds": [order_id]}).json()
        assert again["data"]["results"][0]["status"] == "already_processed"
        assert again["data"]["reportId"] is None

        report = client.get(f"/api/mobile-import/reports/{report_id}", params={"text": True}).json()["data"]
        assert report["operator"] == "maria"
        assert report["text"].startswith("IMPORT REPORT")

    def test_reject(self, client, sale_payload):
        order_id = upload(client, [sale_payload()])["processedOrders"][0]["serverId"]

        body = client.post("/api/mobile-import/reject", json={"orderIds": [order_id]}).json()
        assert body["data"]["results"][0]["status"] == "rejected"
        assert client.get("/api/mobile-import/pending").json()["data"] == []

        staged = client.get(f"/api/mobile-import/orders/{order_id}").json()["data"]
        assert staged["syncStatus"] == "rejected"

    def test_empty_selection_is_rejected(self, client):
        response = client.post("/api/mobile-import/import", json={"orderIds": []})
        assert response.status_code == 422

    def test_unknown_order(self, client):
        response = client.get("/api/mobile-import/orders/missing")
        assert response.status_code == 404


# ---------------------------------------------------------------------------
# Reconciliation and sync logs
# ---------------------------------------------------------------------------

class TestReconciliation:
    def test_detect_and_fix(self, client, api_engine):
        async def add_orphan():
            async with build_session_factory(api_engine)() as session:
                session.add(Order(
                    code=1, customer_id="C1", customer_name="Mercado Central",
                    sales_rep_id="SR1", sales_rep_name="Ana", total=Decimal("40"),
                    source=OrderSource.MOBILE, imported=True, import_status=ImportStatus.IMPORTED,
                ))
                await session.commit()

        asyncio.run(add_orphan())

        orphans = client.get("/api/reconciliation/orphans").json()["data"]
        assert len(orphans) == 1

        body = client.post("/api/reconciliation/orphans/fix").json()
        assert body["data"]["fixed"] == 1
        assert body["message"] == "1 orphan order(s) returned to pending."

        [pending] = client.get("/api/mobile-import/pending").json()["data"]
        assert pending["origin"] == "ledger"
        assert pending["id"] == orphans[0]["id"]

        body = client.post("/api/reconciliation/orphans/fix", json={"orderIds": [pending["id"]]}).json()
        assert body["data"]["fixed"] == 0


class TestSyncLogs:
    def test_logs_stats_and_clear(self, client, sale_payload):
        upload(client, [sale_payload(), sale_payload()])

        logs = client.get("/api/sync-logs", params={"salesRepId": "SR1"}).json()["data"]
        assert logs[0]["eventType"] == "upload"
        assert logs[0]["recordsCount"] == 2

        stats = client.get("/api/sync-logs/stats").json()["data"]
        assert stats["totalImported"] == 2
        assert stats["todayImported"] == 2

        body = client.delete("/api/sync-logs").json()
        assert body["data"]["deleted"] == 1
        assert client.get("/api/sync-logs").json()["data"] == []
