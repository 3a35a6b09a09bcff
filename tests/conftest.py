"""
Shared fixtures: a temporary file-backed SQLite database per test and
payload factories for device orders.
"""

import uuid

import pytest
import pytest_asyncio
from sqlalchemy.pool import NullPool

from app.config import Settings
from app.database import build_engine, build_session_factory, init_models
from app.services import create_service_registry

PAYMENT_METHOD_ID = "3f2b8c1e-5d4a-4b6f-9a7e-1c2d3e4f5a6b"


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db", poolclass=NullPool)
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_services(settings):
    """Registry factory so a test can build one registry per session/operator"""
    def _make(session, operator="tester", **overrides):
        config = settings.model_dump()
        config.update(overrides)
        return create_service_registry(session, config, current_user=operator)
    return _make


@pytest.fixture
def services(session, make_services):
    return make_services(session)


@pytest.fixture
def sale_payload():
    def _make(**overrides):
        payload = {
            "id": f"local-{uuid.uuid4().hex[:8]}",
            "customerId": "C1",
            "customerName": "Mercado Central",
            "customerCode": "1001",
            "salesRepId": "SR1",
            "salesRepName": "Ana",
            "date": "2024-05-01",
            "total": 150,
            "status": "pending",
            "paymentMethod": "Cash",
            "paymentMethodId": PAYMENT_METHOD_ID,
            "paymentTableId": "PT1",
            "paymentTable": "Standard",
            "items": [
                {"productName": "Coffee 500g", "productCode": "P1", "quantity": 10,
                 "unitPrice": 10, "total": 100},
                {"productName": "Sugar 1kg", "productCode": "P2", "quantity": 5,
                 "unitPrice": 10, "total": 50},
            ],
        }
        payload.update(overrides)
        return payload
    return _make


@pytest.fixture
def visit_payload():
    def _make(**overrides):
        payload = {
            "id": f"visit-{uuid.uuid4().hex[:8]}",
            "customerId": "C2",
            "customerName": "Padaria Sol",
            "salesRepId": "SR1",
            "salesRepName": "Ana",
            "date": "2024-05-01",
            "total": 0,
            "rejectionReason": "Store closed",
            "visitNotes": "Owner travelling",
        }
        payload.update(overrides)
        return payload
    return _make
