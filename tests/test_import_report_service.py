"""
Tests for import report generation, rendering and storage.
"""

from decimal import Decimal

import pytest

from app.schemas import PendingOrder, MobileOrderItemSchema
from app.services.exceptions import NotFoundError


def order(order_id, code, sales_rep_id, total, items=(), **extra):
    return PendingOrder(
        id=order_id,
        code=code,
        customer_id="C1",
        customer_name=f"Customer {code}",
        sales_rep_id=sales_rep_id,
        sales_rep_name=f"Rep {sales_rep_id}",
        total=Decimal(str(total)),
        items=[
            MobileOrderItemSchema(
                line_number=index, product_name=name, product_code=code_,
                quantity=Decimal(str(quantity)), unit_price=Decimal("1"),
                total=Decimal(str(quantity)),
            )
            for index, (name, code_, quantity) in enumerate(items, start=1)
        ],
        **extra
    )


@pytest.fixture
def orders():
    return [
        order("a", 1, "SR1", 30, [("Coffee", "P1", 10), ("Sugar", "P2", 20)]),
        order("b", 2, "SR2", 100, [("Coffee", "P1", 5)]),
        order("c", 3, "SR1", 0, rejection_reason="Store closed"),
    ]


class TestGenerate:
    def test_summary(self, services, orders):
        report = services.import_report_service.generate(orders, 'import', "maria")

        assert report.operator == "maria"
        assert report.summary.total_orders == 3
        assert report.summary.total_value == Decimal("130")
        assert report.summary.sales_reps_count == 2
        assert report.summary.total_items == 3

    def test_breakdown_sorted_by_value(self, services, orders):
        report = services.import_report_service.generate(orders, 'import', "maria")

        assert [rep.sales_rep_id for rep in report.sales_rep_breakdown] == ["SR2", "SR1"]
        assert report.sales_rep_breakdown[1].orders_count == 2

    def test_top_products_by_quantity(self, services, orders):
        report = services.import_report_service.generate(orders, 'import', "maria")

        assert [(p.product_code, p.total_quantity) for p in report.top_products] == [
            ("P2", Decimal("20")), ("P1", Decimal("15"))
        ]
        assert report.top_products[1].occurrences == 2

    def test_render_rejection_report(self, services, orders):
        report_service = services.import_report_service
        text = report_service.render_text(report_service.generate(orders, 'reject', "maria"))

        assert text.startswith("REJECTION REPORT")
        assert "Operator: maria" in text
        assert "(Store closed)" in text
        assert "1. Sugar [P2]: 20" in text


class TestStorage:
    @pytest.mark.asyncio
    async def test_save_and_reload(self, services, orders):
        report_service = services.import_report_service
        saved = await report_service.save(report_service.generate(orders, 'import', "maria"))

        assert saved.id is not None
        loaded = await report_service.get(saved.id)
        assert loaded.summary == saved.summary
        assert [report.id for report in await report_service.history()] == [saved.id]

    @pytest.mark.asyncio
    async def test_missing_report(self, services):
        with pytest.raises(NotFoundError):
            await services.import_report_service.get("missing")
