"""
Import Report Service
=====================

Laporan hasil import/reject: ringkasan, breakdown per sales rep dan top
products, disimpan di tabel import_reports.
"""

from typing import Dict, Iterable, List, Optional
from decimal import Decimal
from jinja2 import Template
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc

from ..base import BaseService
from ...models import ImportReport, utcnow
from ...schemas import (
    PendingOrder, ImportReportSchema, ImportReportSummary, ImportReportSalesRep,
    ImportReportOrderLine, ImportReportProduct
)

TOP_PRODUCTS_LIMIT = 10

REPORT_TEMPLATE = """\
{{ title }}
Operator: {{ report.operator }}
Date: {{ report.timestamp.strftime('%Y-%m-%d %H:%M:%S') }} UTC

Orders: {{ report.summary.total_orders }}
Total value: {{ '%.2f' | format(report.summary.total_value) }}
Sales reps: {{ report.summary.sales_reps_count }}
Items: {{ report.summary.total_items }}
{% for rep in report.sales_rep_breakdown %}

{{ rep.sales_rep_name or rep.sales_rep_id }}: {{ rep.orders_count }} order(s), {{ '%.2f' | format(rep.total_value) }}
{% for line in rep.orders %}
  #{{ line.code }} {{ line.customer_name }} {{ '%.2f' | format(line.total) }}{% if line.rejection_reason %} ({{ line.rejection_reason }}){% endif %}

{% endfor %}
{% endfor %}
{% if report.top_products %}

Top products:
{% for product in report.top_products %}
  {{ loop.index }}. {{ product.product_name }}{% if product.product_code %} [{{ product.product_code }}]{% endif %}: {{ '%g' | format(product.total_quantity) }}
{% endfor %}
{% endif %}
"""


class ImportReportService(BaseService):
    """Service untuk import reports"""

    def __init__(self, db_session: AsyncSession, current_user: str = None):
        super().__init__(db_session, current_user)
        self.template = Template(REPORT_TEMPLATE, trim_blocks=True, lstrip_blocks=True)

    def generate(self, orders: Iterable[PendingOrder], operation_type: str,
                 operator: Optional[str] = None) -> ImportReportSchema:
        """Build a report from the processed orders (pure, no database access)"""
        orders = list(orders)
        by_sales_rep: Dict[str, ImportReportSalesRep] = {}
        products: Dict[tuple, ImportReportProduct] = {}
        total_items = 0

        for order in orders:
            key = order.sales_rep_id or ''
            rep = by_sales_rep.get(key)
            if rep is None:
                rep = ImportReportSalesRep(sales_rep_id=order.sales_rep_id,
                                           sales_rep_name=order.sales_rep_name)
                by_sales_rep[key] = rep
            rep.orders_count += 1
            rep.total_value += order.total
            rep.orders.append(ImportReportOrderLine(
                id=order.id,
                code=order.code,
                customer_name=order.customer_name,
                total=order.total,
                items_count=len(order.items),
                rejection_reason=order.rejection_reason,
            ))

            for item in order.items:
                total_items += 1
                product_key = (item.product_code or '', item.product_name)
                product = products.get(product_key)
                if product is None:
                    product = ImportReportProduct(product_name=item.product_name,
                                                  product_code=item.product_code)
                    products[product_key] = product
                product.total_quantity += item.quantity
                product.occurrences += 1

        breakdown = sorted(by_sales_rep.values(), key=lambda rep: rep.total_value, reverse=True)
        top_products = sorted(
            products.values(), key=lambda product: product.total_quantity, reverse=True
        )[:TOP_PRODUCTS_LIMIT]

        return ImportReportSchema(
            operation_type=operation_type,
            operator=operator or self.current_user or 'desktop',
            timestamp=utcnow(),
            summary=ImportReportSummary(
                total_orders=len(orders),
                total_value=sum((order.total for order in orders), Decimal('0')),
                sales_reps_count=len(by_sales_rep),
                total_items=total_items,
            ),
            sales_rep_breakdown=breakdown,
            top_products=top_products,
        )

    def render_text(self, report: ImportReportSchema) -> str:
        title = 'IMPORT REPORT' if report.operation_type == 'import' else 'REJECTION REPORT'
        return self.template.render(title=title, report=report)

    async def save(self, report: ImportReportSchema) -> ImportReportSchema:
        record = ImportReport(
            operation_type=report.operation_type,
            operator=report.operator,
            orders_count=report.summary.total_orders,
            total_value=report.summary.total_value,
            sales_reps_count=report.summary.sales_reps_count,
            report_data=report.model_dump(mode='json', exclude={'id'}),
            created_at=report.timestamp,
        )
        self.db_session.add(record)
        await self.db_session.commit()

        self.logger.info(
            f"Saved {report.operation_type} report {record.id}: {report.summary.total_orders} order(s)"
        )
        return report.model_copy(update={'id': record.id})

    async def history(self, limit: int = 50) -> List[ImportReportSchema]:
        result = await self.db_session.execute(
            select(ImportReport).order_by(desc(ImportReport.created_at)).limit(limit)
        )
        return [self._to_schema(record) for record in result.scalars().all()]

    async def get(self, report_id: str) -> ImportReportSchema:
        record = await self._get_or_404(ImportReport, report_id)
        return self._to_schema(record)

    @staticmethod
    def _to_schema(record: ImportReport) -> ImportReportSchema:
        data = dict(record.report_data or {})
        data['id'] = record.id
        return ImportReportSchema.model_validate(data)
