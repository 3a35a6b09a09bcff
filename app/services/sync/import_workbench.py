"""
Import Workbench
================

Operator-facing workflow: groups per sales rep, selection state, dan
import/reject atas order yang dipilih.

Selection lives only in memory; every import/reject clears the processed ids,
refreshes the groups and records an import report.
"""

from typing import List, Optional
import logging

from . import grouping
from .grouping import SelectionState
from ...schemas import SalesRepOrderGroup, OrderProcessResult, ImportReportSchema


class ImportWorkbench:
    """Import workbench untuk satu operator"""

    def __init__(self, grouping_service, import_service, operator: Optional[str] = None):
        self.grouping_service = grouping_service
        self.import_service = import_service
        self.operator = operator
        self.groups: List[SalesRepOrderGroup] = []
        self.selection = SelectionState()
        self.last_report: Optional[ImportReportSchema] = None
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def selected_order_ids(self) -> List[str]:
        """Selected ids in display order, restricted to orders still pending"""
        return [
            order.id
            for group in self.groups for order in group.orders
            if order.id in self.selection.selected_order_ids
        ]

    async def refresh(self) -> List[SalesRepOrderGroup]:
        self.groups = await self.grouping_service.get_groups()
        visible = {order_id for group in self.groups for order_id in group.order_ids}
        self.selection = SelectionState(
            selected_order_ids=self.selection.selected_order_ids & visible,
            selected_sales_rep_ids=frozenset(
                sales_rep_id for sales_rep_id in self.selection.selected_sales_rep_ids
                if any(group.sales_rep_id == sales_rep_id for group in self.groups)
            ),
        )
        return self.groups

    def toggle_order(self, order_id: str) -> SelectionState:
        self.selection = grouping.toggle_order(self.selection, order_id)
        return self.selection

    def toggle_sales_rep(self, sales_rep_id: str) -> SelectionState:
        self.selection = grouping.toggle_sales_rep(self.selection, self.groups, sales_rep_id)
        return self.selection

    def select_all(self) -> SelectionState:
        self.selection = grouping.select_all(self.selection, self.groups)
        return self.selection

    def clear_selection(self) -> SelectionState:
        self.selection = grouping.clear_selection(self.selection)
        return self.selection

    async def import_selected(self) -> List[OrderProcessResult]:
        return await self._process('import')

    async def reject_selected(self) -> List[OrderProcessResult]:
        return await self._process('reject')

    async def _process(self, operation: str) -> List[OrderProcessResult]:
        order_ids = self.selected_order_ids
        if not order_ids:
            self.logger.info(f"Nothing selected to {operation}")
            return []

        if operation == 'import':
            results = await self.import_service.import_selected(order_ids, self.operator)
        else:
            results = await self.import_service.reject_selected(order_ids, self.operator)

        processed = [result.order_id for result in results if result.status != 'error']
        self.selection = self.selection.model_copy(
            update={'selected_order_ids': self.selection.selected_order_ids - set(processed)}
        )

        self.last_report = self.import_service.last_report

        await self.refresh()
        return results
