"""
Grouping Service
================

Pending orders dikelompokkan per sales rep, plus status sync per sales rep.
"""

from typing import List
from sqlalchemy.ext.asyncio import AsyncSession

from ..base import BaseService
from ..exceptions import NotFoundError
from .grouping import group_orders_by_sales_rep, group_for_sales_rep
from ...schemas import SalesRepOrderGroup, SalesRepSyncStatus


class GroupingService(BaseService):
    """Service untuk grouping pending orders"""

    def __init__(self, db_session: AsyncSession, current_user: str = None,
                 sync_log_service=None, staging_service=None):
        super().__init__(db_session, current_user, sync_log_service)
        self.staging_service = staging_service

    async def get_groups(self) -> List[SalesRepOrderGroup]:
        orders = await self.staging_service.get_pending_orders()
        return group_orders_by_sales_rep(orders)

    async def get_group(self, sales_rep_id: str) -> SalesRepOrderGroup:
        orders = await self.staging_service.get_pending_orders_by_sales_rep(sales_rep_id)
        group = group_for_sales_rep(orders, sales_rep_id)
        if group is None:
            raise NotFoundError('SalesRepOrderGroup', sales_rep_id)
        return group

    async def get_sales_rep_sync_status(self) -> List[SalesRepSyncStatus]:
        """Per sales rep: pending count and last completed upload"""
        groups = await self.get_groups()
        last_uploads = await self.sync_log_service.last_upload_by_sales_rep() if self.sync_log_service else {}

        statuses = {
            group.sales_rep_id: SalesRepSyncStatus(
                sales_rep_id=group.sales_rep_id,
                sales_rep_name=group.sales_rep_name,
                last_sync=last_uploads.get(group.sales_rep_id),
                pending_orders=len(group.orders),
            )
            for group in groups
        }
        # Sales rep yang sudah sync tapi tidak punya pending order
        for sales_rep_id, last_sync in last_uploads.items():
            if sales_rep_id not in statuses:
                statuses[sales_rep_id] = SalesRepSyncStatus(
                    sales_rep_id=sales_rep_id, last_sync=last_sync, pending_orders=0
                )

        return sorted(
            statuses.values(),
            key=lambda status: ((status.sales_rep_name or '').lower(), status.sales_rep_id)
        )

