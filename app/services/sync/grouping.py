"""
Grouping & Selection
====================

Pure functions: kelompokkan pending orders per sales rep dan kelola
selection state operator. Nothing here touches the database; groups are
recomputed from the current pending snapshot on every call.
"""

from decimal import Decimal
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence

from pydantic import ConfigDict, Field

from ...schemas import BaseSchema, PendingOrder, SalesRepOrderGroup


def _has_issues(order: PendingOrder) -> bool:
    """Sale tanpa payment table (id maupun nama) dan belum cancelled"""
    return (
        order.total > 0
        and (order.status or '').lower() != 'cancelled'
        and not order.payment_table_id
        and not order.payment_table
    )


def _build_group(sales_rep_id: str, orders: List[PendingOrder]) -> SalesRepOrderGroup:
    sales_rep_name = next((order.sales_rep_name for order in orders if order.sales_rep_name), None)
    return SalesRepOrderGroup(
        sales_rep_id=sales_rep_id,
        sales_rep_name=sales_rep_name,
        orders=orders,
        pending_orders_count=sum(1 for order in orders if order.total > 0),
        visits_count=sum(1 for order in orders if order.is_visit),
        total_value=sum((order.total for order in orders if order.total > 0), Decimal('0')),
        orders_with_issues=sum(1 for order in orders if _has_issues(order)),
    )


def group_orders_by_sales_rep(orders: Iterable[PendingOrder]) -> List[SalesRepOrderGroup]:
    """Groups sorted by sales rep name then id; order within a group is kept"""
    buckets: Dict[str, List[PendingOrder]] = {}
    for order in orders:
        buckets.setdefault(order.sales_rep_id or '', []).append(order)

    groups = [_build_group(sales_rep_id, bucket) for sales_rep_id, bucket in buckets.items()]
    groups.sort(key=lambda group: ((group.sales_rep_name or '').lower(), group.sales_rep_id))
    return groups


def group_for_sales_rep(orders: Iterable[PendingOrder], sales_rep_id: str) -> Optional[SalesRepOrderGroup]:
    selected = [order for order in orders if order.sales_rep_id == sales_rep_id]
    if not selected:
        return None
    return _build_group(sales_rep_id, selected)


# ==================== SELECTION ====================

class SelectionState(BaseSchema):
    """Ephemeral operator selection, never persisted"""
    model_config = ConfigDict(frozen=True)

    selected_order_ids: FrozenSet[str] = Field(default_factory=frozenset)
    selected_sales_rep_ids: FrozenSet[str] = Field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return not self.selected_order_ids


def _find_group(groups: Sequence[SalesRepOrderGroup], sales_rep_id: str) -> Optional[SalesRepOrderGroup]:
    return next((group for group in groups if group.sales_rep_id == sales_rep_id), None)


def toggle_order(state: SelectionState, order_id: str) -> SelectionState:
    if order_id in state.selected_order_ids:
        return state.model_copy(update={'selected_order_ids': state.selected_order_ids - {order_id}})
    return state.model_copy(update={'selected_order_ids': state.selected_order_ids | {order_id}})


def toggle_sales_rep(state: SelectionState, groups: Sequence[SalesRepOrderGroup],
                     sales_rep_id: str) -> SelectionState:
    """Select or deselect every order currently in the sales rep's group"""
    group = _find_group(groups, sales_rep_id)
    group_ids = frozenset(group.order_ids) if group else frozenset()

    if sales_rep_id in state.selected_sales_rep_ids:
        return SelectionState(
            selected_order_ids=state.selected_order_ids - group_ids,
            selected_sales_rep_ids=state.selected_sales_rep_ids - {sales_rep_id},
        )
    return SelectionState(
        selected_order_ids=state.selected_order_ids | group_ids,
        selected_sales_rep_ids=state.selected_sales_rep_ids | {sales_rep_id},
    )


def select_all(state: SelectionState, groups: Sequence[SalesRepOrderGroup]) -> SelectionState:
    return SelectionState(
        selected_order_ids=frozenset(order_id for group in groups for order_id in group.order_ids),
        selected_sales_rep_ids=frozenset(group.sales_rep_id for group in groups),
    )


def clear_selection(state: SelectionState) -> SelectionState:
    return SelectionState()


def is_sales_rep_fully_selected(state: SelectionState, group: SalesRepOrderGroup) -> bool:
    ids = group.order_ids
    return bool(ids) and all(order_id in state.selected_order_ids for order_id in ids)
