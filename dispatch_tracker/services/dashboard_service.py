# File: dispatch_tracker/services/dashboard_service.py
"""
Dashboard aggregation over the full order set.

The module-level functions are pure: they take already-loaded orders and the
reference time and never mutate their inputs, so they are safe to call from
concurrent requests. ``DashboardService`` wires them to the order store and
the metrics registry.
"""

from typing import Any, Dict, Iterable, List, Optional
from datetime import datetime
import logging

from dispatch_tracker.core.config import settings
from dispatch_tracker.core.metrics import record_execution_time, count_calls, counter, gauge
from dispatch_tracker.schemas.dashboard import (
    DashboardOrder,
    DashboardSnapshot,
    LegacyDashboardStats,
    RecentActivityEntry,
    StageCount,
)
from dispatch_tracker.schemas.order import OrderRecord, coerce_orders
from dispatch_tracker.services.delay_service import hours_since_last_activity, is_order_delayed
from dispatch_tracker.services.stage_progress_service import compute_stage_progress, stage_done_flags
from dispatch_tracker.services.stage_registry import (
    STAGES,
    ORDER_PUNCH,
    PRE_APPROVAL,
    APPROVAL_OF_ORDER,
    DISPATCH_PLANNING,
    ACTUAL_DISPATCH,
    MAKE_INVOICE,
    GATE_OUT,
    MATERIAL_RECEIPT,
    FINAL_DELIVERY,
)
from dispatch_tracker.utils.timestamps import (
    is_on_or_after,
    local_now,
    newest_first_key,
    start_of_day,
)

logger = logging.getLogger(__name__)

CANCELLED_MARKERS = ("reject", "cancel")


def is_final_delivered(order: OrderRecord) -> bool:
    return order.actual(FINAL_DELIVERY) is not None


def is_gate_out_done(order: OrderRecord) -> bool:
    return order.actual(GATE_OUT) is not None


def is_cancelled(order: OrderRecord) -> bool:
    status = (order.overall_status_of_order or "").lower()
    return any(marker in status for marker in CANCELLED_MARKERS)


def order_status(order: OrderRecord) -> str:
    """
    Display status of an order.

    Orders past Gate Out or Final Delivery are "completed"; otherwise the
    free-text overall status (lowercased), or "pending" when none is set.
    """
    if is_final_delivered(order) or is_gate_out_done(order):
        return "completed"
    status = (order.overall_status_of_order or "").strip()
    if status:
        return status.lower()
    return "pending"


def compute_stage_counts(orders: List[OrderRecord]) -> List[StageCount]:
    """
    Pending and completed counts per stage.

    An order is pending at a stage when the preceding stage is done and this
    one is not. Order Punch counts every order as completed.
    """
    flags_per_order = [stage_done_flags(order) for order in orders]
    counts = []
    for stage in STAGES:
        if stage.index == ORDER_PUNCH:
            pending, completed = 0, len(orders)
        else:
            pending = sum(
                1 for flags in flags_per_order if flags[stage.index - 1] and not flags[stage.index]
            )
            completed = sum(1 for flags in flags_per_order if flags[stage.index])
        counts.append(
            StageCount(id=stage.id, label=stage.label, pending=pending, completed=completed, count=pending)
        )
    return counts


def enrich_order(
    order: OrderRecord, now: datetime, threshold_hours: Optional[float] = None
) -> DashboardOrder:
    progress = compute_stage_progress(order)
    idle_hours = hours_since_last_activity(order, now)
    return DashboardOrder(
        id=order.id,
        order_no=order.order_no,
        customer_name=order.customer_name,
        created_at=order.created_at,
        stage=progress.current_stage_id,
        stage_label=progress.current_stage_label,
        stage_index=progress.current_stage_index,
        completed_stages=progress.completed_stages,
        total_stages=progress.total_stages,
        stage_progress=progress.stage_progress,
        status=order_status(order),
        hours_since_last_activity=round(idle_hours, 2) if idle_hours is not None else None,
        delayed=is_order_delayed(order, now, threshold_hours),
    )


def _delivered_at(order: OrderRecord) -> Optional[datetime]:
    return order.actual(MATERIAL_RECEIPT) or order.actual(FINAL_DELIVERY)


def compute_dashboard(
    orders: Iterable[Any],
    now: datetime,
    threshold_hours: Optional[float] = None,
) -> DashboardSnapshot:
    """
    Compute the dashboard snapshot for the whole order set.

    Args:
        orders: Order records, mappings or ORM rows
        now: Reference time for aging and the "today" window
        threshold_hours: Optional override of ``settings.DELAY_THRESHOLD_HOURS``

    Returns:
        DashboardSnapshot with global counts, stage counts, enriched order
        rows and today's activity counters
    """
    raw_orders = list(orders or [])
    records = coerce_orders(raw_orders)
    skipped = len(raw_orders) - len(records)
    if skipped:
        logger.warning(f"Dashboard skipped {skipped} unreadable order record(s)")

    records = sorted(records, key=lambda o: newest_first_key(o.created_at))
    rows = [enrich_order(order, now, threshold_hours) for order in records]

    midnight = start_of_day(now)

    return DashboardSnapshot(
        generated_at=now,
        total=len(records),
        active=sum(1 for order in records if not is_final_delivered(order)),
        completed=sum(1 for order in records if is_gate_out_done(order)),
        delayed=sum(1 for row in rows if row.delayed),
        cancelled=sum(1 for order in records if is_cancelled(order)),
        stage_counts=compute_stage_counts(records),
        recent_orders=rows,
        pending_orders=[
            row for order, row in zip(records, rows) if not is_final_delivered(order)
        ],
        completed_orders=[
            row for order, row in zip(records, rows) if is_gate_out_done(order)
        ],
        created_today=sum(1 for o in records if is_on_or_after(o.created_at, midnight)),
        dispatched_today=sum(
            1 for o in records if is_on_or_after(o.actual(ACTUAL_DISPATCH), midnight)
        ),
        invoiced_today=sum(
            1 for o in records if is_on_or_after(o.actual(MAKE_INVOICE), midnight)
        ),
        delivered_today=sum(1 for o in records if is_on_or_after(_delivered_at(o), midnight)),
        skipped_records=skipped,
    )


def compute_legacy_stats(orders: Iterable[Any]) -> LegacyDashboardStats:
    """Counts for the legacy four-stage dashboard widgets."""
    records = coerce_orders(orders)

    def waiting_on(index: int) -> int:
        return sum(
            1 for o in records if o.planned(index) is not None and o.actual(index) is None
        )

    return LegacyDashboardStats(
        total_orders=len(records),
        pending_pre_approval=waiting_on(PRE_APPROVAL),
        pending_approval=waiting_on(APPROVAL_OF_ORDER),
        completed_orders=sum(1 for o in records if o.actual(DISPATCH_PLANNING) is not None),
    )


def recent_activity(orders: Iterable[Any], limit: Optional[int] = None) -> List[RecentActivityEntry]:
    """Newest orders by creation time."""
    limit = settings.RECENT_ACTIVITY_LIMIT if limit is None else limit
    records = sorted(coerce_orders(orders), key=lambda o: newest_first_key(o.created_at))
    return [
        RecentActivityEntry(
            id=o.id,
            order_no=o.order_no,
            customer_name=o.customer_name,
            created_at=o.created_at,
            overall_status_of_order=o.overall_status_of_order,
        )
        for o in records[: max(0, limit)]
    ]


class DashboardService:
    """
    Service for generating dashboard data from the order store.

    The order store is any object with a ``list_orders()`` method; without
    one, callers pass orders to the computation methods directly.
    """

    def __init__(self, order_repository=None, delay_threshold_hours: Optional[float] = None):
        """
        Initialize dashboard service with dependencies.

        Args:
            order_repository: Optional repository providing ``list_orders()``
            delay_threshold_hours: Optional override of the staleness threshold
        """
        self.order_repository = order_repository
        self.delay_threshold_hours = delay_threshold_hours

        self.dashboard_requests = counter(
            "dashboard.requests.total", "Total dashboard data requests"
        )
        self.active_orders_gauge = gauge("dashboard.active_orders", "Number of active orders")
        self.delayed_orders_gauge = gauge("dashboard.delayed_orders", "Number of delayed orders")

    def _load_orders(self) -> List[Any]:
        if self.order_repository is None:
            raise RuntimeError("DashboardService has no order repository configured")
        return self.order_repository.list_orders()

    @record_execution_time("dashboard.generation_time")
    def compute(self, orders: Iterable[Any], now: Optional[datetime] = None) -> DashboardSnapshot:
        self.dashboard_requests.increment()
        snapshot = compute_dashboard(
            orders, now or local_now(), threshold_hours=self.delay_threshold_hours
        )
        self.active_orders_gauge.set(snapshot.active)
        self.delayed_orders_gauge.set(snapshot.delayed)
        logger.debug(
            f"Dashboard computed: total={snapshot.total} active={snapshot.active} "
            f"delayed={snapshot.delayed}"
        )
        return snapshot

    @count_calls("dashboard.overview.calls")
    def get_overview(self, now: Optional[datetime] = None) -> DashboardSnapshot:
        """
        Load every order and compute the dashboard snapshot.

        Store errors are logged and re-raised; the caller owns recovery.
        """
        try:
            orders = self._load_orders()
        except Exception as e:
            logger.error(f"Error loading orders for dashboard: {str(e)}", exc_info=True)
            counter("dashboard.errors", "Dashboard generation errors").increment()
            raise
        return self.compute(orders, now)

    def get_stats(self) -> Dict[str, Any]:
        """Legacy four-stage stats together with the latest activity."""
        orders = self._load_orders()
        return {
            "stats": compute_legacy_stats(orders),
            "recent_activity": recent_activity(orders),
        }
