# File: dispatch_tracker/services/report_service.py
"""
Report aggregation for the dispatch reports page.

Given a (filtered) order set and the SKU reference table, the report
provides:

- Summary KPIs: received, pending, dispatched and completed counts and
  quantities, plus the quantity still to dispatch
- Top SKUs: quantity totals per (oil type, SKU), ranked by ordered quantity
- Order timeline: per-order planned/actual stage timestamps with delays

Oil types are normalized with ``derive_oil_type`` before grouping so that
orders of one SKU recorded with a missing, "unknown" or differently-cased
oil type land in a single bucket.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
from datetime import datetime, time
import logging

from dispatch_tracker.core.config import settings
from dispatch_tracker.core.exceptions import ValidationException
from dispatch_tracker.core.metrics import record_execution_time, counter
from dispatch_tracker.schemas.order import (
    OrderRecord,
    coerce_orders,
    coerce_sku_references,
)
from dispatch_tracker.schemas.report import (
    OrderTimelineEntry,
    ReportFilter,
    ReportResult,
    ReportSummary,
    TopSku,
)
from dispatch_tracker.services.delay_service import stage_timings
from dispatch_tracker.services.sku_service import (
    UNKNOWN_OIL_TYPE,
    SkuCatalog,
    derive_oil_type,
)
from dispatch_tracker.services.stage_registry import ACTUAL_DISPATCH, GATE_OUT
from dispatch_tracker.utils.timestamps import align, newest_first_key

logger = logging.getLogger(__name__)


def _contains(value: Optional[str], needle: str) -> bool:
    return needle.lower() in (value or "").lower()


def _matches(order: OrderRecord, filters: ReportFilter) -> bool:
    if filters.order_no and not (order.order_no or "").lower().startswith(
        filters.order_no.strip().lower()
    ):
        return False
    if filters.customer_name and not _contains(order.customer_name, filters.customer_name):
        return False
    if filters.oil_type and not _contains(order.oil_type, filters.oil_type):
        return False
    if filters.sku_name and not _contains(order.sku_name, filters.sku_name):
        return False
    if filters.from_date or filters.to_date:
        if order.created_at is None:
            return False
        if filters.from_date:
            lower = datetime.combine(filters.from_date, time.min)
            if order.created_at < align(lower, order.created_at):
                return False
        if filters.to_date:
            upper = datetime.combine(filters.to_date, time(23, 59, 59))
            if order.created_at > align(upper, order.created_at):
                return False
    return True


def filter_orders(
    orders: Iterable[Any], filters: Union[ReportFilter, Dict[str, Any], None] = None
) -> List[OrderRecord]:
    """
    Apply report filters to an order set.

    Args:
        orders: Order records, mappings or ORM rows
        filters: ReportFilter or a mapping of its fields

    Returns:
        Matching records, in input order

    Raises:
        ValidationException: If ``from_date`` is after ``to_date``
    """
    if filters is None:
        filters = ReportFilter()
    elif not isinstance(filters, ReportFilter):
        filters = ReportFilter.model_validate(filters)

    if filters.from_date and filters.to_date and filters.from_date > filters.to_date:
        raise ValidationException(
            f"from_date {filters.from_date} is after to_date {filters.to_date}",
            field="from_date",
            value=filters.from_date.isoformat(),
        )

    records = coerce_orders(orders)
    if filters.is_empty():
        return records
    return [order for order in records if _matches(order, filters)]


def compute_summary(orders: List[OrderRecord]) -> ReportSummary:
    dispatched = [o for o in orders if o.actual(ACTUAL_DISPATCH) is not None]
    pending = [o for o in orders if o.actual(GATE_OUT) is None]
    completed = [o for o in orders if o.actual(GATE_OUT) is not None]

    received_kg = sum(o.quantity for o in orders)
    dispatched_kg = sum(o.quantity for o in dispatched)

    return ReportSummary(
        total_received=len(orders),
        total_received_kg=received_kg,
        total_pending_count=len(pending),
        total_pending_kg=sum(o.quantity for o in pending),
        total_dispatched_count=len(dispatched),
        total_dispatched_kg=dispatched_kg,
        total_completed_count=len(completed),
        total_completed_kg=sum(o.quantity for o in completed),
        total_remaining_kg=max(0.0, received_kg - dispatched_kg),
    )


def compute_top_skus(
    orders: List[OrderRecord], catalog: SkuCatalog, limit: Optional[int] = None
) -> List[TopSku]:
    """
    Rank (oil type, SKU) buckets by total ordered quantity.

    Buckets keep the labels of the first order seen; ties keep input order.
    """
    limit = settings.TOP_SKU_LIMIT if limit is None else limit
    buckets: Dict[Tuple[str, str], TopSku] = {}

    for order in orders:
        sku_label = order.product_label or "Unknown"
        derived = derive_oil_type(order.oil_type, order.product_label)
        oil_label = derived.strip() if derived and derived.strip() else UNKNOWN_OIL_TYPE
        key = (oil_label.casefold(), sku_label.upper().strip())

        entry = buckets.get(key)
        if entry is None:
            reference = catalog.get(sku_label)
            entry = TopSku(
                oil_type=oil_label,
                sku=sku_label,
                sku_weight=catalog.weight_for(sku_label),
                nos_per_main_uom=(reference.nos_per_main_uom or 0.0) if reference else 0.0,
                main_uom=reference.main_uom if reference else None,
                alternate_uom=reference.alternate_uom if reference else None,
            )
            buckets[key] = entry

        entry.total_kg += order.quantity
        entry.total_qty += order.alternate_quantity
        entry.total_qty_kg += order.alternate_quantity * entry.sku_weight
        entry.count += 1

    ranked = sorted(buckets.values(), key=lambda e: e.total_kg, reverse=True)
    return ranked[: max(0, limit)]


def build_order_timeline(orders: List[OrderRecord], catalog: SkuCatalog) -> List[OrderTimelineEntry]:
    timeline = []
    for order in orders:
        sku_name = order.product_label
        timeline.append(
            OrderTimelineEntry(
                id=order.id,
                order_no=order.order_no,
                customer_name=order.customer_name,
                oil_type=derive_oil_type(order.oil_type, sku_name),
                sku_name=sku_name,
                order_quantity=order.quantity,
                order_quantity_kg=catalog.to_kg(order.quantity, sku_name),
                sku_weight=catalog.weight_for(sku_name),
                alternate_qty_kg=order.alternate_qty_kg,
                uom=order.uom,
                created_at=order.created_at,
                delivery_date=order.delivery_date,
                stages=stage_timings(order),
            )
        )
    return timeline


def compute_report(
    orders: Iterable[Any],
    sku_refs: Iterable[Any] = (),
    top_limit: Optional[int] = None,
) -> ReportResult:
    """
    Compute the report for an already-filtered order set.

    Args:
        orders: Order records, mappings or ORM rows
        sku_refs: SKU reference records used for kg conversion
        top_limit: Optional override of ``settings.TOP_SKU_LIMIT``

    Returns:
        ReportResult with summary KPIs, top SKUs and per-order timelines
    """
    raw_orders = list(orders or [])
    records = coerce_orders(raw_orders)
    skipped = len(raw_orders) - len(records)
    if skipped:
        logger.warning(f"Report skipped {skipped} unreadable order record(s)")

    catalog = SkuCatalog(coerce_sku_references(sku_refs))
    if not len(catalog):
        logger.debug("No SKU references available; quantities are treated as kg")

    return ReportResult(
        summary=compute_summary(records),
        top_skus=compute_top_skus(records, catalog, top_limit),
        order_timeline=build_order_timeline(records, catalog),
        skipped_records=skipped,
    )


class ReportService:
    """
    Service for generating dispatch reports from the order store.

    Repositories are any objects exposing ``list_orders()`` and
    ``list_sku_references()`` respectively.
    """

    def __init__(self, order_repository=None, sku_repository=None):
        self.order_repository = order_repository
        self.sku_repository = sku_repository
        self.report_requests = counter("reports.requests.total", "Total report requests")

    @record_execution_time("reports.generation_time")
    def get_report(
        self, filters: Union[ReportFilter, Dict[str, Any], None] = None
    ) -> ReportResult:
        """
        Load, filter and aggregate orders.

        Raises:
            ValidationException: If the filters are inconsistent
        """
        if self.order_repository is None:
            raise RuntimeError("ReportService has no order repository configured")
        self.report_requests.increment()

        orders = self.order_repository.list_orders()
        sku_refs = self.sku_repository.list_sku_references() if self.sku_repository else []

        matching = sorted(
            filter_orders(orders, filters), key=lambda o: newest_first_key(o.created_at)
        )
        logger.info(f"Generating report over {len(matching)} of {len(orders)} orders")
        return compute_report(matching, sku_refs)
