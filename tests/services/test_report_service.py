# tests/services/test_report_service.py
from datetime import date, datetime

import pytest

from dispatch_tracker.core.exceptions import ValidationException
from dispatch_tracker.schemas.order import SkuReference, coerce_orders
from dispatch_tracker.schemas.report import ReportFilter
from dispatch_tracker.services.report_service import (
    ReportService,
    compute_report,
    compute_summary,
    compute_top_skus,
    filter_orders,
)
from dispatch_tracker.services.sku_service import SkuCatalog


@pytest.fixture()
def sku_refs():
    return [
        SkuReference(
            sku_name="SBO 15KG TIN",
            sku_weight=15,
            nos_per_main_uom=1,
            main_uom="TIN",
            alternate_uom="KG",
        ),
        {"sku_name": "RBO 1L POUCH", "sku_weight": "0.91", "nos_per_main_uom": "12"},
    ]


class FakeOrderRepository:
    def __init__(self, orders):
        self.orders = orders

    def list_orders(self):
        return self.orders


class FakeSkuRepository:
    def __init__(self, refs):
        self.refs = refs

    def list_sku_references(self):
        return self.refs


def test_summary(make_order):
    orders = coerce_orders(
        [
            make_order(done=13, order_quantity=100),
            make_order(done=4, order_quantity=50),
            make_order(done=1, order_quantity=30),
        ]
    )

    summary = compute_summary(orders)

    assert summary.total_received == 3
    assert summary.total_received_kg == 180
    assert summary.total_dispatched_count == 2
    assert summary.total_dispatched_kg == 150
    assert summary.total_pending_count == 2
    assert summary.total_pending_kg == 80
    assert summary.total_completed_count == 1
    assert summary.total_completed_kg == 100
    assert summary.total_remaining_kg == 30


def test_remaining_kg_is_never_negative(make_order):
    orders = coerce_orders(
        [
            make_order(done=13, order_quantity=100),
            make_order(done=0, order_quantity=-150),
        ]
    )

    assert compute_summary(orders).total_remaining_kg == 0


def test_top_skus_are_capped_and_sorted(make_order):
    orders = coerce_orders(
        [make_order(sku_name=f"SKU {i}", order_quantity=i * 10) for i in range(1, 26)]
    )

    top = compute_top_skus(orders, SkuCatalog(), limit=20)

    assert len(top) == 20
    totals = [entry.total_kg for entry in top]
    assert totals == sorted(totals, reverse=True)
    assert top[0].sku == "SKU 25"


def test_top_skus_default_cap(make_order):
    orders = [make_order(sku_name=f"SKU {i}", order_quantity=1) for i in range(30)]

    result = compute_report(orders)

    assert len(result.top_skus) == 20
    # ties keep input order
    assert [entry.sku for entry in result.top_skus[:3]] == ["SKU 0", "SKU 1", "SKU 2"]


def test_top_sku_buckets_coalesce_oil_type_variants(make_order, sku_refs):
    orders = [
        make_order(sku_name="SBO 15KG TIN", oil_type=None, order_quantity=10, alternate_qty_kg=150),
        make_order(sku_name="sbo 15kg tin", oil_type="soya oil", order_quantity=5, alternate_qty_kg=75),
        make_order(sku_name=None, product_name="Groundnut 1L", order_quantity=2),
    ]

    top = compute_report(orders, sku_refs).top_skus

    assert len(top) == 2
    soya = top[0]
    assert soya.oil_type == "Soya Oil"
    assert soya.sku == "SBO 15KG TIN"
    assert soya.count == 2
    assert soya.total_kg == 15
    assert soya.total_qty == 225
    assert soya.total_qty_kg == 225 * 15
    assert soya.sku_weight == 15
    assert soya.main_uom == "TIN"
    assert top[1].oil_type == "Unknown"
    assert top[1].sku == "Groundnut 1L"
    assert top[1].sku_weight == 0


def test_order_timeline_converts_to_kg(make_order, sku_refs):
    orders = [
        make_order(order_no="DO-1", sku_name="SBO 15KG TIN", order_quantity=10, done=2),
        make_order(order_no="DO-2", sku_name="Loose Palm", order_quantity=40, done=0),
    ]

    timeline = compute_report(orders, sku_refs).order_timeline

    assert timeline[0].order_quantity_kg == 150
    assert timeline[0].oil_type == "Soya Oil"
    assert timeline[0].sku_weight == 15
    assert [stage.stage for stage in timeline[0].stages] == [
        "Pre Approval",
        "Approval of Order",
        "Dispatch Planning",
    ]
    assert timeline[1].order_quantity_kg == 40
    assert timeline[1].oil_type == "Palm Oil"


def test_report_skips_unreadable_records(make_order):
    result = compute_report([make_order(), None, 3.5])

    assert result.summary.total_received == 1
    assert result.skipped_records == 2


def test_empty_report():
    result = compute_report([])

    assert result.summary.total_received == 0
    assert result.summary.total_remaining_kg == 0
    assert result.top_skus == []
    assert result.order_timeline == []


def test_filter_by_order_number_prefix(make_order):
    orders = [
        make_order(order_no="DO-416A"),
        make_order(order_no="DO-416B"),
        make_order(order_no="DO-500A"),
    ]

    matched = filter_orders(orders, ReportFilter(order_no="do-416"))

    assert [o.order_no for o in matched] == ["DO-416A", "DO-416B"]


def test_filter_by_text_fields(make_order):
    orders = [
        make_order(customer_name="Shree Traders", oil_type="Soya Oil", sku_name="SBO 15KG TIN"),
        make_order(customer_name="Gupta Stores", oil_type="Palm Oil", sku_name="PALM 15KG"),
    ]

    assert len(filter_orders(orders, {"customer_name": "shree"})) == 1
    assert len(filter_orders(orders, {"oil_type": "palm"})) == 1
    assert len(filter_orders(orders, {"sku_name": "15kg"})) == 2
    assert len(filter_orders(orders, {"customer_name": "  "})) == 2


def test_filter_by_inclusive_date_range(make_order):
    orders = [
        make_order(order_no="A", created_at=datetime(2024, 4, 30, 23, 59)),
        make_order(order_no="B", created_at=datetime(2024, 5, 1, 0, 0)),
        make_order(order_no="C", created_at=datetime(2024, 5, 5, 23, 0)),
        make_order(order_no="D", created_at=datetime(2024, 5, 6, 0, 0)),
        {"order_no": "E", "created_at": None},
    ]

    matched = filter_orders(orders, {"from_date": "2024-05-01", "to_date": date(2024, 5, 5)})

    assert [o.order_no for o in matched] == ["B", "C"]


def test_filter_rejects_inverted_date_range(make_order):
    with pytest.raises(ValidationException) as exc_info:
        filter_orders([make_order()], {"from_date": "2024-05-10", "to_date": "2024-05-01"})

    assert exc_info.value.code == "VALIDATION_001"
    assert exc_info.value.details["field"] == "from_date"


def test_no_filters_keeps_every_order(make_order):
    orders = [make_order(order_no="A"), make_order(order_no="B")]

    assert len(filter_orders(orders)) == 2


def test_report_service_filters_and_sorts(make_order, sku_refs):
    orders = [
        make_order(order_no="DO-1A", created_at=datetime(2024, 5, 1)),
        make_order(order_no="DO-1B", created_at=datetime(2024, 5, 3)),
        make_order(order_no="DO-2A", created_at=datetime(2024, 5, 2)),
    ]
    service = ReportService(FakeOrderRepository(orders), FakeSkuRepository(sku_refs))
    requests_before = service.report_requests.get_value()

    result = service.get_report({"order_no": "DO-1"})

    assert [entry.order_no for entry in result.order_timeline] == ["DO-1B", "DO-1A"]
    assert result.summary.total_received == 2
    assert result.order_timeline[0].order_quantity_kg == 1500
    assert service.report_requests.get_value() == requests_before + 1


def test_report_service_requires_order_repository():
    with pytest.raises(RuntimeError):
        ReportService().get_report()


def test_blank_oil_type_joins_the_unknown_bucket(make_order):
    orders = [
        make_order(sku_name="Groundnut 1L", oil_type=None, order_quantity=4),
        make_order(sku_name="Groundnut 1L", oil_type="   ", order_quantity=6),
    ]

    top = compute_report(orders).top_skus

    assert [(entry.oil_type, entry.sku, entry.count) for entry in top] == [
        ("Unknown", "Groundnut 1L", 2)
    ]
    assert top[0].total_kg == 10
