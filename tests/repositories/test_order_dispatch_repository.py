# tests/repositories/test_order_dispatch_repository.py
from datetime import datetime

import pytest
from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dispatch_tracker.db.models import OrderDispatch, SkuDetail
from dispatch_tracker.db import session as session_module
from dispatch_tracker.db.session import create_db_engine, init_db
from dispatch_tracker.repositories.order_dispatch_repository import (
    OrderDispatchRepository,
    base_order_no,
)
from dispatch_tracker.repositories.sku_detail_repository import SkuDetailRepository
from dispatch_tracker.services.dashboard_service import DashboardService
from dispatch_tracker.services.report_service import ReportService
from dispatch_tracker.services.service_factory import ServiceFactory


@pytest.fixture()
def stored_orders(db_session):
    rows = [
        OrderDispatch(order_no="DO-416A", sku_name="SBO 15KG TIN", order_quantity=10,
                      created_at=datetime(2024, 5, 1, 9, 0)),
        OrderDispatch(order_no="DO-416B", sku_name="RBO 1L POUCH", order_quantity=24,
                      created_at=datetime(2024, 5, 3, 9, 0)),
        OrderDispatch(order_no="DO-4160A", sku_name="SBO 15KG TIN", order_quantity=5,
                      created_at=datetime(2024, 5, 2, 9, 0)),
    ]
    db_session.add_all(rows)
    db_session.add_all(
        [
            SkuDetail(sku_code="SBO15", sku_name="SBO 15KG TIN", sku_weight=15, main_uom="TIN"),
            SkuDetail(sku_code="RBO1", sku_name="RBO 1L POUCH", sku_weight=0.91),
        ]
    )
    db_session.commit()
    return rows


@pytest.mark.parametrize(
    "order_no, expected",
    [
        ("DO-416A", "DO-416"),
        ("DO-416AB", "DO-416"),
        ("DO-416", "DO-416"),
        (" DO-416B ", "DO-416"),
        ("ABC", "ABC"),
        (None, None),
    ],
)
def test_base_order_no(order_no, expected):
    assert base_order_no(order_no) == expected


def test_list_orders_newest_first(db_session, stored_orders):
    orders = OrderDispatchRepository(db_session).list_orders()

    assert [o.order_no for o in orders] == ["DO-416B", "DO-4160A", "DO-416A"]


def test_list_order_lines_excludes_longer_numbers(db_session, stored_orders):
    lines = OrderDispatchRepository(db_session).list_order_lines("DO-416A")

    assert [o.order_no for o in lines] == ["DO-416A", "DO-416B"]


def test_get_by_order_no_and_count(db_session, stored_orders):
    repository = OrderDispatchRepository(db_session)

    assert repository.get_by_order_no("DO-416B").order_quantity == 24
    assert repository.get_by_order_no("DO-999") is None
    assert repository.count() == 3
    assert repository.count(sku_name="SBO 15KG TIN") == 2
    assert len(repository.list(limit=2)) == 2


def test_create_sets_timestamps(db_session):
    repository = OrderDispatchRepository(db_session)

    order = repository.create({"order_no": "DO-1A", "order_quantity": 5, "unknown": 1})

    assert order.id is not None
    assert order.created_at is not None
    assert repository.get_by_id(order.id).order_no == "DO-1A"


def test_sku_references(db_session, stored_orders):
    refs = SkuDetailRepository(db_session).list_sku_references()

    assert [ref.sku_name for ref in refs] == ["SBO 15KG TIN", "RBO 1L POUCH"]
    assert refs[0].sku_weight == 15
    assert refs[0].main_uom == "TIN"


def test_orm_rows_feed_the_report(db_session, stored_orders):
    factory = ServiceFactory(db_session)

    report = factory.get_report_service().get_report({"order_no": "DO-416"})

    assert report.summary.total_received == 3
    assert report.order_timeline[0].order_no == "DO-416B"
    assert report.order_timeline[0].order_quantity_kg == pytest.approx(24 * 0.91)


def test_service_factory_caches_instances(db_session):
    factory = ServiceFactory(db_session)

    assert isinstance(factory.get_dashboard_service(), DashboardService)
    assert isinstance(factory.get_report_service(), ReportService)
    assert factory.get_dashboard_service() is factory.get_dashboard_service()
    assert (
        factory.get_dispatch_planning_service().repository
        is factory.get_order_repository()
    )


def test_dashboard_over_stored_orders(db_session, stored_orders, now):
    snapshot = ServiceFactory(db_session).get_dashboard_service().get_overview(now)

    assert snapshot.total == 3
    assert all(row.stage == "Pre-Approval" for row in snapshot.recent_orders)


def test_init_db_creates_tables():
    engine = create_db_engine("sqlite://")

    init_db(bind=engine)

    assert {"order_dispatch", "sku_details"} <= set(inspect(engine).get_table_names())
    engine.dispose()


def test_session_scope_commits_and_rolls_back(monkeypatch):
    engine = create_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=engine)
    monkeypatch.setattr(session_module, "SessionLocal", sessionmaker(bind=engine))

    with session_module.session_scope() as session:
        session.add(OrderDispatch(order_no="DO-7A"))

    with pytest.raises(ValueError):
        with session_module.session_scope() as session:
            session.add(OrderDispatch(order_no="DO-8A"))
            session.flush()
            raise ValueError("abort")

    with session_module.session_scope() as session:
        stored = [o.order_no for o in OrderDispatchRepository(session).list_orders()]

    assert stored == ["DO-7A"]
    engine.dispose()


def test_model_to_dict(db_session):
    order = OrderDispatch(order_no="DO-9A", order_quantity=3, created_at=datetime(2024, 5, 1, 8, 0))
    db_session.add(order)
    db_session.commit()

    payload = order.to_dict()

    assert payload["order_no"] == "DO-9A"
    assert payload["created_at"] == "2024-05-01T08:00:00"
    assert payload["actual_13"] is None


def test_default_timestamps_share_the_dashboard_clock(db_session):
    db_session.add(OrderDispatch(order_no="DO-1A"))
    db_session.commit()

    snapshot = ServiceFactory(db_session).get_dashboard_service().get_overview()

    row = snapshot.recent_orders[0]
    assert row.created_at.tzinfo is None
    assert abs(row.hours_since_last_activity) < 0.1
    assert row.delayed is False


def test_dispatch_completion_uses_the_store_clock(db_session):
    order = OrderDispatch(order_no="DO-2A", order_quantity=10)
    db_session.add(order)
    db_session.commit()

    ServiceFactory(db_session).get_dispatch_planning_service().submit(order.id)

    db_session.refresh(order)
    assert abs((order.actual_3 - order.created_at).total_seconds()) < 60
