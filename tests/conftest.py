# tests/conftest.py
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dispatch_tracker.db.models import Base

NOW = datetime(2024, 5, 10, 12, 0, 0)


@pytest.fixture()
def now():
    return NOW


@pytest.fixture()
def make_order():
    """
    Build a raw order mapping.

    ``done`` stages get planned and actual timestamps 24h apart starting at
    ``created_at``; ``planned_next`` also plans the following stage, as the
    store's triggers do when a stage is submitted.
    """

    def _make(done=0, created_at=None, step_hours=24, planned_next=True, **fields):
        created = created_at or NOW - timedelta(days=30)
        order = {
            "id": fields.pop("id", None),
            "order_no": fields.pop("order_no", "DO-100A"),
            "customer_name": fields.pop("customer_name", "Shree Traders"),
            "sku_name": fields.pop("sku_name", "SBO 15KG TIN"),
            "order_quantity": fields.pop("order_quantity", 100),
            "created_at": created,
        }
        cursor = created
        for index in range(1, done + 1):
            order[f"planned_{index}"] = cursor
            cursor = cursor + timedelta(hours=step_hours)
            order[f"actual_{index}"] = cursor
        if planned_next and done < 13:
            order[f"planned_{done + 1}"] = cursor
        order.update(fields)
        return order

    return _make


@pytest.fixture()
def db_session():
    """In-memory SQLite session with all tables created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
