# tests/core/test_core_support.py
import logging
from datetime import datetime

import pytest

from dispatch_tracker.core.config import Settings
from dispatch_tracker.core.events import (
    DispatchPlanningCompleted,
    DispatchQuantityRecorded,
    EventBus,
)
from dispatch_tracker.core.exceptions import (
    DispatchTrackerException,
    EntityNotFoundException,
    StageAlreadyCompletedException,
    ValidationException,
)
from dispatch_tracker.core.log_config import LOG_FORMAT, configure_logging


class TestSettings:
    def test_database_url_falls_back_to_path(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)

        settings = Settings(DATABASE_PATH="/tmp/orders.db", _env_file=None)

        assert settings.DATABASE_URL == "sqlite:////tmp/orders.db"

    def test_explicit_database_url_wins(self):
        settings = Settings(DATABASE_URL="postgresql://db/orders", _env_file=None)

        assert settings.DATABASE_URL == "postgresql://db/orders"

    def test_policy_values_are_clamped(self):
        settings = Settings(
            DELAY_THRESHOLD_HOURS=-5,
            TOP_SKU_LIMIT=0,
            RECENT_ACTIVITY_LIMIT=5000,
            LOG_LEVEL="verbose",
            _env_file=None,
        )

        assert settings.DELAY_THRESHOLD_HOURS == 0
        assert settings.TOP_SKU_LIMIT == 1
        assert settings.RECENT_ACTIVITY_LIMIT == 1000
        assert settings.LOG_LEVEL == "INFO"

    def test_environment_variables_are_read(self, monkeypatch):
        monkeypatch.setenv("DELAY_THRESHOLD_HOURS", "72")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = Settings(_env_file=None)

        assert settings.DELAY_THRESHOLD_HOURS == 72.0
        assert settings.LOG_LEVEL == "DEBUG"


class TestExceptions:
    def test_to_dict(self):
        error = EntityNotFoundException("OrderDispatch", 12)

        payload = error.to_dict()

        assert payload["code"] == "DOMAIN_001"
        assert payload["message"] == "OrderDispatch with ID 12 not found"
        assert payload["details"] == {"entity_type": "OrderDispatch", "entity_id": 12}
        assert "timestamp" in payload

    def test_hierarchy_and_codes(self):
        assert isinstance(ValidationException("bad"), DispatchTrackerException)
        assert ValidationException("bad").details == {}
        assert StageAlreadyCompletedException("DO-1", "Dispatch Planning").code == "DISPATCH_002"
        assert DispatchTrackerException("x").code == "GENERIC_ERROR"


class TestEventBus:
    def test_publish_reaches_subscribers_of_that_type(self):
        bus = EventBus()
        recorded, completed = [], []
        bus.subscribe(DispatchQuantityRecorded, recorded.append)
        bus.subscribe(DispatchPlanningCompleted, completed.append)

        bus.publish(DispatchQuantityRecorded(order_no="DO-1", dispatched_qty=10))

        assert len(recorded) == 1
        assert completed == []

    def test_unsubscribe(self):
        bus = EventBus()
        received = []
        bus.subscribe(DispatchQuantityRecorded, received.append)
        bus.unsubscribe(DispatchQuantityRecorded, received.append)

        bus.publish(DispatchQuantityRecorded())

        assert received == []

    def test_handler_errors_do_not_reach_publisher(self, caplog):
        bus = EventBus()
        received = []

        def broken(event):
            raise ValueError("handler failed")

        bus.subscribe(DispatchPlanningCompleted, broken)
        bus.subscribe(DispatchPlanningCompleted, received.append)

        with caplog.at_level(logging.ERROR):
            bus.publish(DispatchPlanningCompleted(order_no="DO-1"))

        assert len(received) == 1
        assert "handler failed" in caplog.text

    def test_event_to_dict(self):
        event = DispatchPlanningCompleted(
            order_id=3, order_no="DO-3A", completed_at=datetime(2024, 5, 10, 15, 30)
        )

        payload = event.to_dict()

        assert payload["event_type"] == "DispatchPlanningCompleted"
        assert payload["completed_at"] == "2024-05-10T15:30:00"
        assert isinstance(payload["timestamp"], str)
        assert payload["event_id"]


def test_configure_logging_quiets_sqlalchemy():
    configure_logging("debug")

    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
    assert "%(levelname)s" in LOG_FORMAT


@pytest.mark.parametrize("level", [None, "warning"])
def test_configure_logging_accepts_levels(level):
    configure_logging(level)
