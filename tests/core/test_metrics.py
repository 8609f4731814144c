# tests/core/test_metrics.py
import pytest

from dispatch_tracker.core.metrics import (
    Counter,
    MetricsRegistry,
    Timer,
    count_calls,
    get_registry,
    record_execution_time,
)


@pytest.fixture()
def registry():
    return MetricsRegistry(enabled=True)


def test_registry_returns_existing_metric(registry):
    first = registry.counter("orders.seen")
    first.increment(3)

    second = registry.counter("orders.seen")

    assert second is first
    assert second.get_value() == 3


def test_tags_distinguish_metrics(registry):
    soya = registry.counter("orders.by_oil", tags={"oil": "soya"})
    palm = registry.counter("orders.by_oil", tags={"oil": "palm"})

    assert soya is not palm
    assert registry.get_metric("orders.by_oil", {"oil": "palm"}) is palm


def test_type_mismatch_is_rejected(registry):
    registry.gauge("orders.active")

    with pytest.raises(TypeError):
        registry.counter("orders.active")


def test_disabled_registry_does_not_register():
    registry = MetricsRegistry(enabled=False)

    metric = registry.counter("orders.seen")
    metric.increment()

    assert isinstance(metric, Counter)
    assert registry.get_all_metrics() == []


def test_timer_statistics():
    timer = Timer("report.build")
    assert timer.get_value()["count"] == 0

    timer.observe(0.5)
    timer.observe(1.5)

    stats = timer.get_value()
    assert stats["count"] == 2
    assert stats["min"] == 0.5
    assert stats["max"] == 1.5
    assert stats["mean"] == 1.0


def test_timer_keeps_bounded_samples():
    timer = Timer("report.build")
    for _ in range(Timer.MAX_SAMPLES + 10):
        timer.observe(1.0)

    assert len(timer._values) == Timer.MAX_SAMPLES
    assert timer.get_value()["count"] == Timer.MAX_SAMPLES + 10


def test_export_metrics(registry):
    registry.gauge("orders.delayed").set(7)

    exported = registry.export_metrics()

    assert exported[0]["name"] == "orders.delayed"
    assert exported[0]["type"] == "Gauge"
    assert exported[0]["value"] == 7

    registry.clear_metrics()
    assert registry.get_all_metrics() == []


def test_decorators_record_calls_and_time():
    @count_calls("tests.decorated.calls")
    @record_execution_time("tests.decorated.time")
    def add(a, b):
        return a + b

    counter_before = get_registry().counter("tests.decorated.calls").get_value()

    assert add(2, 3) == 5
    assert add.__name__ == "add"
    assert get_registry().counter("tests.decorated.calls").get_value() == counter_before + 1
    assert get_registry().timer("tests.decorated.time").get_value()["count"] >= 1


def test_bare_decorators_use_function_name():
    @count_calls
    def ping():
        return "pong"

    assert ping() == "pong"
