# File: dispatch_tracker/core/metrics.py
"""
In-process metrics for the aggregation services.

Services ask the registry for a named metric when they are built; the
registry hands back the already-registered instance, so counters survive
services being rebuilt per request:

    requests = counter("reports.requests.total", "Total report requests")
    requests.increment()

    @record_execution_time("reports.generation_time")
    def get_report(...): ...

Nothing here is exported to an external backend; ``export_metrics`` logs a
snapshot and returns it for callers that want to ship it somewhere.
"""

from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple, Type, TypeVar, Union
import contextlib
import functools
import logging
import statistics
import threading
import time
from datetime import datetime

from dispatch_tracker.core.config import settings

F = TypeVar("F", bound=Callable[..., Any])
Tags = Optional[Dict[str, str]]

logger = logging.getLogger(__name__)


class Metric:
    """Named, tagged, thread-safe measurement."""

    def __init__(self, name: str, description: str = "", tags: Tags = None):
        self.name = name
        self.description = description
        self.tags = dict(tags or {})
        self.created_at = datetime.now()
        self.last_updated = self.created_at
        self._lock = threading.Lock()

    def _touch(self) -> None:
        self.last_updated = datetime.now()

    def get_value(self) -> Any:
        raise NotImplementedError(f"{type(self).__name__} does not report a value")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "tags": self.tags,
            "type": type(self).__name__,
            "value": self.get_value(),
            "timestamp": self.last_updated.isoformat(),
        }


class Counter(Metric):
    """Monotonic count, e.g. report requests or dispatch lots recorded."""

    def __init__(self, name: str, description: str = "", tags: Tags = None):
        super().__init__(name, description, tags)
        self._count = 0

    def increment(self, value: int = 1) -> None:
        with self._lock:
            self._count += value
            self._touch()

    def get_value(self) -> int:
        return self._count


class Gauge(Metric):
    """Last observed level, e.g. active orders in the latest dashboard."""

    def __init__(self, name: str, description: str = "", tags: Tags = None):
        super().__init__(name, description, tags)
        self._level: float = 0

    def set(self, value: float) -> None:
        with self._lock:
            self._level = value
            self._touch()

    def get_value(self) -> float:
        return self._level


class Timer(Metric):
    """
    Durations in seconds.

    ``count`` and ``sum`` cover every observation; ``min``, ``max`` and
    ``mean`` cover the latest ``MAX_SAMPLES`` only.
    """

    MAX_SAMPLES = 1000

    def __init__(self, name: str, description: str = "", tags: Tags = None):
        super().__init__(name, description, tags)
        self._values: Deque[float] = deque(maxlen=self.MAX_SAMPLES)
        self._count = 0
        self._sum = 0.0

    def observe(self, seconds: float) -> None:
        with self._lock:
            self._values.append(seconds)
            self._count += 1
            self._sum += seconds
            self._touch()

    def get_value(self) -> Dict[str, Any]:
        with self._lock:
            samples = list(self._values)
            count, total = self._count, self._sum
        summary: Dict[str, Any] = {"count": count, "sum": total}
        if samples:
            summary.update(min=min(samples), max=max(samples), mean=statistics.mean(samples))
        else:
            summary.update(min=None, max=None, mean=None)
        return summary

    @contextlib.contextmanager
    def time(self):
        started = time.perf_counter()
        try:
            yield
        finally:
            self.observe(time.perf_counter() - started)

    def time_function(self, func: F) -> F:
        @functools.wraps(func)
        def timed(*args, **kwargs):
            with self.time():
                return func(*args, **kwargs)

        return timed


class MetricsRegistry:
    """
    Process-wide metric store keyed by name and tags.

    Re-registering a name returns the existing metric; registering it as a
    different kind raises ``TypeError``. A disabled registry hands out
    working but unregistered metrics, so callers never branch on it.
    """

    _instance: Optional["MetricsRegistry"] = None
    _instance_lock = threading.Lock()

    def __init__(self, enabled: Optional[bool] = None):
        self._enabled = settings.ENABLE_METRICS if enabled is None else enabled
        self._metrics: Dict[Tuple[str, Tuple[Tuple[str, str], ...]], Metric] = {}
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> "MetricsRegistry":
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls()
            return cls._instance

    @staticmethod
    def _key(name: str, tags: Tags) -> Tuple[str, Tuple[Tuple[str, str], ...]]:
        return name, tuple(sorted((tags or {}).items()))

    def _register(self, kind: Type[Metric], name: str, description: str, tags: Tags) -> Any:
        if not self._enabled:
            return kind(name, description, tags)

        key = self._key(name, tags)
        with self._lock:
            metric = self._metrics.get(key)
            if metric is None:
                metric = self._metrics[key] = kind(name, description, tags)
            elif not isinstance(metric, kind):
                raise TypeError(
                    f"Metric {name} is a {type(metric).__name__}, not a {kind.__name__}"
                )
            return metric

    def counter(self, name: str, description: str = "", tags: Tags = None) -> Counter:
        return self._register(Counter, name, description, tags)

    def gauge(self, name: str, description: str = "", tags: Tags = None) -> Gauge:
        return self._register(Gauge, name, description, tags)

    def timer(self, name: str, description: str = "", tags: Tags = None) -> Timer:
        return self._register(Timer, name, description, tags)

    def get_metric(self, name: str, tags: Tags = None) -> Optional[Metric]:
        return self._metrics.get(self._key(name, tags))

    def get_all_metrics(self) -> List[Metric]:
        with self._lock:
            return list(self._metrics.values())

    def export_metrics(self) -> List[Dict[str, Any]]:
        """Log a snapshot of every registered metric and return it."""
        snapshot = [metric.to_dict() for metric in self.get_all_metrics()]
        for item in snapshot:
            logger.info(f"metric {item['name']} ({item['type']}): {item['value']}")
        return snapshot

    def clear_metrics(self) -> None:
        with self._lock:
            self._metrics.clear()


def get_registry() -> MetricsRegistry:
    return MetricsRegistry.get_instance()


def counter(name: str, description: str = "", tags: Tags = None) -> Counter:
    return get_registry().counter(name, description, tags)


def gauge(name: str, description: str = "", tags: Tags = None) -> Gauge:
    return get_registry().gauge(name, description, tags)


def timer(name: str, description: str = "", tags: Tags = None) -> Timer:
    return get_registry().timer(name, description, tags)


def _qualified_name(prefix: str, func: Callable) -> str:
    return f"{prefix}.{func.__module__}.{func.__name__}"


def record_execution_time(name: Union[str, Callable]) -> Any:
    """
    Time every call of the decorated function.

    Usable bare (``@record_execution_time``, timer named after the function)
    or with an explicit timer name.
    """
    if callable(name):
        func = name
        timed = timer(_qualified_name("function", func), f"Execution time of {func.__name__}")
        return timed.time_function(func)

    def decorator(func: F) -> F:
        return timer(name, f"Execution time of {func.__name__}").time_function(func)

    return decorator


def count_calls(name: Union[str, Callable]) -> Any:
    """Count calls of the decorated function; usable bare or with a counter name."""

    def wrap(func: F, counter_name: str) -> F:
        calls = counter(counter_name, f"Call count of {func.__name__}")

        @functools.wraps(func)
        def counted(*args, **kwargs):
            calls.increment()
            return func(*args, **kwargs)

        return counted

    if callable(name):
        return wrap(name, _qualified_name("calls", name))

    def decorator(func: F) -> F:
        return wrap(func, name)

    return decorator
