# File: dispatch_tracker/core/events.py

from typing import Dict, Any, Callable, List, Optional, Type
from collections import defaultdict
from dataclasses import dataclass, field, asdict
from datetime import datetime, date
import logging
import threading
import uuid

logger = logging.getLogger(__name__)

EventHandler = Callable[["DomainEvent"], None]


# --- Base DomainEvent ---
@dataclass(eq=False)
class DomainEvent:
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result["event_type"] = self.__class__.__name__

        for key, value in result.items():
            if isinstance(value, (datetime, date)):
                result[key] = value.isoformat()
        return result


# --- Dispatch planning events ---
@dataclass(eq=False)
class DispatchQuantityRecorded(DomainEvent):
    order_id: Any = None
    order_no: Optional[str] = None
    dispatched_qty: float = 0.0
    remaining_qty: float = 0.0
    username: Optional[str] = None


@dataclass(eq=False)
class DispatchPlanningCompleted(DomainEvent):
    order_id: Any = None
    order_no: Optional[str] = None
    completed_at: Optional[datetime] = None
    username: Optional[str] = None


class EventBus:
    """
    Synchronous event bus for domain events.

    Handlers are keyed by event class name. Handler failures are logged and
    never propagate to the publisher.

    Usage:
        bus.subscribe(DispatchPlanningCompleted, notify_dispatch_desk)
        bus.publish(DispatchPlanningCompleted(order_id=12, order_no="DO-416A"))
    """

    def __init__(self):
        self.subscribers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        with self._lock:
            self.subscribers[event_type.__name__].append(handler)
        logger.debug(f"Subscribed {getattr(handler, '__name__', handler)} to {event_type.__name__}")

    def unsubscribe(self, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        with self._lock:
            handlers = self.subscribers.get(event_type.__name__, [])
            if handler in handlers:
                handlers.remove(handler)

    def publish(self, event: DomainEvent) -> None:
        """
        Publish an event synchronously to all registered handlers.

        Args:
            event: The domain event to publish
        """
        event_type = type(event).__name__
        logger.debug(f"Publishing event {event_type} ID {event.event_id}")
        with self._lock:
            subscribers_copy = list(self.subscribers.get(event_type, []))
        for handler in subscribers_copy:
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    f"Error in handler {getattr(handler, '__name__', handler)} "
                    f"for {event_type} ID {event.event_id}: {e}",
                    exc_info=True,
                )


global_event_bus = EventBus()
