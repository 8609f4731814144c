# File: dispatch_tracker/services/dispatch_planning_service.py
"""
Partial-dispatch state machine for the Dispatch Planning stage.

An order may be planned for dispatch in several lots. Each lot reduces the
quantity still available for planning; the stage completes (``actual_3`` is
stamped) once nothing remains:

    PENDING (remaining > 0) --dispatch lot--> PENDING | COMPLETED (remaining <= 0)

The remaining quantity is capped at zero on completion, so over-dispatch
never stores a negative balance.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional
import logging

from sqlalchemy.orm import Session

from dispatch_tracker.core.events import (
    DispatchPlanningCompleted,
    DispatchQuantityRecorded,
    EventBus,
    global_event_bus,
)
from dispatch_tracker.core.exceptions import (
    DispatchQuantityException,
    EntityNotFoundException,
    StageAlreadyCompletedException,
)
from dispatch_tracker.core.metrics import counter
from dispatch_tracker.repositories.order_dispatch_repository import OrderDispatchRepository
from dispatch_tracker.services.stage_registry import ACTUAL_DISPATCH, DISPATCH_PLANNING, get_stage
from dispatch_tracker.utils.timestamps import local_now, parse_quantity

logger = logging.getLogger(__name__)


class DispatchPlanningState(Enum):
    PENDING = "pending"
    COMPLETED = "completed"


@dataclass(frozen=True)
class DispatchTransition:
    """Result of applying one dispatch lot."""

    available: float
    dispatched: float
    remaining: float
    state: DispatchPlanningState

    @property
    def completed(self) -> bool:
        return self.state is DispatchPlanningState.COMPLETED


def available_quantity(
    remaining_dispatch_qty: Optional[float],
    approval_qty: Optional[float] = None,
    order_quantity: Optional[float] = None,
) -> float:
    """
    Quantity still open for dispatch planning.

    Before the first lot nothing has been recorded, so the approved quantity
    (or, failing that, the ordered quantity) is available.
    """
    if remaining_dispatch_qty is not None:
        return remaining_dispatch_qty
    return approval_qty or order_quantity or 0.0


def plan_dispatch(
    available: float, dispatch_qty: Any, order_no: Optional[str] = None
) -> DispatchTransition:
    """
    Apply one dispatch lot to the open quantity.

    Args:
        available: Quantity open before this lot
        dispatch_qty: Quantity planned in this lot
        order_no: Order number, for error reporting

    Returns:
        DispatchTransition with the new remaining quantity and state

    Raises:
        DispatchQuantityException: If the lot quantity is missing or negative
    """
    quantity = parse_quantity(dispatch_qty, "dispatch_qty")
    if quantity is None:
        raise DispatchQuantityException(order_no, dispatch_qty, "quantity is not a number")
    if quantity < 0:
        raise DispatchQuantityException(order_no, dispatch_qty, "quantity cannot be negative")

    remaining = available - quantity
    if remaining <= 0:
        return DispatchTransition(available, quantity, 0.0, DispatchPlanningState.COMPLETED)
    return DispatchTransition(available, quantity, remaining, DispatchPlanningState.PENDING)


class DispatchPlanningService:
    """
    Records dispatch lots against orders in the store.

    Each submission runs in its own transaction; on failure the session is
    rolled back and the error re-raised.
    """

    def __init__(
        self,
        session: Session,
        repository: Optional[OrderDispatchRepository] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self.session = session
        self.repository = repository or OrderDispatchRepository(session)
        self.event_bus = event_bus or global_event_bus
        self.lots_recorded = counter("dispatch_planning.lots", "Dispatch lots recorded")

    @contextmanager
    def transaction(self):
        """Provide a transactional scope around a submission."""
        try:
            yield
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error(f"Dispatch planning transaction failed: {str(e)}", exc_info=True)
            raise

    def submit(
        self,
        order_id: int,
        dispatch_qty: Any = None,
        now: Optional[datetime] = None,
        username: Optional[str] = None,
    ) -> DispatchTransition:
        """
        Record a dispatch lot for an order.

        When ``dispatch_qty`` is omitted the full ordered quantity is planned.
        Completing the stage stamps ``actual_3`` and, if unset, ``planned_4``.

        Raises:
            EntityNotFoundException: If the order does not exist
            StageAlreadyCompletedException: If dispatch planning is already done
            DispatchQuantityException: If the quantity is invalid
        """
        now = now or local_now()

        with self.transaction():
            order = self.repository.get_by_id(order_id)
            if order is None:
                raise EntityNotFoundException("OrderDispatch", order_id)
            if order.actual_3 is not None:
                raise StageAlreadyCompletedException(
                    order.order_no, get_stage(DISPATCH_PLANNING).label
                )

            available = available_quantity(
                order.remaining_dispatch_qty, order.approval_qty, order.order_quantity
            )
            if dispatch_qty is None or dispatch_qty == "":
                dispatch_qty = order.order_quantity or 0.0
            transition = plan_dispatch(available, dispatch_qty, order.order_no)

            logger.info(
                f"Partial dispatch calc: order {order.order_no} - available {transition.available}, "
                f"dispatched {transition.dispatched}, remaining {transition.remaining}"
            )

            order.remaining_dispatch_qty = transition.remaining
            order.dispatch_planning_user = username
            if transition.completed:
                order.actual_3 = now
                next_planned = f"planned_{ACTUAL_DISPATCH}"
                if getattr(order, next_planned) is None:
                    setattr(order, next_planned, now)
            self.session.flush()

        self.lots_recorded.increment()
        self.event_bus.publish(
            DispatchQuantityRecorded(
                order_id=order.id,
                order_no=order.order_no,
                dispatched_qty=transition.dispatched,
                remaining_qty=transition.remaining,
                username=username,
            )
        )
        if transition.completed:
            self.event_bus.publish(
                DispatchPlanningCompleted(
                    order_id=order.id,
                    order_no=order.order_no,
                    completed_at=now,
                    username=username,
                )
            )
        return transition
