# File: dispatch_tracker/services/delay_service.py
"""
Aging and delay classification.

Two measures are computed:

* order-level staleness: hours since the latest recorded stage actual
  (falling back to the order's creation time). A non-terminal order idle for
  longer than the configured threshold is delayed.
* per-stage delay: ``actual - planned`` for stages where both are recorded,
  in whole days (floored) and rounded hours.
"""

import logging
import math
from datetime import datetime
from typing import List, Optional

from dispatch_tracker.core.config import settings
from dispatch_tracker.schemas.order import OrderRecord
from dispatch_tracker.schemas.stage import StageDelay, StageTiming
from dispatch_tracker.services.stage_registry import FINAL_DELIVERY, timed_stages
from dispatch_tracker.utils.timestamps import (
    SECONDS_PER_DAY,
    SECONDS_PER_HOUR,
    align,
    hours_between,
)

logger = logging.getLogger(__name__)


def latest_activity(order: OrderRecord) -> Optional[datetime]:
    """
    Latest recorded stage actual, or ``created_at`` when no stage has one.

    Mixed naive/aware actuals are compared in the zone of the first actual
    found.
    """
    latest = None
    for stage in timed_stages():
        actual = order.actual(stage.index)
        if actual is None:
            continue
        if latest is None:
            latest = actual
            continue
        candidate = align(actual, latest)
        if candidate > latest:
            latest = candidate
    return latest if latest is not None else order.created_at


def hours_since_last_activity(order: OrderRecord, now: datetime) -> Optional[float]:
    last = latest_activity(order)
    if last is None:
        return None
    return hours_between(now, last)


def is_order_delayed(
    order: OrderRecord,
    now: datetime,
    threshold_hours: Optional[float] = None,
) -> bool:
    """
    Whether an order has been idle for longer than the delay threshold.

    Orders that reached Final Delivery are never delayed. Orders without any
    timestamp cannot be aged and are not delayed.
    """
    if order.actual(FINAL_DELIVERY) is not None:
        return False
    threshold = settings.DELAY_THRESHOLD_HOURS if threshold_hours is None else threshold_hours
    idle_hours = hours_since_last_activity(order, now)
    if idle_hours is None:
        logger.debug(f"Order {order.order_no} has no timestamps; not aged")
        return False
    return idle_hours > threshold


def stage_delay(planned: Optional[datetime], actual: Optional[datetime]) -> Optional[StageDelay]:
    """
    Delay of one stage.

    Returns None unless both timestamps are recorded. A negative delay means
    the stage finished ahead of plan.
    """
    if planned is None or actual is None:
        return None
    seconds = (actual - align(planned, actual)).total_seconds()
    return StageDelay(
        delay_days=math.floor(seconds / SECONDS_PER_DAY),
        delay_hours=_round_half_up(seconds / SECONDS_PER_HOUR),
        on_time=seconds <= 0,
    )


def stage_timings(order: OrderRecord) -> List[StageTiming]:
    """Timeline entries for every stage with a planned or actual timestamp."""
    timings = []
    for stage in timed_stages():
        planned = order.planned(stage.index)
        actual = order.actual(stage.index)
        if planned is None and actual is None:
            continue
        delay = stage_delay(planned, actual)
        timings.append(
            StageTiming(
                stage=stage.label,
                stage_index=stage.index,
                planned=planned,
                actual=actual,
                delay_days=delay.delay_days if delay else None,
                delay_hours=delay.delay_hours if delay else None,
                on_time=delay.on_time if delay else None,
            )
        )
    return timings


def _round_half_up(value: float) -> int:
    # Halves round towards positive infinity, not to even
    return math.floor(value + 0.5)
