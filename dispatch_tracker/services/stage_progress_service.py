# File: dispatch_tracker/services/stage_progress_service.py
"""
Stage progress for a single order.

The calculator summarizes a record; it never validates it. Under the
sequential pipeline an order cannot complete stage N before stage N-1, but a
record with such a gap is still reported: the current stage is the first
not-done stage found scanning forward.
"""

import logging
from typing import Any, List

from dispatch_tracker.schemas.order import OrderRecord, coerce_order
from dispatch_tracker.schemas.stage import StageFlag, StageProgress
from dispatch_tracker.services.stage_registry import STAGES, STAGE_COUNT, ORDER_PUNCH

logger = logging.getLogger(__name__)


def stage_done_flags(order: OrderRecord) -> List[bool]:
    """Done flag per stage; stage 0 is always done."""
    return [
        True if stage.index == ORDER_PUNCH else order.actual(stage.index) is not None
        for stage in STAGES
    ]


def compute_stage_progress(order: Any) -> StageProgress:
    """
    Compute the current stage and completed-stage count of an order.

    Args:
        order: An ``OrderRecord``, mapping or ORM row

    Returns:
        StageProgress with per-stage done flags
    """
    record = coerce_order(order)
    if record is None:
        logger.warning("Computing stage progress for an unreadable order as a new order")
        record = OrderRecord()

    flags = stage_done_flags(record)

    completed_stages = 0
    for done in flags:
        if not done:
            break
        completed_stages += 1

    # First not-done stage; a fully done order stays on Final Delivery
    current_index = min(completed_stages, STAGE_COUNT - 1)
    current = STAGES[current_index]

    return StageProgress(
        current_stage_index=current_index,
        current_stage_id=current.id,
        current_stage_label=current.label,
        completed_stages=completed_stages,
        total_stages=STAGE_COUNT,
        stage_progress=[
            StageFlag(index=stage.index, id=stage.id, label=stage.label, done=done)
            for stage, done in zip(STAGES, flags)
        ],
    )
