# File: dispatch_tracker/services/stage_registry.py
"""
Canonical definition of the dispatch pipeline stages.

Index order is pipeline order. Index 0 (Order Punch) has no timestamp
columns and is complete as soon as the order exists; indices 1..13 map to
the ``planned_N`` / ``actual_N`` column pairs of the order_dispatch table.
Both the dashboard and the report read stage labels from this registry.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class StageDefinition:
    """A single pipeline stage and the columns that record it."""

    index: int
    id: str
    label: str
    planned_field: Optional[str] = None
    actual_field: Optional[str] = None

    @property
    def is_timed(self) -> bool:
        return self.actual_field is not None


def _timed(index: int, stage_id: str, label: str) -> StageDefinition:
    return StageDefinition(index, stage_id, label, f"planned_{index}", f"actual_{index}")


STAGES: Tuple[StageDefinition, ...] = (
    StageDefinition(0, "Order Punch", "Order Punch"),
    _timed(1, "Pre-Approval", "Pre Approval"),
    _timed(2, "Approval Of Order", "Approval of Order"),
    _timed(3, "Dispatch Planning", "Dispatch Planning"),
    _timed(4, "Actual Dispatch", "Actual Dispatch"),
    _timed(5, "Vehicle Details", "Vehicle Details"),
    _timed(6, "Material Load", "Material Load"),
    _timed(7, "Security Approval", "Security Guard Approval"),
    _timed(8, "Make Invoice", "Invoice (Proforma)"),
    _timed(9, "Check Invoice", "Check Invoice"),
    _timed(10, "Gate Out", "Gate Out"),
    _timed(11, "Material Receipt", "Confirm Material Receipt"),
    _timed(12, "Damage Adjustment", "Damage Adjustment"),
    _timed(13, "Final Delivery", "Final Delivery"),
)

STAGE_COUNT = len(STAGES)

# Named stage indices used by the aggregations
ORDER_PUNCH = 0
PRE_APPROVAL = 1
APPROVAL_OF_ORDER = 2
DISPATCH_PLANNING = 3
ACTUAL_DISPATCH = 4
MAKE_INVOICE = 8
GATE_OUT = 10
MATERIAL_RECEIPT = 11
FINAL_DELIVERY = 13

_BY_ID = {stage.id: stage for stage in STAGES}


def get_stage(index: int) -> StageDefinition:
    """
    Get a stage by pipeline index.

    Raises:
        IndexError: If the index is outside the pipeline
    """
    if index < 0 or index >= STAGE_COUNT:
        raise IndexError(f"Stage index {index} outside 0..{STAGE_COUNT - 1}")
    return STAGES[index]


def get_stage_by_id(stage_id: str) -> Optional[StageDefinition]:
    return _BY_ID.get(stage_id)


def timed_stages() -> Tuple[StageDefinition, ...]:
    """Stages that own planned/actual columns (everything after Order Punch)."""
    return STAGES[1:]
