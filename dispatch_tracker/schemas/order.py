# File: dispatch_tracker/schemas/order.py
"""
Input schemas for the stage-progress, dashboard and report computations.

Records arrive from the order store either as plain mappings or as ORM rows.
Every field is optional and coerced leniently: a malformed value is logged
and treated as missing so that one bad row never breaks an aggregate.
"""

import logging
from datetime import datetime, date
from typing import Any, Iterable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from dispatch_tracker.utils.timestamps import (
    parse_datetime_value,
    parse_date_value,
    parse_quantity,
)

logger = logging.getLogger(__name__)

STAGE_SLOT_COUNT = 13

_TIMESTAMP_FIELDS = ("created_at",) + tuple(
    f"{kind}_{i}" for i in range(1, STAGE_SLOT_COUNT + 1) for kind in ("planned", "actual")
)
_QUANTITY_FIELDS = (
    "order_quantity",
    "alternate_qty_kg",
    "approval_qty",
    "remaining_dispatch_qty",
)
_TEXT_FIELDS = (
    "order_no",
    "customer_name",
    "product_name",
    "sku_name",
    "oil_type",
    "uom",
    "overall_status_of_order",
)


def _coerce_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    logger.warning(f"Ignoring non-text value of type {type(value).__name__}")
    return None


class OrderRecord(BaseModel):
    """
    Flat order record with its thirteen planned/actual stage slots.

    Stage 0 (Order Punch) has no slot; it is complete once the record exists.
    """

    id: Optional[Any] = None
    order_no: Optional[str] = None
    customer_name: Optional[str] = None
    product_name: Optional[str] = None
    sku_name: Optional[str] = None
    oil_type: Optional[str] = None
    order_quantity: Optional[float] = None
    uom: Optional[str] = None
    alternate_qty_kg: Optional[float] = None
    approval_qty: Optional[float] = None
    remaining_dispatch_qty: Optional[float] = None
    overall_status_of_order: Optional[str] = None
    delivery_date: Optional[date] = None
    created_at: Optional[datetime] = None

    planned_1: Optional[datetime] = None
    actual_1: Optional[datetime] = None
    planned_2: Optional[datetime] = None
    actual_2: Optional[datetime] = None
    planned_3: Optional[datetime] = None
    actual_3: Optional[datetime] = None
    planned_4: Optional[datetime] = None
    actual_4: Optional[datetime] = None
    planned_5: Optional[datetime] = None
    actual_5: Optional[datetime] = None
    planned_6: Optional[datetime] = None
    actual_6: Optional[datetime] = None
    planned_7: Optional[datetime] = None
    actual_7: Optional[datetime] = None
    planned_8: Optional[datetime] = None
    actual_8: Optional[datetime] = None
    planned_9: Optional[datetime] = None
    actual_9: Optional[datetime] = None
    planned_10: Optional[datetime] = None
    actual_10: Optional[datetime] = None
    planned_11: Optional[datetime] = None
    actual_11: Optional[datetime] = None
    planned_12: Optional[datetime] = None
    actual_12: Optional[datetime] = None
    planned_13: Optional[datetime] = None
    actual_13: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, extra="ignore", frozen=True)

    @field_validator(*_TIMESTAMP_FIELDS, mode="before")
    @classmethod
    def validate_timestamps(cls, v: Any, info):
        return parse_datetime_value(v, info.field_name)

    @field_validator("delivery_date", mode="before")
    @classmethod
    def validate_delivery_date(cls, v: Any, info):
        return parse_date_value(v, info.field_name)

    @field_validator(*_QUANTITY_FIELDS, mode="before")
    @classmethod
    def validate_quantities(cls, v: Any, info):
        return parse_quantity(v, info.field_name)

    @field_validator(*_TEXT_FIELDS, mode="before")
    @classmethod
    def validate_text(cls, v: Any):
        return _coerce_text(v)

    def planned(self, index: int) -> Optional[datetime]:
        """Planned timestamp of stage ``index`` (None for stage 0)."""
        if index < 1 or index > STAGE_SLOT_COUNT:
            return None
        return getattr(self, f"planned_{index}")

    def actual(self, index: int) -> Optional[datetime]:
        """Actual timestamp of stage ``index`` (None for stage 0)."""
        if index < 1 or index > STAGE_SLOT_COUNT:
            return None
        return getattr(self, f"actual_{index}")

    @property
    def product_label(self) -> Optional[str]:
        """SKU name, falling back to the product name."""
        return self.sku_name or self.product_name

    @property
    def quantity(self) -> float:
        return self.order_quantity or 0.0

    @property
    def alternate_quantity(self) -> float:
        return self.alternate_qty_kg or 0.0


class SkuReference(BaseModel):
    """SKU reference row used for kilogram conversion and oil-type hints."""

    sku_name: Optional[str] = None
    sku_weight: Optional[float] = None
    nos_per_main_uom: Optional[float] = None
    main_uom: Optional[str] = None
    alternate_uom: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, extra="ignore", frozen=True)

    @field_validator("sku_weight", "nos_per_main_uom", mode="before")
    @classmethod
    def validate_numbers(cls, v: Any, info):
        return parse_quantity(v, info.field_name)

    @field_validator("sku_name", "main_uom", "alternate_uom", mode="before")
    @classmethod
    def validate_text(cls, v: Any):
        return _coerce_text(v)

    @property
    def lookup_key(self) -> str:
        return (self.sku_name or "").upper().strip()


def coerce_order(raw: Any) -> Optional[OrderRecord]:
    """
    Convert a mapping or ORM row into an ``OrderRecord``.

    Returns None (after logging) for inputs that are not record-shaped.
    """
    if isinstance(raw, OrderRecord):
        return raw
    if raw is None or isinstance(raw, (str, bytes, int, float, bool)):
        logger.warning(f"Skipping order input of type {type(raw).__name__}")
        return None
    try:
        if isinstance(raw, Mapping):
            return OrderRecord.model_validate(dict(raw))
        return OrderRecord.model_validate(raw, from_attributes=True)
    except ValidationError as e:
        logger.warning(f"Skipping malformed order record: {e.error_count()} validation error(s)")
        return None


def coerce_orders(raw_orders: Optional[Iterable[Any]]) -> List[OrderRecord]:
    """Coerce an iterable of raw orders, dropping the ones that cannot be read."""
    records = []
    for raw in raw_orders or []:
        record = coerce_order(raw)
        if record is not None:
            records.append(record)
    return records


def coerce_sku_references(raw_refs: Optional[Iterable[Any]]) -> List[SkuReference]:
    refs = []
    for raw in raw_refs or []:
        if isinstance(raw, SkuReference):
            refs.append(raw)
            continue
        if raw is None or isinstance(raw, (str, bytes, int, float, bool)):
            logger.warning(f"Skipping SKU reference input of type {type(raw).__name__}")
            continue
        try:
            if isinstance(raw, Mapping):
                refs.append(SkuReference.model_validate(dict(raw)))
            else:
                refs.append(SkuReference.model_validate(raw, from_attributes=True))
        except ValidationError as e:
            logger.warning(f"Skipping malformed SKU reference: {e.error_count()} validation error(s)")
    return refs
