from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, model_validator

from dispatch_tracker.schemas.stage import StageTiming


class ReportFilter(BaseModel):
    """
    Report filters.

    ``order_no`` matches by prefix so that a base order number also selects
    its lettered lines; the text filters match case-insensitive substrings.
    Date bounds are inclusive calendar days on ``created_at``.
    """

    order_no: Optional[str] = None
    customer_name: Optional[str] = None
    oil_type: Optional[str] = None
    sku_name: Optional[str] = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None

    @model_validator(mode="before")
    @classmethod
    def blank_to_none(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                key: (None if isinstance(value, str) and not value.strip() else value)
                for key, value in data.items()
            }
        return data

    def is_empty(self) -> bool:
        return not any(getattr(self, name) for name in type(self).model_fields)


class ReportSummary(BaseModel):
    total_received: int = 0
    total_received_kg: float = 0.0
    total_pending_count: int = 0
    total_pending_kg: float = 0.0
    total_dispatched_count: int = 0
    total_dispatched_kg: float = 0.0
    total_completed_count: int = 0
    total_completed_kg: float = 0.0
    total_remaining_kg: float = Field(0.0, ge=0)


class TopSku(BaseModel):
    """Quantity totals for one (oil type, SKU) bucket."""

    oil_type: str
    sku: str
    total_kg: float = 0.0
    total_qty: float = 0.0
    total_qty_kg: float = 0.0
    sku_weight: float = 0.0
    nos_per_main_uom: float = 0.0
    main_uom: Optional[str] = None
    alternate_uom: Optional[str] = None
    count: int = 0


class OrderTimelineEntry(BaseModel):
    id: Optional[Any] = None
    order_no: Optional[str] = None
    customer_name: Optional[str] = None
    oil_type: Optional[str] = None
    sku_name: Optional[str] = None
    order_quantity: float = 0.0
    order_quantity_kg: float = 0.0
    sku_weight: float = 0.0
    alternate_qty_kg: Optional[float] = None
    uom: Optional[str] = None
    created_at: Optional[datetime] = None
    delivery_date: Optional[date] = None
    stages: List[StageTiming] = []


class ReportResult(BaseModel):
    summary: ReportSummary
    top_skus: List[TopSku] = []
    order_timeline: List[OrderTimelineEntry] = []
    skipped_records: int = 0
