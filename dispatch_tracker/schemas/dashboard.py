from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from dispatch_tracker.schemas.stage import StageFlag


class StageCount(BaseModel):
    """Pending and completed order counts for one stage."""

    id: str
    label: str
    pending: int = 0
    completed: int = 0
    count: int = Field(0, description="Mirrors pending; kept for dashboard widgets.")


class DashboardOrder(BaseModel):
    """Order row enriched with its pipeline position."""

    id: Optional[Any] = None
    order_no: Optional[str] = None
    customer_name: Optional[str] = None
    created_at: Optional[datetime] = None
    stage: str
    stage_label: str
    stage_index: int
    completed_stages: int
    total_stages: int
    stage_progress: List[StageFlag]
    status: str
    hours_since_last_activity: Optional[float] = None
    delayed: bool = False


class DashboardSnapshot(BaseModel):
    """Dashboard overview computed from the full order set."""

    generated_at: datetime
    total: int = 0
    active: int = 0
    completed: int = 0
    delayed: int = 0
    cancelled: int = 0
    stage_counts: List[StageCount] = []
    recent_orders: List[DashboardOrder] = []
    pending_orders: List[DashboardOrder] = []
    completed_orders: List[DashboardOrder] = []
    created_today: int = 0
    dispatched_today: int = 0
    invoiced_today: int = 0
    delivered_today: int = 0
    skipped_records: int = 0


class LegacyDashboardStats(BaseModel):
    """Four-stage summary for stores that only populate the first stage slots."""

    total_orders: int = 0
    pending_pre_approval: int = 0
    pending_approval: int = 0
    completed_orders: int = 0


class RecentActivityEntry(BaseModel):
    id: Optional[Any] = None
    order_no: Optional[str] = None
    customer_name: Optional[str] = None
    created_at: Optional[datetime] = None
    overall_status_of_order: Optional[str] = None
