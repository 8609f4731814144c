"""
Order dispatch tracker.

Stage-progress, delay, dashboard and report computations over orders moving
through the dispatch pipeline.
"""

from dispatch_tracker.services.dashboard_service import compute_dashboard
from dispatch_tracker.services.dispatch_planning_service import plan_dispatch
from dispatch_tracker.services.report_service import compute_report, filter_orders
from dispatch_tracker.services.sku_service import derive_oil_type
from dispatch_tracker.services.stage_progress_service import compute_stage_progress

__version__ = "1.0.0"

__all__ = [
    "compute_dashboard",
    "compute_report",
    "compute_stage_progress",
    "derive_oil_type",
    "filter_orders",
    "plan_dispatch",
]
