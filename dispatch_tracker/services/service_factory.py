# dispatch_tracker/services/service_factory.py
"""
Factory for creating service instances.

Wires the SQLAlchemy-backed repositories into the dashboard, report and
dispatch planning services so callers only need a session.
"""

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from dispatch_tracker.core.events import EventBus, global_event_bus
from dispatch_tracker.repositories.order_dispatch_repository import OrderDispatchRepository
from dispatch_tracker.repositories.sku_detail_repository import SkuDetailRepository
from dispatch_tracker.services.dashboard_service import DashboardService
from dispatch_tracker.services.dispatch_planning_service import DispatchPlanningService
from dispatch_tracker.services.report_service import ReportService


class ServiceFactory:
    """
    Factory for creating service instances with proper dependencies.

    Instances are cached per factory, so one factory per session yields one
    service of each kind.
    """

    def __init__(self, session: Session, event_bus: Optional[EventBus] = None):
        """
        Initialize the service factory with dependencies.

        Args:
            session: Database session for persistence operations
            event_bus: Optional event bus for publishing domain events
        """
        self.session = session
        self.event_bus = event_bus or global_event_bus
        self._service_instances: Dict[str, Any] = {}

    def _cached(self, key: str, build):
        if key not in self._service_instances:
            self._service_instances[key] = build()
        return self._service_instances[key]

    def get_order_repository(self) -> OrderDispatchRepository:
        return self._cached("order_repository", lambda: OrderDispatchRepository(self.session))

    def get_sku_repository(self) -> SkuDetailRepository:
        return self._cached("sku_repository", lambda: SkuDetailRepository(self.session))

    def get_dashboard_service(self) -> DashboardService:
        return self._cached(
            "dashboard_service",
            lambda: DashboardService(order_repository=self.get_order_repository()),
        )

    def get_report_service(self) -> ReportService:
        return self._cached(
            "report_service",
            lambda: ReportService(
                order_repository=self.get_order_repository(),
                sku_repository=self.get_sku_repository(),
            ),
        )

    def get_dispatch_planning_service(self) -> DispatchPlanningService:
        return self._cached(
            "dispatch_planning_service",
            lambda: DispatchPlanningService(
                self.session,
                repository=self.get_order_repository(),
                event_bus=self.event_bus,
            ),
        )
