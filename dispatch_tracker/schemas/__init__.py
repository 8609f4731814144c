from dispatch_tracker.schemas.order import OrderRecord, SkuReference
from dispatch_tracker.schemas.stage import StageFlag, StageProgress, StageDelay, StageTiming
from dispatch_tracker.schemas.dashboard import (
    StageCount,
    DashboardOrder,
    DashboardSnapshot,
    LegacyDashboardStats,
    RecentActivityEntry,
)
from dispatch_tracker.schemas.report import (
    ReportFilter,
    ReportSummary,
    TopSku,
    OrderTimelineEntry,
    ReportResult,
)
