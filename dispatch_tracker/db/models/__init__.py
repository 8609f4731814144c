from dispatch_tracker.db.models.base import Base, AbstractBase, TimestampMixin
from dispatch_tracker.db.models.order_dispatch import OrderDispatch
from dispatch_tracker.db.models.sku_detail import SkuDetail

__all__ = ["Base", "AbstractBase", "TimestampMixin", "OrderDispatch", "SkuDetail"]
