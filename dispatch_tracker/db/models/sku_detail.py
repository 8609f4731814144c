# File: dispatch_tracker/db/models/sku_detail.py

from sqlalchemy import Column, String, Float

from dispatch_tracker.db.models.base import AbstractBase, TimestampMixin


class SkuDetail(AbstractBase, TimestampMixin):
    """
    SKU reference data used for weight conversion.

    ``sku_weight`` is the kilogram weight of one alternate unit (box or
    piece) of the SKU.
    """

    __tablename__ = "sku_details"

    status = Column(String(50), default="Active")
    sku_code = Column(String(100), unique=True)
    sku_name = Column(String(255), nullable=False)
    main_uom = Column(String(50))
    alternate_uom = Column(String(50))
    nos_per_main_uom = Column(Float)
    sku_weight = Column(Float)

    def __repr__(self) -> str:
        return f"<SkuDetail(id={self.id}, sku_name='{self.sku_name}')>"
