# File: dispatch_tracker/repositories/sku_detail_repository.py

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from dispatch_tracker.db.models import SkuDetail
from dispatch_tracker.repositories.base_repository import BaseRepository
from dispatch_tracker.schemas.order import SkuReference, coerce_sku_references

logger = logging.getLogger(__name__)


class SkuDetailRepository(BaseRepository[SkuDetail]):
    """Read access to SKU reference data."""

    model = SkuDetail

    def __init__(self, session: Session):
        super().__init__(session, SkuDetail)

    def list_sku_references(self) -> List[SkuReference]:
        stmt = select(SkuDetail).order_by(SkuDetail.id)
        rows = self.session.execute(stmt).scalars().all()
        return coerce_sku_references(rows)
