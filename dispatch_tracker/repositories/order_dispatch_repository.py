# File: dispatch_tracker/repositories/order_dispatch_repository.py

import logging
import re
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from dispatch_tracker.db.models import OrderDispatch
from dispatch_tracker.repositories.base_repository import BaseRepository

logger = logging.getLogger(__name__)

# DO-416A -> DO-416
_LINE_SUFFIX = re.compile(r"^(.*\d)[A-Za-z]+$")


def base_order_no(order_no: Optional[str]) -> Optional[str]:
    """Strip the letter suffix that marks one line of a multi-line order."""
    if not order_no:
        return order_no
    match = _LINE_SUFFIX.match(order_no.strip())
    return match.group(1) if match else order_no.strip()


class OrderDispatchRepository(BaseRepository[OrderDispatch]):
    """Read access to the order_dispatch table for the aggregations."""

    model = OrderDispatch

    def __init__(self, session: Session):
        super().__init__(session, OrderDispatch)

    def list_orders(self) -> List[OrderDispatch]:
        """
        Load every order, newest first.

        The dashboard and report aggregations work on the whole table; any
        filtering is applied in memory afterwards.
        """
        stmt = select(OrderDispatch).order_by(
            OrderDispatch.created_at.desc(), OrderDispatch.id.desc()
        )
        orders = list(self.session.execute(stmt).scalars().all())
        logger.debug(f"Loaded {len(orders)} orders")
        return orders

    def get_by_order_no(self, order_no: str) -> Optional[OrderDispatch]:
        stmt = select(OrderDispatch).where(OrderDispatch.order_no == order_no)
        return self.session.execute(stmt).scalars().first()

    def list_order_lines(self, order_no: str) -> List[OrderDispatch]:
        """All lines of a (possibly multi-line) order, e.g. DO-416A and DO-416B."""
        base = base_order_no(order_no)
        stmt = (
            select(OrderDispatch)
            .where(OrderDispatch.order_no.like(f"{base}%"))
            .order_by(OrderDispatch.order_no)
        )
        return [
            line
            for line in self.session.execute(stmt).scalars().all()
            if base_order_no(line.order_no) == base
        ]
