# File: dispatch_tracker/db/models/base.py
"""
Declarative base and shared columns for the order store tables.
"""

from datetime import date, datetime
from typing import Any, Dict

from sqlalchemy import Column, DateTime, Integer, MetaData
from sqlalchemy.orm import declarative_base

from dispatch_tracker.utils.timestamps import local_now

Base = declarative_base(metadata=MetaData())


class TimestampMixin:
    """``created_at`` / ``updated_at`` maintained on insert and update."""

    created_at = Column(DateTime, default=local_now)
    updated_at = Column(DateTime, default=local_now, onupdate=local_now)


class AbstractBase(Base):
    """Integer surrogate key plus a JSON-friendly ``to_dict``."""

    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True)

    def to_dict(self) -> Dict[str, Any]:
        """Column values keyed by column name; dates and datetimes as ISO strings."""
        values = {}
        for name in self.__table__.columns.keys():
            value = getattr(self, name)
            values[name] = value.isoformat() if isinstance(value, (date, datetime)) else value
        return values
