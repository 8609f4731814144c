# File: dispatch_tracker/db/__init__.py
"""
Database package for the dispatch tracker.

Exposes the declarative base; sessions live in ``dispatch_tracker.db.session``.
"""

from dispatch_tracker.db.models import Base

__all__ = ["Base"]
