# File: dispatch_tracker/core/log_config.py

import logging
from typing import Optional

from dispatch_tracker.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging for processes embedding the tracker.

    Args:
        level: Optional level name overriding ``settings.LOG_LEVEL``
    """
    log_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)
    logging.basicConfig(level=log_level, format=LOG_FORMAT)

    # SQLAlchemy engine logging is controlled separately by DB_ECHO
    if not settings.DB_ECHO:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
