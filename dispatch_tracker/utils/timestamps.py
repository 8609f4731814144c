# File: dispatch_tracker/utils/timestamps.py

import logging
import math
from datetime import datetime, date, timezone, time
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400


def local_now() -> datetime:
    """
    Current naive local time.

    The store keeps naive local timestamps, so every default ``now`` and
    every column default goes through here.
    """
    return datetime.now()


def parse_datetime_value(value: Any, field_name: str) -> Optional[datetime]:
    """
    Leniently parse a stored timestamp.

    Accepts datetimes, dates (taken as midnight) and ISO 8601 strings with a
    space or ``T`` separator and an optional ``Z`` suffix. A string whose
    time part cannot be read falls back to midnight of its date, with a
    warning. Anything else is logged and treated as missing.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text.replace(" ", "T", 1))
        except ValueError:
            try:
                day = date.fromisoformat(text[:10])
            except ValueError:
                logger.warning(f"Ignoring unparseable timestamp {value!r} for '{field_name}'")
                return None
            logger.warning(
                f"Timestamp {value!r} for '{field_name}' has an unreadable time part; using midnight"
            )
            return datetime.combine(day, time.min)
    logger.warning(f"Ignoring timestamp of type {type(value).__name__} for '{field_name}'")
    return None


def parse_date_value(value: Any, field_name: str) -> Optional[date]:
    """Leniently parse a calendar date; datetimes are truncated."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = parse_datetime_value(value, field_name)
    return parsed.date() if parsed else None


def parse_quantity(value: Any, field_name: str) -> Optional[float]:
    """
    Leniently parse a numeric quantity.

    Numeric strings may carry thousands separators. Booleans, NaN and
    unparseable values are logged and treated as missing.
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        logger.warning(f"Ignoring boolean quantity for '{field_name}'")
        return None
    try:
        if isinstance(value, (int, float, Decimal)):
            number = float(value)
        elif isinstance(value, str):
            number = float(Decimal(value.strip().replace(",", "")))
        else:
            raise TypeError(type(value).__name__)
    except (InvalidOperation, ValueError, TypeError):
        logger.warning(f"Ignoring unparseable quantity {value!r} for '{field_name}'")
        return None
    if math.isnan(number) or math.isinf(number):
        logger.warning(f"Ignoring non-finite quantity {value!r} for '{field_name}'")
        return None
    return number


def align(value: datetime, reference: datetime) -> datetime:
    """
    Make ``value`` comparable with ``reference``.

    Naive values compared with an aware reference are taken to be in the
    reference's zone; aware values compared with a naive reference are
    converted to naive UTC.
    """
    value_aware = value.tzinfo is not None and value.utcoffset() is not None
    reference_aware = reference.tzinfo is not None and reference.utcoffset() is not None
    if value_aware == reference_aware:
        return value
    if reference_aware:
        return value.replace(tzinfo=reference.tzinfo)
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def hours_between(later: datetime, earlier: datetime) -> float:
    """Signed number of hours from ``earlier`` to ``later``."""
    return (later - align(earlier, later)).total_seconds() / SECONDS_PER_HOUR


def start_of_day(now: datetime) -> datetime:
    """Midnight of ``now``'s calendar day, in ``now``'s own zone."""
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def is_on_or_after(value: Optional[datetime], boundary: datetime) -> bool:
    if value is None:
        return False
    return align(value, boundary) >= boundary


def epoch_seconds(value: datetime) -> float:
    """POSIX timestamp; naive values are taken as UTC."""
    if value.tzinfo is None or value.utcoffset() is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def newest_first_key(value: Optional[datetime]):
    """Sort key placing the newest timestamps first and missing ones last."""
    if value is None:
        return (1, 0.0)
    return (0, -epoch_seconds(value))
