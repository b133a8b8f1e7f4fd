"""
Date parsing and conversion utilities for the synthesis builders.

Provides consistent date handling across extraction, synthesis and
chronology components.
"""
import logging
from datetime import date, datetime
from typing import Any, Optional, Tuple, Union

logger = logging.getLogger(__name__)

_DATE_FORMATS = (
    "%Y-%m-%d",   # ISO (most common in oracle output)
    "%m/%d/%Y",   # US with slashes
    "%m-%d-%Y",   # US with dashes
)


def parse_date(date_str: Optional[Union[str, date, datetime]]) -> Optional[date]:
    """Parse date string to date object.

    Supports multiple formats commonly found in medical records:
    - YYYY-MM-DD (ISO format)
    - YYYY-MM-DDTHH:MM:SS[.ffffff][Z] (ISO timestamp, date part kept)
    - MM/DD/YYYY (US format)
    - MM-DD-YYYY (US format with dashes)

    Args:
        date_str: Date string to parse, or None

    Returns:
        Parsed date object, or None if parsing fails
    """
    if not date_str:
        return None

    # datetime is a subclass of date, check it first
    if isinstance(date_str, datetime):
        return date_str.date()
    if isinstance(date_str, date):
        return date_str
    if not isinstance(date_str, str):
        logger.warning(f"Could not parse date: {date_str!r}")
        return None

    value = date_str.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue

    # ISO timestamps ("2024-01-15T00:00:00.000Z")
    if "T" in value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        except ValueError:
            pass

    logger.warning(f"Could not parse date: {date_str}")
    return None


def format_date(d: Optional[date]) -> Optional[str]:
    """Format date as YYYY-MM-DD, None passes through."""
    if d is None:
        return None
    if isinstance(d, datetime):
        d = d.date()
    return d.isoformat()


def date_sort_key(value: Any) -> Tuple[int, date]:
    """Sort key placing parseable dates ascending and unparseable ones last.

    Python's sort is stable, so undated items keep their relative order.
    """
    parsed = parse_date(value) if value else None
    if parsed is None:
        return (1, date.max)
    return (0, parsed)


def days_between(start: date, end: date) -> int:
    """Whole days from start to end (negative if end precedes start)."""
    return (end - start).days
