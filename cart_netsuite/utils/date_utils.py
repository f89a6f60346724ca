"""
Date utility functions for the 3DCart-NetSuite integration.

3DCart sends order dates either as ISO 8601 strings ("2024-01-15T14:30:00")
or in its US display format ("1/15/2024 2:30:00 PM"); spreadsheet uploads add
whatever the user typed. NetSuite transaction dates are plain YYYY-MM-DD.
"""

from datetime import datetime, timezone
from typing import Optional
import logging


logger = logging.getLogger(__name__)


# Formats tried after ISO 8601 parsing fails
_FALLBACK_FORMATS = (
    '%m/%d/%Y %I:%M:%S %p',
    '%m/%d/%Y %H:%M:%S',
    '%m/%d/%Y %H:%M',
    '%m/%d/%Y',
    '%Y-%m-%d %H:%M:%S',
    '%Y/%m/%d',
    '%d.%m.%Y',
)


def parse_order_date(date_str: Optional[str]) -> Optional[datetime]:
    """
    Parse a 3DCart or spreadsheet order date.

    Args:
        date_str: Date string in ISO 8601 or one of the common US formats

    Returns:
        datetime (timezone preserved when present), or None if unparseable

    Examples:
        >>> parse_order_date("2024-01-15T14:30:00Z").day
        15
        >>> parse_order_date("1/15/2024 2:30:00 PM").hour
        14
        >>> parse_order_date("not a date") is None
        True
    """
    if not date_str:
        return None

    value = str(date_str).strip()

    try:
        if value.endswith('Z'):
            value = value[:-1] + '+00:00'
        return datetime.fromisoformat(value)
    except ValueError:
        pass

    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue

    logger.warning(f"Failed to parse date '{date_str}'")
    return None


def to_netsuite_date(date_str: Optional[str]) -> str:
    """
    Format an order date as a NetSuite tranDate (YYYY-MM-DD).

    Falls back to today's date when the input is missing or unparseable,
    the same way a blank spreadsheet date defaults to "now".

    Examples:
        >>> to_netsuite_date("2024-01-15T14:30:00Z")
        '2024-01-15'
    """
    dt = parse_order_date(date_str)
    if dt is None:
        dt = datetime.now()
    return dt.strftime('%Y-%m-%d')


def now_local_str() -> str:
    """Current local time as 'YYYY-MM-DD HH:MM:SS' (default order date for uploads)."""
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


def now_iso() -> str:
    """Current UTC time in ISO 8601, used for response and status timestamps."""
    return datetime.now(timezone.utc).isoformat()


def format_bytes(num_bytes: Optional[float], precision: int = 2) -> str:
    """
    Format a byte count for humans.

    Examples:
        >>> format_bytes(1536)
        '1.5 KB'
    """
    if num_bytes is None:
        return 'N/A'

    units = ['B', 'KB', 'MB', 'GB', 'TB']
    value = float(num_bytes)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1

    return f"{round(value, precision):g} {units[index]}"
