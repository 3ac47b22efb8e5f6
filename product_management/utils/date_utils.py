# product_management/utils/date_utils.py
from datetime import datetime
from typing import Optional

TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'
NEVER = 'Never'

def current_timestamp(now: Optional[datetime] = None) -> str:
    """Get the local time formatted as ``YYYY-MM-DD HH:MM:SS``.

    Args:
        now: Optional datetime to format instead of the current time

    Returns:
        Timestamp string (19 characters)
    """
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)

def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse a stored timestamp.

    Args:
        value: Timestamp string

    Returns:
        datetime, or None if the value is empty, 'Never' or malformed
    """
    if not value or value == NEVER:
        return None
    try:
        return datetime.strptime(value, TIMESTAMP_FORMAT)
    except ValueError:
        return None

def is_valid_timestamp(value: str) -> bool:
    """Check that a value is a well-formed stored timestamp."""
    return parse_timestamp(value) is not None
