"""
utils/time_utils.py

Purpose: Time and expiry helpers

- ISO-8601 UTC timestamps for stored records
- Session TTL checks
"""

from datetime import datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """
    Current UTC time as an ISO-8601 string.
    Fixed-width microseconds keep string order equal to time order.
    """
    return utc_now().isoformat(timespec="microseconds")


def parse_iso(value: Optional[str]) -> Optional[datetime]:
    """
    Parses an ISO-8601 timestamp; naive values are treated as UTC.
    Returns None for empty or unparseable input.
    """
    if not value:
        return None

    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_session_expired(last_activity: Optional[str], timeout_minutes: int = 30) -> bool:
    """
    Checks if a session has expired based on its last activity time.
    """
    last = parse_iso(last_activity)
    if not last:
        return True

    expiry_time = last + timedelta(minutes=timeout_minutes)
    return utc_now() > expiry_time
