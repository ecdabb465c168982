"""Parsing of date bounds supplied by query strings and the command line."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from .exceptions import InvalidQueryError

DATE_ONLY_FORMAT = "%Y-%m-%d"


def parse_datetime(value: str, end_of_day: bool = False) -> datetime:
    """Parse a date or ISO-8601 datetime into a naive UTC datetime.

    Args:
        value: ``YYYY-MM-DD`` or an ISO-8601 datetime, optionally with an
            offset or a trailing ``Z``.
        end_of_day: For a date-only value, return the last microsecond of that
            day instead of midnight. Used for inclusive upper bounds.

    Returns:
        Parsed datetime without tzinfo, expressed in UTC.

    Raises:
        InvalidQueryError: If the string cannot be parsed.
    """
    text = value.strip()

    try:
        day = datetime.strptime(text, DATE_ONLY_FORMAT)
    except ValueError:
        pass
    else:
        if end_of_day:
            return day + timedelta(days=1) - timedelta(microseconds=1)
        return day

    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise InvalidQueryError(
            f"Invalid date: {value!r}. "
            f"Expected YYYY-MM-DD or an ISO-8601 datetime"
        ) from None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_optional_bound(value: Optional[str], end_of_day: bool = False) -> Optional[datetime]:
    """Like parse_datetime, but a missing or blank value means unbounded."""
    if value is None or not value.strip():
        return None
    return parse_datetime(value, end_of_day=end_of_day)
