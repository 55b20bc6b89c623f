"""Rendering of store timestamps for display and export."""

from datetime import datetime, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo

from dateutil import parser as date_parser

DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M"


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Convert a store-native point in time into a datetime.

    Accepts datetimes, objects exposing ``to_datetime()`` (SDK timestamp
    types), epoch milliseconds and ISO-8601 strings. Returns None for empty
    values and raises for anything unparseable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if hasattr(value, "to_datetime"):
        return value.to_datetime()
    if isinstance(value, bool):
        raise TypeError("booleans are not timestamps")
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        return date_parser.isoparse(value)
    raise TypeError(f"Unsupported timestamp type: {type(value).__name__}")


def humanize_date(value: Any, date_format: str = DEFAULT_DATE_FORMAT, tz: str = "UTC") -> str:
    """Format a timestamp for people; malformed values render as ''."""
    if not value:
        return ""
    try:
        moment = to_datetime(value)
        if moment is None:
            return ""
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(ZoneInfo(tz)).strftime(date_format)
    except (TypeError, ValueError, OverflowError, OSError, KeyError):
        return ""
