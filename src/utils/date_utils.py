"""
Date handling utilities for email processing system.

Provides parsing of email date headers and the conversions used between
timezone-aware values in the pipeline and the naive UTC values stored in
the database.
"""

from datetime import datetime
import email.utils
import logging
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

UTC = ZoneInfo("UTC")


class DateParsingError(Exception):
    """Custom exception for date parsing failures."""
    pass


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def parse_email_date(date_str: Optional[str]) -> Tuple[datetime, bool]:
    """
    Parse email date strings with comprehensive format handling.

    Handles RFC 2822 dates (the ``Date`` header), ISO 8601 strings and a
    few common variations.

    Args:
        date_str: Date string to parse

    Returns:
        Tuple containing:
        - Parsed datetime object in UTC (current time when parsing fails)
        - Boolean indicating parsing success
    """
    if not date_str:
        logger.warning("Empty date string provided")
        return utc_now(), False

    try:
        email_tuple = email.utils.parsedate_tz(date_str)
        if email_tuple:
            timestamp = email.utils.mktime_tz(email_tuple)
            return datetime.fromtimestamp(timestamp, UTC), True

        try:
            parsed_date = datetime.fromisoformat(date_str.replace('Z', '+00:00'))
            if not parsed_date.tzinfo:
                parsed_date = parsed_date.replace(tzinfo=UTC)
            return parsed_date.astimezone(UTC), True
        except ValueError:
            pass

        for fmt in [
            "%Y-%m-%d %H:%M:%S %z",
            "%Y-%m-%d %H:%M:%S",
            "%a, %d %b %Y %H:%M:%S %z",
            "%a, %d %b %Y %H:%M:%S"
        ]:
            try:
                parsed = datetime.strptime(date_str, fmt)
                if not parsed.tzinfo:
                    parsed = parsed.replace(tzinfo=UTC)
                return parsed.astimezone(UTC), True
            except ValueError:
                continue

        raise DateParsingError(f"Unable to parse date string: {date_str}")

    except DateParsingError as e:
        logger.warning(str(e))
        return utc_now(), False


def to_storage(dt: datetime) -> datetime:
    """Convert a datetime to the naive UTC form stored in the database."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(UTC).replace(tzinfo=None)


def from_storage(dt: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to a naive datetime read from the database."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def format_iso_date(dt: datetime) -> str:
    """
    Format datetime object as ISO string, assuming UTC for naive values.

    Args:
        dt: Datetime object to format

    Returns:
        ISO formatted date string
    """
    if not dt.tzinfo:
        dt = dt.replace(tzinfo=UTC)
    return dt.isoformat()
