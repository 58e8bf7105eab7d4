"""UTC-everywhere time handling. Business-local time only for years and display."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def now_utc() -> datetime:
    """
    Current time in UTC.

    Use this instead of datetime.now() everywhere.
    """
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Raises ValueError if datetime is naive (no timezone).
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime to UTC. Datetime must be timezone-aware."
        )
    return dt.astimezone(timezone.utc)


def _zone(tz_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {tz_name}")


def to_local(dt: datetime, tz_name: str) -> datetime:
    """
    Convert UTC datetime to the business timezone.

    ONLY use this at boundaries where the calendar matters to a human:
    the counter year and dates printed on documents.

    Raises:
        ValueError: If datetime is naive or timezone name is invalid
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime. Datetime must be timezone-aware."
        )
    return dt.astimezone(_zone(tz_name))


def today_local(tz_name: str) -> date:
    """Calendar date right now in the business timezone."""
    return to_local(now_utc(), tz_name).date()


def current_year(tz_name: str) -> int:
    """
    Counter year for documents issued right now.

    Counters are keyed by year, so the rollover happens at local midnight on
    January 1st, not at UTC midnight.
    """
    return today_local(tz_name).year


def format_display_date(value: date) -> str:
    """Render a date as DD/MM/YYYY, the format printed on documents."""
    return value.strftime("%d/%m/%Y")
