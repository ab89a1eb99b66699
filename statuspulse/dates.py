"""Timezone-aware calendar date helpers.

Every aggregation decision (daily snapshots, incident dedup, uptime strips)
keys on a YYYY-MM-DD string computed here, so this is the only place that
converts instants to dates.
"""

from datetime import UTC, date, datetime, timedelta
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DATE_FORMAT = "%Y-%m-%d"


@lru_cache(maxsize=32)
def get_timezone(name: str) -> ZoneInfo:
    """Resolve an IANA timezone name.

    Raises:
        ValueError: If the name is empty or unknown.
    """
    if not name:
        raise ValueError("Timezone name cannot be empty")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        raise ValueError(f"Unknown timezone: {name!r}") from e


def calendar_date(instant: datetime, tz_name: str) -> str:
    """Return the calendar date of an instant in the given timezone.

    Naive datetimes are interpreted as UTC.

    Args:
        instant: Point in time to convert.
        tz_name: IANA timezone name, e.g. "Europe/Madrid".

    Returns:
        Date key in YYYY-MM-DD format.
    """
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    return instant.astimezone(get_timezone(tz_name)).strftime(DATE_FORMAT)


def previous_dates(today: str, days: int) -> list[str]:
    """Return ``days`` consecutive date keys ending at ``today``, oldest first."""
    end = date.fromisoformat(today)
    return [(end - timedelta(days=offset)).strftime(DATE_FORMAT) for offset in range(days - 1, -1, -1)]
