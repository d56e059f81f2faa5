from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "America/Chicago"


def _zone(tz: str | ZoneInfo) -> ZoneInfo:
    return tz if isinstance(tz, ZoneInfo) else ZoneInfo(tz)


def local_date(value: date | datetime, tz: str | ZoneInfo = DEFAULT_TIMEZONE) -> date:
    """Truncate to a calendar date in the reference timezone.

    Naive datetimes are taken as UTC. Plain dates are returned unchanged.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(_zone(tz)).date()
    return value


def today(tz: str | ZoneInfo = DEFAULT_TIMEZONE, now: datetime | None = None) -> date:
    """Current date in the reference timezone."""
    current = now if now is not None else datetime.now(UTC)
    return local_date(current, tz)


def days_between(
    a: date | datetime, b: date | datetime, tz: str | ZoneInfo = DEFAULT_TIMEZONE
) -> int:
    """Whole days from a to b on reference-timezone midnights. Positive when b is later."""
    return (local_date(b, tz) - local_date(a, tz)).days
