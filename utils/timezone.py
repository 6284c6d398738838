"""UTC-everywhere time handling for invoice dates and reporting windows."""

from datetime import date, datetime, time, timezone


def now_utc() -> datetime:
    """
    Current time in UTC.

    Use this instead of datetime.now() everywhere.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Normalize a datetime to UTC.

    Naive datetimes are treated as already being in UTC. Browser forms and
    LLM output send bare dates like "2025-05-10", and those carry no offset.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def coerce_datetime(value):
    """
    Turn a date, ISO string or datetime into a UTC datetime.

    Anything else is returned unchanged so pydantic can report it.
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time(), tzinfo=timezone.utc)
    if isinstance(value, str) and value.strip():
        try:
            return ensure_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
        except ValueError:
            return value
    return value


def start_of_month(dt: datetime) -> datetime:
    """First instant of dt's calendar month, in UTC."""
    dt = ensure_utc(dt)
    return dt.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def shift_months(dt: datetime, months: int) -> datetime:
    """
    Move a month-start datetime forward (or back) by whole months.

    Only meant for datetimes already on day 1, so day overflow can't happen.
    """
    index = dt.year * 12 + (dt.month - 1) + months
    return dt.replace(year=index // 12, month=index % 12 + 1)


def month_starts(now: datetime, count: int) -> list[datetime]:
    """
    Month-start datetimes for the last `count` calendar months, oldest first.

    The month containing `now` is the last entry.
    """
    current = start_of_month(now)
    return [shift_months(current, -offset) for offset in range(count - 1, -1, -1)]
