"""
Local time helpers

Yacht calendars are kept in one configured timezone; reservations are
stored as UTC instants. These helpers move between the two.
"""

from datetime import date, datetime, time, timedelta, timezone
from math import ceil, floor
from typing import Any
from zoneinfo import ZoneInfo

from shared.domain.value_objects import HourRange, MonthKey
from apps.bookings.domain.exceptions import PolicyViolation

DEFAULT_BOOKING_TIMEZONE = 'America/Mazatlan'


def booking_timezone() -> ZoneInfo:
    from django.conf import settings  # type: ignore

    return ZoneInfo(getattr(settings, 'BOOKING_TIMEZONE', DEFAULT_BOOKING_TIMEZONE))


def local_midnight(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time(0), tzinfo=tz)


def local_instant(day: date, hour: int, tz: ZoneInfo) -> datetime:
    """UTC instant of `hour`:00 local time on `day`."""
    return datetime.combine(day, time(hour), tzinfo=tz).astimezone(timezone.utc)


def local_day_bounds(day: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    start = local_midnight(day, tz)
    end = local_midnight(day + timedelta(days=1), tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def month_bounds(month: MonthKey, tz: ZoneInfo) -> tuple[datetime, datetime]:
    start, _ = local_day_bounds(month.first_day, tz)
    _, end = local_day_bounds(month.last_day, tz)
    return start, end


def to_local(value: datetime, tz: ZoneInfo) -> datetime:
    return value.astimezone(tz)


def hour_range_on_day(start_at: datetime, end_at: datetime, day: date, tz: ZoneInfo) -> HourRange:
    """
    Hours occupied by [start_at, end_at) counted from local midnight of `day`.

    Partial hours round outward, so a 09:30-12:15 block occupies 9..13.
    The result may fall partly or wholly outside 0..24.
    """
    midnight = local_midnight(day, tz)
    start_hours = (start_at - midnight).total_seconds() / 3600
    end_hours = (end_at - midnight).total_seconds() / 3600
    start_hour = floor(start_hours)
    end_hour = max(ceil(end_hours), start_hour + 1)
    return HourRange(start_hour, end_hour)


def resolve_start_hour(day: date, start_hour: Any, requested_start: str | None, tz: ZoneInfo) -> Any:
    """
    Start hour from either an explicit hour or a local ISO timestamp.

    An explicit hour wins. A timestamp must fall on `day` and on the hour.
    """
    if start_hour is not None:
        return start_hour
    if not requested_start:
        raise PolicyViolation("Either start_hour or requested_start is required")

    try:
        parsed = datetime.fromisoformat(requested_start.strip())
    except ValueError as exc:
        raise PolicyViolation(f"Invalid requested_start: {requested_start!r}") from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    local = parsed.astimezone(tz)
    if local.date() != day:
        raise PolicyViolation("requested_start must fall on the booking date")
    if local.minute or local.second or local.microsecond:
        raise PolicyViolation("Start time must be on the hour")
    return local.hour
