"""
Conversion between a tournament's stored schedule (calendar date, local
time-of-day string, IANA timezone) and absolute UTC instants.
"""
import logging
import re
from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from django.utils import timezone
from django.utils.dateparse import parse_date

from .exceptions import InvalidTimeFormat, InvalidTimezone, ScheduleValidationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"
TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?:\s?(AM|PM))?$", re.IGNORECASE)


def parse_time_of_day(value: str) -> tuple[int, int]:
    """Parse ``H:MM``, ``HH:MM`` or ``HH:MM AM/PM`` into 24h (hour, minute)."""
    match = TIME_PATTERN.match((value or "").strip()) if isinstance(value, str) else None
    if not match:
        raise InvalidTimeFormat(received=value)
    hour, minute, meridiem = int(match.group(1)), int(match.group(2)), match.group(3)
    if minute > 59:
        raise InvalidTimeFormat(received=value)
    if meridiem:
        if not 1 <= hour <= 12:
            raise InvalidTimeFormat(received=value)
        hour = hour % 12
        if meridiem.upper() == "PM":
            hour += 12
    elif hour > 23:
        raise InvalidTimeFormat(received=value)
    return hour, minute


def normalize_time_format(value: str) -> str:
    hour, minute = parse_time_of_day(value)
    return f"{hour:02d}:{minute:02d}"


def coerce_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = None
    if isinstance(value, str):
        try:
            parsed = parse_date(value.strip()[:10])
        except ValueError:
            parsed = None
    if parsed is None:
        raise ScheduleValidationError("Invalid start date format", received=str(value))
    return parsed


def resolve_timezone(name):
    if not name:
        return dt_timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, TypeError):
        raise InvalidTimezone(timezone=name)


def start_instant(start_date, start_time: str, tz_name: str = DEFAULT_TIMEZONE) -> datetime:
    """Absolute UTC instant at which a tournament starts.

    An unknown zone name is a validation error. Any other failure while
    resolving or converting the zone degrades to reading the local time as UTC.
    """
    hour, minute = parse_time_of_day(start_time)
    local = datetime.combine(coerce_date(start_date), time(hour, minute))
    try:
        zone = resolve_timezone(tz_name)
        return local.replace(tzinfo=zone).astimezone(dt_timezone.utc)
    except InvalidTimezone:
        raise
    except Exception as exc:
        logger.warning(
            "Timezone resolution failed for %s (%s); interpreting %s as UTC",
            tz_name,
            exc,
            local.isoformat(),
        )
        return local.replace(tzinfo=dt_timezone.utc)


def end_instant(start: datetime, duration_ms: int) -> datetime:
    return start + timedelta(milliseconds=duration_ms)


def now_in_timezone(tz_name: str, now: datetime | None = None) -> datetime:
    now = now or timezone.now()
    try:
        zone = resolve_timezone(tz_name)
    except InvalidTimezone:
        zone = dt_timezone.utc
    return now.astimezone(zone)


def _minutes_between(later: datetime, earlier: datetime) -> float:
    return round((later - earlier).total_seconds() / 60, 2)


def time_info(start_at: datetime, duration_ms: int, tz_name: str, now: datetime | None = None) -> dict:
    now = now or timezone.now()
    end_at = end_instant(start_at, duration_ms)
    minutes_until_start = _minutes_between(start_at, now)
    minutes_until_end = _minutes_between(end_at, now)
    fmt = "%Y-%m-%d %H:%M:%S"
    local_start = now_in_timezone(tz_name, start_at)
    local_end = now_in_timezone(tz_name, end_at)
    return {
        "timezone": tz_name or DEFAULT_TIMEZONE,
        "start_datetime": start_at,
        "end_datetime": end_at,
        "current_time": now,
        "start_datetime_local": local_start.strftime(fmt),
        "end_datetime_local": local_end.strftime(fmt),
        "current_time_local": now_in_timezone(tz_name, now).strftime(fmt),
        "minutes_until_start": minutes_until_start,
        "minutes_until_end": minutes_until_end,
        "hours_until_start": round(minutes_until_start / 60, 2),
        "hours_until_end": round(minutes_until_end / 60, 2),
        "duration_minutes": duration_ms / (1000 * 60),
        "is_starting_soon": 0 < minutes_until_start <= 5,
        "has_started": minutes_until_start <= 0,
        "has_ended": minutes_until_end <= 0,
        "is_active": minutes_until_start <= 0 < minutes_until_end,
    }
