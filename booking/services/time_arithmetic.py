"""
time_arithmetic.py
------------------
Clock-time parsing/formatting and location-anchored timezone conversion.

All booking times are wall-clock times at the location, so conversions always
go through the location's IANA zone for the specific calendar date (DST-aware).
If the zone cannot be resolved we fall back to a static table of US standard
offsets and log a warning; the rest of the system never sees the failure.
"""

import logging
import re
from collections import namedtuple
from datetime import date, datetime, timedelta, timezone as dt_timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import InvalidTimeFormat, OutOfRange, TimezoneResolutionFailure

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60

WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

# Standard-time offsets (minutes east of UTC) used only when the tz database
# cannot resolve a zone.
FALLBACK_UTC_OFFSETS = {
    "America/New_York": -300,
    "America/Detroit": -300,
    "America/Indiana/Indianapolis": -300,
    "America/Chicago": -360,
    "America/Denver": -420,
    "America/Boise": -420,
    "America/Phoenix": -420,
    "America/Los_Angeles": -480,
    "America/Anchorage": -540,
    "Pacific/Honolulu": -600,
    "UTC": 0,
}
FALLBACK_DEFAULT_OFFSET = -300

_HHMM_RE = re.compile(r"^\s*([01]?\d|2[0-3]):([0-5]\d)\s*$")
_END_OF_DAY_RE = re.compile(r"^\s*24:00\s*$")
_TWELVE_HOUR_RE = re.compile(r"^\s*(1[0-2]|0?[1-9]):([0-5]\d)\s*([AaPp])\.?[Mm]\.?\s*$")

WallClock = namedtuple("WallClock", ["year", "month", "day", "hour", "minute"])


def parse_clock_time(text) -> int:
    """
    Parse '14:30' or '2:30 PM' into minutes since midnight.
    '24:00' is accepted as the end of the day (1440).
    """
    if not isinstance(text, str):
        raise InvalidTimeFormat(f"Expected a time string, got {text!r}")

    m = _HHMM_RE.match(text)
    if m:
        return int(m.group(1)) * 60 + int(m.group(2))

    if _END_OF_DAY_RE.match(text):
        return MINUTES_PER_DAY

    m = _TWELVE_HOUR_RE.match(text)
    if m:
        hour = int(m.group(1)) % 12
        if m.group(3).lower() == "p":
            hour += 12
        return hour * 60 + int(m.group(2))

    raise InvalidTimeFormat(f"Unrecognised time {text!r}; use 'HH:MM' or 'h:mm AM/PM'")


def format_clock_time(minutes: int) -> str:
    """Minutes since midnight -> zero-padded 'HH:MM'."""
    if not isinstance(minutes, int) or not 0 <= minutes < MINUTES_PER_DAY:
        raise OutOfRange(f"Minute offset must be in [0, {MINUTES_PER_DAY}), got {minutes!r}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_clock_time(text) -> str:
    """Canonical 'HH:MM' form of any accepted input ('24:00' stays as is)."""
    minutes = parse_clock_time(text)
    if minutes == MINUTES_PER_DAY:
        return "24:00"
    return format_clock_time(minutes)


def weekday_of(day: date) -> str:
    return WEEKDAY_NAMES[day.weekday()]


def minutes_of_day(wall: WallClock) -> int:
    return wall.hour * 60 + wall.minute


# -------------------------
# Timezone resolution
# -------------------------
def resolve_timezone(tz_name: str) -> ZoneInfo:
    if not tz_name:
        raise TimezoneResolutionFailure(tz_name, "empty zone name")
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError, TypeError) as e:
        raise TimezoneResolutionFailure(tz_name, str(e)) from e


def fallback_offset(tz_name: str) -> timedelta:
    return timedelta(minutes=FALLBACK_UTC_OFFSETS.get(tz_name, FALLBACK_DEFAULT_OFFSET))


def _zone_or_fallback(tz_name: str):
    try:
        return resolve_timezone(tz_name)
    except TimezoneResolutionFailure as e:
        offset = fallback_offset(tz_name)
        logger.warning(
            "%s; using static fallback offset %s minutes",
            e,
            int(offset.total_seconds() // 60),
        )
        return dt_timezone(offset)


def local_wall_clock_to_utc(year, month, day, hour, minute, tz_name) -> datetime:
    """
    Wall-clock time at the location -> aware UTC datetime.

    The offset is the one in force at that wall-clock time on that date.
    Ambiguous times (DST fall-back) resolve to the first occurrence; times that
    do not exist (spring-forward gap) are shifted forward by the gap.
    """
    tz = _zone_or_fallback(tz_name)
    local = datetime(year, month, day, hour, minute, tzinfo=tz)
    return local.astimezone(dt_timezone.utc)


def local_date_to_utc(day: date, minutes: int, tz_name: str) -> datetime:
    """Calendar date + minute offset at the location -> aware UTC datetime."""
    if not 0 <= minutes <= MINUTES_PER_DAY:
        raise OutOfRange(f"Minute offset must be in [0, {MINUTES_PER_DAY}], got {minutes!r}")
    if minutes == MINUTES_PER_DAY:
        nxt = day + timedelta(days=1)
        return local_wall_clock_to_utc(nxt.year, nxt.month, nxt.day, 0, 0, tz_name)
    return local_wall_clock_to_utc(day.year, day.month, day.day, minutes // 60, minutes % 60, tz_name)


def utc_to_local_wall_clock(instant: datetime, tz_name: str) -> WallClock:
    """
    Aware instant -> wall clock at the location.
    Naive datetimes are taken to be UTC (that is how bookings are stored).
    """
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=dt_timezone.utc)
    local = instant.astimezone(_zone_or_fallback(tz_name))
    return WallClock(local.year, local.month, local.day, local.hour, local.minute)


def wall_clock_date(wall: WallClock) -> date:
    return date(wall.year, wall.month, wall.day)


def local_today(tz_name: str, now: datetime) -> date:
    return wall_clock_date(utc_to_local_wall_clock(now, tz_name))


def local_day_bounds(day: date, tz_name: str):
    """
    UTC [start, end) covering the whole local calendar day.
    The day may be 23 or 25 hours long around DST changes.
    """
    return local_date_to_utc(day, 0, tz_name), local_date_to_utc(day, MINUTES_PER_DAY, tz_name)


def date_range(start: date, end: date):
    """Inclusive list of calendar dates; swaps the bounds if given backwards."""
    if start > end:
        start, end = end, start
    days = []
    current = start
    while current <= end:
        days.append(current)
        current += timedelta(days=1)
    return days
