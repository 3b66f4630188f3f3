"""
conflict_detector.py
--------------------
Decides whether a proposed appointment collides with a staff member's existing
bookings, and whether a same-day slot is already too far in the past.

Overlap uses half-open intervals:
    proposed_start < existing_end AND proposed_end > existing_start
so a booking ending at 10:00 does not block one starting at 10:00.

Bookings are checked regardless of location: a staff member cannot be in two
places at once.
"""

from datetime import datetime, timedelta

from django.conf import settings

from .time_arithmetic import local_today, minutes_of_day, utc_to_local_wall_clock

INACTIVE_STATUSES = ("cancelled",)


def _default_duration() -> int:
    return getattr(settings, "BOOKING_DEFAULT_DURATION_MINUTES", 60)


def booking_interval(booking):
    """(start, end) of an existing booking; missing durations count as the default."""
    duration = booking.duration_minutes or _default_duration()
    start = booking.scheduled_at
    return start, start + timedelta(minutes=duration)


def overlaps(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    return start_a < end_b and end_a > start_b


def find_conflicts(start: datetime, duration_minutes: int, bookings, exclude_id=None):
    """Existing non-cancelled bookings that overlap [start, start + duration)."""
    end = start + timedelta(minutes=duration_minutes)
    conflicts = []
    for b in bookings:
        if b.status in INACTIVE_STATUSES:
            continue
        if exclude_id is not None and b.pk == exclude_id:
            continue
        existing_start, existing_end = booking_interval(b)
        if overlaps(start, end, existing_start, existing_end):
            conflicts.append(b)
    return conflicts


def has_conflict(start: datetime, duration_minutes: int, bookings, exclude_id=None) -> bool:
    return bool(find_conflicts(start, duration_minutes, bookings, exclude_id=exclude_id))


def is_past_slot(target_date, slot_minutes: int, tz_name: str, now: datetime, grace_minutes: int = 15) -> bool:
    """
    True when the slot should no longer be offered.

    Same-day slots are compared in local wall-clock minutes (stable across DST):
    the slot is past once now > slot + grace. Dates before the location's
    "today" are entirely past.
    """
    today = local_today(tz_name, now)
    if target_date < today:
        return True
    if target_date > today:
        return False
    now_minutes = minutes_of_day(utc_to_local_wall_clock(now, tz_name))
    return now_minutes > slot_minutes + grace_minutes
