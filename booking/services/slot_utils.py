"""
slot_utils.py
-------------
Expands an availability window into candidate start times and reads the
shop-configurable slot interval.

Slots are minute offsets from local midnight. Generation knows nothing about
service duration; callers apply slot_fits() separately.
"""

from django.conf import settings

from configmgr.models import get_setting

from .errors import OutOfRange
from .time_arithmetic import MINUTES_PER_DAY


def get_slot_interval() -> int:
    """
    Slot granularity in minutes.
    SystemSetting SLOT_INTERVAL_MINUTES overrides settings.BOOKING_SLOT_INTERVAL_MINUTES.
    """
    default = getattr(settings, "BOOKING_SLOT_INTERVAL_MINUTES", 30)
    value = get_setting("SLOT_INTERVAL_MINUTES", default, int)
    if value <= 0:
        return default
    return value


def get_grace_period() -> int:
    default = getattr(settings, "BOOKING_GRACE_PERIOD_MINUTES", 15)
    value = get_setting("GRACE_PERIOD_MINUTES", default, int)
    if value < 0:
        return default
    return value


def generate_slots(window, interval: int = 30) -> range:
    """
    Candidate starts t with window.start_minutes <= t < window.end_minutes,
    stepping by `interval`.

    A range is lazy, finite and can be iterated any number of times.
    """
    if not isinstance(interval, int) or interval <= 0:
        raise OutOfRange(f"Slot interval must be a positive number of minutes, got {interval!r}")
    start = max(0, window.start_minutes)
    end = min(MINUTES_PER_DAY, window.end_minutes)
    return range(start, end, interval)


def slot_fits(window, start_minutes: int, duration_minutes: int) -> bool:
    """True if [start, start + duration) lies inside the window."""
    return (
        window.start_minutes <= start_minutes
        and start_minutes + duration_minutes <= window.end_minutes
    )
