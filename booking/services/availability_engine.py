"""
availability_engine.py
----------------------
Read path of the scheduler: which start times can a customer pick?

For every date in the range and every qualified staff member:
1) resolve the staff member's window for that date (override beats weekly rule),
2) expand it into slots at the shop's interval,
3) keep slots where the service fits inside the window, the slot is not past
   the same-day grace period, and no existing booking overlaps.
Surviving slots are unioned across staff; a time is offered when ANY qualified
staff member is free, and we remember which ones are.

The result is a point-in-time snapshot. BookingScheduler.schedule_booking
re-checks authoritatively before writing.

Failures while evaluating one staff member on one date (e.g., a malformed time
on a rule) are logged and that staff/date simply contributes no slots.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta

from django.conf import settings
from django.utils import timezone

from .availability_resolver import resolve_window
from .conflict_detector import has_conflict, is_past_slot
from .errors import SchedulingError
from .slot_utils import generate_slots, get_grace_period, get_slot_interval, slot_fits
from .staff_filter import qualified_staff
from .store import BookingStore
from .time_arithmetic import date_range, format_clock_time, local_date_to_utc, local_day_bounds

logger = logging.getLogger(__name__)


@dataclass
class AvailabilityResult:
    location_id: int
    timezone: str
    duration_minutes: int
    # date -> {minute offset -> [staff ids free at that slot]}
    days: dict = field(default_factory=dict)

    def times_for(self, day: date):
        """Sorted 'HH:MM' list offered on `day`."""
        return [format_clock_time(m) for m in sorted(self.days.get(day, {}))]

    def staff_for(self, day: date, time_str: str):
        for minutes, staff_ids in self.days.get(day, {}).items():
            if format_clock_time(minutes) == time_str:
                return list(staff_ids)
        return []

    def as_dict(self):
        return {
            "location": self.location_id,
            "timezone": self.timezone,
            "duration_minutes": self.duration_minutes,
            "slots": {d.isoformat(): self.times_for(d) for d in sorted(self.days)},
            "staff": {
                d.isoformat(): {
                    format_clock_time(m): ids for m, ids in sorted(self.days[d].items())
                }
                for d in sorted(self.days)
            },
        }


class AvailabilityEngine:
    def __init__(self, store=None):
        self.store = store or BookingStore()

    def staff_slots_for_day(self, member, location, day, duration, interval, grace, rules, overrides, bookings, now):
        """Minute offsets at which `member` can start a `duration`-minute booking on `day`."""
        window = resolve_window(member.pk, location.pk, day, rules, overrides)
        if window is None:
            return []

        tz_name = location.timezone
        free = []
        for start_min in generate_slots(window, interval):
            if not slot_fits(window, start_min, duration):
                break  # later starts only end later
            if is_past_slot(day, start_min, tz_name, now, grace):
                continue
            start = local_date_to_utc(day, start_min, tz_name)
            if has_conflict(start, duration, bookings):
                continue
            free.append(start_min)
        return free

    def compute_available_slots(
        self,
        variant,
        location,
        start_date: date,
        end_date: date | None = None,
        staff_id=None,
        now=None,
        interval: int | None = None,
        grace_minutes: int | None = None,
    ) -> AvailabilityResult:
        """
        Offered start times per date for `variant` at `location`.

        Args:
            variant: DurationVariant (needs duration_minutes)
            location: Location (needs timezone, offers_services)
            start_date/end_date: inclusive local calendar dates
            staff_id: a specific staff member, or None for "any available"
            now: aware datetime; defaults to timezone.now()
        """
        end_date = end_date or start_date
        now = now or timezone.now()
        interval = interval or get_slot_interval()
        grace = get_grace_period() if grace_minutes is None else grace_minutes
        duration = variant.duration_minutes or getattr(settings, "BOOKING_DEFAULT_DURATION_MINUTES", 60)
        days = date_range(start_date, end_date)

        result = AvailabilityResult(
            location_id=location.pk,
            timezone=location.timezone,
            duration_minutes=duration,
            days={d: {} for d in days},
        )

        if not location.offers_services:
            logger.info("Location %s does not offer services; no slots", location.pk)
            return result

        if not variant.active or not variant.service.active:
            logger.info("Variant %s is not bookable; no slots", variant.pk)
            return result

        staff = qualified_staff(self.store.list_staff(), staff_id)
        if not staff:
            logger.info("No qualified staff for location=%s staff=%s", location.pk, staff_id)
            return result

        staff_ids = [s.pk for s in staff]
        rules = self.store.weekly_rules(staff_ids)
        overrides = self.store.date_overrides(staff_ids, days[0], days[-1])
        range_start, _ = local_day_bounds(days[0], location.timezone)
        _, range_end = local_day_bounds(days[-1], location.timezone)
        bookings = self.store.active_bookings(
            staff_ids, range_start, range_end + timedelta(minutes=duration)
        )

        for day in days:
            offered = result.days[day]
            for member in staff:
                try:
                    free = self.staff_slots_for_day(
                        member, location, day, duration, interval, grace,
                        rules, overrides, bookings.get(member.pk, []), now,
                    )
                except (SchedulingError, ValueError):
                    logger.exception(
                        "Skipping staff %s on %s: availability could not be evaluated",
                        member.pk,
                        day,
                    )
                    continue
                for start_min in free:
                    offered.setdefault(start_min, []).append(member.pk)

        return result
