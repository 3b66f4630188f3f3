"""
store.py
--------
Persistence collaborator for the scheduling core, backed by the Django ORM.

The engines only talk to this class, so tests or other surfaces can hand in a
different store with the same methods.
"""

from collections import defaultdict
from datetime import timedelta

from ..models import Booking, DurationVariant, Location, StaffMember


class BookingStore:
    # ---- reads ----
    def get_location(self, location_id):
        return Location.objects.filter(pk=location_id).first()

    def get_variant(self, variant_id):
        return DurationVariant.objects.select_related("service").filter(pk=variant_id).first()

    def list_staff(self):
        """Full roster; the qualification filter decides who is active."""
        return list(StaffMember.objects.all().order_by("id"))

    def weekly_rules(self, staff_ids):
        from staff.models import WeeklyAvailabilityRule

        return list(WeeklyAvailabilityRule.objects.filter(staff_id__in=staff_ids))

    def date_overrides(self, staff_ids, start_date, end_date):
        from staff.models import DateAvailabilityOverride

        return list(
            DateAvailabilityOverride.objects.filter(
                staff_id__in=staff_ids,
                date__gte=start_date,
                date__lte=end_date,
            )
        )

    def active_bookings(self, staff_ids, window_start, window_end):
        """
        Non-cancelled bookings per staff id that may touch [window_start, window_end).
        Any location counts. The lower bound is widened by a day so long bookings
        that started earlier are still seen; the detector does the exact check.
        """
        qs = (
            Booking.objects.filter(
                staff_id__in=staff_ids,
                scheduled_at__lt=window_end,
                scheduled_at__gte=window_start - timedelta(days=1),
            )
            .exclude(status=Booking.STATUS_CANCELLED)
            .order_by("scheduled_at")
        )
        grouped = defaultdict(list)
        for b in qs:
            grouped[b.staff_id].append(b)
        return grouped

    # ---- writes ----
    def lock_staff(self, staff_id):
        """
        Row-lock the staff member for the rest of the current transaction.
        Serializes concurrent booking writes for one staff member. SQLite
        ignores the row lock and relies on BEGIN IMMEDIATE instead.
        """
        return StaffMember.objects.select_for_update().filter(pk=staff_id).first()

    def create_booking(self, **fields):
        return Booking.objects.create(**fields)
