"""
booking_scheduler.py
--------------------
Coordinates booking creation and the booking lifecycle.

Write path (schedule_booking):
1) Convert the requested local date/time to UTC with the location's CURRENT zone.
2) Inside a transaction, row-lock the staff member, re-read their bookings and
   re-run the overlap check. The read path may be stale; this check is the one
   that counts.
3) Raise SlotNoLongerAvailable on conflict; otherwise insert.

Because of the per-staff lock, two concurrent requests for the same staff and
overlapping interval serialize and at most one succeeds. SQLite ignores row
locks; there the IMMEDIATE transaction mode (settings.DATABASES) takes the
write lock at BEGIN instead. A lock still held after the busy timeout is
retried once and then reported as SlotNoLongerAvailable.

Lifecycle:
    pending   -> confirmed | cancelled
    confirmed -> completed | cancelled
paid / not_paid (payment sync) follow the confirmed rules.
cancelled and completed are terminal.
"""

import logging
from datetime import timedelta

from django.conf import settings
from django.db import OperationalError, transaction
from django.utils import timezone

from configmgr.models import get_setting

from ..models import Booking, Customer
from .availability_engine import AvailabilityEngine
from .availability_resolver import resolve_window
from .conflict_detector import has_conflict, is_past_slot
from .errors import (
    InvalidBookingRequest,
    InvalidStatusTransition,
    NoQualifiedStaff,
    OutOfRange,
    SlotNoLongerAvailable,
)
from .slot_utils import get_grace_period, slot_fits
from .staff_filter import qualified_staff
from .store import BookingStore
from .time_arithmetic import MINUTES_PER_DAY, local_date_to_utc, parse_clock_time

logger = logging.getLogger(__name__)

_ACTIVE_TRANSITIONS = {Booking.STATUS_COMPLETED, Booking.STATUS_CANCELLED}

TRANSITIONS = {
    Booking.STATUS_PENDING: {Booking.STATUS_CONFIRMED, Booking.STATUS_CANCELLED},
    Booking.STATUS_CONFIRMED: _ACTIVE_TRANSITIONS,
    Booking.STATUS_PAID: _ACTIVE_TRANSITIONS,
    Booking.STATUS_NOT_PAID: _ACTIVE_TRANSITIONS,
}
TERMINAL_STATUSES = {Booking.STATUS_CANCELLED, Booking.STATUS_COMPLETED}


class BookingScheduler:
    def __init__(self, store=None):
        self.store = store or BookingStore()
        self.availability = AvailabilityEngine(self.store)

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------
    def compute_available_slots(self, variant, location, start_date, end_date=None, staff_id=None, now=None):
        return self.availability.compute_available_slots(
            variant, location, start_date, end_date, staff_id=staff_id, now=now
        )

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------
    def _initial_status(self, confirm):
        if confirm is None:
            confirm = get_setting(
                "AUTO_CONFIRM_BOOKINGS",
                getattr(settings, "BOOKING_AUTO_CONFIRM", False),
                bool,
            )
        return Booking.STATUS_CONFIRMED if confirm else Booking.STATUS_PENDING

    def _customer_fields(self, customer):
        """Accepts a Customer, a {name, email, phone} dict, or None."""
        if customer is None:
            return {"customer": None, "customer_name": "", "customer_email": ""}
        if isinstance(customer, Customer):
            return {
                "customer": customer,
                "customer_name": customer.name,
                "customer_email": customer.email,
            }
        name = (customer.get("name") or "").strip()
        email = (customer.get("email") or "").strip()
        linked = None
        if name and email:
            linked = Customer.find_or_create(name, email, customer.get("phone") or "")
        return {"customer": linked, "customer_name": name, "customer_email": email}

    def _fits_staff_window(self, member, location, day, start_min, duration):
        rules = self.store.weekly_rules([member.pk])
        overrides = self.store.date_overrides([member.pk], day, day)
        window = resolve_window(member.pk, location.pk, day, rules, overrides)
        return window is not None and slot_fits(window, start_min, duration)

    def schedule_booking(
        self,
        variant_id,
        location_id,
        day,
        time,
        customer=None,
        staff_id=None,
        confirm=None,
        notes="",
        order_id="",
        now=None,
        enforce_availability=True,
    ):
        """
        Validate and persist a booking for `time` ('HH:MM' local) on `day`.

        Args:
            staff_id: a specific staff member, or None to auto-assign the first
                qualified staff member who is free
            confirm: True -> confirmed, False -> pending,
                None -> AUTO_CONFIRM_BOOKINGS setting
            enforce_availability: require the interval to sit inside the staff
                member's window (admin manual entry may switch this off)

        Raises:
            InvalidBookingRequest / InvalidTimeFormat / OutOfRange: bad input
            NoQualifiedStaff: nobody active can take it
            SlotNoLongerAvailable: every candidate is busy at that time
        """
        now = now or timezone.now()

        location = self.store.get_location(location_id)
        if location is None:
            raise InvalidBookingRequest("Location not found.")
        if not location.offers_services:
            raise InvalidBookingRequest("This location does not offer bookable services.")

        variant = self.store.get_variant(variant_id)
        if variant is None or not variant.active or not variant.service.active:
            raise InvalidBookingRequest("This service is not currently available.")

        start_min = parse_clock_time(time)
        if start_min >= MINUTES_PER_DAY:
            raise OutOfRange("A booking cannot start at 24:00.")

        tz_name = location.timezone
        if is_past_slot(day, start_min, tz_name, now, get_grace_period()):
            raise InvalidBookingRequest("Requested time is in the past.")

        scheduled_at = local_date_to_utc(day, start_min, tz_name)
        duration = variant.duration_minutes or getattr(settings, "BOOKING_DEFAULT_DURATION_MINUTES", 60)
        scheduled_end = scheduled_at + timedelta(minutes=duration)

        candidates = qualified_staff(self.store.list_staff(), staff_id)
        if not candidates:
            raise NoQualifiedStaff("No active staff member is available for this service.")

        status = self._initial_status(confirm)
        customer_fields = self._customer_fields(customer)

        for member in candidates:
            booking = None
            for attempt in (1, 2):
                try:
                    booking = self._claim_slot(
                        member, location, variant, day, start_min, duration,
                        scheduled_at, scheduled_end, status, enforce_availability,
                        notes=notes or "", order_id=order_id or "", **customer_fields,
                    )
                    break
                except OperationalError:
                    # SQLite reports a held write lock as "database is locked".
                    logger.warning(
                        "Database busy while booking staff %s at %s (attempt %s)",
                        member.pk, scheduled_at, attempt,
                    )
            if booking is not None:
                logger.info(
                    "Booking %s scheduled: staff=%s location=%s at %s (%s %s)",
                    booking.pk, member.pk, location.pk, scheduled_at, day, time,
                )
                return booking

        raise SlotNoLongerAvailable(
            "This time was just booked. Please choose another time."
        )

    def _claim_slot(
        self, member, location, variant, day, start_min, duration,
        scheduled_at, scheduled_end, status, enforce_availability, **fields
    ):
        """Lock one staff member, re-check their bookings and insert. None if taken."""
        with transaction.atomic():
            locked = self.store.lock_staff(member.pk)
            if locked is None or not locked.is_active:
                return None
            if enforce_availability and not self._fits_staff_window(
                locked, location, day, start_min, duration
            ):
                return None
            existing = self.store.active_bookings([locked.pk], scheduled_at, scheduled_end)
            if has_conflict(scheduled_at, duration, existing.get(locked.pk, [])):
                logger.info(
                    "Staff %s already booked at %s (%s min)", locked.pk, scheduled_at, duration
                )
                return None

            return self.store.create_booking(
                staff=locked,
                location=location,
                variant=variant,
                scheduled_at=scheduled_at,
                duration_minutes=duration,
                location_timezone=location.timezone,
                status=status,
                **fields,
            )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @transaction.atomic
    def transition(self, booking, new_status, now=None, note=""):
        allowed = TRANSITIONS.get(booking.status, set())
        if new_status not in allowed:
            raise InvalidStatusTransition(booking.status, new_status)

        booking.status = new_status
        fields = ["status", "updated_at"]
        if new_status == Booking.STATUS_CANCELLED:
            booking.cancelled_at = now or timezone.now()
            fields.append("cancelled_at")
        if note:
            booking.notes = (booking.notes or "") + f"\n{note}"
            fields.append("notes")
        booking.save(update_fields=fields)
        logger.info("Booking %s -> %s", booking.pk, new_status)
        return booking

    def confirm(self, booking):
        return self.transition(booking, Booking.STATUS_CONFIRMED)

    def cancel(self, booking, reason="", now=None):
        note = f"[Cancel reason] {reason}" if reason else ""
        return self.transition(booking, Booking.STATUS_CANCELLED, now=now, note=note)

    def complete(self, booking):
        return self.transition(booking, Booking.STATUS_COMPLETED)

    def mark_arrived(self, booking):
        """POS arrival marking."""
        if booking.status == Booking.STATUS_CANCELLED:
            raise InvalidBookingRequest("Cannot mark a cancelled booking as arrived.")
        if not booking.arrived:
            booking.arrived = True
            booking.save(update_fields=["arrived", "updated_at"])
        return booking

    def sync_payment_status(self, booking, financial_status):
        """
        Apply a commerce order's financial status to the booking's payment axis.
        'paid' -> paid, 'refunded'/'voided' -> cancelled, anything else -> not_paid.
        Terminal bookings are left alone.
        """
        fs = (financial_status or "").strip().lower()
        if booking.status in TERMINAL_STATUSES:
            logger.info("Ignoring payment status %r for %s booking %s", fs, booking.status, booking.pk)
            return booking
        if fs in ("refunded", "voided"):
            return self.cancel(booking, reason=f"order {fs}")

        new_status = Booking.STATUS_PAID if fs == "paid" else Booking.STATUS_NOT_PAID
        if booking.status != new_status:
            booking.status = new_status
            booking.save(update_fields=["status", "updated_at"])
        return booking
