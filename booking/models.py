# booking/models.py
#
# Purpose:
# - Core domain models for appointment scheduling.
#
# Design highlights:
# - Service + DurationVariant: one bookable offering, one row per duration/price.
# - StaffMember: is_active gates all future slot computation; deactivated staff
#   keep their bookings (Booking.staff is PROTECT, and the API deactivates
#   instead of deleting).
# - Location: carries the IANA timezone every booking time at that location is
#   anchored to. Server and browser timezones never enter the calculation.
# - Customer: optional linked identity; bookings also capture name/email so
#   history survives customer edits.
# - Booking:
#   • scheduled_at is an absolute UTC instant
#   • duration_minutes is copied from the variant at booking time
#   • status is lowercase: pending/confirmed/paid/not_paid/cancelled/completed
#
# Notes for developers:
# - Weekly rules and date overrides live in the staff app (staff/models.py).
# - "No two non-cancelled bookings for one staff member overlap" is enforced by
#   booking/services/booking_scheduler.py under a per-staff row lock.
#

import re

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from .services.errors import TimezoneResolutionFailure
from .services.time_arithmetic import resolve_timezone

DURATION_IN_TITLE_RE = re.compile(r"(\d+)\s*min", re.IGNORECASE)


def validate_timezone_name(value):
    try:
        resolve_timezone(value)
    except TimezoneResolutionFailure as e:
        raise ValidationError(str(e))


def default_location_timezone():
    return getattr(settings, "BOOKING_DEFAULT_TIMEZONE", "America/New_York")


# -------------------------
# Service catalog
# -------------------------
class Service(models.Model):
    """
    A bookable service (haircut, training session...).
    'active' controls visibility and bookability.
    """
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    active = models.BooleanField(default=True)
    shopify_product_id = models.CharField(max_length=64, blank=True)

    def __str__(self):
        return self.name


class DurationVariant(models.Model):
    """
    One duration/price option of a service (e.g., "30 min" for $25).
    """
    service = models.ForeignKey(Service, on_delete=models.CASCADE, related_name="variants")
    title = models.CharField(max_length=200, blank=True)
    duration_minutes = models.PositiveIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1)],
    )
    price = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        validators=[MinValueValidator(0)],
    )
    active = models.BooleanField(default=True)
    shopify_variant_id = models.CharField(max_length=64, blank=True)

    class Meta:
        ordering = ["service_id", "duration_minutes", "id"]

    def __str__(self):
        return f"{self.service.name} ({self.duration_minutes} min)"

    def save(self, *args, **kwargs):
        # Shopify variants carry the duration in their option title ("45 min").
        if not self.duration_minutes:
            m = DURATION_IN_TITLE_RE.search(self.title or "")
            if m and int(m.group(1)) > 0:
                self.duration_minutes = int(m.group(1))
            else:
                self.duration_minutes = getattr(settings, "BOOKING_DEFAULT_DURATION_MINUTES", 60)
        super().save(*args, **kwargs)


# -------------------------
# Staff member
# -------------------------
class StaffMember(models.Model):
    name = models.CharField(max_length=200)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=30, blank=True)
    title = models.CharField(max_length=100, blank=True)
    bio = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return self.name


# -------------------------
# Location
# -------------------------
class Location(models.Model):
    name = models.CharField(max_length=200)
    address = models.CharField(max_length=300, blank=True)
    timezone = models.CharField(
        max_length=64,
        default=default_location_timezone,
        validators=[validate_timezone_name],
        help_text="IANA zone name, e.g. America/New_York",
    )
    offers_services = models.BooleanField(default=True)
    shopify_location_id = models.CharField(max_length=64, blank=True)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.name} ({self.timezone})"


# -------------------------
# Customer (person who books)
# -------------------------
class Customer(models.Model):
    """
    A customer who books an appointment.
    Reused by case-insensitive name/email + exact phone (see find_or_create).
    """
    name = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=30, blank=True)
    shopify_customer_id = models.CharField(max_length=64, blank=True)

    def __str__(self):
        return self.name

    @classmethod
    def find_or_create(cls, name, email, phone=""):
        name = (name or "").strip()
        email = (email or "").strip()
        phone = (phone or "").strip()
        existing = cls.objects.filter(
            name__iexact=name,
            email__iexact=email,
            phone=phone,
        ).first()
        if existing:
            return existing
        return cls.objects.create(name=name, email=email, phone=phone)


# -------------------------
# Booking record
# -------------------------
class Booking(models.Model):
    """
    Appointment booking.

    Lifecycle: pending -> confirmed -> completed, with cancelled reachable from
    any non-terminal state. paid / not_paid come from order payment sync and
    behave like confirmed.
    """
    STATUS_PENDING = "pending"
    STATUS_CONFIRMED = "confirmed"
    STATUS_PAID = "paid"
    STATUS_NOT_PAID = "not_paid"
    STATUS_CANCELLED = "cancelled"
    STATUS_COMPLETED = "completed"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_PAID, "Paid"),
        (STATUS_NOT_PAID, "Not paid"),
        (STATUS_CANCELLED, "Cancelled"),
        (STATUS_COMPLETED, "Completed"),
    ]

    staff = models.ForeignKey(StaffMember, on_delete=models.PROTECT, related_name="bookings")
    location = models.ForeignKey(Location, on_delete=models.PROTECT, related_name="bookings")
    variant = models.ForeignKey(DurationVariant, on_delete=models.PROTECT, related_name="bookings")
    customer = models.ForeignKey(
        Customer,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bookings",
    )
    customer_name = models.CharField(max_length=200, blank=True)
    customer_email = models.EmailField(blank=True)
    scheduled_at = models.DateTimeField(db_index=True)
    duration_minutes = models.PositiveIntegerField(null=True, blank=True)
    location_timezone = models.CharField(max_length=64, blank=True)
    status = models.CharField(
        max_length=10,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING,
        help_text="Booking lifecycle status",
    )
    arrived = models.BooleanField(default=False)
    notes = models.TextField(blank=True)
    order_id = models.CharField(max_length=64, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    cancelled_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the booking was cancelled (if applicable).",
    )

    class Meta:
        ordering = ["scheduled_at", "id"]
        indexes = [models.Index(fields=["staff", "scheduled_at"])]

    def __str__(self):
        who = self.customer_name or "Customer"
        return f"{who} → {self.variant} with {self.staff} at {self.scheduled_at}"
