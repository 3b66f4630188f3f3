from django.core.exceptions import ValidationError
from django.db import models

from booking.services.errors import InvalidTimeFormat
from booking.services.time_arithmetic import WEEKDAY_NAMES, normalize_clock_time, parse_clock_time


def validate_clock_time(value):
    try:
        parse_clock_time(value)
    except InvalidTimeFormat as e:
        raise ValidationError(str(e))


def validate_weekdays(value):
    if not isinstance(value, list) or not value:
        raise ValidationError("weekdays must be a non-empty list of day names.")
    unknown = [d for d in value if str(d).lower() not in WEEKDAY_NAMES]
    if unknown:
        raise ValidationError(f"Unknown weekday name(s): {', '.join(map(str, unknown))}")


class _TimeWindowMixin(models.Model):
    start_time = models.CharField(max_length=8, validators=[validate_clock_time])
    end_time = models.CharField(max_length=8, validators=[validate_clock_time])
    is_available = models.BooleanField(default=True)

    class Meta:
        abstract = True

    def clean(self):
        super().clean()
        try:
            start = parse_clock_time(self.start_time)
            end = parse_clock_time(self.end_time)
        except InvalidTimeFormat:
            return  # field validators report it
        if self.is_available and end <= start:
            raise ValidationError("end_time must be after start_time.")

    def save(self, *args, **kwargs):
        # Store canonical "HH:MM" whatever the admin typed ("9:00 AM").
        self.start_time = normalize_clock_time(self.start_time)
        self.end_time = normalize_clock_time(self.end_time)
        super().save(*args, **kwargs)


class WeeklyAvailabilityRule(_TimeWindowMixin):
    """
    Recurring weekly open window for a staff member.
    location=None means the rule applies at every location.
    """
    staff = models.ForeignKey(
        "booking.StaffMember",
        on_delete=models.CASCADE,
        related_name="weekly_rules",
    )
    location = models.ForeignKey(
        "booking.Location",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="weekly_rules",
    )
    weekdays = models.JSONField(default=list, validators=[validate_weekdays])

    class Meta:
        ordering = ["staff_id", "id"]

    def save(self, *args, **kwargs):
        self.weekdays = [str(d).lower() for d in (self.weekdays or [])]
        super().save(*args, **kwargs)

    def __str__(self):
        days = ", ".join(self.weekdays or [])
        return f"{self.staff.name}: {days} {self.start_time}-{self.end_time}"


class DateAvailabilityOverride(_TimeWindowMixin):
    """
    Availability for one calendar date; replaces the weekly rules for that date.
    is_available=False closes the day (holiday, vacation).
    'date' is a plain local calendar date, never an instant.
    """
    staff = models.ForeignKey(
        "booking.StaffMember",
        on_delete=models.CASCADE,
        related_name="date_overrides",
    )
    location = models.ForeignKey(
        "booking.Location",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="date_overrides",
    )
    date = models.DateField()
    notes = models.CharField(max_length=300, blank=True)

    class Meta:
        ordering = ["staff_id", "date"]

    def __str__(self):
        state = f"{self.start_time}-{self.end_time}" if self.is_available else "closed"
        return f"{self.staff.name}: {self.date} {state}"
