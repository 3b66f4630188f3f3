# booking/tests/helpers.py
#
# Small builders shared by the booking tests.
#
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

from booking.models import DurationVariant, Location, Service, StaffMember
from staff.models import WeeklyAvailabilityRule

UTC = dt_timezone.utc

# 2030-07-01 is a Monday (EDT, UTC-4); 2030-01-07 is a Monday (EST, UTC-5).
SUMMER_MONDAY = datetime(2030, 7, 1).date()
WINTER_MONDAY = datetime(2030, 1, 7).date()

# Well before any test date, so nothing is "past".
EARLY_NOW = datetime(2030, 1, 1, 12, 0, tzinfo=UTC)

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday"]


def make_shop(tz_name="America/New_York"):
    location = Location.objects.create(name="Main Street", timezone=tz_name)
    service = Service.objects.create(name="Personal Training")
    short = DurationVariant.objects.create(service=service, title="30 min", duration_minutes=30, price=Decimal("25.00"))
    long = DurationVariant.objects.create(service=service, title="60 min", duration_minutes=60, price=Decimal("45.00"))
    return location, service, short, long


def make_staff(name, weekdays=("monday",), start="09:00", end="17:00", location=None, active=True):
    member = StaffMember.objects.create(name=name, email=f"{name.lower()}@example.com", is_active=active)
    WeeklyAvailabilityRule.objects.create(
        staff=member,
        location=location,
        weekdays=list(weekdays),
        start_time=start,
        end_time=end,
    )
    return member
