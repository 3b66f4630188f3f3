"""
seed_demo.py
------------
Seeds (creates or updates) a demo shop: one location, one service with several
duration variants, and two staff members working Mon-Fri 09:00-17:00.
You can run this any time; it will upsert by unique name.

Usage:
    python manage.py seed_demo
    python manage.py seed_demo --timezone America/Chicago
"""

from decimal import Decimal

from django.core.management.base import BaseCommand, CommandError

from booking.models import DurationVariant, Location, Service, StaffMember
from booking.services.errors import TimezoneResolutionFailure
from booking.services.time_arithmetic import resolve_timezone
from staff.models import WeeklyAvailabilityRule

LOCATION_NAME = "Main Street Studio"

SERVICE = {"name": "Personal Training", "description": "One-on-one session"}

VARIANTS = [
    {"title": "30 min", "duration_minutes": 30, "price": Decimal("25.00")},
    {"title": "60 min", "duration_minutes": 60, "price": Decimal("45.00")},
    {"title": "90 min", "duration_minutes": 90, "price": Decimal("65.00")},
]

STAFF = [
    {"name": "Alice Martin", "email": "alice@example.com", "title": "Senior Trainer"},
    {"name": "Bob Nguyen", "email": "bob@example.com", "title": "Trainer"},
]

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday"]


class Command(BaseCommand):
    help = "Seed or update a demo location, service catalog and staff schedule."

    def add_arguments(self, parser):
        parser.add_argument(
            "--timezone",
            default="America/New_York",
            help="IANA zone for the demo location.",
        )

    def handle(self, *args, **options):
        tz_name = options["timezone"]
        try:
            resolve_timezone(tz_name)
        except TimezoneResolutionFailure as e:
            raise CommandError(str(e))

        location, _ = Location.objects.update_or_create(
            name=LOCATION_NAME,
            defaults={"timezone": tz_name, "offers_services": True},
        )

        service, _ = Service.objects.update_or_create(
            name=SERVICE["name"],
            defaults={"description": SERVICE["description"], "active": True},
        )

        created = 0
        for item in VARIANTS:
            _, is_created = DurationVariant.objects.update_or_create(
                service=service,
                title=item["title"],
                defaults={
                    "duration_minutes": item["duration_minutes"],
                    "price": item["price"],
                    "active": True,
                },
            )
            created += int(is_created)

        for item in STAFF:
            member, is_created = StaffMember.objects.update_or_create(
                name=item["name"],
                defaults={"email": item["email"], "title": item["title"], "is_active": True},
            )
            created += int(is_created)
            WeeklyAvailabilityRule.objects.update_or_create(
                staff=member,
                location=None,
                defaults={
                    "weekdays": WEEKDAYS,
                    "start_time": "09:00",
                    "end_time": "17:00",
                    "is_available": True,
                },
            )

        self.stdout.write(
            self.style.SUCCESS(
                f"Seed complete. Location={location.pk} ({tz_name}), Service={service.pk}, Created={created}"
            )
        )
