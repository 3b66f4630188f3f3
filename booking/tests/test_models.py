# booking/tests/test_models.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.test import TestCase

from booking.models import Customer, DurationVariant, Location, Service, StaffMember
from staff.models import DateAvailabilityOverride, WeeklyAvailabilityRule


class DurationVariantTests(TestCase):
    def setUp(self):
        self.service = Service.objects.create(name="Massage")

    def test_duration_from_title(self):
        variant = DurationVariant.objects.create(service=self.service, title="45 min", price=Decimal("40"))
        self.assertEqual(variant.duration_minutes, 45)

    def test_default_duration(self):
        variant = DurationVariant.objects.create(service=self.service, title="Standard", price=Decimal("40"))
        self.assertEqual(variant.duration_minutes, 60)

    def test_explicit_duration_kept(self):
        variant = DurationVariant.objects.create(
            service=self.service, title="90 min", duration_minutes=75, price=Decimal("40")
        )
        self.assertEqual(variant.duration_minutes, 75)


class LocationTests(TestCase):
    def test_default_timezone(self):
        self.assertEqual(Location.objects.create(name="Main").timezone, "America/New_York")

    def test_rejects_unknown_timezone(self):
        with self.assertRaises(ValidationError):
            Location(name="Nowhere", timezone="Not/AZone").full_clean()


class CustomerTests(TestCase):
    def test_find_or_create_reuses_case_insensitively(self):
        first = Customer.find_or_create("Jane Doe", "Jane@Example.com", "555")
        second = Customer.find_or_create("jane doe", "jane@example.com", "555")
        third = Customer.find_or_create("Jane Doe", "jane@example.com", "777")
        self.assertEqual(first.pk, second.pk)
        self.assertNotEqual(first.pk, third.pk)


class AvailabilityRuleModelTests(TestCase):
    def setUp(self):
        self.member = StaffMember.objects.create(name="Alice")

    def test_times_and_weekdays_normalized(self):
        rule = WeeklyAvailabilityRule.objects.create(
            staff=self.member, weekdays=["Monday", "FRIDAY"], start_time="9:00 AM", end_time="5:30 PM"
        )
        rule.refresh_from_db()
        self.assertEqual((rule.start_time, rule.end_time), ("09:00", "17:30"))
        self.assertEqual(rule.weekdays, ["monday", "friday"])

    def test_end_must_follow_start(self):
        rule = WeeklyAvailabilityRule(staff=self.member, weekdays=["monday"], start_time="17:00", end_time="09:00")
        with self.assertRaises(ValidationError):
            rule.full_clean()

    def test_closed_override_needs_no_hours(self):
        override = DateAvailabilityOverride(
            staff=self.member, date="2030-07-01", start_time="00:00", end_time="00:00", is_available=False
        )
        override.full_clean()


class SeedDemoCommandTests(TestCase):
    def test_idempotent(self):
        call_command("seed_demo")
        call_command("seed_demo")
        self.assertEqual(Location.objects.count(), 1)
        self.assertEqual(DurationVariant.objects.count(), 3)
        self.assertEqual(StaffMember.objects.filter(is_active=True).count(), 2)
        self.assertEqual(WeeklyAvailabilityRule.objects.count(), 2)

    def test_timezone_option(self):
        call_command("seed_demo", timezone="America/Chicago")
        self.assertEqual(Location.objects.get().timezone, "America/Chicago")
