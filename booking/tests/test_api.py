# booking/tests/test_api.py

from datetime import datetime
from unittest import mock

from django.contrib.auth.models import User
from django.core import mail
from django.test import TestCase
from rest_framework.test import APIClient

from booking.models import Booking, DurationVariant, Service, StaffMember
from booking.services.booking_scheduler import BookingScheduler
from booking.services.errors import SchedulingError
from booking.views_scheduling import AvailableSlotsView

from .helpers import EARLY_NOW, SUMMER_MONDAY, UTC, make_shop, make_staff


class ApiTestCase(TestCase):
    def setUp(self):
        # DRF test client
        self.client = APIClient()
        self.location, self.service, self.short, self.long = make_shop()
        self.alice = make_staff("Alice")

    def login_staff(self):
        user = User.objects.create_user(username="owner", password="pass123", is_staff=True)
        self.client.force_authenticate(user=user)
        return user

    def booking_payload(self, **overrides):
        payload = {
            "service": self.service.pk,
            "variant": self.short.pk,
            "location": self.location.pk,
            "date": "2030-07-01",
            "time": "14:00",
            "customer": {"name": "Jane Doe", "email": "jane@example.com", "phone": "5551234567"},
        }
        payload.update(overrides)
        return payload


class AvailableSlotsApiTests(ApiTestCase):
    url = "/api/available-slots/"

    def test_single_day(self):
        resp = self.client.get(self.url, {"variant": self.short.pk, "location": self.location.pk, "date": "2030-07-01"})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["timezone"], "America/New_York")
        self.assertEqual(data["slots"]["2030-07-01"][0], "09:00")
        self.assertEqual(data["staff"]["2030-07-01"]["09:00"], [self.alice.pk])

    def test_range(self):
        resp = self.client.get(
            self.url,
            {"variant": self.short.pk, "location": self.location.pk, "date_from": "2030-07-01", "date_to": "2030-07-03"},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(sorted(resp.json()["slots"]), ["2030-07-01", "2030-07-02", "2030-07-03"])

    def test_range_limit(self):
        resp = self.client.get(
            self.url,
            {"variant": self.short.pk, "location": self.location.pk, "date_from": "2030-07-01", "date_to": "2030-09-01"},
        )
        self.assertEqual(resp.status_code, 400)

    def test_missing_date(self):
        resp = self.client.get(self.url, {"variant": self.short.pk, "location": self.location.pk})
        self.assertEqual(resp.status_code, 400)

    def test_unknown_location(self):
        resp = self.client.get(self.url, {"variant": self.short.pk, "location": 9999, "date": "2030-07-01"})
        self.assertEqual(resp.status_code, 404)

    def test_specific_staff(self):
        bob = make_staff("Bob")
        resp = self.client.get(
            self.url,
            {"variant": self.short.pk, "location": self.location.pk, "date": "2030-07-01", "staff": bob.pk},
        )
        self.assertEqual(resp.json()["staff"]["2030-07-01"]["09:00"], [bob.pk])

    def test_inactive_variant_or_service_has_no_slots(self):
        query = {"variant": self.short.pk, "location": self.location.pk, "date": "2030-07-01"}
        self.short.active = False
        self.short.save()
        self.assertEqual(self.client.get(self.url, query).json()["slots"], {"2030-07-01": []})

        self.service.active = False
        self.service.save()
        query["variant"] = self.long.pk
        self.assertEqual(self.client.get(self.url, query).json()["slots"], {"2030-07-01": []})

    def test_failed_computation_reports_default_duration(self):
        DurationVariant.objects.filter(pk=self.short.pk).update(duration_minutes=None)
        with mock.patch.object(
            AvailableSlotsView.scheduler, "compute_available_slots", side_effect=SchedulingError("boom")
        ):
            with self.assertLogs("booking.views_scheduling", "ERROR"):
                resp = self.client.get(
                    self.url, {"variant": self.short.pk, "location": self.location.pk, "date": "2030-07-01"}
                )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["duration_minutes"], 60)
        self.assertEqual(resp.json()["slots"], {})


class CreateBookingApiTests(ApiTestCase):
    url = "/api/create-booking/"

    def test_create(self):
        resp = self.client.post(self.url, self.booking_payload(), format="json")
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["booking"]["local_date"], "2030-07-01")
        self.assertEqual(body["booking"]["local_time"], "14:00")
        self.assertEqual(body["booking"]["staff"], self.alice.pk)
        self.assertEqual(body["booking"]["status"], Booking.STATUS_PENDING)
        booking = Booking.objects.get()
        self.assertEqual(booking.scheduled_at, datetime(2030, 7, 1, 18, 0, tzinfo=UTC))

    def test_conflict_is_409(self):
        self.client.post(self.url, self.booking_payload(), format="json")
        resp = self.client.post(self.url, self.booking_payload(time="14:15"), format="json")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["reason"], "slot_no_longer_available")
        self.assertFalse(resp.json()["success"])

    def test_no_qualified_staff_is_409(self):
        self.alice.is_active = False
        self.alice.save()
        resp = self.client.post(self.url, self.booking_payload(), format="json")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["reason"], "no_qualified_staff")

    def test_invalid_payloads(self):
        cases = [
            self.booking_payload(time="25:99"),
            self.booking_payload(time="24:00"),
            self.booking_payload(customer={"name": "Jane", "email": "not-an-email"}),
            self.booking_payload(customer={"name": "Jane", "email": "jane@example.com", "phone": "12-34"}),
            self.booking_payload(date="2030-13-01"),
        ]
        for payload in cases:
            with self.subTest(payload=payload):
                resp = self.client.post(self.url, payload, format="json")
                self.assertEqual(resp.status_code, 400)
                self.assertEqual(resp.json()["reason"], "invalid_request")
        self.assertEqual(Booking.objects.count(), 0)

    def test_variant_must_belong_to_service(self):
        other = Service.objects.create(name="Massage")
        resp = self.client.post(self.url, self.booking_payload(service=other.pk), format="json")
        self.assertEqual(resp.status_code, 400)

    def test_past_date_is_400(self):
        resp = self.client.post(self.url, self.booking_payload(date="2020-01-06"), format="json")
        self.assertEqual(resp.status_code, 400)

    def test_anonymous_caller_cannot_confirm(self):
        resp = self.client.post(self.url, self.booking_payload(confirm=True), format="json")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["booking"]["status"], Booking.STATUS_PENDING)
        self.assertEqual(len(mail.outbox), 0)

    def test_staff_caller_can_confirm(self):
        self.login_staff()
        resp = self.client.post(self.url, self.booking_payload(confirm=True), format="json")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["booking"]["status"], Booking.STATUS_CONFIRMED)
        self.assertEqual(len(mail.outbox), 1)


class BookingListApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        scheduler = BookingScheduler()
        self.booking = scheduler.schedule_booking(
            self.short.pk, self.location.pk, SUMMER_MONDAY, "20:00",
            customer={"name": "Jane", "email": "jane@example.com"}, now=EARLY_NOW,
            enforce_availability=False,
        )
        self.login_staff()

    def test_staff_only(self):
        self.client.force_authenticate(user=None)
        self.assertEqual(self.client.get("/api/bookings/").status_code, 403)
        self.assertEqual(self.client.post(f"/api/bookings/{self.booking.pk}/confirm/").status_code, 403)

    def test_filter_by_local_date(self):
        # 20:00 EDT on July 1st is 00:00 UTC on July 2nd.
        resp = self.client.get("/api/bookings/", {"date": "2030-07-01", "location": self.location.pk})
        self.assertEqual([b["id"] for b in resp.json()], [self.booking.pk])
        resp = self.client.get("/api/bookings/", {"date": "2030-07-02", "location": self.location.pk})
        self.assertEqual(resp.json(), [])

    def test_filter_by_local_date_without_location(self):
        resp = self.client.get("/api/bookings/", {"date": "2030-07-01"})
        self.assertEqual([b["id"] for b in resp.json()], [self.booking.pk])

    def test_bad_date(self):
        self.assertEqual(self.client.get("/api/bookings/", {"date": "July"}).status_code, 400)

    def test_filter_by_staff(self):
        bob = make_staff("Bob")
        self.assertEqual(len(self.client.get("/api/bookings/", {"staff": self.alice.pk}).json()), 1)
        self.assertEqual(self.client.get("/api/bookings/", {"staff": bob.pk}).json(), [])

    def test_lifecycle_actions(self):
        base = f"/api/bookings/{self.booking.pk}"
        self.assertEqual(self.client.post(f"{base}/complete/").status_code, 400)
        resp = self.client.post(f"{base}/confirm/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], Booking.STATUS_CONFIRMED)
        resp = self.client.post(f"{base}/arrived/")
        self.assertTrue(resp.json()["arrived"])
        resp = self.client.post(f"{base}/payment/", {"financial_status": "paid"}, format="json")
        self.assertEqual(resp.json()["status"], Booking.STATUS_PAID)
        resp = self.client.post(f"{base}/cancel/", {"reason": "changed plans"}, format="json")
        self.assertEqual(resp.json()["status"], Booking.STATUS_CANCELLED)
        self.assertEqual(self.client.get("/api/bookings/").json(), [])
        self.assertEqual(len(self.client.get("/api/bookings/", {"status": "cancelled"}).json()), 1)
        self.assertEqual(self.client.get(f"{base}/").json()["status"], Booking.STATUS_CANCELLED)

    def test_today_for_pos(self):
        resp = self.client.get("/api/bookings/today/", {"location": self.location.pk})
        self.assertEqual(resp.status_code, 200)
        self.assertIn("bookings", resp.json())
        self.assertEqual(self.client.get("/api/bookings/today/").status_code, 400)


class CatalogApiTests(ApiTestCase):
    def test_anonymous_can_read_but_not_write(self):
        resp = self.client.get("/api/services/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.json()[0]["variants"]), 2)
        resp = self.client.post("/api/services/", {"name": "Yoga"}, format="json")
        self.assertEqual(resp.status_code, 403)

    def test_staff_can_write(self):
        self.login_staff()
        resp = self.client.post("/api/services/", {"name": "Yoga"}, format="json")
        self.assertEqual(resp.status_code, 201)
        resp = self.client.post(
            "/api/variants/",
            {"service": resp.json()["id"], "title": "45 min", "price": "30.00"},
            format="json",
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["duration_minutes"], 45)

    def test_inactive_services_hidden_from_public(self):
        Service.objects.create(name="Retired", active=False)
        names = [s["name"] for s in self.client.get("/api/services/").json()]
        self.assertNotIn("Retired", names)

    def test_location_timezone_validated(self):
        self.login_staff()
        resp = self.client.post("/api/locations/", {"name": "Moon", "timezone": "Moon/Base"}, format="json")
        self.assertEqual(resp.status_code, 400)
        resp = self.client.post("/api/locations/", {"name": "Denver", "timezone": "America/Denver"}, format="json")
        self.assertEqual(resp.status_code, 201)

    def test_delete_staff_deactivates(self):
        self.login_staff()
        resp = self.client.delete(f"/api/staff/{self.alice.pk}/")
        self.assertEqual(resp.status_code, 204)
        self.assertFalse(StaffMember.objects.get(pk=self.alice.pk).is_active)

    def test_staff_contact_details_hidden_from_public(self):
        self.alice.phone = "5550001111"
        self.alice.save()
        public = self.client.get("/api/staff/").json()[0]
        self.assertEqual(public["name"], "Alice")
        self.assertNotIn("email", public)
        self.assertNotIn("phone", public)
        self.assertNotIn("email", self.client.get(f"/api/staff/{self.alice.pk}/").json())

        self.login_staff()
        private = self.client.get("/api/staff/").json()[0]
        self.assertEqual(private["email"], "alice@example.com")
        self.assertEqual(private["phone"], "5550001111")


class AvailabilityRulesApiTests(ApiTestCase):
    def test_staff_only(self):
        self.assertEqual(self.client.get("/api/availability/weekly/").status_code, 403)
        self.assertEqual(self.client.get("/api/availability/overrides/").status_code, 403)

    def test_create_weekly_rule(self):
        self.login_staff()
        resp = self.client.post(
            "/api/availability/weekly/",
            {"staff": self.alice.pk, "weekdays": ["Tuesday"], "start_time": "9:00 AM", "end_time": "5:00 PM"},
            format="json",
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["start_time"], "09:00")
        self.assertEqual(resp.json()["weekdays"], ["tuesday"])

    def test_rejects_bad_rules(self):
        self.login_staff()
        for payload in (
            {"staff": self.alice.pk, "weekdays": ["monday"], "start_time": "17:00", "end_time": "09:00"},
            {"staff": self.alice.pk, "weekdays": ["funday"], "start_time": "09:00", "end_time": "17:00"},
            {"staff": self.alice.pk, "weekdays": ["monday"], "start_time": "nine", "end_time": "17:00"},
        ):
            with self.subTest(payload=payload):
                resp = self.client.post("/api/availability/weekly/", payload, format="json")
                self.assertEqual(resp.status_code, 400)

    def test_closed_override_hides_slots(self):
        self.login_staff()
        resp = self.client.post(
            "/api/availability/overrides/",
            {"staff": self.alice.pk, "date": "2030-07-01", "start_time": "00:00", "end_time": "00:00", "is_available": False},
            format="json",
        )
        self.assertEqual(resp.status_code, 201)
        resp = self.client.get(
            "/api/available-slots/", {"variant": self.short.pk, "location": self.location.pk, "date": "2030-07-01"}
        )
        self.assertEqual(resp.json()["slots"]["2030-07-01"], [])
