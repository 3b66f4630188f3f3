from datetime import timedelta

from django.core import mail
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone

from booking.models import Booking
from booking.services.booking_scheduler import BookingScheduler
from booking.tests.helpers import EARLY_NOW, SUMMER_MONDAY, make_shop, make_staff
from notifications.models import Notification


class NotificationTests(TestCase):
    def setUp(self):
        self.location, _, self.variant, _ = make_shop()
        self.alice = make_staff("Alice")
        self.scheduler = BookingScheduler()

    def schedule(self, confirm=None):
        return self.scheduler.schedule_booking(
            self.variant.pk,
            self.location.pk,
            SUMMER_MONDAY,
            "14:00",
            customer={"name": "Jane", "email": "jane@example.com"},
            confirm=confirm,
            now=EARLY_NOW,
        )

    def test_pending_booking_sends_nothing(self):
        self.schedule()
        self.assertEqual(len(mail.outbox), 0)

    def test_email_sent_when_booking_confirmed(self):
        booking = self.schedule()
        self.scheduler.confirm(booking)

        # Email should have been sent, with the location's local time
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn("confirmed", mail.outbox[0].body)
        self.assertIn("02:00 PM", mail.outbox[0].body)
        self.assertEqual(mail.outbox[0].to, ["jane@example.com"])
        note = Notification.objects.get(booking=booking)
        self.assertEqual(note.kind, Notification.KIND_CONFIRMATION)
        self.assertTrue(note.sent)

    def test_confirmation_not_repeated(self):
        booking = self.schedule(confirm=True)
        booking.notes = "edited in admin"
        booking.save()
        self.assertEqual(len(mail.outbox), 1)

    def test_payment_status_does_not_resend(self):
        booking = self.schedule(confirm=True)
        self.scheduler.sync_payment_status(booking, "paid")
        self.assertEqual(len(mail.outbox), 1)

    @override_settings(EMAIL_HOST_USER="owner@example.com")
    def test_cancellation_alerts_customer_and_owner(self):
        booking = self.schedule()
        self.scheduler.cancel(booking, reason="sick")
        recipients = sorted(m.to[0] for m in mail.outbox)
        self.assertEqual(recipients, ["jane@example.com", "owner@example.com"])
        kinds = set(Notification.objects.filter(booking=booking).values_list("kind", flat=True))
        self.assertEqual(kinds, {Notification.KIND_CANCELLATION, Notification.KIND_OWNER_ALERT})

    @override_settings(EMAIL_HOST_USER="")
    def test_cancellation_without_owner_mailbox(self):
        booking = self.schedule()
        self.scheduler.cancel(booking)
        self.assertEqual(len(mail.outbox), 1)

    def test_booking_without_email_is_recorded_unsent(self):
        booking = self.scheduler.schedule_booking(
            self.variant.pk, self.location.pk, SUMMER_MONDAY, "15:00", confirm=True, now=EARLY_NOW
        )
        self.assertEqual(len(mail.outbox), 0)
        self.assertFalse(Notification.objects.get(booking=booking).sent)


class SendRemindersCommandTests(TestCase):
    def setUp(self):
        self.location, _, self.variant, _ = make_shop()
        self.alice = make_staff("Alice")

    def book(self, start, status=Booking.STATUS_CONFIRMED):
        return Booking.objects.create(
            staff=self.alice,
            location=self.location,
            variant=self.variant,
            customer_name="Jane",
            customer_email="jane@example.com",
            scheduled_at=start,
            duration_minutes=30,
            location_timezone=self.location.timezone,
            status=status,
        )

    def reminders(self):
        return Notification.objects.filter(kind__startswith="reminder")

    def test_sends_once_per_booking(self):
        booking = self.book(timezone.now() + timedelta(hours=24, minutes=5))
        call_command("send_reminders", when=24)
        call_command("send_reminders", when=24)
        self.assertEqual(self.reminders().count(), 1)
        self.assertEqual(self.reminders().get().booking, booking)
        self.assertIn("reminder", mail.outbox[-1].body)

    def test_window_and_status(self):
        self.book(timezone.now() + timedelta(hours=25))
        self.book(timezone.now() + timedelta(hours=24, minutes=5), status=Booking.STATUS_CANCELLED)
        call_command("send_reminders", when=24)
        self.assertEqual(self.reminders().count(), 0)

    def test_one_hour_reminder(self):
        self.book(timezone.now() + timedelta(hours=1, minutes=10))
        call_command("send_reminders", when=1)
        self.assertEqual(self.reminders().get().kind, Notification.KIND_REMINDER_1H)
