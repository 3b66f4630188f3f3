"""
send_reminders.py
-----------------
Django management command to send 24h/1h reminders.

Usage:
    python manage.py send_reminders --when 24
    python manage.py send_reminders --when 1

Behavior:
- Finds bookings starting in (now + N h, now + N h + 15 min]. Run it from cron
  every 15 minutes so each booking falls into exactly one window.
- Skips cancelled and completed bookings.
- Skips bookings that already got this reminder (Notification dedup).
"""

from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from booking.models import Booking
from notifications import mailer
from notifications.models import Notification

WINDOW_MINUTES = 15


class Command(BaseCommand):
    help = "Send appointment reminders N hours (24 or 1) before scheduled_at."

    def add_arguments(self, parser):
        parser.add_argument(
            "--when",
            type=int,
            choices=[24, 1],
            required=True,
            help="Reminder lead time in hours (choose 24 or 1).",
        )

    def handle(self, *args, **options):
        hours = options["when"]
        kind = Notification.KIND_REMINDER_1H if hours == 1 else Notification.KIND_REMINDER_24H
        now = timezone.now()
        window_start = now + timedelta(hours=hours)
        window_end = window_start + timedelta(minutes=WINDOW_MINUTES)

        qs = (
            Booking.objects.filter(scheduled_at__gt=window_start, scheduled_at__lte=window_end)
            .exclude(status__in=[Booking.STATUS_CANCELLED, Booking.STATUS_COMPLETED])
            .exclude(notifications__kind=kind)
            .select_related("variant__service", "staff", "location")
        )

        count = 0
        for booking in qs:
            mailer.send_reminder(booking, hours_before=hours)
            count += 1

        self.stdout.write(self.style.SUCCESS(f"Sent {count} reminder(s) for {hours}h window."))
