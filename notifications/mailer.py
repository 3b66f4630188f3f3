"""
mailer.py
---------
Builds and sends booking e-mails and records each attempt as a Notification.

- With EMAIL_BACKEND = console.EmailBackend (dev), send_mail prints to the terminal.
- With SMTP configured via EMAIL_* env vars, real mail goes out.

Times in messages are always shown in the booking's location timezone, never
the server's.
"""

import logging
import smtplib
from datetime import datetime

from django.conf import settings
from django.core.mail import send_mail

from booking.services.time_arithmetic import utc_to_local_wall_clock
from notifications.models import Notification

logger = logging.getLogger(__name__)

SHOP_SIGNATURE = "See you soon!"


def local_time_label(booking) -> str:
    """'Monday, July 01, 2030 at 02:00 PM (America/New_York)'"""
    tz_name = booking.location_timezone or booking.location.timezone
    w = utc_to_local_wall_clock(booking.scheduled_at, tz_name)
    naive = datetime(w.year, w.month, w.day, w.hour, w.minute)
    return f"{naive.strftime('%A, %B %d, %Y at %I:%M %p')} ({tz_name})"


def deliver(booking, kind: str, subject: str, body: str, to_email: str) -> Notification:
    """
    Send one e-mail and record it. Mail failures are logged and recorded as
    sent=False; they never break the booking write that triggered them.
    """
    sent = False
    if to_email:
        try:
            send_mail(
                subject=subject,
                message=body,
                from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
                recipient_list=[to_email],
                fail_silently=False,
            )
            sent = True
        except (smtplib.SMTPException, OSError):
            logger.exception("E-mail %s for booking %s to %s failed", kind, booking.pk, to_email)
    else:
        logger.info("No recipient for %s on booking %s; recording only", kind, booking.pk)

    return Notification.objects.create(
        booking=booking,
        kind=kind,
        recipient=to_email or "",
        message=body,
        sent=sent,
    )


def send_confirmation(booking) -> Notification:
    body = (
        f"Hi {booking.customer_name or 'there'},\n\n"
        f"Your booking is confirmed.\n\n"
        f"Booking ID: {booking.pk}\n"
        f"Service: {booking.variant}\n"
        f"With: {booking.staff.name}\n"
        f"Where: {booking.location.name}\n"
        f"Date & Time: {local_time_label(booking)}\n\n"
        f"{SHOP_SIGNATURE}"
    )
    return deliver(booking, Notification.KIND_CONFIRMATION, "Booking Confirmation", body, booking.customer_email)


def send_cancellation(booking, cancelled_at=None):
    when = local_time_label(booking)
    body_client = (
        f"Dear {booking.customer_name or 'customer'},\n\n"
        f"Your appointment for {booking.variant} on {when} has been cancelled.\n"
        f"If this was unexpected, please reply to this email.\n"
    )
    notes = [
        deliver(
            booking,
            Notification.KIND_CANCELLATION,
            f"Booking #{booking.pk} Cancelled",
            body_client,
            booking.customer_email,
        )
    ]

    # Owner alert only when a mailbox is configured
    owner_email = getattr(settings, "EMAIL_HOST_USER", None)
    if owner_email:
        body_owner = (
            f"ALERT: Booking #{booking.pk} cancelled.\n"
            f"Customer: {booking.customer_name} ({booking.customer_email})\n"
            f"Service: {booking.variant}\n"
            f"Staff: {booking.staff.name}\n"
            f"Original Time: {when}\n"
            f"Cancellation Time: {cancelled_at or booking.cancelled_at}\n"
        )
        notes.append(
            deliver(
                booking,
                Notification.KIND_OWNER_ALERT,
                f"ALERT: Booking #{booking.pk} CANCELLED",
                body_owner,
                owner_email,
            )
        )
    return notes


def send_reminder(booking, hours_before: int) -> Notification:
    kind = Notification.KIND_REMINDER_1H if hours_before == 1 else Notification.KIND_REMINDER_24H
    body = (
        f"Hi {booking.customer_name or 'there'},\n\n"
        f"This is a reminder of your appointment in about {hours_before} hour(s).\n"
        f"Service: {booking.variant}\n"
        f"With: {booking.staff.name}\n"
        f"Where: {booking.location.name}\n"
        f"Date & Time: {local_time_label(booking)}\n\n"
        f"{SHOP_SIGNATURE}"
    )
    return deliver(booking, kind, f"Reminder: appointment #{booking.pk}", body, booking.customer_email)
