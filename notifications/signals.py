# notifications/signals.py
#
# Purpose:
# - Send emails when Booking status changes.
#   * confirmed: on create, or when status changes to confirmed
#   * cancelled: on update when status is set to cancelled
#
# Notes:
# - Each (booking, kind) is sent at most once; re-saving a confirmed booking
#   from the admin does not resend.
# - Email failures are logged by notifications.mailer, never raised.
#
from django.db.models.signals import post_save
from django.dispatch import receiver

from booking.models import Booking
from notifications import mailer
from notifications.models import Notification


def _status_saved(created, update_fields):
    # Saved with update_fields -> only react when 'status' was one of them
    return created or update_fields is None or "status" in update_fields


def _already_sent(booking, kind):
    return Notification.objects.filter(booking=booking, kind=kind).exists()


@receiver(post_save, sender=Booking)
def booking_status_emails(sender, instance: Booking, created: bool, update_fields=None, **kwargs):
    if not _status_saved(created, update_fields):
        return

    if instance.status == Booking.STATUS_CONFIRMED:
        if not _already_sent(instance, Notification.KIND_CONFIRMATION):
            mailer.send_confirmation(instance)

    # Only on update, a booking is never created cancelled by the scheduler
    elif instance.status == Booking.STATUS_CANCELLED and not created:
        if not _already_sent(instance, Notification.KIND_CANCELLATION):
            mailer.send_cancellation(instance)
