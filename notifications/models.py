# notifications/models.py
#
# Purpose:
# - Record messages sent about bookings (confirmation, cancellation, reminders).
#
# Design:
# - FK to booking.Booking; recipient is the address we tried.
# - 'sent' indicates delivery attempt result.
# - (booking, kind) doubles as the dedup key for reminders.
#
from django.db import models

from booking.models import Booking


class Notification(models.Model):
    KIND_CONFIRMATION = "confirmation"
    KIND_CANCELLATION = "cancellation"
    KIND_OWNER_ALERT = "owner_alert"
    KIND_REMINDER_24H = "reminder_24h"
    KIND_REMINDER_1H = "reminder_1h"

    KIND_CHOICES = [
        (KIND_CONFIRMATION, "Confirmation"),
        (KIND_CANCELLATION, "Cancellation"),
        (KIND_OWNER_ALERT, "Owner alert"),
        (KIND_REMINDER_24H, "24h reminder"),
        (KIND_REMINDER_1H, "1h reminder"),
    ]

    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="notifications")
    kind = models.CharField(max_length=20, choices=KIND_CHOICES)
    recipient = models.EmailField(blank=True)
    message = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)
    sent = models.BooleanField(default=False)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.kind} for booking #{self.booking_id} to {self.recipient or '-'}"
