from django.db import models
from .envelope import Envelope
from .signer import Signer

MAX_REMINDER_MESSAGE_LENGTH = 1024


def normalize_reminder_message(message):
    """Trims the message and truncates it; blank messages become None."""
    if message is None:
        return None
    message = message.strip()
    if not message:
        return None
    return message[:MAX_REMINDER_MESSAGE_LENGTH]


class ReminderTracking(models.Model):
    signer = models.ForeignKey(Signer, on_delete=models.CASCADE, related_name='reminder_trackings')
    envelope = models.ForeignKey(Envelope, on_delete=models.CASCADE, related_name='reminder_trackings')
    reminder_count = models.PositiveIntegerField(default=0)
    last_reminder_at = models.DateTimeField(blank=True, null=True)
    last_reminder_message = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'signer_reminder_tracking'
        constraints = [
            models.UniqueConstraint(fields=['signer', 'envelope'], name='unique_reminder_tracking_per_signer'),
        ]

    def __str__(self):
        return f"Reminders for {self.signer_id} on {self.envelope_id}: {self.reminder_count}"
