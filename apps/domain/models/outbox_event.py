from django.db import models


class OutboxEvent(models.Model):
    PENDING = 'PENDING'
    SENT = 'SENT'
    FAILED = 'FAILED'

    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (SENT, 'Sent'),
        (FAILED, 'Failed'),
    ]

    ENVELOPE_INVITATION = 'ENVELOPE_INVITATION'
    ENVELOPE_REMINDER = 'ENVELOPE_REMINDER'

    EVENT_TYPE_CHOICES = [
        (ENVELOPE_INVITATION, 'Envelope invitation'),
        (ENVELOPE_REMINDER, 'Envelope reminder'),
    ]

    event_type = models.CharField(max_length=40, choices=EVENT_TYPE_CHOICES)
    payload = models.JSONField(default=dict)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING)
    attempts = models.PositiveIntegerField(default=0)
    last_error = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    sent_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        db_table = 'outbox_events'
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.event_type} ({self.status})"
