from django.db import models
from .envelope import Envelope
from .signer import Signer


class SignatureAuditEvent(models.Model):
    ENVELOPE_CREATED = 'ENVELOPE_CREATED'
    ENVELOPE_SENT = 'ENVELOPE_SENT'
    ENVELOPE_COMPLETED = 'ENVELOPE_COMPLETED'
    ENVELOPE_DECLINED = 'ENVELOPE_DECLINED'
    ENVELOPE_CANCELLED = 'ENVELOPE_CANCELLED'
    SIGNER_SIGNED = 'SIGNER_SIGNED'
    SIGNER_DECLINED = 'SIGNER_DECLINED'
    SIGNER_REMINDER_SENT = 'SIGNER_REMINDER_SENT'
    ENVELOPE_UPDATED = 'ENVELOPE_UPDATED'
    SIGNER_ADDED = 'SIGNER_ADDED'
    SIGNER_REMOVED = 'SIGNER_REMOVED'

    EVENT_TYPE_CHOICES = [
        (ENVELOPE_CREATED, 'Envelope created'),
        (ENVELOPE_SENT, 'Envelope sent'),
        (ENVELOPE_COMPLETED, 'Envelope completed'),
        (ENVELOPE_DECLINED, 'Envelope declined'),
        (ENVELOPE_CANCELLED, 'Envelope cancelled'),
        (SIGNER_SIGNED, 'Signer signed'),
        (SIGNER_DECLINED, 'Signer declined'),
        (SIGNER_REMINDER_SENT, 'Signer reminder sent'),
        (ENVELOPE_UPDATED, 'Envelope updated'),
        (SIGNER_ADDED, 'Signer added'),
        (SIGNER_REMOVED, 'Signer removed'),
    ]

    SIGNER_EVENT_TYPES = (SIGNER_SIGNED, SIGNER_DECLINED, SIGNER_REMINDER_SENT, SIGNER_ADDED, SIGNER_REMOVED)

    envelope = models.ForeignKey(Envelope, on_delete=models.CASCADE, related_name='audit_events')
    signer = models.ForeignKey(Signer, on_delete=models.SET_NULL, null=True, blank=True, related_name='audit_events')
    event_type = models.CharField(max_length=40, choices=EVENT_TYPE_CHOICES)
    description = models.TextField()
    user_id = models.CharField(max_length=64, blank=True, null=True)
    user_email = models.EmailField(blank=True, null=True)
    ip_address = models.CharField(max_length=64, blank=True, null=True)
    user_agent = models.CharField(max_length=512, blank=True, null=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'signature_audit_events'
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.event_type} on {self.envelope_id}"
