import uuid
from django.db import models
from django.contrib.auth.models import User


class Envelope(models.Model):
    DRAFT = 'DRAFT'
    SENT = 'SENT'
    READY_FOR_SIGNATURE = 'READY_FOR_SIGNATURE'
    COMPLETED = 'COMPLETED'
    CANCELLED = 'CANCELLED'
    DECLINED = 'DECLINED'

    STATUS_CHOICES = [
        (DRAFT, 'Draft'),
        (SENT, 'Sent'),
        (READY_FOR_SIGNATURE, 'Ready for signature'),
        (COMPLETED, 'Completed'),
        (CANCELLED, 'Cancelled'),
        (DECLINED, 'Declined'),
    ]

    OWNER_FIRST = 'OWNER_FIRST'
    INVITEES_FIRST = 'INVITEES_FIRST'

    SIGNING_ORDER_CHOICES = [
        (OWNER_FIRST, 'Owner first'),
        (INVITEES_FIRST, 'Invitees first'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    file_url = models.URLField(blank=True, null=True)
    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=DRAFT)
    signing_order_type = models.CharField(max_length=20, choices=SIGNING_ORDER_CHOICES, default=OWNER_FIRST)
    created_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name='envelopes')
    version = models.PositiveIntegerField(default=1)
    sent_at = models.DateTimeField(blank=True, null=True)
    completed_at = models.DateTimeField(blank=True, null=True)
    cancelled_at = models.DateTimeField(blank=True, null=True)
    declined_at = models.DateTimeField(blank=True, null=True)
    declined_by_signer = models.ForeignKey(
        'domain.Signer', on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )
    declined_reason = models.TextField(blank=True, null=True)
    expires_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'envelopes'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.title} ({self.status})"
