import uuid
from django.db import models
from .envelope import Envelope
from .signer import Signer
from .audit_event import SignatureAuditEvent


class Consent(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    envelope = models.ForeignKey(Envelope, on_delete=models.CASCADE, related_name='consents')
    signer = models.ForeignKey(Signer, on_delete=models.CASCADE, related_name='consents')
    consent_given = models.BooleanField()
    consent_timestamp = models.DateTimeField()
    consent_text = models.TextField()
    ip_address = models.CharField(max_length=64, blank=True, null=True)
    user_agent = models.CharField(max_length=512, blank=True, null=True)
    country = models.CharField(max_length=64, blank=True, null=True)
    # Set once the signature it authorizes has been recorded.
    signature_event = models.OneToOneField(
        SignatureAuditEvent,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='consent'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'signer_consents'
        ordering = ['created_at']

    def __str__(self):
        return f"Consent of {self.signer_id} on {self.envelope_id}"

    @property
    def is_linked(self) -> bool:
        return self.signature_event_id is not None
