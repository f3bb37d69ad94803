import hashlib
from django.db import models
from django.utils import timezone
from .envelope import Envelope
from .signer import Signer


def hash_invitation_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode('utf-8')).hexdigest()


class InvitationToken(models.Model):
    ACTIVE = 'ACTIVE'
    SIGNED = 'SIGNED'
    REVOKED = 'REVOKED'
    EXPIRED = 'EXPIRED'

    STATUS_CHOICES = [
        (ACTIVE, 'Active'),
        (SIGNED, 'Signed'),
        (REVOKED, 'Revoked'),
        (EXPIRED, 'Expired'),
    ]

    envelope = models.ForeignKey(Envelope, on_delete=models.CASCADE, related_name='invitation_tokens')
    signer = models.ForeignKey(Signer, on_delete=models.CASCADE, related_name='invitation_tokens')
    token_hash = models.CharField(max_length=64, unique=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=ACTIVE)
    expires_at = models.DateTimeField(blank=True, null=True)
    sent_at = models.DateTimeField(blank=True, null=True)
    last_sent_at = models.DateTimeField(blank=True, null=True)
    resend_count = models.PositiveIntegerField(default=0)
    signed_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'invitation_tokens'
        ordering = ['-created_at']

    def __str__(self):
        return f"Token for {self.signer_id} ({self.status})"

    def is_expired(self, now=None) -> bool:
        if self.status == self.EXPIRED:
            return True
        if self.expires_at is None:
            return False
        return (now or timezone.now()) >= self.expires_at

    def is_active(self, now=None) -> bool:
        return self.status == self.ACTIVE and not self.is_expired(now)

    def matches(self, raw_token: str) -> bool:
        return bool(raw_token) and hash_invitation_token(raw_token) == self.token_hash
