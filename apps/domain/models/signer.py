import uuid
from django.db import models
from django.contrib.auth.models import User
from .envelope import Envelope


class Signer(models.Model):
    PENDING = 'PENDING'
    SIGNED = 'SIGNED'
    DECLINED = 'DECLINED'

    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (SIGNED, 'Signed'),
        (DECLINED, 'Declined'),
    ]

    TERMINAL_STATUSES = (SIGNED, DECLINED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    envelope = models.ForeignKey(Envelope, on_delete=models.CASCADE, related_name='signers')
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='signer_slots')
    is_external = models.BooleanField(default=True)
    email = models.EmailField()
    full_name = models.CharField(max_length=200, blank=True)
    order = models.PositiveIntegerField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING)
    signed_at = models.DateTimeField(blank=True, null=True)
    declined_at = models.DateTimeField(blank=True, null=True)
    decline_reason = models.TextField(blank=True, null=True)
    ip_address = models.CharField(max_length=64, blank=True, null=True)
    user_agent = models.CharField(max_length=512, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'envelope_signers'
        ordering = ['order']
        constraints = [
            models.UniqueConstraint(fields=['envelope', 'order'], name='unique_signer_order_per_envelope'),
        ]

    def __str__(self):
        return f"{self.full_name or self.email} ({self.email}) - {self.status}"

    @property
    def is_pending(self) -> bool:
        return self.status == self.PENDING

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    @property
    def display_name(self) -> str:
        return self.full_name or self.email
