from .envelope import Envelope
from .signer import Signer
from .reminder_tracking import ReminderTracking
from .invitation_token import InvitationToken
from .audit_event import SignatureAuditEvent
from .outbox_event import OutboxEvent
from .consent import Consent

__all__ = [
    'Envelope',
    'Signer',
    'ReminderTracking',
    'InvitationToken',
    'SignatureAuditEvent',
    'OutboxEvent',
    'Consent',
]
