import logging
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

from django.conf import settings
from django.db import transaction

from apps.domain.errors import EnvelopeNotFound, InvalidEnvelopeState
from apps.domain.interfaces.notification_port import NotificationPort
from apps.domain.interfaces.repositories import AuditRepository, EnvelopeRepository, InvitationTokenRepository
from apps.domain.models import Envelope, InvitationToken, SignatureAuditEvent, Signer
from apps.domain.rules.envelope_access_rule import ActorContext, validate_envelope_modification_access
from apps.domain.rules.envelope_state_machine import can_accept_signatures
from apps.domain.rules.signer_order_policy import is_owner
from apps.application.services.reminder_rate_limiter import ReminderRateLimiter
from apps.infrastructure.notifications.outbox_notification_service import OutboxNotificationService
from apps.infrastructure.repositories.django_audit_repository import DjangoAuditRepository
from apps.infrastructure.repositories.django_envelope_repository import DjangoEnvelopeRepository
from apps.infrastructure.repositories.django_invitation_token_repository import DjangoInvitationTokenRepository

logger = logging.getLogger('apps')

NO_ACTIVE_INVITATION_TOKEN = 'no active invitation token found'


@dataclass
class SendRemindersInput:
    envelope_id: str
    actor: ActorContext
    signer_ids: Optional[List[str]] = None
    message: Optional[str] = None


@dataclass
class SendRemindersResult:
    success: bool
    message: str
    envelope_id: str
    reminders_sent: int = 0
    signers_notified: List[Dict] = field(default_factory=list)
    skipped_signers: List[Dict] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return asdict(self)


class SendRemindersUseCase:
    """
    Sends reminders to the pending signers of an envelope.

    Missing envelopes and access failures abort the call, as do envelopes
    that no longer accept signatures. The owner is never reminded. Per-signer
    restrictions (rate limit, no active token) end up in ``skipped_signers``
    and never abort the batch. Each signer is processed in its own
    transaction: the tracking increment, the token refresh, the outbox entry
    and the audit event commit together.

    A signer without an active invitation token is skipped after its reminder
    count was already incremented; that increment stays committed.
    """

    def __init__(
        self,
        envelope_repository: Optional[EnvelopeRepository] = None,
        rate_limiter: Optional[ReminderRateLimiter] = None,
        token_repository: Optional[InvitationTokenRepository] = None,
        notification_port: Optional[NotificationPort] = None,
        audit_repository: Optional[AuditRepository] = None,
        max_reminders: Optional[int] = None,
        min_hours_between: Optional[int] = None,
    ):
        self.envelope_repository = envelope_repository or DjangoEnvelopeRepository()
        self.rate_limiter = rate_limiter or ReminderRateLimiter()
        self.token_repository = token_repository or DjangoInvitationTokenRepository()
        self.notification_port = notification_port or OutboxNotificationService()
        self.audit_repository = audit_repository or DjangoAuditRepository()
        self.max_reminders = max_reminders if max_reminders is not None else settings.REMINDERS_MAX_PER_SIGNER
        self.min_hours_between = (
            min_hours_between if min_hours_between is not None else settings.REMINDERS_MIN_HOURS_BETWEEN
        )

    def execute(self, data: SendRemindersInput) -> SendRemindersResult:
        envelope = self.envelope_repository.get_envelope_with_signers(data.envelope_id)
        if envelope is None:
            raise EnvelopeNotFound(
                f'Envelope with ID {data.envelope_id} not found',
                {'envelope_id': str(data.envelope_id)}
            )

        validate_envelope_modification_access(envelope, data.actor)

        if not can_accept_signatures(envelope.status):
            raise InvalidEnvelopeState(
                f'Envelope in status {envelope.status} does not accept reminders',
                {'envelope_id': str(envelope.id), 'status': envelope.status}
            )

        # The owner signs through their own account and holds no invitation token.
        pending_signers = [
            signer for signer in envelope.signers.all()
            if signer.is_pending and not is_owner(signer, envelope.created_by_id)
        ]
        if not pending_signers:
            return SendRemindersResult(True, 'No pending signers to remind', str(envelope.id))

        if data.signer_ids:
            wanted = {str(signer_id) for signer_id in data.signer_ids}
            pending_signers = [signer for signer in pending_signers if str(signer.id) in wanted]
            if not pending_signers:
                return SendRemindersResult(True, 'No matching pending signers found', str(envelope.id))

        result = SendRemindersResult(True, '', str(envelope.id))
        for signer in pending_signers:
            with transaction.atomic():
                self._remind_signer(envelope, signer, data, result)

        result.reminders_sent = len(result.signers_notified)
        result.message = f'Reminders sent to {result.reminders_sent} signers'
        logger.info(
            f'Reminders for envelope {envelope.id}: {result.reminders_sent} sent, '
            f'{len(result.skipped_signers)} skipped'
        )
        return result

    def _remind_signer(self, envelope: Envelope, signer: Signer, data: SendRemindersInput, result: SendRemindersResult):
        decision = self.rate_limiter.can_send_reminder(
            signer.id, envelope.id, self.max_reminders, self.min_hours_between
        )
        if not decision.can_send:
            logger.info(f'Reminder to signer {signer.id} skipped: {decision.reason}')
            result.skipped_signers.append({
                'id': str(signer.id),
                'email': signer.email,
                'reason': decision.reason,
            })
            return

        tracking = self.rate_limiter.record_reminder_sent(
            signer.id, envelope.id, data.message, expected_count=decision.observed_count
        )

        active_token = self._find_active_token(signer)
        if active_token is None:
            logger.warning(f'Reminder to signer {signer.id} skipped: {NO_ACTIVE_INVITATION_TOKEN}')
            result.skipped_signers.append({
                'id': str(signer.id),
                'email': signer.email,
                'reason': NO_ACTIVE_INVITATION_TOKEN,
            })
            return

        self.token_repository.update_token_sent(active_token.id)
        self.notification_port.publish_reminder(envelope.id, signer.id, data.message, tracking.reminder_count)

        last_reminder_at = tracking.last_reminder_at.isoformat() if tracking.last_reminder_at else None
        self.audit_repository.record(
            envelope.id,
            signer.id,
            SignatureAuditEvent.SIGNER_REMINDER_SENT,
            f'Reminder sent to signer {signer.display_name} ({signer.email})',
            actor=data.actor,
            metadata={
                'reminder_count': tracking.reminder_count,
                'message': data.message,
                'last_reminder_at': last_reminder_at,
            },
        )

        result.signers_notified.append({
            'id': str(signer.id),
            'email': signer.email,
            'name': signer.display_name,
            'reminder_count': tracking.reminder_count,
            'last_reminder_at': last_reminder_at,
        })

    def _find_active_token(self, signer: Signer) -> Optional[InvitationToken]:
        for token in self.token_repository.get_tokens_by_signer(signer.id):
            if token.status == InvitationToken.ACTIVE and not self.token_repository.is_expired(token):
                return token
        return None
