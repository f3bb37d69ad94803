import logging
from typing import Dict, List, Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.domain.errors import (
    AccessDenied,
    ConcurrencyConflict,
    EnvelopeNotFound,
    InvalidEnvelopeState,
    InvalidSignerState,
    SignerNotFound,
)
from apps.domain.interfaces.notification_port import NotificationPort
from apps.domain.interfaces.repositories import AuditRepository, EnvelopeRepository, InvitationTokenRepository
from apps.domain.models import Envelope, SignatureAuditEvent, Signer
from apps.domain.rules.envelope_access_rule import ActorContext, validate_envelope_modification_access
from apps.domain.rules.envelope_state_machine import (
    assert_transition,
    is_terminal,
    status_after_cancel,
    status_after_open,
    status_after_send,
    status_after_signature,
)
from apps.domain.rules.signer_order_policy import is_owner, next_signers
from apps.domain.rules.signing_order_validation_rule import validate_signing_order_consistency
from apps.infrastructure.notifications.outbox_notification_service import OutboxNotificationService
from apps.infrastructure.repositories.django_audit_repository import DjangoAuditRepository
from apps.infrastructure.repositories.django_envelope_repository import DjangoEnvelopeRepository
from apps.infrastructure.repositories.django_invitation_token_repository import DjangoInvitationTokenRepository

logger = logging.getLogger('apps')

UPDATABLE_FIELDS = ('title', 'description', 'file_url', 'expires_at', 'signing_order_type')


def _validate_unique_emails(signers_data: List[Dict]) -> None:
    emails = [entry['email'].strip().lower() for entry in signers_data]
    duplicates = sorted({email for email in emails if emails.count(email) > 1})
    if duplicates:
        raise InvalidEnvelopeState('Signer emails must be unique within an envelope', {'emails': duplicates})


def _signer_entry(signer: Signer) -> Dict:
    return {
        'user_id': signer.user_id,
        'is_external': signer.is_external,
        'email': signer.email,
        'order': signer.order,
    }


class EnvelopeService:
    def __init__(
        self,
        envelope_repository: Optional[EnvelopeRepository] = None,
        token_repository: Optional[InvitationTokenRepository] = None,
        notification_port: Optional[NotificationPort] = None,
        audit_repository: Optional[AuditRepository] = None,
        token_ttl_days: Optional[int] = None,
    ):
        self.envelope_repository = envelope_repository or DjangoEnvelopeRepository()
        self.token_repository = token_repository or DjangoInvitationTokenRepository()
        self.notification_port = notification_port or OutboxNotificationService()
        self.audit_repository = audit_repository or DjangoAuditRepository()
        self.token_ttl_days = token_ttl_days or settings.INVITATION_TOKEN_TTL_DAYS

    def _load(self, envelope_id) -> Envelope:
        envelope = self.envelope_repository.get_envelope_with_signers(envelope_id)
        if envelope is None:
            raise EnvelopeNotFound(
                f'Envelope with ID {envelope_id} not found',
                {'envelope_id': str(envelope_id)}
            )
        return envelope

    def create_envelope(
        self,
        actor: ActorContext,
        title: str,
        file_url: Optional[str],
        signing_order_type: str,
        signers_data: List[Dict],
        description: Optional[str] = None,
        expires_at=None,
    ) -> Envelope:
        if not actor.is_authenticated:
            raise AccessDenied('Authentication is required to create envelopes')

        validate_signing_order_consistency(signing_order_type, signers_data, actor.user_id)

        _validate_unique_emails(signers_data)

        envelope = self.envelope_repository.create_envelope(
            {
                'title': title,
                'description': description,
                'file_url': file_url,
                'signing_order_type': signing_order_type,
                'created_by_id': actor.user_id,
                'expires_at': expires_at,
            },
            signers_data,
        )

        self.audit_repository.record(
            envelope.id,
            None,
            SignatureAuditEvent.ENVELOPE_CREATED,
            f'Envelope "{envelope.title}" created',
            actor=actor,
            metadata={'signing_order_type': signing_order_type, 'signers': len(signers_data)},
        )
        logger.info(f'Envelope {envelope.id} created by user {actor.user_id}')
        return envelope

    def update_envelope(
        self,
        envelope_id,
        actor: ActorContext,
        changes: Optional[Dict] = None,
        add_signers: Optional[List[Dict]] = None,
        remove_signer_ids: Optional[List] = None,
    ) -> Envelope:
        """
        Edits an envelope and its signer set.

        A DRAFT envelope accepts any of ``UPDATABLE_FIELDS`` plus signer
        additions and removals. Once sent, only signers that are still PENDING
        can be removed, which is how a non-responsive signer is dropped. If that
        leaves no pending signer, the envelope completes.

        The resulting signer set goes through the same signing order
        consistency check as creation.
        """
        changes = dict(changes or {})
        add_signers = [dict(entry) for entry in add_signers or []]
        remove_ids = {str(signer_id) for signer_id in remove_signer_ids or []}

        unknown_fields = sorted(set(changes) - set(UPDATABLE_FIELDS))
        if unknown_fields:
            raise InvalidEnvelopeState('These envelope fields cannot be updated', {'fields': unknown_fields})

        envelope = self._load(envelope_id)
        validate_envelope_modification_access(envelope, actor)
        if is_terminal(envelope.status):
            raise InvalidEnvelopeState(
                f'Envelope in status {envelope.status} cannot be modified',
                {'envelope_id': str(envelope.id), 'status': envelope.status}
            )

        is_draft = envelope.status == Envelope.DRAFT
        if not is_draft and (changes or add_signers):
            raise InvalidEnvelopeState(
                'Once an envelope is sent only pending signers can be removed',
                {'envelope_id': str(envelope.id), 'status': envelope.status}
            )
        if not (changes or add_signers or remove_ids):
            return envelope

        signers = list(envelope.signers.all())
        unknown_signers = sorted(remove_ids - {str(signer.id) for signer in signers})
        if unknown_signers:
            raise SignerNotFound(
                'Signer not found in envelope',
                {'envelope_id': str(envelope.id), 'signer_ids': unknown_signers}
            )
        removed = [signer for signer in signers if str(signer.id) in remove_ids]
        not_pending = [str(signer.id) for signer in removed if not signer.is_pending]
        if not_pending:
            raise InvalidSignerState('Only pending signers can be removed', {'signer_ids': not_pending})

        remaining = [signer for signer in signers if str(signer.id) not in remove_ids]
        resulting = [_signer_entry(signer) for signer in remaining] + add_signers
        order_type = changes.get('signing_order_type', envelope.signing_order_type)
        validate_signing_order_consistency(order_type, resulting, envelope.created_by_id)
        _validate_unique_emails(resulting)

        target = envelope.status
        envelope_fields = dict(changes)
        if not is_draft and not any(signer.is_pending for signer in remaining):
            if not remaining:
                raise InvalidEnvelopeState(
                    'A sent envelope must keep at least one signer, cancel it instead',
                    {'envelope_id': str(envelope.id)}
                )
            target = status_after_signature(envelope.status, 0)
            envelope_fields['completed_at'] = timezone.now()

        with transaction.atomic():
            if not self.envelope_repository.update_envelope_status(
                envelope, envelope.version, target, **envelope_fields
            ):
                raise ConcurrencyConflict(
                    'Envelope changed concurrently, retry the request',
                    {'envelope_id': str(envelope.id)}
                )

            if removed:
                if self.envelope_repository.remove_pending_signers(
                    envelope, [signer.id for signer in removed]
                ) != len(removed):
                    raise ConcurrencyConflict(
                        'Signer changed concurrently, retry the request',
                        {'envelope_id': str(envelope.id)}
                    )
                for signer in removed:
                    self.audit_repository.record(
                        envelope.id,
                        None,
                        SignatureAuditEvent.SIGNER_REMOVED,
                        f'Signer {signer.display_name} ({signer.email}) removed',
                        actor=actor,
                        metadata={'signer_id': str(signer.id), 'email': signer.email, 'order': signer.order},
                    )

            for signer in self.envelope_repository.add_signers(envelope, add_signers):
                self.audit_repository.record(
                    envelope.id,
                    signer.id,
                    SignatureAuditEvent.SIGNER_ADDED,
                    f'Signer {signer.display_name} ({signer.email}) added',
                    actor=actor,
                    metadata={'order': signer.order},
                )

            if changes:
                self.audit_repository.record(
                    envelope.id,
                    None,
                    SignatureAuditEvent.ENVELOPE_UPDATED,
                    f'Envelope "{envelope.title}" updated',
                    actor=actor,
                    metadata={'fields': sorted(changes)},
                )
            if target == Envelope.COMPLETED:
                self.audit_repository.record(
                    envelope.id,
                    None,
                    SignatureAuditEvent.ENVELOPE_COMPLETED,
                    f'Envelope "{envelope.title}" completed',
                    actor=actor,
                )

        logger.info(
            f'Envelope {envelope.id} updated: {len(add_signers)} signer(s) added, '
            f'{len(removed)} removed, status {envelope.status}'
        )
        return self._load(envelope.id)

    def send_envelope(self, envelope_id, actor: ActorContext) -> Envelope:
        envelope = self._load(envelope_id)
        validate_envelope_modification_access(envelope, actor)
        assert_transition(envelope.status, status_after_send())

        signers = list(envelope.signers.all())
        if not signers:
            raise InvalidEnvelopeState(
                'An envelope needs at least one signer before it is sent',
                {'envelope_id': str(envelope.id)}
            )
        if not envelope.file_url:
            raise InvalidEnvelopeState(
                'An envelope needs a document before it is sent',
                {'envelope_id': str(envelope.id)}
            )

        invitees = [signer for signer in signers if not is_owner(signer, envelope.created_by_id)]

        with transaction.atomic():
            now = timezone.now()
            if not self.envelope_repository.update_envelope_status(
                envelope, envelope.version, status_after_send(), sent_at=now
            ):
                raise ConcurrencyConflict(
                    'Envelope changed concurrently, retry the request',
                    {'envelope_id': str(envelope.id)}
                )

            if next_signers(signers, envelope.signing_order_type, envelope.created_by_id):
                assert_transition(envelope.status, status_after_open())
                if not self.envelope_repository.update_envelope_status(
                    envelope, envelope.version, status_after_open()
                ):
                    raise ConcurrencyConflict(
                        'Envelope changed concurrently, retry the request',
                        {'envelope_id': str(envelope.id)}
                    )

            for signer in invitees:
                raw_token = self.token_repository.issue_token(envelope, signer, self.token_ttl_days)
                self.notification_port.publish_invitation(envelope.id, signer.id, raw_token)

            self.audit_repository.record(
                envelope.id,
                None,
                SignatureAuditEvent.ENVELOPE_SENT,
                f'Envelope "{envelope.title}" sent to {len(signers)} signer(s)',
                actor=actor,
                metadata={'invitations': len(invitees)},
            )

        logger.info(f'Envelope {envelope.id} sent, status {envelope.status}, {len(invitees)} invitation(s) enqueued')
        return envelope

    def cancel_envelope(self, envelope_id, actor: ActorContext) -> Envelope:
        envelope = self._load(envelope_id)
        validate_envelope_modification_access(envelope, actor)
        previous_status = envelope.status
        target = status_after_cancel(previous_status)

        with transaction.atomic():
            if not self.envelope_repository.update_envelope_status(
                envelope, envelope.version, target, cancelled_at=timezone.now()
            ):
                raise ConcurrencyConflict(
                    'Envelope changed concurrently, retry the request',
                    {'envelope_id': str(envelope.id)}
                )
            self.token_repository.revoke_active_tokens(envelope.id)
            self.audit_repository.record(
                envelope.id,
                None,
                SignatureAuditEvent.ENVELOPE_CANCELLED,
                f'Envelope "{envelope.title}" cancelled',
                actor=actor,
                metadata={'previous_status': previous_status},
            )

        logger.info(f'Envelope {envelope.id} cancelled (was {previous_status})')
        return envelope

    def get_envelope(self, envelope_id, actor: ActorContext) -> Envelope:
        envelope = self._load(envelope_id)
        is_signer = actor.is_authenticated and any(
            signer.user_id is not None and str(signer.user_id) == str(actor.user_id)
            for signer in envelope.signers.all()
        )
        if not is_signer:
            validate_envelope_modification_access(envelope, actor)
        return envelope

    def list_envelopes(self, actor: ActorContext) -> List[Envelope]:
        if not actor.is_authenticated:
            raise AccessDenied('Authentication is required to list envelopes')
        return self.envelope_repository.list_for_actor(actor.user_id, include_all=actor.is_privileged)

    def get_audit_trail(self, envelope_id, actor: ActorContext) -> List[SignatureAuditEvent]:
        envelope = self._load(envelope_id)
        validate_envelope_modification_access(envelope, actor)
        return self.audit_repository.list_for_envelope(envelope.id)
