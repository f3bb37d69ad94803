import logging
from typing import Optional

from django.db import transaction
from django.utils import timezone

from apps.domain.errors import (
    ConcurrencyConflict,
    EnvelopeNotFound,
    InvalidEnvelopeState,
    InvalidSignerState,
    SignerNotFound,
)
from apps.domain.interfaces.repositories import (
    AuditRepository,
    ConsentRepository,
    EnvelopeRepository,
    InvitationTokenRepository,
)
from apps.domain.models import Envelope, SignatureAuditEvent, Signer
from apps.domain.rules.consent_rule import ConsentInput, validate_consent
from apps.domain.rules.envelope_access_rule import ActorContext, validate_signer_access
from apps.domain.rules.envelope_state_machine import (
    can_accept_signatures,
    status_after_decline,
    status_after_signature,
)
from apps.domain.rules.signing_order_validation_rule import validate_signing_order
from apps.infrastructure.repositories.django_audit_repository import DjangoAuditRepository
from apps.infrastructure.repositories.django_consent_repository import DjangoConsentRepository
from apps.infrastructure.repositories.django_envelope_repository import DjangoEnvelopeRepository
from apps.infrastructure.repositories.django_invitation_token_repository import DjangoInvitationTokenRepository

logger = logging.getLogger('apps')


class SigningService:
    """
    Applies sign and decline actions. Every check runs against freshly loaded
    state, and both writes are conditional: the signer must still be PENDING
    and the envelope must still be at the version that was read. Losing
    either race raises ConcurrencyConflict and nothing is persisted.

    A signature requires consent; the consent record is written in the same
    transaction and linked to the SIGNER_SIGNED audit event. A decline revokes
    every invitation token still active on the envelope.
    """

    def __init__(
        self,
        envelope_repository: Optional[EnvelopeRepository] = None,
        token_repository: Optional[InvitationTokenRepository] = None,
        audit_repository: Optional[AuditRepository] = None,
        consent_repository: Optional[ConsentRepository] = None,
    ):
        self.envelope_repository = envelope_repository or DjangoEnvelopeRepository()
        self.token_repository = token_repository or DjangoInvitationTokenRepository()
        self.audit_repository = audit_repository or DjangoAuditRepository()
        self.consent_repository = consent_repository or DjangoConsentRepository()

    def sign(
        self,
        envelope_id,
        signer_id,
        actor: ActorContext,
        consent: Optional[ConsentInput] = None,
        invitation_token: Optional[str] = None,
    ) -> Envelope:
        return self._act(envelope_id, signer_id, actor, invitation_token, decline=False, consent=consent)

    def decline(
        self,
        envelope_id,
        signer_id,
        actor: ActorContext,
        reason: Optional[str] = None,
        invitation_token: Optional[str] = None,
    ) -> Envelope:
        return self._act(envelope_id, signer_id, actor, invitation_token, decline=True, reason=reason)

    def _act(self, envelope_id, signer_id, actor, invitation_token, decline, reason=None, consent=None) -> Envelope:
        envelope = self.envelope_repository.get_envelope_with_signers(envelope_id)
        if envelope is None:
            raise EnvelopeNotFound(
                f'Envelope with ID {envelope_id} not found',
                {'envelope_id': str(envelope_id)}
            )

        if not can_accept_signatures(envelope.status):
            raise InvalidEnvelopeState(
                f'Envelope in status {envelope.status} does not accept signatures',
                {'envelope_id': str(envelope.id), 'status': envelope.status}
            )

        signers = list(envelope.signers.all())
        signer = next((s for s in signers if str(s.id) == str(signer_id)), None)
        if signer is None:
            raise SignerNotFound(
                'Signer not found in envelope',
                {'envelope_id': str(envelope.id), 'signer_id': str(signer_id)}
            )
        if not signer.is_pending:
            raise InvalidSignerState(
                f'Signer already {signer.status.lower()}',
                {'signer_id': str(signer.id), 'status': signer.status}
            )

        tokens = self.token_repository.get_tokens_by_signer(signer.id) if signer.is_external else []
        used_token = validate_signer_access(signer, actor, invitation_token, tokens)

        validate_signing_order(envelope, signer.id, envelope.created_by_id, signers)
        if not decline:
            consent = validate_consent(consent)

        now = timezone.now()
        signer_fields = {'ip_address': actor.ip, 'user_agent': actor.user_agent}
        if decline:
            new_signer_status = Signer.DECLINED
            target = status_after_decline(envelope.status)
            signer_fields.update({'declined_at': now, 'decline_reason': reason})
            envelope_fields = {'declined_at': now, 'declined_by_signer': signer, 'declined_reason': reason}
        else:
            new_signer_status = Signer.SIGNED
            remaining_pending = sum(1 for s in signers if s.is_pending and s.id != signer.id)
            target = status_after_signature(envelope.status, remaining_pending)
            signer_fields['signed_at'] = now
            envelope_fields = {'completed_at': now} if target == Envelope.COMPLETED else {}

        with transaction.atomic():
            if not self.envelope_repository.update_signer_status(
                signer, Signer.PENDING, new_signer_status, **signer_fields
            ):
                raise ConcurrencyConflict(
                    'Signer changed concurrently, reload the envelope and retry',
                    {'signer_id': str(signer.id)}
                )
            if not self.envelope_repository.update_envelope_status(
                envelope, envelope.version, target, **envelope_fields
            ):
                raise ConcurrencyConflict(
                    'Envelope changed concurrently, reload the envelope and retry',
                    {'envelope_id': str(envelope.id)}
                )

            if decline:
                self._audit_decline(envelope, signer, actor, reason)
                self.token_repository.revoke_active_tokens(envelope.id)
            else:
                consent_record = self.consent_repository.create_consent(
                    envelope.id,
                    signer.id,
                    consent_given=consent.given,
                    consent_timestamp=consent.timestamp or now,
                    consent_text=consent.text,
                    ip_address=consent.ip_address or actor.ip,
                    user_agent=consent.user_agent or actor.user_agent,
                    country=consent.country,
                )
                signature_event = self._audit_signature(envelope, signer, actor, consent_record.id)
                self.consent_repository.link_with_signature(consent_record, signature_event)
                if used_token is not None:
                    self.token_repository.mark_signed(used_token)

        logger.info(
            f'Signer {signer.id} {new_signer_status.lower()} envelope {envelope.id}, '
            f'envelope status is now {envelope.status}'
        )
        return envelope

    def _audit_decline(self, envelope: Envelope, signer: Signer, actor: ActorContext, reason: Optional[str]):
        self.audit_repository.record(
            envelope.id,
            signer.id,
            SignatureAuditEvent.SIGNER_DECLINED,
            f'Signer {signer.display_name} ({signer.email}) declined',
            actor=actor,
            metadata={'reason': reason},
        )
        self.audit_repository.record(
            envelope.id,
            signer.id,
            SignatureAuditEvent.ENVELOPE_DECLINED,
            f'Envelope "{envelope.title}" declined',
            actor=actor,
            metadata={'reason': reason},
        )

    def _audit_signature(self, envelope: Envelope, signer: Signer, actor: ActorContext, consent_id) -> SignatureAuditEvent:
        signature_event = self.audit_repository.record(
            envelope.id,
            signer.id,
            SignatureAuditEvent.SIGNER_SIGNED,
            f'Signer {signer.display_name} ({signer.email}) signed',
            actor=actor,
            metadata={'consent_id': str(consent_id)},
        )
        if envelope.status == Envelope.COMPLETED:
            self.audit_repository.record(
                envelope.id,
                None,
                SignatureAuditEvent.ENVELOPE_COMPLETED,
                f'Envelope "{envelope.title}" completed',
                actor=actor,
            )
        return signature_event
