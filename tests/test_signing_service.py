import pytest
from datetime import timedelta
from django.db.models import F
from apps.domain.errors import (
    ConcurrencyConflict,
    ConsentRequired,
    InvalidEnvelopeState,
    InvalidInvitationToken,
    InvalidSignerState,
    AccessDenied,
    SigningOrderViolation,
)
from apps.domain.models import Consent, Envelope, InvitationToken, SignatureAuditEvent, Signer
from apps.domain.rules.consent_rule import ConsentInput
from apps.domain.rules.envelope_access_rule import ActorContext
from apps.application.services.signing_service import SigningService
from apps.infrastructure.repositories.django_envelope_repository import DjangoEnvelopeRepository

GUEST = ActorContext.anonymous(ip='10.0.0.1', user_agent='browser')
CONSENT = ConsentInput(given=True, text='I agree to sign this document electronically.')


@pytest.fixture
def service():
    return SigningService()


@pytest.mark.django_db
class TestSign:
    def test_owner_then_invitee_completes_envelope(self, service, envelope, owner_actor, owner_signer,
                                                   invitee_signer, token_factory):
        raw_token = token_factory(invitee_signer)

        result = service.sign(envelope.id, owner_signer.id, owner_actor, consent=CONSENT)
        assert result.status == Envelope.READY_FOR_SIGNATURE

        result = service.sign(envelope.id, invitee_signer.id, GUEST, consent=CONSENT, invitation_token=raw_token)
        assert result.status == Envelope.COMPLETED

        envelope.refresh_from_db()
        invitee_signer.refresh_from_db()
        assert envelope.status == Envelope.COMPLETED
        assert envelope.completed_at is not None
        assert envelope.version == 3
        assert invitee_signer.status == Signer.SIGNED
        assert invitee_signer.ip_address == '10.0.0.1'
        assert InvitationToken.objects.get(signer=invitee_signer).status == InvitationToken.SIGNED

        event_types = list(SignatureAuditEvent.objects.values_list('event_type', flat=True))
        assert event_types == [
            SignatureAuditEvent.SIGNER_SIGNED,
            SignatureAuditEvent.SIGNER_SIGNED,
            SignatureAuditEvent.ENVELOPE_COMPLETED,
        ]

    def test_invitee_out_of_turn(self, service, envelope, owner_signer, invitee_signer, token_factory):
        raw_token = token_factory(invitee_signer)

        with pytest.raises(SigningOrderViolation):
            service.sign(envelope.id, invitee_signer.id, GUEST, consent=CONSENT, invitation_token=raw_token)

        invitee_signer.refresh_from_db()
        assert invitee_signer.status == Signer.PENDING

    def test_external_signer_needs_valid_token(self, service, envelope, invitee_signer, token_factory):
        with pytest.raises(InvalidInvitationToken):
            service.sign(envelope.id, invitee_signer.id, GUEST, consent=CONSENT)

        token_factory(invitee_signer)
        with pytest.raises(InvalidInvitationToken):
            service.sign(envelope.id, invitee_signer.id, GUEST, consent=CONSENT, invitation_token='wrong-token')

    def test_expired_token_rejected(self, service, envelope, invitee_signer, token_factory):
        raw_token = token_factory(invitee_signer, expires_in=timedelta(minutes=-5))
        with pytest.raises(InvalidInvitationToken):
            service.sign(envelope.id, invitee_signer.id, GUEST, consent=CONSENT, invitation_token=raw_token)

    def test_internal_signer_must_be_the_actor(self, service, envelope, owner_signer, other_user):
        stranger = ActorContext(user_id=str(other_user.pk))
        with pytest.raises(AccessDenied):
            service.sign(envelope.id, owner_signer.id, stranger, consent=CONSENT)

    def test_envelope_must_accept_signatures(self, service, envelope, owner_actor, owner_signer):
        Envelope.objects.filter(pk=envelope.pk).update(status=Envelope.DRAFT)
        with pytest.raises(InvalidEnvelopeState):
            service.sign(envelope.id, owner_signer.id, owner_actor, consent=CONSENT)

    def test_signer_already_signed(self, service, envelope, owner_actor, owner_signer, invitee_signer):
        service.sign(envelope.id, owner_signer.id, owner_actor, consent=CONSENT)
        with pytest.raises(InvalidSignerState):
            service.sign(envelope.id, owner_signer.id, owner_actor, consent=CONSENT)

    def test_stale_envelope_version_conflicts(self, envelope, owner_actor, owner_signer, invitee_signer):
        class StaleEnvelopeRepository(DjangoEnvelopeRepository):
            def get_envelope_with_signers(self, envelope_id):
                loaded = super().get_envelope_with_signers(envelope_id)
                Envelope.objects.filter(pk=envelope_id).update(version=F('version') + 1)
                return loaded

        service = SigningService(envelope_repository=StaleEnvelopeRepository())

        with pytest.raises(ConcurrencyConflict) as exc_info:
            service.sign(envelope.id, owner_signer.id, owner_actor, consent=CONSENT)

        assert exc_info.value.retryable is True
        owner_signer.refresh_from_db()
        assert owner_signer.status == Signer.PENDING
        assert not SignatureAuditEvent.objects.exists()
        assert not Consent.objects.exists()


@pytest.mark.django_db
class TestDecline:
    def test_first_decline_terminates_envelope(self, service, envelope, owner_actor, owner_signer, invitee_signer):
        result = service.decline(envelope.id, owner_signer.id, owner_actor, reason='Wrong amount')

        assert result.status == Envelope.DECLINED
        envelope.refresh_from_db()
        assert envelope.declined_by_signer_id == owner_signer.id
        assert envelope.declined_reason == 'Wrong amount'
        owner_signer.refresh_from_db()
        assert owner_signer.status == Signer.DECLINED
        assert owner_signer.decline_reason == 'Wrong amount'

        event_types = set(SignatureAuditEvent.objects.values_list('event_type', flat=True))
        assert event_types == {SignatureAuditEvent.SIGNER_DECLINED, SignatureAuditEvent.ENVELOPE_DECLINED}

    def test_decline_respects_signing_order(self, service, envelope, owner_signer, invitee_signer, token_factory):
        raw_token = token_factory(invitee_signer)
        with pytest.raises(SigningOrderViolation):
            service.decline(envelope.id, invitee_signer.id, GUEST, reason='No', invitation_token=raw_token)

    def test_no_signatures_after_decline(self, service, envelope, owner_actor, owner_signer, invitee_signer,
                                         token_factory):
        raw_token = token_factory(invitee_signer)
        service.decline(envelope.id, owner_signer.id, owner_actor)

        with pytest.raises(InvalidEnvelopeState):
            service.sign(envelope.id, invitee_signer.id, GUEST, consent=CONSENT, invitation_token=raw_token)

    def test_decline_revokes_remaining_invitations(self, service, envelope, owner_actor, owner_signer,
                                                   invitee_signer, second_invitee_signer, token_factory):
        first_token = token_factory(invitee_signer)
        token_factory(second_invitee_signer)
        service.sign(envelope.id, owner_signer.id, owner_actor, consent=CONSENT)

        service.decline(envelope.id, invitee_signer.id, GUEST, reason='No', invitation_token=first_token)

        assert not InvitationToken.objects.filter(envelope=envelope, status=InvitationToken.ACTIVE).exists()
        second_invitee_signer.refresh_from_db()
        assert second_invitee_signer.status == Signer.PENDING


@pytest.mark.django_db
class TestConsent:
    def test_consent_recorded_and_linked_to_signature(self, service, envelope, owner_signer, invitee_signer,
                                                      owner_actor, token_factory):
        service.sign(envelope.id, owner_signer.id, owner_actor, consent=CONSENT)
        raw_token = token_factory(invitee_signer)
        guest_consent = ConsentInput(given=True, text='Eu concordo.', country='BR')

        service.sign(envelope.id, invitee_signer.id, GUEST, consent=guest_consent, invitation_token=raw_token)

        consent = Consent.objects.get(signer=invitee_signer)
        assert consent.consent_given is True
        assert consent.consent_text == 'Eu concordo.'
        assert consent.country == 'BR'
        assert consent.ip_address == '10.0.0.1'
        assert consent.user_agent == 'browser'
        assert consent.consent_timestamp is not None
        assert consent.is_linked
        assert consent.signature_event.event_type == SignatureAuditEvent.SIGNER_SIGNED
        assert consent.signature_event.signer_id == invitee_signer.id
        assert consent.signature_event.metadata['consent_id'] == str(consent.id)

    @pytest.mark.parametrize('consent', [
        None,
        ConsentInput(given=False, text='I agree.'),
        ConsentInput(given=True, text='   '),
    ])
    def test_signature_requires_consent(self, service, envelope, owner_actor, owner_signer, invitee_signer, consent):
        with pytest.raises(ConsentRequired):
            service.sign(envelope.id, owner_signer.id, owner_actor, consent=consent)

        owner_signer.refresh_from_db()
        assert owner_signer.status == Signer.PENDING
        assert not Consent.objects.exists()

    def test_decline_needs_no_consent(self, service, envelope, owner_actor, owner_signer):
        service.decline(envelope.id, owner_signer.id, owner_actor)
        assert not Consent.objects.exists()
