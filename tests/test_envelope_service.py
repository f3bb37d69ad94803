import pytest
from apps.domain.errors import AccessDenied, InvalidEnvelopeState, InvalidSignerState, EnvelopeNotFound, SignerNotFound
from apps.domain.models import Envelope, InvitationToken, OutboxEvent, SignatureAuditEvent, Signer
from apps.domain.rules.consent_rule import ConsentInput
from apps.domain.rules.envelope_access_rule import ActorContext, SUPER_ADMIN
from apps.application.services.envelope_service import EnvelopeService
from apps.application.services.signing_service import SigningService


@pytest.fixture
def service():
    return EnvelopeService()


@pytest.fixture
def signers_data(user):
    return [
        {'user_id': user.pk, 'is_external': False, 'email': user.email, 'full_name': 'Owner', 'order': 1},
        {'email': 'maria@example.com', 'full_name': 'Maria', 'order': 2, 'is_external': True},
        {'email': 'joao@example.com', 'full_name': 'Joao', 'order': 3, 'is_external': True},
    ]


@pytest.fixture
def draft_envelope(service, owner_actor, signers_data):
    return service.create_envelope(
        owner_actor,
        title='Contract',
        file_url='https://example.com/contract.pdf',
        signing_order_type=Envelope.OWNER_FIRST,
        signers_data=signers_data,
    )


@pytest.mark.django_db
class TestCreateEnvelope:
    def test_creates_draft_with_signers(self, draft_envelope, user):
        assert draft_envelope.status == Envelope.DRAFT
        assert draft_envelope.created_by == user
        assert [s.order for s in draft_envelope.signers.all()] == [1, 2, 3]
        assert draft_envelope.signers.get(order=1).is_external is False
        assert SignatureAuditEvent.objects.filter(
            envelope=draft_envelope, event_type=SignatureAuditEvent.ENVELOPE_CREATED
        ).exists()

    def test_inconsistent_order_rejected(self, service, owner_actor, signers_data):
        with pytest.raises(InvalidEnvelopeState):
            service.create_envelope(
                owner_actor,
                title='Contract',
                file_url=None,
                signing_order_type=Envelope.INVITEES_FIRST,
                signers_data=signers_data,
            )
        assert not Envelope.objects.exists()

    def test_duplicate_emails_rejected(self, service, owner_actor):
        with pytest.raises(InvalidEnvelopeState):
            service.create_envelope(
                owner_actor,
                title='Contract',
                file_url=None,
                signing_order_type=Envelope.OWNER_FIRST,
                signers_data=[
                    {'email': 'same@example.com', 'order': 1},
                    {'email': 'SAME@example.com', 'order': 2},
                ],
            )

    def test_anonymous_cannot_create(self, service):
        with pytest.raises(AccessDenied):
            service.create_envelope(ActorContext.anonymous(), 'Contract', None, Envelope.OWNER_FIRST, [])


@pytest.mark.django_db
class TestSendEnvelope:
    def test_send_opens_envelope_and_invites(self, service, owner_actor, draft_envelope):
        envelope = service.send_envelope(draft_envelope.id, owner_actor)

        assert envelope.status == Envelope.READY_FOR_SIGNATURE
        envelope.refresh_from_db()
        assert envelope.status == Envelope.READY_FOR_SIGNATURE
        assert envelope.sent_at is not None
        assert envelope.version == 3

        invitees = list(envelope.signers.filter(is_external=True))
        assert InvitationToken.objects.filter(envelope=envelope, status=InvitationToken.ACTIVE).count() == 2
        invitations = OutboxEvent.objects.filter(event_type=OutboxEvent.ENVELOPE_INVITATION)
        assert sorted(e.payload['signer_id'] for e in invitations) == sorted(str(s.id) for s in invitees)
        assert all(e.payload['invitation_token'] for e in invitations)
        assert SignatureAuditEvent.objects.filter(event_type=SignatureAuditEvent.ENVELOPE_SENT).count() == 1

    def test_send_twice_fails(self, service, owner_actor, draft_envelope):
        service.send_envelope(draft_envelope.id, owner_actor)
        with pytest.raises(InvalidEnvelopeState):
            service.send_envelope(draft_envelope.id, owner_actor)

    def test_requires_document(self, service, owner_actor, draft_envelope):
        Envelope.objects.filter(pk=draft_envelope.pk).update(file_url=None)
        with pytest.raises(InvalidEnvelopeState):
            service.send_envelope(draft_envelope.id, owner_actor)

    def test_requires_signers(self, service, owner_actor):
        envelope = service.create_envelope(owner_actor, 'Empty', 'https://example.com/a.pdf', Envelope.OWNER_FIRST, [])
        with pytest.raises(InvalidEnvelopeState):
            service.send_envelope(envelope.id, owner_actor)

    def test_only_owner_can_send(self, service, draft_envelope, other_user):
        with pytest.raises(AccessDenied):
            service.send_envelope(draft_envelope.id, ActorContext(user_id=str(other_user.pk)))

    def test_unknown_envelope(self, service, owner_actor):
        with pytest.raises(EnvelopeNotFound):
            service.send_envelope('not-a-uuid', owner_actor)


@pytest.mark.django_db
class TestCancelEnvelope:
    def test_cancel_revokes_tokens(self, service, owner_actor, draft_envelope):
        service.send_envelope(draft_envelope.id, owner_actor)

        envelope = service.cancel_envelope(draft_envelope.id, owner_actor)

        assert envelope.status == Envelope.CANCELLED
        assert envelope.cancelled_at is not None
        assert not InvitationToken.objects.filter(status=InvitationToken.ACTIVE).exists()

    def test_cancelled_envelope_is_final(self, service, owner_actor, draft_envelope):
        service.cancel_envelope(draft_envelope.id, owner_actor)
        with pytest.raises(InvalidEnvelopeState):
            service.cancel_envelope(draft_envelope.id, owner_actor)
        with pytest.raises(InvalidEnvelopeState):
            service.send_envelope(draft_envelope.id, owner_actor)


@pytest.mark.django_db
class TestQueries:
    def test_list_envelopes(self, service, owner_actor, draft_envelope, other_user):
        assert [e.id for e in service.list_envelopes(owner_actor)] == [draft_envelope.id]
        assert service.list_envelopes(ActorContext(user_id=str(other_user.pk))) == []
        admin = ActorContext(user_id=str(other_user.pk), role=SUPER_ADMIN)
        assert len(service.list_envelopes(admin)) == 1

    def test_get_envelope_access(self, service, owner_actor, draft_envelope, other_user):
        assert service.get_envelope(draft_envelope.id, owner_actor).id == draft_envelope.id
        with pytest.raises(AccessDenied):
            service.get_envelope(draft_envelope.id, ActorContext(user_id=str(other_user.pk)))

    def test_audit_trail(self, service, owner_actor, draft_envelope):
        service.send_envelope(draft_envelope.id, owner_actor)
        events = service.get_audit_trail(draft_envelope.id, owner_actor)
        assert [e.event_type for e in events] == [
            SignatureAuditEvent.ENVELOPE_CREATED,
            SignatureAuditEvent.ENVELOPE_SENT,
        ]


def _invitation_token(signer):
    event = OutboxEvent.objects.get(event_type=OutboxEvent.ENVELOPE_INVITATION, payload__signer_id=str(signer.id))
    return event.payload['invitation_token']


@pytest.fixture
def sent_envelope(service, owner_actor, draft_envelope):
    service.send_envelope(draft_envelope.id, owner_actor)
    SigningService().sign(
        draft_envelope.id,
        draft_envelope.signers.get(order=1).id,
        owner_actor,
        consent=ConsentInput(given=True, text='I agree.'),
    )
    return Envelope.objects.get(pk=draft_envelope.pk)


@pytest.mark.django_db
class TestUpdateEnvelope:
    def test_draft_fields_and_added_signer(self, service, owner_actor, draft_envelope):
        envelope = service.update_envelope(
            draft_envelope.id,
            owner_actor,
            changes={'title': 'Contract v2'},
            add_signers=[{'email': 'ana@example.com', 'full_name': 'Ana', 'order': 4, 'is_external': True}],
        )

        assert envelope.title == 'Contract v2'
        assert envelope.version == 2
        assert [s.email for s in envelope.signers.all()][-1] == 'ana@example.com'
        event_types = [e.event_type for e in service.get_audit_trail(envelope.id, owner_actor)]
        assert event_types == [
            SignatureAuditEvent.ENVELOPE_CREATED,
            SignatureAuditEvent.SIGNER_ADDED,
            SignatureAuditEvent.ENVELOPE_UPDATED,
        ]

    def test_draft_replaces_signer_in_same_position(self, service, owner_actor, draft_envelope):
        joao = draft_envelope.signers.get(order=3)

        envelope = service.update_envelope(
            draft_envelope.id,
            owner_actor,
            add_signers=[{'email': 'pedro@example.com', 'order': 3, 'is_external': True}],
            remove_signer_ids=[str(joao.id)],
        )

        assert [s.email for s in envelope.signers.all()] == ['test@example.com', 'maria@example.com', 'pedro@example.com']
        assert not Signer.objects.filter(pk=joao.pk).exists()
        removed = SignatureAuditEvent.objects.get(event_type=SignatureAuditEvent.SIGNER_REMOVED)
        assert removed.metadata['signer_id'] == str(joao.id)

    def test_order_type_change_is_revalidated(self, service, owner_actor, draft_envelope):
        with pytest.raises(InvalidEnvelopeState):
            service.update_envelope(draft_envelope.id, owner_actor, changes={'signing_order_type': Envelope.INVITEES_FIRST})

        draft_envelope.refresh_from_db()
        assert draft_envelope.signing_order_type == Envelope.OWNER_FIRST
        assert draft_envelope.version == 1

    def test_added_signer_must_keep_order_consistent(self, service, owner_actor, draft_envelope):
        with pytest.raises(InvalidEnvelopeState):
            service.update_envelope(
                draft_envelope.id,
                owner_actor,
                add_signers=[{'email': 'ana@example.com', 'order': 2, 'is_external': True}],
            )
        with pytest.raises(InvalidEnvelopeState):
            service.update_envelope(
                draft_envelope.id,
                owner_actor,
                add_signers=[{'email': 'MARIA@example.com', 'order': 4, 'is_external': True}],
            )
        assert draft_envelope.signers.count() == 3

    def test_removes_nonresponsive_signer_after_send(self, service, owner_actor, sent_envelope):
        joao = sent_envelope.signers.get(order=3)

        envelope = service.update_envelope(sent_envelope.id, owner_actor, remove_signer_ids=[str(joao.id)])

        assert envelope.status == Envelope.READY_FOR_SIGNATURE
        assert [s.order for s in envelope.signers.all()] == [1, 2]
        assert not InvitationToken.objects.filter(signer_id=joao.id).exists()

    def test_removing_last_pending_signer_completes(self, service, owner_actor, sent_envelope):
        maria = sent_envelope.signers.get(order=2)
        joao = sent_envelope.signers.get(order=3)
        SigningService().sign(
            sent_envelope.id,
            maria.id,
            ActorContext.anonymous(),
            consent=ConsentInput(given=True, text='I agree.'),
            invitation_token=_invitation_token(maria),
        )

        envelope = service.update_envelope(sent_envelope.id, owner_actor, remove_signer_ids=[str(joao.id)])

        assert envelope.status == Envelope.COMPLETED
        assert envelope.completed_at is not None
        assert SignatureAuditEvent.objects.filter(
            envelope=envelope, event_type=SignatureAuditEvent.ENVELOPE_COMPLETED
        ).exists()

    def test_sent_envelope_only_allows_pending_removal(self, service, owner_actor, sent_envelope):
        owner_signer = sent_envelope.signers.get(order=1)

        with pytest.raises(InvalidEnvelopeState):
            service.update_envelope(sent_envelope.id, owner_actor, changes={'title': 'Changed'})
        with pytest.raises(InvalidEnvelopeState):
            service.update_envelope(
                sent_envelope.id,
                owner_actor,
                add_signers=[{'email': 'ana@example.com', 'order': 4, 'is_external': True}],
            )
        with pytest.raises(InvalidSignerState):
            service.update_envelope(sent_envelope.id, owner_actor, remove_signer_ids=[str(owner_signer.id)])
        with pytest.raises(SignerNotFound):
            service.update_envelope(
                sent_envelope.id, owner_actor, remove_signer_ids=['00000000-0000-0000-0000-000000000000']
            )

    def test_terminal_envelope_cannot_change(self, service, owner_actor, draft_envelope):
        service.cancel_envelope(draft_envelope.id, owner_actor)
        with pytest.raises(InvalidEnvelopeState):
            service.update_envelope(draft_envelope.id, owner_actor, changes={'title': 'Changed'})

    def test_only_owner_or_admin(self, service, draft_envelope, other_user):
        with pytest.raises(AccessDenied):
            service.update_envelope(
                draft_envelope.id, ActorContext(user_id=str(other_user.pk)), changes={'title': 'Changed'}
            )

    def test_unknown_field_rejected(self, service, owner_actor, draft_envelope):
        with pytest.raises(InvalidEnvelopeState):
            service.update_envelope(draft_envelope.id, owner_actor, changes={'status': Envelope.COMPLETED})
