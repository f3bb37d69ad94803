import pytest
from datetime import timedelta
from django.db import IntegrityError
from django.utils import timezone
from apps.domain.models import Envelope, Signer, ReminderTracking, InvitationToken
from apps.domain.models.invitation_token import hash_invitation_token
from apps.domain.models.reminder_tracking import normalize_reminder_message, MAX_REMINDER_MESSAGE_LENGTH


@pytest.mark.django_db
class TestEnvelope:
    def test_create_envelope(self, user):
        envelope = Envelope.objects.create(title='Contract', created_by=user)
        assert envelope.status == Envelope.DRAFT
        assert envelope.signing_order_type == Envelope.OWNER_FIRST
        assert envelope.version == 1
        assert str(envelope) == 'Contract (DRAFT)'


@pytest.mark.django_db
class TestSigner:
    def test_signers_ordered_by_order(self, envelope, owner_signer, second_invitee_signer, invitee_signer):
        assert [s.order for s in envelope.signers.all()] == [1, 2, 3]

    def test_order_unique_per_envelope(self, envelope, invitee_signer):
        with pytest.raises(IntegrityError):
            Signer.objects.create(envelope=envelope, email='dup@example.com', order=invitee_signer.order)

    def test_status_properties(self, invitee_signer):
        assert invitee_signer.is_pending is True
        assert invitee_signer.is_terminal is False
        invitee_signer.status = Signer.DECLINED
        assert invitee_signer.is_terminal is True
        assert invitee_signer.display_name == 'Test Signer'


@pytest.mark.django_db
class TestReminderTracking:
    def test_unique_per_signer_and_envelope(self, envelope, invitee_signer):
        ReminderTracking.objects.create(signer=invitee_signer, envelope=envelope)
        with pytest.raises(IntegrityError):
            ReminderTracking.objects.create(signer=invitee_signer, envelope=envelope)


class TestReminderMessage:
    def test_blank_becomes_none(self):
        assert normalize_reminder_message(None) is None
        assert normalize_reminder_message('   ') is None

    def test_trimmed_and_truncated(self):
        assert normalize_reminder_message('  please sign  ') == 'please sign'
        assert len(normalize_reminder_message('x' * 5000)) == MAX_REMINDER_MESSAGE_LENGTH


@pytest.mark.django_db
class TestInvitationToken:
    def test_matches_raw_token(self, invitee_signer, token_factory):
        raw = token_factory(invitee_signer, raw_token='secret')
        token = InvitationToken.objects.get(signer=invitee_signer)
        assert token.token_hash == hash_invitation_token('secret')
        assert token.matches(raw) is True
        assert token.matches('other') is False
        assert token.matches('') is False

    def test_expiry(self, invitee_signer, token_factory):
        token_factory(invitee_signer, expires_in=timedelta(hours=-1))
        token = InvitationToken.objects.get(signer=invitee_signer)
        assert token.is_expired() is True
        assert token.is_active() is False

    def test_expired_status_counts_as_expired(self, invitee_signer, token_factory):
        token_factory(invitee_signer, status=InvitationToken.EXPIRED)
        token = InvitationToken.objects.get(signer=invitee_signer)
        assert token.is_expired(timezone.now()) is True
