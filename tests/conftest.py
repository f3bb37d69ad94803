import pytest
from datetime import timedelta
from django.contrib.auth.models import User
from django.utils import timezone
from apps.domain.models import Envelope, Signer, InvitationToken
from apps.domain.models.invitation_token import hash_invitation_token
from apps.domain.rules.envelope_access_rule import ActorContext


@pytest.fixture
def user():
    return User.objects.create_user(
        username='testuser',
        email='test@example.com',
        password='testpass123'
    )


@pytest.fixture
def other_user():
    return User.objects.create_user(
        username='otheruser',
        email='other@example.com',
        password='testpass123'
    )


@pytest.fixture
def owner_actor(user):
    return ActorContext(user_id=str(user.pk), email=user.email, ip='127.0.0.1', user_agent='pytest')


@pytest.fixture
def envelope(user):
    return Envelope.objects.create(
        title='Test Envelope',
        file_url='https://example.com/test.pdf',
        status=Envelope.READY_FOR_SIGNATURE,
        signing_order_type=Envelope.OWNER_FIRST,
        created_by=user
    )


@pytest.fixture
def owner_signer(envelope, user):
    return Signer.objects.create(
        envelope=envelope,
        user=user,
        is_external=False,
        email=user.email,
        full_name='Owner',
        order=1
    )


@pytest.fixture
def invitee_signer(envelope):
    return Signer.objects.create(
        envelope=envelope,
        email='signer@example.com',
        full_name='Test Signer',
        order=2
    )


@pytest.fixture
def second_invitee_signer(envelope):
    return Signer.objects.create(
        envelope=envelope,
        email='second@example.com',
        full_name='Second Signer',
        order=3
    )


@pytest.fixture
def token_factory():
    def create_token(signer, raw_token=None, expires_in=timedelta(days=7), status=InvitationToken.ACTIVE):
        raw_token = raw_token or f'raw-token-{signer.id}'
        InvitationToken.objects.create(
            envelope=signer.envelope,
            signer=signer,
            token_hash=hash_invitation_token(raw_token),
            status=status,
            expires_at=timezone.now() + expires_in,
            sent_at=timezone.now(),
        )
        return raw_token

    return create_token
