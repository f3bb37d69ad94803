import logging
import secrets
from datetime import timedelta
from typing import List

from django.db.models import F
from django.utils import timezone

from apps.domain.interfaces.repositories import InvitationTokenRepository
from apps.domain.models import Envelope, InvitationToken, Signer
from apps.domain.models.invitation_token import hash_invitation_token

logger = logging.getLogger('apps')


class DjangoInvitationTokenRepository(InvitationTokenRepository):
    def get_tokens_by_signer(self, signer_id) -> List[InvitationToken]:
        return list(InvitationToken.objects.filter(signer_id=signer_id))

    def is_expired(self, token: InvitationToken) -> bool:
        return token.is_expired()

    def update_token_sent(self, token_id) -> None:
        now = timezone.now()
        InvitationToken.objects.filter(pk=token_id).update(
            last_sent_at=now,
            resend_count=F('resend_count') + 1,
            updated_at=now,
        )

    def issue_token(self, envelope: Envelope, signer: Signer, ttl_days: int) -> str:
        now = timezone.now()
        revoked = InvitationToken.objects.filter(signer=signer, status=InvitationToken.ACTIVE).update(
            status=InvitationToken.REVOKED,
            updated_at=now,
        )
        if revoked:
            logger.info(f'Revoked {revoked} previous invitation token(s) for signer {signer.id}')

        raw_token = secrets.token_urlsafe(32)
        InvitationToken.objects.create(
            envelope=envelope,
            signer=signer,
            token_hash=hash_invitation_token(raw_token),
            expires_at=now + timedelta(days=ttl_days),
            sent_at=now,
            last_sent_at=now,
        )
        return raw_token

    def mark_signed(self, token: InvitationToken) -> None:
        now = timezone.now()
        InvitationToken.objects.filter(pk=token.pk).update(
            status=InvitationToken.SIGNED,
            signed_at=now,
            updated_at=now,
        )
        token.status = InvitationToken.SIGNED
        token.signed_at = now

    def revoke_active_tokens(self, envelope_id) -> int:
        revoked = InvitationToken.objects.filter(envelope_id=envelope_id, status=InvitationToken.ACTIVE).update(
            status=InvitationToken.REVOKED,
            updated_at=timezone.now(),
        )
        if revoked:
            logger.info(f'Revoked {revoked} invitation token(s) of envelope {envelope_id}')
        return revoked
