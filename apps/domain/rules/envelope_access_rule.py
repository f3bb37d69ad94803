from dataclasses import dataclass
from typing import Iterable, Optional

from django.utils import timezone

from apps.domain.errors import AccessDenied, InvalidInvitationToken
from apps.domain.models import Envelope, InvitationToken, Signer

USER = 'USER'
ADMIN = 'ADMIN'
SUPER_ADMIN = 'SUPER_ADMIN'

PRIVILEGED_ROLES = (ADMIN, SUPER_ADMIN)


@dataclass(frozen=True)
class ActorContext:
    """Who is performing an operation; copied into audit events."""

    user_id: Optional[str] = None
    email: Optional[str] = None
    ip: Optional[str] = None
    user_agent: Optional[str] = None
    role: str = USER

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES

    @classmethod
    def anonymous(cls, ip: Optional[str] = None, user_agent: Optional[str] = None) -> 'ActorContext':
        return cls(ip=ip, user_agent=user_agent)


def validate_envelope_modification_access(envelope: Envelope, actor: ActorContext) -> None:
    if actor.is_privileged:
        return
    if actor.is_authenticated and str(envelope.created_by_id) == str(actor.user_id):
        return
    raise AccessDenied(
        'You do not have permission to modify this envelope',
        {'envelope_id': str(envelope.id)}
    )


def validate_signer_access(
    signer: Signer,
    actor: ActorContext,
    token: Optional[str] = None,
    tokens: Optional[Iterable[InvitationToken]] = None,
) -> Optional[InvitationToken]:
    """
    Internal signers must be the authenticated actor. External signers need a
    raw invitation token matching one of ``tokens`` that is still ACTIVE and
    unexpired. Returns the matched token, if any.
    """
    if not signer.is_external:
        if actor.is_authenticated and signer.user_id is not None and str(signer.user_id) == str(actor.user_id):
            return None
        raise AccessDenied(
            'Only the assigned user can act on this signer',
            {'signer_id': str(signer.id)}
        )

    if not token:
        raise InvalidInvitationToken(
            'An invitation token is required for external signers',
            {'signer_id': str(signer.id)}
        )

    now = timezone.now()
    for candidate in tokens or []:
        if candidate.signer_id == signer.id and candidate.matches(token):
            if not candidate.is_active(now):
                raise InvalidInvitationToken(
                    'Invitation token is expired or no longer active',
                    {'signer_id': str(signer.id)}
                )
            return candidate

    raise InvalidInvitationToken(
        'Invitation token does not match this signer',
        {'signer_id': str(signer.id)}
    )
