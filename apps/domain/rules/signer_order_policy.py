from typing import Iterable, List, Optional

from apps.domain.errors import SignerNotFound
from apps.domain.models import Envelope, Signer


def is_owner(signer: Signer, owner_id) -> bool:
    return (
        not signer.is_external
        and signer.user_id is not None
        and owner_id is not None
        and str(signer.user_id) == str(owner_id)
    )


def _find_signer(signers: Iterable[Signer], signer_id) -> Optional[Signer]:
    for signer in signers:
        if str(signer.id) == str(signer_id):
            return signer
    return None


def can_act_now(signers: List[Signer], order_type: str, candidate_signer_id, owner_id) -> bool:
    """
    Decides whether the candidate may act on the envelope right now.

    OWNER_FIRST: the owner acts first, then the invitees in ascending order.
    INVITEES_FIRST: the invitees act in ascending order, the owner last.
    Ties in ``order`` are not resolved here; uniqueness is checked when the
    envelope is composed.
    """
    candidate = _find_signer(signers, candidate_signer_id)
    if candidate is None:
        raise SignerNotFound(
            'Signer not found in envelope',
            {'signer_id': str(candidate_signer_id)}
        )

    ordered = sorted(signers, key=lambda s: s.order)
    owners = [s for s in ordered if is_owner(s, owner_id)]
    invitees = [s for s in ordered if not is_owner(s, owner_id)]
    earlier_invitees = [s for s in invitees if s.order < candidate.order]

    if order_type == Envelope.INVITEES_FIRST:
        if is_owner(candidate, owner_id):
            return all(s.is_terminal for s in invitees)
        return all(s.is_terminal for s in earlier_invitees)

    if is_owner(candidate, owner_id):
        return True
    if not all(s.is_terminal for s in owners):
        return False
    return all(s.is_terminal for s in earlier_invitees)


def next_signers(signers: List[Signer], order_type: str, owner_id) -> List[Signer]:
    """Pending signers that may act now, in ascending order."""
    return [
        signer for signer in sorted(signers, key=lambda s: s.order)
        if signer.is_pending and can_act_now(signers, order_type, signer.id, owner_id)
    ]
