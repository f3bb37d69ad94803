import logging
from typing import Dict, List

from apps.domain.errors import InvalidEnvelopeState, SignerNotFound, SigningOrderViolation
from apps.domain.models import Envelope, Signer
from apps.domain.rules.signer_order_policy import can_act_now

logger = logging.getLogger('apps')


def validate_signing_order(envelope: Envelope, candidate_signer_id, owner_id, signers: List[Signer]) -> None:
    """
    Raises SignerNotFound when the candidate is not part of ``signers`` and
    SigningOrderViolation when it is not the candidate's turn yet.
    """
    if not any(str(s.id) == str(candidate_signer_id) for s in signers):
        raise SignerNotFound(
            'Signer not found in envelope',
            {'envelope_id': str(envelope.id), 'signer_id': str(candidate_signer_id)}
        )

    if not can_act_now(signers, envelope.signing_order_type, candidate_signer_id, owner_id):
        logger.warning(
            f'Signing order violation on envelope {envelope.id}: signer {candidate_signer_id} '
            f'acted out of turn ({envelope.signing_order_type})'
        )
        raise SigningOrderViolation(
            'Signer cannot act yet due to the envelope signing order',
            {
                'envelope_id': str(envelope.id),
                'signer_id': str(candidate_signer_id),
                'signing_order_type': envelope.signing_order_type,
            }
        )


def _is_owner_entry(entry: Dict, owner_id) -> bool:
    user_id = entry.get('user_id')
    return (
        not entry.get('is_external', user_id is None)
        and user_id is not None
        and str(user_id) == str(owner_id)
    )


def validate_signing_order_consistency(order_type: str, signers_data: List[Dict], owner_id) -> None:
    if order_type not in (Envelope.OWNER_FIRST, Envelope.INVITEES_FIRST):
        raise InvalidEnvelopeState(
            f'Unknown signing order type: {order_type}',
            {'signing_order_type': order_type}
        )

    orders = []
    for entry in signers_data:
        order = entry.get('order')
        if isinstance(order, bool) or not isinstance(order, int) or order < 1:
            raise InvalidEnvelopeState(
                'Signer order must be a positive integer',
                {'email': entry.get('email'), 'order': order}
            )
        orders.append(order)

    if len(set(orders)) != len(orders):
        raise InvalidEnvelopeState('Signer order values must be unique', {'orders': orders})

    owner_entries = [entry for entry in signers_data if _is_owner_entry(entry, owner_id)]
    if len(owner_entries) > 1:
        raise InvalidEnvelopeState('The envelope owner can appear only once among the signers')
    if not owner_entries:
        return

    owner_order = owner_entries[0]['order']
    if order_type == Envelope.OWNER_FIRST and owner_order != min(orders):
        raise InvalidEnvelopeState(
            'With OWNER_FIRST the owner must have the lowest signing order',
            {'owner_order': owner_order, 'orders': sorted(orders)}
        )
    if order_type == Envelope.INVITEES_FIRST and owner_order != max(orders):
        raise InvalidEnvelopeState(
            'With INVITEES_FIRST the owner must have the highest signing order',
            {'owner_order': owner_order, 'orders': sorted(orders)}
        )
