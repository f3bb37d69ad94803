import uuid
import pytest
from apps.domain.errors import InvalidEnvelopeState, SignerNotFound, SigningOrderViolation
from apps.domain.models import Envelope, Signer
from apps.domain.rules.signing_order_validation_rule import (
    validate_signing_order,
    validate_signing_order_consistency,
)

OWNER_ID = 7


@pytest.fixture
def owner_first_envelope():
    envelope = Envelope(id=uuid.uuid4(), signing_order_type=Envelope.OWNER_FIRST, created_by_id=OWNER_ID)
    owner = Signer(id=uuid.uuid4(), user_id=OWNER_ID, is_external=False, email='owner@example.com', order=1)
    invitee = Signer(id=uuid.uuid4(), email='invitee@example.com', order=2)
    return envelope, owner, invitee


class TestValidateSigningOrder:
    def test_invitee_before_owner_is_a_violation(self, owner_first_envelope):
        envelope, owner, invitee = owner_first_envelope
        with pytest.raises(SigningOrderViolation):
            validate_signing_order(envelope, invitee.id, OWNER_ID, [owner, invitee])

    def test_invitee_after_owner_signed_is_valid(self, owner_first_envelope):
        envelope, owner, invitee = owner_first_envelope
        owner.status = Signer.SIGNED
        validate_signing_order(envelope, invitee.id, OWNER_ID, [owner, invitee])

    def test_unknown_signer(self, owner_first_envelope):
        envelope, owner, invitee = owner_first_envelope
        with pytest.raises(SignerNotFound):
            validate_signing_order(envelope, uuid.uuid4(), OWNER_ID, [owner, invitee])


class TestValidateSigningOrderConsistency:
    def test_invitees_first_requires_owner_last(self):
        signers_data = [
            {'user_id': OWNER_ID, 'is_external': False, 'email': 'owner@example.com', 'order': 1},
            {'email': 'a@example.com', 'order': 2},
        ]
        with pytest.raises(InvalidEnvelopeState):
            validate_signing_order_consistency(Envelope.INVITEES_FIRST, signers_data, OWNER_ID)

    def test_owner_first_requires_owner_first(self):
        signers_data = [
            {'email': 'a@example.com', 'order': 1},
            {'user_id': OWNER_ID, 'is_external': False, 'email': 'owner@example.com', 'order': 2},
        ]
        with pytest.raises(InvalidEnvelopeState):
            validate_signing_order_consistency(Envelope.OWNER_FIRST, signers_data, OWNER_ID)

    def test_consistent_declarations(self):
        validate_signing_order_consistency(Envelope.OWNER_FIRST, [
            {'user_id': OWNER_ID, 'is_external': False, 'email': 'owner@example.com', 'order': 1},
            {'email': 'a@example.com', 'order': 2},
        ], OWNER_ID)
        validate_signing_order_consistency(Envelope.INVITEES_FIRST, [
            {'email': 'a@example.com', 'order': 1},
            {'user_id': OWNER_ID, 'is_external': False, 'email': 'owner@example.com', 'order': 4},
        ], OWNER_ID)

    def test_without_owner_entry_only_orders_are_checked(self):
        validate_signing_order_consistency(Envelope.INVITEES_FIRST, [
            {'email': 'a@example.com', 'order': 1},
            {'email': 'b@example.com', 'order': 2},
        ], OWNER_ID)

    @pytest.mark.parametrize('orders', [[1, 1], [0, 1], [-1, 2]])
    def test_orders_must_be_unique_positive(self, orders):
        signers_data = [{'email': f'{i}@example.com', 'order': order} for i, order in enumerate(orders)]
        with pytest.raises(InvalidEnvelopeState):
            validate_signing_order_consistency(Envelope.OWNER_FIRST, signers_data, OWNER_ID)

    def test_owner_listed_twice(self):
        signers_data = [
            {'user_id': OWNER_ID, 'is_external': False, 'email': 'owner@example.com', 'order': 1},
            {'user_id': OWNER_ID, 'is_external': False, 'email': 'owner2@example.com', 'order': 2},
        ]
        with pytest.raises(InvalidEnvelopeState):
            validate_signing_order_consistency(Envelope.OWNER_FIRST, signers_data, OWNER_ID)

    def test_unknown_order_type(self):
        with pytest.raises(InvalidEnvelopeState):
            validate_signing_order_consistency('RANDOM', [], OWNER_ID)
