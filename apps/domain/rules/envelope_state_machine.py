from typing import Dict, FrozenSet

from apps.domain.errors import InvalidEnvelopeState
from apps.domain.models import Envelope

ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    Envelope.DRAFT: frozenset({Envelope.SENT, Envelope.CANCELLED}),
    Envelope.SENT: frozenset({
        Envelope.READY_FOR_SIGNATURE,
        Envelope.COMPLETED,
        Envelope.DECLINED,
        Envelope.CANCELLED,
    }),
    Envelope.READY_FOR_SIGNATURE: frozenset({
        Envelope.READY_FOR_SIGNATURE,
        Envelope.COMPLETED,
        Envelope.DECLINED,
        Envelope.CANCELLED,
    }),
    Envelope.COMPLETED: frozenset(),
    Envelope.CANCELLED: frozenset(),
    Envelope.DECLINED: frozenset(),
}

TERMINAL_STATUSES = frozenset({Envelope.COMPLETED, Envelope.CANCELLED, Envelope.DECLINED})
SIGNABLE_STATUSES = frozenset({Envelope.SENT, Envelope.READY_FOR_SIGNATURE})


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def assert_transition(current: str, target: str) -> None:
    if not can_transition(current, target):
        raise InvalidEnvelopeState(
            f'Cannot transition envelope from {current} to {target}',
            {'current_status': current, 'target_status': target}
        )


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def can_accept_signatures(status: str) -> bool:
    return status in SIGNABLE_STATUSES


def status_after_send() -> str:
    return Envelope.SENT


def status_after_open() -> str:
    return Envelope.READY_FOR_SIGNATURE


def status_after_signature(current: str, remaining_pending: int) -> str:
    target = Envelope.COMPLETED if remaining_pending == 0 else Envelope.READY_FOR_SIGNATURE
    assert_transition(current, target)
    return target


def status_after_decline(current: str) -> str:
    # First decline terminates the envelope.
    assert_transition(current, Envelope.DECLINED)
    return Envelope.DECLINED


def status_after_cancel(current: str) -> str:
    assert_transition(current, Envelope.CANCELLED)
    return Envelope.CANCELLED
