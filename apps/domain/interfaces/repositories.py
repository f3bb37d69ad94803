from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from apps.domain.models import Consent, Envelope, InvitationToken, ReminderTracking, SignatureAuditEvent, Signer


class EnvelopeRepository(ABC):
    @abstractmethod
    def get_envelope_with_signers(self, envelope_id) -> Optional[Envelope]:
        pass

    @abstractmethod
    def list_for_actor(self, user_id, include_all: bool = False) -> List[Envelope]:
        pass

    @abstractmethod
    def create_envelope(self, envelope_data: Dict, signers_data: List[Dict]) -> Envelope:
        pass

    @abstractmethod
    def update_envelope_status(self, envelope: Envelope, expected_version: int, new_status: str, **fields) -> bool:
        """Applies the update only if the stored version still equals ``expected_version``."""
        pass

    @abstractmethod
    def update_signer_status(self, signer: Signer, expected_status: str, new_status: str, **fields) -> bool:
        """Applies the update only if the stored signer status still equals ``expected_status``."""
        pass

    @abstractmethod
    def add_signers(self, envelope: Envelope, signers_data: List[Dict]) -> List[Signer]:
        pass

    @abstractmethod
    def remove_pending_signers(self, envelope: Envelope, signer_ids: List) -> int:
        """Deletes only signers that are still PENDING and returns how many were removed."""
        pass


class ReminderTrackingRepository(ABC):
    @abstractmethod
    def get(self, signer_id, envelope_id) -> Optional[ReminderTracking]:
        pass

    @abstractmethod
    def increment_and_stamp(
        self,
        signer_id,
        envelope_id,
        expected_count: int,
        stamped_at: datetime,
        message: Optional[str] = None,
    ) -> ReminderTracking:
        """Raises ConcurrencyConflict when the stored count is no longer ``expected_count``."""
        pass


class InvitationTokenRepository(ABC):
    @abstractmethod
    def get_tokens_by_signer(self, signer_id) -> List[InvitationToken]:
        pass

    @abstractmethod
    def is_expired(self, token: InvitationToken) -> bool:
        pass

    @abstractmethod
    def update_token_sent(self, token_id) -> None:
        pass

    @abstractmethod
    def issue_token(self, envelope: Envelope, signer: Signer, ttl_days: int) -> str:
        """Stores the hash of a fresh token and returns the raw value."""
        pass

    @abstractmethod
    def mark_signed(self, token: InvitationToken) -> None:
        pass

    @abstractmethod
    def revoke_active_tokens(self, envelope_id) -> int:
        pass


class AuditRepository(ABC):
    @abstractmethod
    def record(
        self,
        envelope_id,
        signer_id,
        event_type: str,
        description: str,
        actor=None,
        metadata: Optional[Dict] = None,
    ) -> SignatureAuditEvent:
        pass

    @abstractmethod
    def list_for_envelope(self, envelope_id) -> List[SignatureAuditEvent]:
        pass


class ConsentRepository(ABC):
    @abstractmethod
    def create_consent(
        self,
        envelope_id,
        signer_id,
        consent_given: bool,
        consent_timestamp: datetime,
        consent_text: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        country: Optional[str] = None,
    ) -> Consent:
        pass

    @abstractmethod
    def link_with_signature(self, consent: Consent, signature_event: SignatureAuditEvent) -> None:
        pass
