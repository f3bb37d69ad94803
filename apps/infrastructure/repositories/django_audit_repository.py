from typing import Dict, List, Optional

from apps.domain.interfaces.repositories import AuditRepository
from apps.domain.models import SignatureAuditEvent


class DjangoAuditRepository(AuditRepository):
    def record(
        self,
        envelope_id,
        signer_id,
        event_type: str,
        description: str,
        actor=None,
        metadata: Optional[Dict] = None,
    ) -> SignatureAuditEvent:
        return SignatureAuditEvent.objects.create(
            envelope_id=envelope_id,
            signer_id=signer_id,
            event_type=event_type,
            description=description,
            user_id=str(actor.user_id) if actor and actor.user_id is not None else None,
            user_email=actor.email if actor else None,
            ip_address=actor.ip if actor else None,
            user_agent=actor.user_agent if actor else None,
            metadata=metadata or {},
        )

    def list_for_envelope(self, envelope_id) -> List[SignatureAuditEvent]:
        return list(SignatureAuditEvent.objects.filter(envelope_id=envelope_id))
