from datetime import datetime
from typing import Optional

from apps.domain.interfaces.repositories import ConsentRepository
from apps.domain.models import Consent, SignatureAuditEvent


class DjangoConsentRepository(ConsentRepository):
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
        return Consent.objects.create(
            envelope_id=envelope_id,
            signer_id=signer_id,
            consent_given=consent_given,
            consent_timestamp=consent_timestamp,
            consent_text=consent_text,
            ip_address=ip_address,
            user_agent=user_agent,
            country=country,
        )

    def link_with_signature(self, consent: Consent, signature_event: SignatureAuditEvent) -> None:
        Consent.objects.filter(pk=consent.pk).update(signature_event=signature_event)
        consent.signature_event = signature_event
