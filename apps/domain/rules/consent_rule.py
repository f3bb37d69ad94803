from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from apps.domain.errors import ConsentRequired


@dataclass(frozen=True)
class ConsentInput:
    """Electronic signature consent as accepted by the signer."""

    given: bool
    text: str
    timestamp: Optional[datetime] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    country: Optional[str] = None


def validate_consent(consent: Optional[ConsentInput]) -> ConsentInput:
    if consent is None:
        raise ConsentRequired('Consent is required to sign the envelope')
    if not consent.given:
        raise ConsentRequired('Consent must be given to sign the envelope', {'consent_given': False})
    if not (consent.text or '').strip():
        raise ConsentRequired('Consent text is required to sign the envelope')
    return consent
