from typing import Dict, Optional


class SignatureWorkflowError(Exception):
    """Base class for every failure the signing workflow reports to callers."""

    status_code = 400
    code = 'signature_workflow_error'
    retryable = False

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        return self.message


class NotFoundError(SignatureWorkflowError):
    status_code = 404
    code = 'not_found'


class EnvelopeNotFound(NotFoundError):
    code = 'envelope_not_found'


class SignerNotFound(NotFoundError):
    code = 'signer_not_found'


class InvitationTokenNotFound(NotFoundError):
    code = 'invitation_token_not_found'


class AccessDenied(SignatureWorkflowError):
    status_code = 403
    code = 'access_denied'


class InvalidInvitationToken(AccessDenied):
    code = 'invalid_invitation_token'


class SigningOrderViolation(SignatureWorkflowError):
    status_code = 409
    code = 'signing_order_violation'


class InvalidEnvelopeState(SignatureWorkflowError):
    status_code = 409
    code = 'invalid_envelope_state'


class InvalidSignerState(SignatureWorkflowError):
    status_code = 409
    code = 'invalid_signer_state'


class ConcurrencyConflict(SignatureWorkflowError):
    """A conditional write lost a race; the caller may reload and retry."""

    status_code = 409
    code = 'concurrency_conflict'
    retryable = True


class ConsentRequired(SignatureWorkflowError):
    code = 'consent_required'
