from rest_framework.response import Response
from rest_framework import status
import logging
from apps.domain.errors import SignatureWorkflowError
from apps.domain.rules.envelope_access_rule import ActorContext, ADMIN, SUPER_ADMIN, USER

logger = logging.getLogger('apps')


def error_response(
    message: str,
    status_code: int = status.HTTP_400_BAD_REQUEST,
    details: dict = None,
    code: str = None,
    retryable: bool = False,
) -> Response:
    response_data = {
        'error': message,
        'status': status_code,
        'retryable': retryable,
    }

    if code:
        response_data['code'] = code

    if details:
        response_data['details'] = details

    logger.error(f'Error response: {message} - {details}')

    return Response(response_data, status=status_code)


def workflow_error_response(error: SignatureWorkflowError) -> Response:
    return error_response(
        error.message,
        error.status_code,
        error.details,
        code=error.code,
        retryable=error.retryable,
    )


def get_client_ip(request):
    forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded_for:
        return forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def build_actor(request) -> ActorContext:
    ip = get_client_ip(request)
    user_agent = request.META.get('HTTP_USER_AGENT')
    user = request.user

    if not user or not user.is_authenticated:
        return ActorContext.anonymous(ip=ip, user_agent=user_agent)

    if user.is_superuser:
        role = SUPER_ADMIN
    elif user.is_staff:
        role = ADMIN
    else:
        role = USER

    return ActorContext(
        user_id=str(user.pk),
        email=user.email or None,
        ip=ip,
        user_agent=user_agent,
        role=role,
    )
