import logging

from django.db import connection, DatabaseError
from django.db.models import Min
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework import status
from drf_spectacular.utils import extend_schema
from apps.domain.models import OutboxEvent

logger = logging.getLogger('apps')


def _outbox_backlog():
    pending = OutboxEvent.objects.filter(status=OutboxEvent.PENDING)
    oldest = pending.aggregate(oldest=Min('created_at'))['oldest']
    return {
        'pending': pending.count(),
        'failed': OutboxEvent.objects.filter(status=OutboxEvent.FAILED).count(),
        'oldest_pending_seconds': int((timezone.now() - oldest).total_seconds()) if oldest else None,
    }


@extend_schema(
    summary='Health Check',
    description=(
        'Verifica a conectividade com o banco de dados e o acúmulo de notificações no outbox. '
        'Retorna 503 quando o banco de dados está indisponível.'
    ),
    tags=['Health'],
    responses={
        200: {
            'type': 'object',
            'properties': {
                'status': {'type': 'string', 'example': 'ok', 'description': 'ok ou degraded'},
                'database': {'type': 'string', 'example': 'healthy', 'description': 'healthy ou unhealthy'},
                'outbox': {
                    'type': 'object',
                    'description': 'Notificações pendentes, com falha e idade da mais antiga pendente',
                    'example': {'pending': 0, 'failed': 0, 'oldest_pending_seconds': None},
                },
            },
        },
        503: {'description': 'Banco de dados indisponível'},
    },
)
@api_view(['GET'])
@permission_classes([AllowAny])
def health_check(request):
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        outbox = _outbox_backlog()
    except DatabaseError as e:
        logger.error(f"Health check falhou: {str(e)}")
        return Response(
            {"status": "degraded", "database": "unhealthy", "outbox": None},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return Response({"status": "ok", "database": "healthy", "outbox": outbox}, status=status.HTTP_200_OK)
