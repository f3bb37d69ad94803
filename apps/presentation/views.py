import logging
from django.contrib.auth import authenticate
from rest_framework import viewsets, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.authtoken.models import Token
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiExample
from drf_spectacular.types import OpenApiTypes
from apps.domain.errors import SignatureWorkflowError
from apps.domain.rules.consent_rule import ConsentInput
from apps.presentation.serializers import (
    EnvelopeSerializer, EnvelopeCreateSerializer, EnvelopeUpdateSerializer, SignActionSerializer,
    DeclineActionSerializer, SendRemindersSerializer, SignatureAuditEventSerializer
)
from apps.application.services.envelope_service import EnvelopeService
from apps.application.services.signing_service import SigningService
from apps.application.use_cases.send_reminders import SendRemindersInput, SendRemindersUseCase
from apps.presentation.utils import build_actor, error_response, workflow_error_response

logger = logging.getLogger('apps')


@extend_schema(
    summary='Obter token de autenticação',
    description='Autentica um usuário com username e password e retorna um token. Use-o no header "Authorization: Token <token>".',
    tags=['Autenticação'],
    request={
        'application/json': {
            'type': 'object',
            'properties': {
                'username': {'type': 'string', 'description': 'Nome de usuário', 'example': 'admin'},
                'password': {'type': 'string', 'format': 'password', 'description': 'Senha do usuário'},
            },
            'required': ['username', 'password']
        }
    },
    responses={
        200: {
            'type': 'object',
            'properties': {
                'token': {'type': 'string', 'description': 'Token de autenticação'}
            }
        },
        400: OpenApiTypes.OBJECT,
    },
    examples=[
        OpenApiExample(
            'Autenticação bem-sucedida',
            value={'token': '9944b09199c62bcf9418ad846dd0e4bbdfc6ee4b'},
            response_only=True
        )
    ],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def obtain_auth_token(request):
    """Wrapper para documentar o endpoint de autenticação"""
    username = request.data.get('username')
    password = request.data.get('password')

    if username is None or password is None:
        return error_response('Please provide username and password', status.HTTP_400_BAD_REQUEST)

    user = authenticate(username=username, password=password)
    if not user:
        return error_response('Invalid credentials', status.HTTP_400_BAD_REQUEST)

    token, _ = Token.objects.get_or_create(user=user)
    return Response({'token': token.key}, status=status.HTTP_200_OK)


ENVELOPE_ERRORS = {
    400: OpenApiTypes.OBJECT,
    403: OpenApiTypes.OBJECT,
    404: OpenApiTypes.OBJECT,
    409: OpenApiTypes.OBJECT,
}


@extend_schema_view(
    list=extend_schema(
        summary='Listar envelopes',
        description='Retorna os envelopes criados pelo usuário ou em que ele é signatário. Administradores veem todos.',
        tags=['Envelopes'],
    ),
    retrieve=extend_schema(
        summary='Obter detalhes do envelope',
        description='Retorna o envelope com seus signatários.',
        tags=['Envelopes'],
        responses={200: EnvelopeSerializer, **ENVELOPE_ERRORS},
    ),
    create=extend_schema(
        summary='Criar envelope',
        description='Cria um envelope em DRAFT. A ordem declarada dos signatários precisa ser coerente com o tipo de ordem de assinatura.',
        tags=['Envelopes'],
        request=EnvelopeCreateSerializer,
        responses={201: EnvelopeSerializer, **ENVELOPE_ERRORS},
        examples=[
            OpenApiExample(
                'Dono assina primeiro',
                value={
                    'title': 'Contrato de Prestação de Serviços',
                    'file_url': 'https://example.com/contrato.pdf',
                    'signing_order_type': 'OWNER_FIRST',
                    'signers': [
                        {'user_id': 1, 'order': 1},
                        {'email': 'maria@example.com', 'full_name': 'Maria Santos', 'order': 2}
                    ]
                }
            )
        ],
    ),
    partial_update=extend_schema(
        summary='Atualizar envelope',
        description=(
            'Em DRAFT altera dados do envelope e adiciona ou remove signatários. '
            'Depois do envio, apenas signatários pendentes podem ser removidos; '
            'se nenhum pendente restar, o envelope é concluído.'
        ),
        tags=['Envelopes'],
        request=EnvelopeUpdateSerializer,
        responses={200: EnvelopeSerializer, **ENVELOPE_ERRORS},
    ),
)
class EnvelopeViewSet(viewsets.GenericViewSet):
    serializer_class = EnvelopeSerializer
    permission_classes = [IsAuthenticated]

    def get_permissions(self):
        # External signers authenticate with their invitation token.
        if self.action in ('sign', 'decline'):
            return [AllowAny()]
        return super().get_permissions()

    def get_serializer_class(self):
        return {
            'create': EnvelopeCreateSerializer,
            'partial_update': EnvelopeUpdateSerializer,
            'sign': SignActionSerializer,
            'decline': DeclineActionSerializer,
            'reminders': SendRemindersSerializer,
            'audit': SignatureAuditEventSerializer,
        }.get(self.action, EnvelopeSerializer)

    def list(self, request):
        try:
            envelopes = EnvelopeService().list_envelopes(build_actor(request))
        except SignatureWorkflowError as e:
            return workflow_error_response(e)

        page = self.paginate_queryset(envelopes)
        if page is not None:
            return self.get_paginated_response(EnvelopeSerializer(page, many=True).data)
        return Response(EnvelopeSerializer(envelopes, many=True).data)

    def retrieve(self, request, pk=None):
        try:
            envelope = EnvelopeService().get_envelope(pk, build_actor(request))
        except SignatureWorkflowError as e:
            return workflow_error_response(e)
        return Response(EnvelopeSerializer(envelope).data, status=status.HTTP_200_OK)

    def create(self, request):
        serializer = EnvelopeCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            envelope = EnvelopeService().create_envelope(
                build_actor(request),
                title=data['title'],
                file_url=data.get('file_url'),
                signing_order_type=data['signing_order_type'],
                signers_data=[dict(entry) for entry in data['signers']],
                description=data.get('description'),
                expires_at=data.get('expires_at'),
            )
        except SignatureWorkflowError as e:
            return workflow_error_response(e)
        return Response(EnvelopeSerializer(envelope).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        serializer = EnvelopeUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            envelope = EnvelopeService().update_envelope(
                pk,
                build_actor(request),
                changes=serializer.envelope_changes(),
                add_signers=[dict(entry) for entry in data.get('add_signers', [])],
                remove_signer_ids=[str(signer_id) for signer_id in data.get('remove_signer_ids', [])],
            )
        except SignatureWorkflowError as e:
            return workflow_error_response(e)
        return Response(EnvelopeSerializer(envelope).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary='Enviar envelope para assinatura',
        description='Move o envelope de DRAFT para READY_FOR_SIGNATURE e envia os convites aos signatários.',
        tags=['Envelopes'],
        request=None,
        responses={200: EnvelopeSerializer, **ENVELOPE_ERRORS},
    )
    @action(detail=True, methods=['post'])
    def send(self, request, pk=None):
        try:
            envelope = EnvelopeService().send_envelope(pk, build_actor(request))
        except SignatureWorkflowError as e:
            return workflow_error_response(e)
        return Response(EnvelopeSerializer(envelope).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary='Cancelar envelope',
        description='Cancela um envelope que ainda não terminou. Convites ativos são revogados.',
        tags=['Envelopes'],
        request=None,
        responses={200: EnvelopeSerializer, **ENVELOPE_ERRORS},
    )
    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        try:
            envelope = EnvelopeService().cancel_envelope(pk, build_actor(request))
        except SignatureWorkflowError as e:
            return workflow_error_response(e)
        return Response(EnvelopeSerializer(envelope).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary='Assinar envelope',
        description=(
            'Registra a assinatura de um signatário respeitando a ordem de assinatura, junto com o consentimento '
            'com a assinatura eletrônica (obrigatório). '
            'Convidados externos informam o token de convite; usuários internos usam o token de autenticação. '
            'Conflitos de concorrência retornam 409 com "retryable": true.'
        ),
        tags=['Envelopes'],
        request=SignActionSerializer,
        responses={200: EnvelopeSerializer, 401: OpenApiTypes.OBJECT, **ENVELOPE_ERRORS},
    )
    @action(detail=True, methods=['post'])
    def sign(self, request, pk=None):
        serializer = SignActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            envelope = SigningService().sign(
                pk,
                data['signer_id'],
                build_actor(request),
                consent=ConsentInput(**data['consent']),
                invitation_token=data.get('invitation_token') or None,
            )
        except SignatureWorkflowError as e:
            return workflow_error_response(e)
        return Response(EnvelopeSerializer(envelope).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary='Recusar envelope',
        description='Registra a recusa de um signatário. A primeira recusa encerra o envelope como DECLINED e revoga os convites ativos.',
        tags=['Envelopes'],
        request=DeclineActionSerializer,
        responses={200: EnvelopeSerializer, **ENVELOPE_ERRORS},
    )
    @action(detail=True, methods=['post'])
    def decline(self, request, pk=None):
        serializer = DeclineActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            envelope = SigningService().decline(
                pk,
                data['signer_id'],
                build_actor(request),
                reason=data.get('reason') or None,
                invitation_token=data.get('invitation_token') or None,
            )
        except SignatureWorkflowError as e:
            return workflow_error_response(e)
        return Response(EnvelopeSerializer(envelope).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary='Enviar lembretes',
        description=(
            'Envia lembretes aos signatários pendentes. Signatários que atingiram o limite de lembretes, '
            'que receberam um lembrete recentemente ou sem convite ativo aparecem em "skipped_signers". '
            'O dono não recebe lembretes. Envelopes que não aceitam assinaturas retornam 409.'
        ),
        tags=['Lembretes'],
        request=SendRemindersSerializer,
        responses={200: OpenApiTypes.OBJECT, **ENVELOPE_ERRORS},
        examples=[
            OpenApiExample(
                'Resultado parcial',
                value={
                    'success': True,
                    'message': 'Reminders sent to 1 signers',
                    'envelope_id': '6f1c2f6e-8a51-4d43-9a57-0d6b2f0f6c11',
                    'reminders_sent': 1,
                    'signers_notified': [
                        {'id': '1b7c...', 'email': 'maria@example.com', 'name': 'Maria Santos',
                         'reminder_count': 1, 'last_reminder_at': '2026-01-10T12:00:00Z'}
                    ],
                    'skipped_signers': [
                        {'id': '9d2e...', 'email': 'joao@example.com', 'reason': 'minimum interval not elapsed'}
                    ]
                },
                response_only=True
            )
        ],
    )
    @action(detail=True, methods=['post'])
    def reminders(self, request, pk=None):
        serializer = SendRemindersSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            result = SendRemindersUseCase().execute(SendRemindersInput(
                envelope_id=pk,
                actor=build_actor(request),
                signer_ids=[str(signer_id) for signer_id in data.get('signer_ids', [])],
                message=data.get('message'),
            ))
        except SignatureWorkflowError as e:
            return workflow_error_response(e)
        return Response(result.to_dict(), status=status.HTTP_200_OK)

    @extend_schema(
        summary='Obter trilha de auditoria',
        description='Lista os eventos de auditoria do envelope em ordem cronológica.',
        tags=['Envelopes'],
        responses={200: SignatureAuditEventSerializer(many=True), **ENVELOPE_ERRORS},
    )
    @action(detail=True, methods=['get'])
    def audit(self, request, pk=None):
        try:
            events = EnvelopeService().get_audit_trail(pk, build_actor(request))
        except SignatureWorkflowError as e:
            return workflow_error_response(e)
        return Response(SignatureAuditEventSerializer(events, many=True).data, status=status.HTTP_200_OK)
