from django.contrib.auth.models import User
from rest_framework import serializers
from apps.domain.models import Envelope, Signer, SignatureAuditEvent
from apps.domain.models.reminder_tracking import MAX_REMINDER_MESSAGE_LENGTH


class SignerSerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(read_only=True, help_text='ID único do signatário')
    email = serializers.EmailField(help_text='E-mail do signatário')
    full_name = serializers.CharField(help_text='Nome completo do signatário')
    order = serializers.IntegerField(help_text='Posição do signatário na ordem de assinatura')
    is_external = serializers.BooleanField(help_text='Indica se o signatário é um convidado externo')
    user = serializers.PrimaryKeyRelatedField(read_only=True, help_text='ID do usuário interno (quando houver)')
    status = serializers.ChoiceField(
        choices=Signer.STATUS_CHOICES,
        read_only=True,
        help_text='Status do signatário: PENDING, SIGNED, DECLINED'
    )
    signed_at = serializers.DateTimeField(read_only=True, help_text='Data da assinatura')
    declined_at = serializers.DateTimeField(read_only=True, help_text='Data da recusa')
    decline_reason = serializers.CharField(read_only=True, help_text='Motivo da recusa')

    class Meta:
        model = Signer
        fields = [
            'id', 'email', 'full_name', 'order', 'is_external', 'user', 'status',
            'signed_at', 'declined_at', 'decline_reason'
        ]
        read_only_fields = fields


class EnvelopeSerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(read_only=True, help_text='ID único do envelope')
    title = serializers.CharField(read_only=True, help_text='Título do envelope')
    description = serializers.CharField(read_only=True, help_text='Descrição do envelope')
    file_url = serializers.URLField(read_only=True, help_text='URL do documento a ser assinado')
    status = serializers.ChoiceField(
        choices=Envelope.STATUS_CHOICES,
        read_only=True,
        help_text='Status: DRAFT, SENT, READY_FOR_SIGNATURE, COMPLETED, CANCELLED, DECLINED'
    )
    signing_order_type = serializers.ChoiceField(
        choices=Envelope.SIGNING_ORDER_CHOICES,
        read_only=True,
        help_text='Ordem de assinatura: OWNER_FIRST ou INVITEES_FIRST'
    )
    created_by = serializers.PrimaryKeyRelatedField(read_only=True, help_text='ID do usuário dono do envelope')
    version = serializers.IntegerField(read_only=True, help_text='Versão usada para controle de concorrência')
    signers = SignerSerializer(many=True, read_only=True, help_text='Lista de signatários do envelope')

    class Meta:
        model = Envelope
        fields = [
            'id', 'title', 'description', 'file_url', 'status', 'signing_order_type',
            'created_by', 'version', 'signers', 'sent_at', 'completed_at', 'cancelled_at',
            'declined_at', 'declined_reason', 'expires_at', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class SignerInputSerializer(serializers.Serializer):
    email = serializers.EmailField(required=False, help_text='E-mail do signatário (obrigatório para convidados externos)')
    full_name = serializers.CharField(required=False, allow_blank=True, default='', help_text='Nome completo do signatário')
    order = serializers.IntegerField(min_value=1, help_text='Posição na ordem de assinatura (inteiro positivo, único)')
    user_id = serializers.IntegerField(required=False, allow_null=True, help_text='ID do usuário interno (opcional)')

    def validate(self, data):
        user_id = data.get('user_id')
        if user_id is None:
            if not data.get('email'):
                raise serializers.ValidationError({'email': 'Signer email is required'})
            data['is_external'] = True
            return data

        user = User.objects.filter(pk=user_id).first()
        if user is None:
            raise serializers.ValidationError({'user_id': f'User {user_id} not found'})
        data.setdefault('email', user.email)
        if not data.get('email'):
            raise serializers.ValidationError({'email': 'Signer email is required'})
        if not data.get('full_name'):
            data['full_name'] = user.get_full_name() or user.username
        data['is_external'] = False
        return data


class EnvelopeCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255, help_text='Título do envelope (máximo 255 caracteres)')
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True, help_text='Descrição opcional')
    file_url = serializers.URLField(required=False, allow_null=True, help_text='URL do documento PDF a ser assinado')
    signing_order_type = serializers.ChoiceField(
        choices=Envelope.SIGNING_ORDER_CHOICES,
        default=Envelope.OWNER_FIRST,
        help_text='OWNER_FIRST (dono assina primeiro) ou INVITEES_FIRST (convidados assinam primeiro)'
    )
    expires_at = serializers.DateTimeField(required=False, allow_null=True, help_text='Data de expiração (opcional)')
    signers = SignerInputSerializer(many=True, help_text='Lista de signatários com a ordem de assinatura')


class EnvelopeUpdateSerializer(serializers.Serializer):
    title = serializers.CharField(required=False, max_length=255, help_text='Novo título do envelope')
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True, help_text='Nova descrição')
    file_url = serializers.URLField(required=False, allow_null=True, help_text='Nova URL do documento')
    expires_at = serializers.DateTimeField(required=False, allow_null=True, help_text='Nova data de expiração')
    signing_order_type = serializers.ChoiceField(
        choices=Envelope.SIGNING_ORDER_CHOICES,
        required=False,
        help_text='Novo tipo de ordem de assinatura (somente em DRAFT)'
    )
    add_signers = SignerInputSerializer(many=True, required=False, help_text='Signatários a adicionar (somente em DRAFT)')
    remove_signer_ids = serializers.ListField(
        child=serializers.UUIDField(),
        required=False,
        help_text='IDs de signatários pendentes a remover'
    )

    def envelope_changes(self):
        return {
            name: value for name, value in self.validated_data.items()
            if name not in ('add_signers', 'remove_signer_ids')
        }


class ConsentSerializer(serializers.Serializer):
    given = serializers.BooleanField(help_text='Confirma o consentimento com a assinatura eletrônica')
    text = serializers.CharField(help_text='Texto de consentimento apresentado ao signatário')
    timestamp = serializers.DateTimeField(required=False, allow_null=True, help_text='Momento do consentimento')
    ip_address = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)
    user_agent = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=512)
    country = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)


class SignerActionSerializer(serializers.Serializer):
    signer_id = serializers.UUIDField(help_text='ID do signatário que está agindo')
    invitation_token = serializers.CharField(
        required=False,
        allow_blank=True,
        help_text='Token de convite recebido por e-mail (obrigatório para convidados externos)'
    )


class SignActionSerializer(SignerActionSerializer):
    consent = ConsentSerializer(help_text='Consentimento do signatário com a assinatura eletrônica')


class DeclineActionSerializer(SignerActionSerializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=1000, help_text='Motivo da recusa')


class SendRemindersSerializer(serializers.Serializer):
    signer_ids = serializers.ListField(
        child=serializers.UUIDField(),
        required=False,
        help_text='IDs dos signatários a lembrar. Se omitido, todos os pendentes recebem lembrete.'
    )
    message = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        max_length=MAX_REMINDER_MESSAGE_LENGTH,
        help_text='Mensagem personalizada do lembrete (opcional)'
    )


class SignatureAuditEventSerializer(serializers.ModelSerializer):
    class Meta:
        model = SignatureAuditEvent
        fields = [
            'id', 'event_type', 'description', 'signer', 'user_id', 'user_email',
            'ip_address', 'user_agent', 'metadata', 'created_at'
        ]
        read_only_fields = fields
