from django.contrib import admin
from .models import Envelope, Signer, ReminderTracking, InvitationToken, SignatureAuditEvent, OutboxEvent, Consent


class SignerInline(admin.TabularInline):
    model = Signer
    extra = 0
    fields = ['order', 'full_name', 'email', 'user', 'is_external', 'status', 'signed_at', 'declined_at']
    readonly_fields = ['status', 'signed_at', 'declined_at']


@admin.register(Envelope)
class EnvelopeAdmin(admin.ModelAdmin):
    list_display = ['title', 'created_by', 'status', 'signing_order_type', 'version', 'created_at']
    list_filter = ['status', 'signing_order_type', 'created_at']
    search_fields = ['title', 'created_by__username', 'created_by__email']
    readonly_fields = ['version', 'sent_at', 'completed_at', 'cancelled_at', 'declined_at', 'created_at', 'updated_at']
    inlines = [SignerInline]
    fieldsets = (
        ('Informações Básicas', {
            'fields': ('title', 'description', 'file_url', 'created_by')
        }),
        ('Fluxo de Assinatura', {
            'fields': ('status', 'signing_order_type', 'version', 'expires_at')
        }),
        ('Recusa', {
            'fields': ('declined_by_signer', 'declined_reason', 'declined_at'),
            'classes': ('collapse',)
        }),
        ('Datas', {
            'fields': ('sent_at', 'completed_at', 'cancelled_at', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(Signer)
class SignerAdmin(admin.ModelAdmin):
    list_display = ['email', 'full_name', 'envelope', 'order', 'is_external', 'status', 'created_at']
    list_filter = ['status', 'is_external', 'created_at']
    search_fields = ['email', 'full_name', 'envelope__title']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(ReminderTracking)
class ReminderTrackingAdmin(admin.ModelAdmin):
    list_display = ['signer', 'envelope', 'reminder_count', 'last_reminder_at']
    search_fields = ['signer__email', 'envelope__title']
    readonly_fields = ['reminder_count', 'last_reminder_at', 'last_reminder_message', 'created_at', 'updated_at']


@admin.register(InvitationToken)
class InvitationTokenAdmin(admin.ModelAdmin):
    list_display = ['signer', 'envelope', 'status', 'expires_at', 'resend_count', 'last_sent_at']
    list_filter = ['status']
    search_fields = ['signer__email', 'envelope__title']
    readonly_fields = ['token_hash', 'sent_at', 'last_sent_at', 'resend_count', 'signed_at', 'created_at', 'updated_at']


@admin.register(SignatureAuditEvent)
class SignatureAuditEventAdmin(admin.ModelAdmin):
    list_display = ['event_type', 'envelope', 'signer', 'user_email', 'created_at']
    list_filter = ['event_type', 'created_at']
    search_fields = ['envelope__title', 'user_email', 'description']

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(OutboxEvent)
class OutboxEventAdmin(admin.ModelAdmin):
    list_display = ['event_type', 'status', 'attempts', 'created_at', 'sent_at']
    list_filter = ['event_type', 'status']
    readonly_fields = ['payload', 'attempts', 'last_error', 'created_at', 'sent_at']


@admin.register(Consent)
class ConsentAdmin(admin.ModelAdmin):
    list_display = ['signer', 'envelope', 'consent_given', 'consent_timestamp', 'ip_address']
    list_filter = ['consent_given', 'consent_timestamp']
    search_fields = ['signer__email', 'envelope__title']

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
