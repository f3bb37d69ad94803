import logging
from apps.domain.interfaces.notification_port import NotificationPort
from apps.domain.models import OutboxEvent, Signer

logger = logging.getLogger('apps')


class OutboxNotificationService(NotificationPort):
    """
    Writes notifications to the outbox table. Callers run inside the same
    transaction as the state change, so an event exists if and only if that
    change committed. Delivery happens later in OutboxDispatcher.
    """

    def _signer_payload(self, envelope_id, signer_id) -> dict:
        signer = Signer.objects.select_related('envelope').get(pk=signer_id, envelope_id=envelope_id)
        return {
            'envelope_id': str(envelope_id),
            'envelope_title': signer.envelope.title,
            'signer_id': str(signer_id),
            'signer_email': signer.email,
            'signer_name': signer.display_name,
        }

    def publish_reminder(self, envelope_id, signer_id, message, reminder_count: int) -> None:
        payload = self._signer_payload(envelope_id, signer_id)
        payload.update({'message': message, 'reminder_count': reminder_count})
        event = OutboxEvent.objects.create(event_type=OutboxEvent.ENVELOPE_REMINDER, payload=payload)
        logger.info(f'Reminder #{reminder_count} for signer {signer_id} enqueued as outbox event {event.id}')

    def publish_invitation(self, envelope_id, signer_id, invitation_token: str) -> None:
        payload = self._signer_payload(envelope_id, signer_id)
        payload['invitation_token'] = invitation_token
        event = OutboxEvent.objects.create(event_type=OutboxEvent.ENVELOPE_INVITATION, payload=payload)
        logger.info(f'Invitation for signer {signer_id} enqueued as outbox event {event.id}')
