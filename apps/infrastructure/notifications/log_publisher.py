import logging
from typing import Dict
from apps.domain.interfaces.notification_publisher_strategy import NotificationPublisherStrategy

logger = logging.getLogger('apps')


class LogNotificationPublisher(NotificationPublisherStrategy):
    """Used when no webhook is configured; the event only reaches the log."""

    def publish(self, event_type: str, payload: Dict) -> Dict:
        logger.info(
            f'Notification {event_type} for envelope {payload.get("envelope_id")} '
            f'and signer {payload.get("signer_id")} (no webhook configured)'
        )
        return {'delivered': True, 'status_code': None}
