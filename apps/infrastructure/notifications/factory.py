import logging
from typing import Optional
from django.conf import settings
from apps.domain.interfaces.notification_publisher_strategy import NotificationPublisherStrategy
from .log_publisher import LogNotificationPublisher
from .webhook_publisher import WebhookNotificationPublisher

logger = logging.getLogger('apps')


class NotificationPublisherFactory:
    def __init__(self, webhook_url: Optional[str] = None, api_token: Optional[str] = None, timeout: Optional[int] = None):
        self.webhook_url = webhook_url if webhook_url is not None else settings.NOTIFICATION_WEBHOOK_URL
        self.api_token = api_token if api_token is not None else settings.NOTIFICATION_WEBHOOK_TOKEN
        self.timeout = timeout if timeout is not None else settings.NOTIFICATION_TIMEOUT

    def get_publisher(self) -> NotificationPublisherStrategy:
        if self.webhook_url:
            return WebhookNotificationPublisher(self.webhook_url, self.api_token, self.timeout)
        logger.debug('NOTIFICATION_WEBHOOK_URL not set, notifications are only logged')
        return LogNotificationPublisher()
