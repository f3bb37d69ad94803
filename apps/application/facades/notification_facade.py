import time
import logging
from typing import Dict, Optional
from django.conf import settings
from apps.domain.interfaces.notification_publisher_strategy import NotificationPublisherStrategy
from apps.domain.models import OutboxEvent
from apps.infrastructure.notifications.factory import NotificationPublisherFactory

logger = logging.getLogger('apps')


class NotificationFacade:
    def __init__(
        self,
        publisher_factory: Optional[NotificationPublisherFactory] = None,
        retry_config: Optional[Dict] = None,
    ):
        self.publisher_factory = publisher_factory or NotificationPublisherFactory()
        self.retry_config = retry_config if retry_config is not None else settings.NOTIFICATION_RETRY_POLICY

    def _get_strategy(self) -> NotificationPublisherStrategy:
        return self.publisher_factory.get_publisher()

    def _retry_operation(self, operation, max_retries: int = 3, delay: float = 1.0, **kwargs):
        retry_config = kwargs.pop('retry_config', {})
        max_retries = max(1, retry_config.get('max_retries', max_retries))
        delay = retry_config.get('delay', delay)

        for attempt in range(max_retries):
            try:
                return operation(**kwargs)
            except Exception as e:
                if attempt == max_retries - 1:
                    raise
                logger.warning(f'Retry attempt {attempt + 1}/{max_retries} failed: {str(e)}')
                time.sleep(delay * (attempt + 1))

    def deliver(self, event: OutboxEvent) -> Dict:
        strategy = self._get_strategy()

        return self._retry_operation(
            strategy.publish,
            retry_config=self.retry_config,
            event_type=event.event_type,
            payload=event.payload,
        )
