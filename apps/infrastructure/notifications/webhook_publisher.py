import requests
import logging
from datetime import datetime
from typing import Dict, Optional
from apps.domain.interfaces.notification_publisher_strategy import NotificationPublisherStrategy

logger = logging.getLogger('apps')


class WebhookNotificationPublisher(NotificationPublisherStrategy):
    def __init__(self, webhook_url: str, api_token: Optional[str] = None, timeout: int = 30):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.headers = {'Content-Type': 'application/json'}
        if api_token:
            self.headers['Authorization'] = f'Bearer {api_token}'

    def _clean_payload(self, payload: Dict) -> Dict:
        cleaned = {}
        for key, value in payload.items():
            if isinstance(value, datetime):
                cleaned[key] = value.isoformat()
            elif isinstance(value, dict):
                cleaned[key] = self._clean_payload(value)
            else:
                cleaned[key] = value
        return cleaned

    def publish(self, event_type: str, payload: Dict) -> Dict:
        body = {
            'event_type': event_type,
            'payload': self._clean_payload(payload),
        }

        try:
            response = requests.post(self.webhook_url, json=body, headers=self.headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            error_detail = response.text[:500] if response.text else str(e)
            logger.error(f'Webhook rejected {event_type}: {response.status_code} - {error_detail}')
            raise
        except requests.exceptions.RequestException as e:
            logger.error(f'Error delivering {event_type} to webhook: {str(e)}')
            raise

        logger.info(f'{event_type} delivered to webhook ({response.status_code})')
        return {'delivered': True, 'status_code': response.status_code}
