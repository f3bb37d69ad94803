import logging
from typing import Dict, Optional
from django.conf import settings
from django.db import transaction
from django.utils import timezone
from apps.domain.models import OutboxEvent
from apps.application.facades.notification_facade import NotificationFacade

logger = logging.getLogger('apps')


class OutboxDispatcher:
    def __init__(self, facade: Optional[NotificationFacade] = None, batch_size: Optional[int] = None):
        self.facade = facade or NotificationFacade()
        self.batch_size = batch_size or settings.OUTBOX_BATCH_SIZE

    def dispatch_pending(self, limit: Optional[int] = None) -> Dict[str, int]:
        """
        Claims up to ``limit`` pending events with SKIP LOCKED and marks each
        one SENT or FAILED. Rows locked by another dispatcher are skipped.
        """
        limit = limit or self.batch_size
        summary = {'claimed': 0, 'sent': 0, 'failed': 0}

        with transaction.atomic():
            events = list(
                OutboxEvent.objects
                .select_for_update(skip_locked=True)
                .filter(status=OutboxEvent.PENDING)
                .order_by('created_at', 'id')[:limit]
            )
            summary['claimed'] = len(events)

            for event in events:
                event.attempts += 1
                try:
                    self.facade.deliver(event)
                except Exception as e:
                    event.status = OutboxEvent.FAILED
                    event.last_error = str(e)[:2000]
                    event.save(update_fields=['status', 'attempts', 'last_error'])
                    summary['failed'] += 1
                    logger.error(f'Outbox event {event.id} ({event.event_type}) failed: {str(e)}')
                    continue

                event.status = OutboxEvent.SENT
                event.sent_at = timezone.now()
                event.last_error = None
                event.save(update_fields=['status', 'attempts', 'last_error', 'sent_at'])
                summary['sent'] += 1

        if summary['claimed']:
            logger.info(
                f'Outbox dispatch finished: {summary["sent"]} sent, '
                f'{summary["failed"]} failed of {summary["claimed"]} claimed'
            )
        return summary

    def requeue_failed(self) -> int:
        requeued = OutboxEvent.objects.filter(status=OutboxEvent.FAILED).update(status=OutboxEvent.PENDING)
        if requeued:
            logger.info(f'Requeued {requeued} failed outbox event(s)')
        return requeued
