import logging
from datetime import datetime
from typing import Optional

from django.db import IntegrityError, transaction
from django.db.models import F, Q
from django.utils import timezone

from apps.domain.errors import ConcurrencyConflict
from apps.domain.interfaces.repositories import ReminderTrackingRepository
from apps.domain.models import ReminderTracking

logger = logging.getLogger('apps')


class DjangoReminderTrackingRepository(ReminderTrackingRepository):
    def get(self, signer_id, envelope_id) -> Optional[ReminderTracking]:
        return ReminderTracking.objects.filter(signer_id=signer_id, envelope_id=envelope_id).first()

    def increment_and_stamp(
        self,
        signer_id,
        envelope_id,
        expected_count: int,
        stamped_at: datetime,
        message: Optional[str] = None,
    ) -> ReminderTracking:
        updated = (
            ReminderTracking.objects
            .filter(signer_id=signer_id, envelope_id=envelope_id, reminder_count=expected_count)
            .filter(Q(last_reminder_at__isnull=True) | Q(last_reminder_at__lte=stamped_at))
            .update(
                reminder_count=F('reminder_count') + 1,
                last_reminder_at=stamped_at,
                last_reminder_message=message,
                updated_at=timezone.now(),
            )
        )
        if updated:
            return self.get(signer_id, envelope_id)

        if expected_count == 0:
            try:
                with transaction.atomic():
                    return ReminderTracking.objects.create(
                        signer_id=signer_id,
                        envelope_id=envelope_id,
                        reminder_count=1,
                        last_reminder_at=stamped_at,
                        last_reminder_message=message,
                    )
            except IntegrityError as e:
                logger.warning(f'Reminder tracking for signer {signer_id} created concurrently: {str(e)}')
                raise ConcurrencyConflict(
                    'Reminder tracking changed concurrently, retry the request',
                    {'signer_id': str(signer_id), 'envelope_id': str(envelope_id), 'expected_count': 0}
                ) from e

        logger.warning(f'Reminder tracking for signer {signer_id} is no longer at count {expected_count}')
        raise ConcurrencyConflict(
            'Reminder tracking changed concurrently, retry the request',
            {'signer_id': str(signer_id), 'envelope_id': str(envelope_id), 'expected_count': expected_count}
        )
