import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Optional

from django.utils import timezone

from apps.domain.interfaces.repositories import ReminderTrackingRepository
from apps.domain.models import ReminderTracking
from apps.domain.models.reminder_tracking import normalize_reminder_message
from apps.infrastructure.repositories.django_reminder_tracking_repository import DjangoReminderTrackingRepository

logger = logging.getLogger('apps')

MAXIMUM_REMINDERS_REACHED = 'maximum reminders reached'
MINIMUM_INTERVAL_NOT_ELAPSED = 'minimum interval not elapsed'


@dataclass(frozen=True)
class ReminderDecision:
    can_send: bool
    reason: Optional[str] = None
    observed_count: int = 0


class ReminderRateLimiter:
    def __init__(
        self,
        tracking_repository: Optional[ReminderTrackingRepository] = None,
        clock: Optional[Callable] = None,
    ):
        self.tracking_repository = tracking_repository or DjangoReminderTrackingRepository()
        self.clock = clock or timezone.now

    def can_send_reminder(self, signer_id, envelope_id, max_reminders: int, min_hours_between: int) -> ReminderDecision:
        """
        Read-only eligibility check. ``observed_count`` is the count the
        decision was based on; pass it to ``record_reminder_sent`` so the
        increment only applies if nothing changed in between.
        """
        if max_reminders < 0 or min_hours_between < 0:
            raise ValueError('Reminder limits must not be negative')

        tracking = self.tracking_repository.get(signer_id, envelope_id)
        count = tracking.reminder_count if tracking else 0
        last_reminder_at = tracking.last_reminder_at if tracking else None

        if count >= max_reminders:
            return ReminderDecision(False, MAXIMUM_REMINDERS_REACHED, count)

        if last_reminder_at is not None and self.clock() - last_reminder_at < timedelta(hours=min_hours_between):
            return ReminderDecision(False, MINIMUM_INTERVAL_NOT_ELAPSED, count)

        return ReminderDecision(True, None, count)

    def record_reminder_sent(
        self,
        signer_id,
        envelope_id,
        message: Optional[str] = None,
        expected_count: Optional[int] = None,
    ) -> ReminderTracking:
        if expected_count is None:
            tracking = self.tracking_repository.get(signer_id, envelope_id)
            expected_count = tracking.reminder_count if tracking else 0

        tracking = self.tracking_repository.increment_and_stamp(
            signer_id,
            envelope_id,
            expected_count,
            self.clock(),
            normalize_reminder_message(message),
        )
        logger.info(f'Reminder count for signer {signer_id} on envelope {envelope_id} is now {tracking.reminder_count}')
        return tracking
