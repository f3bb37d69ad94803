from django.core.management.base import BaseCommand
from apps.application.services.outbox_dispatcher import OutboxDispatcher


class Command(BaseCommand):
    help = 'Delivers pending outbox notifications (invitations and reminders)'

    def add_arguments(self, parser):
        parser.add_argument('--limit', type=int, default=None, help='Maximum number of events to deliver')
        parser.add_argument('--retry-failed', action='store_true', help='Requeue FAILED events before dispatching')

    def handle(self, *args, **options):
        dispatcher = OutboxDispatcher()

        if options['retry_failed']:
            requeued = dispatcher.requeue_failed()
            self.stdout.write(f'Requeued {requeued} failed event(s)')

        summary = dispatcher.dispatch_pending(limit=options['limit'])
        self.stdout.write(self.style.SUCCESS(
            f'Outbox: {summary["sent"]} sent, {summary["failed"]} failed, {summary["claimed"]} claimed'
        ))
