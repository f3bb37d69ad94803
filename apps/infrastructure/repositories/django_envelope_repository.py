import logging
from typing import Dict, List, Optional

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F, Q
from django.utils import timezone

from apps.domain.interfaces.repositories import EnvelopeRepository
from apps.domain.models import Envelope, Signer

logger = logging.getLogger('apps')


class DjangoEnvelopeRepository(EnvelopeRepository):
    def get_envelope_with_signers(self, envelope_id) -> Optional[Envelope]:
        try:
            return (
                Envelope.objects
                .select_related('created_by')
                .prefetch_related('signers')
                .get(pk=envelope_id)
            )
        except (Envelope.DoesNotExist, ValidationError, ValueError):
            return None

    def list_for_actor(self, user_id, include_all: bool = False) -> List[Envelope]:
        queryset = Envelope.objects.prefetch_related('signers')
        if not include_all:
            queryset = queryset.filter(Q(created_by_id=user_id) | Q(signers__user_id=user_id)).distinct()
        return list(queryset)

    def create_envelope(self, envelope_data: Dict, signers_data: List[Dict]) -> Envelope:
        with transaction.atomic():
            envelope = Envelope.objects.create(**envelope_data)
            self.add_signers(envelope, signers_data)
        logger.info(f'Envelope {envelope.id} created with {len(signers_data)} signer(s)')
        return self.get_envelope_with_signers(envelope.id)

    def add_signers(self, envelope: Envelope, signers_data: List[Dict]) -> List[Signer]:
        return [
            Signer.objects.create(
                envelope=envelope,
                user_id=signer_data.get('user_id'),
                is_external=signer_data.get('is_external', signer_data.get('user_id') is None),
                email=signer_data['email'],
                full_name=signer_data.get('full_name', ''),
                order=signer_data['order'],
            )
            for signer_data in signers_data
        ]

    def remove_pending_signers(self, envelope: Envelope, signer_ids: List) -> int:
        _, deleted = Signer.objects.filter(
            envelope=envelope, pk__in=signer_ids, status=Signer.PENDING
        ).delete()
        removed = deleted.get(Signer._meta.label, 0)
        logger.info(f'Removed {removed} pending signer(s) from envelope {envelope.id}')
        return removed

    def update_envelope_status(self, envelope: Envelope, expected_version: int, new_status: str, **fields) -> bool:
        updated = Envelope.objects.filter(pk=envelope.pk, version=expected_version).update(
            status=new_status,
            version=F('version') + 1,
            updated_at=timezone.now(),
            **fields
        )
        if not updated:
            logger.warning(
                f'Conditional update lost on envelope {envelope.pk}: '
                f'expected version {expected_version}, target status {new_status}'
            )
            return False

        envelope.status = new_status
        envelope.version = expected_version + 1
        for name, value in fields.items():
            setattr(envelope, name, value)
        return True

    def update_signer_status(self, signer: Signer, expected_status: str, new_status: str, **fields) -> bool:
        updated = Signer.objects.filter(pk=signer.pk, status=expected_status).update(
            status=new_status,
            updated_at=timezone.now(),
            **fields
        )
        if not updated:
            logger.warning(
                f'Conditional update lost on signer {signer.pk}: '
                f'expected status {expected_status}, target status {new_status}'
            )
            return False

        signer.status = new_status
        for name, value in fields.items():
            setattr(signer, name, value)
        return True
