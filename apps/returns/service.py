"""
ReturnManager — registering undelivered consignments handed back by riders.

Each rider has at most one open batch per day (outcome received_at_office, created
since local midnight). Staff later close a batch with an outcome; that never touches
the consignments themselves.
"""

import logging

from django.db import transaction
from django.utils import timezone

from apps.authentication.identity import RiderDirectory, parse_agent_id
from apps.consignments.exceptions import ConflictError, NotFoundError, RoleError, ValidationError
from apps.consignments.models import ConsignmentStatus
from apps.consignments.store import ConsignmentStore, normalize_number

from .models import ReturnSheet

logger = logging.getLogger("courierhub.returns")


def _midnight():
    return timezone.localtime().replace(hour=0, minute=0, second=0, microsecond=0)


class ReturnManager:

    def __init__(self, store=None, riders=None):
        self.store  = store  or ConsignmentStore()
        self.riders = riders or RiderDirectory()

    def _resolve_rider_id(self, identity, rider_id):
        if identity.is_rider:
            if rider_id and str(rider_id) != identity.user_id:
                raise RoleError("Riders can only manage their own returns")
            return identity.user_id
        if not identity.is_back_office:
            raise RoleError("Only riders or staff can manage returns")
        return rider_id

    @staticmethod
    def _todays_batch(rider_pk, lock=False):
        qs = ReturnSheet.objects.select_for_update() if lock else ReturnSheet.objects
        return (
            qs.filter(
                rider_id=rider_pk,
                outcome=ReturnSheet.Outcome.RECEIVED_AT_OFFICE,
                created_at__gte=_midnight(),
            )
            .order_by("created_at", "id")
            .first()
        )

    def register_return(self, identity, consignment_number, rider_id=None) -> ReturnSheet:
        rider_id = self._resolve_rider_id(identity, rider_id)
        if not rider_id or not consignment_number:
            raise ValidationError(
                "Rider ID and consignment number are required", fields=["rider_id", "consignment_number"],
            )
        if parse_agent_id(rider_id) is None:
            raise ValidationError("Invalid rider ID", fields=["rider_id"])
        cn = normalize_number(consignment_number)

        rider = self.riders.find_active_rider(rider_id)
        if rider is None:
            raise NotFoundError("Rider not found or inactive")
        consignment = self.store.find_by_number(cn)
        profile = rider.rider_profile

        with transaction.atomic():
            batch = self._todays_batch(rider.pk, lock=True)
            if batch is None:
                batch = ReturnSheet(
                    rider=rider,
                    rider_name=rider.full_name,
                    rider_code=profile.rider_code,
                    consignment_numbers=[],
                    order_statuses=[],
                )
            elif cn in batch.consignment_numbers:
                raise ConflictError("Consignment number already registered in this return sheet")
            batch.consignment_numbers.append(cn)
            batch.order_statuses.append(consignment.status)
            batch.save()

        self.store.update_status(
            cn, ConsignmentStatus.RETURNED,
            remarks=f"Returned by rider {profile.rider_code}",
            updated_by=identity.user_id,
        )
        logger.info("Consignment %s registered as return by %s (batch %s)", cn, profile.rider_code, batch.pk)
        return batch

    def todays_batch(self, identity, rider_id=None):
        rider_id = self._resolve_rider_id(identity, rider_id)
        rider_pk = parse_agent_id(rider_id)
        if rider_pk is None:
            raise ValidationError("Invalid rider ID", fields=["rider_id"])
        batch = self._todays_batch(rider_pk)
        if batch is None:
            raise NotFoundError("No active return sheet found for this rider")
        return {"sheet": batch, "parcels": self.store.many(batch.consignment_numbers)}

    def batches(self, identity):
        """Return sheets visible to the identity, newest first."""
        qs = ReturnSheet.objects.all()
        if identity.is_back_office:
            return qs
        if identity.is_rider:
            return qs.filter(rider_id=identity.user_id)
        own = {c.consignment_number for c in self.store.listing(identity)}
        ids = [batch.pk for batch in qs if own.intersection(batch.consignment_numbers)]
        return qs.filter(pk__in=ids)

    def complete_batch(self, identity, batch_id, outcome=None, remarks=None) -> ReturnSheet:
        if not identity.is_back_office:
            raise RoleError("Admin or staff only")
        outcome = outcome or ReturnSheet.Outcome.TO_BE_SENT_BACK
        if outcome not in ReturnSheet.Outcome.values:
            raise ValidationError(f"Invalid outcome '{outcome}'", fields=["outcome"])
        batch = ReturnSheet.objects.filter(pk=batch_id).first()
        if batch is None:
            raise NotFoundError("Return sheet not found")

        batch.outcome = outcome
        if remarks:
            batch.remarks = remarks
        batch.save(update_fields=["outcome", "remarks", "updated_at"])
        logger.info("Return sheet %s closed as %s by %s", batch.pk, outcome, identity.user_id)
        return batch
