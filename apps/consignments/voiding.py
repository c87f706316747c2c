"""
Auto-void sweep and manual void.

The sweep is an explicit, idempotent reconciliation: it cancels every live consignment
whose classification carries a critical flag. It runs on demand (API, management
command) or on the Celery beat schedule, never as a hidden side effect of a read
unless COURIER_SWEEP_BEFORE_VOID_READS is switched on.
"""

import logging
from typing import List

from django.conf import settings
from django.db import transaction

from apps.assignments.service import AssignmentManager
from apps.consignments import validation
from apps.consignments.exceptions import NotFoundError
from apps.consignments.models import AgencyBooking, ConsignmentStatus, Source
from apps.consignments.records import Consignment
from apps.consignments.store import ConsignmentStore, normalize_number

logger = logging.getLogger("courierhub.voiding")

AUTO_VOID_REASON = "Auto-voided due to critical validation issues"


class AutoVoidSweeper:

    def __init__(self, store=None, assignments=None):
        self.store = store or ConsignmentStore()
        self.assignments = assignments or AssignmentManager(store=self.store)

    def _candidates(self):
        mirrored = set(AgencyBooking.objects.values_list("consignment_number", flat=True))
        for source, model in self.store.FAMILIES:
            rows = (
                model.objects
                .select_for_update()
                .exclude(status=ConsignmentStatus.CANCELLED)
                .order_by("id")
            )
            for record in rows:
                # a direct booking with an agency mirror is voided through the mirror
                if source == Source.DIRECT and record.consignment_number in mirrored:
                    continue
                cached = validation.ValidationFlags.from_json(record.validation_flags)
                if cached is not None and not cached.critical:
                    continue
                yield Consignment.from_record(source, record)

    def sweep(self) -> List[dict]:
        """Cancel every non-cancelled consignment carrying critical flags; return what was voided."""
        voided = []
        with transaction.atomic():
            for consignment in list(self._candidates()):
                flags = validation.classify(consignment)
                if not flags.critical:
                    record = consignment.record
                    record.validation_flags = flags.to_json()
                    record.save(update_fields=["validation_flags", "updated_at"])
                    continue

                self.store.update_status(
                    consignment.consignment_number,
                    ConsignmentStatus.CANCELLED,
                    reason=AUTO_VOID_REASON,
                    remarks=f"Automatically voided due to: {', '.join(flags.critical)}",
                    updated_by="system",
                    validation_flags=flags.to_json(),
                )
                self.assignments.release_cancelled(consignment.consignment_number)
                voided.append({
                    "consignment_number": consignment.consignment_number,
                    "source":             consignment.source,
                    "reason":             AUTO_VOID_REASON,
                    "critical_flags":     list(flags.critical),
                })

        if voided:
            logger.info("Auto-void sweep cancelled %d consignments", len(voided))
        else:
            logger.debug("Auto-void sweep found nothing to cancel")
        return voided


class VoidService:
    """Manual void and the cancelled-consignment listing."""

    def __init__(self, store=None, sweeper=None, assignments=None):
        self.store = store or ConsignmentStore()
        self.assignments = assignments or AssignmentManager(store=self.store)
        self.sweeper = sweeper or AutoVoidSweeper(self.store, self.assignments)

    def _maybe_sweep(self):
        if getattr(settings, "COURIER_SWEEP_BEFORE_VOID_READS", False):
            self.sweeper.sweep()

    def void(self, identity, consignment_number, reason=None, remarks=None):
        self._maybe_sweep()
        cn = normalize_number(consignment_number)
        with transaction.atomic():
            current = self.store.get(cn, lock=True)
            if current is None or current.status == ConsignmentStatus.CANCELLED:
                raise NotFoundError("Consignment not found or already cancelled")
            updated = self.store.update_status(
                cn,
                ConsignmentStatus.CANCELLED,
                reason=reason or "Manually voided",
                remarks=remarks,
                updated_by=identity.user_id,
            )
            self.assignments.release_cancelled(cn)
        logger.info("Consignment %s voided by %s", cn, identity.user_id)
        return updated, validation.classify(updated)

    def listing(self, filters=None):
        self._maybe_sweep()
        return self.store.cancelled(filters)
