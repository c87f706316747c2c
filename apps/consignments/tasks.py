"""Celery tasks for the consignment lifecycle."""

import logging
from celery import shared_task
from django.db import DatabaseError

logger = logging.getLogger("courierhub.tasks")


@shared_task(bind=True, max_retries=3, default_retry_delay=120)
def sweep_critical_consignments(self):
    """Beat task: cancel live consignments that carry critical validation flags."""
    from apps.consignments.voiding import AutoVoidSweeper

    try:
        voided = AutoVoidSweeper().sweep()
    except DatabaseError as exc:
        logger.warning("Auto-void sweep failed: %s", exc)
        raise self.retry(exc=exc)
    logger.info("Scheduled sweep voided %d consignments", len(voided))
    return [item["consignment_number"] for item in voided]


@shared_task
def reconcile_propagation_failures(limit=200):
    """
    Cron task: replay status changes that never reached the secondary record family.
    Rows stay unresolved (and are retried next run) until the mirror write succeeds.
    """
    from apps.consignments.models import PropagationFailure
    from apps.consignments.store import ConsignmentStore

    store = ConsignmentStore()
    pending = list(PropagationFailure.objects.filter(resolved=False).order_by("created_at")[:limit])
    resolved = sum(1 for failure in pending if store.retry_propagation(failure))
    logger.info("Reconciled %d of %d propagation failures", resolved, len(pending))
    return resolved
