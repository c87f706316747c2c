"""
AssignmentManager — rider custody of consignments.

Per (rider, consignment):  unassigned → active → completed
                                          ↓
                              removed / declined → unassigned

A consignment sits on at most one active sheet. The ActiveAssignment claim row
(unique consignment number) is written in the same transaction as the sheet,
so two concurrent assigns cannot both succeed.
"""

import logging
from decimal import Decimal
from typing import Dict, Iterable, List

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from apps.authentication.identity import RiderDirectory, parse_agent_id
from apps.consignments.exceptions import ConflictError, NotFoundError, RoleError, ValidationError
from apps.consignments.models import ConsignmentStatus
from apps.consignments.store import ConsignmentStore, normalize_number

from .models import ActiveAssignment, DeliverySheet

logger = logging.getLogger("courierhub.assignments")

REMOVED_NOTE = "Removed from delivery assignment - back to pending"
COMPLETED_NOTE = "Delivered - Delivery sheet completed"
VISIBLE_SHEET_STATUSES = (
    DeliverySheet.Status.ACTIVE,
    DeliverySheet.Status.DELIVERED,
    DeliverySheet.Status.COMPLETED,
)


def _rider_pk(rider_id):
    if not rider_id:
        raise ValidationError("Rider ID is required", fields=["rider_id"])
    pk = parse_agent_id(rider_id)
    if pk is None:
        raise ValidationError("Invalid rider ID", fields=["rider_id"])
    return pk


class AssignmentManager:

    def __init__(self, store=None, riders=None):
        self.store  = store  or ConsignmentStore()
        self.riders = riders or RiderDirectory()

    # ── Helpers ──────────────────────────────────────────────────────────────
    def _active_rider(self, rider_id):
        _rider_pk(rider_id)
        rider = self.riders.find_active_rider(rider_id)
        if rider is None:
            raise NotFoundError("Rider not found or inactive")
        return rider

    @staticmethod
    def _claim(rider_pk, cn):
        return (
            ActiveAssignment.objects
            .select_related("sheet")
            .filter(consignment_number=cn, sheet__rider_id=rider_pk, sheet__status=DeliverySheet.Status.ACTIVE)
            .first()
        )

    @staticmethod
    def _release(claim) -> DeliverySheet:
        """Take the claimed number off its sheet and drop the claim."""
        with transaction.atomic():
            sheet = DeliverySheet.objects.select_for_update().get(pk=claim.sheet_id)
            sheet.consignment_numbers = [n for n in sheet.consignment_numbers if n != claim.consignment_number]
            sheet.save(update_fields=["consignment_numbers", "updated_at"])
            claim.delete()
        return sheet

    @staticmethod
    def _purge_empty(rider_pk):
        deleted, _ = DeliverySheet.objects.filter(
            rider_id=rider_pk, status=DeliverySheet.Status.ACTIVE, count=0,
        ).delete()
        return deleted

    @staticmethod
    def _require_rider(identity):
        if not identity.is_rider:
            raise RoleError("Only riders can perform this action")

    # ── Assign ───────────────────────────────────────────────────────────────
    def assign(self, identity, rider_id, consignment_number) -> DeliverySheet:
        cn = normalize_number(consignment_number, strict=True)
        rider = self._active_rider(rider_id)
        self.store.find_by_number(cn)

        holder = ActiveAssignment.objects.select_related("sheet").filter(consignment_number=cn).first()
        if holder is not None:
            raise ConflictError(self._conflict_message(holder, rider))

        profile = rider.rider_profile
        try:
            with transaction.atomic():
                self._purge_empty(rider.pk)
                sheet = DeliverySheet.objects.create(
                    rider=rider,
                    rider_name=rider.full_name,
                    rider_code=profile.rider_code,
                    consignment_numbers=[cn],
                )
                ActiveAssignment.objects.create(consignment_number=cn, sheet=sheet)
        except IntegrityError:
            holder = ActiveAssignment.objects.select_related("sheet").filter(consignment_number=cn).first()
            message = (
                self._conflict_message(holder, rider) if holder
                else "Consignment number is already assigned to another active rider"
            )
            raise ConflictError(message)

        note = f"Assigned to rider: {rider.full_name} ({profile.rider_code})"
        self.store.update_status(
            cn, ConsignmentStatus.IN_TRANSIT, remarks=note, updated_by=identity.user_id, note=note,
        )
        logger.info("Consignment %s assigned to rider %s (sheet %s)", cn, profile.rider_code, sheet.pk)
        return sheet

    @staticmethod
    def _conflict_message(holder, rider):
        if holder.sheet.rider_id == rider.pk:
            return "Consignment number is already assigned to you in another delivery sheet"
        return "Consignment number is already assigned to another active rider"

    # ── Remove ───────────────────────────────────────────────────────────────
    def remove(self, identity, rider_id, consignment_number) -> DeliverySheet:
        rider_pk = _rider_pk(rider_id)
        cn = normalize_number(consignment_number, strict=True)
        if not DeliverySheet.objects.filter(rider_id=rider_pk, status=DeliverySheet.Status.ACTIVE).exists():
            raise NotFoundError("No active delivery sheet found for this rider")
        claim = self._claim(rider_pk, cn)
        if claim is None:
            raise NotFoundError("Consignment number not found in this delivery sheet")

        sheet = self._release(claim)
        if self.store.get(cn) is not None:
            self.store.update_status(
                cn, ConsignmentStatus.PENDING, remarks=REMOVED_NOTE, updated_by=identity.user_id, note=REMOVED_NOTE,
            )
        else:
            logger.warning("Removed %s from sheet %s but no booking exists", cn, sheet.pk)
        logger.info("Consignment %s removed from sheet %s", cn, sheet.pk)
        return sheet

    # ── Rider actions ────────────────────────────────────────────────────────
    def accept(self, identity, consignment_number):
        self._require_rider(identity)
        cn = normalize_number(consignment_number, strict=True)
        if self._claim(identity.user_id, cn) is None:
            raise NotFoundError("Consignment not assigned to you")
        if self.store.get(cn) is None:
            raise NotFoundError("Booking not found for this consignment number")

        note = f"Accepted by {identity.signature} at {timezone.now().isoformat()}"
        consignment = self.store.update_status(
            cn, ConsignmentStatus.IN_TRANSIT, remarks=note, updated_by=identity.user_id, note=note,
        )
        logger.info("Consignment %s accepted by %s", cn, identity.signature)
        return consignment

    def decline(self, identity, consignment_number, reason):
        self._require_rider(identity)
        reason = (reason or "").strip()
        if len(reason) < 3:
            raise ValidationError("Decline reason is required (min 3 characters)", fields=["reason"])
        cn = normalize_number(consignment_number, strict=True)
        claim = self._claim(identity.user_id, cn)
        if claim is None:
            raise NotFoundError("Consignment not assigned to you")

        sheet = self._release(claim)
        note = f"Declined by {identity.signature} at {timezone.now().isoformat()}: {reason}"
        consignment = self.store.get(cn)
        if consignment is None:
            logger.warning("Declined %s has no booking record", cn)
        elif consignment.status == ConsignmentStatus.IN_TRANSIT:
            self.store.update_status(
                cn, ConsignmentStatus.PENDING, reason=reason, remarks=note, updated_by=identity.user_id, note=note,
            )
        else:
            self.store.append_remark(cn, note)
        logger.info("Consignment %s declined by %s", cn, identity.signature)
        return sheet

    # ── Complete ─────────────────────────────────────────────────────────────
    def complete(self, identity, rider_id, remarks=None) -> List[DeliverySheet]:
        rider_pk = _rider_pk(rider_id)
        if identity.is_rider:
            if identity.user_id != str(rider_pk):
                raise RoleError("Riders can only complete their own delivery sheets")
        elif not identity.is_back_office:
            raise RoleError("Only riders or staff can complete delivery sheets")

        with transaction.atomic():
            self._purge_empty(rider_pk)
            sheets = list(
                DeliverySheet.objects
                .select_for_update()
                .filter(rider_id=rider_pk, status=DeliverySheet.Status.ACTIVE)
                .order_by("created_at", "id")
            )
            if not sheets:
                raise NotFoundError("No active delivery sheet found for this rider")
            now = timezone.now()
            for sheet in sheets:
                sheet.status = DeliverySheet.Status.DELIVERED
                sheet.completed_at = now
                if remarks:
                    sheet.remarks = remarks
                sheet.save()
            ActiveAssignment.objects.filter(sheet__in=sheets).delete()

        note = remarks or COMPLETED_NOTE
        numbers = [cn for sheet in sheets for cn in sheet.consignment_numbers]
        voided = {c.consignment_number for c in self.store.many(numbers) if c.status == ConsignmentStatus.CANCELLED}
        if voided:
            logger.warning("Not delivering cancelled consignments %s", ", ".join(sorted(voided)))
            numbers = [cn for cn in numbers if cn not in voided]
        self.store.bulk_update_status(
            numbers, ConsignmentStatus.DELIVERED, remarks=note, updated_by=identity.user_id, note=note,
        )
        logger.info("Rider %s completed %d sheets (%d consignments)", rider_pk, len(sheets), len(numbers))
        return sheets

    def settle_delivered(self, consignment_number):
        """A consignment was marked delivered directly: close out its active sheet if nothing else is on it."""
        claim = ActiveAssignment.objects.select_related("sheet").filter(consignment_number=consignment_number).first()
        if claim is None:
            return None
        with transaction.atomic():
            sheet = DeliverySheet.objects.select_for_update().get(pk=claim.sheet_id)
            claim.delete()
            if not sheet.claims.exists():
                sheet.status = DeliverySheet.Status.DELIVERED
                sheet.completed_at = timezone.now()
                sheet.save(update_fields=["status", "completed_at", "updated_at"])
        return sheet

    def release_cancelled(self, consignment_number):
        """A cancelled consignment leaves the active sheet holding it, so completing the sheet cannot deliver it."""
        claim = ActiveAssignment.objects.filter(consignment_number=str(consignment_number).upper()).first()
        if claim is None:
            return None
        sheet = self._release(claim)
        logger.info("Cancelled consignment %s released from sheet %s", claim.consignment_number, sheet.pk)
        return sheet

    # ── Reads ────────────────────────────────────────────────────────────────
    def active_riders(self):
        return self.riders.active_riders()

    def rider_overview(self, rider_id) -> Dict:
        rider_pk = _rider_pk(rider_id)
        sheets = list(
            DeliverySheet.objects.filter(rider_id=rider_pk, status=DeliverySheet.Status.ACTIVE).exclude(count=0)
        )
        if not sheets:
            raise NotFoundError("No active delivery sheets found for this rider")
        numbers = [cn for sheet in sheets for cn in sheet.consignment_numbers]
        return {
            "sheets":      sheets,
            "parcels":     self.store.many(numbers),
            "total_count": len(numbers),
        }

    def sheet_detail(self, sheet_id) -> Dict:
        sheet = DeliverySheet.objects.filter(pk=sheet_id).first()
        if sheet is None:
            raise NotFoundError("Delivery sheet not found")
        return {"sheet": sheet, "parcels": self.store.many(sheet.consignment_numbers)}

    def recent_consignment_numbers(self, rider_id, limit=None) -> List[str]:
        """Numbers on the rider's most recent active/delivered/completed sheets."""
        limit = limit or getattr(settings, "COURIER_RECENT_SHEET_LIMIT", 5)
        sheets = (
            DeliverySheet.objects
            .filter(rider_id=rider_id, status__in=VISIBLE_SHEET_STATUSES)
            .order_by("-created_at", "-id")[:limit]
        )
        return list(dict.fromkeys(cn for sheet in sheets for cn in sheet.consignment_numbers))

    def sheets_holding(self, numbers: Iterable[str]) -> Dict[str, DeliverySheet]:
        """Latest sheet (any status) that lists each consignment number."""
        numbers = [str(n).upper() for n in numbers]
        if not numbers:
            return {}
        # JSON text prefilter, exact membership checked below
        query = Q()
        for cn in numbers:
            query |= Q(consignment_numbers__icontains=f'"{cn}"')
        latest = {}
        for sheet in DeliverySheet.objects.filter(query).order_by("-created_at", "-id"):
            for cn in sheet.consignment_numbers:
                if cn in numbers and cn not in latest:
                    latest[cn] = sheet
        return latest

    def rider_consignment_numbers(self, rider) -> List[str]:
        """
        Numbers currently with a rider matched by code (exact), name (partial) or id.

        A number counts only when the latest sheet listing it belongs to a matching rider.
        """
        term = str(rider or "").strip()
        if not term:
            return []
        query = Q(rider_code__iexact=term) | Q(rider_name__icontains=term)
        pk = parse_agent_id(term)
        if pk is not None:
            query |= Q(rider_id=pk)
        matched = {}
        for sheet in DeliverySheet.objects.filter(query):
            matched[sheet.pk] = sheet.consignment_numbers
        numbers = [cn for listed in matched.values() for cn in listed]
        latest = self.sheets_holding(numbers)
        return [cn for cn, sheet in latest.items() if sheet.pk in matched]

    def rider_statistics(self, rider_id) -> Dict:
        """Per-status counts and COD totals over every consignment that has been on the rider's sheets."""
        rider_pk = _rider_pk(rider_id)
        sheets = DeliverySheet.objects.filter(rider_id=rider_pk).order_by("created_at", "id")
        numbers = list(dict.fromkeys(cn for sheet in sheets for cn in sheet.consignment_numbers))

        by_status = {}
        grand_total = Decimal("0")
        for consignment in self.store.many(numbers):
            row = by_status.setdefault(consignment.status, {"count": 0, "cod_total": Decimal("0")})
            row["count"] += 1
            row["cod_total"] += consignment.cod_amount or 0
            grand_total += consignment.cod_amount or 0

        return {
            "rider_id":        str(rider_pk),
            "status_counts":   [{"status": status, **row} for status, row in sorted(by_status.items())],
            "total_parcels":   sum(row["count"] for row in by_status.values()),
            "grand_total_cod": grand_total,
        }
