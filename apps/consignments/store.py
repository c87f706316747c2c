"""
ConsignmentStore — the one place that reads and writes booking records.

Both record families share the consignment-number namespace. The agency record is
primary when both exist; status changes land on the primary inside a transaction and
are then mirrored onto the secondary in a separate savepoint. A failed mirror is logged
and queued as a PropagationFailure for the reconciliation task; it never undoes the
primary write.
"""

import logging
import random
import re
import string
import time
from typing import Iterable, List, Optional, Tuple

from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from apps.authentication.identity import parse_agent_id
from apps.authentication.models import Agent
from apps.consignments import validation
from apps.consignments.exceptions import NotFoundError, PropagationError, ValidationError
from apps.consignments.models import (
    AgencyBooking, ConsignmentStatus, DirectBooking, PropagationFailure, Source, StatusEntry,
)
from apps.consignments.records import MANUAL_ACCOUNT, Consignment

logger = logging.getLogger("courierhub.consignments")

LOOKUP_PATTERN = re.compile(r"^[A-Z0-9-]+$")
ASSIGNMENT_PATTERN = re.compile(r"^[A-Z0-9]+$")

# Never taken from booking payloads
PROTECTED_FIELDS = {"id", "status", "validation_flags", "delivery_date", "created_at", "updated_at"}


def normalize_number(value, strict=False) -> str:
    """Uppercase and format-check a consignment number."""
    cn = str(value or "").strip().upper()
    if not cn:
        raise ValidationError("Consignment number is required", fields=["consignment_number"])
    pattern = ASSIGNMENT_PATTERN if strict else LOOKUP_PATTERN
    if not pattern.match(cn):
        raise ValidationError("Invalid consignment number format", fields=["consignment_number"])
    return cn


def join_remarks(existing, note):
    if not existing:
        return note
    return f"{existing} | {note}"


def generate_consignment_number():
    digits = "".join(random.choices(string.digits, k=6))
    millis = str(int(time.time() * 1000))[-6:]
    return f"CN{digits}{millis}"


def _model_fields(model, payload):
    values = {}
    for field in model._meta.concrete_fields:
        if field.name in PROTECTED_FIELDS or field.name not in payload:
            continue
        value = payload[field.name]
        if value is None and not field.null:
            continue
        values[field.name] = value
    return values


def _serialize_entry(entry):
    data = dict(entry)
    data["timestamp"] = entry["timestamp"].isoformat()
    return data


class ConsignmentStore:

    FAMILIES = ((Source.AGENCY, AgencyBooking), (Source.DIRECT, DirectBooking))
    MODELS = dict(FAMILIES)

    # ── Lookups ──────────────────────────────────────────────────────────────
    def _locate(self, cn, lock=False) -> Optional[Tuple[str, object]]:
        for source, model in self.FAMILIES:
            qs = model.objects.select_for_update() if lock else model.objects
            record = qs.filter(consignment_number=cn).first()
            if record is not None:
                return source, record
        return None

    def get(self, consignment_number, lock=False) -> Optional[Consignment]:
        located = self._locate(normalize_number(consignment_number), lock=lock)
        if located is None:
            return None
        return Consignment.from_record(*located)

    def find_by_number(self, consignment_number) -> Consignment:
        consignment = self.get(consignment_number)
        if consignment is None:
            raise NotFoundError("Consignment number not found in booking system")
        return consignment

    def exists(self, cn) -> bool:
        return any(model.objects.filter(consignment_number=cn).exists() for _, model in self.FAMILIES)

    def many(self, numbers: Iterable[str]) -> List[Consignment]:
        """Normalized consignments for ``numbers``, in the given order; unknown numbers are skipped."""
        numbers = [str(n).upper() for n in numbers]
        found = {}
        for booking in AgencyBooking.objects.filter(consignment_number__in=numbers):
            found[booking.consignment_number] = Consignment.from_agency_booking(booking)
        for booking in DirectBooking.objects.filter(consignment_number__in=numbers):
            found.setdefault(booking.consignment_number, Consignment.from_direct_booking(booking))
        return [found[n] for n in dict.fromkeys(numbers) if n in found]

    def history(self, consignment: Consignment) -> List[dict]:
        entries = StatusEntry.objects.filter(
            source=consignment.source, consignment_number=consignment.consignment_number,
        )
        return [entry.as_entry() for entry in entries]

    # ── Creation ─────────────────────────────────────────────────────────────
    def _screen(self, candidate, payload, duplicate):
        cod_supplied_null = "cod_amount" in payload and payload["cod_amount"] is None
        flags = validation.screen_booking(candidate, duplicate=duplicate, cod_supplied_null=cod_supplied_null)
        if flags.critical:
            logger.info(
                "Booking %s rejected: %s",
                candidate.consignment_number or "<missing>", ", ".join(flags.critical),
            )
            fields = [validation.FLAG_FIELDS[flag] for flag in flags.critical]
            raise ValidationError("Booking failed validation", fields=fields, flags=flags)
        return flags

    def create(self, data, identity=None) -> Tuple[Consignment, "validation.ValidationFlags"]:
        """Create an agency booking in status pending, or raise ValidationError with its flags."""
        payload = dict(data)
        cn = str(payload.get("consignment_number") or "").strip().upper()
        if cn and not LOOKUP_PATTERN.match(cn):
            raise ValidationError("Invalid consignment number format", fields=["consignment_number"])
        payload["consignment_number"] = cn

        if identity is not None and identity.is_customer:
            payload["account_no"] = identity.account_no
            payload["agent_name"] = payload.get("agent_name") or identity.display_name
        if not payload.get("agent_name") and payload.get("account_no"):
            payload["agent_name"] = payload["account_no"]

        candidate = Consignment.from_payload(payload, source=Source.AGENCY)
        flags = self._screen(candidate, payload, duplicate=bool(cn) and self.exists(cn))

        try:
            with transaction.atomic():
                booking = AgencyBooking.objects.create(
                    status=ConsignmentStatus.PENDING,
                    validation_flags=flags.to_json(),
                    **_model_fields(AgencyBooking, payload),
                )
        except IntegrityError:
            duplicate = validation.ValidationFlags((validation.DUPLICATE_CN,), flags.moderate)
            raise ValidationError(
                "Consignment number already exists", fields=["consignment_number"], flags=duplicate,
            )

        logger.info("Booking %s created for account %s", booking.consignment_number, booking.account_no)
        return Consignment.from_agency_booking(booking), flags

    def generate_number(self):
        cn = generate_consignment_number()
        while self.exists(cn):
            cn = generate_consignment_number()
        return cn

    def create_direct(self, data, identity) -> Tuple[Consignment, "validation.ValidationFlags"]:
        """Create a direct booking (admin or customer portal) plus its agency mirror."""
        payload = dict(data)
        if identity.is_customer:
            created_by = DirectBooking.CreatedBy.CUSTOMER
            payload["customer_id"] = identity.user_id
        else:
            created_by = DirectBooking.CreatedBy.ADMIN
            if not payload.get("customer_id"):
                raise ValidationError("Customer is required", fields=["customer_id"])
        payload["customer_id"] = str(payload["customer_id"])
        payload["created_by"] = created_by

        cn = str(payload.get("consignment_number") or "").strip().upper()
        if cn:
            if not LOOKUP_PATTERN.match(cn):
                raise ValidationError("Invalid consignment number format", fields=["consignment_number"])
            duplicate = self.exists(cn)
        else:
            cn = self.generate_number()
            duplicate = False
        payload["consignment_number"] = cn

        candidate = Consignment.from_payload(
            {**payload, "account_no": MANUAL_ACCOUNT, "agent_name": created_by}, source=Source.DIRECT,
        )
        flags = self._screen(candidate, payload, duplicate=duplicate)

        try:
            with transaction.atomic():
                booking = DirectBooking.objects.create(
                    status=ConsignmentStatus.PENDING,
                    validation_flags=flags.to_json(),
                    **_model_fields(DirectBooking, payload),
                )
        except IntegrityError:
            duplicate_flags = validation.ValidationFlags((validation.DUPLICATE_CN,), flags.moderate)
            raise ValidationError(
                "Consignment number already exists", fields=["consignment_number"], flags=duplicate_flags,
            )

        self._mirror_direct_booking(booking, identity, flags)
        logger.info("Direct booking %s created by %s", booking.consignment_number, created_by)
        return Consignment.from_direct_booking(booking), flags

    def _mirror_direct_booking(self, booking, identity, flags):
        if identity.is_customer:
            account_no, agent_name = identity.account_no, identity.display_name
            portal = "Customer"
        else:
            customer_pk = parse_agent_id(booking.customer_id)
            customer = Agent.objects.filter(pk=customer_pk).first() if customer_pk else None
            account_no = customer.account_no if customer else None
            agent_name = customer.full_name if customer else identity.display_name
            portal = "Admin"
        try:
            with transaction.atomic():
                AgencyBooking.objects.create(
                    consignment_number=booking.consignment_number,
                    account_no=account_no or MANUAL_ACCOUNT,
                    agent_name=agent_name or booking.created_by,
                    consignee_name=booking.consignee_name,
                    consignee_address=booking.consignee_address,
                    consignee_mobile=booking.consignee_mobile,
                    pieces=booking.pieces,
                    weight=booking.weight,
                    cod_amount=booking.cod_amount,
                    destination_city=booking.destination_city,
                    origin_city=booking.origin_city,
                    service_type=booking.service_type,
                    booking_date=booking.booked_on,
                    remarks=f"Created via {portal} portal",
                    validation_flags=flags.to_json(),
                )
        except DatabaseError as exc:
            logger.warning("Agency mirror for %s not created: %s", booking.consignment_number, exc)

    # ── Status mutation ──────────────────────────────────────────────────────
    def _apply(self, source, record, new_status, entry, note=None, validation_flags=None):
        record.status = new_status
        fields = ["status", "updated_at"]
        if new_status == ConsignmentStatus.DELIVERED:
            record.delivery_date = entry["timestamp"]
            fields.append("delivery_date")
        if note:
            record.remarks = join_remarks(record.remarks, note)
            fields.append("remarks")
        if validation_flags is not None:
            record.validation_flags = validation_flags
            fields.append("validation_flags")
        record.save(update_fields=fields)
        StatusEntry.objects.create(
            source=source,
            consignment_number=record.consignment_number,
            status=new_status,
            reason=entry.get("reason") or "",
            remarks=entry.get("remarks") or "",
            updated_by=entry.get("updated_by") or "system",
            timestamp=entry["timestamp"],
        )

    def update_status(self, consignment_number, new_status, remarks=None, reason=None,
                      updated_by="system", note=None, validation_flags=None) -> Consignment:
        """
        Append a history entry and move the consignment to ``new_status``.

        ``note`` is also appended to the free-text remarks; ``validation_flags`` (already
        serialized) replaces the cached classification on the primary record.
        """
        if new_status not in ConsignmentStatus.values:
            raise ValidationError(f"Invalid status '{new_status}'", fields=["status"])
        cn = normalize_number(consignment_number)

        with transaction.atomic():
            located = self._locate(cn, lock=True)
            if located is None:
                raise NotFoundError("Consignment number not found in booking system")
            source, record = located
            entry = {
                "status":     new_status,
                "timestamp":  timezone.now(),
                "reason":     reason,
                "remarks":    remarks,
                "updated_by": str(updated_by or "system"),
            }
            self._apply(source, record, new_status, entry, note=note, validation_flags=validation_flags)

        self._propagate(cn, source, new_status, entry)
        return Consignment.from_record(source, record)

    def bulk_update_status(self, numbers, new_status, **kwargs) -> List[Consignment]:
        updated = []
        for cn in numbers:
            try:
                updated.append(self.update_status(cn, new_status, **kwargs))
            except NotFoundError:
                logger.warning("Skipping %s: not found in booking system", cn)
        return updated

    def append_remark(self, consignment_number, note) -> Consignment:
        cn = normalize_number(consignment_number)
        with transaction.atomic():
            located = self._locate(cn, lock=True)
            if located is None:
                raise NotFoundError("Consignment number not found in booking system")
            source, record = located
            record.remarks = join_remarks(record.remarks, note)
            record.save(update_fields=["remarks", "updated_at"])
        return Consignment.from_record(source, record)

    @transaction.atomic
    def delete(self, consignment_number) -> List[str]:
        cn = normalize_number(consignment_number)
        removed = []
        for source, model in self.FAMILIES:
            deleted, _ = model.objects.filter(consignment_number=cn).delete()
            if deleted:
                removed.append(source)
        if not removed:
            raise NotFoundError("Consignment number not found in booking system")
        StatusEntry.objects.filter(consignment_number=cn, source__in=removed).delete()
        logger.info("Consignment %s deleted from %s", cn, ", ".join(removed))
        return removed

    # ── Propagation to the secondary family ──────────────────────────────────
    @staticmethod
    def _other(source):
        return Source.DIRECT if source == Source.AGENCY else Source.AGENCY

    def _write_secondary(self, target, cn, new_status, entry) -> bool:
        model = self.MODELS[target]
        try:
            with transaction.atomic():
                record = model.objects.select_for_update().filter(consignment_number=cn).first()
                if record is None:
                    return False
                self._apply(target, record, new_status, entry)
        except DatabaseError as exc:
            raise PropagationError(f"Could not mirror {new_status} onto {target} for {cn}") from exc
        return True

    def _propagate(self, cn, source, new_status, entry):
        target = self._other(source)
        try:
            self._write_secondary(target, cn, new_status, entry)
        except PropagationError as exc:
            cause = exc.__cause__ or exc
            logger.warning("Propagation of %s to %s failed for %s: %s", new_status, target, cn, cause)
            PropagationFailure.objects.create(
                consignment_number=cn,
                target=target,
                status=new_status,
                entry=_serialize_entry(entry),
                last_error=str(cause),
            )

    def retry_propagation(self, failure: PropagationFailure) -> bool:
        """Bring the secondary record in line with the primary; True once resolved."""
        failure.attempts += 1
        located = self._locate(failure.consignment_number)
        if located is None or located[0] == failure.target:
            failure.resolved = True
            failure.last_error = "Primary record no longer exists"
            failure.save(update_fields=["attempts", "resolved", "last_error", "updated_at"])
            return True

        _, primary = located
        entry = dict(failure.entry)
        entry["timestamp"] = parse_datetime(entry.get("timestamp") or "") or timezone.now()
        new_status = failure.status
        if primary.status != failure.status:
            # primary moved on since the failure; mirror where it is now
            new_status = primary.status
            entry = {
                "status":     new_status,
                "timestamp":  timezone.now(),
                "reason":     "Reconciled with primary record",
                "remarks":    None,
                "updated_by": "system",
            }

        try:
            self._write_secondary(failure.target, failure.consignment_number, new_status, entry)
        except PropagationError as exc:
            failure.last_error = str(exc.__cause__ or exc)
            failure.save(update_fields=["attempts", "last_error", "updated_at"])
            logger.warning(
                "Reconciliation of %s (%s) still failing after %d attempts",
                failure.consignment_number, failure.target, failure.attempts,
            )
            return False

        failure.resolved = True
        failure.save(update_fields=["attempts", "resolved", "updated_at"])
        logger.info("Reconciled %s onto %s as %s", failure.consignment_number, failure.target, new_status)
        return True

    # ── Listing ──────────────────────────────────────────────────────────────
    def listing(self, identity, filters=None, numbers=None) -> List[Consignment]:
        """
        Normalized consignments across both families, newest booking first.

        ``numbers`` restricts the result (rider scope); customers only see their own bookings.
        """
        filters = filters or {}
        agency = AgencyBooking.objects.all()
        direct = DirectBooking.objects.exclude(
            consignment_number__in=AgencyBooking.objects.values("consignment_number")
        )

        if numbers is not None:
            numbers = [str(n).upper() for n in numbers]
            agency = agency.filter(consignment_number__in=numbers)
            direct = direct.filter(consignment_number__in=numbers)

        if identity.is_customer:
            agency = agency.filter(account_no=identity.account_no) if identity.account_no else agency.none()
            direct = direct.filter(customer_id=identity.user_id)

        if filters.get("status"):
            agency = agency.filter(status=filters["status"])
            direct = direct.filter(status=filters["status"])
        if filters.get("destination_city"):
            agency = agency.filter(destination_city__icontains=filters["destination_city"])
            direct = direct.filter(destination_city__icontains=filters["destination_city"])
        if filters.get("consignment_number"):
            cn = str(filters["consignment_number"]).strip().upper()
            agency = agency.filter(consignment_number=cn)
            direct = direct.filter(consignment_number=cn)
        if filters.get("account_no"):
            agency = agency.filter(account_no__icontains=filters["account_no"])
            if filters["account_no"].strip().lower() not in MANUAL_ACCOUNT.lower():
                direct = direct.none()
        if filters.get("agent_name"):
            agency = agency.filter(agent_name__icontains=filters["agent_name"])
            direct = direct.filter(created_by__icontains=filters["agent_name"])
        if filters.get("date_from"):
            agency = agency.filter(booking_date__date__gte=filters["date_from"])
            direct = direct.filter(booked_on__date__gte=filters["date_from"])
        if filters.get("date_to"):
            agency = agency.filter(booking_date__date__lte=filters["date_to"])
            direct = direct.filter(booked_on__date__lte=filters["date_to"])

        rows = [Consignment.from_agency_booking(b) for b in agency]
        rows += [Consignment.from_direct_booking(b) for b in direct]
        rows.sort(key=lambda c: c.booking_date or c.created_at, reverse=True)
        return rows

    def cancelled(self, filters=None) -> List[Consignment]:
        """Cancelled consignments for the void listing, most recently updated first."""
        filters = filters or {}
        querysets = {
            Source.AGENCY: AgencyBooking.objects.filter(status=ConsignmentStatus.CANCELLED),
            Source.DIRECT: DirectBooking.objects.filter(status=ConsignmentStatus.CANCELLED).exclude(
                consignment_number__in=AgencyBooking.objects.values("consignment_number")
            ),
        }
        rows = []
        for source, qs in querysets.items():
            if filters.get("destination_city"):
                qs = qs.filter(destination_city__icontains=filters["destination_city"])
            if filters.get("origin_city"):
                qs = qs.filter(origin_city__icontains=filters["origin_city"])
            start = str(filters.get("consignment_from") or "").strip().upper()
            end = str(filters.get("consignment_to") or "").strip().upper()
            if start and end:
                qs = qs.filter(consignment_number__gte=start, consignment_number__lte=end)
            elif start:
                qs = qs.filter(consignment_number__startswith=start)
            if filters.get("date_from"):
                qs = qs.filter(updated_at__date__gte=filters["date_from"])
            if filters.get("date_to"):
                qs = qs.filter(updated_at__date__lte=filters["date_to"])
            rows += [Consignment.from_record(source, record) for record in qs]
        rows.sort(key=lambda c: c.updated_at, reverse=True)
        return rows
