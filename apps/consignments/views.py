"""Consignment API views."""

import logging
from rest_framework import generics, permissions, status
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema

from apps.assignments.service import AssignmentManager
from apps.authentication.identity import Identity
from apps.authentication.permissions import IsAdmin, IsBackOffice

from .exceptions import NotFoundError, RoleError
from .models import ConsignmentStatus, Source
from .responses import success
from .store import ConsignmentStore, normalize_number
from .validation import summarize
from .voiding import AutoVoidSweeper, VoidService
from . import serializers as sz

logger = logging.getLogger("courierhub.consignments")
store = ConsignmentStore()
assignments = AssignmentManager(store=store)
voids = VoidService(store=store, assignments=assignments)


def _visible_numbers(identity):
    """None means unrestricted; riders only see what is on their recent sheets."""
    if identity.is_rider:
        return assignments.recent_consignment_numbers(identity.user_id)
    return None


def _listing_numbers(identity, rider=None):
    numbers = _visible_numbers(identity)
    if not rider:
        return numbers
    held = assignments.rider_consignment_numbers(rider)
    if numbers is None:
        return held
    held = set(held)
    return [cn for cn in numbers if cn in held]


def _scoped_consignment(identity, consignment_number):
    consignment = store.find_by_number(consignment_number)
    if identity.is_back_office:
        return consignment
    if identity.is_customer:
        record = consignment.record
        if consignment.source == Source.AGENCY:
            owns = bool(identity.account_no) and record.account_no == identity.account_no
        else:
            owns = record.customer_id == identity.user_id
        if owns:
            return consignment
    elif identity.is_rider and consignment.consignment_number in _visible_numbers(identity):
        return consignment
    # do not reveal consignments outside the caller's scope
    raise NotFoundError("Consignment number not found in booking system")


# ── GET/POST /api/consignments/ ───────────────────────────────────────────────
@extend_schema(tags=["Consignments"], summary="List consignments / create an agency booking")
class ConsignmentListCreateView(generics.GenericAPIView):
    permission_classes = [permissions.IsAuthenticated]

    @extend_schema(parameters=[sz.ConsignmentFilterSerializer], responses=sz.ConsignmentSerializer(many=True))
    def get(self, request):
        filters = sz.ConsignmentFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        identity = Identity.from_user(request.user)
        rows = store.listing(
            identity, filters.validated_data,
            numbers=_listing_numbers(identity, filters.validated_data.get("rider")),
        )
        page = self.paginate_queryset(rows)
        visible = page if page is not None else rows
        context = {"sheets": assignments.sheets_holding(c.consignment_number for c in visible)}
        data = sz.ConsignmentSerializer(visible, many=True, context=context).data
        if page is not None:
            data = self.get_paginated_response(data).data
        return success(data)

    @extend_schema(request=sz.BookingCreateSerializer, responses=sz.ConsignmentSerializer)
    def post(self, request):
        identity = Identity.from_user(request.user)
        if identity.is_rider:
            raise RoleError("Riders cannot create bookings")
        ser = sz.BookingCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        consignment, flags = store.create(ser.validated_data, identity=identity)
        return success(
            sz.ConsignmentSerializer(consignment).data,
            "Booking created",
            status.HTTP_201_CREATED,
            flags={"critical": list(flags.critical), "moderate": list(flags.moderate)},
        )


# ── POST /api/direct-bookings/ ────────────────────────────────────────────────
@extend_schema(tags=["Consignments"], summary="Create a direct (manual) booking",
               request=sz.DirectBookingCreateSerializer, responses=sz.ConsignmentSerializer)
class DirectBookingCreateView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        identity = Identity.from_user(request.user)
        if not (identity.is_customer or identity.is_back_office):
            raise RoleError("Only customers or staff can create direct bookings")
        ser = sz.DirectBookingCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        consignment, flags = store.create_direct(ser.validated_data, identity)
        return success(
            sz.ConsignmentSerializer(consignment).data,
            "Manual booking created",
            status.HTTP_201_CREATED,
            flags={"critical": list(flags.critical), "moderate": list(flags.moderate)},
        )


# ── GET/DELETE /api/consignments/{cn}/ ────────────────────────────────────────
@extend_schema(tags=["Consignments"], summary="Consignment detail with history / delete (admin)")
class ConsignmentDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get_permissions(self):
        if self.request.method == "DELETE":
            return [permissions.IsAuthenticated(), IsAdmin()]
        return super().get_permissions()

    @extend_schema(responses=sz.ConsignmentDetailSerializer)
    def get(self, request, consignment_number):
        consignment = _scoped_consignment(Identity.from_user(request.user), consignment_number)
        context = {
            "history": store.history(consignment),
            "sheets":  assignments.sheets_holding([consignment.consignment_number]),
        }
        return success(sz.ConsignmentDetailSerializer(consignment, context=context).data)

    def delete(self, request, consignment_number):
        removed = store.delete(consignment_number)
        return success({"consignment_number": normalize_number(consignment_number), "removed_from": removed},
                       "Consignment deleted")


# ── PUT /api/consignments/{cn}/status/ ────────────────────────────────────────
@extend_schema(tags=["Consignments"], summary="Update consignment status", request=sz.StatusUpdateSerializer)
class ConsignmentStatusView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def put(self, request, consignment_number):
        identity = Identity.from_user(request.user)
        ser = sz.StatusUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        consignment = _scoped_consignment(identity, consignment_number)
        new_status = ser.validated_data["status"]
        updated = store.update_status(
            consignment.consignment_number,
            new_status,
            remarks=ser.validated_data.get("remarks") or None,
            reason=ser.validated_data.get("reason") or None,
            updated_by=identity.user_id,
        )
        if new_status == ConsignmentStatus.DELIVERED:
            assignments.settle_delivered(updated.consignment_number)
        elif new_status == ConsignmentStatus.CANCELLED:
            assignments.release_cancelled(updated.consignment_number)
        logger.info("Consignment %s set to %s by %s", updated.consignment_number, new_status, identity.user_id)
        return success(sz.ConsignmentSerializer(updated).data, "Status updated")


# ── GET /api/void-consignments/ ───────────────────────────────────────────────
@extend_schema(tags=["Void"], summary="List cancelled consignments", parameters=[sz.VoidFilterSerializer])
class VoidListView(generics.GenericAPIView):
    permission_classes = [permissions.IsAuthenticated, IsBackOffice]

    def get(self, request):
        filters = sz.VoidFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        rows = voids.listing(filters.validated_data)
        page = self.paginate_queryset(rows)
        visible = page if page is not None else rows
        data = sz.VoidedConsignmentSerializer(visible, many=True).data
        if page is not None:
            data = self.get_paginated_response(data).data
        return success(data, summary=summarize(visible))


# ── POST /api/void-consignments/void/ ─────────────────────────────────────────
@extend_schema(tags=["Void"], summary="Void a consignment", request=sz.VoidRequestSerializer)
class VoidConsignmentView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsBackOffice]

    def post(self, request):
        ser = sz.VoidRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        consignment, flags = voids.void(
            Identity.from_user(request.user),
            ser.validated_data["consignment_number"],
            reason=ser.validated_data.get("reason") or None,
            remarks=ser.validated_data.get("remarks") or None,
        )
        return success(
            sz.ConsignmentSerializer(consignment).data,
            "Consignment voided",
            flags={"critical": list(flags.critical), "moderate": list(flags.moderate)},
        )


# ── POST /api/void-consignments/sweep/ ────────────────────────────────────────
@extend_schema(tags=["Void"], summary="Cancel every consignment carrying critical flags", request=None)
class SweepView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsBackOffice]

    def post(self, request):
        voided = AutoVoidSweeper(store, assignments).sweep()
        return success(voided, f"Auto-voided {len(voided)} consignments")
