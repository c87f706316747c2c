"""Delivery sheet (rider assignment) API views."""

import logging
from rest_framework import generics, permissions, status
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema
from django_filters.rest_framework import DjangoFilterBackend

from apps.authentication.identity import Identity
from apps.authentication.permissions import IsBackOffice, IsRider
from apps.consignments.exceptions import RoleError
from apps.consignments.responses import paginated, success

from .models import DeliverySheet
from .service import AssignmentManager
from . import serializers as sz

logger = logging.getLogger("courierhub.assignments")
manager = AssignmentManager()


# ── GET /api/delivery-sheets/ ─────────────────────────────────────────────────
@extend_schema(tags=["Delivery Sheets"], summary="List delivery sheets (staff)")
class DeliverySheetListView(generics.ListAPIView):
    serializer_class   = sz.DeliverySheetSerializer
    permission_classes = [permissions.IsAuthenticated, IsBackOffice]
    filter_backends    = [DjangoFilterBackend]
    filterset_fields   = ["status", "rider"]
    queryset           = DeliverySheet.objects.all()

    def list(self, request, *args, **kwargs):
        return paginated(self, self.filter_queryset(self.get_queryset()), self.serializer_class)


# ── GET /api/delivery-sheets/{id}/ ────────────────────────────────────────────
@extend_schema(tags=["Delivery Sheets"], summary="Delivery sheet with its parcels (staff)")
class DeliverySheetDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsBackOffice]

    def get(self, request, pk):
        detail = manager.sheet_detail(pk)
        return success(sz.SheetDetailSerializer(detail).data)


# ── GET /api/delivery-sheets/riders/ ──────────────────────────────────────────
@extend_schema(tags=["Delivery Sheets"], summary="Active riders available for assignment")
class ActiveRidersView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsBackOffice]

    def get(self, request):
        riders = manager.active_riders()
        return success(sz.RiderSerializer(riders, many=True).data)


# ── POST /api/delivery-sheets/assign/ ─────────────────────────────────────────
@extend_schema(tags=["Delivery Sheets"], summary="Assign a consignment to a rider", request=sz.AssignSerializer)
class AssignView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        ser = sz.AssignSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        sheet = manager.assign(
            Identity.from_user(request.user),
            ser.validated_data["rider_id"],
            ser.validated_data["consignment_number"],
        )
        return success(
            sz.DeliverySheetSerializer(sheet).data,
            "New delivery sheet created and consignment set to in-transit",
            status.HTTP_201_CREATED,
        )


# ── POST /api/delivery-sheets/remove/ ─────────────────────────────────────────
@extend_schema(tags=["Delivery Sheets"], summary="Take a consignment off a rider's active sheet", request=sz.AssignSerializer)
class RemoveView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        ser = sz.AssignSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        sheet = manager.remove(
            Identity.from_user(request.user),
            ser.validated_data["rider_id"],
            ser.validated_data["consignment_number"],
        )
        return success(sz.DeliverySheetSerializer(sheet).data, "Consignment removed and set back to pending")


def _own_or_staff(identity, rider_id):
    if identity.is_back_office:
        return
    if identity.is_rider and identity.user_id == str(rider_id):
        return
    raise RoleError("You can only view your own delivery sheets")


# ── GET /api/delivery-sheets/rider/{rider_id}/ ────────────────────────────────
@extend_schema(tags=["Delivery Sheets"], summary="Active sheets and parcels of a rider")
class RiderOverviewView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, rider_id):
        _own_or_staff(Identity.from_user(request.user), rider_id)
        overview = manager.rider_overview(rider_id)
        return success(sz.RiderOverviewSerializer(overview).data)


# ── GET /api/delivery-sheets/rider/{rider_id}/statistics/ ─────────────────────
@extend_schema(tags=["Delivery Sheets"], summary="Parcel counts and COD totals per status for a rider",
               responses=sz.RiderStatisticsSerializer)
class RiderStatisticsView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, rider_id):
        _own_or_staff(Identity.from_user(request.user), rider_id)
        return success(sz.RiderStatisticsSerializer(manager.rider_statistics(rider_id)).data)


# ── POST /api/delivery-sheets/rider/{rider_id}/complete/ ─────────────────────
@extend_schema(tags=["Delivery Sheets"], summary="Complete a rider's active sheets", request=sz.CompleteSheetSerializer)
class RiderCompleteView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, rider_id):
        ser = sz.CompleteSheetSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        sheets = manager.complete(
            Identity.from_user(request.user), rider_id, ser.validated_data.get("remarks") or None,
        )
        return success(
            sz.DeliverySheetSerializer(sheets, many=True).data,
            "Delivery sheet completed and consignments marked delivered",
        )


# ── GET /api/delivery-sheets/mine/ ────────────────────────────────────────────
@extend_schema(tags=["Delivery Sheets"], summary="The authenticated rider's active sheets")
class MySheetView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsRider]

    def get(self, request):
        overview = manager.rider_overview(request.user.pk)
        return success(sz.RiderOverviewSerializer(overview).data)


# ── POST /api/delivery-sheets/mine/{cn}/accept/ ───────────────────────────────
@extend_schema(tags=["Delivery Sheets"], summary="Rider accepts an assigned consignment", request=None)
class AcceptView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsRider]

    def post(self, request, consignment_number):
        consignment = manager.accept(Identity.from_user(request.user), consignment_number)
        return success(
            {"consignment_number": consignment.consignment_number, "status": consignment.status},
            "Consignment accepted",
        )


# ── POST /api/delivery-sheets/mine/{cn}/decline/ ──────────────────────────────
@extend_schema(tags=["Delivery Sheets"], summary="Rider declines an assigned consignment", request=sz.DeclineSerializer)
class DeclineView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsRider]

    def post(self, request, consignment_number):
        ser = sz.DeclineSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        sheet = manager.decline(
            Identity.from_user(request.user), consignment_number, ser.validated_data["reason"],
        )
        return success(sz.DeliverySheetSerializer(sheet).data, "Consignment declined")
