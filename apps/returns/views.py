"""Return sheet API views."""

import logging
from rest_framework import generics, permissions, status
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema
from django_filters.rest_framework import DjangoFilterBackend

from apps.authentication.identity import Identity
from apps.authentication.permissions import IsBackOffice
from apps.consignments.responses import paginated, success

from .service import ReturnManager
from . import serializers as sz

logger = logging.getLogger("courierhub.returns")
manager = ReturnManager()


# ── POST /api/return-sheets/register/ ─────────────────────────────────────────
@extend_schema(tags=["Returns"], summary="Register a returned consignment", request=sz.RegisterReturnSerializer)
class RegisterReturnView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        ser = sz.RegisterReturnSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        batch = manager.register_return(
            Identity.from_user(request.user),
            ser.validated_data["consignment_number"],
            rider_id=ser.validated_data.get("rider_id") or None,
        )
        return success(sz.ReturnSheetSerializer(batch).data, "Return registered successfully", status.HTTP_201_CREATED)


# ── GET /api/return-sheets/ ───────────────────────────────────────────────────
@extend_schema(tags=["Returns"], summary="List return sheets")
class ReturnSheetListView(generics.ListAPIView):
    serializer_class   = sz.ReturnSheetSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends    = [DjangoFilterBackend]
    filterset_fields   = ["rider", "outcome"]

    def get_queryset(self):
        return manager.batches(Identity.from_user(self.request.user))

    def list(self, request, *args, **kwargs):
        return paginated(self, self.filter_queryset(self.get_queryset()), self.serializer_class)


# ── GET /api/return-sheets/today/ ─────────────────────────────────────────────
@extend_schema(tags=["Returns"], summary="Today's open return sheet of a rider")
class TodaysBatchView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        batch = manager.todays_batch(Identity.from_user(request.user), request.query_params.get("rider_id"))
        return success(sz.TodaysBatchSerializer(batch).data)


# ── POST /api/return-sheets/{id}/complete/ ────────────────────────────────────
@extend_schema(tags=["Returns"], summary="Close a return sheet with an outcome (staff)", request=sz.CompleteReturnSerializer)
class CompleteReturnView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsBackOffice]

    def post(self, request, pk):
        ser = sz.CompleteReturnSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        batch = manager.complete_batch(
            Identity.from_user(request.user),
            pk,
            outcome=ser.validated_data.get("outcome") or None,
            remarks=ser.validated_data.get("remarks") or None,
        )
        return success(sz.ReturnSheetSerializer(batch).data, "Return sheet updated successfully")
