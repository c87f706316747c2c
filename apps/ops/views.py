"""
Operations views:
  - Deep health check (DB, cache, disk)
  - Prometheus-formatted lifecycle metrics
  - Admin operations summary
"""

import os
import logging

from django.core.cache import cache
from django.db import connection
from django.db.models import Count
from django.http import HttpResponse
from django.utils import timezone
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from drf_spectacular.utils import extend_schema

from apps.authentication.permissions import IsAdmin
from apps.consignments.responses import success

logger = logging.getLogger("courierhub.ops")


def _status_counts():
    from apps.consignments.models import AgencyBooking, DirectBooking

    direct_only = DirectBooking.objects.exclude(
        consignment_number__in=AgencyBooking.objects.values("consignment_number")
    )
    counts = {}
    for qs in (AgencyBooking.objects.all(), direct_only):
        for status, count in qs.values_list("status").annotate(c=Count("id")):
            counts[status] = counts.get(status, 0) + count
    return counts


# ── GET /api/health/deep/ ─────────────────────────────────────────────────────
@extend_schema(tags=["Ops"], summary="Deep health check — DB, cache, disk")
class DeepHealthView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        checks = {}

        # Database
        try:
            with connection.cursor() as cur:
                cur.execute("SELECT 1")
            checks["database"] = "ok"
        except Exception as exc:
            checks["database"] = f"error: {exc}"

        # Cache (Redis in production)
        try:
            cache.set("healthcheck", "1", 5)
            checks["cache"] = "ok" if cache.get("healthcheck") == "1" else "miss"
        except Exception as exc:
            checks["cache"] = f"error: {exc}"

        # Disk
        try:
            stat  = os.statvfs("/")
            free_gb = (stat.f_bavail * stat.f_frsize) / (1024 ** 3)
            checks["disk_free_gb"] = round(free_gb, 2)
            checks["disk"] = "ok" if free_gb > 1 else "low"
        except Exception as exc:
            checks["disk"] = f"error: {exc}"

        overall = "ok" if all(v == "ok" or isinstance(v, float) for v in checks.values()) else "degraded"
        if overall != "ok":
            logger.warning("Deep health check degraded: %s", checks)
        return Response({"status": overall, "checks": checks})


# ── GET /api/ops/metrics/ ────────────────────────────────────────────────────
@extend_schema(tags=["Ops"], summary="Prometheus-formatted lifecycle metrics")
class MetricsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        from apps.assignments.models import DeliverySheet
        from apps.consignments.models import PropagationFailure

        active_sheets = DeliverySheet.objects.filter(status=DeliverySheet.Status.ACTIVE).exclude(count=0).count()
        unresolved = PropagationFailure.objects.filter(resolved=False).count()

        # Prometheus text format
        lines = [
            "# HELP courierhub_consignments_total Consignments by status",
            "# TYPE courierhub_consignments_total gauge",
        ]
        for status, count in sorted(_status_counts().items()):
            lines.append(f'courierhub_consignments_total{{status="{status}"}} {count}')
        lines += [
            "",
            "# HELP courierhub_active_delivery_sheets Active delivery sheets holding consignments",
            "# TYPE courierhub_active_delivery_sheets gauge",
            f"courierhub_active_delivery_sheets {active_sheets}",
            "",
            "# HELP courierhub_propagation_failures_pending Status changes not yet mirrored",
            "# TYPE courierhub_propagation_failures_pending gauge",
            f"courierhub_propagation_failures_pending {unresolved}",
        ]
        return HttpResponse("\n".join(lines), content_type="text/plain; version=0.0.4")


# ── GET /api/admin/summary/ ──────────────────────────────────────────────────
@extend_schema(tags=["Admin"], summary="Operations overview — consignments, riders, returns")
class SummaryView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    def get(self, request):
        from apps.assignments.models import DeliverySheet
        from apps.authentication.models import Agent
        from apps.consignments.models import PropagationFailure
        from apps.returns.models import ReturnSheet

        midnight = timezone.localtime().replace(hour=0, minute=0, second=0, microsecond=0)
        active_sheets = DeliverySheet.objects.filter(status=DeliverySheet.Status.ACTIVE).exclude(count=0)

        return success({
            "consignments_by_status":  _status_counts(),
            "active_delivery_sheets":  active_sheets.count(),
            "riders_on_duty":          active_sheets.values("rider").distinct().count(),
            "active_riders":           Agent.objects.filter(role=Agent.Role.RIDER, is_active=True).count(),
            "returns_registered_today": ReturnSheet.objects.filter(created_at__gte=midnight).count(),
            "pending_propagation":     PropagationFailure.objects.filter(resolved=False).count(),
        })
