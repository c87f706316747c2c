"""CourierHub root URL configuration."""

from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

urlpatterns = [
    path("admin/", admin.site.urls),

    # OpenAPI / Interactive Docs
    path("api/schema/",  SpectacularAPIView.as_view(),       name="schema"),
    path("api/docs/",    SpectacularSwaggerView.as_view(), name="swagger-ui"),

    # Auth
    path("api/auth/",    include("apps.authentication.urls")),

    # Consignment lifecycle
    path("api/",                 include("apps.consignments.urls")),
    path("api/delivery-sheets/", include("apps.assignments.urls")),
    path("api/return-sheets/",   include("apps.returns.urls")),

    # Ops / Admin
    path("api/admin/",  include("apps.ops.urls")),
    path("api/health/", include("apps.ops.health_urls")),
    path("api/ops/",    include("apps.ops.ops_urls")),
]

# Prometheus exporter (request/DB metrics from django-prometheus)
urlpatterns += [path("", include("django_prometheus.urls"))]
