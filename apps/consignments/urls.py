from django.urls import path
from .views import (
    ConsignmentListCreateView, DirectBookingCreateView, ConsignmentDetailView, ConsignmentStatusView,
    VoidListView, VoidConsignmentView, SweepView,
)

urlpatterns = [
    path("consignments/",                                   ConsignmentListCreateView.as_view(), name="consignment-list"),
    path("consignments/<str:consignment_number>/",          ConsignmentDetailView.as_view(),     name="consignment-detail"),
    path("consignments/<str:consignment_number>/status/",   ConsignmentStatusView.as_view(),     name="consignment-status"),
    path("direct-bookings/",                                DirectBookingCreateView.as_view(),   name="direct-booking-create"),
    path("void-consignments/",                              VoidListView.as_view(),              name="void-list"),
    path("void-consignments/void/",                         VoidConsignmentView.as_view(),       name="void-consignment"),
    path("void-consignments/sweep/",                        SweepView.as_view(),                 name="void-sweep"),
]
