from django.urls import path
from .views import (
    DeliverySheetListView, DeliverySheetDetailView, ActiveRidersView, AssignView, RemoveView,
    RiderOverviewView, RiderStatisticsView, RiderCompleteView, MySheetView, AcceptView, DeclineView,
)

urlpatterns = [
    path("",                                        DeliverySheetListView.as_view(),   name="sheet-list"),
    path("<int:pk>/",                               DeliverySheetDetailView.as_view(), name="sheet-detail"),
    path("riders/",                                 ActiveRidersView.as_view(),        name="sheet-riders"),
    path("assign/",                                 AssignView.as_view(),              name="sheet-assign"),
    path("remove/",                                 RemoveView.as_view(),              name="sheet-remove"),
    path("rider/<str:rider_id>/",                   RiderOverviewView.as_view(),       name="sheet-rider"),
    path("rider/<str:rider_id>/statistics/",        RiderStatisticsView.as_view(),     name="sheet-rider-statistics"),
    path("rider/<str:rider_id>/complete/",          RiderCompleteView.as_view(),       name="sheet-rider-complete"),
    path("mine/",                                   MySheetView.as_view(),             name="sheet-mine"),
    path("mine/<str:consignment_number>/accept/",   AcceptView.as_view(),              name="sheet-accept"),
    path("mine/<str:consignment_number>/decline/",  DeclineView.as_view(),             name="sheet-decline"),
]
