from django.urls import path
from .views import RegisterReturnView, ReturnSheetListView, TodaysBatchView, CompleteReturnView

urlpatterns = [
    path("",                   ReturnSheetListView.as_view(), name="return-list"),
    path("register/",          RegisterReturnView.as_view(),  name="return-register"),
    path("today/",             TodaysBatchView.as_view(),     name="return-today"),
    path("<int:pk>/complete/", CompleteReturnView.as_view(),  name="return-complete"),
]
