from django.contrib import admin
from .models import ReturnSheet


@admin.register(ReturnSheet)
class ReturnSheetAdmin(admin.ModelAdmin):
    list_display  = ("id", "rider_name", "rider_code", "count", "outcome", "created_at")
    list_filter   = ("outcome",)
    search_fields = ("rider_name", "rider_code")
    readonly_fields = ("count", "created_at", "updated_at")
    ordering      = ("-created_at",)
