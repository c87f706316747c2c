from django.contrib import admin
from .models import DeliverySheet, ActiveAssignment


@admin.register(DeliverySheet)
class DeliverySheetAdmin(admin.ModelAdmin):
    list_display  = ("id", "rider_name", "rider_code", "count", "status", "created_at", "completed_at")
    list_filter   = ("status",)
    search_fields = ("rider_name", "rider_code")
    readonly_fields = ("count", "created_at", "updated_at")
    ordering      = ("-created_at",)


@admin.register(ActiveAssignment)
class ActiveAssignmentAdmin(admin.ModelAdmin):
    list_display  = ("consignment_number", "sheet", "claimed_at")
    search_fields = ("consignment_number",)
