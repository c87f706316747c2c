from django.contrib import admin
from .models import AgencyBooking, DirectBooking, StatusEntry, PropagationFailure


@admin.register(AgencyBooking)
class AgencyBookingAdmin(admin.ModelAdmin):
    list_display  = ("consignment_number", "status", "account_no", "agent_name", "destination_city", "cod_amount", "booking_date")
    list_filter   = ("status", "destination_city", "service_type")
    search_fields = ("consignment_number", "account_no", "agent_name", "consignee_name")
    readonly_fields = ("created_at", "updated_at")
    ordering      = ("-booking_date",)


@admin.register(DirectBooking)
class DirectBookingAdmin(admin.ModelAdmin):
    list_display  = ("consignment_number", "status", "created_by", "customer_id", "destination_city", "booked_on")
    list_filter   = ("status", "created_by", "fragile")
    search_fields = ("consignment_number", "customer_id", "consignee_name")
    readonly_fields = ("created_at", "updated_at")


@admin.register(StatusEntry)
class StatusEntryAdmin(admin.ModelAdmin):
    list_display  = ("consignment_number", "source", "status", "reason", "updated_by", "timestamp")
    list_filter   = ("source", "status")
    search_fields = ("consignment_number",)
    readonly_fields = ("timestamp",)


@admin.register(PropagationFailure)
class PropagationFailureAdmin(admin.ModelAdmin):
    list_display  = ("consignment_number", "target", "status", "attempts", "resolved", "created_at")
    list_filter   = ("resolved", "target")
    search_fields = ("consignment_number",)
