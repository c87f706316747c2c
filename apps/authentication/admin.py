from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import Agent, RiderProfile


@admin.register(Agent)
class AgentAdmin(BaseUserAdmin):
    list_display  = ("phone", "full_name", "role", "account_no", "is_active", "created_at")
    list_filter   = ("role", "is_active")
    search_fields = ("phone", "full_name", "account_no")
    ordering      = ("-created_at",)
    fieldsets = (
        (None,          {"fields": ("phone", "password")}),
        ("Personal",    {"fields": ("full_name", "account_no")}),
        ("Role",        {"fields": ("role",)}),
        ("Permissions", {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")}),
    )
    add_fieldsets = (
        (None, {"classes": ("wide",), "fields": ("phone", "full_name", "role", "password1", "password2")}),
    )


@admin.register(RiderProfile)
class RiderProfileAdmin(admin.ModelAdmin):
    list_display  = ("agent", "rider_code", "mobile_no", "active", "created_at")
    list_filter   = ("active",)
    search_fields = ("rider_code", "mobile_no", "agent__full_name")
