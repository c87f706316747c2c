"""Role permissions for the courier endpoints."""

from rest_framework.permissions import BasePermission


class IsBackOffice(BasePermission):
    """Admins and back-office staff."""
    message = "Admin or staff only."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_back_office)


class IsAdmin(BasePermission):
    message = "Admin only."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.role == "ADMIN")


class IsRider(BasePermission):
    message = "Rider only."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.role == "RIDER")
