"""
Error taxonomy for the consignment lifecycle, and the DRF handler that renders it.

Services raise these; views let them bubble up to ``courier_exception_handler``.
"""

import logging
from typing import Any, Dict, Iterable, Optional

from django.conf import settings
from django.db import DatabaseError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger("courierhub.errors")


class CourierError(Exception):
    """Base class for lifecycle errors surfaced to API callers."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "COURIER_ERROR"

    def __init__(self, message: str, code: str = None, details: Dict[str, Any] = None):
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(CourierError):
    """Bad input shape, missing field, format mismatch or blocking validation flags."""

    default_code = "VALIDATION_ERROR"

    def __init__(self, message: str, fields: Optional[Iterable[str]] = None, flags=None):
        details = {}
        self.fields = list(fields or [])
        self.flags = flags
        if self.fields:
            details["fields"] = self.fields
        if flags is not None:
            details["flags"] = {"critical": list(flags.critical), "moderate": list(flags.moderate)}
        super().__init__(message, details=details)


class NotFoundError(CourierError):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"


class ConflictError(CourierError):
    status_code = status.HTTP_409_CONFLICT
    default_code = "CONFLICT"


class RoleError(CourierError):
    """The identity's role may not perform this operation."""

    status_code = status.HTTP_403_FORBIDDEN
    default_code = "FORBIDDEN"


class PropagationError(CourierError):
    """Secondary record family could not be updated. Logged, never returned to callers."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = "PROPAGATION_FAILED"


def courier_exception_handler(exc, context):
    """Render every failure as ``{"success": false, "message": ...}``."""
    if isinstance(exc, CourierError):
        body = {"success": False, "message": exc.message, "code": exc.code, **exc.details}
        return Response(body, status=exc.status_code)

    if isinstance(exc, DatabaseError):
        view = context.get("view")
        logger.exception("Storage error in %s", view.__class__.__name__ if view else "unknown view")
        body = {"success": False, "message": "Internal server error"}
        if settings.DEBUG:
            body["error"] = str(exc)
        return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    response = drf_exception_handler(exc, context)
    if response is None:
        return None

    data = response.data
    if isinstance(data, dict) and "detail" in data:
        message = str(data["detail"])
    else:
        message = "Request validation failed"
    response.data = {"success": False, "message": message, "errors": data}
    return response
