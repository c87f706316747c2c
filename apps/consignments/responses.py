"""Success envelope shared by the lifecycle endpoints."""

from rest_framework import status
from rest_framework.response import Response


def success(data=None, message="OK", status_code=status.HTTP_200_OK, **extra):
    body = {"success": True, "message": message, "data": data}
    body.update(extra)
    return Response(body, status=status_code)


def paginated(view, rows, serializer_class, message="OK", context=None, **extra):
    """Paginate a list or queryset with the view's paginator and wrap it in the envelope."""
    context = context or {}
    page = view.paginate_queryset(rows)
    if page is None:
        return success(serializer_class(rows, many=True, context=context).data, message, **extra)
    data = serializer_class(page, many=True, context=context).data
    return success(view.get_paginated_response(data).data, message, **extra)
