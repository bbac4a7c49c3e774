from django.http import Http404
from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.response import Response
from rest_framework import status
import logging

logger = logging.getLogger("participation.core")


def _error_body(exc, response):
    """
    Flatten DRF's error payload so every error carries a stable code.

    APIException subclasses expose their code through get_codes(); field
    validation errors keep their per-field dict.
    """
    data = response.data
    if isinstance(data, dict) and set(data) == {"detail"}:
        if isinstance(exc, Http404):
            return {"detail": str(data["detail"]), "code": "not_found"}
        code = exc.get_codes() if hasattr(exc, "get_codes") else None
        if isinstance(code, dict):
            code = code.get("detail")
        return {"detail": str(data["detail"]), "code": code or "error"}
    return data


def custom_exception_handler(exc, context):
    """
    Wrap DRF + Django exceptions into a consistent response format.

    Success responses (2xx) are not touched.
    Only errors come through here.
    """
    response = drf_exception_handler(exc, context)

    if response is not None:
        if response.status_code >= 500:
            logger.error("API error %s: %s", response.status_code, exc)
        return Response(
            {
                "success": False,
                "status_code": response.status_code,
                "errors": _error_body(exc, response),
            },
            status=response.status_code,
            headers={k: v for k, v in response.items() if k in ("Retry-After", "WWW-Authenticate")},
        )

    # Unhandled exceptions -> 500
    logger.exception("Unhandled API exception", exc_info=exc)

    return Response(
        {
            "success": False,
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
            "errors": {"detail": "Internal server error.", "code": "internal_failure"},
        },
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
