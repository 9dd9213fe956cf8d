"""REST helpers shared by the engine's API views."""

from __future__ import annotations

import logging

from rest_framework import status  # type: ignore
from rest_framework.response import Response  # type: ignore

from shared.domain.exceptions import BookingEngineError

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    "validation_error": status.HTTP_400_BAD_REQUEST,
    "pricing_rule_overlap": status.HTTP_400_BAD_REQUEST,
    "not_found": status.HTTP_404_NOT_FOUND,
    "booking_conflict": status.HTTP_409_CONFLICT,
    "lost_race": status.HTTP_409_CONFLICT,
    "invalid_transition": status.HTTP_409_CONFLICT,
    "lock_timeout": status.HTTP_503_SERVICE_UNAVAILABLE,
    "rule_conflict": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def engine_error_response(exc: BookingEngineError) -> Response:
    """Render an engine error as {"code", "detail", ...details}."""

    http_status = ERROR_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST)
    if http_status >= 500:
        logger.error(f"Engine error {exc.code}: {exc.message}")
    headers = {"Retry-After": "1"} if exc.code == "lock_timeout" else None
    return Response(exc.to_dict(), status=http_status, headers=headers)


class EngineErrorMixin:
    """Turns engine errors raised inside a DRF view into JSON responses."""

    def handle_exception(self, exc):  # type: ignore
        if isinstance(exc, BookingEngineError):
            return engine_error_response(exc)
        return super().handle_exception(exc)  # type: ignore[misc]
