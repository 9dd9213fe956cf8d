"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging
from typing import Optional

from celery import shared_task  # type: ignore

from apps.bookings.application.engine import BookingEngine

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (run by Celery Beat, see config/celery.py)
# ============================================================================

@shared_task(name="bookings.cancel_expired_pending")
def cancel_expired_pending(unit_id: Optional[str] = None) -> dict[str, int]:
    """
    Cancel unpaid reservations whose hold window has elapsed.

    Runs every minute through Celery Beat. A reservation whose range is
    locked by a confirm in progress is left for the next run.

    Returns:
        dict: {"expired": number of reservations cancelled}
    """
    engine = BookingEngine.default()
    expired = engine.cancel_expired_pending(unit_id=unit_id)
    if expired:
        logger.info(f"Hold sweep cancelled {expired} reservations")
    return {"expired": expired}
