"""Engine configuration read from the BOOKING_ENGINE Django setting."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.exceptions import ImproperlyConfigured  # type: ignore

DEFAULTS = {
    "HOLD_MINUTES": 30,
    "SERVICE_FEE_RATE": "0.10",
    "MAX_ADVANCE_DAYS": 730,
    "LOCK_TIMEOUT_SECONDS": 5.0,
    "REFERENCE_PREFIX": "BK",
}


@dataclass(frozen=True)
class EngineConfig:
    hold_minutes: int = DEFAULTS["HOLD_MINUTES"]
    service_fee_rate: Decimal = Decimal(DEFAULTS["SERVICE_FEE_RATE"])
    max_advance_days: int = DEFAULTS["MAX_ADVANCE_DAYS"]
    lock_timeout_seconds: float = DEFAULTS["LOCK_TIMEOUT_SECONDS"]
    reference_prefix: str = DEFAULTS["REFERENCE_PREFIX"]

    def __post_init__(self):
        if self.hold_minutes < 1:
            raise ImproperlyConfigured("BOOKING_ENGINE['HOLD_MINUTES'] must be at least 1")
        if not Decimal("0") <= Decimal(self.service_fee_rate) < Decimal("1"):
            raise ImproperlyConfigured("BOOKING_ENGINE['SERVICE_FEE_RATE'] must be in [0, 1)")
        if self.max_advance_days < 1:
            raise ImproperlyConfigured("BOOKING_ENGINE['MAX_ADVANCE_DAYS'] must be positive")
        if self.lock_timeout_seconds <= 0:
            raise ImproperlyConfigured("BOOKING_ENGINE['LOCK_TIMEOUT_SECONDS'] must be positive")

    @property
    def hold_window(self) -> timedelta:
        return timedelta(minutes=self.hold_minutes)


def engine_settings() -> EngineConfig:
    """Build the config from settings.BOOKING_ENGINE, falling back to DEFAULTS."""

    configured = {**DEFAULTS, **getattr(settings, "BOOKING_ENGINE", {})}
    unknown = set(configured) - set(DEFAULTS)
    if unknown:
        raise ImproperlyConfigured(f"Unknown BOOKING_ENGINE keys: {', '.join(sorted(unknown))}")

    return EngineConfig(
        hold_minutes=int(configured["HOLD_MINUTES"]),
        service_fee_rate=Decimal(str(configured["SERVICE_FEE_RATE"])),
        max_advance_days=int(configured["MAX_ADVANCE_DAYS"]),
        lock_timeout_seconds=float(configured["LOCK_TIMEOUT_SECONDS"]),
        reference_prefix=str(configured["REFERENCE_PREFIX"]),
    )
