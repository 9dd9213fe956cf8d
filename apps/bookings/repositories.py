"""
Reservation repositories

The engine only talks to ReservationRepository. The in-memory version keeps
deep copies so that, like a database, two callers never share one object;
the Django version maps to apps.bookings.models.Reservation and takes row
locks when asked inside a transaction.
"""

from __future__ import annotations

import copy
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, FrozenSet, List, Optional
from uuid import UUID

from shared.application.uow import lock_for_update
from shared.domain.exceptions import NotFound
from shared.domain.value_objects import DateRange

from apps.bookings.domain.entities import (
    CancellationReason,
    GuestInfo,
    PaymentStatus,
    Reservation,
    ReservationStatus,
)
from apps.bookings.domain.pricing import PricingBreakdown

logger = logging.getLogger(__name__)


class ReservationRepository(ABC):

    @abstractmethod
    def get(self, reservation_id: UUID, lock: bool = False) -> Reservation:
        """Raises NotFound"""

    @abstractmethod
    def add(self, reservation: Reservation) -> None:
        pass

    @abstractmethod
    def save(self, reservation: Reservation) -> None:
        pass

    @abstractmethod
    def list_overlapping(
        self,
        unit_id: UUID,
        dates: DateRange,
        statuses: FrozenSet[ReservationStatus],
        exclude_id: Optional[UUID] = None,
        lock: bool = False,
    ) -> List[Reservation]:
        """
        Reservations of the unit in `statuses` overlapping [start, end)

        Implementations filter on all of unit, status, `exclude_id` and
        half-open overlap; callers use the result as is.
        """

    @abstractmethod
    def list_expired_pending(self, now: datetime, unit_id: Optional[UUID] = None) -> List[Reservation]:
        """Unpaid pending reservations whose hold ended at or before `now`"""


class InMemoryReservationRepository(ReservationRepository):

    def __init__(self):
        self._rows: Dict[UUID, Reservation] = {}
        self._lock = threading.RLock()

    def get(self, reservation_id: UUID, lock: bool = False) -> Reservation:
        with self._lock:
            try:
                return copy.deepcopy(self._rows[reservation_id])
            except KeyError:
                raise NotFound(
                    f"Reservation {reservation_id} not found",
                    reservation_id=str(reservation_id),
                ) from None

    def add(self, reservation: Reservation) -> None:
        with self._lock:
            if reservation.id in self._rows:
                raise ValueError(f"Reservation {reservation.id} already stored")
            self._rows[reservation.id] = self._snapshot(reservation)

    def save(self, reservation: Reservation) -> None:
        with self._lock:
            self._rows[reservation.id] = self._snapshot(reservation)

    @staticmethod
    def _snapshot(reservation: Reservation) -> Reservation:
        stored = copy.deepcopy(reservation)
        stored.clear_events()
        return stored

    def list_overlapping(
        self,
        unit_id: UUID,
        dates: DateRange,
        statuses: FrozenSet[ReservationStatus],
        exclude_id: Optional[UUID] = None,
        lock: bool = False,
    ) -> List[Reservation]:
        with self._lock:
            return [
                copy.deepcopy(row) for row in self._rows.values()
                if row.unit_id == unit_id
                and row.status in statuses
                and row.id != exclude_id
                and row.dates.overlaps_with(dates)
            ]

    def list_expired_pending(self, now: datetime, unit_id: Optional[UUID] = None) -> List[Reservation]:
        with self._lock:
            return [
                copy.deepcopy(row) for row in self._rows.values()
                if (unit_id is None or row.unit_id == unit_id) and row.is_hold_expired(now)
            ]

    def all(self) -> List[Reservation]:
        with self._lock:
            return [copy.deepcopy(row) for row in self._rows.values()]


class DjangoReservationRepository(ReservationRepository):

    def get(self, reservation_id: UUID, lock: bool = False) -> Reservation:
        from apps.bookings.models import Reservation as ReservationModel

        queryset = ReservationModel.objects.filter(pk=reservation_id)
        if lock:
            queryset = lock_for_update(queryset)
        row = queryset.first()
        if row is None:
            raise NotFound(
                f"Reservation {reservation_id} not found",
                reservation_id=str(reservation_id),
            )
        return self._to_domain(row)

    def add(self, reservation: Reservation) -> None:
        from apps.bookings.models import Reservation as ReservationModel

        ReservationModel.objects.create(id=reservation.id, **self._to_fields(reservation))

    def save(self, reservation: Reservation) -> None:
        from apps.bookings.models import Reservation as ReservationModel

        updated = ReservationModel.objects.filter(pk=reservation.id).update(
            **self._to_fields(reservation)
        )
        if not updated:
            raise NotFound(
                f"Reservation {reservation.id} not found",
                reservation_id=str(reservation.id),
            )

    def list_overlapping(
        self,
        unit_id: UUID,
        dates: DateRange,
        statuses: FrozenSet[ReservationStatus],
        exclude_id: Optional[UUID] = None,
        lock: bool = False,
    ) -> List[Reservation]:
        from apps.bookings.models import Reservation as ReservationModel

        queryset = ReservationModel.objects.filter(
            unit_id=unit_id,
            status__in=[status.value for status in statuses],
            check_in__lt=dates.end_date,
            check_out__gt=dates.start_date,
        )
        if exclude_id is not None:
            queryset = queryset.exclude(pk=exclude_id)
        if lock:
            queryset = lock_for_update(queryset)
        return [self._to_domain(row) for row in queryset.order_by("check_in")]

    def list_expired_pending(self, now: datetime, unit_id: Optional[UUID] = None) -> List[Reservation]:
        from apps.bookings.models import Reservation as ReservationModel

        queryset = ReservationModel.objects.filter(
            status=ReservationModel.Status.PENDING,
            payment_status=ReservationModel.PaymentStatus.PENDING,
            hold_expires_at__lte=now,
        )
        if unit_id is not None:
            queryset = queryset.filter(unit_id=unit_id)
        return [self._to_domain(row) for row in queryset.order_by("hold_expires_at")]

    @staticmethod
    def _to_fields(reservation: Reservation) -> dict:
        return {
            "unit_id": reservation.unit_id,
            "requester_id": reservation.requester_id,
            "booking_reference": reservation.booking_reference,
            "check_in": reservation.dates.start_date,
            "check_out": reservation.dates.end_date,
            "guest_count": reservation.guests,
            "guest_name": reservation.guest_info.name,
            "guest_email": reservation.guest_info.email,
            "guest_phone": reservation.guest_info.phone,
            "guest_nationality": reservation.guest_info.nationality,
            "special_requests": reservation.special_requests,
            "status": reservation.status.value,
            "payment_status": reservation.payment_status.value,
            "payment_reference": reservation.payment_reference,
            "pricing": reservation.pricing.to_dict(),
            "total_minor": reservation.pricing.total,
            "currency": reservation.pricing.currency,
            "hold_expires_at": reservation.hold_expires_at,
            "confirmed_at": reservation.confirmed_at,
            "cancelled_at": reservation.cancelled_at,
            "cancellation_reason": (
                reservation.cancellation_reason.value if reservation.cancellation_reason else ""
            ),
            "cancellation_note": reservation.cancellation_note,
            "refunded_at": reservation.refunded_at,
            "created_at": reservation.created_at,
            "updated_at": reservation.updated_at,
        }

    @staticmethod
    def _to_domain(row) -> Reservation:
        return Reservation(
            id=row.id,
            booking_reference=row.booking_reference,
            unit_id=row.unit_id,
            requester_id=row.requester_id,
            dates=DateRange(row.check_in, row.check_out),
            guests=row.guest_count,
            guest_info=GuestInfo(
                name=row.guest_name,
                email=row.guest_email,
                phone=row.guest_phone,
                nationality=row.guest_nationality,
            ),
            pricing=PricingBreakdown.from_dict(row.pricing),
            special_requests=row.special_requests,
            status=ReservationStatus(row.status),
            payment_status=PaymentStatus(row.payment_status),
            payment_reference=row.payment_reference,
            hold_expires_at=row.hold_expires_at,
            confirmed_at=row.confirmed_at,
            cancelled_at=row.cancelled_at,
            cancellation_reason=(
                CancellationReason(row.cancellation_reason) if row.cancellation_reason else None
            ),
            cancellation_note=row.cancellation_note,
            refunded_at=row.refunded_at,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
