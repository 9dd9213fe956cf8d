"""API views for the booking domain."""

from __future__ import annotations

from uuid import UUID

from rest_framework import status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from shared.domain.exceptions import NotFound
from shared.infrastructure.api import EngineErrorMixin

from apps.bookings.application.engine import BookingEngine
from apps.bookings.domain.entities import CancellationReason

from .serializers import (
    BookingCreateSerializer,
    CancelSerializer,
    ConfirmSerializer,
    QuoteRequestSerializer,
    StayQuerySerializer,
    availability_data,
    quote_data,
    reservation_data,
)


def get_engine() -> BookingEngine:
    return BookingEngine.default()


class AvailabilityView(EngineErrorMixin, APIView):
    """GET ?unit_id=&check_in=&check_out=: is the unit free for the stay."""

    def get(self, request):  # type: ignore
        query = StayQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = get_engine().check_availability(**query.validated_data)
        return Response(availability_data(result))


class QuoteView(EngineErrorMixin, APIView):
    """POST a stay and guest count, get the price breakdown that would be charged."""

    def post(self, request):  # type: ignore
        serializer = QuoteRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        quote = get_engine().quote_price(**serializer.validated_data)
        return Response(quote_data(quote))


class ReservationViewSet(EngineErrorMixin, viewsets.ViewSet):
    """Create, read and drive reservations through their lifecycle."""

    def _reservation_id(self, pk) -> UUID:
        try:
            return UUID(str(pk))
        except ValueError:
            raise NotFound(f"Reservation {pk} not found", reservation_id=str(pk)) from None

    def create(self, request):  # type: ignore
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reservation = get_engine().create_booking(**serializer.validated_data)
        return Response(reservation_data(reservation), status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):  # type: ignore
        reservation = get_engine().get_reservation(self._reservation_id(pk))
        return Response(reservation_data(reservation))

    @action(detail=True, methods=["post"])
    def confirm(self, request, pk=None):  # type: ignore
        serializer = ConfirmSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reservation = get_engine().confirm_booking(
            self._reservation_id(pk),
            payment_reference=serializer.validated_data["payment_reference"],
        )
        return Response(reservation_data(reservation))

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        serializer = CancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reservation = get_engine().cancel_booking(
            self._reservation_id(pk),
            reason=CancellationReason(serializer.validated_data["reason"]),
            note=serializer.validated_data["note"],
        )
        return Response(reservation_data(reservation))

    @action(detail=True, methods=["post"])
    def refund(self, request, pk=None):  # type: ignore
        reservation = get_engine().record_refund(self._reservation_id(pk))
        return Response(reservation_data(reservation))
