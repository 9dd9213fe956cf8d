"""URL routing for the booking domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import AvailabilityView, QuoteView, ReservationViewSet

router = DefaultRouter()
router.register(r"reservations", ReservationViewSet, basename="reservation")

urlpatterns = [
    path("availability/", AvailabilityView.as_view(), name="booking-availability"),
    path("quote/", QuoteView.as_view(), name="booking-quote"),
    path("", include(router.urls)),
]
