"""Integration tests for booking API endpoints."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from shared.application.locks import range_locks
from shared.domain.value_objects import DateRange, Money

from apps.bookings.models import Reservation
from apps.rentals.domain.entities import RentalUnit
from apps.rentals.models import AvailabilityBlock, PricingRule
from apps.rentals.repositories import DjangoCatalogRepository


class BookingAPITests(APITestCase):
    """Covers creation, conflicts, confirmation races and cancellation."""

    def setUp(self) -> None:
        self.user = get_user_model().objects.create_user(username="guest", password="GuestPass123")
        now = datetime.now(timezone.utc)
        self.unit = RentalUnit(
            name="Appartement Bab El Oued",
            base_rate=Money(850000, "DZD"),
            cleaning_fee=Money(150000, "DZD"),
            tax_rate=Decimal("0.19"),
            tourist_tax=Money(500, "DZD"),
            max_guests=4,
            created_at=now,
            updated_at=now,
        )
        DjangoCatalogRepository().save_unit(self.unit)
        self.check_in = date.today() + timedelta(days=10)
        self.client.force_authenticate(self.user)
        self.list_url = reverse("reservation-list")

    def _payload(self, check_in: date, check_out: date, guests: int = 2) -> dict:
        return {
            "unit_id": str(self.unit.id),
            "requester_id": str(uuid4()),
            "check_in": str(check_in),
            "check_out": str(check_out),
            "guests": guests,
            "guest_info": {
                "name": "Lina Meziane",
                "email": "lina@example.com",
                "phone": "+213770000001",
            },
        }

    def _create(self, offset: int, nights: int = 3):
        check_in = self.check_in + timedelta(days=offset)
        response = self.client.post(
            self.list_url, self._payload(check_in, check_in + timedelta(days=nights)), format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        return response.data

    def _action(self, name: str, reservation_id: str, data: dict | None = None):
        url = reverse(f"reservation-{name}", args=[reservation_id])
        return self.client.post(url, data or {}, format="json")

    def test_availability_is_public(self) -> None:
        self.client.force_authenticate(None)
        url = reverse("booking-availability")

        response = self.client.get(url, {
            "unit_id": str(self.unit.id),
            "check_in": str(self.check_in),
            "check_out": str(self.check_in + timedelta(days=2)),
        })

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(response.data["available"])

    def test_quote_returns_breakdown(self) -> None:
        response = self.client.post(reverse("booking-quote"), {
            "unit_id": str(self.unit.id),
            "check_in": str(self.check_in),
            "check_out": str(self.check_in + timedelta(days=3)),
            "guests": 2,
        }, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["pricing"]["total"], 3516950)
        self.assertEqual(response.data["pricing"]["display"]["total"], "35169.50")
        self.assertEqual(response.data["pricing"]["display"]["taxes"], "5619.50")
        self.assertIn("valid_until", response.data)

    def test_guest_can_create_booking(self) -> None:
        data = self._create(0)

        self.assertEqual(data["status"], "pending")
        self.assertEqual(data["nights"], 3)
        self.assertTrue(data["booking_reference"].startswith("BK"))
        self.assertEqual(Reservation.objects.count(), 1)
        self.assertEqual(Reservation.objects.get().total_minor, 3516950)

        detail = self.client.get(reverse("reservation-detail", args=[data["id"]]))
        self.assertEqual(detail.status_code, status.HTTP_200_OK)
        self.assertEqual(detail.data["booking_reference"], data["booking_reference"])

    def test_prevent_double_booking_on_overlap(self) -> None:
        first = self._create(0)

        payload = self._payload(self.check_in + timedelta(days=1), self.check_in + timedelta(days=4))
        response = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)
        self.assertEqual(response.data["code"], "booking_conflict")
        self.assertEqual(response.data["conflicts"][0]["reservation_id"], first["id"])
        self.assertEqual(Reservation.objects.count(), 1)

    def test_back_to_back_bookings_are_allowed(self) -> None:
        self._create(0)
        self._create(3)

        self.assertEqual(Reservation.objects.count(), 2)

    def test_manual_block_prevents_booking(self) -> None:
        AvailabilityBlock.objects.create(
            unit_id=self.unit.id,
            start_date=self.check_in + timedelta(days=1),
            end_date=self.check_in + timedelta(days=2),
            kind=AvailabilityBlock.Kind.OWNER,
            reason="Renovation",
        )

        payload = self._payload(self.check_in, self.check_in + timedelta(days=3))
        response = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)
        self.assertEqual(len(response.data["blocks"]), 1)

    def test_invalid_payloads_are_rejected(self) -> None:
        same_day = self._payload(self.check_in, self.check_in)
        response = self.client.post(self.list_url, same_day, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["code"], "validation_error")

        too_many = self._payload(self.check_in, self.check_in + timedelta(days=2), guests=9)
        response = self.client.post(self.list_url, too_many, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["field"], "guests")

        missing = self._payload(self.check_in, self.check_in + timedelta(days=2))
        del missing["guest_info"]
        response = self.client.post(self.list_url, missing, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertIn("guest_info", response.data)

    def test_confirm_then_losing_confirm_gets_refund_flag(self) -> None:
        winner = self._create(0)
        # the losing stay was inserted while the winner's check was in flight
        loser_row = Reservation.objects.get(pk=winner["id"])
        loser_row.pk = uuid4()
        loser_row.booking_reference = "BKLOSER"
        loser_row.check_in = self.check_in + timedelta(days=1)
        loser_row.check_out = self.check_in + timedelta(days=4)
        loser_row.save(force_insert=True)

        response = self._action("confirm", winner["id"], {"payment_reference": "pay_winner"})
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "confirmed")

        response = self._action("confirm", str(loser_row.pk), {"payment_reference": "pay_loser"})
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)
        self.assertEqual(response.data["code"], "lost_race")
        self.assertTrue(response.data["refund_required"])

        loser_row.refresh_from_db()
        self.assertEqual(loser_row.status, Reservation.Status.CANCELLED)
        self.assertEqual(loser_row.cancellation_reason, Reservation.CancellationReason.LOST_RACE)
        self.assertEqual(loser_row.payment_status, Reservation.PaymentStatus.PAID)

        refund = self._action("refund", str(loser_row.pk))
        self.assertEqual(refund.status_code, status.HTTP_200_OK, refund.data)
        self.assertEqual(refund.data["payment_status"], "refunded")

    def test_guest_can_cancel_booking(self) -> None:
        created = self._create(0)

        response = self._action("cancel", created["id"], {"reason": "guest", "note": "Change of plans"})
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "cancelled")

        again = self._action("cancel", created["id"], {"reason": "owner"})
        self.assertEqual(again.status_code, status.HTTP_200_OK, again.data)
        self.assertEqual(again.data["cancellation_reason"], "guest")

        # nights are free again
        self._create(0)

    def test_system_reasons_cannot_be_sent(self) -> None:
        created = self._create(0)

        response = self._action("cancel", created["id"], {"reason": "lost_race"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)

    def test_refund_requires_cancelled_reservation(self) -> None:
        created = self._create(0)
        self._action("confirm", created["id"], {"payment_reference": "pay_1"})

        response = self._action("refund", created["id"])

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)
        self.assertEqual(response.data["code"], "invalid_transition")

    def test_unknown_reservation(self) -> None:
        response = self.client.get(reverse("reservation-detail", args=[uuid4()]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND, response.data)
        self.assertEqual(response.data["code"], "not_found")

        response = self.client.get(reverse("reservation-detail", args=["not-a-uuid"]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND, response.data)

    def test_busy_range_returns_503(self) -> None:
        created = self._create(0)
        dates = DateRange(self.check_in, self.check_in + timedelta(days=3))

        with range_locks.hold(self.unit.id, dates):
            response = self._action("confirm", created["id"], {"payment_reference": "pay_1"})

        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE, response.data)
        self.assertEqual(response.data["code"], "lock_timeout")
        self.assertEqual(response["Retry-After"], "1")

    def test_overlapping_stored_rules_surface_as_server_error(self) -> None:
        for start, end in ((0, 2), (1, 4)):
            PricingRule.objects.create(
                unit_id=self.unit.id,
                start_date=self.check_in + timedelta(days=start),
                end_date=self.check_in + timedelta(days=end),
                multiplier=Decimal("1.2"),
            )

        payload = self._payload(self.check_in, self.check_in + timedelta(days=3))
        response = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR, response.data)
        self.assertEqual(response.data["code"], "rule_conflict")
        self.assertEqual(Reservation.objects.count(), 0)
