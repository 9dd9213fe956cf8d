"""Tests for the seasonal pricing rule and block API."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from shared.domain.value_objects import Money

from apps.rentals.domain.entities import RentalUnit
from apps.rentals.models import AvailabilityBlock, PricingRule
from apps.rentals.repositories import DjangoCatalogRepository


class PricingRuleAPITests(APITestCase):
    def setUp(self) -> None:
        self.owner = get_user_model().objects.create_user(username="owner", password="StrongPass123")
        now = datetime.now(timezone.utc)
        self.unit = RentalUnit(
            name="Chalet Chréa",
            base_rate=Money(1200000, "DZD"),
            cleaning_fee=Money(200000, "DZD"),
            max_guests=6,
            created_at=now,
            updated_at=now,
        )
        DjangoCatalogRepository().save_unit(self.unit)
        self.start = date.today() + timedelta(days=30)
        self.client.force_authenticate(self.owner)

    def _list_url(self, unit_id=None):
        return reverse("unit-pricing-rule-list", kwargs={"unit_id": unit_id or self.unit.id})

    def _rule_url(self, name, rule_id):
        return reverse(f"unit-pricing-rule-{name}", kwargs={"unit_id": self.unit.id, "pk": rule_id})

    def _create_rule(self, start_offset, end_offset, multiplier="1.5", label="Season"):
        return self.client.post(self._list_url(), {
            "start_date": str(self.start + timedelta(days=start_offset)),
            "end_date": str(self.start + timedelta(days=end_offset)),
            "multiplier": multiplier,
            "label": label,
        }, format="json")

    def test_owner_can_add_rule(self) -> None:
        response = self._create_rule(0, 10)

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        rule = PricingRule.objects.get(pk=response.data["id"])
        self.assertEqual(rule.multiplier, Decimal("1.5"))
        self.assertTrue(rule.is_active)

        listing = self.client.get(self._list_url())
        self.assertEqual([item["id"] for item in listing.data], [response.data["id"]])

    def test_overlapping_rule_is_rejected(self) -> None:
        self._create_rule(0, 10)

        response = self._create_rule(10, 20, multiplier="2")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["code"], "pricing_rule_overlap")
        self.assertEqual(PricingRule.objects.count(), 1)

    def test_invalid_rule_fields(self) -> None:
        self.assertEqual(self._create_rule(5, 5).status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self._create_rule(0, 5, multiplier="0").status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self._create_rule(0, 5, multiplier="12").status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_unit(self) -> None:
        response = self.client.post(self._list_url(uuid4()), {
            "start_date": str(self.start),
            "end_date": str(self.start + timedelta(days=2)),
            "multiplier": "1.1",
        }, format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND, response.data)

    def test_update_and_deactivate_rule(self) -> None:
        rule_id = self._create_rule(0, 10).data["id"]
        other_id = self._create_rule(20, 30).data["id"]

        response = self.client.patch(self._rule_url("detail", rule_id), {"multiplier": "1.25"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(Decimal(response.data["multiplier"]), Decimal("1.25"))
        self.assertEqual(response.data["label"], "Season")

        clash = self.client.patch(
            self._rule_url("detail", rule_id),
            {"end_date": str(self.start + timedelta(days=25))},
            format="json",
        )
        self.assertEqual(clash.status_code, status.HTTP_400_BAD_REQUEST, clash.data)

        response = self.client.post(self._rule_url("deactivate", other_id))
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertFalse(PricingRule.objects.get(pk=other_id).is_active)

        extended = self.client.patch(
            self._rule_url("detail", rule_id),
            {"end_date": str(self.start + timedelta(days=25))},
            format="json",
        )
        self.assertEqual(extended.status_code, status.HTTP_200_OK, extended.data)

        reactivate = self.client.post(self._rule_url("activate", other_id))
        self.assertEqual(reactivate.status_code, status.HTTP_400_BAD_REQUEST, reactivate.data)

    def test_block_dates(self) -> None:
        url = reverse("unit-block-list", kwargs={"unit_id": self.unit.id})

        response = self.client.post(url, {
            "start_date": str(self.start),
            "end_date": str(self.start + timedelta(days=3)),
            "kind": "maintenance",
            "reason": "Roof repair",
        }, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        block = AvailabilityBlock.objects.get(pk=response.data["id"])
        self.assertEqual(block.kind, AvailabilityBlock.Kind.MAINTENANCE)
