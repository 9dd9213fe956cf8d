"""API views for the rate catalog."""

from __future__ import annotations

from uuid import UUID

from rest_framework import status, viewsets  # type: ignore
from rest_framework.response import Response  # type: ignore

from shared.domain.exceptions import NotFound
from shared.infrastructure.api import EngineErrorMixin

from apps.bookings.conf import engine_settings
from apps.rentals.domain.entities import BlockKind
from apps.rentals.repositories import DjangoCatalogRepository
from apps.rentals.services import PricingRuleService

from .serializers import AvailabilityBlockSerializer, PricingRuleSerializer, block_data, rule_data


def get_rule_service() -> PricingRuleService:
    return PricingRuleService(
        DjangoCatalogRepository(),
        lock_timeout=engine_settings().lock_timeout_seconds,
    )


class PricingRuleViewSet(EngineErrorMixin, viewsets.ViewSet):
    """Owner management of a unit's seasonal pricing rules."""

    def _rule_id(self, unit_id: UUID, pk) -> UUID:
        service = get_rule_service()
        try:
            rule_id = UUID(str(pk))
        except ValueError:
            raise NotFound(f"Pricing rule {pk} not found", rule_id=str(pk)) from None
        if service.catalog_repo.get_rule(rule_id).unit_id != unit_id:
            raise NotFound(f"Pricing rule {pk} not found", rule_id=str(pk))
        return rule_id

    def list(self, request, unit_id=None):  # type: ignore
        catalog = get_rule_service().catalog_repo.get_catalog(unit_id)
        rules = sorted(catalog.rules, key=lambda rule: rule.start_date)
        return Response([rule_data(rule) for rule in rules])

    def create(self, request, unit_id=None):  # type: ignore
        serializer = PricingRuleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        rule = get_rule_service().add_rule(unit_id, **serializer.validated_data)
        return Response(rule_data(rule), status=status.HTTP_201_CREATED)

    def partial_update(self, request, unit_id=None, pk=None):  # type: ignore
        rule_id = self._rule_id(unit_id, pk)
        serializer = PricingRuleSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        rule = get_rule_service().update_rule(rule_id, **serializer.validated_data)
        return Response(rule_data(rule))

    def deactivate(self, request, unit_id=None, pk=None):  # type: ignore
        rule = get_rule_service().deactivate_rule(self._rule_id(unit_id, pk))
        return Response(rule_data(rule))

    def activate(self, request, unit_id=None, pk=None):  # type: ignore
        rule = get_rule_service().activate_rule(self._rule_id(unit_id, pk))
        return Response(rule_data(rule))


class AvailabilityBlockViewSet(EngineErrorMixin, viewsets.ViewSet):
    """Owner/maintenance blocks that take nights off the market."""

    def create(self, request, unit_id=None):  # type: ignore
        serializer = AvailabilityBlockSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        block = get_rule_service().block_dates(
            unit_id,
            data["start_date"],
            data["end_date"],
            kind=BlockKind(data["kind"]),
            reason=data["reason"],
        )
        return Response(block_data(block), status=status.HTTP_201_CREATED)
