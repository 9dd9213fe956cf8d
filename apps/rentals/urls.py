"""URL routing for the rate catalog."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import AvailabilityBlockViewSet, PricingRuleViewSet

rule_list = PricingRuleViewSet.as_view({"get": "list", "post": "create"})
rule_detail = PricingRuleViewSet.as_view({"patch": "partial_update"})
rule_deactivate = PricingRuleViewSet.as_view({"post": "deactivate"})
rule_activate = PricingRuleViewSet.as_view({"post": "activate"})

block_list = AvailabilityBlockViewSet.as_view({"post": "create"})

urlpatterns = [
    # Seasonal pricing rules
    path("<uuid:unit_id>/pricing-rules/", rule_list, name="unit-pricing-rule-list"),
    path("<uuid:unit_id>/pricing-rules/<uuid:pk>/", rule_detail, name="unit-pricing-rule-detail"),
    path(
        "<uuid:unit_id>/pricing-rules/<uuid:pk>/deactivate/",
        rule_deactivate,
        name="unit-pricing-rule-deactivate",
    ),
    path(
        "<uuid:unit_id>/pricing-rules/<uuid:pk>/activate/",
        rule_activate,
        name="unit-pricing-rule-activate",
    ),
    # Owner and maintenance blocks
    path("<uuid:unit_id>/blocks/", block_list, name="unit-block-list"),
]
