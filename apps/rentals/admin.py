"""Admin registration for the rate catalog."""

from __future__ import annotations

from django.contrib import admin

from .models import AvailabilityBlock, PricingRule, RentalUnit


class PricingRuleInline(admin.TabularInline):
    model = PricingRule
    extra = 0
    fields = ("start_date", "end_date", "multiplier", "label", "is_active")
    readonly_fields = fields


class AvailabilityBlockInline(admin.TabularInline):
    model = AvailabilityBlock
    extra = 0
    fields = ("start_date", "end_date", "kind", "reason")


@admin.register(RentalUnit)
class RentalUnitAdmin(admin.ModelAdmin):
    list_display = ("name", "currency", "base_rate_minor", "max_guests", "status", "updated_at")
    list_filter = ("status", "currency")
    search_fields = ("name",)
    readonly_fields = ("created_at", "updated_at")
    inlines = [PricingRuleInline, AvailabilityBlockInline]


@admin.register(PricingRule)
class PricingRuleAdmin(admin.ModelAdmin):
    """Rules are edited through the API so the overlap check always runs."""

    list_display = ("unit", "label", "start_date", "end_date", "multiplier", "is_active")
    list_filter = ("is_active",)
    search_fields = ("label", "unit__name")

    def has_add_permission(self, request):  # type: ignore
        return False

    def has_change_permission(self, request, obj=None):  # type: ignore
        return False
