import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="RentalUnit",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("owner_id", models.UUIDField(blank=True, db_index=True, null=True)),
                ("name", models.CharField(blank=True, max_length=255)),
                ("currency", models.CharField(default="DZD", max_length=3)),
                ("base_rate_minor", models.PositiveBigIntegerField(help_text="Base nightly rate in minor currency units.")),
                ("cleaning_fee_minor", models.PositiveBigIntegerField(default=0)),
                (
                    "tourist_tax_minor",
                    models.PositiveBigIntegerField(default=0, help_text="Flat per-stay tourist tax in minor currency units."),
                ),
                (
                    "tax_rate",
                    models.DecimalField(
                        decimal_places=4,
                        default=Decimal("0.0000"),
                        max_digits=5,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("0")),
                            django.core.validators.MaxValueValidator(Decimal("0.9999")),
                        ],
                    ),
                ),
                ("max_guests", models.PositiveSmallIntegerField(default=1)),
                ("min_nights", models.PositiveSmallIntegerField(default=1)),
                ("max_nights", models.PositiveSmallIntegerField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("available", "Available"), ("occupied", "Occupied"), ("maintenance", "Maintenance")],
                        default="available",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "verbose_name": "Rental unit",
                "verbose_name_plural": "Rental units",
                "ordering": ["name"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(base_rate_minor__gt=0), name="rental_unit_positive_rate"),
                    models.CheckConstraint(condition=models.Q(max_guests__gte=1), name="rental_unit_min_one_guest"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PricingRule",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                (
                    "multiplier",
                    models.DecimalField(
                        decimal_places=4,
                        max_digits=6,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("0.0001")),
                            django.core.validators.MaxValueValidator(Decimal("10")),
                        ],
                    ),
                ),
                ("label", models.CharField(blank=True, max_length=120)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "unit",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="pricing_rules",
                        to="rentals.rentalunit",
                    ),
                ),
            ],
            options={
                "verbose_name": "Pricing rule",
                "verbose_name_plural": "Pricing rules",
                "ordering": ["unit", "start_date"],
                "indexes": [models.Index(fields=["unit", "is_active", "start_date"], name="rentals_pri_unit_id_5c1e2a_idx")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(end_date__gt=models.F("start_date")),
                        name="pricing_rule_valid_dates",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(multiplier__gt=0) & models.Q(multiplier__lte=10),
                        name="pricing_rule_multiplier_bounds",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="AvailabilityBlock",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                (
                    "kind",
                    models.CharField(
                        choices=[("owner", "Blocked by owner"), ("maintenance", "Maintenance")],
                        default="owner",
                        max_length=20,
                    ),
                ),
                ("reason", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "unit",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="blocks",
                        to="rentals.rentalunit",
                    ),
                ),
            ],
            options={
                "verbose_name": "Availability block",
                "verbose_name_plural": "Availability blocks",
                "ordering": ["unit", "start_date"],
                "indexes": [models.Index(fields=["unit", "start_date", "end_date"], name="rentals_ava_unit_id_8f3b7d_idx")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(end_date__gt=models.F("start_date")),
                        name="availability_block_valid_dates",
                    ),
                ],
            },
        ),
    ]
