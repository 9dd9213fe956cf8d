import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("rentals", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Reservation",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("requester_id", models.UUIDField(db_index=True)),
                ("booking_reference", models.CharField(editable=False, max_length=32, unique=True)),
                ("check_in", models.DateField()),
                ("check_out", models.DateField()),
                ("guest_count", models.PositiveSmallIntegerField(default=1)),
                ("guest_name", models.CharField(max_length=255)),
                ("guest_email", models.EmailField(max_length=254)),
                ("guest_phone", models.CharField(max_length=50)),
                ("guest_nationality", models.CharField(blank=True, max_length=64)),
                ("special_requests", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("confirmed", "Confirmed"), ("cancelled", "Cancelled")],
                        default="pending",
                        max_length=16,
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[("pending", "Awaiting payment"), ("paid", "Paid"), ("refunded", "Refunded")],
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("payment_reference", models.CharField(blank=True, max_length=128)),
                ("pricing", models.JSONField(help_text="Pricing breakdown snapshot in minor units.")),
                ("total_minor", models.PositiveBigIntegerField()),
                ("currency", models.CharField(max_length=3)),
                ("hold_expires_at", models.DateTimeField(blank=True, null=True)),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                (
                    "cancellation_reason",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("guest", "Guest"),
                            ("owner", "Owner"),
                            ("admin", "Administrator"),
                            ("expired", "Hold expired"),
                            ("lost_race", "Lost confirmation race"),
                            ("unavailable", "Dates no longer available"),
                        ],
                        max_length=16,
                    ),
                ),
                ("cancellation_note", models.CharField(blank=True, max_length=255)),
                ("refunded_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "unit",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reservations",
                        to="rentals.rentalunit",
                    ),
                ),
            ],
            options={
                "verbose_name": "Reservation",
                "verbose_name_plural": "Reservations",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["unit", "check_in", "check_out"], name="bookings_re_unit_id_2d4a61_idx"),
                    models.Index(fields=["status", "hold_expires_at"], name="bookings_re_status_7b9e03_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(check_out__gt=models.F("check_in")),
                        name="reservation_valid_dates",
                    ),
                    models.CheckConstraint(condition=models.Q(guest_count__gte=1), name="reservation_min_one_guest"),
                ],
            },
        ),
    ]
