import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("yachts", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Reservation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("booking_uid", models.CharField(max_length=64, unique=True)),
                (
                    "booking_uid_history",
                    models.JSONField(blank=True, default=list, help_text="Previous booking uids, oldest first."),
                ),
                ("start_at", models.DateTimeField()),
                ("end_at", models.DateTimeField()),
                (
                    "blocked_until",
                    models.DateTimeField(editable=False, help_text="End of the trip plus the inter-booking buffer."),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("booked", "Booked"), ("cancelled", "Cancelled")],
                        default="booked",
                        max_length=16,
                    ),
                ),
                (
                    "source",
                    models.CharField(
                        choices=[
                            ("public", "Public booking page"),
                            ("internal", "Internal calendar"),
                            ("admin", "Admin"),
                            ("legacy", "Legacy half-day embed"),
                        ],
                        default="public",
                        max_length=16,
                    ),
                ),
                (
                    "block_scope",
                    models.CharField(
                        choices=[
                            ("half_am", "Morning half-day"),
                            ("half_pm", "Afternoon half-day"),
                            ("full_day", "Full day"),
                            ("custom", "Hourly"),
                        ],
                        default="custom",
                        max_length=16,
                    ),
                ),
                (
                    "shift_fit",
                    models.CharField(
                        choices=[("morning", "Morning"), ("afternoon", "Afternoon"), ("flexible", "Flexible")],
                        default="flexible",
                        max_length=16,
                    ),
                ),
                ("guest_name", models.CharField(blank=True, max_length=200)),
                ("guest_email", models.EmailField(blank=True, max_length=254)),
                ("guest_phone", models.CharField(blank=True, max_length=40)),
                ("notes", models.TextField(blank=True)),
                ("cancellation_reason", models.CharField(blank=True, max_length=500)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="yacht_reservations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "yacht",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reservations",
                        to="yachts.yacht",
                    ),
                ),
            ],
            options={
                "verbose_name": "Reservation",
                "verbose_name_plural": "Reservations",
                "ordering": ["start_at"],
                "indexes": [
                    models.Index(fields=["yacht", "start_at"], name="reservation_yacht_start_idx"),
                    models.Index(fields=["status"], name="reservation_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(end_at__gt=models.F("start_at")),
                        name="reservation_valid_interval",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReservationChangeLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("booking_uid", models.CharField(db_index=True, max_length=64)),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("create", "Created"),
                            ("reschedule", "Rescheduled"),
                            ("cancel", "Cancelled"),
                            ("update", "Details updated"),
                        ],
                        max_length=16,
                    ),
                ),
                ("actor_label", models.CharField(blank=True, max_length=150)),
                ("payload", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="reservation_changes",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "reservation",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="change_log",
                        to="bookings.reservation",
                    ),
                ),
            ],
            options={
                "verbose_name": "Reservation change",
                "verbose_name_plural": "Reservation changes",
                "ordering": ["created_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="BookingRateLimit",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("endpoint", models.CharField(max_length=64)),
                ("ip_hash", models.CharField(blank=True, db_index=True, max_length=64)),
                ("email_hash", models.CharField(blank=True, db_index=True, max_length=64)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
            ],
            options={
                "verbose_name": "Booking rate limit hit",
                "verbose_name_plural": "Booking rate limit hits",
            },
        ),
        migrations.CreateModel(
            name="BookingRequestLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("endpoint", models.CharField(max_length=64)),
                ("request_id", models.CharField(db_index=True, max_length=64)),
                ("status_code", models.PositiveSmallIntegerField()),
                ("details", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
            ],
            options={
                "verbose_name": "Booking request log",
                "verbose_name_plural": "Booking request logs",
                "ordering": ["-created_at"],
            },
        ),
    ]
