from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Yacht",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=150)),
                ("slug", models.SlugField(blank=True, max_length=160, unique=True)),
                ("vessel_type", models.CharField(blank=True, max_length=60)),
                ("capacity", models.PositiveSmallIntegerField(default=1)),
                (
                    "booking_mode",
                    models.CharField(
                        choices=[("legacy_embed", "Legacy half-day embed"), ("policy_v2", "Hourly policy")],
                        default="policy_v2",
                        max_length=20,
                    ),
                ),
                (
                    "booking_public_enabled",
                    models.BooleanField(
                        default=False,
                        help_text="Allow anonymous guests to see availability and book.",
                    ),
                ),
                (
                    "booking_v2_live_from",
                    models.DateField(
                        blank=True,
                        help_text="Dates before this day are closed for hourly bookings.",
                        null=True,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Yacht",
                "verbose_name_plural": "Yachts",
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["booking_mode", "booking_public_enabled"], name="yacht_booking_mode_idx"),
                ],
            },
        ),
    ]
