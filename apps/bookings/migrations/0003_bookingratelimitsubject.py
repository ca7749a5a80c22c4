import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("bookings", "0002_reservation_no_overlap"),
    ]

    operations = [
        migrations.CreateModel(
            name="BookingRateLimitSubject",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("subject_hash", models.CharField(max_length=64, unique=True)),
                ("last_hit_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
            ],
            options={
                "verbose_name": "Booking rate limit subject",
                "verbose_name_plural": "Booking rate limit subjects",
            },
        ),
    ]
