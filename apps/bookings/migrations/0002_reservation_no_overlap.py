"""Exclusion constraint that keeps booked trips of one yacht apart.

Two booked rows conflict when their [start_at, blocked_until) ranges
intersect, blocked_until being end_at plus the inter-booking buffer.
Only PostgreSQL supports this; on SQLite, IMMEDIATE transactions serialize
the writers instead.
"""

from django.db import migrations

CONSTRAINT_NAME = "reservation_no_overlap"

CREATE_SQL = f"""
CREATE EXTENSION IF NOT EXISTS btree_gist;
ALTER TABLE bookings_reservation
    ADD CONSTRAINT {CONSTRAINT_NAME}
    EXCLUDE USING gist (
        yacht_id WITH =,
        tstzrange(start_at, blocked_until, '[)') WITH &&
    )
    WHERE (status = 'booked');
"""

DROP_SQL = f"ALTER TABLE bookings_reservation DROP CONSTRAINT IF EXISTS {CONSTRAINT_NAME};"


def add_constraint(apps, schema_editor):
    if schema_editor.connection.vendor != "postgresql":
        return
    schema_editor.execute(CREATE_SQL)


def drop_constraint(apps, schema_editor):
    if schema_editor.connection.vendor != "postgresql":
        return
    schema_editor.execute(DROP_SQL)


class Migration(migrations.Migration):

    dependencies = [
        ("bookings", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(add_constraint, drop_constraint),
    ]
