"""
Availability Queries

Read side of the booking engine. No locks are taken: a slot shown as free
here may still be lost at commit time, which the create handler reports
as a SlotConflict.
"""

from dataclasses import dataclass
from typing import Dict
import logging

from shared.domain.value_objects import MonthKey
from apps.bookings.domain.availability import DayAvailability
from apps.bookings.domain.exceptions import PolicyViolation
from apps.bookings.domain.localtime import month_bounds
from apps.bookings.domain.policy import PolicyConfig

logger = logging.getLogger(__name__)


@dataclass
class GetAvailabilityQuery:
    yacht_slug: str
    month: str
    public: bool = False


@dataclass
class MonthAvailability:
    yacht: object
    month: MonthKey
    timezone: str
    policy: PolicyConfig
    days: Dict[str, DayAvailability]

    def to_dict(self) -> dict:
        return {
            'yacht': {
                'id': self.yacht.pk,
                'name': self.yacht.name,
                'slug': self.yacht.slug,
                'vessel_type': self.yacht.vessel_type,
                'capacity': self.yacht.capacity,
                'booking_mode': self.yacht.booking_mode,
                'booking_v2_live_from': (
                    self.yacht.booking_v2_live_from.isoformat()
                    if self.yacht.booking_v2_live_from else None
                ),
            },
            'month': str(self.month),
            'timezone': self.timezone,
            'constraints': self.policy.constraints(),
            'days': {key: day.to_dict() for key, day in self.days.items()},
        }


class GetAvailabilityHandler:
    """Computes every day of a month from one read of the booked trips"""

    def __init__(self, store):
        self.store = store

    def handle(self, query: GetAvailabilityQuery) -> MonthAvailability:
        policy = self.store.policy
        tz = self.store.tz
        try:
            month = MonthKey.parse(query.month)
        except ValueError as exc:
            raise PolicyViolation(str(exc)) from exc

        yacht = self.store.get_yacht(query.yacht_slug, public=query.public)
        start, end = month_bounds(month, tz)
        rows = self.store.booked_between(yacht.pk, start, end)

        days = {}
        for day in month.days():
            days[day.isoformat()] = self.store.calendar_from_rows(yacht, day, rows).availability()

        logger.debug(f"Computed availability for {yacht.slug} {month}: {len(rows)} booked trips")
        return MonthAvailability(
            yacht=yacht,
            month=month,
            timezone=str(tz),
            policy=policy,
            days=days,
        )
