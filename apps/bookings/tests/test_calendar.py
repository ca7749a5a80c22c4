from datetime import date

import pytest

from apps.bookings.domain.calendar import BookedSlot, YachtCalendar
from apps.bookings.domain.exceptions import SlotConflict
from shared.domain.value_objects import HourRange


@pytest.fixture
def calendar(policy):
    return YachtCalendar(
        yacht_id=1,
        day=date(2031, 3, 10),
        policy=policy,
        slots=[BookedSlot(booking_uid="YB-MORNING", hours=HourRange(9, 13))],
    )


def test_allocate_free_slot(calendar):
    slot = calendar.allocate("YB-AFTERNOON", HourRange(15, 18))

    assert slot.booking_uid == "YB-AFTERNOON"
    assert [s.booking_uid for s in calendar.slots] == ["YB-MORNING", "YB-AFTERNOON"]


def test_allocate_inside_buffer_conflicts(calendar):
    with pytest.raises(SlotConflict) as exc_info:
        calendar.allocate("YB-NEW", HourRange(14, 17))

    assert exc_info.value.context["conflicting"] == ["YB-MORNING"]
    assert exc_info.value.retryable is True
    assert len(calendar.slots) == 1


def test_conflicts_ignore_the_excluded_booking(calendar):
    assert not calendar.can_allocate(HourRange(8, 12))
    assert calendar.can_allocate(HourRange(8, 12), exclude_uid="YB-MORNING")

    calendar.allocate("YB-MOVED", HourRange(8, 12), exclude_uid="YB-MORNING")

    assert [s.booking_uid for s in calendar.slots] == ["YB-MOVED"]


def test_availability_reflects_slots(calendar):
    assert calendar.availability().starts_for(3) == [15]
    assert calendar.availability(exclude_uid="YB-MORNING").starts_for(3) == [6, 7, 8, 9, 10, 15]


def test_closed_calendar_reports_no_starts(policy):
    calendar = YachtCalendar(yacht_id=1, day=date(2031, 3, 10), policy=policy, closed=True)

    assert calendar.availability().closed is True
