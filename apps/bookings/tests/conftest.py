from datetime import date

import pytest

from apps.bookings.domain.entities import Actor, Attendee
from apps.bookings.domain.policy import PolicyConfig, get_policy
from apps.bookings.repositories import DjangoReservationStore
from apps.yachts.models import Yacht

BOOKING_DAY = date(2031, 3, 10)


@pytest.fixture(autouse=True)
def fresh_policy():
    get_policy.cache_clear()
    yield
    get_policy.cache_clear()


@pytest.fixture
def policy():
    return PolicyConfig()


@pytest.fixture
def store(policy):
    return DjangoReservationStore(policy=policy)


@pytest.fixture
def yacht(db):
    return Yacht.objects.create(name="Sea Breeze", vessel_type="sailboat", capacity=8, booking_public_enabled=True)


@pytest.fixture
def attendee():
    return Attendee(name="Ana Ruiz", email="Ana@Example.com", phone="+52 669 000 0000")


@pytest.fixture
def admin_actor():
    return Actor(user_id=None, label="captain", is_admin=True)


@pytest.fixture
def staff_actor():
    return Actor(user_id=None, label="deckhand", is_staff=True)
