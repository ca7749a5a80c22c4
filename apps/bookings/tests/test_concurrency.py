"""Concurrent creates against one yacht and concurrent rate limit hits.

Runs on the file-backed SQLite test database, where IMMEDIATE transactions
serialize writers, and on PostgreSQL, where row locks and the overlap
constraint do.
"""

from __future__ import annotations

import threading
from datetime import date

from django.db import connections
from django.test import TransactionTestCase
from django.utils.timezone import localtime

from apps.bookings.application.command_handlers import CreateBookingCommand, CreateBookingHandler
from apps.bookings.domain.entities import Attendee
from apps.bookings.domain.exceptions import RateLimited, SlotConflict
from apps.bookings.domain.policy import PolicyConfig
from apps.bookings.models import BookingRateLimit, Reservation
from apps.bookings.repositories import DjangoReservationStore
from apps.bookings.services import BookingRateLimiter
from apps.yachts.models import Yacht


class ConcurrentBookingTests(TransactionTestCase):
    workers = 6

    def setUp(self) -> None:
        self.yacht = Yacht.objects.create(name="Sea Breeze", booking_public_enabled=True)
        self.handler = CreateBookingHandler(DjangoReservationStore(policy=PolicyConfig()))

    def _race(self, slots) -> tuple[list, list, list]:
        barrier = threading.Barrier(len(slots))
        booked, conflicts, failures = [], [], []
        lock = threading.Lock()

        def worker(index, duration, start):
            try:
                barrier.wait()
                result = self.handler.handle(CreateBookingCommand(
                    yacht_slug=self.yacht.slug,
                    date=date(2031, 3, 10),
                    duration_hours=duration,
                    start_hour=start,
                    attendee=Attendee(name=f"Guest {index}", email=f"guest{index}@example.com"),
                ))
                with lock:
                    booked.append(result.booking_uid)
            except SlotConflict:
                with lock:
                    conflicts.append(index)
            except Exception as exc:  # noqa: BLE001
                with lock:
                    failures.append(repr(exc))
            finally:
                connections.close_all()

        threads = [
            threading.Thread(target=worker, args=(index, duration, start))
            for index, (duration, start) in enumerate(slots)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        return booked, conflicts, failures

    def test_same_slot_is_booked_once(self) -> None:
        booked, conflicts, failures = self._race([(4, 9)] * self.workers)

        self.assertEqual(failures, [])
        self.assertEqual(len(booked), 1)
        self.assertEqual(len(conflicts), self.workers - 1)
        self.assertEqual(Reservation.objects.filter(status=Reservation.Status.BOOKED).count(), 1)

    def test_overlapping_slots_leave_no_buffer_violation(self) -> None:
        booked, conflicts, failures = self._race([(4, 9), (3, 6), (5, 8), (3, 15)])

        self.assertEqual(failures, [])
        self.assertEqual(len(booked) + len(conflicts), 4)
        rows = list(Reservation.objects.filter(status=Reservation.Status.BOOKED).order_by("start_at"))
        self.assertEqual(len(rows), len(booked))
        for earlier, later in zip(rows, rows[1:]):
            self.assertLessEqual(earlier.blocked_until, later.start_at)

    def test_sequential_creates_keep_the_buffer(self) -> None:
        for duration, start in [(3, 6), (3, 10), (4, 9), (3, 15), (5, 13)]:
            try:
                self.handler.handle(CreateBookingCommand(
                    yacht_slug=self.yacht.slug,
                    date=date(2031, 3, 10),
                    duration_hours=duration,
                    start_hour=start,
                    attendee=Attendee(name="Guest", email="guest@example.com"),
                ))
            except SlotConflict:
                pass

        rows = list(Reservation.objects.filter(status=Reservation.Status.BOOKED).order_by("start_at"))
        self.assertEqual(
            [(localtime(row.start_at).hour, localtime(row.end_at).hour) for row in rows],
            [(6, 9), (15, 18)],
        )


class ConcurrentRateLimitTests(TransactionTestCase):
    workers = 6

    def test_limit_holds_under_parallel_hits(self) -> None:
        limiter = BookingRateLimiter(max_requests=3, window_minutes=60)
        barrier = threading.Barrier(self.workers)
        accepted, limited, failures = [], [], []
        lock = threading.Lock()

        def worker(index):
            try:
                barrier.wait()
                limiter.hit(endpoint="public-booking-create", ip="203.0.113.7", email="ana@example.com")
                with lock:
                    accepted.append(index)
            except RateLimited:
                with lock:
                    limited.append(index)
            except Exception as exc:  # noqa: BLE001
                with lock:
                    failures.append(repr(exc))
            finally:
                connections.close_all()

        threads = [threading.Thread(target=worker, args=(index,)) for index in range(self.workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(failures, [])
        self.assertEqual(len(accepted), 3)
        self.assertEqual(len(limited), self.workers - 3)
        self.assertEqual(BookingRateLimit.objects.count(), 3)
