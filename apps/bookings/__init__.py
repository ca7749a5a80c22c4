"""Bookings app package.

The hourly charter engine: policy rules, per-day availability, and the
create/reschedule/cancel protocol that keeps booked trips of a yacht
apart by the inter-booking buffer, even under concurrent requests.
"""
