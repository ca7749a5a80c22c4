"""
Booking Errors

Every failure of the booking engine is one of these kinds. Each carries a
stable `kind` string for API clients, the HTTP status it maps to, and
whether the caller may retry (only after re-fetching availability).
"""


class BookingError(Exception):
    """Base class for booking engine failures"""

    kind = 'booking_error'
    status_code = 400
    retryable = False
    default_detail = 'Booking request failed.'

    def __init__(self, detail: str | None = None, **context):
        self.detail = detail or self.default_detail
        self.context = context
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        data = {'error': self.kind, 'detail': self.detail}
        if self.retryable:
            data['retryable'] = True
        return data


class PolicyViolation(BookingError):
    """Duration or start rejected by policy; never reaches the store."""

    kind = 'policy_violation'
    status_code = 400
    default_detail = 'Requested trip is not allowed by the booking policy.'


class SlotConflict(BookingError):
    """Requested interval became unavailable before commit."""

    kind = 'slot_conflict'
    status_code = 409
    retryable = True
    default_detail = 'Selected date/time is no longer available.'


class NotFound(BookingError):
    kind = 'not_found'
    status_code = 404
    default_detail = 'Not found.'


class Forbidden(BookingError):
    kind = 'forbidden'
    status_code = 403
    default_detail = 'You do not have permission to perform this action.'


class RateLimited(BookingError):
    kind = 'rate_limited'
    status_code = 429
    default_detail = 'Too many booking attempts. Please try again later.'


class ServiceUnavailable(BookingError):
    """Store failure or timeout; safe to retry with backoff."""

    kind = 'service_unavailable'
    status_code = 503
    retryable = True
    default_detail = 'Booking service is temporarily unavailable.'
