"""
Failure taxonomy for the booking core.

Every rejection the allocator or the eligibility resolver can produce is one
of the kinds below. Callers switch on ``exc.kind``; messages are for humans.
"""

from enum import Enum


class BookingErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    INELIGIBLE = "ineligible"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    ALREADY_BOOKED = "already_booked"
    FORBIDDEN = "forbidden"
    STORE_UNAVAILABLE = "store_unavailable"


class BookingError(Exception):
    """Base class for all booking core failures."""

    kind: BookingErrorKind

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(BookingError):
    """Missing enrollment, booking or room."""

    kind = BookingErrorKind.NOT_FOUND


class IneligibleError(BookingError):
    """No ticket, or the ticket does not entitle its holder to a hotel room."""

    kind = BookingErrorKind.INELIGIBLE


class CapacityExceededError(BookingError):
    kind = BookingErrorKind.CAPACITY_EXCEEDED


class AlreadyBookedError(BookingError):
    kind = BookingErrorKind.ALREADY_BOOKED


class ForbiddenError(BookingError):
    """The caller may not change the referenced booking in the requested way."""

    kind = BookingErrorKind.FORBIDDEN


class StoreUnavailableError(BookingError):
    """The store failed for reasons unrelated to booking rules."""

    kind = BookingErrorKind.STORE_UNAVAILABLE
