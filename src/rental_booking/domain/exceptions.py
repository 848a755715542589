"""Business rule errors raised by the booking engine.

Each error carries a stable ``code`` so the transport layer can map it to a
status code and clients can tell "dates conflict" apart from "not your
booking" without parsing messages.
"""

from typing import Any


class BookingError(Exception):
    """Base class for booking business rule rejections."""

    code = "booking_error"


class NotFoundError(BookingError):
    """Raised when a user, item, booking or notification does not exist."""

    code = "not_found"

    def __init__(self, resource: str, identifier: Any):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource.capitalize()} not found: {identifier}")


class ItemUnavailableError(BookingError):
    """Raised when the item is flagged as not available for booking."""

    code = "item_unavailable"


class BookingConflictError(BookingError):
    """Raised when the requested dates overlap an active booking."""

    code = "booking_conflict"


class InvalidDateRangeError(BookingError):
    """Raised when the end date precedes the start date."""

    code = "invalid_date_range"


class ForbiddenError(BookingError):
    """Raised when the caller has no rights over the resource."""

    code = "forbidden"


class InvalidTransitionError(BookingError):
    """Raised when a booking status change is not part of the lifecycle."""

    code = "invalid_transition"
