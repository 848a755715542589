"""Booking entity and its status lifecycle."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, Optional, Union
from uuid import UUID, uuid4

from ..exceptions import InvalidTransitionError
from ..value_objects.date_range import DateRange


class BookingStatus(Enum):
    """Booking status enumeration."""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"

    @classmethod
    def parse(cls, value: Union["BookingStatus", str]) -> "BookingStatus":
        """Accept an enum member or its name, case-insensitively."""
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise InvalidTransitionError(f"Unknown booking status: {value}") from None


# Statuses that release the dates for other bookers
INACTIVE_STATUSES: FrozenSet[BookingStatus] = frozenset(
    {BookingStatus.CANCELLED, BookingStatus.REFUNDED}
)

ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED}),
    BookingStatus.IN_PROGRESS: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset({BookingStatus.REFUNDED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.REFUNDED: frozenset(),
}


class Booking:
    """Booking entity representing a reservation of an item for a date range."""

    def __init__(
        self,
        item_id: UUID,
        user_id: UUID,
        start_date: date,
        end_date: date,
        total_price: Decimal,
        booking_id: Optional[UUID] = None,
        status: BookingStatus = BookingStatus.PENDING,
        payment_status: str = "pending",
        payment_transaction_id: Optional[str] = None,
        delivery_address: Optional[str] = None,
        special_instructions: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        self._period = DateRange(start_date, end_date)
        self._id = booking_id or uuid4()
        self._item_id = item_id
        self._user_id = user_id
        self._total_price = Decimal(total_price)
        self._status = status
        self._payment_status = payment_status
        self._payment_transaction_id = payment_transaction_id
        self._delivery_address = delivery_address
        self._special_instructions = special_instructions
        self._created_at = created_at or datetime.utcnow()
        self._updated_at = updated_at or self._created_at

    @property
    def id(self) -> UUID:
        """Get booking ID."""
        return self._id

    @property
    def item_id(self) -> UUID:
        """Get booked item ID."""
        return self._item_id

    @property
    def user_id(self) -> UUID:
        """Get ID of the booker."""
        return self._user_id

    @property
    def period(self) -> DateRange:
        """Get the booked date range."""
        return self._period

    @property
    def start_date(self) -> date:
        return self._period.start

    @property
    def end_date(self) -> date:
        return self._period.end

    @property
    def rental_days(self) -> int:
        """Get inclusive number of rental days."""
        return self._period.days

    @property
    def total_price(self) -> Decimal:
        """Get price fixed when the booking was created."""
        return self._total_price

    @property
    def status(self) -> BookingStatus:
        """Get booking status."""
        return self._status

    @property
    def payment_status(self) -> str:
        return self._payment_status

    @property
    def payment_transaction_id(self) -> Optional[str]:
        return self._payment_transaction_id

    @property
    def delivery_address(self) -> Optional[str]:
        return self._delivery_address

    @property
    def special_instructions(self) -> Optional[str]:
        return self._special_instructions

    @property
    def created_at(self) -> datetime:
        """Get creation timestamp."""
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        """Get last update timestamp."""
        return self._updated_at

    @property
    def is_active(self) -> bool:
        """Check if the booking still holds its dates."""
        return self._status not in INACTIVE_STATUSES

    def overlaps(self, period: DateRange) -> bool:
        """Check if this booking blocks any day of ``period``."""
        return self.is_active and self._period.overlaps(period)

    def can_transition_to(self, new_status: BookingStatus) -> bool:
        """Check whether the lifecycle allows moving to ``new_status``."""
        return new_status in ALLOWED_TRANSITIONS[self._status]

    def transition_to(self, new_status: BookingStatus) -> None:
        """Move the booking to ``new_status`` or raise InvalidTransitionError."""
        if not self.can_transition_to(new_status):
            raise InvalidTransitionError(
                f"Cannot change booking status from {self._status.value} to {new_status.value}"
            )
        self._status = new_status
        self._updated_at = datetime.utcnow()

    def can_be_managed_by(self, caller_id: UUID, item_owner_id: Optional[UUID]) -> bool:
        """Only the booker and the item owner may see or change a booking."""
        return caller_id == self._user_id or caller_id == item_owner_id

    def confirm(self) -> None:
        """Confirm the booking."""
        self.transition_to(BookingStatus.CONFIRMED)

    def start(self) -> None:
        """Mark the rental as handed over."""
        self.transition_to(BookingStatus.IN_PROGRESS)

    def complete(self) -> None:
        """Mark booking as completed."""
        self.transition_to(BookingStatus.COMPLETED)

    def cancel(self) -> None:
        """Cancel the booking."""
        self.transition_to(BookingStatus.CANCELLED)

    def refund(self) -> None:
        """Mark a completed booking as refunded."""
        self.transition_to(BookingStatus.REFUNDED)

    def __eq__(self, other: object) -> bool:
        """Check equality based on booking ID."""
        if not isinstance(other, Booking):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        """Hash based on booking ID."""
        return hash(self._id)

    def __str__(self) -> str:
        """String representation."""
        return f"Booking({self._id}, item={self._item_id}, {self._period}, {self._status.value})"
