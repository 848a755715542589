"""Booking service implementing the booking lifecycle use cases."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional, Union, TYPE_CHECKING
from uuid import UUID

from src.rental_booking.domain.entities.booking import Booking, BookingStatus
from src.rental_booking.domain.entities.item import Item
from src.rental_booking.domain.entities.notification import NotificationType
from src.rental_booking.domain.exceptions import (
    BookingConflictError,
    ForbiddenError,
    InvalidDateRangeError,
    ItemUnavailableError,
    NotFoundError
)
from src.rental_booking.domain.value_objects.date_range import DateRange
from src.rental_booking.domain.value_objects.page import Page
from src.rental_booking.domain.value_objects.rental_quote import RentalQuote
from src.rental_booking.infrastructure.logging import (
    get_logger,
    log_booking_event,
    log_business_rule_violation
)

if TYPE_CHECKING:
    from src.rental_booking.application.ports.notifications import NotificationDispatcher
    from src.rental_booking.application.ports.repositories import (
        BookingRepository,
        ItemRepository,
        UserRepository
    )


class ItemAvailabilityGate:
    """Checks that an item exists and currently accepts bookings."""

    def __init__(self, item_repository: "ItemRepository"):
        self._item_repository = item_repository

    async def check_bookable(self, item_id: UUID) -> Item:
        """Return the item if it can be booked."""
        item = await self._item_repository.find_by_id(item_id)
        if item is None:
            raise NotFoundError("item", item_id)
        if not item.available:
            raise ItemUnavailableError("Item is not available for booking")
        return item


class ConflictDetector:
    """Finds active bookings that overlap a candidate date range."""

    def __init__(self, booking_repository: "BookingRepository"):
        self._booking_repository = booking_repository

    async def find_conflicts(self, item_id: UUID, start_date: date, end_date: date) -> List[Booking]:
        """Get bookings for the item that block any day of the range."""
        return await self._booking_repository.find_conflicting(item_id, start_date, end_date)


class RentalPricingCalculator:
    """Derives rental days and total price from a nightly price."""

    @staticmethod
    def compute_rental(price: Union[Decimal, int, str], start_date: date, end_date: date) -> RentalQuote:
        """Compute the quote for an inclusive date range."""
        period = DateRange(start_date, end_date)
        if not isinstance(price, Decimal):
            # str() keeps floats like 19.99 exact instead of their binary expansion
            price = Decimal(str(price))
        return RentalQuote(days=period.days, total=price * period.days)


@dataclass(frozen=True)
class BookingDetails:
    """Booking joined with the display fields of its item and booker."""

    booking: Booking
    item_name: Optional[str] = None
    item_image: Optional[str] = None
    user_name: Optional[str] = None
    item_owner_id: Optional[UUID] = None

    def is_visible_to(self, viewer_id: UUID) -> bool:
        """Whether the viewer is the booker or the item owner."""
        return self.booking.can_be_managed_by(viewer_id, self.item_owner_id)


class BookingService:
    """Application service orchestrating the booking lifecycle."""

    def __init__(
        self,
        booking_repository: "BookingRepository",
        item_repository: "ItemRepository",
        user_repository: "UserRepository",
        notification_dispatcher: "NotificationDispatcher",
        pricing_calculator: Optional[RentalPricingCalculator] = None
    ):
        self._booking_repository = booking_repository
        self._item_repository = item_repository
        self._user_repository = user_repository
        self._notification_dispatcher = notification_dispatcher
        self._pricing_calculator = pricing_calculator or RentalPricingCalculator()
        self._availability_gate = ItemAvailabilityGate(item_repository)
        self._conflict_detector = ConflictDetector(booking_repository)
        self._logger = get_logger(__name__)

    async def create_booking(
        self,
        item_id: UUID,
        user_id: UUID,
        start_date: date,
        end_date: date,
        delivery_address: Optional[str] = None,
        special_instructions: Optional[str] = None
    ) -> Booking:
        """Reserve an item for an inclusive date range."""
        self._logger.info(
            f"Booking request for item {item_id} by user {user_id} ({start_date} to {end_date})"
        )

        user = await self._user_repository.find_by_id(user_id)
        if user is None:
            raise NotFoundError("user", user_id)

        if end_date < start_date:
            log_business_rule_violation(
                self._logger, "invalid_date_range",
                f"end {end_date} before start {start_date}",
                item_id=str(item_id), user_id=str(user_id)
            )
            raise InvalidDateRangeError("End date must not be before start date")

        async with self._booking_repository.reservation(item_id):
            item = await self._availability_gate.check_bookable(item_id)

            conflicts = await self._conflict_detector.find_conflicts(item_id, start_date, end_date)
            if conflicts:
                log_business_rule_violation(
                    self._logger, "booking_conflict",
                    f"{len(conflicts)} active booking(s) overlap the requested dates",
                    item_id=str(item_id),
                    conflicting_booking_ids=[str(b.id) for b in conflicts]
                )
                raise BookingConflictError("Item is already booked for the selected dates")

            quote = self._pricing_calculator.compute_rental(item.price, start_date, end_date)

            booking = Booking(
                item_id=item.id,
                user_id=user_id,
                start_date=start_date,
                end_date=end_date,
                total_price=quote.total,
                status=BookingStatus.PENDING,
                delivery_address=delivery_address,
                special_instructions=special_instructions
            )
            saved_booking = await self._booking_repository.save(booking)

        log_booking_event(
            self._logger, "created", str(saved_booking.id),
            item_id=str(item.id), rental_days=quote.days, total_price=str(quote.total)
        )

        # Only reached once the reservation block has committed
        await self._notification_dispatcher.notify(
            item.owner_id,
            "New Booking Request",
            f"You have a new booking request for {item.name}",
            NotificationType.BOOKING_CONFIRMED,
            related_entity_id=str(saved_booking.id),
            related_entity_type="BOOKING"
        )

        return saved_booking

    async def update_booking_status(
        self,
        booking_id: UUID,
        new_status: Union[BookingStatus, str],
        caller_id: UUID
    ) -> Booking:
        """Move a booking through its lifecycle on behalf of the booker or item owner."""
        status = BookingStatus.parse(new_status)

        async with self._booking_repository.transaction():
            booking = await self._booking_repository.find_by_id(booking_id)
            if booking is None:
                raise NotFoundError("booking", booking_id)

            item = await self._item_repository.find_by_id(booking.item_id)
            if item is None:
                raise NotFoundError("item", booking.item_id)

            if not booking.can_be_managed_by(caller_id, item.owner_id):
                log_business_rule_violation(
                    self._logger, "forbidden_status_change",
                    f"user {caller_id} is neither booker nor owner",
                    booking_id=str(booking_id)
                )
                raise ForbiddenError("You don't have permission to update this booking")

            previous_status = booking.status
            booking.transition_to(status)
            updated_booking = await self._booking_repository.save(booking)

        log_booking_event(
            self._logger, "status_changed", str(booking_id),
            from_status=previous_status.value, to_status=status.value, caller_id=str(caller_id)
        )

        if status == BookingStatus.CONFIRMED:
            await self._notification_dispatcher.notify(
                booking.user_id,
                "Booking Confirmed",
                f"Your booking for {item.name} has been confirmed",
                NotificationType.BOOKING_CONFIRMED,
                related_entity_id=str(booking.id),
                related_entity_type="BOOKING"
            )
        elif status == BookingStatus.CANCELLED:
            await self._notification_dispatcher.notify(
                booking.user_id,
                "Booking Cancelled",
                f"Your booking for {item.name} has been cancelled",
                NotificationType.BOOKING_CANCELLED,
                related_entity_id=str(booking.id),
                related_entity_type="BOOKING"
            )

        return updated_booking

    async def get_booking(self, booking_id: UUID, caller_id: Optional[UUID] = None) -> Booking:
        """Get a specific booking by ID.

        With a ``caller_id``, only the booker or the item owner may read it.
        """
        booking = await self._booking_repository.find_by_id(booking_id)
        if booking is None:
            raise NotFoundError("booking", booking_id)

        if caller_id is not None:
            item = await self._item_repository.find_by_id(booking.item_id)
            if not booking.can_be_managed_by(caller_id, item.owner_id if item else None):
                log_business_rule_violation(
                    self._logger, "forbidden_booking_read",
                    f"user {caller_id} is neither booker nor owner",
                    booking_id=str(booking_id)
                )
                raise ForbiddenError("You don't have permission to view this booking")
        return booking

    async def get_user_bookings(self, user_id: UUID) -> List[Booking]:
        """Get all bookings made by a user."""
        return await self._booking_repository.find_by_user_id(user_id)

    async def get_user_bookings_page(self, user_id: UUID, page: int = 0, size: int = 10) -> Page[Booking]:
        """Get one page of a user's bookings, newest first."""
        if page < 0 or size < 1:
            raise ValueError("Page must be >= 0 and size must be >= 1")
        bookings, total = await self._booking_repository.find_by_user_id_paginated(user_id, page, size)
        return Page(items=bookings, page=page, size=size, total=total)

    async def get_item_bookings(self, item_id: UUID) -> List[Booking]:
        """Get all bookings for an item."""
        return await self._booking_repository.find_by_item_id(item_id)

    async def get_owner_bookings(self, owner_id: UUID) -> List[Booking]:
        """Get all bookings for items listed by an owner."""
        return await self._booking_repository.find_by_item_owner_id(owner_id)

    async def describe_booking(self, booking: Booking) -> BookingDetails:
        """Resolve item and booker display fields for a booking."""
        item = await self._item_repository.find_by_id(booking.item_id)
        user = await self._user_repository.find_by_id(booking.user_id)
        return BookingDetails(
            booking=booking,
            item_name=item.name if item else None,
            item_image=item.image_url if item else None,
            user_name=user.full_name if user else None,
            item_owner_id=item.owner_id if item else None
        )
