"""Unit tests for booking service application layer."""

import pytest
from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

from src.rental_booking.application.services.booking_service import (
    BookingService,
    ConflictDetector,
    ItemAvailabilityGate
)
from src.rental_booking.domain.entities.booking import Booking, BookingStatus
from src.rental_booking.domain.entities.item import Item
from src.rental_booking.domain.entities.notification import NotificationType
from src.rental_booking.domain.entities.user import User
from src.rental_booking.domain.exceptions import (
    BookingConflictError,
    ForbiddenError,
    InvalidDateRangeError,
    InvalidTransitionError,
    ItemUnavailableError,
    NotFoundError
)


@asynccontextmanager
async def unit_of_work(*args):
    yield


@pytest.fixture
def owner():
    return User(email="owner@example.com", first_name="Olivia", last_name="Owner")


@pytest.fixture
def renter():
    return User(email="renter@example.com", first_name="Rene", last_name="Renter")


@pytest.fixture
def item(owner):
    return Item(owner_id=owner.id, name="Cordless Drill", price=Decimal("12.50"), image_url="drill.png")


@pytest.fixture
def booking_repository():
    repository = AsyncMock()
    repository.save.side_effect = lambda booking: booking
    repository.find_conflicting.return_value = []
    repository.reservation = Mock(side_effect=unit_of_work)
    repository.transaction = Mock(side_effect=unit_of_work)
    return repository


@pytest.fixture
def item_repository(item):
    repository = AsyncMock()
    repository.find_by_id.side_effect = lambda item_id: item if item_id == item.id else None
    return repository


@pytest.fixture
def user_repository(owner, renter):
    users = {owner.id: owner, renter.id: renter}
    repository = AsyncMock()
    repository.find_by_id.side_effect = lambda user_id: users.get(user_id)
    return repository


@pytest.fixture
def dispatcher():
    return AsyncMock()


@pytest.fixture
def service(booking_repository, item_repository, user_repository, dispatcher):
    return BookingService(
        booking_repository=booking_repository,
        item_repository=item_repository,
        user_repository=user_repository,
        notification_dispatcher=dispatcher
    )


def existing_booking(item, renter, status=BookingStatus.PENDING):
    return Booking(
        item_id=item.id,
        user_id=renter.id,
        start_date=date(2025, 7, 1),
        end_date=date(2025, 7, 3),
        total_price=Decimal("37.50"),
        status=status
    )


class TestItemAvailabilityGate:
    """Test cases for ItemAvailabilityGate."""

    @pytest.mark.asyncio
    async def test_returns_available_item(self, item, item_repository):
        gate = ItemAvailabilityGate(item_repository)

        assert await gate.check_bookable(item.id) is item

    @pytest.mark.asyncio
    async def test_missing_item(self, item_repository):
        gate = ItemAvailabilityGate(item_repository)

        with pytest.raises(NotFoundError, match="Item not found"):
            await gate.check_bookable(uuid4())

    @pytest.mark.asyncio
    async def test_unavailable_item(self, item, item_repository):
        item.mark_unavailable()
        gate = ItemAvailabilityGate(item_repository)

        with pytest.raises(ItemUnavailableError):
            await gate.check_bookable(item.id)


class TestConflictDetector:
    """Test cases for ConflictDetector."""

    @pytest.mark.asyncio
    async def test_delegates_to_repository(self, booking_repository):
        item_id = uuid4()
        detector = ConflictDetector(booking_repository)

        result = await detector.find_conflicts(item_id, date(2025, 7, 1), date(2025, 7, 2))

        assert result == []
        booking_repository.find_conflicting.assert_awaited_once_with(
            item_id, date(2025, 7, 1), date(2025, 7, 2)
        )


class TestCreateBooking:
    """Test cases for BookingService.create_booking."""

    @pytest.mark.asyncio
    async def test_create_booking_success(self, service, item, owner, renter, booking_repository, dispatcher):
        """Test a successful booking is priced, saved as PENDING and notifies the owner."""
        booking = await service.create_booking(
            item_id=item.id,
            user_id=renter.id,
            start_date=date(2025, 7, 1),
            end_date=date(2025, 7, 4),
            delivery_address="Main St 1"
        )

        assert booking.status == BookingStatus.PENDING
        assert booking.rental_days == 4
        assert booking.total_price == Decimal("50.00")
        assert booking.delivery_address == "Main St 1"
        booking_repository.reservation.assert_called_once_with(item.id)
        booking_repository.save.assert_awaited_once()

        dispatcher.notify.assert_awaited_once()
        args, kwargs = dispatcher.notify.call_args
        assert args[0] == owner.id
        assert args[1] == "New Booking Request"
        assert args[2] == "You have a new booking request for Cordless Drill"
        assert args[3] == NotificationType.BOOKING_CONFIRMED
        assert kwargs == {"related_entity_id": str(booking.id), "related_entity_type": "BOOKING"}

    @pytest.mark.asyncio
    async def test_unknown_user(self, service, item, booking_repository):
        with pytest.raises(NotFoundError, match="User not found"):
            await service.create_booking(item.id, uuid4(), date(2025, 7, 1), date(2025, 7, 2))

        booking_repository.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_item(self, service, renter, booking_repository):
        with pytest.raises(NotFoundError, match="Item not found"):
            await service.create_booking(uuid4(), renter.id, date(2025, 7, 1), date(2025, 7, 2))

        booking_repository.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unavailable_item_is_not_saved(self, service, item, renter, booking_repository, dispatcher):
        item.mark_unavailable()

        with pytest.raises(ItemUnavailableError, match="not available for booking"):
            await service.create_booking(item.id, renter.id, date(2025, 7, 1), date(2025, 7, 2))

        booking_repository.save.assert_not_awaited()
        dispatcher.notify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_end_before_start_checked_before_storage(self, service, item, renter, booking_repository):
        with pytest.raises(InvalidDateRangeError):
            await service.create_booking(item.id, renter.id, date(2025, 7, 5), date(2025, 7, 1))

        booking_repository.reservation.assert_not_called()
        booking_repository.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_conflict(self, service, item, renter, booking_repository, dispatcher):
        booking_repository.find_conflicting.return_value = [existing_booking(item, renter)]

        with pytest.raises(BookingConflictError, match="already booked"):
            await service.create_booking(item.id, renter.id, date(2025, 7, 2), date(2025, 7, 6))

        booking_repository.save.assert_not_awaited()
        dispatcher.notify.assert_not_awaited()


class TestUpdateBookingStatus:
    """Test cases for BookingService.update_booking_status."""

    @pytest.mark.asyncio
    async def test_owner_confirms(self, service, item, owner, renter, booking_repository, dispatcher):
        booking = existing_booking(item, renter)
        booking_repository.find_by_id.return_value = booking

        updated = await service.update_booking_status(booking.id, "confirmed", owner.id)

        assert updated.status == BookingStatus.CONFIRMED
        booking_repository.save.assert_awaited_once_with(booking)
        dispatcher.notify.assert_awaited_once()
        args, _ = dispatcher.notify.call_args
        assert args[:4] == (
            renter.id,
            "Booking Confirmed",
            "Your booking for Cordless Drill has been confirmed",
            NotificationType.BOOKING_CONFIRMED
        )

    @pytest.mark.asyncio
    async def test_booker_cancels(self, service, item, renter, booking_repository, dispatcher):
        booking = existing_booking(item, renter, status=BookingStatus.CONFIRMED)
        booking_repository.find_by_id.return_value = booking

        updated = await service.update_booking_status(booking.id, BookingStatus.CANCELLED, renter.id)

        assert updated.status == BookingStatus.CANCELLED
        args, _ = dispatcher.notify.call_args
        assert args[1] == "Booking Cancelled"
        assert args[3] == NotificationType.BOOKING_CANCELLED

    @pytest.mark.asyncio
    async def test_other_transitions_do_not_notify(self, service, item, owner, renter, booking_repository, dispatcher):
        booking = existing_booking(item, renter, status=BookingStatus.IN_PROGRESS)
        booking_repository.find_by_id.return_value = booking

        updated = await service.update_booking_status(booking.id, "COMPLETED", owner.id)

        assert updated.status == BookingStatus.COMPLETED
        dispatcher.notify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stranger_is_forbidden(self, service, item, renter, booking_repository, dispatcher):
        booking = existing_booking(item, renter)
        booking_repository.find_by_id.return_value = booking

        with pytest.raises(ForbiddenError):
            await service.update_booking_status(booking.id, "CONFIRMED", uuid4())

        assert booking.status == BookingStatus.PENDING
        booking_repository.save.assert_not_awaited()
        dispatcher.notify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_booking_not_found(self, service, booking_repository):
        booking_repository.find_by_id.return_value = None

        with pytest.raises(NotFoundError, match="Booking not found"):
            await service.update_booking_status(uuid4(), "CONFIRMED", uuid4())

    @pytest.mark.asyncio
    async def test_invalid_transition(self, service, item, owner, renter, booking_repository):
        booking = existing_booking(item, renter, status=BookingStatus.CANCELLED)
        booking_repository.find_by_id.return_value = booking

        with pytest.raises(InvalidTransitionError):
            await service.update_booking_status(booking.id, "CONFIRMED", owner.id)

        booking_repository.save.assert_not_awaited()


class TestBookingQueries:
    """Test cases for the read side of BookingService."""

    @pytest.mark.asyncio
    async def test_get_booking_not_found(self, service, booking_repository):
        booking_repository.find_by_id.return_value = None

        with pytest.raises(NotFoundError):
            await service.get_booking(uuid4())

    @pytest.mark.asyncio
    async def test_get_booking_by_participants(self, service, item, owner, renter, booking_repository):
        booking = existing_booking(item, renter)
        booking_repository.find_by_id.return_value = booking

        assert await service.get_booking(booking.id, caller_id=renter.id) is booking
        assert await service.get_booking(booking.id, caller_id=owner.id) is booking

    @pytest.mark.asyncio
    async def test_get_booking_by_stranger(self, service, item, renter, booking_repository):
        booking = existing_booking(item, renter)
        booking_repository.find_by_id.return_value = booking

        with pytest.raises(ForbiddenError):
            await service.get_booking(booking.id, caller_id=uuid4())

    @pytest.mark.asyncio
    async def test_user_bookings_page(self, service, item, renter, booking_repository):
        bookings = [existing_booking(item, renter) for _ in range(2)]
        booking_repository.find_by_user_id_paginated.return_value = (bookings, 5)

        page = await service.get_user_bookings_page(renter.id, page=1, size=2)

        assert page.items == bookings
        assert page.total == 5
        assert page.total_pages == 3
        booking_repository.find_by_user_id_paginated.assert_awaited_once_with(renter.id, 1, 2)

    @pytest.mark.asyncio
    async def test_user_bookings_page_rejects_bad_bounds(self, service, renter):
        with pytest.raises(ValueError):
            await service.get_user_bookings_page(renter.id, page=-1)
        with pytest.raises(ValueError):
            await service.get_user_bookings_page(renter.id, size=0)

    @pytest.mark.asyncio
    async def test_describe_booking(self, service, item, renter):
        details = await service.describe_booking(existing_booking(item, renter))

        assert details.item_name == "Cordless Drill"
        assert details.item_image == "drill.png"
        assert details.user_name == "Rene Renter"
        assert details.item_owner_id == item.owner_id
        assert details.is_visible_to(renter.id)
        assert details.is_visible_to(item.owner_id)
        assert not details.is_visible_to(uuid4())
