"""Port interfaces for repositories (Dependency Inversion Principle)."""

from abc import ABC, abstractmethod
from datetime import date
from typing import AsyncContextManager, List, Optional, Tuple, TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from src.rental_booking.domain.entities.booking import Booking
    from src.rental_booking.domain.entities.item import Item
    from src.rental_booking.domain.entities.user import User
    from src.rental_booking.domain.entities.notification import Notification


class BookingRepository(ABC):
    """Port interface for booking repository."""

    @abstractmethod
    async def save(self, booking: "Booking") -> "Booking":
        """Save a booking (create or update)."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_id(self, booking_id: UUID) -> Optional["Booking"]:
        """Find booking by ID."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_user_id(self, user_id: UUID) -> List["Booking"]:
        """Find all bookings made by a user."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_user_id_paginated(
        self, user_id: UUID, page: int, size: int
    ) -> Tuple[List["Booking"], int]:
        """Find one page of a user's bookings (ordered by created_at DESC) and the total count."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_item_id(self, item_id: UUID) -> List["Booking"]:
        """Find all bookings for an item."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_item_owner_id(self, owner_id: UUID) -> List["Booking"]:
        """Find all bookings for items listed by an owner."""
        raise NotImplementedError

    @abstractmethod
    async def find_conflicting(self, item_id: UUID, start_date: date, end_date: date) -> List["Booking"]:
        """Find active bookings for an item whose dates overlap [start_date, end_date]."""
        raise NotImplementedError

    @abstractmethod
    def reservation(self, item_id: UUID) -> AsyncContextManager[None]:
        """Atomic unit for reserving an item.

        Reservations of the same item are serialized for the duration of the
        block. Leaving the block normally commits the writes made inside it;
        an exception rolls them back.
        """
        raise NotImplementedError

    @abstractmethod
    def transaction(self) -> AsyncContextManager[None]:
        """Atomic unit for updating existing bookings; commits on exit."""
        raise NotImplementedError


class ItemRepository(ABC):
    """Port interface for the item catalog."""

    @abstractmethod
    async def save(self, item: "Item") -> "Item":
        """Save an item."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_id(self, item_id: UUID) -> Optional["Item"]:
        """Find item by ID."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_owner_id(self, owner_id: UUID) -> List["Item"]:
        """Find all items listed by an owner."""
        raise NotImplementedError


class UserRepository(ABC):
    """Port interface for the user directory."""

    @abstractmethod
    async def save(self, user: "User") -> "User":
        """Save a user."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_id(self, user_id: UUID) -> Optional["User"]:
        """Find user by ID."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional["User"]:
        """Find user by email."""
        raise NotImplementedError

    @abstractmethod
    async def exists(self, user_id: UUID) -> bool:
        """Check if user exists."""
        raise NotImplementedError


class NotificationRepository(ABC):
    """Port interface for notification storage."""

    @abstractmethod
    async def save(self, notification: "Notification") -> "Notification":
        """Save a notification (create or update)."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_id(self, notification_id: UUID) -> Optional["Notification"]:
        """Find notification by ID."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_user_id(self, user_id: UUID) -> List["Notification"]:
        """Find all notifications for a user (ordered by created_at DESC)."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_user_id_paginated(
        self, user_id: UUID, page: int, size: int
    ) -> Tuple[List["Notification"], int]:
        """Find one page of a user's notifications and the total count."""
        raise NotImplementedError

    @abstractmethod
    async def find_unread_by_user_id(self, user_id: UUID) -> List["Notification"]:
        """Find unread notifications for a user (ordered by created_at DESC)."""
        raise NotImplementedError

    @abstractmethod
    async def count_unread_by_user_id(self, user_id: UUID) -> int:
        """Count unread notifications for a user."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, notification_id: UUID) -> bool:
        """Delete a notification."""
        raise NotImplementedError
