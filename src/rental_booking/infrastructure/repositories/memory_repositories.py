"""In-memory repository implementations for testing and development."""

import asyncio
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator, Dict, List, Optional, Tuple
from uuid import UUID

from src.rental_booking.application.ports.repositories import (
    BookingRepository,
    ItemRepository,
    NotificationRepository,
    UserRepository
)
from src.rental_booking.domain.entities.booking import Booking
from src.rental_booking.domain.entities.item import Item
from src.rental_booking.domain.entities.notification import Notification
from src.rental_booking.domain.entities.user import User
from src.rental_booking.domain.value_objects.date_range import DateRange


class InMemoryItemRepository(ItemRepository):
    """In-memory implementation of the item catalog."""

    def __init__(self):
        self._items: Dict[UUID, Item] = {}

    async def save(self, item: Item) -> Item:
        """Save an item."""
        self._items[item.id] = item
        return item

    async def find_by_id(self, item_id: UUID) -> Optional[Item]:
        """Find item by ID."""
        return self._items.get(item_id)

    async def find_by_owner_id(self, owner_id: UUID) -> List[Item]:
        """Find all items listed by an owner."""
        return [item for item in self._items.values() if item.owner_id == owner_id]


class InMemoryBookingRepository(BookingRepository):
    """In-memory implementation of booking repository.

    Reservations of one item are serialized with a per-item ``asyncio.Lock``.
    A lock lives only while some reservation holds or waits for it.
    Needs the item catalog to answer owner queries.
    """

    def __init__(self, item_repository: InMemoryItemRepository):
        self._bookings: Dict[UUID, Booking] = {}
        self._item_repository = item_repository
        self._item_locks: Dict[UUID, asyncio.Lock] = {}
        self._lock_users: Dict[UUID, int] = {}
        self._write_lock = asyncio.Lock()

    async def save(self, booking: Booking) -> Booking:
        """Save a booking."""
        self._bookings[booking.id] = booking
        return booking

    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        """Find booking by ID."""
        return self._bookings.get(booking_id)

    async def find_by_user_id(self, user_id: UUID) -> List[Booking]:
        """Find all bookings for a user, newest first."""
        return self._newest_first(
            booking for booking in self._bookings.values() if booking.user_id == user_id
        )

    async def find_by_user_id_paginated(self, user_id: UUID, page: int, size: int) -> Tuple[List[Booking], int]:
        """Find one page of a user's bookings, newest first."""
        bookings = await self.find_by_user_id(user_id)
        offset = page * size
        return bookings[offset:offset + size], len(bookings)

    async def find_by_item_id(self, item_id: UUID) -> List[Booking]:
        """Find all bookings for an item."""
        return sorted(
            (booking for booking in self._bookings.values() if booking.item_id == item_id),
            key=lambda booking: booking.start_date
        )

    async def find_by_item_owner_id(self, owner_id: UUID) -> List[Booking]:
        """Find all bookings for items listed by an owner."""
        owned_ids = {item.id for item in await self._item_repository.find_by_owner_id(owner_id)}
        return self._newest_first(
            booking for booking in self._bookings.values() if booking.item_id in owned_ids
        )

    async def find_conflicting(self, item_id: UUID, start_date: date, end_date: date) -> List[Booking]:
        """Find active bookings overlapping an inclusive date range."""
        candidate = DateRange(start_date, end_date)
        return sorted(
            (booking for booking in self._bookings.values()
             if booking.item_id == item_id and booking.overlaps(candidate)),
            key=lambda booking: booking.start_date
        )

    @asynccontextmanager
    async def reservation(self, item_id: UUID) -> AsyncIterator[None]:
        """Hold the item's lock for the duration of the block."""
        lock = self._item_locks.setdefault(item_id, asyncio.Lock())
        self._lock_users[item_id] = self._lock_users.get(item_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[item_id] -= 1
            if self._lock_users[item_id] == 0:
                del self._lock_users[item_id]
                del self._item_locks[item_id]

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Serialize status updates."""
        async with self._write_lock:
            yield

    @staticmethod
    def _newest_first(bookings) -> List[Booking]:
        return sorted(bookings, key=lambda booking: booking.created_at, reverse=True)


class InMemoryUserRepository(UserRepository):
    """In-memory implementation of user repository."""

    def __init__(self):
        self._users: Dict[UUID, User] = {}

    async def save(self, user: User) -> User:
        """Save a user."""
        self._users[user.id] = user
        return user

    async def find_by_id(self, user_id: UUID) -> Optional[User]:
        """Find user by ID."""
        return self._users.get(user_id)

    async def find_by_email(self, email: str) -> Optional[User]:
        """Find user by email."""
        normalized = email.lower().strip()
        return next((user for user in self._users.values() if user.email == normalized), None)

    async def exists(self, user_id: UUID) -> bool:
        """Check if user exists."""
        return user_id in self._users


class InMemoryNotificationRepository(NotificationRepository):
    """In-memory implementation of notification repository."""

    def __init__(self):
        self._notifications: Dict[UUID, Notification] = {}

    async def save(self, notification: Notification) -> Notification:
        """Save a notification."""
        self._notifications[notification.id] = notification
        return notification

    async def find_by_id(self, notification_id: UUID) -> Optional[Notification]:
        """Find notification by ID."""
        return self._notifications.get(notification_id)

    async def find_by_user_id(self, user_id: UUID) -> List[Notification]:
        """Find all notifications for a user, newest first."""
        return sorted(
            (n for n in self._notifications.values() if n.user_id == user_id),
            key=lambda n: n.created_at,
            reverse=True
        )

    async def find_by_user_id_paginated(self, user_id: UUID, page: int, size: int) -> Tuple[List[Notification], int]:
        """Find one page of a user's notifications, newest first."""
        notifications = await self.find_by_user_id(user_id)
        offset = page * size
        return notifications[offset:offset + size], len(notifications)

    async def find_unread_by_user_id(self, user_id: UUID) -> List[Notification]:
        """Find unread notifications for a user, newest first."""
        return [n for n in await self.find_by_user_id(user_id) if not n.read]

    async def count_unread_by_user_id(self, user_id: UUID) -> int:
        """Count unread notifications for a user."""
        return len(await self.find_unread_by_user_id(user_id))

    async def delete(self, notification_id: UUID) -> bool:
        """Delete a notification."""
        if notification_id in self._notifications:
            del self._notifications[notification_id]
            return True
        return False
