"""SQLAlchemy repository implementations."""

from contextlib import asynccontextmanager
from datetime import datetime, date
from typing import AsyncIterator, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, and_, func, delete, desc
from sqlalchemy.ext.asyncio import AsyncSession

from src.rental_booking.infrastructure.logging import (
    get_logger,
    log_database_operation
)

from src.rental_booking.application.ports.repositories import BookingRepository, ItemRepository, UserRepository, NotificationRepository
from src.rental_booking.domain.entities.booking import Booking, INACTIVE_STATUSES
from src.rental_booking.domain.entities.item import Item
from src.rental_booking.domain.entities.user import User
from src.rental_booking.domain.entities.notification import Notification
from src.rental_booking.infrastructure.database.models import BookingModel, ItemModel, UserModel, NotificationModel


class SQLAlchemyBookingRepository(BookingRepository):
    """SQLAlchemy implementation of booking repository."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._logger = get_logger(__name__)

    async def save(self, booking: Booking) -> Booking:
        """Save a booking to the database."""
        stmt = select(BookingModel).where(BookingModel.id == booking.id)
        result = await self._session.execute(stmt)
        existing_booking = result.scalar_one_or_none()

        if existing_booking:
            # Dates, item and price are fixed at creation; only lifecycle fields change
            existing_booking.status = booking.status
            existing_booking.payment_status = booking.payment_status
            existing_booking.payment_transaction_id = booking.payment_transaction_id
            existing_booking.updated_at = booking.updated_at
        else:
            booking_model = BookingModel(
                id=booking.id,
                item_id=booking.item_id,
                user_id=booking.user_id,
                start_date=booking.start_date,
                end_date=booking.end_date,
                rental_days=booking.rental_days,
                total_price=booking.total_price,
                status=booking.status,
                payment_status=booking.payment_status,
                payment_transaction_id=booking.payment_transaction_id,
                delivery_address=booking.delivery_address,
                special_instructions=booking.special_instructions,
                created_at=booking.created_at,
                updated_at=booking.updated_at
            )
            self._session.add(booking_model)

        log_database_operation(
            self._logger,
            "UPDATE" if existing_booking else "INSERT",
            "BookingModel",
            booking_id=str(booking.id)
        )
        await self._session.flush()
        return booking

    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        """Find booking by ID."""
        stmt = select(BookingModel).where(BookingModel.id == booking_id)
        result = await self._session.execute(stmt)
        booking_model = result.scalar_one_or_none()

        if not booking_model:
            return None

        return self._model_to_entity(booking_model)

    async def find_by_user_id(self, user_id: UUID) -> List[Booking]:
        """Find all bookings for a user."""
        stmt = select(BookingModel).where(
            BookingModel.user_id == user_id
        ).order_by(desc(BookingModel.created_at))

        return await self._fetch(stmt)

    async def find_by_user_id_paginated(self, user_id: UUID, page: int, size: int) -> Tuple[List[Booking], int]:
        """Find one page of a user's bookings, newest first."""
        count_stmt = select(func.count(BookingModel.id)).where(BookingModel.user_id == user_id)
        total = (await self._session.execute(count_stmt)).scalar() or 0

        stmt = select(BookingModel).where(
            BookingModel.user_id == user_id
        ).order_by(desc(BookingModel.created_at)).offset(page * size).limit(size)

        return await self._fetch(stmt), total

    async def find_by_item_id(self, item_id: UUID) -> List[Booking]:
        """Find all bookings for an item."""
        stmt = select(BookingModel).where(
            BookingModel.item_id == item_id
        ).order_by(BookingModel.start_date)

        return await self._fetch(stmt)

    async def find_by_item_owner_id(self, owner_id: UUID) -> List[Booking]:
        """Find all bookings for items listed by an owner."""
        stmt = select(BookingModel).join(
            ItemModel, BookingModel.item_id == ItemModel.id
        ).where(
            ItemModel.owner_id == owner_id
        ).order_by(desc(BookingModel.created_at))

        return await self._fetch(stmt)

    async def find_conflicting(self, item_id: UUID, start_date: date, end_date: date) -> List[Booking]:
        """Find active bookings overlapping an inclusive date range."""
        log_database_operation(
            self._logger,
            "SELECT",
            "BookingModel",
            query="conflict_check",
            item_id=str(item_id),
            start_date=str(start_date),
            end_date=str(end_date)
        )

        stmt = select(BookingModel).where(
            and_(
                BookingModel.item_id == item_id,
                BookingModel.status.not_in(list(INACTIVE_STATUSES)),
                BookingModel.start_date <= end_date,
                BookingModel.end_date >= start_date
            )
        ).order_by(BookingModel.start_date)

        return await self._fetch(stmt)

    @asynccontextmanager
    async def reservation(self, item_id: UUID) -> AsyncIterator[None]:
        """Lock the item row so concurrent reservations of it run one at a time."""
        log_database_operation(self._logger, "LOCK", "ItemModel", item_id=str(item_id))
        await self._session.execute(
            select(ItemModel.id).where(ItemModel.id == item_id).with_for_update()
        )
        async with self.transaction():
            yield

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Commit the session when the block succeeds, roll back otherwise."""
        try:
            yield
        except Exception:
            await self._session.rollback()
            raise
        await self._session.commit()

    async def _fetch(self, stmt) -> List[Booking]:
        result = await self._session.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    def _model_to_entity(self, model: BookingModel) -> Booking:
        """Convert database model to domain entity."""
        return Booking(
            booking_id=model.id,
            item_id=model.item_id,
            user_id=model.user_id,
            start_date=model.start_date,
            end_date=model.end_date,
            total_price=model.total_price,
            status=model.status,
            payment_status=model.payment_status,
            payment_transaction_id=model.payment_transaction_id,
            delivery_address=model.delivery_address,
            special_instructions=model.special_instructions,
            created_at=model.created_at,
            updated_at=model.updated_at
        )


class SQLAlchemyItemRepository(ItemRepository):
    """SQLAlchemy implementation of the item catalog."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save(self, item: Item) -> Item:
        """Save an item to the database."""
        existing_item = await self._session.get(ItemModel, item.id)

        if existing_item:
            existing_item.name = item.name
            existing_item.category = item.category
            existing_item.price = item.price
            existing_item.available = item.available
            existing_item.location = item.location
            existing_item.image_url = item.image_url
            existing_item.updated_at = datetime.utcnow()
        else:
            self._session.add(ItemModel(
                id=item.id,
                owner_id=item.owner_id,
                name=item.name,
                category=item.category,
                price=item.price,
                available=item.available,
                location=item.location,
                image_url=item.image_url,
                created_at=item.created_at
            ))

        await self._session.flush()
        return item

    async def find_by_id(self, item_id: UUID) -> Optional[Item]:
        """Find item by ID."""
        stmt = select(ItemModel).where(ItemModel.id == item_id)
        result = await self._session.execute(stmt)
        item_model = result.scalar_one_or_none()

        if not item_model:
            return None

        return self._model_to_entity(item_model)

    async def find_by_owner_id(self, owner_id: UUID) -> List[Item]:
        """Find all items listed by an owner."""
        stmt = select(ItemModel).where(
            ItemModel.owner_id == owner_id
        ).order_by(desc(ItemModel.created_at))

        result = await self._session.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    def _model_to_entity(self, model: ItemModel) -> Item:
        """Convert database model to domain entity."""
        return Item(
            item_id=model.id,
            owner_id=model.owner_id,
            name=model.name,
            category=model.category,
            price=model.price,
            available=model.available,
            location=model.location,
            image_url=model.image_url,
            created_at=model.created_at
        )


class SQLAlchemyUserRepository(UserRepository):
    """SQLAlchemy implementation of user repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save(self, user: User) -> User:
        """Save a user to the database."""
        existing_user = await self._session.get(UserModel, user.id)

        if existing_user:
            existing_user.email = user.email
            existing_user.first_name = user.first_name
            existing_user.last_name = user.last_name
            existing_user.is_active = user.is_active
        else:
            self._session.add(UserModel(
                id=user.id,
                email=user.email,
                first_name=user.first_name,
                last_name=user.last_name,
                is_active=user.is_active,
                created_at=user.created_at
            ))

        await self._session.flush()
        return user

    async def find_by_id(self, user_id: UUID) -> Optional[User]:
        """Find user by ID."""
        stmt = select(UserModel).where(UserModel.id == user_id)
        result = await self._session.execute(stmt)
        user_model = result.scalar_one_or_none()

        if not user_model:
            return None

        return self._model_to_entity(user_model)

    async def find_by_email(self, email: str) -> Optional[User]:
        """Find user by email."""
        stmt = select(UserModel).where(UserModel.email == email.lower().strip())
        result = await self._session.execute(stmt)
        user_model = result.scalar_one_or_none()

        if not user_model:
            return None

        return self._model_to_entity(user_model)

    async def exists(self, user_id: UUID) -> bool:
        """Check if user exists."""
        stmt = select(func.count(UserModel.id)).where(UserModel.id == user_id)
        result = await self._session.execute(stmt)
        count = result.scalar()

        return count > 0

    def _model_to_entity(self, model: UserModel) -> User:
        return User(
            user_id=model.id,
            email=model.email,
            first_name=model.first_name,
            last_name=model.last_name,
            is_active=model.is_active,
            created_at=model.created_at
        )


class SQLAlchemyNotificationRepository(NotificationRepository):
    """SQLAlchemy implementation of notification repository."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._logger = get_logger(__name__)

    async def save(self, notification: Notification) -> Notification:
        """Save a notification to the database."""
        existing = await self._session.get(NotificationModel, notification.id)

        if existing:
            existing.read = notification.read
        else:
            self._session.add(NotificationModel(
                id=notification.id,
                user_id=notification.user_id,
                title=notification.title,
                message=notification.message,
                type=notification.type,
                read=notification.read,
                related_entity_id=notification.related_entity_id,
                related_entity_type=notification.related_entity_type,
                created_at=notification.created_at
            ))

        await self._session.flush()
        return notification

    async def find_by_id(self, notification_id: UUID) -> Optional[Notification]:
        """Find notification by ID."""
        model = await self._session.get(NotificationModel, notification_id)
        return self._model_to_entity(model) if model else None

    async def find_by_user_id(self, user_id: UUID) -> List[Notification]:
        """Find all notifications for a user, newest first."""
        stmt = select(NotificationModel).where(
            NotificationModel.user_id == user_id
        ).order_by(desc(NotificationModel.created_at))

        return await self._fetch(stmt)

    async def find_by_user_id_paginated(self, user_id: UUID, page: int, size: int) -> Tuple[List[Notification], int]:
        """Find one page of a user's notifications, newest first."""
        count_stmt = select(func.count(NotificationModel.id)).where(NotificationModel.user_id == user_id)
        total = (await self._session.execute(count_stmt)).scalar() or 0

        stmt = select(NotificationModel).where(
            NotificationModel.user_id == user_id
        ).order_by(desc(NotificationModel.created_at)).offset(page * size).limit(size)

        return await self._fetch(stmt), total

    async def find_unread_by_user_id(self, user_id: UUID) -> List[Notification]:
        """Find unread notifications for a user, newest first."""
        stmt = select(NotificationModel).where(
            and_(
                NotificationModel.user_id == user_id,
                NotificationModel.read.is_(False)
            )
        ).order_by(desc(NotificationModel.created_at))

        return await self._fetch(stmt)

    async def count_unread_by_user_id(self, user_id: UUID) -> int:
        """Count unread notifications for a user."""
        stmt = select(func.count(NotificationModel.id)).where(
            and_(
                NotificationModel.user_id == user_id,
                NotificationModel.read.is_(False)
            )
        )
        result = await self._session.execute(stmt)
        return result.scalar() or 0

    async def delete(self, notification_id: UUID) -> bool:
        """Delete a notification."""
        log_database_operation(
            self._logger,
            "DELETE",
            "NotificationModel",
            notification_id=str(notification_id)
        )

        stmt = delete(NotificationModel).where(NotificationModel.id == notification_id)
        result = await self._session.execute(stmt)

        return result.rowcount > 0

    async def _fetch(self, stmt) -> List[Notification]:
        result = await self._session.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    def _model_to_entity(self, model: NotificationModel) -> Notification:
        """Convert database model to domain entity."""
        return Notification(
            notification_id=model.id,
            user_id=model.user_id,
            title=model.title,
            message=model.message,
            notification_type=model.type,
            read=model.read,
            related_entity_id=model.related_entity_id,
            related_entity_type=model.related_entity_type,
            created_at=model.created_at
        )
