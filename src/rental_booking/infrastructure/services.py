"""Dependency injection and service factory."""

from typing import AsyncGenerator, Optional
from contextlib import asynccontextmanager
from uuid import UUID

from src.rental_booking.application.ports.notifications import NotificationDispatcher
from src.rental_booking.application.services.booking_service import BookingService
from src.rental_booking.application.services.notification_service import NotificationService
from src.rental_booking.domain.entities.notification import NotificationType
from src.rental_booking.infrastructure.database.connection import DatabaseManager
from src.rental_booking.infrastructure.logging import get_logger
from src.rental_booking.infrastructure.repositories.memory_repositories import (
    InMemoryBookingRepository,
    InMemoryItemRepository,
    InMemoryNotificationRepository,
    InMemoryUserRepository
)
from src.rental_booking.infrastructure.repositories.sql_repositories import (
    SQLAlchemyBookingRepository,
    SQLAlchemyItemRepository,
    SQLAlchemyNotificationRepository,
    SQLAlchemyUserRepository
)

logger = get_logger(__name__)


class SessionNotificationDispatcher(NotificationDispatcher):
    """Stores each notification in its own database session.

    Runs after the booking transaction has committed, so a failure here
    cannot roll the booking back.
    """

    def __init__(self, database_manager: DatabaseManager):
        self._database_manager = database_manager

    async def notify(
        self,
        user_id: UUID,
        title: str,
        message: str,
        notification_type: NotificationType,
        related_entity_id: Optional[str] = None,
        related_entity_type: Optional[str] = None
    ) -> None:
        """Send a notification to a user."""
        try:
            async with self._database_manager.get_session() as session:
                service = NotificationService(
                    notification_repository=SQLAlchemyNotificationRepository(session),
                    user_repository=SQLAlchemyUserRepository(session)
                )
                await service.create_notification(
                    user_id, title, message, notification_type,
                    related_entity_id=related_entity_id,
                    related_entity_type=related_entity_type
                )
        except Exception:
            logger.exception(
                f"Failed to dispatch notification '{title}' to user {user_id}",
                extra={"notification_type": notification_type.value, "related_entity_id": related_entity_id}
            )


class ServiceFactory:
    """Factory for creating application services backed by the database."""

    def __init__(self, database_url: str, echo: bool = False, pool_size: int = 10, max_overflow: int = 20):
        self.database_manager = DatabaseManager(
            database_url, echo=echo, pool_size=pool_size, max_overflow=max_overflow
        )
        self._connected = False
        self._dispatcher = SessionNotificationDispatcher(self.database_manager)

    async def initialize(self):
        """Initialize the service factory."""
        if not self._connected:
            await self.database_manager.connect()
            self._connected = True

    async def shutdown(self):
        """Shutdown the service factory."""
        if self._connected:
            await self.database_manager.disconnect()
            self._connected = False

    @asynccontextmanager
    async def get_booking_service(self) -> AsyncGenerator[BookingService, None]:
        """Get booking service with database repositories."""
        async with self.database_manager.get_session() as session:
            yield BookingService(
                booking_repository=SQLAlchemyBookingRepository(session),
                item_repository=SQLAlchemyItemRepository(session),
                user_repository=SQLAlchemyUserRepository(session),
                notification_dispatcher=self._dispatcher
            )

    @asynccontextmanager
    async def get_notification_service(self) -> AsyncGenerator[NotificationService, None]:
        """Get notification service with database repositories."""
        async with self.database_manager.get_session() as session:
            yield NotificationService(
                notification_repository=SQLAlchemyNotificationRepository(session),
                user_repository=SQLAlchemyUserRepository(session)
            )


class InMemoryServiceFactory:
    """Factory wiring the services to process-local repositories."""

    def __init__(self):
        self.item_repository = InMemoryItemRepository()
        self.user_repository = InMemoryUserRepository()
        self.booking_repository = InMemoryBookingRepository(self.item_repository)
        self.notification_repository = InMemoryNotificationRepository()

    async def initialize(self):
        """Nothing to connect to."""

    async def shutdown(self):
        """Nothing to release."""

    def _notification_service(self) -> NotificationService:
        return NotificationService(
            notification_repository=self.notification_repository,
            user_repository=self.user_repository
        )

    @asynccontextmanager
    async def get_booking_service(self) -> AsyncGenerator[BookingService, None]:
        """Get booking service with in-memory repositories."""
        yield BookingService(
            booking_repository=self.booking_repository,
            item_repository=self.item_repository,
            user_repository=self.user_repository,
            notification_dispatcher=self._notification_service()
        )

    @asynccontextmanager
    async def get_notification_service(self) -> AsyncGenerator[NotificationService, None]:
        """Get notification service with in-memory repositories."""
        yield self._notification_service()


# Global service factory instance
_service_factory: ServiceFactory | InMemoryServiceFactory | None = None


def create_service_factory(
    storage_backend: str,
    database_url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 20
) -> ServiceFactory | InMemoryServiceFactory:
    """Build the factory for the configured storage backend."""
    backend = storage_backend.lower()
    if backend == "memory":
        return InMemoryServiceFactory()
    if backend == "sql":
        return ServiceFactory(database_url, echo=echo, pool_size=pool_size, max_overflow=max_overflow)
    raise ValueError(f"Unknown storage backend: {storage_backend}")


def get_service_factory() -> ServiceFactory | InMemoryServiceFactory:
    """Get the global service factory instance."""
    global _service_factory

    if _service_factory is None:
        from src.rental_booking.presentation.api.config import get_settings

        settings = get_settings()
        _service_factory = create_service_factory(
            settings.storage_backend,
            settings.database_url,
            echo=settings.debug and settings.db_echo,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow
        )
        logger.info(f"Using {settings.storage_backend} storage backend")

    return _service_factory


async def initialize_services():
    """Initialize application services."""
    factory = get_service_factory()
    await factory.initialize()


async def shutdown_services():
    """Shutdown application services."""
    factory = get_service_factory()
    await factory.shutdown()
