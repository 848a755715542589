"""Notification service for storing and reading user notifications."""

from typing import List, Optional, TYPE_CHECKING
from uuid import UUID

from src.rental_booking.application.ports.notifications import NotificationDispatcher
from src.rental_booking.domain.entities.notification import Notification, NotificationType
from src.rental_booking.domain.exceptions import ForbiddenError, NotFoundError
from src.rental_booking.domain.value_objects.page import Page
from src.rental_booking.infrastructure.logging import get_logger

if TYPE_CHECKING:
    from src.rental_booking.application.ports.repositories import NotificationRepository, UserRepository


class NotificationService(NotificationDispatcher):
    """Application service for user notifications."""

    def __init__(
        self,
        notification_repository: "NotificationRepository",
        user_repository: "UserRepository"
    ):
        self._notification_repository = notification_repository
        self._user_repository = user_repository
        self._logger = get_logger(__name__)

    async def create_notification(
        self,
        user_id: UUID,
        title: str,
        message: str,
        notification_type: NotificationType,
        related_entity_id: Optional[str] = None,
        related_entity_type: Optional[str] = None
    ) -> Notification:
        """Store a new unread notification for a user."""
        if not await self._user_repository.exists(user_id):
            raise NotFoundError("user", user_id)

        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            notification_type=notification_type,
            related_entity_id=related_entity_id,
            related_entity_type=related_entity_type
        )
        return await self._notification_repository.save(notification)

    async def notify(
        self,
        user_id: UUID,
        title: str,
        message: str,
        notification_type: NotificationType,
        related_entity_id: Optional[str] = None,
        related_entity_type: Optional[str] = None
    ) -> None:
        """Best-effort variant of create_notification used by other services."""
        try:
            await self.create_notification(
                user_id, title, message, notification_type,
                related_entity_id=related_entity_id,
                related_entity_type=related_entity_type
            )
        except Exception:
            self._logger.exception(
                f"Failed to store notification '{title}' for user {user_id}",
                extra={"notification_type": notification_type.value, "related_entity_id": related_entity_id}
            )

    async def get_user_notifications(self, user_id: UUID) -> List[Notification]:
        """Get all notifications for a user, newest first."""
        return await self._notification_repository.find_by_user_id(user_id)

    async def get_user_notifications_page(self, user_id: UUID, page: int = 0, size: int = 10) -> Page[Notification]:
        """Get one page of a user's notifications, newest first."""
        if page < 0 or size < 1:
            raise ValueError("Page must be >= 0 and size must be >= 1")
        notifications, total = await self._notification_repository.find_by_user_id_paginated(user_id, page, size)
        return Page(items=notifications, page=page, size=size, total=total)

    async def get_unread_notifications(self, user_id: UUID) -> List[Notification]:
        return await self._notification_repository.find_unread_by_user_id(user_id)

    async def get_unread_count(self, user_id: UUID) -> int:
        return await self._notification_repository.count_unread_by_user_id(user_id)

    async def mark_as_read(self, notification_id: UUID, user_id: UUID) -> Notification:
        """Mark one of the caller's notifications as read."""
        notification = await self._get_owned(notification_id, user_id, "update")
        notification.mark_as_read()
        return await self._notification_repository.save(notification)

    async def mark_all_as_read(self, user_id: UUID) -> int:
        """Mark every unread notification of a user as read and return how many changed."""
        unread = await self._notification_repository.find_unread_by_user_id(user_id)
        for notification in unread:
            notification.mark_as_read()
            await self._notification_repository.save(notification)
        return len(unread)

    async def delete_notification(self, notification_id: UUID, user_id: UUID) -> None:
        """Delete one of the caller's notifications."""
        await self._get_owned(notification_id, user_id, "delete")
        await self._notification_repository.delete(notification_id)

    async def _get_owned(self, notification_id: UUID, user_id: UUID, action: str) -> Notification:
        notification = await self._notification_repository.find_by_id(notification_id)
        if notification is None:
            raise NotFoundError("notification", notification_id)
        if not notification.belongs_to(user_id):
            raise ForbiddenError(f"You don't have permission to {action} this notification")
        return notification
