"""Port interface for notification dispatch."""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from ...domain.entities.notification import NotificationType


class NotificationDispatcher(ABC):
    """Fire-and-forget delivery of notifications to users.

    Implementations must not raise: a notification that cannot be stored or
    delivered is logged and dropped so it never undoes the operation that
    triggered it.
    """

    @abstractmethod
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
        raise NotImplementedError
