"""Notification entity for in-app messages to users."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4


class NotificationType(Enum):
    """Notification type enumeration."""
    BOOKING_CONFIRMED = "BOOKING_CONFIRMED"
    BOOKING_CANCELLED = "BOOKING_CANCELLED"
    PAYMENT_SUCCESS = "PAYMENT_SUCCESS"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    NEW_MESSAGE = "NEW_MESSAGE"
    ITEM_AVAILABLE = "ITEM_AVAILABLE"
    FEEDBACK_RECEIVED = "FEEDBACK_RECEIVED"
    SYSTEM_NOTIFICATION = "SYSTEM_NOTIFICATION"


class Notification:
    """Notification entity addressed to a single user."""

    def __init__(
        self,
        user_id: UUID,
        title: str,
        message: str,
        notification_type: NotificationType,
        notification_id: Optional[UUID] = None,
        read: bool = False,
        related_entity_id: Optional[str] = None,
        related_entity_type: Optional[str] = None,
        created_at: Optional[datetime] = None
    ):
        if not title or not title.strip():
            raise ValueError("Notification title cannot be empty")

        self._id = notification_id or uuid4()
        self._user_id = user_id
        self._title = title.strip()
        self._message = message
        self._type = notification_type
        self._read = read
        self._related_entity_id = related_entity_id
        self._related_entity_type = related_entity_type
        self._created_at = created_at or datetime.utcnow()

    @property
    def id(self) -> UUID:
        """Get notification ID."""
        return self._id

    @property
    def user_id(self) -> UUID:
        """Get ID of the recipient."""
        return self._user_id

    @property
    def title(self) -> str:
        return self._title

    @property
    def message(self) -> str:
        return self._message

    @property
    def type(self) -> NotificationType:
        return self._type

    @property
    def read(self) -> bool:
        return self._read

    @property
    def related_entity_id(self) -> Optional[str]:
        return self._related_entity_id

    @property
    def related_entity_type(self) -> Optional[str]:
        return self._related_entity_type

    @property
    def created_at(self) -> datetime:
        return self._created_at

    def mark_as_read(self) -> None:
        """Mark notification as read."""
        self._read = True

    def belongs_to(self, user_id: UUID) -> bool:
        return self._user_id == user_id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Notification):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __str__(self) -> str:
        return f"Notification({self._id}, {self._type.value}, read={self._read})"
