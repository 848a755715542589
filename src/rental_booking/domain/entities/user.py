"""User entity as seen by the booking engine."""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4


class User:
    """Marketplace user; the same account can book items and own listings."""

    def __init__(
        self,
        email: str,
        first_name: str,
        last_name: str,
        user_id: Optional[UUID] = None,
        is_active: bool = True,
        created_at: Optional[datetime] = None
    ):
        self._id = user_id or uuid4()
        self._email = email.lower().strip()
        self._first_name = first_name.strip()
        self._last_name = last_name.strip()
        self._is_active = is_active
        self._created_at = created_at or datetime.utcnow()

    @property
    def id(self) -> UUID:
        """Get user ID."""
        return self._id

    @property
    def email(self) -> str:
        """Get user email."""
        return self._email

    @property
    def first_name(self) -> str:
        return self._first_name

    @property
    def last_name(self) -> str:
        return self._last_name

    @property
    def full_name(self) -> str:
        """Get user full name."""
        return f"{self._first_name} {self._last_name}"

    @property
    def is_active(self) -> bool:
        return self._is_active

    @property
    def created_at(self) -> datetime:
        return self._created_at

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, User):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __str__(self) -> str:
        return f"User({self._id}, {self._email})"
