"""Item entity for the rental catalog."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4


class Item:
    """Listed item that other users can rent by the day."""

    def __init__(
        self,
        owner_id: UUID,
        name: str,
        price: Decimal,
        category: str = "general",
        item_id: Optional[UUID] = None,
        available: bool = True,
        location: Optional[str] = None,
        image_url: Optional[str] = None,
        created_at: Optional[datetime] = None
    ):
        if Decimal(price) < 0:
            raise ValueError("Item price cannot be negative")

        self._id = item_id or uuid4()
        self._owner_id = owner_id
        self._name = name.strip()
        self._price = Decimal(price)
        self._category = category
        self._available = available
        self._location = location
        self._image_url = image_url
        self._created_at = created_at or datetime.utcnow()

    @property
    def id(self) -> UUID:
        """Get item ID."""
        return self._id

    @property
    def owner_id(self) -> UUID:
        """Get ID of the user who listed the item."""
        return self._owner_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def price(self) -> Decimal:
        """Get nightly price."""
        return self._price

    @property
    def category(self) -> str:
        return self._category

    @property
    def available(self) -> bool:
        """Check if the owner accepts bookings for the item."""
        return self._available

    @property
    def location(self) -> Optional[str]:
        return self._location

    @property
    def image_url(self) -> Optional[str]:
        return self._image_url

    @property
    def created_at(self) -> datetime:
        return self._created_at

    def mark_unavailable(self) -> None:
        """Stop accepting bookings."""
        self._available = False

    def mark_available(self) -> None:
        """Accept bookings again."""
        self._available = True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Item):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __str__(self) -> str:
        return f"Item({self._id}, {self._name}, {self._price})"
