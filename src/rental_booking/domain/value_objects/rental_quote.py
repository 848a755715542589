"""Rental quote value object."""

from decimal import Decimal
from typing import NamedTuple


class RentalQuote(NamedTuple):
    """Inclusive day count and total price for a rental period."""

    days: int
    total: Decimal
