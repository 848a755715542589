"""Date range value object for rental periods."""

from dataclasses import dataclass
from datetime import date

from ..exceptions import InvalidDateRangeError


@dataclass(frozen=True)
class DateRange:
    """Immutable inclusive calendar range ``[start, end]``."""

    start: date
    end: date

    def __post_init__(self) -> None:
        """Validate range bounds."""
        if self.end < self.start:
            raise InvalidDateRangeError(
                f"End date {self.end.isoformat()} is before start date {self.start.isoformat()}"
            )

    @property
    def days(self) -> int:
        """Number of rental days, counting both ends."""
        return (self.end - self.start).days + 1

    def overlaps(self, other: "DateRange") -> bool:
        """Check whether two inclusive ranges share at least one day."""
        return self.start <= other.end and self.end >= other.start

    def contains(self, day: date) -> bool:
        """Check if a single day falls inside the range."""
        return self.start <= day <= self.end

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"
