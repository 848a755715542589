"""Pydantic schemas for booking API requests and responses."""

from datetime import datetime, date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from src.rental_booking.application.services.booking_service import BookingDetails


class BookingRequest(BaseModel):
    """Request model for creating a booking."""
    item_id: UUID = Field(..., description="ID of the item to rent")
    start_date: date = Field(..., description="First rental day (inclusive)")
    end_date: date = Field(..., description="Last rental day (inclusive)")
    delivery_address: Optional[str] = Field(None, max_length=500)
    special_instructions: Optional[str] = Field(None, max_length=2000)

    @field_validator('delivery_address', 'special_instructions')
    @classmethod
    def blank_to_none(cls, v):
        """Treat whitespace-only text as absent."""
        if v is not None and not v.strip():
            return None
        return v


class BookingResponse(BaseModel):
    """Response model for booking operations."""
    id: UUID
    item_id: UUID
    item_name: Optional[str] = None
    item_image: Optional[str] = None
    user_id: UUID
    user_name: Optional[str] = None
    start_date: date
    end_date: date
    rental_days: int
    total_price: Decimal
    status: str
    delivery_address: Optional[str] = None
    special_instructions: Optional[str] = None
    payment_status: str
    payment_transaction_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_details(cls, details: BookingDetails, viewer_id: Optional[UUID] = None) -> "BookingResponse":
        """Build the response from a booking and its resolved display fields.

        When ``viewer_id`` is neither the booker nor the item owner, the
        delivery address and special instructions are left out.
        """
        booking = details.booking
        show_private = viewer_id is None or details.is_visible_to(viewer_id)
        return cls(
            id=booking.id,
            item_id=booking.item_id,
            item_name=details.item_name,
            item_image=details.item_image,
            user_id=booking.user_id,
            user_name=details.user_name,
            start_date=booking.start_date,
            end_date=booking.end_date,
            rental_days=booking.rental_days,
            total_price=booking.total_price,
            status=booking.status.value,
            delivery_address=booking.delivery_address if show_private else None,
            special_instructions=booking.special_instructions if show_private else None,
            payment_status=booking.payment_status,
            payment_transaction_id=booking.payment_transaction_id,
            created_at=booking.created_at,
            updated_at=booking.updated_at
        )


class BookingPageResponse(BaseModel):
    """Response model for a page of bookings."""
    content: List[BookingResponse]
    page: int
    size: int
    total_elements: int
    total_pages: int


class NotificationResponse(BaseModel):
    """Response model for notifications."""
    id: UUID
    user_id: UUID
    title: str
    message: Optional[str] = None
    type: str
    read: bool
    related_entity_id: Optional[str] = None
    related_entity_type: Optional[str] = None
    created_at: datetime


class NotificationPageResponse(BaseModel):
    """Response model for a page of notifications."""
    content: List[NotificationResponse]
    page: int
    size: int
    total_elements: int
    total_pages: int


class UnreadCountResponse(BaseModel):
    count: int


class ActionResponse(BaseModel):
    """Response model for actions without a resource body."""
    success: bool
    message: str


class ErrorResponse(BaseModel):
    """Response model for errors."""
    detail: str
    type: str


ERROR_RESPONSES = {
    code: {"model": ErrorResponse}
    for code in (400, 401, 403, 404, 409, 503)
}
