"""Booking endpoints."""

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Path, Query, status as http_status

from src.rental_booking.infrastructure.services import get_service_factory
from ..config import Settings, get_settings
from ..middleware import get_current_user_id
from ..schemas.booking_schemas import (
    ERROR_RESPONSES,
    BookingPageResponse,
    BookingRequest,
    BookingResponse
)

router = APIRouter(responses=ERROR_RESPONSES)


def resolve_page_size(size: Optional[int], settings: Settings) -> int:
    """Fall back to the configured default and cap at the configured maximum."""
    if size is None:
        return settings.default_page_size
    return min(size, settings.max_page_size)


@router.post("/", status_code=http_status.HTTP_201_CREATED)
async def create_booking(
    request: BookingRequest,
    user_id: UUID = Depends(get_current_user_id),
    service_factory=Depends(get_service_factory)
) -> BookingResponse:
    """Reserve an item for the authenticated user."""
    async with service_factory.get_booking_service() as booking_service:
        booking = await booking_service.create_booking(
            item_id=request.item_id,
            user_id=user_id,
            start_date=request.start_date,
            end_date=request.end_date,
            delivery_address=request.delivery_address,
            special_instructions=request.special_instructions
        )
        details = await booking_service.describe_booking(booking)

    return BookingResponse.from_details(details)


@router.get("/my-bookings")
async def get_my_bookings(
    user_id: UUID = Depends(get_current_user_id),
    service_factory=Depends(get_service_factory)
) -> List[BookingResponse]:
    """List the authenticated user's bookings, newest first."""
    async with service_factory.get_booking_service() as booking_service:
        bookings = await booking_service.get_user_bookings(user_id)
        details = [await booking_service.describe_booking(b) for b in bookings]

    return [BookingResponse.from_details(d) for d in details]


@router.get("/my-bookings/paginated")
async def get_my_bookings_paginated(
    page: int = Query(0, ge=0, description="Zero-based page index"),
    size: Optional[int] = Query(None, ge=1, description="Page size"),
    user_id: UUID = Depends(get_current_user_id),
    settings: Settings = Depends(get_settings),
    service_factory=Depends(get_service_factory)
) -> BookingPageResponse:
    """Get one page of the authenticated user's bookings."""
    page_size = resolve_page_size(size, settings)

    async with service_factory.get_booking_service() as booking_service:
        result = await booking_service.get_user_bookings_page(user_id, page, page_size)
        details = [await booking_service.describe_booking(b) for b in result.items]

    return BookingPageResponse(
        content=[BookingResponse.from_details(d) for d in details],
        page=result.page,
        size=result.size,
        total_elements=result.total,
        total_pages=result.total_pages
    )


@router.get("/owner")
async def get_owner_bookings(
    user_id: UUID = Depends(get_current_user_id),
    service_factory=Depends(get_service_factory)
) -> List[BookingResponse]:
    """List bookings made on items the authenticated user owns."""
    async with service_factory.get_booking_service() as booking_service:
        bookings = await booking_service.get_owner_bookings(user_id)
        details = [await booking_service.describe_booking(b) for b in bookings]

    return [BookingResponse.from_details(d) for d in details]


@router.get("/item/{item_id}")
async def get_item_bookings(
    item_id: UUID = Path(..., description="Item ID"),
    user_id: UUID = Depends(get_current_user_id),
    service_factory=Depends(get_service_factory)
) -> List[BookingResponse]:
    """List bookings for an item, ordered by start date.

    Other renters' delivery details are hidden from callers outside each booking.
    """
    async with service_factory.get_booking_service() as booking_service:
        bookings = await booking_service.get_item_bookings(item_id)
        details = [await booking_service.describe_booking(b) for b in bookings]

    return [BookingResponse.from_details(d, viewer_id=user_id) for d in details]


@router.get("/{booking_id}")
async def get_booking(
    booking_id: UUID = Path(..., description="Booking ID"),
    user_id: UUID = Depends(get_current_user_id),
    service_factory=Depends(get_service_factory)
) -> BookingResponse:
    """Get booking by ID. Only the booker or the item owner may read it."""
    async with service_factory.get_booking_service() as booking_service:
        booking = await booking_service.get_booking(booking_id, caller_id=user_id)
        details = await booking_service.describe_booking(booking)

    return BookingResponse.from_details(details)


@router.patch("/{booking_id}/status")
async def update_booking_status(
    booking_id: UUID = Path(..., description="Booking ID"),
    status: str = Query(..., description="Target status, e.g. CONFIRMED"),
    user_id: UUID = Depends(get_current_user_id),
    service_factory=Depends(get_service_factory)
) -> BookingResponse:
    """Move a booking to a new status. Only the booker or the item owner may do this."""
    async with service_factory.get_booking_service() as booking_service:
        booking = await booking_service.update_booking_status(booking_id, status, user_id)
        details = await booking_service.describe_booking(booking)

    return BookingResponse.from_details(details)
