"""Notification inbox endpoints for the authenticated user."""

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Path, Query

from src.rental_booking.domain.entities.notification import Notification
from src.rental_booking.infrastructure.services import get_service_factory
from ..config import Settings, get_settings
from ..middleware import get_current_user_id
from ..schemas.booking_schemas import (
    ERROR_RESPONSES,
    ActionResponse,
    NotificationPageResponse,
    NotificationResponse,
    UnreadCountResponse
)
from .bookings import resolve_page_size

router = APIRouter(responses=ERROR_RESPONSES)


def to_response(notification: Notification) -> NotificationResponse:
    return NotificationResponse(
        id=notification.id,
        user_id=notification.user_id,
        title=notification.title,
        message=notification.message,
        type=notification.type.value,
        read=notification.read,
        related_entity_id=notification.related_entity_id,
        related_entity_type=notification.related_entity_type,
        created_at=notification.created_at
    )


@router.get("/")
async def get_notifications(
    user_id: UUID = Depends(get_current_user_id),
    service_factory=Depends(get_service_factory)
) -> List[NotificationResponse]:
    """List the caller's notifications, newest first."""
    async with service_factory.get_notification_service() as notification_service:
        notifications = await notification_service.get_user_notifications(user_id)
    return [to_response(n) for n in notifications]


@router.get("/paginated")
async def get_notifications_paginated(
    page: int = Query(0, ge=0, description="Zero-based page index"),
    size: Optional[int] = Query(None, ge=1, description="Page size"),
    user_id: UUID = Depends(get_current_user_id),
    settings: Settings = Depends(get_settings),
    service_factory=Depends(get_service_factory)
) -> NotificationPageResponse:
    """Get one page of the caller's notifications."""
    async with service_factory.get_notification_service() as notification_service:
        result = await notification_service.get_user_notifications_page(
            user_id, page, resolve_page_size(size, settings)
        )

    return NotificationPageResponse(
        content=[to_response(n) for n in result.items],
        page=result.page,
        size=result.size,
        total_elements=result.total,
        total_pages=result.total_pages
    )


@router.get("/unread")
async def get_unread_notifications(
    user_id: UUID = Depends(get_current_user_id),
    service_factory=Depends(get_service_factory)
) -> List[NotificationResponse]:
    async with service_factory.get_notification_service() as notification_service:
        notifications = await notification_service.get_unread_notifications(user_id)
    return [to_response(n) for n in notifications]


@router.get("/unread/count")
async def get_unread_count(
    user_id: UUID = Depends(get_current_user_id),
    service_factory=Depends(get_service_factory)
) -> UnreadCountResponse:
    async with service_factory.get_notification_service() as notification_service:
        count = await notification_service.get_unread_count(user_id)
    return UnreadCountResponse(count=count)


@router.patch("/read-all")
async def mark_all_as_read(
    user_id: UUID = Depends(get_current_user_id),
    service_factory=Depends(get_service_factory)
) -> ActionResponse:
    """Mark every unread notification of the caller as read."""
    async with service_factory.get_notification_service() as notification_service:
        updated = await notification_service.mark_all_as_read(user_id)
    return ActionResponse(success=True, message=f"{updated} notification(s) marked as read")


@router.patch("/{notification_id}/read")
async def mark_as_read(
    notification_id: UUID = Path(..., description="Notification ID"),
    user_id: UUID = Depends(get_current_user_id),
    service_factory=Depends(get_service_factory)
) -> NotificationResponse:
    async with service_factory.get_notification_service() as notification_service:
        notification = await notification_service.mark_as_read(notification_id, user_id)
    return to_response(notification)


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: UUID = Path(..., description="Notification ID"),
    user_id: UUID = Depends(get_current_user_id),
    service_factory=Depends(get_service_factory)
) -> ActionResponse:
    async with service_factory.get_notification_service() as notification_service:
        await notification_service.delete_notification(notification_id, user_id)
    return ActionResponse(success=True, message="Notification deleted")
