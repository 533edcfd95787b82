"""Notification API routes."""

from uuid import UUID

from fastapi import APIRouter, Query

from src.api.deps import CurrentUser
from src.schemas.notification import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from src.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="List my notifications",
)
async def list_notifications(
    user: CurrentUser,
    filter: str | None = Query(default=None, description='"unread" or a notification type'),
    limit: int | None = Query(default=None, ge=1, description="Maximum number of notifications"),
) -> NotificationListResponse:
    """List the caller's notifications, newest first."""
    items = await NotificationService().list_for_user(user.id, filter=filter, limit=limit)
    return NotificationListResponse(items=[NotificationResponse(**item) for item in items])


@router.get(
    "/unread-count",
    response_model=UnreadCountResponse,
    summary="Count unread notifications",
)
async def unread_count(user: CurrentUser) -> UnreadCountResponse:
    return UnreadCountResponse(count=await NotificationService().unread_count(user.id))


@router.post(
    "/read-all",
    response_model=MarkAllReadResponse,
    summary="Mark all notifications read",
)
async def mark_all_read(user: CurrentUser) -> MarkAllReadResponse:
    return MarkAllReadResponse(updated=await NotificationService().mark_all_read(user.id))


@router.post(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark a notification read",
    description="Only the recipient can mark a notification read.",
)
async def mark_read(notification_id: UUID, user: CurrentUser) -> NotificationResponse:
    notification = await NotificationService().mark_read(str(notification_id), user.id)
    return NotificationResponse(**notification)
