"""Notification emitter and the read/mark-read operations behind the bell icon."""

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from src.api.middleware.error_handler import (
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
    ValidationError,
)
from src.core.config import get_settings
from src.core.supabase import get_supabase_client
from src.models.notification import NotificationType

logger = logging.getLogger(__name__)

UNREAD_FILTER = "unread"


class NotificationService:
    """Service for the notifications table."""

    def __init__(self) -> None:
        """Initialize notification service with Supabase client."""
        self.client = get_supabase_client()
        self.settings = get_settings()

    async def notify(
        self,
        user_id: str,
        notification_type: NotificationType,
        title: str,
        message: str,
        related_id: str | None = None,
    ) -> dict[str, Any]:
        """Insert a notification for a user.

        Order-event notifications (purchase_*) with a related id are
        deduplicated on (user_id, type, related_id): a webhook redelivery or a
        retried transition returns the existing row instead of inserting a
        second one. Other types always insert.

        Args:
            user_id: Recipient.
            notification_type: Notification kind.
            title: Short title.
            message: Body text.
            related_id: Id of the order/request the notification is about.

        Returns:
            dict: The stored (or already existing) notification row.

        Raises:
            PersistenceError: If the insert fails.
        """
        notification_type = NotificationType(notification_type)

        if notification_type.is_order_event and related_id:
            existing = (
                self.client.table("notifications")
                .select("*")
                .eq("user_id", user_id)
                .eq("type", notification_type.value)
                .eq("related_id", related_id)
                .limit(1)
                .execute()
            )
            if existing.data:
                logger.debug("Notification %s for %s on %s already exists", notification_type.value, user_id, related_id)
                return existing.data[0]

        row = {
            "id": str(uuid4()),
            "user_id": user_id,
            "title": title,
            "message": message,
            "type": notification_type.value,
            "related_id": related_id,
            "read": False,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            response = self.client.table("notifications").insert(row).execute()
        except Exception as e:
            raise PersistenceError("Failed to create notification") from e

        return response.data[0] if response.data else row

    async def list_for_user(
        self,
        user_id: str,
        filter: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """List a user's notifications, newest first.

        Args:
            user_id: Recipient.
            filter: "unread" for unread only, or a notification type.
            limit: Maximum rows; capped at NOTIFICATION_LIST_MAX_LIMIT.

        Raises:
            ValidationError: If the filter is neither "unread" nor a known type.
        """
        query = (
            self.client.table("notifications")
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .order("id", desc=True)
        )

        if filter == UNREAD_FILTER:
            query = query.eq("read", False)
        elif filter:
            try:
                query = query.eq("type", NotificationType(filter).value)
            except ValueError as e:
                raise ValidationError(f"Unknown notification filter: {filter}") from e

        max_limit = self.settings.notification_list_max_limit
        query = query.limit(min(limit, max_limit) if limit else max_limit)

        response = query.execute()
        return response.data or []

    async def unread_count(self, user_id: str) -> int:
        """Count a user's unread notifications."""
        response = (
            self.client.table("notifications")
            .select("id", count="exact")
            .eq("user_id", user_id)
            .eq("read", False)
            .execute()
        )
        if response.count is not None:
            return response.count
        return len(response.data or [])

    async def mark_read(self, notification_id: str, user_id: str) -> dict[str, Any]:
        """Mark one notification read on behalf of its recipient.

        Raises:
            NotFoundError: If the notification does not exist.
            PermissionDeniedError: If it belongs to another user. The row is
                left untouched.
        """
        response = (
            self.client.table("notifications")
            .select("*")
            .eq("id", notification_id)
            .maybe_single()
            .execute()
        )
        notification = response.data if response and response.data else None
        if not notification:
            raise NotFoundError("Notification not found")

        if notification["user_id"] != user_id:
            raise PermissionDeniedError("You don't have permission to update this notification")

        if notification.get("read"):
            return notification

        # user_id in the filter keeps the write scoped to the recipient
        try:
            updated = (
                self.client.table("notifications")
                .update({"read": True})
                .eq("id", notification_id)
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            raise PersistenceError("Failed to update notification") from e

        return updated.data[0] if updated.data else {**notification, "read": True}

    async def mark_all_read(self, user_id: str) -> int:
        """Mark every unread notification of a user as read in one update.

        Idempotent: a second call finds no unread rows and changes nothing.

        Returns:
            int: Number of notifications that changed.
        """
        try:
            response = (
                self.client.table("notifications")
                .update({"read": True})
                .eq("user_id", user_id)
                .eq("read", False)
                .execute()
            )
        except Exception as e:
            raise PersistenceError("Failed to update notifications") from e

        return len(response.data or [])
