"""Notification model type definitions."""

from datetime import datetime
from typing import TypedDict

from src.models.base import NormalizedEnum


class NotificationType(NormalizedEnum):
    """Kinds of notification a user can receive."""

    PURCHASE_RECEIVED = "purchase_received"
    PURCHASE_CONFIRMED = "purchase_confirmed"
    PURCHASE_SHIPPED = "purchase_shipped"
    PURCHASE_COMPLETED = "purchase_completed"
    PURCHASE_CANCELLED = "purchase_cancelled"
    BOOK_REQUEST = "book_request"
    REQUEST_UPDATE = "request_update"
    SWAP_REQUEST = "swap_request"
    SWAP_APPROVED = "swap_approved"
    SWAP_REJECTED = "swap_rejected"

    @property
    def is_order_event(self) -> bool:
        """True for types emitted once per order transition."""
        return self.value.startswith("purchase_")


class Notification(TypedDict):
    """notifications table row."""

    id: str
    user_id: str
    title: str
    message: str
    type: NotificationType
    related_id: str | None
    read: bool
    created_at: datetime
