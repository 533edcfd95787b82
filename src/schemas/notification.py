"""Notification Pydantic schemas for API request/response models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.models.notification import NotificationType


class NotificationResponse(BaseModel):
    """Schema for a single notification."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Notification id")
    user_id: str = Field(description="Recipient user id")
    title: str = Field(description="Short title")
    message: str = Field(description="Message body")
    type: NotificationType = Field(description="Notification kind")
    related_id: str | None = Field(default=None, description="Related order/request id")
    read: bool = Field(default=False, description="Whether the recipient has read it")
    created_at: datetime = Field(description="Creation timestamp")

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: Any) -> Any:
        return NotificationType(value) if isinstance(value, str) else value


class NotificationListResponse(BaseModel):
    """Schema for notification list responses."""

    model_config = ConfigDict(from_attributes=True)

    items: list[NotificationResponse] = Field(description="Notifications, newest first")


class UnreadCountResponse(BaseModel):
    count: int = Field(ge=0, description="Unread notifications for the caller")


class MarkAllReadResponse(BaseModel):
    updated: int = Field(ge=0, description="Notifications changed from unread to read")
