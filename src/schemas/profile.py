"""Profile Pydantic schemas for API request/response models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PublicProfile(BaseModel):
    """Buyer fields a seller may see on a sale."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Profile identifier (equals the auth user id)")
    username: str | None = Field(default=None, description="Public username")
    full_name: str | None = Field(default=None, description="Full name")
    avatar_url: str | None = Field(default=None, description="URL to user's avatar image")
    location: str | None = Field(default=None, description="Free-form location")


class ProfileResponse(PublicProfile):
    """Schema for the caller's own profile."""

    email: str | None = Field(default=None, description="User email address")
    created_at: datetime | None = Field(default=None, description="Profile creation timestamp")
    updated_at: datetime | None = Field(default=None, description="Last update timestamp")
