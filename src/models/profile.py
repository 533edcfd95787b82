"""Profile model type definitions for database operations."""

from datetime import datetime
from typing import TypedDict


class Profile(TypedDict):
    """Profile table row representation.

    The primary key is the identity provider's user id, so a profile can be
    looked up directly from a verified token subject.
    """

    id: str
    username: str
    full_name: str | None
    email: str | None
    avatar_url: str | None
    location: str | None
    created_at: datetime
    updated_at: datetime


class ProfileCreate(TypedDict, total=False):
    """Data written when a profile is first ensured for a user."""

    id: str
    username: str
    email: str | None
    created_at: str
    updated_at: str


# Columns of a buyer profile that a seller is allowed to see.
PUBLIC_PROFILE_COLUMNS = "id, username, full_name, avatar_url, location"
