"""Profile business logic service."""

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from src.core.supabase import get_supabase_client
from src.models.profile import PUBLIC_PROFILE_COLUMNS, ProfileCreate

logger = logging.getLogger(__name__)


class ProfileService:
    """Service for managing user profiles."""

    def __init__(self) -> None:
        """Initialize profile service with Supabase client."""
        self.client = get_supabase_client()

    async def ensure_profile(self, user_id: UUID | str, email: str | None = None) -> dict[str, Any]:
        """Get the user's profile, creating a minimal one on first sight.

        This is the only place profiles are created; it runs when a request
        is authenticated, so no other write path needs to create one as a
        side effect. Safe to call repeatedly.

        Args:
            user_id: The auth user id (also the profile primary key).
            email: User's email address from the token.

        Returns:
            dict: The profile data.
        """
        profile_id = str(user_id)
        response = (
            self.client.table("profiles")
            .select("*")
            .eq("id", profile_id)
            .execute()
        )

        if response.data:
            return response.data[0]

        now = datetime.now(timezone.utc).isoformat()
        profile_data: ProfileCreate = {
            "id": profile_id,
            "username": f"user_{profile_id.replace('-', '')[:8]}",
            "email": email,
            "created_at": now,
            "updated_at": now,
        }

        # upsert so two first requests racing each other both succeed
        response = (
            self.client.table("profiles")
            .upsert(profile_data, on_conflict="id", ignore_duplicates=True)
            .execute()
        )
        if response.data:
            logger.info("Created profile for user %s", profile_id)
            return response.data[0]

        return await self.get_profile(profile_id) or profile_data

    async def get_profile(self, user_id: UUID | str) -> dict[str, Any] | None:
        """Get a profile by user id.

        Returns:
            dict | None: The profile data or None if not found.
        """
        response = (
            self.client.table("profiles")
            .select("*")
            .eq("id", str(user_id))
            .execute()
        )
        return response.data[0] if response.data else None

    async def get_public_profiles(self, user_ids: list[str]) -> dict[str, dict[str, Any]]:
        """Batch-load the public fields of several profiles keyed by id."""
        if not user_ids:
            return {}
        response = (
            self.client.table("profiles")
            .select(PUBLIC_PROFILE_COLUMNS)
            .in_("id", list(dict.fromkeys(user_ids)))
            .execute()
        )
        return {row["id"]: row for row in response.data or []}
