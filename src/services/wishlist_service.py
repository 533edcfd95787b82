"""Wishlist service."""

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from src.api.middleware.error_handler import NotFoundError, PersistenceError
from src.core.supabase import get_supabase_client
from src.services.catalog_service import CatalogService


class WishlistService:
    """Service for the wishlists table: saved books per user."""

    def __init__(self) -> None:
        """Initialize wishlist service with Supabase client."""
        self.client = get_supabase_client()
        self.catalog = CatalogService()

    async def add(self, user_id: str, book_id: str) -> tuple[dict[str, Any], bool]:
        """Save a book to the user's wishlist.

        Check-then-insert: adding a book that is already saved returns the
        existing entry.

        Returns:
            tuple: (entry, created) where created is False for a repeat add.

        Raises:
            NotFoundError: If the book does not exist.
            PersistenceError: If the insert fails.
        """
        existing = (
            self.client.table("wishlists")
            .select("*")
            .eq("user_id", user_id)
            .eq("book_id", book_id)
            .limit(1)
            .execute()
        )
        if existing.data:
            return existing.data[0], False

        if not await self.catalog.get_book(book_id):
            raise NotFoundError("Book not found")

        row = {
            "id": str(uuid4()),
            "user_id": user_id,
            "book_id": book_id,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            response = self.client.table("wishlists").insert(row).execute()
        except Exception as e:
            raise PersistenceError("Failed to add book to wishlist") from e

        return (response.data[0] if response.data else row), True

    async def remove(self, user_id: str, book_id: str) -> None:
        try:
            self.client.table("wishlists").delete().eq("user_id", user_id).eq("book_id", book_id).execute()
        except Exception as e:
            raise PersistenceError("Failed to remove book from wishlist") from e

    async def list_for_user(self, user_id: str) -> list[dict[str, Any]]:
        response = (
            self.client.table("wishlists")
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return response.data or []
