"""Catalog store access: book lookups and the status flips triggered by orders."""

import logging
from typing import Any

from src.api.middleware.error_handler import PersistenceError
from src.core.supabase import get_supabase_client
from src.models.book import BookCondition, BookStatus, ListingType

logger = logging.getLogger(__name__)

BOOK_COLUMNS = "id, title, author, price, owner_id, listing_type, condition, status, image_url"

_VOCABULARY = {
    "listing_type": ListingType,
    "condition": BookCondition,
    "status": BookStatus,
}


def normalize_book(row: dict[str, Any]) -> dict[str, Any]:
    """Map legacy spellings ("Sale", "Like New", "Available") to canonical values.

    Unknown values are left as-is and logged so bad rows surface without
    breaking the read.
    """
    book = dict(row)
    for column, enum_cls in _VOCABULARY.items():
        value = book.get(column)
        if not isinstance(value, str):
            continue
        try:
            book[column] = enum_cls(value).value
        except ValueError:
            logger.warning("Book %s has unknown %s value %r", book.get("id"), column, value)
    return book


class CatalogService:
    """Read access to books plus the availability flips owned by checkout."""

    def __init__(self) -> None:
        """Initialize catalog service with Supabase client."""
        self.client = get_supabase_client()

    async def get_book(self, book_id: str) -> dict[str, Any] | None:
        """Get a book by id.

        Args:
            book_id: The book's id.

        Returns:
            dict | None: Normalized book row, or None if it does not exist.
        """
        response = (
            self.client.table("books")
            .select(BOOK_COLUMNS)
            .eq("id", book_id)
            .maybe_single()
            .execute()
        )
        if not response or not response.data:
            return None
        return normalize_book(response.data)

    async def get_books(self, book_ids: list[str]) -> dict[str, dict[str, Any]]:
        """Batch-load books keyed by id. Missing ids are simply absent."""
        if not book_ids:
            return {}
        response = (
            self.client.table("books")
            .select(BOOK_COLUMNS)
            .in_("id", list(dict.fromkeys(book_ids)))
            .execute()
        )
        return {row["id"]: normalize_book(row) for row in response.data or []}

    async def set_book_status(self, book_id: str, status: BookStatus) -> None:
        """Flip a book's availability.

        Raises:
            PersistenceError: If the update fails.
        """
        try:
            self.client.table("books").update({"status": status.value}).eq("id", book_id).execute()
        except Exception as e:
            raise PersistenceError(f"Failed to mark book {book_id} as {status.value}") from e
        logger.info("Book %s marked %s", book_id, status.value)
