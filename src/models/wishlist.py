"""Wishlist model type definitions."""

from datetime import datetime
from typing import TypedDict


class WishlistEntry(TypedDict):
    """wishlists table row; unique on (user_id, book_id)."""

    id: str
    user_id: str
    book_id: str
    created_at: datetime
