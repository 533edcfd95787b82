"""Book model type definitions (catalog store, read-mostly)."""

from decimal import Decimal
from typing import TypedDict

from src.models.base import NormalizedEnum


class ListingType(NormalizedEnum):
    SALE = "sale"
    SWAP = "swap"
    DONATION = "donation"


class BookCondition(NormalizedEnum):
    NEW = "new"
    LIKE_NEW = "like_new"
    VERY_GOOD = "very_good"
    GOOD = "good"
    ACCEPTABLE = "acceptable"


class BookStatus(NormalizedEnum):
    AVAILABLE = "available"
    RESERVED = "reserved"
    SWAPPED = "swapped"
    SOLD = "sold"


class Book(TypedDict, total=False):
    """books table row, restricted to the columns the order workflow reads."""

    id: str
    title: str
    author: str | None
    price: Decimal | None
    owner_id: str
    listing_type: ListingType
    condition: BookCondition | None
    status: BookStatus
    image_url: str | None
