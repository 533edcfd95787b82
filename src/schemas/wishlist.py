"""Wishlist Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class WishlistAddRequest(BaseModel):
    book_id: str = Field(min_length=1, description="Book to save")


class WishlistEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Wishlist entry id")
    user_id: str = Field(description="Owner")
    book_id: str = Field(description="Saved book")
    created_at: datetime = Field(description="When the book was saved")


class WishlistAddResponse(BaseModel):
    entry: WishlistEntryResponse
    created: bool = Field(description="False when the book was already on the wishlist")


class WishlistResponse(BaseModel):
    items: list[WishlistEntryResponse] = Field(description="Entries, newest first")
