"""Wishlist API routes."""

from fastapi import APIRouter, Response, status

from src.api.deps import CurrentUser
from src.schemas.wishlist import (
    WishlistAddRequest,
    WishlistAddResponse,
    WishlistEntryResponse,
    WishlistResponse,
)
from src.services.wishlist_service import WishlistService

router = APIRouter(prefix="/wishlist", tags=["wishlist"])


@router.get("", response_model=WishlistResponse, summary="List my wishlist")
async def list_wishlist(user: CurrentUser) -> WishlistResponse:
    entries = await WishlistService().list_for_user(user.id)
    return WishlistResponse(items=[WishlistEntryResponse(**entry) for entry in entries])


@router.post(
    "",
    response_model=WishlistAddResponse,
    summary="Add a book to my wishlist",
    description="Adding a book that is already saved returns the existing entry with created=false.",
)
async def add_to_wishlist(data: WishlistAddRequest, user: CurrentUser, response: Response) -> WishlistAddResponse:
    entry, created = await WishlistService().add(user.id, data.book_id)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return WishlistAddResponse(entry=WishlistEntryResponse(**entry), created=created)


@router.delete(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a book from my wishlist",
)
async def remove_from_wishlist(book_id: str, user: CurrentUser) -> None:
    await WishlistService().remove(user.id, book_id)
