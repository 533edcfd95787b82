"""Order, shipping and checkout Pydantic schemas for API request/response models."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

from src.models.book import BookCondition, BookStatus, ListingType
from src.models.order import OrderStatus
from src.schemas.profile import PublicProfile


class ShippingDetailsInput(BaseModel):
    """Buyer's delivery address as submitted with a purchase.

    Blank required fields are rejected by the shipping service, not here,
    so the caller receives the same validation_error shape whether the
    request came over HTTP or from another service.
    """

    model_config = ConfigDict(from_attributes=True, str_strip_whitespace=True)

    full_name: str = Field(default="", description="Recipient full name")
    address_line1: str = Field(default="", description="Street address")
    address_line2: str | None = Field(default=None, description="Apartment, suite, etc.")
    city: str = Field(default="", description="City")
    state: str = Field(default="", description="State or region")
    postal_code: str = Field(default="", description="Postal code")
    country: str = Field(default="", description="Country")
    phone: str | None = Field(default=None, description="Contact phone")


class ShippingDetailsResponse(ShippingDetailsInput):
    """Stored shipping details for an order."""

    order_id: str = Field(description="Owning order id")


class OrderCreateRequest(BaseModel):
    """Schema for creating an order via POST /orders."""

    model_config = ConfigDict(from_attributes=True)

    book_id: str = Field(min_length=1, description="Book being purchased")
    seller_id: str = Field(min_length=1, description="Seller; must own the book")
    amount: Decimal = Field(description="Agreed price in major currency units")
    shipping: ShippingDetailsInput = Field(description="Delivery address")
    success_url: HttpUrl | None = Field(default=None, description="Override checkout success redirect")
    cancel_url: HttpUrl | None = Field(default=None, description="Override checkout cancel redirect")


class OrderCreateResponse(BaseModel):
    """Schema for order creation response."""

    model_config = ConfigDict(from_attributes=True)

    order_id: str = Field(description="Created order id")
    checkout_url: str = Field(description="Stripe Checkout URL to redirect the buyer to")
    stripe_session_id: str = Field(description="Stripe Checkout Session ID")


class OrderStatusUpdate(BaseModel):
    """Schema for PATCH /orders/{id}/status."""

    status: OrderStatus = Field(description="Target status")

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value: Any) -> Any:
        return OrderStatus(value) if isinstance(value, str) else value


class BookSnapshot(BaseModel):
    """Book fields shown alongside an order."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str | None = None
    author: str | None = None
    price: Decimal | None = None
    owner_id: str | None = None
    listing_type: ListingType | None = None
    condition: BookCondition | None = None
    status: BookStatus | None = None
    image_url: str | None = None

    @field_validator("listing_type", "condition", "status", mode="before")
    @classmethod
    def normalize_vocabulary(cls, value: Any, info: Any) -> Any:
        if not isinstance(value, str):
            return value
        enum_cls = {
            "listing_type": ListingType,
            "condition": BookCondition,
            "status": BookStatus,
        }[info.field_name]
        return enum_cls(value)


class OrderResponse(BaseModel):
    """Schema for a bare order row."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Order unique identifier")
    user_id: str = Field(description="Buyer id")
    book_id: str = Field(description="Purchased book id")
    seller_id: str = Field(description="Seller id")
    amount: Decimal = Field(description="Amount in major currency units")
    status: OrderStatus = Field(description="Order status")
    stripe_session_id: str | None = Field(default=None, description="Stripe Checkout Session ID")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime | None = Field(default=None, description="Last status change")

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value: Any) -> Any:
        return OrderStatus(value) if isinstance(value, str) else value


class OrderDetailResponse(OrderResponse):
    """Order joined with its book, shipping details and (for sellers) buyer."""

    book: BookSnapshot | None = Field(default=None, description="Book snapshot; null if the book was deleted")
    shipping: ShippingDetailsResponse | None = Field(default=None, description="Delivery address")
    buyer: PublicProfile | None = Field(default=None, description="Buyer public profile (seller view)")


class OrderListResponse(BaseModel):
    """Schema for order list API responses."""

    model_config = ConfigDict(from_attributes=True)

    items: list[OrderDetailResponse] = Field(description="Orders, newest first")
