"""Shipping details model type definitions."""

from typing import TypedDict


class ShippingDetails(TypedDict):
    """shipping_details table row; one row per order, keyed by order_id."""

    order_id: str
    full_name: str
    address_line1: str
    address_line2: str | None
    city: str
    state: str
    postal_code: str
    country: str
    phone: str | None
