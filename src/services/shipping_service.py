"""Shipping capture: validates and stores the delivery address of an order."""

import logging
from typing import Any

from src.api.middleware.error_handler import PersistenceError, ValidationError
from src.core.supabase import get_supabase_client
from src.schemas.order import ShippingDetailsInput

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "full_name",
    "address_line1",
    "city",
    "state",
    "postal_code",
    "country",
)
OPTIONAL_FIELDS = ("address_line2", "phone")


def validate_shipping(details: ShippingDetailsInput) -> None:
    """Raise ValidationError naming every required field that is blank."""
    errors = [
        {"loc": ["shipping", name], "msg": "Field is required", "type": "missing"}
        for name in REQUIRED_FIELDS
        if not (getattr(details, name) or "").strip()
    ]
    if errors:
        missing = ", ".join(e["loc"][1] for e in errors)
        raise ValidationError(f"Missing shipping details: {missing}", details=errors)


class ShippingService:
    """Service for the shipping_details table."""

    def __init__(self) -> None:
        """Initialize shipping service with Supabase client."""
        self.client = get_supabase_client()

    async def record_shipping(self, order_id: str, details: ShippingDetailsInput) -> dict[str, Any]:
        """Validate and persist the shipping address for an order.

        One insert, no retries. Nothing is written when validation fails.

        Args:
            order_id: The owning order id.
            details: Address submitted by the buyer.

        Returns:
            dict: The stored shipping row.

        Raises:
            ValidationError: If a required field is blank.
            PersistenceError: If the insert fails for any storage reason.
        """
        validate_shipping(details)

        row: dict[str, Any] = {"order_id": order_id}
        for name in REQUIRED_FIELDS:
            row[name] = getattr(details, name).strip()
        for name in OPTIONAL_FIELDS:
            value = (getattr(details, name) or "").strip()
            row[name] = value or None

        try:
            response = self.client.table("shipping_details").insert(row).execute()
        except Exception as e:
            logger.error("Failed to store shipping details for order %s: %s", order_id, e)
            raise PersistenceError("Failed to store shipping details") from e

        if not response.data:
            logger.error("Shipping insert for order %s returned no row", order_id)
            raise PersistenceError("Failed to store shipping details")

        return response.data[0]

    async def get_shipping(self, order_id: str) -> dict[str, Any] | None:
        """Get the shipping row for one order, or None."""
        response = (
            self.client.table("shipping_details")
            .select("*")
            .eq("order_id", order_id)
            .execute()
        )
        return response.data[0] if response.data else None

    async def get_shipping_for_orders(self, order_ids: list[str]) -> dict[str, dict[str, Any]]:
        """Batch-load shipping rows keyed by order id."""
        if not order_ids:
            return {}
        response = (
            self.client.table("shipping_details")
            .select("*")
            .in_("order_id", order_ids)
            .execute()
        )
        return {row["order_id"]: row for row in response.data or []}
