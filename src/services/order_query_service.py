"""Read-side assembly of orders for the purchases and sales dashboards."""

from typing import Any

from src.services.catalog_service import CatalogService
from src.services.order_service import OrderService
from src.services.profile_service import ProfileService
from src.services.shipping_service import ShippingService


class OrderQueryService:
    """Joins orders with their book, shipping details and buyer profile.

    Pure reads. A missing shipping row, book or profile comes back as None
    for that order instead of failing the whole query; a book may have been
    deleted after it was sold.
    """

    def __init__(self) -> None:
        """Initialize with the services that own each table."""
        self.orders = OrderService()
        self.shipping = ShippingService()
        self.catalog = CatalogService()
        self.profiles = ProfileService()

    async def get_order_detail(self, order_id: str, include_buyer: bool = False) -> dict[str, Any] | None:
        """Get one order with its related rows, or None if the order does not exist."""
        order = await self.orders.get_order(order_id)
        if not order:
            return None
        assembled = await self._assemble([order], include_buyer=include_buyer)
        return assembled[0]

    async def list_purchases(self, buyer_id: str) -> list[dict[str, Any]]:
        """Orders the user bought, newest first."""
        orders = await self.orders.list_by_buyer(buyer_id)
        return await self._assemble(orders, include_buyer=False)

    async def list_sales(self, seller_id: str) -> list[dict[str, Any]]:
        """Orders for the user's books, newest first, with buyer contact fields."""
        orders = await self.orders.list_by_seller(seller_id)
        return await self._assemble(orders, include_buyer=True)

    async def _assemble(self, orders: list[dict[str, Any]], include_buyer: bool) -> list[dict[str, Any]]:
        if not orders:
            return []

        shipping = await self.shipping.get_shipping_for_orders([o["id"] for o in orders])
        books = await self.catalog.get_books([o["book_id"] for o in orders])
        buyers = await self.profiles.get_public_profiles([o["user_id"] for o in orders]) if include_buyer else {}

        return [
            {
                **order,
                "book": books.get(order["book_id"]),
                "shipping": shipping.get(order["id"]),
                "buyer": buyers.get(order["user_id"]),
            }
            for order in orders
        ]
