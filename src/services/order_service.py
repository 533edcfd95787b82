"""Order ledger: order creation, status transitions and payment confirmation."""

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import uuid4

from src.api.middleware.error_handler import (
    GatewayError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
    ValidationError,
)
from src.core.config import get_settings
from src.core.supabase import get_supabase_client
from src.models.book import BookStatus, ListingType
from src.models.notification import NotificationType
from src.models.order import OrderCreate, OrderStatus, OrderUpdate, can_transition
from src.schemas.order import ShippingDetailsInput
from src.services.catalog_service import CatalogService
from src.services.notification_service import NotificationService
from src.services.payment_gateway import PaymentGateway, to_minor_units
from src.services.shipping_service import ShippingService

logger = logging.getLogger(__name__)

_TWO_PLACES = Decimal("0.01")

# Edges each party may drive through the API. Payment confirmation
# (pending -> paid) only ever comes from the Stripe webhook (actor_id=None).
_BUYER_EDGES = {
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
    (OrderStatus.SHIPPED, OrderStatus.COMPLETED),
}
_SELLER_EDGES = {
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
    (OrderStatus.PAID, OrderStatus.SHIPPED),
    (OrderStatus.PAID, OrderStatus.CANCELLED),
}

# (recipient, type, title, message template) emitted after each transition
_TRANSITION_NOTICES: dict[OrderStatus, list[tuple[str, NotificationType, str, str]]] = {
    OrderStatus.PAID: [
        (
            "seller",
            NotificationType.PURCHASE_RECEIVED,
            "New Purchase",
            'Your book "{title}" has been purchased. Please ship it to the buyer.',
        ),
        (
            "buyer",
            NotificationType.PURCHASE_CONFIRMED,
            "Payment Confirmed",
            'Your payment for "{title}" was received. The seller will ship it soon.',
        ),
    ],
    OrderStatus.SHIPPED: [
        (
            "buyer",
            NotificationType.PURCHASE_SHIPPED,
            "Book Shipped",
            '"{title}" is on its way to you.',
        ),
    ],
    OrderStatus.COMPLETED: [
        (
            "seller",
            NotificationType.PURCHASE_COMPLETED,
            "Order Completed",
            'The buyer confirmed receipt of "{title}".',
        ),
    ],
    OrderStatus.CANCELLED: [
        (
            "buyer",
            NotificationType.PURCHASE_CANCELLED,
            "Order Cancelled",
            'Your order for "{title}" was cancelled.',
        ),
        (
            "seller",
            NotificationType.PURCHASE_CANCELLED,
            "Order Cancelled",
            'The order for "{title}" was cancelled.',
        ),
    ],
}


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_amount(amount: Decimal | str | float | int) -> Decimal:
    """Validate a purchase amount: positive, finite, at most two decimals."""
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError("Amount must be a number") from e

    if not value.is_finite() or value <= 0:
        raise ValidationError("Amount must be greater than zero")
    if value != value.quantize(_TWO_PLACES):
        raise ValidationError("Amount must have at most two decimal places")
    return value.quantize(_TWO_PLACES)


class OrderService:
    """Owns the orders table and is the only writer of order status."""

    def __init__(self) -> None:
        """Initialize order service with its collaborators."""
        self.client = get_supabase_client()
        self.settings = get_settings()
        self.shipping_service = ShippingService()
        self.gateway = PaymentGateway()
        self.catalog = CatalogService()
        self.notifications = NotificationService()

    async def create_order(
        self,
        buyer_id: str,
        book_id: str,
        seller_id: str,
        amount: Decimal | str | float,
        shipping: ShippingDetailsInput,
        success_url: str | None = None,
        cancel_url: str | None = None,
    ) -> dict[str, Any]:
        """Create a pending order, store its shipping address and open checkout.

        The order id is generated here, before any write, so every later
        step (and any failure log) can refer to it. The steps are not
        atomic; failures are compensated:

        - shipping fails: nothing external happened yet, the order row is
          deleted (or cancelled if the delete fails or removes nothing);
        - checkout creation fails or times out: the order is cancelled;
        - attaching the session id fails: the order stays payable and is
          logged for reconciliation. The webhook still finds it through the
          order_id metadata.

        Args:
            buyer_id: Purchasing user.
            book_id: Book being bought.
            seller_id: Seller; must own the book right now.
            amount: Agreed price in major units.
            shipping: Delivery address.
            success_url: Checkout success redirect (defaults to the frontend).
            cancel_url: Checkout cancel redirect (defaults to the book page).

        Returns:
            dict: Contains order_id, checkout_url, stripe_session_id.

        Raises:
            ValidationError: Bad amount, self-purchase, seller mismatch, a book
                that is not an available sale listing, an amount other than
                the listed price, or incomplete shipping details.
            NotFoundError: If the book does not exist.
            GatewayError: If the checkout session could not be created.
            PersistenceError: If the order or shipping row could not be stored.
        """
        value = parse_amount(amount)

        if buyer_id == seller_id:
            raise ValidationError("You cannot buy your own book")

        book = await self.catalog.get_book(book_id)
        if not book:
            raise NotFoundError("Book not found")
        if str(book.get("owner_id")) != seller_id:
            raise ValidationError("Seller does not own this book")
        if book.get("listing_type") != ListingType.SALE.value:
            raise ValidationError("This book is not listed for sale")
        if book.get("status") != BookStatus.AVAILABLE.value:
            raise ValidationError("This book is no longer available")
        if book.get("price") is None or Decimal(str(book["price"])) != value:
            raise ValidationError("Amount does not match the listed price")

        order_id = str(uuid4())
        now = _utcnow()
        order_data: OrderCreate = {
            "id": order_id,
            "user_id": buyer_id,
            "book_id": book_id,
            "seller_id": seller_id,
            "amount": str(value),
            "status": OrderStatus.PENDING.value,
            "stripe_session_id": None,
            "created_at": now,
            "updated_at": now,
        }

        try:
            response = self.client.table("orders").insert(order_data).execute()
        except Exception as e:
            logger.error("Error creating order %s: %s", order_id, e)
            raise PersistenceError("Failed to create order") from e
        if not response.data:
            raise PersistenceError("Failed to create order")

        try:
            await self.shipping_service.record_shipping(order_id, shipping)
        except (ValidationError, PersistenceError) as e:
            logger.warning("Shipping capture failed for order %s: %s", order_id, e.message)
            await self._discard_order(order_id)
            raise

        try:
            session = await self.gateway.create_checkout_session(
                order_id=order_id,
                book_id=book_id,
                amount=value,
                success_url=success_url or self.settings.default_success_url,
                cancel_url=cancel_url or self.settings.default_cancel_url(book_id),
                product_name=book.get("title") or "Book Purchase",
            )
        except GatewayError as e:
            logger.warning("Checkout creation failed for order %s: %s", order_id, e.message)
            await self._cancel_unpaid_order(order_id)
            raise

        await self._attach_session(order_id, session.session_id)

        logger.info("Order %s created for book %s by %s", order_id, book_id, buyer_id)
        return {
            "order_id": order_id,
            "checkout_url": session.redirect_url,
            "stripe_session_id": session.session_id,
        }

    async def _attach_session(self, order_id: str, session_id: str) -> None:
        """Store the checkout session id on the order; failures are only logged."""
        try:
            response = (
                self.client.table("orders")
                .update({"stripe_session_id": session_id, "updated_at": _utcnow()})
                .eq("id", order_id)
                .execute()
            )
            if response.data:
                return
            error: object = "no row updated"
        except Exception as e:
            error = e
        logger.error(
            "RECONCILE order %s: checkout session %s was created but could not be attached: %s",
            order_id,
            session_id,
            error,
        )

    async def _discard_order(self, order_id: str) -> None:
        """Roll back an order that never reached the payment provider."""
        try:
            response = (
                self.client.table("orders")
                .delete()
                .eq("id", order_id)
                .eq("status", OrderStatus.PENDING.value)
                .execute()
            )
            if response.data:
                logger.info("Discarded order %s after failed shipping capture", order_id)
                return
            logger.warning("Delete of order %s matched no rows, cancelling instead", order_id)
        except Exception as e:
            logger.warning("Could not delete order %s, cancelling instead: %s", order_id, e)
        await self._cancel_unpaid_order(order_id)

    async def _cancel_unpaid_order(self, order_id: str) -> None:
        """Mark a still-pending order cancelled without emitting notifications."""
        try:
            response = (
                self.client.table("orders")
                .update({"status": OrderStatus.CANCELLED.value, "updated_at": _utcnow()})
                .eq("id", order_id)
                .eq("status", OrderStatus.PENDING.value)
                .execute()
            )
        except Exception as e:
            logger.error("RECONCILE order %s: left pending after a failed order creation: %s", order_id, e)
            return
        if response.data:
            logger.info("Order %s cancelled after failed order creation", order_id)
        else:
            logger.error("RECONCILE order %s: cancel after a failed order creation matched no pending row", order_id)

    async def update_order_status(
        self,
        order_id: str,
        new_status: OrderStatus | str,
        actor_id: str | None = None,
    ) -> dict[str, Any]:
        """Move an order along one allowed edge and notify the other party.

        The write is conditional on the status that was validated, so two
        racing requests (e.g. ship vs cancel) cannot both succeed. Catalog
        updates and notifications run after the write; their failures are
        logged and never undo the transition.

        Args:
            order_id: The order to update.
            new_status: Target status.
            actor_id: User driving the change, or None for system events
                such as payment confirmation.

        Returns:
            dict: The updated order row.

        Raises:
            ValidationError: If new_status is not a known status.
            NotFoundError: If the order does not exist.
            PermissionDeniedError: If actor_id is not allowed to make this change.
            InvalidTransitionError: If the edge is not allowed, or the order
                changed concurrently.
            PersistenceError: If the write fails.
        """
        try:
            target = OrderStatus(new_status)
        except ValueError as e:
            raise ValidationError(f"Unknown order status: {new_status}") from e

        order = await self.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")

        if actor_id is not None and actor_id not in (order["user_id"], order["seller_id"]):
            raise PermissionDeniedError("Not authorized to update this order")

        current = OrderStatus(order["status"])
        if not can_transition(current, target):
            raise InvalidTransitionError(current.value, target.value)

        if actor_id is not None:
            self._authorize_edge(order, current, target, actor_id)

        changes: OrderUpdate = {"status": target.value, "updated_at": _utcnow()}
        try:
            response = (
                self.client.table("orders")
                .update(changes)
                .eq("id", order_id)
                .eq("status", order["status"])
                .execute()
            )
        except Exception as e:
            logger.error("Error updating order %s status: %s", order_id, e)
            raise PersistenceError("Failed to update order status") from e

        if not response.data:
            latest = await self.get_order(order_id)
            latest_status = latest["status"] if latest else "unknown"
            raise InvalidTransitionError(
                str(latest_status),
                target.value,
                message=f"Order changed while updating (now '{latest_status}')",
            )

        updated = response.data[0]
        logger.info("Order %s: %s -> %s", order_id, current.value, target.value)
        await self._after_transition(updated, current, target)
        return updated

    @staticmethod
    def _authorize_edge(
        order: dict[str, Any],
        current: OrderStatus,
        target: OrderStatus,
        actor_id: str,
    ) -> None:
        edges: set[tuple[OrderStatus, OrderStatus]] = set()
        if actor_id == order["user_id"]:
            edges |= _BUYER_EDGES
        if actor_id == order["seller_id"]:
            edges |= _SELLER_EDGES
        if (current, target) not in edges:
            raise PermissionDeniedError(
                f"You are not allowed to change this order from '{current.value}' to '{target.value}'"
            )

    async def _after_transition(
        self,
        order: dict[str, Any],
        previous: OrderStatus,
        target: OrderStatus,
    ) -> None:
        """Catalog side effects and counter-party notifications (fire-and-forget)."""
        book_status = None
        if target == OrderStatus.PAID:
            book_status = BookStatus.SOLD
        elif target == OrderStatus.CANCELLED and previous == OrderStatus.PAID:
            book_status = BookStatus.AVAILABLE

        if book_status is not None:
            try:
                await self.catalog.set_book_status(order["book_id"], book_status)
            except Exception as e:
                logger.error("Order %s: failed to mark book %s %s: %s", order["id"], order["book_id"], book_status.value, e)

        notices = _TRANSITION_NOTICES.get(target, [])
        if not notices:
            return

        title = "your book"
        try:
            book = await self.catalog.get_book(order["book_id"])
            if book and book.get("title"):
                title = book["title"]
        except Exception as e:
            logger.warning("Order %s: could not load book for notification text: %s", order["id"], e)

        recipients = {"buyer": order["user_id"], "seller": order["seller_id"]}
        for role, notification_type, heading, template in notices:
            try:
                await self.notifications.notify(
                    user_id=recipients[role],
                    notification_type=notification_type,
                    title=heading,
                    message=template.format(title=title),
                    related_id=order["id"],
                )
            except Exception as e:
                logger.error(
                    "Order %s: failed to send %s notification to %s: %s",
                    order["id"],
                    notification_type.value,
                    role,
                    e,
                )

    async def get_order(self, order_id: str) -> dict[str, Any] | None:
        """Get an order row by id.

        Returns:
            dict | None: The order data or None if not found.
        """
        response = (
            self.client.table("orders")
            .select("*")
            .eq("id", order_id)
            .maybe_single()
            .execute()
        )
        return response.data if response and response.data else None

    async def get_order_by_session(self, stripe_session_id: str) -> dict[str, Any] | None:
        """Get the order a checkout session was created for."""
        response = (
            self.client.table("orders")
            .select("*")
            .eq("stripe_session_id", stripe_session_id)
            .maybe_single()
            .execute()
        )
        return response.data if response and response.data else None

    async def list_by_buyer(self, buyer_id: str) -> list[dict[str, Any]]:
        """Orders placed by a buyer, newest first (ties by id)."""
        response = (
            self.client.table("orders")
            .select("*")
            .eq("user_id", buyer_id)
            .order("created_at", desc=True)
            .order("id", desc=True)
            .execute()
        )
        return response.data or []

    async def list_by_seller(self, seller_id: str) -> list[dict[str, Any]]:
        """Orders received by a seller, newest first (ties by id)."""
        response = (
            self.client.table("orders")
            .select("*")
            .eq("seller_id", seller_id)
            .order("created_at", desc=True)
            .order("id", desc=True)
            .execute()
        )
        return response.data or []

    # Payment provider callbacks

    async def handle_checkout_completed(self, event: dict[str, Any]) -> dict[str, Any] | None:
        """Process checkout.session.completed.

        Card payments arrive with payment_status "paid". Delayed methods
        complete with "unpaid" and are settled by the async_payment events.
        """
        session = event["data"]["object"]
        if session.get("payment_status") not in ("paid", "no_payment_required"):
            logger.info(
                "Checkout session %s completed with payment_status=%s; awaiting async payment",
                session.get("id"),
                session.get("payment_status"),
            )
            return None
        return await self._confirm_payment(session)

    async def handle_async_payment_succeeded(self, event: dict[str, Any]) -> dict[str, Any] | None:
        """Process checkout.session.async_payment_succeeded."""
        return await self._confirm_payment(event["data"]["object"])

    async def handle_async_payment_failed(self, event: dict[str, Any]) -> dict[str, Any] | None:
        """Process checkout.session.async_payment_failed."""
        return await self._cancel_for_session(event["data"]["object"], "payment failed")

    async def handle_checkout_expired(self, event: dict[str, Any]) -> dict[str, Any] | None:
        """Process checkout.session.expired."""
        return await self._cancel_for_session(event["data"]["object"], "checkout expired")

    async def _resolve_order(self, session: dict[str, Any]) -> dict[str, Any] | None:
        metadata = session.get("metadata") or {}
        order_id = metadata.get("order_id") or session.get("client_reference_id")
        if order_id:
            order = await self.get_order(order_id)
        elif session.get("id"):
            order = await self.get_order_by_session(session["id"])
        else:
            order = None

        if not order:
            logger.error(
                "RECONCILE checkout session %s: no matching order (metadata order_id=%s)",
                session.get("id"),
                order_id,
            )
        return order

    async def _confirm_payment(self, session: dict[str, Any]) -> dict[str, Any] | None:
        order = await self._resolve_order(session)
        if not order:
            return None

        status = OrderStatus(order["status"])
        if status != OrderStatus.PENDING:
            if status == OrderStatus.CANCELLED:
                logger.error(
                    "RECONCILE order %s: payment confirmed by session %s after the order was cancelled",
                    order["id"],
                    session.get("id"),
                )
            else:
                logger.info("Order %s already %s; ignoring repeated payment event", order["id"], status.value)
            return order

        amount_total = session.get("amount_total")
        if amount_total is not None and amount_total != to_minor_units(Decimal(str(order["amount"]))):
            logger.error(
                "RECONCILE order %s: session %s paid %s minor units, expected %s",
                order["id"],
                session.get("id"),
                amount_total,
                to_minor_units(Decimal(str(order["amount"]))),
            )
            return order

        if not order.get("stripe_session_id") and session.get("id"):
            await self._attach_session(order["id"], session["id"])

        try:
            return await self.update_order_status(order["id"], OrderStatus.PAID)
        except InvalidTransitionError as e:
            logger.warning("Order %s: payment confirmation lost a race: %s", order["id"], e.message)
            return await self.get_order(order["id"])

    async def _cancel_for_session(self, session: dict[str, Any], reason: str) -> dict[str, Any] | None:
        order = await self._resolve_order(session)
        if not order:
            return None

        if OrderStatus(order["status"]) != OrderStatus.PENDING:
            logger.info("Order %s is %s; not cancelling (%s)", order["id"], order["status"], reason)
            return order

        try:
            updated = await self.update_order_status(order["id"], OrderStatus.CANCELLED)
        except InvalidTransitionError as e:
            logger.warning("Order %s: cancellation (%s) lost a race: %s", order["id"], reason, e.message)
            return await self.get_order(order["id"])

        logger.info("Order %s cancelled (%s)", order["id"], reason)
        return updated
