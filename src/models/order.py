"""Order model type definitions for database operations."""

from datetime import datetime
from decimal import Decimal
from typing import TypedDict

from src.models.base import NormalizedEnum


class OrderStatus(NormalizedEnum):
    """Lifecycle of an order.

    pending -> paid -> shipped -> completed, with cancelled reachable
    from pending or paid.
    """

    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    """Check whether ``current -> target`` is one of the allowed edges."""
    return target in ALLOWED_TRANSITIONS[current]


class Order(TypedDict):
    """Order table row representation.

    Represents an order stored in the orders table.
    Maps directly to the database schema.
    """

    id: str
    user_id: str
    book_id: str
    seller_id: str
    amount: Decimal
    status: OrderStatus
    stripe_session_id: str | None
    created_at: datetime
    updated_at: datetime


class OrderCreate(TypedDict):
    """Data written when the order row is first inserted."""

    id: str
    user_id: str
    book_id: str
    seller_id: str
    amount: str
    status: str
    stripe_session_id: str | None
    created_at: str
    updated_at: str


class OrderUpdate(TypedDict, total=False):
    """Data that can be updated on an order.

    Amount, buyer, seller and book are immutable after creation.
    """

    status: str
    stripe_session_id: str
    updated_at: str
