"""Order API routes: purchase, dashboards and fulfillment status changes."""

from uuid import UUID

from fastapi import APIRouter, status

from src.api.deps import CurrentUser
from src.api.middleware.error_handler import NotFoundError, PermissionDeniedError
from src.schemas.order import (
    OrderCreateRequest,
    OrderCreateResponse,
    OrderDetailResponse,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
)
from src.services.order_query_service import OrderQueryService
from src.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post(
    "",
    response_model=OrderCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Buy a book",
    description="Creates a pending order with its shipping address and a Stripe Checkout Session.",
)
async def create_order(data: OrderCreateRequest, user: CurrentUser) -> OrderCreateResponse:
    """Create an order for the authenticated buyer.

    The frontend should redirect the buyer to the returned checkout_url.

    Args:
        data: Book, seller, amount and shipping details.
        user: Authenticated buyer.

    Returns:
        OrderCreateResponse: Order id and checkout redirect.
    """
    service = OrderService()
    result = await service.create_order(
        buyer_id=user.id,
        book_id=data.book_id,
        seller_id=data.seller_id,
        amount=data.amount,
        shipping=data.shipping,
        success_url=str(data.success_url) if data.success_url else None,
        cancel_url=str(data.cancel_url) if data.cancel_url else None,
    )
    return OrderCreateResponse(**result)


@router.get(
    "/purchases",
    response_model=OrderListResponse,
    summary="List my purchases",
)
async def list_purchases(user: CurrentUser) -> OrderListResponse:
    """Orders the caller placed as a buyer, newest first."""
    orders = await OrderQueryService().list_purchases(user.id)
    return OrderListResponse(items=[OrderDetailResponse(**order) for order in orders])


@router.get(
    "/sales",
    response_model=OrderListResponse,
    summary="List my sales",
)
async def list_sales(user: CurrentUser) -> OrderListResponse:
    """Orders for the caller's books, with buyer contact details."""
    orders = await OrderQueryService().list_sales(user.id)
    return OrderListResponse(items=[OrderDetailResponse(**order) for order in orders])


@router.get(
    "/{order_id}",
    response_model=OrderDetailResponse,
    summary="Get order by ID",
    description="Returns a single order. Only the buyer and the seller can view it.",
)
async def get_order(order_id: UUID, user: CurrentUser) -> OrderDetailResponse:
    """Get a single order with book and shipping details.

    Raises:
        NotFoundError: 404 if order not found.
        PermissionDeniedError: 403 if the caller is neither buyer nor seller.
    """
    service = OrderQueryService()
    order = await service.orders.get_order(str(order_id))
    if not order:
        raise NotFoundError("Order not found")
    if user.id not in (order["user_id"], order["seller_id"]):
        raise PermissionDeniedError("Not authorized to view this order")

    detail = await service.get_order_detail(str(order_id), include_buyer=user.id == order["seller_id"])
    if not detail:
        raise NotFoundError("Order not found")
    return OrderDetailResponse(**detail)


@router.patch(
    "/{order_id}/status",
    response_model=OrderResponse,
    summary="Change order status",
    description="Seller marks shipped or cancels; buyer cancels an unpaid order or confirms receipt.",
)
async def update_order_status(order_id: UUID, data: OrderStatusUpdate, user: CurrentUser) -> OrderResponse:
    """Apply a status transition on behalf of the caller."""
    updated = await OrderService().update_order_status(str(order_id), data.status, actor_id=user.id)
    return OrderResponse(**updated)
