"""Webhook API routes for external service integrations."""

import logging

from fastapi import APIRouter, HTTPException, Request, status

from src.services.order_service import OrderService
from src.services.payment_gateway import PaymentGateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post(
    "/stripe",
    status_code=status.HTTP_200_OK,
    summary="Handle Stripe webhooks",
    description="Receives and processes Stripe webhook events. Requires valid signature.",
)
async def stripe_webhook(request: Request) -> dict[str, str]:
    """Handle Stripe webhook events.

    The Stripe signature is verified before processing. Every handled event
    goes through OrderService.update_order_status, so payment confirmation
    follows the same transition rules and notifications as any other
    status change. Redelivered events are no-ops.

    Handles:
    - checkout.session.completed: marks the order paid when payment_status is paid
    - checkout.session.async_payment_succeeded: delayed payment settled, marks paid
    - checkout.session.async_payment_failed: cancels the pending order
    - checkout.session.expired: cancels the pending order

    Args:
        request: FastAPI request object for reading raw body and headers.

    Returns:
        dict: Acknowledgment message.

    Raises:
        HTTPException: 400 if signature is missing or invalid.
    """
    # Get raw body for signature verification
    payload = await request.body()

    sig_header = request.headers.get("stripe-signature")
    if not sig_header:
        logger.error("Missing Stripe-Signature header in webhook request")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing Stripe-Signature header",
        )

    logger.debug("Webhook payload size: %d bytes", len(payload))

    try:
        event = PaymentGateway().verify_webhook_signature(payload, sig_header)
    except ValueError as e:
        logger.error("Invalid webhook signature: %s", str(e))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid signature",
        ) from e

    event_type = event.get("type", "")
    logger.info("Processing Stripe webhook event: %s (%s)", event_type, event.get("id"))

    service = OrderService()
    handlers = {
        "checkout.session.completed": service.handle_checkout_completed,
        "checkout.session.async_payment_succeeded": service.handle_async_payment_succeeded,
        "checkout.session.async_payment_failed": service.handle_async_payment_failed,
        "checkout.session.expired": service.handle_checkout_expired,
    }

    handler = handlers.get(event_type)
    if handler is None:
        # Log unhandled events but return 200 to acknowledge receipt
        logger.debug("Unhandled webhook event type: %s", event_type)
    else:
        await handler(event)
        logger.info("Processed %s", event_type)

    return {"status": "received"}
