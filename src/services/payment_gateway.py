"""Payment session gateway: thin wrapper around Stripe Checkout."""

import asyncio
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import stripe

from src.api.middleware.error_handler import GatewayError
from src.core.config import get_settings
from src.core.stripe import get_stripe

logger = logging.getLogger(__name__)

_CENT = Decimal("1")


def to_minor_units(amount: Decimal | str | float) -> int:
    """Convert a major-unit amount to the provider's minor units.

    Multiplies by 100 and rounds half up (19.995 -> 2000). Amounts are
    expected to carry at most two decimal places, so rounding only matters
    for malformed input; banker's rounding is deliberately not used.
    """
    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    return int((value * 100).quantize(_CENT, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class CheckoutSession:
    """Reference to a hosted checkout created at the provider."""

    session_id: str
    redirect_url: str


class PaymentGateway:
    """Creates Stripe Checkout Sessions and verifies Stripe webhooks.

    Holds no local state: a failure here means nothing changed on our side,
    and the caller decides what to roll back.
    """

    def __init__(self) -> None:
        """Initialize gateway with the configured Stripe module."""
        self.stripe = get_stripe()
        self.settings = get_settings()

    async def create_checkout_session(
        self,
        order_id: str,
        book_id: str,
        amount: Decimal,
        success_url: str,
        cancel_url: str,
        product_name: str = "Book Purchase",
    ) -> CheckoutSession:
        """Create a one-off payment Checkout Session for an order.

        The order and book ids travel as metadata so the webhook can map the
        session back to the order. The call is bounded by
        CHECKOUT_TIMEOUT_SECONDS; on timeout it is retried at most once with
        the same idempotency key, so the provider never creates two sessions
        for one order.

        Args:
            order_id: Correlation id of the pending order.
            book_id: Book being purchased.
            amount: Price in major units.
            success_url: Redirect after successful payment.
            cancel_url: Redirect if the buyer abandons checkout.
            product_name: Line item label shown on the hosted page.

        Returns:
            CheckoutSession: Provider session id and redirect URL.

        Raises:
            GatewayError: If Stripe is not configured, rejects the request,
                fails unexpectedly, returns no URL, or does not answer in time.
        """
        if not self.settings.stripe_secret_key:
            raise GatewayError("Stripe is not configured. Please set STRIPE_SECRET_KEY environment variable.")

        params: dict[str, Any] = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": self.settings.stripe_currency,
                        "product_data": {"name": product_name},
                        "unit_amount": to_minor_units(amount),
                    },
                    "quantity": 1,
                }
            ],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "client_reference_id": order_id,
            "metadata": {
                "order_id": order_id,
                "book_id": book_id,
            },
            "idempotency_key": f"checkout-{order_id}",
        }

        attempts = 2 if self.settings.checkout_retry_on_timeout else 1
        for attempt in range(1, attempts + 1):
            try:
                session = await asyncio.wait_for(
                    asyncio.to_thread(self.stripe.checkout.Session.create, **params),
                    timeout=self.settings.checkout_timeout_seconds,
                )
                break
            except asyncio.TimeoutError as e:
                logger.warning(
                    "Checkout session creation timed out for order %s (attempt %d/%d)",
                    order_id,
                    attempt,
                    attempts,
                )
                if attempt == attempts:
                    raise GatewayError("Payment provider did not respond in time", timed_out=True) from e
            except stripe.StripeError as e:
                logger.error("Stripe error creating checkout session for order %s: %s", order_id, str(e))
                raise GatewayError(f"Payment provider error: {e.user_message or 'request failed'}") from e
            except Exception as e:
                logger.error("Unexpected error creating checkout session for order %s: %s", order_id, str(e))
                raise GatewayError("Payment provider request failed") from e

        session_id = getattr(session, "id", None)
        redirect_url = getattr(session, "url", None)
        if not session_id or not redirect_url:
            raise GatewayError("Payment provider returned no checkout URL")

        logger.info("Created checkout session %s for order %s", session_id, order_id)
        return CheckoutSession(session_id=session_id, redirect_url=redirect_url)

    def verify_webhook_signature(self, payload: bytes, sig_header: str) -> dict[str, Any]:
        """Verify Stripe webhook signature and return event.

        Args:
            payload: Raw webhook payload bytes.
            sig_header: Stripe-Signature header value.

        Returns:
            dict: Verified Stripe event.

        Raises:
            ValueError: If signature is invalid or Stripe not configured.
        """
        if not self.settings.stripe_webhook_secret:
            raise ValueError("Stripe webhook secret is not configured. Please set STRIPE_WEBHOOK_SECRET environment variable.")

        try:
            return self.stripe.Webhook.construct_event(
                payload, sig_header, self.settings.stripe_webhook_secret
            )
        except stripe.SignatureVerificationError as e:
            logger.warning("Invalid webhook signature: %s", str(e))
            raise ValueError("Invalid webhook signature") from e
