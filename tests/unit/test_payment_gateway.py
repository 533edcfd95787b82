"""Unit tests for PaymentGateway."""

import time
from decimal import Decimal
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
import stripe

from src.api.middleware.error_handler import GatewayError
from src.services.payment_gateway import PaymentGateway, to_minor_units


@pytest.fixture
def mock_settings(test_settings: Any) -> Any:
    """Settings with a short checkout timeout."""
    return test_settings.model_copy(update={"checkout_timeout_seconds": 0.05})


@pytest.fixture
def gateway(mock_stripe: MagicMock, mock_settings: Any) -> PaymentGateway:
    """Create PaymentGateway with mocked Stripe."""
    with patch("src.services.payment_gateway.get_settings", return_value=mock_settings):
        return PaymentGateway()


async def create(gateway: PaymentGateway) -> Any:
    return await gateway.create_checkout_session(
        order_id="order-123",
        book_id="book-456",
        amount=Decimal("19.99"),
        success_url="https://example.com/success",
        cancel_url="https://example.com/cancel",
    )


class TestToMinorUnits:
    """Tests for minor unit conversion."""

    @pytest.mark.parametrize(
        ("amount", "expected"),
        [
            (Decimal("19.99"), 1999),
            ("0.01", 1),
            (Decimal("10"), 1000),
            ("19.995", 2000),
            ("0.125", 13),
        ],
    )
    def test_converts_and_rounds_half_up(self, amount: Any, expected: int) -> None:
        assert to_minor_units(amount) == expected


class TestCreateCheckoutSession:
    """Tests for create_checkout_session."""

    @pytest.mark.asyncio
    async def test_returns_session_reference(self, gateway: PaymentGateway, mock_stripe: MagicMock) -> None:
        session = await create(gateway)

        assert session.session_id == "cs_test_123"
        assert session.redirect_url == "https://checkout.stripe.com/c/pay/cs_test_123"

        kwargs = mock_stripe.checkout.Session.create.call_args.kwargs
        assert kwargs["mode"] == "payment"
        assert kwargs["line_items"][0]["price_data"]["currency"] == "usd"
        assert kwargs["line_items"][0]["price_data"]["unit_amount"] == 1999
        assert kwargs["line_items"][0]["quantity"] == 1
        assert kwargs["metadata"]["order_id"] == "order-123"

    @pytest.mark.asyncio
    async def test_retries_once_after_timeout_with_same_idempotency_key(
        self, gateway: PaymentGateway, mock_stripe: MagicMock
    ) -> None:
        session = MagicMock(id="cs_test_retry", url="https://checkout.stripe.com/c/pay/cs_test_retry")
        calls: list[str] = []

        def slow_then_fast(**params: Any) -> Any:
            calls.append(params["idempotency_key"])
            if len(calls) == 1:
                time.sleep(0.3)
            return session

        mock_stripe.checkout.Session.create.side_effect = slow_then_fast

        result = await create(gateway)

        assert result.session_id == "cs_test_retry"
        assert calls == ["checkout-order-123", "checkout-order-123"]

    @pytest.mark.asyncio
    async def test_gives_up_after_second_timeout(self, gateway: PaymentGateway, mock_stripe: MagicMock) -> None:
        mock_stripe.checkout.Session.create.side_effect = lambda **params: time.sleep(0.3)

        with pytest.raises(GatewayError) as exc_info:
            await create(gateway)

        assert exc_info.value.timed_out is True
        assert exc_info.value.status_code == 502
        assert mock_stripe.checkout.Session.create.call_count == 2

    @pytest.mark.asyncio
    async def test_no_retry_when_disabled(
        self, mock_stripe: MagicMock, mock_settings: Any
    ) -> None:
        settings = mock_settings.model_copy(update={"checkout_retry_on_timeout": False})
        with patch("src.services.payment_gateway.get_settings", return_value=settings):
            gateway = PaymentGateway()
        mock_stripe.checkout.Session.create.side_effect = lambda **params: time.sleep(0.3)

        with pytest.raises(GatewayError):
            await create(gateway)

        assert mock_stripe.checkout.Session.create.call_count == 1

    @pytest.mark.asyncio
    async def test_stripe_error_is_not_retried(self, gateway: PaymentGateway, mock_stripe: MagicMock) -> None:
        mock_stripe.checkout.Session.create.side_effect = stripe.InvalidRequestError(
            "Invalid currency", param="currency"
        )

        with pytest.raises(GatewayError) as exc_info:
            await create(gateway)

        assert exc_info.value.timed_out is False
        assert mock_stripe.checkout.Session.create.call_count == 1

    @pytest.mark.asyncio
    async def test_missing_url_is_an_error(self, gateway: PaymentGateway, mock_stripe: MagicMock) -> None:
        mock_stripe.checkout.Session.create.return_value = MagicMock(id="cs_test_123", url=None)

        with pytest.raises(GatewayError):
            await create(gateway)

    @pytest.mark.asyncio
    async def test_unexpected_sdk_error_becomes_gateway_error(
        self, gateway: PaymentGateway, mock_stripe: MagicMock
    ) -> None:
        mock_stripe.checkout.Session.create.side_effect = RuntimeError("sdk blew up")

        with pytest.raises(GatewayError) as exc_info:
            await create(gateway)

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert exc_info.value.timed_out is False
        assert mock_stripe.checkout.Session.create.call_count == 1

    @pytest.mark.asyncio
    async def test_unconfigured_stripe_fails_fast(
        self, mock_stripe: MagicMock, mock_settings: Any
    ) -> None:
        settings = mock_settings.model_copy(update={"stripe_secret_key": ""})
        with patch("src.services.payment_gateway.get_settings", return_value=settings):
            gateway = PaymentGateway()

        with pytest.raises(GatewayError):
            await create(gateway)

        mock_stripe.checkout.Session.create.assert_not_called()


class TestVerifyWebhookSignature:
    """Tests for verify_webhook_signature."""

    def test_returns_verified_event(self, gateway: PaymentGateway, mock_stripe: MagicMock) -> None:
        mock_stripe.Webhook.construct_event.return_value = {"id": "evt_123", "type": "checkout.session.completed"}

        event = gateway.verify_webhook_signature(b"{}", "t=1,v1=abc")

        assert event["id"] == "evt_123"
        mock_stripe.Webhook.construct_event.assert_called_once_with(
            b"{}", "t=1,v1=abc", "whsec_test_webhook_secret"
        )

    def test_invalid_signature_raises_value_error(self, gateway: PaymentGateway, mock_stripe: MagicMock) -> None:
        mock_stripe.Webhook.construct_event.side_effect = stripe.SignatureVerificationError(
            "No signatures found", "bad"
        )

        with pytest.raises(ValueError, match="Invalid webhook signature"):
            gateway.verify_webhook_signature(b"{}", "bad")

    def test_missing_secret_raises_value_error(self, mock_stripe: MagicMock, mock_settings: Any) -> None:
        settings = mock_settings.model_copy(update={"stripe_webhook_secret": ""})
        with patch("src.services.payment_gateway.get_settings", return_value=settings):
            gateway = PaymentGateway()

        with pytest.raises(ValueError):
            gateway.verify_webhook_signature(b"{}", "t=1,v1=abc")
