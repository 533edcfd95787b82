"""Integration tests for webhook API endpoints."""

from typing import Any
from unittest.mock import MagicMock

import pytest
import stripe
from fastapi.testclient import TestClient

from tests.fakes import BOOK_ID, BUYER_ID, SELLER_ID, FakeSupabaseClient

ORDER_ID = "55555555-5555-5555-5555-555555555555"


def checkout_event(event_type: str, payment_status: str = "paid") -> dict[str, Any]:
    return {
        "id": "evt_123",
        "type": event_type,
        "data": {
            "object": {
                "id": "cs_test_123",
                "payment_status": payment_status,
                "amount_total": 1999,
                "client_reference_id": ORDER_ID,
                "metadata": {"order_id": ORDER_ID, "book_id": BOOK_ID},
            }
        },
    }


@pytest.fixture
def pending_order(fake_db: FakeSupabaseClient, book: dict) -> FakeSupabaseClient:
    fake_db.seed("books", book)
    fake_db.seed(
        "orders",
        {
            "id": ORDER_ID,
            "user_id": BUYER_ID,
            "book_id": BOOK_ID,
            "seller_id": SELLER_ID,
            "amount": "19.99",
            "status": "pending",
            "stripe_session_id": "cs_test_123",
            "created_at": "2026-01-01T10:00:00+00:00",
            "updated_at": "2026-01-01T10:00:00+00:00",
        },
    )
    return fake_db


def post_webhook(client: TestClient, signature: str | None = "t=1,v1=valid") -> Any:
    headers = {"stripe-signature": signature} if signature else {}
    return client.post("/api/v1/webhooks/stripe", content=b'{"test": "payload"}', headers=headers)


class TestStripeWebhook:
    """Tests for POST /api/v1/webhooks/stripe endpoint."""

    def test_checkout_completed_marks_order_paid(
        self, client: TestClient, pending_order: FakeSupabaseClient, mock_stripe: MagicMock
    ) -> None:
        mock_stripe.Webhook.construct_event.return_value = checkout_event("checkout.session.completed")

        response = post_webhook(client)

        assert response.status_code == 200
        assert response.json() == {"status": "received"}
        assert pending_order.rows("orders")[0]["status"] == "paid"
        assert pending_order.rows("books")[0]["status"] == "sold"
        assert len(pending_order.rows("notifications")) == 2

    def test_redelivery_does_not_duplicate_notifications(
        self, client: TestClient, pending_order: FakeSupabaseClient, mock_stripe: MagicMock
    ) -> None:
        mock_stripe.Webhook.construct_event.return_value = checkout_event("checkout.session.completed")

        post_webhook(client)
        response = post_webhook(client)

        assert response.status_code == 200
        assert len(pending_order.rows("notifications")) == 2

    def test_checkout_expired_cancels_order(
        self, client: TestClient, pending_order: FakeSupabaseClient, mock_stripe: MagicMock
    ) -> None:
        mock_stripe.Webhook.construct_event.return_value = checkout_event(
            "checkout.session.expired", payment_status="unpaid"
        )

        response = post_webhook(client)

        assert response.status_code == 200
        assert pending_order.rows("orders")[0]["status"] == "cancelled"

    def test_unhandled_event_is_acknowledged(
        self, client: TestClient, pending_order: FakeSupabaseClient, mock_stripe: MagicMock
    ) -> None:
        mock_stripe.Webhook.construct_event.return_value = {"id": "evt_1", "type": "invoice.paid", "data": {}}

        response = post_webhook(client)

        assert response.status_code == 200
        assert pending_order.rows("orders")[0]["status"] == "pending"

    def test_missing_signature_returns_400(self, client: TestClient, mock_stripe: MagicMock) -> None:
        response = post_webhook(client, signature=None)

        assert response.status_code == 400
        mock_stripe.Webhook.construct_event.assert_not_called()

    def test_invalid_signature_returns_400(
        self, client: TestClient, pending_order: FakeSupabaseClient, mock_stripe: MagicMock
    ) -> None:
        mock_stripe.Webhook.construct_event.side_effect = stripe.SignatureVerificationError("bad", "sig")

        response = post_webhook(client)

        assert response.status_code == 400
        assert pending_order.rows("orders")[0]["status"] == "pending"
