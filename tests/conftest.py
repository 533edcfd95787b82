"""Pytest configuration and fixtures."""

import os
from collections.abc import Callable, Generator
from contextlib import ExitStack
from typing import Any
from unittest.mock import MagicMock, patch
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("SUPABASE_SIGNING_KEY_JWK", "test-signing-key-jwk")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_stripe_secret_key")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_webhook_secret")
os.environ.setdefault("STRIPE_PUBLISHABLE_KEY", "pk_test_stripe_publishable_key")

from tests.fakes import BOOK_ID, SELLER_ID, FakeSupabaseClient  # noqa: E402

# Every module that binds get_supabase_client at import time
SUPABASE_CLIENT_TARGETS = (
    "src.core.supabase.get_supabase_client",
    "src.services.order_service.get_supabase_client",
    "src.services.shipping_service.get_supabase_client",
    "src.services.notification_service.get_supabase_client",
    "src.services.catalog_service.get_supabase_client",
    "src.services.profile_service.get_supabase_client",
    "src.services.wishlist_service.get_supabase_client",
)


@pytest.fixture(scope="session")
def test_settings() -> Generator[Any, None, None]:
    """Provide test settings with cleared cache.

    Yields:
        Settings: Test configuration settings.
    """
    from src.core.config import get_settings

    get_settings.cache_clear()
    settings = get_settings()
    yield settings
    get_settings.cache_clear()


@pytest.fixture
def fake_db() -> Generator[FakeSupabaseClient, None, None]:
    """Provide an in-memory database wired into every service.

    Yields:
        FakeSupabaseClient: The shared fake client.
    """
    db = FakeSupabaseClient()
    with ExitStack() as stack:
        for target in SUPABASE_CLIENT_TARGETS:
            stack.enter_context(patch(target, return_value=db))
        yield db


@pytest.fixture
def book() -> dict[str, Any]:
    """A sale listing owned by the seller."""
    return {
        "id": BOOK_ID,
        "title": "The Left Hand of Darkness",
        "author": "Ursula K. Le Guin",
        "price": "19.99",
        "owner_id": SELLER_ID,
        "listing_type": "Sale",
        "condition": "Like New",
        "status": "available",
        "image_url": None,
    }


@pytest.fixture
def shipping() -> Any:
    """A complete delivery address."""
    from src.schemas.order import ShippingDetailsInput

    return ShippingDetailsInput(
        full_name="Ada Reader",
        address_line1="1 Library Way",
        city="Springfield",
        state="IL",
        postal_code="62701",
        country="US",
        phone="555-0100",
    )


@pytest.fixture
def mock_stripe() -> Generator[MagicMock, None, None]:
    """Provide a mocked Stripe module for the payment gateway.

    Yields:
        MagicMock: Stripe stand-in whose Session.create returns cs_test_123.
    """
    stripe_mock = MagicMock()
    session = MagicMock()
    session.id = "cs_test_123"
    session.url = "https://checkout.stripe.com/c/pay/cs_test_123"
    stripe_mock.checkout.Session.create.return_value = session

    with patch("src.services.payment_gateway.get_stripe", return_value=stripe_mock):
        yield stripe_mock


@pytest.fixture
def authenticate() -> Generator[Callable[[str], None], None, None]:
    """Make the bearer token resolve to the given user id.

    Yields:
        Callable: Call with a user id to switch the authenticated user.
    """
    from src.schemas.auth import TokenPayload

    with patch("src.api.deps.decode_jwt") as mock_decode:

        def _as(user_id: str, email: str | None = None) -> None:
            mock_decode.return_value = TokenPayload(
                sub=str(UUID(user_id)),
                email=email or f"{user_id[:4]}@example.com",
                role="authenticated",
                exp=9999999999,
                iat=1700000000,
            )

        yield _as


@pytest.fixture
def client(fake_db: FakeSupabaseClient) -> Generator[TestClient, None, None]:
    """Provide a test client for the FastAPI application.

    Args:
        fake_db: In-memory database fixture.

    Yields:
        TestClient: FastAPI test client.
    """
    from src.main import app

    with TestClient(app) as test_client:
        yield test_client
