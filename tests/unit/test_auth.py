"""Unit tests for JWT decoding and authentication utilities."""

import time
from collections.abc import Generator
from typing import Any
from unittest.mock import patch

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import ec
from jwt.algorithms import ECAlgorithm

from src.api.middleware.auth import AuthError, AuthErrorCode, decode_jwt, get_signing_key

SIGNING_KEY = ec.generate_private_key(ec.SECP256R1())
OTHER_KEY = ec.generate_private_key(ec.SECP256R1())
PUBLIC_JWK = ECAlgorithm.to_jwk(SIGNING_KEY.public_key())


def create_test_token(
    sub: str | None = "550e8400-e29b-41d4-a716-446655440000",
    email: str | None = "test@example.com",
    exp_offset: int = 3600,
    key: Any = SIGNING_KEY,
) -> str:
    """Create an ES256 token like the ones Supabase Auth issues."""
    now = int(time.time())
    payload = {
        "email": email,
        "role": "authenticated",
        "exp": now + exp_offset,
        "iat": now - 10,
        "aud": "authenticated",
        "iss": "https://test.supabase.co/auth/v1",
    }
    if sub is not None:
        payload["sub"] = sub
    return jwt.encode(payload, key, algorithm="ES256")


@pytest.fixture(autouse=True)
def signing_key_setting() -> Generator[None, None, None]:
    """Point the signing key setting at the test key pair."""
    get_signing_key.cache_clear()
    with patch("src.api.middleware.auth.get_settings") as mock_settings:
        mock_settings.return_value.supabase_signing_key_jwk = PUBLIC_JWK
        yield
    get_signing_key.cache_clear()


class TestDecodeJWT:
    """Tests for decode_jwt function."""

    def test_decode_jwt_with_valid_token(self) -> None:
        payload = decode_jwt(create_test_token())

        assert payload.sub == "550e8400-e29b-41d4-a716-446655440000"
        assert payload.email == "test@example.com"
        assert payload.aud == "authenticated"

    def test_decode_jwt_converts_to_user_context(self) -> None:
        user = decode_jwt(create_test_token()).to_user_context()

        assert user.id == "550e8400-e29b-41d4-a716-446655440000"
        assert user.role == "authenticated"

    def test_decode_jwt_with_expired_token(self) -> None:
        with pytest.raises(AuthError) as exc_info:
            decode_jwt(create_test_token(exp_offset=-60))

        assert exc_info.value.code == AuthErrorCode.TOKEN_EXPIRED

    def test_decode_jwt_with_invalid_signature(self) -> None:
        with pytest.raises(AuthError) as exc_info:
            decode_jwt(create_test_token(key=OTHER_KEY))

        assert exc_info.value.code == AuthErrorCode.INVALID_SIGNATURE

    def test_decode_jwt_with_malformed_token(self) -> None:
        with pytest.raises(AuthError) as exc_info:
            decode_jwt("not-a-jwt")

        assert exc_info.value.code == AuthErrorCode.INVALID_TOKEN

    def test_decode_jwt_missing_sub_claim(self) -> None:
        with pytest.raises(AuthError) as exc_info:
            decode_jwt(create_test_token(sub=None))

        assert exc_info.value.code == AuthErrorCode.INVALID_TOKEN
        assert "sub" in exc_info.value.message

    def test_missing_signing_key_rejects_tokens(self) -> None:
        get_signing_key.cache_clear()
        with patch("src.api.middleware.auth.get_settings") as mock_settings:
            mock_settings.return_value.supabase_signing_key_jwk = ""
            with pytest.raises(AuthError):
                decode_jwt(create_test_token())
        get_signing_key.cache_clear()
