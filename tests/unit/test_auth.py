"""Unit tests for bearer token decoding and requester extraction."""

import time

import jwt
import pytest
from fastapi import HTTPException

from accounts.api.deps import get_current_user, get_optional_user
from accounts.api.middleware.auth import AuthError, AuthErrorCode, decode_jwt

# Matches JWT_SECRET in conftest
TEST_JWT_SECRET = "test-jwt-secret-for-unit-tests"


def create_test_token(
    sub: str | None = "alice",
    exp_offset: int = 3600,
    secret: str = TEST_JWT_SECRET,
    algorithm: str = "HS256",
) -> str:
    """Create a test bearer token.

    Args:
        sub: Subject (requester vanity), omitted when None.
        exp_offset: Seconds from now for expiration (negative for expired).
        secret: Signing secret.
        algorithm: Signing algorithm.

    Returns:
        str: Encoded JWT.
    """
    now = int(time.time())
    payload = {"exp": now + exp_offset, "iat": now}
    if sub is not None:
        payload["sub"] = sub
    return jwt.encode(payload, secret, algorithm=algorithm)


@pytest.fixture(autouse=True)
def _settings(test_settings):
    """Load settings from the test environment."""
    return test_settings


class TestDecodeJWT:
    """Tests for decode_jwt function."""

    def test_valid_token(self) -> None:
        """Test that the sub claim becomes the requester vanity."""
        payload = decode_jwt(create_test_token())

        assert payload.sub == "alice"
        assert payload.to_user_context().vanity == "alice"

    def test_expired_token(self) -> None:
        with pytest.raises(AuthError) as exc_info:
            decode_jwt(create_test_token(exp_offset=-3600))

        assert exc_info.value.code == AuthErrorCode.TOKEN_EXPIRED
        assert "expired" in exc_info.value.message.lower()

    def test_wrong_secret(self) -> None:
        with pytest.raises(AuthError) as exc_info:
            decode_jwt(create_test_token(secret="wrong-secret-value-that-is-long-enough"))

        assert exc_info.value.code == AuthErrorCode.INVALID_SIGNATURE

    def test_malformed_token(self) -> None:
        with pytest.raises(AuthError) as exc_info:
            decode_jwt("not-a-valid-jwt-token")

        assert exc_info.value.code == AuthErrorCode.INVALID_TOKEN

    def test_missing_sub_claim(self) -> None:
        with pytest.raises(AuthError) as exc_info:
            decode_jwt(create_test_token(sub=None))

        assert exc_info.value.code == AuthErrorCode.INVALID_TOKEN
        assert "sub" in exc_info.value.message


class TestGetCurrentUser:
    """Tests for the Authorization header dependencies."""

    @pytest.mark.asyncio
    async def test_bearer_token(self) -> None:
        user = await get_current_user(f"Bearer {create_test_token(sub='bob')}")

        assert user.vanity == "bob"

    @pytest.mark.asyncio
    async def test_missing_header(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user("")

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_wrong_scheme(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(f"Token {create_test_token()}")

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_expired_token(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(f"Bearer {create_test_token(exp_offset=-10)}")

        assert exc_info.value.detail == "Token has expired"

    @pytest.mark.asyncio
    async def test_optional_user_absent(self) -> None:
        assert await get_optional_user(None) is None

    @pytest.mark.asyncio
    async def test_optional_user_rejects_bad_token(self) -> None:
        with pytest.raises(HTTPException):
            await get_optional_user("Bearer garbage")
