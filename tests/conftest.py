"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("PII_ENCRYPTION_KEY", "00112233445566778899aabbccddeeff00112233445566778899aabbccddeeff")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-for-unit-tests")
os.environ.setdefault("CACHE_BACKEND", "memory")
os.environ.setdefault("BCRYPT_ROUNDS", "4")


@pytest.fixture(scope="session")
def test_settings() -> Generator[Any, None, None]:
    """Provide test settings with cleared cache.

    Yields:
        Settings: Test configuration settings.
    """
    from accounts.core.config import get_settings

    get_settings.cache_clear()
    settings = get_settings()
    yield settings
    get_settings.cache_clear()


@pytest.fixture
def pii_cipher(test_settings: Any) -> Any:
    """Cipher keyed with the test encryption key."""
    from accounts.core.crypto import PIICipher

    return PIICipher.from_hex(test_settings.pii_encryption_key)


@pytest.fixture
def credential_verifier() -> Any:
    """bcrypt verifier at the minimum cost factor to keep tests fast."""
    from accounts.core.crypto import CredentialVerifier

    return CredentialVerifier(rounds=4)


@pytest.fixture
def memory_cache() -> Any:
    """Fresh in-memory profile cache."""
    from accounts.services.profile_cache import MemoryProfileCache

    return MemoryProfileCache()


@pytest.fixture
def mock_store() -> MagicMock:
    """Profile store mock with no rows by default."""
    from accounts.services.profile_store import ProfileStore

    store = MagicMock(spec=ProfileStore)
    store.fetch_user.return_value = None
    store.fetch_bot.return_value = None
    store.fetch_patch_baseline.return_value = None
    return store


@pytest.fixture
def client(
    mock_store: MagicMock, memory_cache: Any, test_settings: Any
) -> Generator[TestClient, None, None]:
    """Provide a test client whose lifespan wires mocked store and in-memory cache.

    Yields:
        TestClient: FastAPI test client.
    """
    from accounts.main import app

    with (
        patch("accounts.main.connect", return_value=MagicMock()),
        patch("accounts.main.ProfileStore", return_value=mock_store),
        patch("accounts.main.create_profile_cache", return_value=memory_cache),
    ):
        with TestClient(app) as test_client:
            yield test_client
