"""
Shared fixtures.

Everything runs against the in-memory storage client, so no test needs
network access or R2 credentials.
"""

from datetime import datetime, timezone

import pytest

from src.core.storage import CredentialIssuer
from src.infrastructure.storage.client import MockStorageClient

FIXED_NOW = datetime(2024, 5, 1, 12, 30, 45, tzinfo=timezone.utc)


@pytest.fixture
def storage() -> MockStorageClient:
    return MockStorageClient()


@pytest.fixture
def issuer(storage) -> CredentialIssuer:
    return CredentialIssuer(storage, expiry_seconds=3600)


@pytest.fixture
def clock():
    """A clock frozen at FIXED_NOW."""
    return lambda: FIXED_NOW
