"""
Object store interface and the two operations built directly on it:
existence probing and signed-URL issuance.

The core only talks to storage through the `StorageClient` protocol. The
boto3-backed implementation and the in-memory mock live in
`src.infrastructure.storage`; tests can pass either.
"""

import logging
from typing import Optional, Protocol

from .errors import ConfigurationError
from .models import DEFAULT_CONTENT_TYPE, Credential, ObjectPage, ObjectPresence

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_SECONDS = 3600


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class StorageClient(Protocol):
    """
    Operations the upload and gallery services need from object storage.

    Implementations raise StorageUnavailable for any failure other than a
    confirmed missing object.
    """

    async def probe(self, key: str) -> ObjectPresence:
        """Metadata-only check for a key. No body transfer."""
        ...

    async def put_object(self, key: str, body: bytes, content_type: str) -> None:
        """Write an object synchronously."""
        ...

    async def list_objects_page(
        self,
        max_keys: int,
        continuation_token: Optional[str] = None,
    ) -> ObjectPage:
        """Fetch one page of the bucket listing."""
        ...

    async def presign_put(self, key: str, content_type: str, expiry_seconds: int) -> str:
        """Signed URL authorizing one PUT to key."""
        ...

    async def presign_get(self, key: str, expiry_seconds: int) -> str:
        """Signed URL authorizing reads of key."""
        ...


# ---------------------------------------------------------------------------
# Existence checking
# ---------------------------------------------------------------------------

async def check_existence(storage: StorageClient, key: str) -> ObjectPresence:
    """
    Ask the store whether key is already populated.

    Errors other than "not found" propagate as StorageUnavailable. Treating
    them as NOT_FOUND would let a new upload overwrite existing content.
    """
    presence = await storage.probe(key)
    logger.debug("Probed object", extra={"object_key": key, "presence": presence.value})
    return presence


# ---------------------------------------------------------------------------
# Credential issuance
# ---------------------------------------------------------------------------

class CredentialIssuer:
    """
    Issues time-limited signed URLs for single object keys.

    The issuer does not track whether a write credential is ever used.
    """

    def __init__(
        self,
        storage: StorageClient,
        expiry_seconds: int = DEFAULT_EXPIRY_SECONDS,
    ) -> None:
        if expiry_seconds <= 0:
            raise ConfigurationError("Presigned URL expiry must be positive")
        self._storage = storage
        self._expiry_seconds = expiry_seconds

    @property
    def expiry_seconds(self) -> int:
        return self._expiry_seconds

    async def issue_upload(self, key: str, content_type: Optional[str] = None) -> Credential:
        """Signed URL authorizing exactly one write to key."""
        url = await self._storage.presign_put(
            key,
            content_type or DEFAULT_CONTENT_TYPE,
            self._expiry_seconds,
        )
        return Credential(url=url, object_key=key, expires_in=self._expiry_seconds)

    async def issue_download(self, key: str) -> Credential:
        """Signed URL authorizing reads of key."""
        url = await self._storage.presign_get(key, self._expiry_seconds)
        return Credential(url=url, object_key=key, expires_in=self._expiry_seconds)
