"""
Upload coordination.

Two ways a file reaches the bucket:

- Credential flow: the client asks for a signed PUT URL and sends the bytes
  straight to storage. With a content hash the key is deterministic, and a
  key that already exists short-circuits to a "skipped" ticket.
- Push flow: the client posts a multipart body here, it is decoded inline
  and each file is written synchronously.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from ..errors import PayloadTooLarge, ValidationError
from ..models import (
    ByHash,
    ByTimestamp,
    ObjectPresence,
    StoredFile,
    UploadRequest,
    UploadTicket,
)
from ..storage import CredentialIssuer, StorageClient, check_existence
from .keys import DEFAULT_CONTRIBUTOR, choose_addressing, resolve_object_key, utc_now
from .multipart import extract_boundary, parse_multipart

logger = logging.getLogger(__name__)


def format_size(num_bytes: int) -> str:
    """Render a byte count in the largest unit that divides it exactly."""
    for unit, factor in (("MB", 1024 * 1024), ("KB", 1024)):
        if num_bytes >= factor and num_bytes % factor == 0:
            return f"{num_bytes // factor}{unit}"
    return f"{num_bytes} bytes"


class UploadCoordinator:
    """
    Resolves keys, gates on deduplication and hands out write credentials.

    Stateless apart from its collaborators; build one per request.
    """

    def __init__(
        self,
        storage: StorageClient,
        issuer: CredentialIssuer,
        default_contributor: str = DEFAULT_CONTRIBUTOR,
        max_body_bytes: Optional[int] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._storage = storage
        self._issuer = issuer
        self._default_contributor = default_contributor
        self._max_body_bytes = max_body_bytes
        self._clock = clock

    async def request_upload(self, request: UploadRequest) -> UploadTicket:
        """
        Issue a write credential for one file, or report it as a duplicate.

        Raises:
            ValidationError: if the filename is missing
            StorageUnavailable: if the existence probe or signing fails
        """
        addressing = choose_addressing(request.content_hash, self._clock())
        object_key = resolve_object_key(
            request.filename,
            addressing,
            request.contributor or self._default_contributor,
        )

        if isinstance(addressing, ByHash):
            presence = await check_existence(self._storage, object_key)
            if presence is ObjectPresence.EXISTS:
                logger.info("Skipped duplicate upload", extra={"object_key": object_key})
                return UploadTicket(
                    object_key=object_key,
                    skipped=True,
                    message="File already exists",
                )

        credential = await self._issuer.issue_upload(object_key, request.declared_content_type)

        logger.info(
            "Issued upload URL",
            extra={
                "object_key": object_key,
                "declared_size": request.declared_size,
                "expires_in": credential.expires_in,
            }
        )

        return UploadTicket(object_key=object_key, credential=credential)

    async def ingest(self, body: bytes, content_type: Optional[str]) -> list[StoredFile]:
        """
        Decode a pushed multipart body and write each file to storage.

        Files are written in payload order. A write failure aborts the call;
        files already written stay in the bucket.

        Raises:
            ValidationError: non-multipart body, or no files in it
            PayloadTooLarge: body exceeds the configured limit
            StorageUnavailable: a write failed
        """
        boundary = extract_boundary(content_type)

        if self._max_body_bytes is not None and len(body) > self._max_body_bytes:
            raise PayloadTooLarge(
                f"Upload too large. Maximum size: {format_size(self._max_body_bytes)}"
            )

        payload = parse_multipart(body, boundary, self._default_contributor)
        files = [part for part in payload.files if part.filename]

        if not files:
            raise ValidationError("No files uploaded")

        # One timestamp for the whole request
        addressing = ByTimestamp(self._clock())
        stored: list[StoredFile] = []

        for part in files:
            object_key = resolve_object_key(part.filename, addressing, payload.contributor)
            await self._storage.put_object(object_key, part.content, part.mime_type)

            stored.append(StoredFile(
                filename=part.filename,
                object_key=object_key,
                size=part.size,
            ))

            logger.info(
                "Uploaded file",
                extra={"object_key": object_key, "size_bytes": part.size}
            )

        return stored
