"""
Object storage client for uploaded photos and videos.

Supports Cloudflare R2 (S3-compatible) with mock mode for local development.
R2 speaks the S3 API, so boto3 handles signing, listing and writes; the
same client would work against S3 or MinIO with a different endpoint.

Mock mode stores objects in memory, enabling API testing without
provisioning actual object storage.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ...core.errors import StorageUnavailable
from ...core.models import ObjectPage, ObjectPresence, StorageObject
from ...core.storage import StorageClient

logger = logging.getLogger(__name__)

# Error codes S3-compatible stores use for a missing key on HEAD
NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


@dataclass
class StorageConfig:
    """
    Configuration for R2/S3-compatible storage.

    Using a dataclass instead of raw parameters keeps test configurations
    simple to build.
    """
    access_key_id: str
    secret_access_key: str
    bucket_name: str
    endpoint_url: str
    region: str = "auto"  # R2 uses 'auto' for region


class R2StorageClient:
    """
    Cloudflare R2 object storage client.

    boto3 is synchronous, so probes, writes and listings run in a worker
    thread to keep the event loop free. Presigning is local and runs inline.
    """

    def __init__(self, config: StorageConfig, s3_client=None) -> None:
        self._config = config

        if s3_client is None:
            # R2 requires v4 signatures
            boto_config = Config(
                signature_version='s3v4',
                s3={'addressing_style': 'path'},
            )
            s3_client = boto3.client(
                's3',
                endpoint_url=config.endpoint_url,
                aws_access_key_id=config.access_key_id,
                aws_secret_access_key=config.secret_access_key,
                region_name=config.region,
                config=boto_config,
            )

        self._s3_client = s3_client

        logger.info(
            "Initialized R2 storage client",
            extra={
                "bucket": config.bucket_name,
                "endpoint": config.endpoint_url,
            }
        )

    @property
    def bucket_name(self) -> str:
        return self._config.bucket_name

    async def probe(self, key: str) -> ObjectPresence:
        """HEAD the key. Only a 404 counts as missing."""
        try:
            await asyncio.to_thread(
                self._s3_client.head_object,
                Bucket=self._config.bucket_name,
                Key=key,
            )
            return ObjectPresence.EXISTS

        except ClientError as e:
            code = str(e.response.get('Error', {}).get('Code', ''))
            status = e.response.get('ResponseMetadata', {}).get('HTTPStatusCode')
            if code in NOT_FOUND_CODES or status == 404:
                return ObjectPresence.NOT_FOUND

            logger.error(
                "Failed to probe object",
                extra={"object_key": key, "error": str(e)}
            )
            raise StorageUnavailable("Existence check failed", details=str(e))

        except BotoCoreError as e:
            logger.error(
                "Failed to probe object",
                extra={"object_key": key, "error": str(e)}
            )
            raise StorageUnavailable("Existence check failed", details=str(e))

    async def put_object(self, key: str, body: bytes, content_type: str) -> None:
        try:
            await asyncio.to_thread(
                self._s3_client.put_object,
                Bucket=self._config.bucket_name,
                Key=key,
                Body=body,
                ContentType=content_type,
            )

        except (BotoCoreError, ClientError) as e:
            logger.error(
                "Failed to upload object",
                extra={"object_key": key, "size_bytes": len(body), "error": str(e)}
            )
            raise StorageUnavailable("Upload failed", details=str(e))

    async def list_objects_page(
        self,
        max_keys: int,
        continuation_token: Optional[str] = None,
    ) -> ObjectPage:
        """
        Fetch one ListObjectsV2 page.

        `next_token` is only set while the store reports the listing as
        truncated.
        """
        params = {
            'Bucket': self._config.bucket_name,
            'MaxKeys': max_keys,
        }
        if continuation_token:
            params['ContinuationToken'] = continuation_token

        try:
            response = await asyncio.to_thread(self._s3_client.list_objects_v2, **params)

        except (BotoCoreError, ClientError) as e:
            logger.error(
                "Failed to list objects",
                extra={"bucket": self._config.bucket_name, "error": str(e)}
            )
            raise StorageUnavailable("Failed to list bucket", details=str(e))

        objects = [
            StorageObject(
                key=obj['Key'],
                size_bytes=obj.get('Size', 0),
                last_modified=obj.get('LastModified'),
            )
            for obj in response.get('Contents', [])
        ]

        next_token = None
        if response.get('IsTruncated'):
            next_token = response.get('NextContinuationToken')

        return ObjectPage(objects=objects, next_token=next_token)

    async def presign_put(self, key: str, content_type: str, expiry_seconds: int) -> str:
        return self._presign(
            'put_object',
            {
                'Bucket': self._config.bucket_name,
                'Key': key,
                'ContentType': content_type,
            },
            expiry_seconds,
        )

    async def presign_get(self, key: str, expiry_seconds: int) -> str:
        return self._presign(
            'get_object',
            {
                'Bucket': self._config.bucket_name,
                'Key': key,
            },
            expiry_seconds,
        )

    def _presign(self, operation: str, params: dict, expiry_seconds: int) -> str:
        try:
            return self._s3_client.generate_presigned_url(
                operation,
                Params=params,
                ExpiresIn=expiry_seconds,
            )

        except (BotoCoreError, ClientError) as e:
            logger.error(
                "Failed to generate presigned URL",
                extra={"object_key": params.get('Key'), "operation": operation, "error": str(e)}
            )
            raise StorageUnavailable("Presigned URL generation failed", details=str(e))


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

@dataclass
class _StoredObject:
    body: bytes
    content_type: str
    last_modified: datetime


class MockStorageClient:
    """
    In-memory storage for local development and tests.

    Objects live in a dictionary and "URLs" are mock URIs. Listing is
    paginated the same way R2 pages it, so enumeration logic runs
    unchanged against this mock.
    """

    def __init__(self) -> None:
        self._objects: dict[str, _StoredObject] = {}
        logger.info("Initialized mock storage client (in-memory)")

    def seed(
        self,
        key: str,
        body: bytes = b"",
        content_type: str = "application/octet-stream",
        last_modified: Optional[datetime] = None,
    ) -> None:
        """Place an object directly, bypassing put_object."""
        self._objects[key] = _StoredObject(
            body=body,
            content_type=content_type,
            last_modified=last_modified or datetime.now(timezone.utc),
        )

    def get(self, key: str) -> bytes:
        if key not in self._objects:
            raise StorageUnavailable(f"Object not found: {key}")
        return self._objects[key].body

    def keys(self) -> list[str]:
        return sorted(self._objects)

    async def probe(self, key: str) -> ObjectPresence:
        if key in self._objects:
            return ObjectPresence.EXISTS
        return ObjectPresence.NOT_FOUND

    async def put_object(self, key: str, body: bytes, content_type: str) -> None:
        self.seed(key, body, content_type)

        logger.debug(
            "Stored object in mock storage",
            extra={"object_key": key, "size_bytes": len(body)}
        )

    async def list_objects_page(
        self,
        max_keys: int,
        continuation_token: Optional[str] = None,
    ) -> ObjectPage:
        """Page through keys in lexical order. The token is the next offset."""
        keys = self.keys()
        start = int(continuation_token) if continuation_token else 0
        end = start + max_keys

        objects = [
            StorageObject(
                key=key,
                size_bytes=len(self._objects[key].body),
                last_modified=self._objects[key].last_modified,
                content_type=self._objects[key].content_type,
            )
            for key in keys[start:end]
        ]

        next_token = str(end) if end < len(keys) else None
        return ObjectPage(objects=objects, next_token=next_token)

    async def presign_put(self, key: str, content_type: str, expiry_seconds: int) -> str:
        return f"mock://storage/{key}?method=PUT&expires={expiry_seconds}"

    async def presign_get(self, key: str, expiry_seconds: int) -> str:
        return f"mock://storage/{key}?method=GET&expires={expiry_seconds}"


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_client(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
) -> StorageClient:
    """
    Create storage client based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return mock client for testing

    Returns:
        StorageClient implementation (R2 or Mock)
    """
    if mock_mode:
        return MockStorageClient()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return R2StorageClient(config)
