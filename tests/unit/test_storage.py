"""
Unit tests for the storage clients and credential issuance.

R2StorageClient is exercised through botocore's Stubber, so error
translation is checked against real boto3 response shapes without
touching the network.
"""

import asyncio
import time

import pytest
import boto3
from botocore.config import Config
from botocore.stub import Stubber

from src.core.errors import ConfigurationError, StorageUnavailable
from src.core.models import ObjectPresence
from src.core.storage import CredentialIssuer, check_existence
from src.infrastructure.storage.client import (
    MockStorageClient,
    R2StorageClient,
    StorageConfig,
    create_storage_client,
)

BUCKET = "family-archive-uploads"


@pytest.fixture
def storage_config() -> StorageConfig:
    return StorageConfig(
        access_key_id="test-access-key",
        secret_access_key="test-secret-key",
        bucket_name=BUCKET,
        endpoint_url="https://account123.r2.cloudflarestorage.com",
    )


@pytest.fixture
def s3_client(storage_config):
    return boto3.client(
        "s3",
        endpoint_url=storage_config.endpoint_url,
        aws_access_key_id=storage_config.access_key_id,
        aws_secret_access_key=storage_config.secret_access_key,
        region_name="auto",
        config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
    )


@pytest.fixture
def stubbed(s3_client, storage_config):
    """R2 client plus the stubber driving its boto3 responses."""
    client = R2StorageClient(storage_config, s3_client=s3_client)
    with Stubber(s3_client) as stubber:
        yield client, stubber
        stubber.assert_no_pending_responses()


# ---------------------------------------------------------------------------
# R2 Client Tests
# ---------------------------------------------------------------------------

class TestR2Probe:
    """Existence checks must only report NOT_FOUND for a real 404."""

    @pytest.mark.asyncio
    async def test_existing_object(self, stubbed):
        client, stubber = stubbed
        stubber.add_response(
            "head_object",
            {"ContentLength": 10},
            {"Bucket": BUCKET, "Key": "Memorial_Guest_UPLOADS/abc_a.png"},
        )

        assert await client.probe("Memorial_Guest_UPLOADS/abc_a.png") is ObjectPresence.EXISTS

    @pytest.mark.asyncio
    async def test_404_is_not_found(self, stubbed):
        client, stubber = stubbed
        stubber.add_client_error(
            "head_object",
            service_error_code="404",
            http_status_code=404,
        )

        assert await client.probe("missing.png") is ObjectPresence.NOT_FOUND

    @pytest.mark.asyncio
    async def test_other_errors_raise_storage_unavailable(self, stubbed):
        """A 403 or 500 must not be mistaken for a missing object."""
        client, stubber = stubbed
        stubber.add_client_error(
            "head_object",
            service_error_code="AccessDenied",
            http_status_code=403,
        )

        with pytest.raises(StorageUnavailable) as exc_info:
            await client.probe("a.png")

        assert "AccessDenied" in exc_info.value.details


class TestR2Listing:
    """Tests for ListObjectsV2 paging."""

    @pytest.mark.asyncio
    async def test_truncated_page_returns_token(self, stubbed):
        client, stubber = stubbed
        stubber.add_response(
            "list_objects_v2",
            {
                "Contents": [{"Key": "A_UPLOADS/1_a.jpg", "Size": 5}],
                "IsTruncated": True,
                "NextContinuationToken": "token-2",
            },
            {"Bucket": BUCKET, "MaxKeys": 1},
        )

        page = await client.list_objects_page(1)

        assert [obj.key for obj in page.objects] == ["A_UPLOADS/1_a.jpg"]
        assert page.objects[0].size_bytes == 5
        assert page.next_token == "token-2"

    @pytest.mark.asyncio
    async def test_final_page_passes_token_and_ends(self, stubbed):
        client, stubber = stubbed
        stubber.add_response(
            "list_objects_v2",
            {"IsTruncated": False},
            {"Bucket": BUCKET, "MaxKeys": 1000, "ContinuationToken": "token-2"},
        )

        page = await client.list_objects_page(1000, "token-2")

        assert page.objects == []
        assert page.next_token is None

    @pytest.mark.asyncio
    async def test_list_failure(self, stubbed):
        client, stubber = stubbed
        stubber.add_client_error("list_objects_v2", service_error_code="InternalError", http_status_code=500)

        with pytest.raises(StorageUnavailable, match="list"):
            await client.list_objects_page(1000)


class TestR2Writes:

    @pytest.mark.asyncio
    async def test_put_object(self, stubbed):
        client, stubber = stubbed
        stubber.add_response(
            "put_object",
            {},
            {"Bucket": BUCKET, "Key": "k.jpg", "Body": b"data", "ContentType": "image/jpeg"},
        )

        await client.put_object("k.jpg", b"data", "image/jpeg")

    @pytest.mark.asyncio
    async def test_put_failure(self, stubbed):
        client, stubber = stubbed
        stubber.add_client_error("put_object", service_error_code="SlowDown", http_status_code=503)

        with pytest.raises(StorageUnavailable, match="Upload failed"):
            await client.put_object("k.jpg", b"data", "image/jpeg")

    @pytest.mark.asyncio
    async def test_writes_do_not_block_the_event_loop(self, storage_config):
        """Two slow writes overlap, and other coroutines keep running meanwhile."""

        class SlowS3:
            def put_object(self, **params):
                time.sleep(0.3)

        client = R2StorageClient(storage_config, s3_client=SlowS3())
        ticks = 0

        async def heartbeat():
            nonlocal ticks
            while True:
                await asyncio.sleep(0.02)
                ticks += 1

        beat = asyncio.create_task(heartbeat())
        started = time.monotonic()
        await asyncio.gather(
            client.put_object("a.jpg", b"1", "image/jpeg"),
            client.put_object("b.jpg", b"2", "image/jpeg"),
        )
        elapsed = time.monotonic() - started
        beat.cancel()

        assert elapsed < 0.55
        assert ticks >= 5


class TestR2Presigning:
    """Presigning is local, so these run against a plain boto3 client."""

    @pytest.mark.asyncio
    async def test_presigned_put_url(self, s3_client, storage_config):
        client = R2StorageClient(storage_config, s3_client=s3_client)

        url = await client.presign_put("Memorial_Guest_UPLOADS/abc_a.png", "image/png", 3600)

        assert url.startswith("https://account123.r2.cloudflarestorage.com/family-archive-uploads/")
        assert "Memorial_Guest_UPLOADS/abc_a.png" in url
        assert "X-Amz-Expires=3600" in url
        assert "X-Amz-Signature=" in url

    @pytest.mark.asyncio
    async def test_presigned_get_url(self, s3_client, storage_config):
        client = R2StorageClient(storage_config, s3_client=s3_client)

        url = await client.presign_get("A_UPLOADS/b.jpg", 600)

        assert "A_UPLOADS/b.jpg" in url
        assert "X-Amz-Expires=600" in url


# ---------------------------------------------------------------------------
# Mock Client and Factory Tests
# ---------------------------------------------------------------------------

class TestMockStorageClient:

    @pytest.mark.asyncio
    async def test_put_then_probe(self, storage):
        await storage.put_object("a.jpg", b"x", "image/jpeg")

        assert await storage.probe("a.jpg") is ObjectPresence.EXISTS
        assert await storage.probe("b.jpg") is ObjectPresence.NOT_FOUND
        assert storage.get("a.jpg") == b"x"

    @pytest.mark.asyncio
    async def test_listing_pages_in_key_order(self, storage):
        for key in ["c.jpg", "a.jpg", "b.jpg"]:
            storage.seed(key)

        first = await storage.list_objects_page(2)
        second = await storage.list_objects_page(2, first.next_token)

        assert [o.key for o in first.objects] == ["a.jpg", "b.jpg"]
        assert [o.key for o in second.objects] == ["c.jpg"]
        assert second.next_token is None


class TestCreateStorageClient:

    def test_mock_mode(self):
        assert isinstance(create_storage_client(mock_mode=True), MockStorageClient)

    def test_real_client_requires_config(self):
        with pytest.raises(ValueError, match="config is required"):
            create_storage_client()

    def test_real_client(self, storage_config):
        client = create_storage_client(config=storage_config)
        assert isinstance(client, R2StorageClient)
        assert client.bucket_name == BUCKET


# ---------------------------------------------------------------------------
# Credential Issuer Tests
# ---------------------------------------------------------------------------

class TestCredentialIssuer:

    @pytest.mark.asyncio
    async def test_upload_credential_defaults_content_type(self, storage):
        """A missing content type is signed as application/octet-stream."""
        calls = []

        async def presign_put(key, content_type, expiry_seconds):
            calls.append((key, content_type, expiry_seconds))
            return "signed"

        storage.presign_put = presign_put
        issuer = CredentialIssuer(storage, expiry_seconds=3600)

        credential = await issuer.issue_upload("k.bin")

        assert calls == [("k.bin", "application/octet-stream", 3600)]
        assert credential.url == "signed"
        assert credential.object_key == "k.bin"
        assert credential.expires_in == 3600

    @pytest.mark.asyncio
    async def test_download_credential(self, issuer):
        credential = await issuer.issue_download("A_UPLOADS/a.jpg")

        assert credential.url == "mock://storage/A_UPLOADS/a.jpg?method=GET&expires=3600"

    def test_rejects_non_positive_expiry(self, storage):
        with pytest.raises(ConfigurationError):
            CredentialIssuer(storage, expiry_seconds=0)

    @pytest.mark.asyncio
    async def test_check_existence_passes_through(self, storage):
        storage.seed("a.jpg")
        assert await check_existence(storage, "a.jpg") is ObjectPresence.EXISTS
