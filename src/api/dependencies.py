"""
FastAPI dependency injection.

Dependencies provide instances of services, clients, and configuration
to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- The storage client is an explicit value, overridable per test
- Configuration is checked once, before any handler work

Each dependency is a function that FastAPI calls when needed.
"""

import logging
from typing import Annotated

from fastapi import Depends, Request

from ..config.settings import Settings, get_settings
from ..core.gallery import GalleryService
from ..core.storage import CredentialIssuer, StorageClient
from ..core.uploads import UploadCoordinator
from ..infrastructure.storage.client import StorageConfig, create_storage_client

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

def get_storage_client(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> StorageClient:
    """
    Provide storage client for uploads and gallery listing.

    Raises ConfigurationError before anything else when credentials are
    missing. In mock mode the app-scoped in-memory client is reused so
    uploads persist across requests.
    """
    settings.require_storage_config()

    if settings.r2_mock_mode:
        logger.debug("Using app mock storage client")
        return request.app.state.mock_storage

    config = StorageConfig(
        access_key_id=settings.r2_access_key_id,
        secret_access_key=settings.r2_secret_access_key,
        bucket_name=settings.r2_bucket_name,
        endpoint_url=settings.r2_endpoint,
    )
    return create_storage_client(config=config)


def get_credential_issuer(
    storage: Annotated[StorageClient, Depends(get_storage_client)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> CredentialIssuer:
    return CredentialIssuer(storage, expiry_seconds=settings.presigned_url_expiry_seconds)


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_upload_coordinator(
    storage: Annotated[StorageClient, Depends(get_storage_client)],
    issuer: Annotated[CredentialIssuer, Depends(get_credential_issuer)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> UploadCoordinator:
    """The coordinator is stateless, so we create a new instance per request."""
    return UploadCoordinator(
        storage=storage,
        issuer=issuer,
        default_contributor=settings.default_contributor,
        max_body_bytes=settings.max_upload_size_bytes,
    )


def get_gallery_service(
    storage: Annotated[StorageClient, Depends(get_storage_client)],
    issuer: Annotated[CredentialIssuer, Depends(get_credential_issuer)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> GalleryService:
    return GalleryService(
        storage=storage,
        issuer=issuer,
        ordering=settings.gallery_ordering,
        max_items=settings.gallery_max_items,
        page_size=settings.list_page_size,
        default_contributor=settings.default_contributor,
    )


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
SettingsDep = Annotated[Settings, Depends(get_settings)]
StorageClientDep = Annotated[StorageClient, Depends(get_storage_client)]
UploadCoordinatorDep = Annotated[UploadCoordinator, Depends(get_upload_coordinator)]
GalleryServiceDep = Annotated[GalleryService, Depends(get_gallery_service)]
