"""
Error taxonomy for the upload and gallery services.

Each error carries the HTTP status it should surface as, so the API layer
can translate without knowing which component raised it. The core never
imports FastAPI; the mapping lives in `src.main`.
"""

from typing import Optional


class GalleryServiceError(Exception):
    """Base class for errors the API reports to callers."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(GalleryServiceError):
    """Caller input is missing or malformed. Never retried internally."""

    status_code = 400


class PayloadTooLarge(ValidationError):
    """Pushed upload body exceeds the configured size limit."""

    status_code = 413


class ConfigurationError(GalleryServiceError):
    """Storage credentials are not configured for this deployment."""

    status_code = 500


class StorageUnavailable(GalleryServiceError):
    """
    Any failure talking to the object store other than a confirmed "not found".

    The underlying error text is kept in `details` for diagnosis.
    """

    status_code = 500
