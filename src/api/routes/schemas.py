"""
Request/response models shared by the upload and gallery routes.

Field names are snake_case in Python and camelCase on the wire, matching
what the browser uploader and gallery page send and read.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UploadUrlRequest(CamelModel):
    """Request for a presigned upload URL."""
    filename: Optional[str] = Field(default=None, description="Original file name (required)")
    content_type: Optional[str] = Field(default=None, description="MIME type the client will PUT with")
    size: Optional[int] = Field(default=None, ge=0, description="Declared size in bytes")
    file_hash: Optional[str] = Field(
        default=None,
        description="Content hash. Enables deduplicated, idempotent keys."
    )
    contributor: Optional[str] = Field(default=None, description="Contributor name for the folder")


class UploadUrlResponse(CamelModel):
    """Either a signed PUT URL, or a skip notice for duplicate content."""
    success: bool = True
    object_key: str
    upload_url: Optional[str] = None
    expires_in: Optional[int] = None
    skipped: Optional[bool] = None
    message: Optional[str] = None


class UploadedFile(CamelModel):
    filename: str
    object_key: str
    size: int


class UploadResponse(CamelModel):
    """Response after pushing files through the API."""
    success: bool = True
    message: str
    files: list[UploadedFile]


class GalleryPhoto(CamelModel):
    key: str
    url: str = Field(description="Time-limited read URL")
    filename: str
    contributor: str
    size: int
    last_modified: Optional[datetime] = None
    is_video: bool
    is_heic: bool


class GalleryResponse(CamelModel):
    success: bool = True
    photos: list[GalleryPhoto]
    total: int


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    details: Optional[str] = None


def describe_validation_errors(errors: list[dict]) -> str:
    """
    Flatten pydantic/FastAPI validation errors into one readable message.

    `[{"loc": ("body", "size"), "msg": "Input should be ..."}]` becomes
    `Invalid request: size: Input should be ...`.
    """
    problems = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "invalid value")
        problems.append(f"{location}: {message}" if location else message)

    return "Invalid request: " + "; ".join(problems) if problems else "Invalid request"
