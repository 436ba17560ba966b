"""
Upload API endpoints.

Two ways in:
1. POST /upload-url - client gets a presigned PUT URL and uploads directly
   to R2, bypassing the API's request size limits
2. POST /upload - client posts multipart/form-data here and the API
   writes each file to R2 itself

The presigned flow is preferred for large videos; push upload remains for
clients that can't PUT cross-origin.
"""

import logging

from fastapi import APIRouter, Request, status
from pydantic import ValidationError as PydanticValidationError

from ...core.errors import ValidationError
from ...core.models import UploadRequest
from ..dependencies import UploadCoordinatorDep
from .schemas import (
    ErrorResponse,
    UploadedFile,
    UploadResponse,
    UploadUrlRequest,
    UploadUrlResponse,
    describe_validation_errors,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/upload-url",
    response_model=UploadUrlResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Get a presigned upload URL",
    description="Returns a one-hour PUT URL, or skipped=true if the hashed file already exists",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": UploadUrlRequest.model_json_schema(by_alias=True)}},
        }
    },
)
async def get_upload_url(
    request: Request,
    coordinator: UploadCoordinatorDep,
) -> UploadUrlResponse:
    """
    Issue a presigned PUT URL.

    The body is read here rather than declared as a parameter so the
    storage configuration check in the dependencies runs first, and so
    malformed bodies get the same 400 envelope as other input errors.
    """
    try:
        body = UploadUrlRequest.model_validate_json(await request.body())
    except PydanticValidationError as e:
        raise ValidationError(describe_validation_errors(e.errors()))

    ticket = await coordinator.request_upload(UploadRequest(
        filename=body.filename,
        declared_content_type=body.content_type,
        declared_size=body.size,
        content_hash=body.file_hash,
        contributor=body.contributor,
    ))

    if ticket.skipped:
        return UploadUrlResponse(
            object_key=ticket.object_key,
            skipped=True,
            message=ticket.message,
        )

    return UploadUrlResponse(
        object_key=ticket.object_key,
        upload_url=ticket.credential.url,
        expires_in=ticket.credential.expires_in,
    )


@router.post(
    "/upload",
    response_model=UploadResponse,
    status_code=status.HTTP_200_OK,
    summary="Upload files through the API",
    description="Accepts multipart/form-data with one or more files and an optional contributor field",
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def upload_files(
    request: Request,
    coordinator: UploadCoordinatorDep,
) -> UploadResponse:
    """
    Push upload.

    The raw body is decoded by the inline multipart parser rather than
    FastAPI's form handling, so partially delimited payloads still yield
    the files that arrived intact.
    """
    body = await request.body()
    stored = await coordinator.ingest(body, request.headers.get("content-type"))

    return UploadResponse(
        message=f"{len(stored)} photo(s) uploaded successfully",
        files=[
            UploadedFile(filename=f.filename, object_key=f.object_key, size=f.size)
            for f in stored
        ],
    )
