"""
Gallery API endpoint.

Returns a random sample of uploaded photos and videos with one-hour read
URLs. Nothing is cached: every request re-lists the bucket, so new
uploads show up as soon as R2 lists them.
"""

import logging

from fastapi import APIRouter, status

from ..dependencies import GalleryServiceDep
from .schemas import ErrorResponse, GalleryPhoto, GalleryResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/gallery",
    response_model=GalleryResponse,
    status_code=status.HTTP_200_OK,
    summary="List gallery photos",
    description="Random sample of up to 50 media files with presigned read URLs",
    responses={500: {"model": ErrorResponse}},
)
async def get_gallery(gallery: GalleryServiceDep) -> GalleryResponse:
    items = await gallery.build_gallery()

    photos = [
        GalleryPhoto(
            key=item.key,
            url=item.read_url,
            filename=item.filename,
            contributor=item.contributor,
            size=item.size_bytes,
            last_modified=item.last_modified,
            is_video=item.is_video,
            is_heic=item.is_heic,
        )
        for item in items
    ]

    return GalleryResponse(photos=photos, total=len(photos))
