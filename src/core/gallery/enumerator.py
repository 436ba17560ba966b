"""
Full bucket enumeration.

The listing API pages its results; this walks every page until the store
stops returning a continuation marker. A failed page fails the whole
enumeration. Pages already fetched are dropped with the local list.
"""

import logging

from ..models import StorageObject
from ..storage import StorageClient

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 1000


async def enumerate_bucket(
    storage: StorageClient,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> list[StorageObject]:
    """Return every object in the bucket, in listing order."""
    objects: list[StorageObject] = []
    token = None
    pages = 0

    while True:
        page = await storage.list_objects_page(page_size, token)
        objects.extend(page.objects)
        pages += 1

        logger.debug(
            "Fetched listing page",
            extra={"page": pages, "count": len(page.objects)}
        )

        if not page.next_token:
            break
        token = page.next_token

    logger.info(
        "Enumerated bucket",
        extra={"pages": pages, "object_count": len(objects)}
    )

    return objects
