"""
Gallery composition.

Enumerates the bucket, samples it, and signs a read URL for each selected
object concurrently. Signing is all-or-nothing: one failure fails the
request rather than returning a gallery with holes.
"""

import asyncio
import logging
import random
from typing import Optional

from ..models import GalleryItem, StorageObject
from ..storage import CredentialIssuer, StorageClient
from ..uploads.keys import DEFAULT_CONTRIBUTOR
from .enumerator import DEFAULT_PAGE_SIZE, enumerate_bucket
from .sampler import (
    DEFAULT_MAX_ITEMS,
    GalleryOrdering,
    is_heic,
    is_video,
    sample_gallery,
    split_key,
)

logger = logging.getLogger(__name__)


class GalleryService:
    """Builds the list of gallery items shown to visitors."""

    def __init__(
        self,
        storage: StorageClient,
        issuer: CredentialIssuer,
        ordering: GalleryOrdering = GalleryOrdering.SHUFFLED,
        max_items: int = DEFAULT_MAX_ITEMS,
        page_size: int = DEFAULT_PAGE_SIZE,
        default_contributor: str = DEFAULT_CONTRIBUTOR,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._storage = storage
        self._issuer = issuer
        self._ordering = ordering
        self._max_items = max_items
        self._page_size = page_size
        self._default_contributor = default_contributor
        self._rng = rng or random.Random()

    async def build_gallery(self) -> list[GalleryItem]:
        """
        Sample the bucket and project each pick into a GalleryItem.

        The returned order is the sampled order; concurrent signing does
        not reorder it.

        Raises:
            StorageUnavailable: if enumeration or any signing call fails
        """
        objects = await enumerate_bucket(self._storage, self._page_size)
        selected = sample_gallery(objects, self._ordering, self._max_items, self._rng)

        items = await self._project_all(selected)

        logger.info(
            "Built gallery",
            extra={
                "listed": len(objects),
                "selected": len(items),
                "ordering": self._ordering.value,
            }
        )

        return list(items)

    async def _project_all(self, selected: list[StorageObject]) -> list[GalleryItem]:
        """Sign every pick concurrently; on the first failure cancel the rest."""
        tasks = [asyncio.ensure_future(self._project(obj)) for obj in selected]
        try:
            return await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            # Collect the cancelled tasks so none are left unretrieved
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _project(self, obj: StorageObject) -> GalleryItem:
        credential = await self._issuer.issue_download(obj.key)
        contributor, filename = split_key(obj.key, self._default_contributor)

        return GalleryItem(
            key=obj.key,
            read_url=credential.url,
            filename=filename,
            contributor=contributor,
            size_bytes=obj.size_bytes,
            last_modified=obj.last_modified,
            is_video=is_video(obj.key),
            is_heic=is_heic(obj.key),
        )
