"""
Gallery selection: which stored objects are shown, and in what order.

Filtering keeps media files and drops bookkeeping objects. Ordering is one
of two exclusive policies; shuffled is the default, newest-first is kept
for deployments that want a chronological wall. Randomness is injected so
tests can pin the exact order.
"""

import random
from enum import Enum
from typing import Optional, Sequence, TypeVar

from ..models import StorageObject

T = TypeVar("T")

DEFAULT_MAX_ITEMS = 50

MEDIA_EXTENSIONS = (
    ".jpg", ".jpeg", ".png", ".gif", ".webp",
    ".heic", ".heif",
    ".mp4", ".mov", ".webm",
)
VIDEO_EXTENSIONS = (".mp4", ".mov", ".webm")
HEIC_EXTENSIONS = (".heic", ".heif")
RESERVED_PREFIX = "_"
RESERVED_MARKER = "manifest"


class GalleryOrdering(Enum):
    """How the filtered listing is ordered before truncation."""
    SHUFFLED = "shuffled"
    NEWEST_FIRST = "newest_first"


def is_gallery_media(key: str) -> bool:
    """True for media keys that are not reserved bookkeeping objects."""
    lowered = key.lower()
    if lowered.startswith(RESERVED_PREFIX) or RESERVED_MARKER in lowered:
        return False
    return lowered.endswith(MEDIA_EXTENSIONS)


def filter_media(objects: Sequence[StorageObject]) -> list[StorageObject]:
    return [obj for obj in objects if is_gallery_media(obj.key)]


def fisher_yates_shuffle(items: Sequence[T], rng: random.Random) -> list[T]:
    """
    Return a uniformly shuffled copy of items.

    Walks from the end, swapping each slot with a random slot at or
    before it.
    """
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randrange(i + 1)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def newest_first(objects: Sequence[StorageObject]) -> list[StorageObject]:
    """Sort by modification time, most recent first. Undated objects go last."""
    dated = [obj for obj in objects if obj.last_modified is not None]
    undated = [obj for obj in objects if obj.last_modified is None]
    dated.sort(key=lambda obj: obj.last_modified, reverse=True)
    return dated + undated


def sample_gallery(
    objects: Sequence[StorageObject],
    ordering: GalleryOrdering = GalleryOrdering.SHUFFLED,
    max_items: int = DEFAULT_MAX_ITEMS,
    rng: Optional[random.Random] = None,
) -> list[StorageObject]:
    """Filter, order and truncate a bucket listing for display."""
    media = filter_media(objects)

    if ordering is GalleryOrdering.NEWEST_FIRST:
        ordered = newest_first(media)
    else:
        ordered = fisher_yates_shuffle(media, rng or random.Random())

    return ordered[:max(max_items, 0)]


def split_key(key: str, default_contributor: str) -> tuple[str, str]:
    """
    Recover (contributor, filename) from an object key.

    `Jane_Doe_UPLOADS/2024-05-01T12-30-45_a.jpg` gives
    `("Jane Doe", "2024-05-01T12-30-45_a.jpg")`. Keys outside any
    contributor folder are credited to the default contributor.
    """
    namespace, separator, _ = key.partition("/")
    filename = key.rsplit("/", 1)[-1]

    if not separator:
        namespace = default_contributor
    if namespace.endswith("_UPLOADS"):
        namespace = namespace[:-len("_UPLOADS")]

    return namespace.replace("_", " "), filename


def is_video(key: str) -> bool:
    return key.lower().endswith(VIDEO_EXTENSIONS)


def is_heic(key: str) -> bool:
    return key.lower().endswith(HEIC_EXTENSIONS)
