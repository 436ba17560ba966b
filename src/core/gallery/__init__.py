"""
Gallery materialization: bucket enumeration, sampling and read-URL fan-out.
"""

from .enumerator import enumerate_bucket
from .sampler import GalleryOrdering, fisher_yates_shuffle, sample_gallery
from .service import GalleryService

__all__ = [
    "GalleryOrdering",
    "GalleryService",
    "enumerate_bucket",
    "fisher_yates_shuffle",
    "sample_gallery",
]
