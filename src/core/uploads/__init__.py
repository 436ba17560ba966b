"""
Upload coordination: key resolution, inline multipart decoding and the
credential/push flows built on them.
"""

from .coordinator import UploadCoordinator
from .keys import (
    DEFAULT_CONTRIBUTOR,
    choose_addressing,
    contributor_namespace,
    format_timestamp,
    resolve_object_key,
    safe_filename,
)
from .multipart import extract_boundary, parse_multipart

__all__ = [
    "DEFAULT_CONTRIBUTOR",
    "UploadCoordinator",
    "choose_addressing",
    "contributor_namespace",
    "extract_boundary",
    "format_timestamp",
    "parse_multipart",
    "resolve_object_key",
    "safe_filename",
]
