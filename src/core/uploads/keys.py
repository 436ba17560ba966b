"""
Storage key resolution.

Keys are the only metadata the system keeps, so their shape matters:

    <Contributor>_UPLOADS/<discriminator>_<safe filename>

The discriminator is the content hash when the client supplied one (so
re-uploading the same file lands on the same key) or the upload second
otherwise. Everything here is pure; the clock is passed in.
"""

import re
from datetime import datetime, timezone
from typing import Optional

from ..errors import ValidationError
from ..models import Addressing, ByHash, ByTimestamp

DEFAULT_CONTRIBUTOR = "Memorial_Guest"
NAMESPACE_SUFFIX = "_UPLOADS"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_UNSAFE_CONTRIBUTOR_CHARS = re.compile(r"[^A-Za-z0-9]")
_CONTENT_HASH = re.compile(r"[A-Za-z0-9._-]+")


def safe_filename(filename: str) -> str:
    """Replace every character outside [A-Za-z0-9._-] with an underscore."""
    return _UNSAFE_FILENAME_CHARS.sub("_", filename)


def contributor_namespace(contributor: Optional[str] = None) -> str:
    """
    Build the top-level folder for a contributor.

    An empty or missing name falls back to the shared guest folder.
    """
    name = contributor or DEFAULT_CONTRIBUTOR
    return f"{_UNSAFE_CONTRIBUTOR_CHARS.sub('_', name)}{NAMESPACE_SUFFIX}"


def format_timestamp(at: datetime) -> str:
    """
    Second-precision ISO timestamp that is safe in keys and URLs.

    `2024-05-01T12:30:45.123Z` becomes `2024-05-01T12-30-45`.
    """
    if at.tzinfo is not None:
        at = at.astimezone(timezone.utc)
    iso = at.isoformat(timespec="milliseconds")
    return re.sub(r"[:.]", "-", iso)[:19]


def choose_addressing(content_hash: Optional[str], now: datetime) -> Addressing:
    """Pick hash addressing when a hash was supplied, timestamp otherwise."""
    if content_hash:
        return ByHash(content_hash)
    return ByTimestamp(now)


def resolve_object_key(
    filename: Optional[str],
    addressing: Addressing,
    contributor: Optional[str] = None,
) -> str:
    """
    Derive the object key for a file.

    Raises:
        ValidationError: if filename is empty or missing, or the content
            hash has characters outside [A-Za-z0-9._-]
    """
    if not filename:
        raise ValidationError("Filename is required")

    if isinstance(addressing, ByHash):
        if not _CONTENT_HASH.fullmatch(addressing.content_hash):
            raise ValidationError('File hash may only contain letters, digits, ".", "_" and "-"')
        discriminator = addressing.content_hash
    else:
        discriminator = format_timestamp(addressing.at)

    return f"{contributor_namespace(contributor)}/{discriminator}_{safe_filename(filename)}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
