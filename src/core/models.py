"""
Domain models for uploads and the gallery.

These are plain dataclasses with no knowledge of HTTP or boto3. Object keys
are the only persisted metadata, so most of these types are transient
projections built per request.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union


DEFAULT_CONTENT_TYPE = "application/octet-stream"


class ObjectPresence(Enum):
    """Outcome of a metadata probe against the object store."""
    EXISTS = "exists"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ByHash:
    """Deduplicating addressing: identical content maps to the same key."""
    content_hash: str


@dataclass(frozen=True)
class ByTimestamp:
    """Non-deduplicating addressing keyed on the upload second."""
    at: datetime


# Resolved once when a key is requested, never re-inspected downstream
Addressing = Union[ByHash, ByTimestamp]


@dataclass(frozen=True)
class UploadRequest:
    """A request for a write credential. Only its derived key is ever stored."""
    filename: Optional[str]
    declared_content_type: Optional[str] = None
    declared_size: Optional[int] = None
    content_hash: Optional[str] = None
    contributor: Optional[str] = None

    def __post_init__(self) -> None:
        if self.declared_size is not None and self.declared_size < 0:
            raise ValueError("Declared size cannot be negative")


@dataclass(frozen=True)
class Credential:
    """A time-limited signed URL bound to one object key."""
    url: str
    object_key: str
    expires_in: int


@dataclass(frozen=True)
class UploadTicket:
    """
    Result of upload coordination.

    Either a credential for the client to PUT against, or a skip marker
    when hash addressing found the content already stored.
    """
    object_key: str
    credential: Optional[Credential] = None
    skipped: bool = False
    message: str = ""


@dataclass(frozen=True)
class StorageObject:
    """An object as reported by a bucket listing."""
    key: str
    size_bytes: int = 0
    last_modified: Optional[datetime] = None
    content_type: Optional[str] = None


@dataclass(frozen=True)
class ObjectPage:
    """One page of a bucket listing plus the marker for the next page."""
    objects: list[StorageObject] = field(default_factory=list)
    next_token: Optional[str] = None


@dataclass(frozen=True)
class FormField:
    """A plain (non-file) multipart field."""
    name: str
    value: str


@dataclass(frozen=True)
class FilePart:
    """A file carried in a multipart payload."""
    field_name: Optional[str]
    filename: str
    mime_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class ParsedPayload:
    """Decoded multipart body: files and fields in payload order."""
    files: list[FilePart]
    fields: list[FormField]
    contributor: str


@dataclass(frozen=True)
class StoredFile:
    """One file written during push ingestion."""
    filename: str
    object_key: str
    size: int


@dataclass(frozen=True)
class GalleryItem:
    """
    Read-only projection of a stored media object for display.

    Rebuilt on every gallery request; read URLs expire, so nothing is cached.
    """
    key: str
    read_url: str
    filename: str
    contributor: str
    size_bytes: int
    last_modified: Optional[datetime]
    is_video: bool
    is_heic: bool
