"""
Inline multipart/form-data decoder.

Used by push ingestion, where the upload body arrives as raw bytes rather
than through a framework form parser. The decoder works directly on the
byte buffer:

1. Every occurrence of `--<boundary>` is located. Each consecutive pair
   of occurrences delimits one part.
2. Inside a part, the first CRLF CRLF separates headers from body. The
   CRLF the encoding inserts before the next boundary is stripped.
3. A `filename="..."` attribute makes the part a file; otherwise its
   `name="..."` attribute makes it a form field.

The decoder is lenient. Parts with no header/body separator and parts
with no name are skipped, and a payload cut off after its last boundary
yields whatever parts were fully delimited before the cut.
"""

import logging
import re
from typing import Optional

from ..errors import ValidationError
from ..models import DEFAULT_CONTENT_TYPE, FilePart, FormField, ParsedPayload
from .keys import DEFAULT_CONTRIBUTOR

logger = logging.getLogger(__name__)

CRLF = b"\r\n"
HEADER_SEPARATOR = b"\r\n\r\n"
CONTRIBUTOR_FIELD = "contributor"

_FILENAME_ATTR = re.compile(r'filename="([^"]*)"', re.IGNORECASE)
_NAME_ATTR = re.compile(r'\bname="([^"]*)"', re.IGNORECASE)
_CONTENT_TYPE_HEADER = re.compile(r"^Content-Type:\s*([^\r\n]+)", re.IGNORECASE | re.MULTILINE)
_BOUNDARY_PARAM = re.compile(r'boundary=(?:"([^"]+)"|([^\s;]+))', re.IGNORECASE)


def extract_boundary(content_type: Optional[str]) -> str:
    """
    Pull the boundary token out of a Content-Type header value.

    Raises:
        ValidationError: if the header is not multipart or has no boundary
    """
    if not content_type or not content_type.lower().startswith("multipart/"):
        raise ValidationError("Content-Type must be multipart/form-data")

    match = _BOUNDARY_PARAM.search(content_type)
    if not match:
        raise ValidationError("Multipart Content-Type is missing a boundary")

    return match.group(1) or match.group(2)


def _delimiter_offsets(body: bytes, delimiter: bytes) -> list[int]:
    """Start offsets of every delimiter occurrence, in order."""
    offsets = []
    position = body.find(delimiter)
    while position != -1:
        offsets.append(position)
        position = body.find(delimiter, position + len(delimiter))
    return offsets


def split_segments(body: bytes, boundary: str) -> list[bytes]:
    """Raw segments between consecutive boundary occurrences."""
    delimiter = b"--" + boundary.encode("latin-1")
    offsets = _delimiter_offsets(body, delimiter)

    segments = []
    for start, end in zip(offsets, offsets[1:]):
        segments.append(body[start + len(delimiter):end])

    if len(offsets) < 2:
        logger.debug(
            "Multipart body has no complete part",
            extra={"boundary_count": len(offsets)}
        )

    return segments


def parse_multipart(
    body: bytes,
    boundary: str,
    default_contributor: str = DEFAULT_CONTRIBUTOR,
) -> ParsedPayload:
    """
    Decode a multipart body into files, fields and the contributor name.

    Args:
        body: Raw request body
        boundary: Boundary token from the Content-Type header
        default_contributor: Used unless a non-blank `contributor` field is present

    Returns:
        ParsedPayload with files and fields in payload order
    """
    files: list[FilePart] = []
    fields: list[FormField] = []
    contributor = default_contributor

    for segment in split_segments(body, boundary):
        separator = segment.find(HEADER_SEPARATOR)
        if separator == -1:
            continue

        headers = segment[:separator].decode("utf-8", errors="replace")
        content = segment[separator + len(HEADER_SEPARATOR):]
        if content.endswith(CRLF):
            content = content[:-len(CRLF)]

        name_match = _NAME_ATTR.search(headers)
        filename_match = _FILENAME_ATTR.search(headers)

        if filename_match:
            type_match = _CONTENT_TYPE_HEADER.search(headers)
            files.append(FilePart(
                field_name=name_match.group(1) if name_match else None,
                filename=filename_match.group(1),
                mime_type=type_match.group(1).strip() if type_match else DEFAULT_CONTENT_TYPE,
                content=content,
            ))
            continue

        if not name_match:
            continue

        field = FormField(
            name=name_match.group(1),
            value=content.decode("utf-8", errors="replace"),
        )
        fields.append(field)

        if field.name == CONTRIBUTOR_FIELD and field.value.strip():
            contributor = field.value.strip()

    return ParsedPayload(files=files, fields=fields, contributor=contributor)
