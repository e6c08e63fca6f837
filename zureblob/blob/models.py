"""
Blob Storage Models

Pydantic models for blob properties, listing pages, and container access levels
as returned by the Blob service REST interface.

Author: zureblob Team
Date: 2026-10-18
"""

import logging
from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from enum import Enum
from typing import List, Mapping, Optional
from xml.etree import ElementTree as ET

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def format_http_date(value: datetime) -> str:
    """Format a datetime as an RFC 1123 GMT timestamp, independent of the process locale."""
    return format_datetime(value.astimezone(timezone.utc), usegmt=True)


def parse_http_date(value: Optional[str]) -> datetime:
    """
    Parse an RFC 1123 timestamp.

    Missing or unparseable values fall back to the current time.
    """
    if not value:
        return datetime.now(timezone.utc)
    try:
        parsed = parsedate_to_datetime(value.strip())
    except (TypeError, ValueError):
        logger.warning(f"Invalid date format: {value}")
        return datetime.now(timezone.utc)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class PublicAccessLevel(str, Enum):
    """Container public access levels."""
    PRIVATE = "private"
    BLOB = "blob"
    CONTAINER = "container"

    @classmethod
    def from_header(cls, value: Optional[str]) -> "PublicAccessLevel":
        """
        Map the x-ms-blob-public-access header to a level.

        The header is absent (or empty) for private containers.
        """
        if not value:
            return cls.PRIVATE
        try:
            return cls(value.strip().lower())
        except ValueError:
            logger.warning(f"Unknown public access level '{value}', treating as private")
            return cls.PRIVATE

    @property
    def is_public(self) -> bool:
        return self is not PublicAccessLevel.PRIVATE


class BlobProperties(BaseModel):
    """
    Blob properties from a Get Blob Properties (HEAD) call.
    """

    content_length: int = Field(default=0, ge=0, description="Blob size in bytes")
    content_type: str = Field(default=DEFAULT_CONTENT_TYPE)
    last_modified: datetime = Field(description="Last modified timestamp")
    etag: str = Field(default="", description="Entity tag for the blob")

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "BlobProperties":
        """Build properties from response headers."""
        return cls(
            content_length=int(headers.get("content-length") or 0),
            content_type=headers.get("content-type") or DEFAULT_CONTENT_TYPE,
            last_modified=parse_http_date(headers.get("last-modified")),
            etag=headers.get("etag") or "",
        )


class BlobItem(BaseModel):
    """One entry of a List Blobs page."""

    name: str = Field(description="Blob name (full key)")
    size: int = Field(default=0, ge=0)
    last_modified: datetime
    content_type: str = Field(default=DEFAULT_CONTENT_TYPE)

    @field_validator("content_type")
    @classmethod
    def default_content_type(cls, v: str) -> str:
        """Empty content types read as the default."""
        return v or DEFAULT_CONTENT_TYPE


class ListingPage(BaseModel):
    """
    A page of List Blobs results.

    next_marker is None exactly when no further pages exist.
    """

    blobs: List[BlobItem] = Field(default_factory=list)
    next_marker: Optional[str] = None

    @classmethod
    def from_xml(cls, body: str) -> "ListingPage":
        """
        Parse an EnumerationResults document.

        Args:
            body: XML response body

        Returns:
            ListingPage (empty when the body does not parse)
        """
        try:
            root = ET.fromstring(body.lstrip("\ufeff").strip().encode("utf-8"))
        except ET.ParseError:
            logger.warning("List Blobs response is not valid XML, returning empty page")
            return cls()

        next_marker = root.findtext("NextMarker") or None

        blobs = []
        for blob in root.iterfind("Blobs/Blob"):
            blobs.append(
                BlobItem(
                    name=blob.findtext("Name", default=""),
                    size=int(blob.findtext("Properties/Content-Length") or 0),
                    last_modified=parse_http_date(blob.findtext("Properties/Last-Modified")),
                    content_type=blob.findtext("Properties/Content-Type") or DEFAULT_CONTENT_TYPE,
                )
            )

        return cls(blobs=blobs, next_marker=next_marker)
