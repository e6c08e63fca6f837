"""
Blob enumeration: paging and virtual directories.

The Blob service has a flat key space. BlobPager walks it one List Blobs
call per page; VirtualHierarchyLister folds the flat keys into file and
directory entries the way a filesystem listing would show them.

Author: zureblob Team
Date: 2026-10-18
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Iterable, Iterator, Optional, Set, Union

from zureblob.blob.models import BlobItem, ListingPage

if TYPE_CHECKING:
    from zureblob.blob.client import BlobStorageClient

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 5000


@dataclass(frozen=True)
class FileAttributes:
    """A blob as seen by a filesystem listing."""

    path: str
    file_size: Optional[int] = None
    visibility: Optional[str] = None
    last_modified: Optional[datetime] = None
    mime_type: Optional[str] = None

    is_file = True
    is_dir = False


@dataclass(frozen=True)
class DirectoryAttributes:
    """A virtual directory derived from key prefixes."""

    path: str

    is_file = False
    is_dir = True


StorageAttributes = Union[FileAttributes, DirectoryAttributes]


def normalize_prefix(path: str) -> str:
    """Turn a directory path into a listing prefix ("" stays "", "a" becomes "a/")."""
    path = path.strip("/")
    return f"{path}/" if path else ""


class BlobPager:
    """
    Lazy, restartable cursor over List Blobs pages.

    Each step of pages() issues exactly one request. Iterating again
    starts over from the initial marker; dropping the iterator stops
    further requests.
    """

    def __init__(
        self,
        client: "BlobStorageClient",
        prefix: str = "",
        page_size: int = DEFAULT_PAGE_SIZE,
        marker: Optional[str] = None,
    ):
        if page_size < 1:
            raise ValueError("page_size must be at least 1")

        self.client = client
        self.prefix = prefix
        self.page_size = page_size
        self.marker = marker

    def pages(self) -> Iterator[ListingPage]:
        """Yield pages until the service stops returning a marker."""
        marker = self.marker
        page_count = 0

        while True:
            page = self.client.list_blobs(self.prefix, self.page_size, marker)
            page_count += 1
            yield page

            if page.next_marker is None:
                break
            marker = page.next_marker

        logger.debug(f"Enumerated prefix '{self.prefix}' in {page_count} page(s)")

    def __iter__(self) -> Iterator[BlobItem]:
        for page in self.pages():
            yield from page.blobs


class VirtualHierarchyLister:
    """
    Folds flat blob keys into file and directory entries.

    In shallow mode a key whose remainder after the prefix still contains
    a slash collapses to one directory entry for its first segment. The
    seen-set lives on the instance, so one lister must be used for every
    page of a single listing and never shared between listings.
    """

    def __init__(self, prefix: str = "", deep: bool = False):
        self.prefix = prefix
        self.deep = deep
        self._seen_directories: Set[str] = set()

    def fold(self, blobs: Iterable[BlobItem]) -> Iterator[StorageAttributes]:
        """Yield entries in the order the service returned the blobs."""
        for blob in blobs:
            if not self.deep:
                directory = self._directory_for(blob.name)
                if directory is not None:
                    if directory not in self._seen_directories:
                        self._seen_directories.add(directory)
                        yield DirectoryAttributes(directory)
                    continue

            yield FileAttributes(
                path=blob.name,
                file_size=blob.size,
                last_modified=blob.last_modified,
                mime_type=blob.content_type,
            )

    def _directory_for(self, name: str) -> Optional[str]:
        """Directory one level below the prefix that holds name, if any."""
        relative = name[len(self.prefix):] if name.startswith(self.prefix) else name
        slash = relative.find("/")
        if slash == -1:
            return None
        return self.prefix + relative[:slash]


def list_contents(
    client: "BlobStorageClient",
    path: str = "",
    deep: bool = False,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> Iterator[StorageAttributes]:
    """
    List files and virtual directories under path.

    Args:
        client: Blob client to enumerate with
        path: Directory path ("" for the container root)
        deep: List every blob instead of one level
        page_size: Blobs requested per page

    Yields:
        FileAttributes and DirectoryAttributes
    """
    prefix = normalize_prefix(path)
    lister = VirtualHierarchyLister(prefix, deep)
    for page in BlobPager(client, prefix, page_size).pages():
        yield from lister.fold(page.blobs)
