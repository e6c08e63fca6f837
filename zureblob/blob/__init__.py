"""
Blob Storage client package.

Author: zureblob Team
Date: 2026-10-18
"""

from .access import ContainerAccessCache
from .client import BlobStorageClient
from .listing import (
    BlobPager,
    DirectoryAttributes,
    FileAttributes,
    VirtualHierarchyLister,
    list_contents,
)
from .models import BlobItem, BlobProperties, ListingPage, PublicAccessLevel

__all__ = [
    "BlobStorageClient",
    "BlobPager",
    "VirtualHierarchyLister",
    "ContainerAccessCache",
    "FileAttributes",
    "DirectoryAttributes",
    "list_contents",
    "BlobItem",
    "BlobProperties",
    "ListingPage",
    "PublicAccessLevel",
]
