"""
Container access level cache.

Public access is a container-wide property that rarely changes, so the
level is read once and reused for every per-blob visibility query.
The cache is only updated by a local set(); changes made by other
clients are not observed.

Thread safety: none. The cell is plain mutable state. Whoever shares an
instance across threads must serialize get()/set() (e.g. with a lock).
"""

import logging
from typing import TYPE_CHECKING, Optional

from zureblob.blob.models import PublicAccessLevel

if TYPE_CHECKING:
    from zureblob.blob.client import BlobStorageClient

logger = logging.getLogger(__name__)


class ContainerAccessCache:
    """Single-entry cache of one container's public access level."""

    def __init__(self, client: "BlobStorageClient"):
        self.client = client
        self._level: Optional[PublicAccessLevel] = None

    @property
    def is_known(self) -> bool:
        return self._level is not None

    def get(self) -> PublicAccessLevel:
        """Return the cached level, fetching it on first use."""
        if self._level is None:
            self._level = self.client.get_container_access()
            logger.debug(
                f"Cached access level '{self._level.value}' for container {self.client.container}"
            )
        return self._level

    def set(self, level: PublicAccessLevel) -> None:
        """Apply a new level remotely, then cache it without re-reading."""
        level = PublicAccessLevel(level)
        self.client.set_container_access(level)
        self._level = level

    def invalidate(self) -> None:
        self._level = None
