"""
Filesystem-style adapter over a single container.

Maps file operations (exists, read, write, list, visibility, temporary
URLs) onto BlobStorageClient calls. Directories are virtual: creating
one is a no-op and deleting one deletes every blob under its prefix.

Author: zureblob Team
Date: 2026-10-18
"""

import io
import logging
import mimetypes
from datetime import datetime, timedelta, timezone
from typing import BinaryIO, Iterator, Optional, Union

import httpx

from zureblob.auth.sas import SasTokenGenerator
from zureblob.blob.access import ContainerAccessCache
from zureblob.blob.client import BlobStorageClient
from zureblob.blob.listing import (
    BlobPager,
    FileAttributes,
    StorageAttributes,
    list_contents,
    normalize_prefix,
)
from zureblob.blob.models import DEFAULT_CONTENT_TYPE, PublicAccessLevel
from zureblob.core.config_manager import StorageConfig, Visibility
from zureblob.core.logging_config import log_with_context
from zureblob.exceptions import BlobNotFoundError, StorageError, UnableToSetVisibility

logger = logging.getLogger(__name__)

DELETE_PAGE_SIZE = 1000


def guess_mime_type(path: str) -> str:
    """Guess a content type from the file extension."""
    guessed, _ = mimetypes.guess_type(path)
    return guessed or DEFAULT_CONTENT_TYPE


class BlobFilesystem:
    """
    Filesystem adapter for one container.

    Visibility is a container-wide setting, cached by a
    ContainerAccessCache owned by this adapter. The adapter is not
    thread-safe; share it across threads only behind a lock.
    """

    def __init__(
        self,
        client: BlobStorageClient,
        public_url: str = "",
        default_visibility: Union[Visibility, str] = Visibility.PRIVATE,
        allow_set_visibility: bool = False,
        sas_generator: Optional[SasTokenGenerator] = None,
        sas_permissions: str = "r",
        sas_expiry: int = 3600,
    ):
        self.client = client
        self.public_url = public_url or ""
        self.default_visibility = Visibility(default_visibility)
        self.allow_set_visibility = allow_set_visibility
        self.sas_generator = sas_generator or SasTokenGenerator(
            client.credentials,
            api_version=client.api_version,
            endpoint_suffix=client.endpoint_suffix,
        )
        self.sas_permissions = sas_permissions
        self.sas_expiry = sas_expiry
        self.access_cache = ContainerAccessCache(client)

    @classmethod
    def from_config(
        cls, config: StorageConfig, http_client: Optional[httpx.Client] = None
    ) -> "BlobFilesystem":
        """Build client, SAS generator and adapter from one configuration."""
        client = BlobStorageClient.from_config(config, http_client=http_client)
        return cls(
            client,
            public_url=config.url or "",
            default_visibility=config.visibility.default,
            allow_set_visibility=config.visibility.allow_set,
            sas_permissions=config.sas.default_permissions,
            sas_expiry=config.sas.default_expiry,
        )

    # ------------------------------------------------------------------
    # Existence
    # ------------------------------------------------------------------

    def file_exists(self, path: str) -> bool:
        return self.client.blob_exists(path)

    def directory_exists(self, path: str) -> bool:
        """A directory exists when at least one blob lives under it."""
        page = self.client.list_blobs(normalize_prefix(path), 1)
        return bool(page.blobs)

    # ------------------------------------------------------------------
    # Reading and writing
    # ------------------------------------------------------------------

    def write(
        self,
        path: str,
        contents: Union[bytes, str],
        content_type: Optional[str] = None,
    ) -> None:
        """Write a file; the content type is guessed from the extension when not given."""
        self.client.put_blob(path, contents, content_type or guess_mime_type(path))

    def write_stream(
        self,
        path: str,
        stream: BinaryIO,
        content_type: Optional[str] = None,
    ) -> None:
        self.write(path, stream.read(), content_type)

    def read(self, path: str) -> bytes:
        return self.client.get_blob(path)

    def read_stream(self, path: str) -> BinaryIO:
        return io.BytesIO(self.read(path))

    def delete(self, path: str) -> None:
        self.client.delete_blob(path)

    def delete_directory(self, path: str) -> int:
        """
        Delete every blob under path.

        Each blob is its own DELETE request; nothing is batched or
        transactional, so a failure leaves earlier deletions in place.
        The listing is paged in full before deleting so that removals do
        not shift the continuation markers.

        Returns:
            Number of blobs deleted
        """
        prefix = normalize_prefix(path)
        if not prefix:
            raise ValueError("Refusing to delete the container root")

        names = [blob.name for blob in BlobPager(self.client, prefix, DELETE_PAGE_SIZE)]

        deleted = 0
        for name in names:
            if self.client.delete_blob(name):
                deleted += 1

        log_with_context(
            logger, logging.INFO, "Deleted virtual directory",
            prefix=prefix, listed=len(names), deleted=deleted,
        )
        return deleted

    def create_directory(self, path: str) -> None:
        """Directories are virtual; nothing to create."""

    def move(self, source: str, destination: str) -> None:
        self.copy(source, destination)
        self.delete(source)

    def copy(self, source: str, destination: str) -> None:
        self.client.copy_blob(source, destination)

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def visibility(self, path: str) -> FileAttributes:
        """
        Visibility of a file, which is that of its container.

        Falls back to the configured default when the access level cannot
        be read (e.g. the key lacks permission to read the ACL).
        """
        try:
            level = self.access_cache.get()
        except StorageError as exc:
            logger.warning(
                f"Could not read access level for container {self.client.container}, "
                f"using default '{self.default_visibility.value}': {exc}"
            )
            return FileAttributes(path, visibility=self.default_visibility.value)

        visibility = Visibility.PUBLIC if level.is_public else Visibility.PRIVATE
        return FileAttributes(path, visibility=visibility.value)

    def set_visibility(self, path: str, visibility: Union[Visibility, str]) -> None:
        """
        Change the container's access level.

        Public maps to blob-level public access; private removes public access.

        Raises:
            UnableToSetVisibility: If disabled by configuration or rejected remotely
        """
        if not self.allow_set_visibility:
            raise UnableToSetVisibility.for_path(
                path, "Azure visibility is container-wide and changing it is disabled."
            )

        level = (
            PublicAccessLevel.BLOB
            if Visibility(visibility) is Visibility.PUBLIC
            else PublicAccessLevel.PRIVATE
        )
        try:
            self.access_cache.set(level)
        except StorageError as exc:
            raise UnableToSetVisibility.for_path(path, exc.message, exc.status_code) from exc

    def mime_type(self, path: str) -> FileAttributes:
        """Content type from the service, guessed from the name if the blob is missing."""
        try:
            properties = self.client.get_blob_properties(path)
        except BlobNotFoundError:
            return FileAttributes(path, mime_type=guess_mime_type(path))
        return FileAttributes(path, mime_type=properties.content_type)

    def last_modified(self, path: str) -> FileAttributes:
        try:
            properties = self.client.get_blob_properties(path)
        except BlobNotFoundError:
            return FileAttributes(path)
        return FileAttributes(path, last_modified=properties.last_modified)

    def file_size(self, path: str) -> FileAttributes:
        try:
            properties = self.client.get_blob_properties(path)
        except BlobNotFoundError:
            return FileAttributes(path)
        return FileAttributes(path, file_size=properties.content_length)

    def list_contents(self, path: str = "", deep: bool = False) -> Iterator[StorageAttributes]:
        return list_contents(self.client, path, deep)

    # ------------------------------------------------------------------
    # URLs
    # ------------------------------------------------------------------

    def get_url(self, path: str) -> str:
        """Public URL, using the custom base URL when one is configured."""
        path = path.lstrip("/")
        if self.public_url:
            return f"{self.public_url.rstrip('/')}/{path}"
        return self.client.get_blob_url(path)

    def temporary_url(
        self,
        path: str,
        expiration: Optional[datetime] = None,
        permissions: Optional[str] = None,
    ) -> str:
        """Signed URL granting time-limited access to one blob."""
        if expiration is None:
            expiration = datetime.now(timezone.utc) + timedelta(seconds=self.sas_expiry)

        return self.sas_generator.generate_signed_url(
            self.client.container,
            path,
            expiration,
            permissions or self.sas_permissions,
        )
