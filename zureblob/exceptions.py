"""
Exceptions for zureblob.

Configuration errors are raised synchronously when a client is built.
Everything that comes back from the remote service is a StorageError;
BlobNotFoundError is the distinct not-found case callers branch on.
Transport failures are raised by httpx and are not wrapped here.

Author: zureblob Team
Date: 2026-10-18
"""

import logging
from typing import Mapping, Optional
from xml.etree import ElementTree as ET

logger = logging.getLogger(__name__)


class ZureBlobError(Exception):
    """Base exception for all zureblob errors."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class InvalidConfigurationError(ZureBlobError, ValueError):
    """Raised when credentials or the container identifier are missing or malformed."""

    def __init__(self, message: str):
        super().__init__(message, "InvalidConfiguration")

    @classmethod
    def missing_account_name(cls) -> "InvalidConfigurationError":
        return cls("Azure Storage account name is required.")

    @classmethod
    def missing_account_key(cls) -> "InvalidConfigurationError":
        return cls("Azure Storage account key is required.")

    @classmethod
    def missing_container(cls) -> "InvalidConfigurationError":
        return cls("Azure Storage container name is required.")

    @classmethod
    def invalid_account_key(cls) -> "InvalidConfigurationError":
        return cls("Azure Storage account key must be base64-encoded.")


class StorageError(ZureBlobError):
    """Raised when the storage service answers with a non-success status."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, error_code)
        self.status_code = status_code

    def __str__(self) -> str:
        if self.error_code and self.status_code:
            return f"{self.message} (code={self.error_code}, status={self.status_code})"
        if self.status_code:
            return f"{self.message} (status={self.status_code})"
        return self.message

    @classmethod
    def from_response(
        cls,
        body: str,
        status_code: int,
        headers: Optional[Mapping[str, str]] = None,
    ) -> "StorageError":
        """
        Build an error from a failed response.

        XML bodies contribute Error/Code and Error/Message. Anything else
        (proxies, load balancers, empty HEAD bodies) keeps the raw body as
        the message. The x-ms-error-code header fills in a missing code.

        Args:
            body: Response body as text
            status_code: HTTP status code
            headers: Response headers

        Returns:
            StorageError instance
        """
        error_code, message = parse_error_body(body)

        if error_code is None and headers is not None:
            error_code = headers.get("x-ms-error-code") or None

        return cls(message, error_code, status_code)


class BlobNotFoundError(StorageError):
    """Raised when a blob does not exist."""

    @classmethod
    def for_path(cls, path: str) -> "BlobNotFoundError":
        return cls(f"Blob not found: {path}", "BlobNotFound", 404)


class UnableToWriteBlob(StorageError):
    """Raised when a put or copy fails at the destination."""

    def __init__(self, message: str, path: str, status_code: Optional[int] = None):
        super().__init__(message, "UnableToWriteBlob", status_code)
        self.path = path

    @classmethod
    def at_location(
        cls, path: str, reason: str = "", status_code: Optional[int] = None
    ) -> "UnableToWriteBlob":
        return cls(f"Unable to write blob at location: {path}. {reason}".rstrip(), path, status_code)


class UnableToReadBlob(StorageError):
    """Raised when a blob cannot be read for a reason other than absence."""

    def __init__(self, message: str, path: str, status_code: Optional[int] = None):
        super().__init__(message, "UnableToReadBlob", status_code)
        self.path = path

    @classmethod
    def from_location(
        cls, path: str, reason: str = "", status_code: Optional[int] = None
    ) -> "UnableToReadBlob":
        return cls(f"Unable to read blob from location: {path}. {reason}".rstrip(), path, status_code)


class UnableToDeleteBlob(StorageError):
    """Raised when a delete fails with anything other than 404."""

    def __init__(self, message: str, path: str, status_code: Optional[int] = None):
        super().__init__(message, "UnableToDeleteBlob", status_code)
        self.path = path

    @classmethod
    def at_location(
        cls, path: str, reason: str = "", status_code: Optional[int] = None
    ) -> "UnableToDeleteBlob":
        return cls(f"Unable to delete blob at location: {path}. {reason}".rstrip(), path, status_code)


class UnableToSetVisibility(StorageError):
    """Raised when visibility changes are disabled or rejected."""

    def __init__(self, message: str, path: str, status_code: Optional[int] = None):
        super().__init__(message, "UnableToSetVisibility", status_code)
        self.path = path

    @classmethod
    def for_path(
        cls, path: str, reason: str = "", status_code: Optional[int] = None
    ) -> "UnableToSetVisibility":
        return cls(f"Unable to set visibility for file {path}. {reason}".rstrip(), path, status_code)


def parse_error_body(body: str) -> tuple[Optional[str], str]:
    """
    Extract (code, message) from an Azure Storage error document.

    Returns (None, body) when the body is not an XML error document.
    """
    stripped = body.lstrip("\ufeff").strip()
    if not stripped.startswith("<"):
        return None, body

    try:
        root = ET.fromstring(stripped.encode("utf-8"))
    except ET.ParseError:
        logger.debug("Error body looked like XML but did not parse")
        return None, body

    code = root.findtext("Code")
    message = root.findtext("Message")
    return (code or None), (message if message is not None else body)
