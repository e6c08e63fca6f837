"""
SharedKey request signing for Azure Blob Storage.

Implements the client side of the SharedKey authorization scheme
(version 2015-04-05 and later string-to-sign layout).

Reference: https://docs.microsoft.com/en-us/rest/api/storageservices/authorize-with-shared-key

Author: zureblob Team
Date: 2026-10-18
"""

import base64
import binascii
import hashlib
import hmac
import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Union

from zureblob.exceptions import InvalidConfigurationError

logger = logging.getLogger(__name__)

# Only headers carrying this prefix take part in CanonicalizedHeaders
CUSTOM_HEADER_PREFIX = "x-ms-"


@dataclass(frozen=True)
class SharedKeyCredentials:
    """Account name plus base64-encoded account key."""

    account_name: str
    account_key: str = field(repr=False)  # Base64-encoded
    key_bytes: bytes = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if not self.account_name:
            raise InvalidConfigurationError.missing_account_name()
        if not self.account_key:
            raise InvalidConfigurationError.missing_account_key()

        try:
            key_bytes = base64.b64decode(self.account_key, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidConfigurationError.invalid_account_key() from exc

        object.__setattr__(self, "key_bytes", key_bytes)


class RequestSigner:
    """
    Computes SharedKey signatures for requests against one container.

    Stateless: every call builds its own canonical string, so one signer
    can be shared freely between threads.
    """

    def __init__(self, credentials: SharedKeyCredentials, container: str):
        """
        Initialize request signer.

        Args:
            credentials: Validated account credentials
            container: Container every signed path is relative to
        """
        if not container:
            raise InvalidConfigurationError.missing_container()

        self.credentials = credentials
        self.container = container

    def sign(
        self,
        verb: str,
        path: str = "",
        headers: Optional[Mapping[str, str]] = None,
        content_length: int = 0,
        content_type: str = "",
        query_params: Optional[Mapping[str, Union[str, int]]] = None,
    ) -> str:
        """
        Compute the SharedKey signature for a request.

        Args:
            verb: HTTP method
            path: Blob path relative to the container ("" for container operations)
            headers: Request headers; only x-ms-* headers are signed
            content_length: Body length in bytes
            content_type: Content-Type header value
            query_params: Query parameters (container operations only)

        Returns:
            Base64-encoded signature
        """
        canonicalized_resource = build_canonicalized_resource(
            self.credentials.account_name, self.container, path, query_params
        )
        string_to_sign = build_string_to_sign(
            verb=verb,
            content_length=content_length,
            content_type=content_type,
            headers=headers or {},
            canonicalized_resource=canonicalized_resource,
        )
        return compute_signature(string_to_sign, self.credentials.key_bytes)

    def authorization_header(self, *args, **kwargs) -> str:
        """
        Build the Authorization header value for a request.

        Accepts the same arguments as sign().

        Returns:
            "SharedKey account:signature"
        """
        signature = self.sign(*args, **kwargs)
        return f"SharedKey {self.credentials.account_name}:{signature}"


def build_string_to_sign(
    verb: str,
    content_length: int,
    content_type: str,
    headers: Mapping[str, str],
    canonicalized_resource: str,
) -> str:
    """
    Build the string to sign for a SharedKey request.

    Format:
        VERB\n
        Content-Encoding\n
        Content-Language\n
        Content-Length\n
        Content-MD5\n
        Content-Type\n
        Date\n
        If-Modified-Since\n
        If-Match\n
        If-None-Match\n
        If-Unmodified-Since\n
        Range\n
        CanonicalizedHeaders + CanonicalizedResource

    Positions this client never sends stay empty; the layout is fixed.
    """
    parts = [
        verb.upper(),
        "",  # Content-Encoding
        "",  # Content-Language
        _format_content_length(content_length),
        "",  # Content-MD5
        content_type or "",
        "",  # Date - empty because x-ms-date is sent
        "",  # If-Modified-Since
        "",  # If-Match
        "",  # If-None-Match
        "",  # If-Unmodified-Since
        "",  # Range
        build_canonicalized_headers(headers) + canonicalized_resource,
    ]

    return "\n".join(parts)


def _format_content_length(content_length: Optional[int]) -> str:
    """
    Render Content-Length for the string to sign.

    Zero is an empty field, not "0"; the service applies the same rule.
    """
    if not content_length:
        return ""
    return str(content_length)


def build_canonicalized_headers(headers: Mapping[str, str]) -> str:
    """
    Build CanonicalizedHeaders string.

    Rules:
    1. Include only headers starting with "x-ms-" (case-insensitive)
    2. Lowercase names, trim values
    3. Sort by name
    4. Format: "header-name:value\n" (every line newline-terminated)

    Args:
        headers: Request headers

    Returns:
        Canonicalized headers string
    """
    ms_headers: Dict[str, str] = {}
    for name, value in headers.items():
        lower_name = name.lower()
        if lower_name.startswith(CUSTOM_HEADER_PREFIX):
            ms_headers[lower_name] = str(value).strip()

    return "".join(f"{name}:{value}\n" for name, value in sorted(ms_headers.items()))


def build_canonicalized_resource(
    account_name: str,
    container: str,
    path: str = "",
    query_params: Optional[Mapping[str, Union[str, int]]] = None,
) -> str:
    """
    Build CanonicalizedResource string.

    Format:
        /account/container[/path]
        key1:value1
        key2:value2

    Args:
        account_name: Storage account name
        container: Container name
        path: Blob path, leading slashes ignored
        query_params: Query parameters, appended sorted by key

    Returns:
        Canonicalized resource string
    """
    resource = f"/{account_name}/{container}"

    path = path.lstrip("/")
    if path:
        resource += f"/{path}"

    if query_params:
        for key, value in sorted(query_params.items()):
            resource += f"\n{key}:{value}"

    return resource


def compute_signature(string_to_sign: str, key_bytes: bytes) -> str:
    """
    Compute HMAC-SHA256 signature.

    Signature = Base64(HMAC-SHA256(UTF8(StringToSign), Base64Decode(AccountKey)))

    Args:
        string_to_sign: Canonical string to sign
        key_bytes: Decoded account key

    Returns:
        Base64-encoded signature
    """
    signature_bytes = hmac.new(
        key_bytes,
        string_to_sign.encode("utf-8"),
        hashlib.sha256
    ).digest()

    return base64.b64encode(signature_bytes).decode("utf-8")
