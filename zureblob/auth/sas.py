"""SAS (Shared Access Signature) token generation for Azure Blob Storage.

This module issues service SAS tokens scoped to a single blob or a whole
container. A token grants time-bounded, permission-scoped access without
handing out the account key.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from urllib.parse import quote, urlencode

from zureblob.auth.sharedkey import SharedKeyCredentials, compute_signature

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "2023-08-03"
DEFAULT_ENDPOINT_SUFFIX = "core.windows.net"

SAS_TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class SasPermission(str, Enum):
    """SAS permission flags."""

    READ = "r"
    ADD = "a"
    CREATE = "c"
    WRITE = "w"
    DELETE = "d"
    LIST = "l"


class SasResource(str, Enum):
    """Signed resource (sr) codes."""

    BLOB = "b"
    CONTAINER = "c"


class SasProtocol(str, Enum):
    """Signed protocol (spr) values."""

    HTTPS = "https"
    HTTPS_HTTP = "https,http"


_KNOWN_PERMISSIONS = frozenset(p.value for p in SasPermission)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_sas_time(value: datetime) -> str:
    """Format a datetime as ISO-8601 UTC. Naive values are taken as UTC."""
    return _as_utc(value).strftime(SAS_TIME_FORMAT)


@dataclass(frozen=True)
class SasGrant:
    """A single SAS grant, signed once and serialized to a query string."""

    container: str
    permissions: str
    expiry: datetime
    resource: SasResource = SasResource.BLOB
    blob: Optional[str] = None
    start: Optional[datetime] = None
    ip_range: Optional[str] = None
    protocol: str = SasProtocol.HTTPS.value

    def __post_init__(self):
        if not self.container:
            raise ValueError("SAS grant requires a container")

        if not self.permissions:
            raise ValueError("SAS grant requires at least one permission")
        unknown = set(self.permissions) - _KNOWN_PERMISSIONS
        if unknown:
            raise ValueError(f"Unknown SAS permissions: {''.join(sorted(unknown))}")

        if self.resource == SasResource.BLOB:
            blob = (self.blob or "").lstrip("/")
            if not blob:
                raise ValueError("Blob SAS grant requires a blob path")
            object.__setattr__(self, "blob", blob)
        elif self.blob is not None:
            raise ValueError("Container SAS grant cannot name a blob")

        if self.start is not None and _as_utc(self.start) >= _as_utc(self.expiry):
            raise ValueError("SAS start time must be before expiry")

    @property
    def signed_start(self) -> Optional[str]:
        return format_sas_time(self.start) if self.start is not None else None

    @property
    def signed_expiry(self) -> str:
        return format_sas_time(self.expiry)


class SasTokenGenerator:
    """Generator for blob and container service SAS tokens."""

    def __init__(
        self,
        credentials: SharedKeyCredentials,
        api_version: str = DEFAULT_API_VERSION,
        endpoint_suffix: str = DEFAULT_ENDPOINT_SUFFIX,
    ):
        """Initialize SAS token generator.

        Args:
            credentials: Validated account credentials
            api_version: Signed version (sv)
            endpoint_suffix: Host suffix used when building signed URLs
        """
        self.credentials = credentials
        self.api_version = api_version
        self.endpoint_suffix = endpoint_suffix

    def string_to_sign(self, grant: SasGrant) -> str:
        """Build the string to sign for a service SAS.

        Format (version 2020-12-06 and later):
        signedPermissions\n
        signedStart\n
        signedExpiry\n
        canonicalizedResource\n
        signedIdentifier\n
        signedIP\n
        signedProtocol\n
        signedVersion\n
        signedResource\n
        signedSnapshotTime\n
        signedEncryptionScope\n
        rscc\n
        rscd\n
        rsce\n
        rscl\n
        rsct

        Unused positions stay present and empty; position carries meaning.
        """
        canonicalized_resource = f"/blob/{self.credentials.account_name}/{grant.container}"
        if grant.resource == SasResource.BLOB:
            canonicalized_resource += f"/{grant.blob}"

        parts = [
            grant.permissions,
            grant.signed_start or "",
            grant.signed_expiry,
            canonicalized_resource,
            "",  # signedIdentifier
            grant.ip_range or "",
            grant.protocol,
            self.api_version,
            grant.resource.value,
            "",  # signedSnapshotTime
            "",  # signedEncryptionScope
            "",  # rscc (Cache-Control)
            "",  # rscd (Content-Disposition)
            "",  # rsce (Content-Encoding)
            "",  # rscl (Content-Language)
            "",  # rsct (Content-Type)
        ]

        return "\n".join(parts)

    def sign_grant(self, grant: SasGrant) -> str:
        """Compute the sig value for a grant."""
        return compute_signature(self.string_to_sign(grant), self.credentials.key_bytes)

    def to_query_string(self, grant: SasGrant) -> str:
        """Serialize a grant into its signed query string (without leading '?')."""
        params = [
            ("sp", grant.permissions),
            ("st", grant.signed_start),
            ("se", grant.signed_expiry),
            ("spr", grant.protocol),
            ("sv", self.api_version),
            ("sr", grant.resource.value),
            ("sip", grant.ip_range),
        ]
        params = [(key, value) for key, value in params if value is not None]
        params.append(("sig", self.sign_grant(grant)))

        return urlencode(params)

    def generate_blob_sas(
        self,
        container: str,
        blob: str,
        expiry: datetime,
        permissions: str = SasPermission.READ.value,
        start: Optional[datetime] = None,
        ip_range: Optional[str] = None,
        protocol: str = SasProtocol.HTTPS.value,
    ) -> str:
        """Generate a SAS token for a blob.

        Args:
            container: Container name
            blob: Blob path
            expiry: Token expiration time
            permissions: Permission string (e.g. "r", "rw", "rwd")
            start: Token start time
            ip_range: IP restriction (e.g. "168.1.5.60-168.1.5.70")
            protocol: Protocol restriction ("https" or "https,http")

        Returns:
            SAS query string (without leading '?')
        """
        grant = SasGrant(
            container=container,
            blob=blob,
            permissions=permissions,
            expiry=expiry,
            start=start,
            ip_range=ip_range,
            protocol=protocol,
            resource=SasResource.BLOB,
        )
        logger.debug(f"Issuing blob SAS for {container}/{grant.blob} (sp={permissions})")
        return self.to_query_string(grant)

    def generate_container_sas(
        self,
        container: str,
        expiry: datetime,
        permissions: str = SasPermission.READ.value + SasPermission.LIST.value,
        start: Optional[datetime] = None,
        ip_range: Optional[str] = None,
        protocol: str = SasProtocol.HTTPS.value,
    ) -> str:
        """Generate a SAS token for a container.

        Args:
            container: Container name
            expiry: Token expiration time
            permissions: Permission string (e.g. "rl", "rwdl")
            start: Token start time
            ip_range: IP restriction
            protocol: Protocol restriction

        Returns:
            SAS query string (without leading '?')
        """
        grant = SasGrant(
            container=container,
            permissions=permissions,
            expiry=expiry,
            start=start,
            ip_range=ip_range,
            protocol=protocol,
            resource=SasResource.CONTAINER,
        )
        logger.debug(f"Issuing container SAS for {container} (sp={permissions})")
        return self.to_query_string(grant)

    def generate_signed_url(
        self,
        container: str,
        blob: str,
        expiry: datetime,
        permissions: str = SasPermission.READ.value,
        **kwargs,
    ) -> str:
        """Generate a full signed URL for a blob.

        Extra keyword arguments are passed to generate_blob_sas().
        """
        blob = blob.lstrip("/")
        sas = self.generate_blob_sas(container, blob, expiry, permissions, **kwargs)

        return f"{self.blob_url(container, blob)}?{sas}"

    def blob_url(self, container: str, blob: str) -> str:
        """Unsigned URL of a blob."""
        host = f"{self.credentials.account_name}.blob.{self.endpoint_suffix}"
        return f"https://{host}/{container}/{quote(blob.lstrip('/'), safe='/')}"
