"""
zureblob Authentication Module.

Request signing (SharedKey) and delegated access tokens (service SAS).

Author: zureblob Team
Date: 2026-10-18
"""

from zureblob.auth.sas import (
    SasGrant,
    SasPermission,
    SasProtocol,
    SasResource,
    SasTokenGenerator,
    format_sas_time,
)
from zureblob.auth.sharedkey import (
    RequestSigner,
    SharedKeyCredentials,
    build_canonicalized_headers,
    build_canonicalized_resource,
    build_string_to_sign,
    compute_signature,
)

__all__ = [
    # SharedKey
    "RequestSigner",
    "SharedKeyCredentials",
    "build_canonicalized_headers",
    "build_canonicalized_resource",
    "build_string_to_sign",
    "compute_signature",
    # SAS
    "SasGrant",
    "SasPermission",
    "SasProtocol",
    "SasResource",
    "SasTokenGenerator",
    "format_sas_time",
]
