"""
zureblob: Azure Blob Storage REST client

SharedKey-signed blob and container operations, service SAS issuance,
and a filesystem-style adapter with virtual directories.
"""

__version__ = "0.1.0"

from .auth import SasTokenGenerator, SharedKeyCredentials
from .blob import BlobStorageClient, ContainerAccessCache, PublicAccessLevel
from .exceptions import (
    BlobNotFoundError,
    InvalidConfigurationError,
    StorageError,
    ZureBlobError,
)
from .filesystem import BlobFilesystem

__all__ = [
    "BlobStorageClient",
    "BlobFilesystem",
    "ContainerAccessCache",
    "PublicAccessLevel",
    "SasTokenGenerator",
    "SharedKeyCredentials",
    "ZureBlobError",
    "InvalidConfigurationError",
    "StorageError",
    "BlobNotFoundError",
    "__version__",
]
