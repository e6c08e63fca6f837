"""
Blob Storage REST client.

One method per Blob service operation. Each call stamps the request with
x-ms-date / x-ms-version, signs it with SharedKey, sends it through an
httpx.Client and turns the response into a typed value or a classified
error. Transport errors from httpx propagate unchanged; nothing is retried.

Author: zureblob Team
Date: 2026-10-18
"""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Dict, Mapping, Optional, Union
from urllib.parse import quote, urlencode

import httpx

from zureblob.auth.sas import DEFAULT_API_VERSION, DEFAULT_ENDPOINT_SUFFIX
from zureblob.auth.sharedkey import RequestSigner, SharedKeyCredentials
from zureblob.blob.listing import DEFAULT_PAGE_SIZE, BlobPager
from zureblob.blob.models import (
    DEFAULT_CONTENT_TYPE,
    BlobProperties,
    ListingPage,
    PublicAccessLevel,
    format_http_date,
)
from zureblob.exceptions import (
    BlobNotFoundError,
    InvalidConfigurationError,
    StorageError,
    UnableToDeleteBlob,
    UnableToReadBlob,
    UnableToWriteBlob,
)

if TYPE_CHECKING:
    from zureblob.core.config_manager import StorageConfig

logger = logging.getLogger(__name__)

QueryParams = Mapping[str, Union[str, int]]


class BlobStorageClient:
    """
    Client for one container of an Azure Storage account.

    The client owns its credentials; they are validated here and never
    mutated afterwards. An httpx.Client may be injected (custom timeouts,
    proxies, test transports); otherwise one is created and closed by
    close().
    """

    DEFAULT_TIMEOUT = httpx.Timeout(300.0, connect=30.0)

    def __init__(
        self,
        account_name: str,
        account_key: str,
        container: str,
        api_version: Optional[str] = None,
        endpoint_suffix: str = DEFAULT_ENDPOINT_SUFFIX,
        http_client: Optional[httpx.Client] = None,
        timeout: Optional[httpx.Timeout] = None,
    ):
        """
        Initialize blob client.

        Args:
            account_name: Storage account name
            account_key: Base64-encoded account key
            container: Container name
            api_version: x-ms-version to send (default 2023-08-03)
            endpoint_suffix: Host suffix of the Blob endpoint
            http_client: Transport to send requests with
            timeout: Timeout for the internally created transport

        Raises:
            InvalidConfigurationError: If a credential or the container is missing,
                or the key is not base64
        """
        self.credentials = SharedKeyCredentials(account_name, account_key)
        if not container:
            raise InvalidConfigurationError.missing_container()

        self.container = container
        self.api_version = api_version or DEFAULT_API_VERSION
        self.endpoint_suffix = endpoint_suffix
        self.signer = RequestSigner(self.credentials, container)

        self._owns_http_client = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout or self.DEFAULT_TIMEOUT)

    @classmethod
    def from_config(
        cls, config: "StorageConfig", http_client: Optional[httpx.Client] = None
    ) -> "BlobStorageClient":
        """Build a client from a validated StorageConfig."""
        return cls(
            account_name=config.account_name,
            account_key=config.account_key,
            container=config.container,
            api_version=config.api_version,
            endpoint_suffix=config.endpoint_suffix,
            http_client=http_client,
            timeout=httpx.Timeout(config.http.timeout, connect=config.http.connect_timeout),
        )

    @property
    def account_name(self) -> str:
        return self.credentials.account_name

    @property
    def container_url(self) -> str:
        return f"https://{self.account_name}.blob.{self.endpoint_suffix}/{self.container}"

    def get_blob_url(self, path: str) -> str:
        """Unsigned URL of a blob."""
        return f"{self.container_url}/{_encode_path(path)}"

    # ------------------------------------------------------------------
    # Blob operations
    # ------------------------------------------------------------------

    def put_blob(
        self,
        path: str,
        contents: Union[bytes, str],
        content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> httpx.Response:
        """
        Upload a block blob, replacing any existing blob.

        Raises:
            UnableToWriteBlob: If the service rejects the upload
        """
        if isinstance(contents, str):
            contents = contents.encode("utf-8")

        response = self._request(
            "PUT",
            path,
            headers={"x-ms-blob-type": "BlockBlob"},
            content=contents,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
        )

        if not response.is_success:
            raise UnableToWriteBlob.at_location(path, response.text, response.status_code)
        return response

    def get_blob(self, path: str) -> bytes:
        """
        Download a blob.

        Raises:
            BlobNotFoundError: If the blob does not exist
            UnableToReadBlob: On any other failure
        """
        response = self._request("GET", path)

        if response.status_code == 404:
            raise BlobNotFoundError.for_path(path)
        if not response.is_success:
            raise UnableToReadBlob.from_location(path, response.text, response.status_code)
        return response.content

    def delete_blob(self, path: str) -> bool:
        """
        Delete a blob. Deleting an absent blob succeeds.

        Returns:
            True if a blob was deleted, False if it did not exist

        Raises:
            UnableToDeleteBlob: On any failure other than 404
        """
        response = self._request("DELETE", path)

        if response.status_code == 404:
            logger.debug(f"Delete of missing blob {path} treated as success")
            return False
        if not response.is_success:
            raise UnableToDeleteBlob.at_location(path, response.text, response.status_code)
        return True

    def get_blob_properties(self, path: str) -> BlobProperties:
        """
        Fetch blob properties with a HEAD request.

        Raises:
            BlobNotFoundError: If the blob does not exist
            StorageError: On any other failure
        """
        response = self._request("HEAD", path)

        if response.status_code == 404:
            raise BlobNotFoundError.for_path(path)
        if not response.is_success:
            raise StorageError.from_response(response.text, response.status_code, response.headers)
        return BlobProperties.from_headers(response.headers)

    def blob_exists(self, path: str) -> bool:
        """Check whether a blob exists. Errors other than not-found propagate."""
        try:
            self.get_blob_properties(path)
        except BlobNotFoundError:
            return False
        return True

    def copy_blob(self, source: str, destination: str) -> httpx.Response:
        """
        Copy a blob inside the container.

        Raises:
            UnableToWriteBlob: If the copy is rejected at the destination
        """
        response = self._request(
            "PUT",
            destination,
            headers={"x-ms-copy-source": self.get_blob_url(source)},
        )

        if not response.is_success:
            raise UnableToWriteBlob.at_location(destination, response.text, response.status_code)
        return response

    # ------------------------------------------------------------------
    # Container operations
    # ------------------------------------------------------------------

    def list_blobs(
        self,
        prefix: str = "",
        max_results: int = DEFAULT_PAGE_SIZE,
        marker: Optional[str] = None,
    ) -> ListingPage:
        """
        Fetch one page of blobs.

        Args:
            prefix: Only return blobs whose names start with this
            max_results: Page size cap
            marker: Continuation marker from the previous page

        Returns:
            ListingPage; next_marker is None on the last page

        Raises:
            StorageError: With the service's error code
        """
        query_params: Dict[str, Union[str, int]] = {
            "restype": "container",
            "comp": "list",
            "maxresults": max_results,
        }
        if prefix != "":
            query_params["prefix"] = prefix
        if marker is not None:
            query_params["marker"] = marker

        response = self._request("GET", query_params=query_params)

        if not response.is_success:
            raise StorageError.from_response(response.text, response.status_code, response.headers)
        return ListingPage.from_xml(response.text)

    def iter_blobs(self, prefix: str = "", page_size: int = DEFAULT_PAGE_SIZE) -> BlobPager:
        """Page through every blob under prefix, one request per page."""
        return BlobPager(self, prefix, page_size)

    def get_container_access(self) -> PublicAccessLevel:
        """
        Read the container's public access level.

        Raises:
            StorageError: If the ACL cannot be read
        """
        response = self._request("GET", query_params=_ACL_QUERY)

        if not response.is_success:
            raise StorageError.from_response(response.text, response.status_code, response.headers)
        return PublicAccessLevel.from_header(response.headers.get("x-ms-blob-public-access"))

    def set_container_access(self, level: PublicAccessLevel) -> None:
        """
        Set the container's public access level.

        Private access is expressed by omitting x-ms-blob-public-access.

        Raises:
            StorageError: If the service rejects the change
        """
        level = PublicAccessLevel(level)
        headers = {}
        if level.is_public:
            headers["x-ms-blob-public-access"] = level.value

        response = self._request("PUT", headers=headers, query_params=_ACL_QUERY)

        if not response.is_success:
            raise StorageError.from_response(response.text, response.status_code, response.headers)
        logger.info(f"Container {self.container} access level set to {level.value}")

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _request(
        self,
        verb: str,
        path: str = "",
        headers: Optional[Mapping[str, str]] = None,
        query_params: Optional[QueryParams] = None,
        content: Optional[bytes] = None,
        content_type: str = "",
    ) -> httpx.Response:
        """Sign and send a single request."""
        encoded_path = _encode_path(path)

        request_headers = {
            "x-ms-date": format_http_date(datetime.now(timezone.utc)),
            "x-ms-version": self.api_version,
        }
        if headers:
            request_headers.update(headers)
        if content_type:
            request_headers["Content-Type"] = content_type

        request_headers["Authorization"] = self.signer.authorization_header(
            verb,
            path=encoded_path,
            headers=request_headers,
            content_length=len(content) if content else 0,
            content_type=content_type,
            query_params=query_params,
        )

        url = f"{self.container_url}/{encoded_path}" if encoded_path else self.container_url
        if query_params:
            url += "?" + urlencode(query_params)

        response = self._http.request(verb, url, headers=request_headers, content=content)

        if response.is_success or response.status_code == 404:
            logger.debug(f"{verb} {url} -> {response.status_code}")
        else:
            logger.warning(f"{verb} {url} failed with status {response.status_code}")
        return response

    def close(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_http_client:
            self._http.close()

    def __enter__(self) -> "BlobStorageClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"BlobStorageClient(account={self.account_name!r}, container={self.container!r})"


_ACL_QUERY = {"restype": "container", "comp": "acl"}


def _encode_path(path: str) -> str:
    """Percent-encode a blob path for use in a URL; leading slashes dropped."""
    return quote(path.lstrip("/"), safe="/")
