"""Shared fixtures: a scripted, recording httpx transport and test credentials."""

import base64
import logging
from typing import Callable, List, Optional, Union

import httpx
import pytest

from zureblob.blob.client import BlobStorageClient
from zureblob.core.logging_config import SensitiveDataFilter

ACCOUNT_NAME = "testaccount"
ACCOUNT_KEY = base64.b64encode(b"test-key-1234567890").decode()
CONTAINER = "testcontainer"
CONTAINER_URL = f"https://{ACCOUNT_NAME}.blob.core.windows.net/{CONTAINER}"


Responder = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class RecordingTransport:
    """
    Scripted transport that records every request.

    Responses are consumed in order; the last one repeats once the script
    runs out. A callable entry is invoked with the request.
    """

    def __init__(self, *responses: Responder):
        self.responses: List[Responder] = list(responses) or [httpx.Response(200)]
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests) - 1, len(self.responses) - 1)
        responder = self.responses[index]
        if callable(responder) and not isinstance(responder, httpx.Response):
            return responder(request)
        return responder

    @property
    def last_request(self) -> Optional[httpx.Request]:
        return self.requests[-1] if self.requests else None

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


def make_client(transport: RecordingTransport, **kwargs) -> BlobStorageClient:
    return BlobStorageClient(
        account_name=kwargs.pop("account_name", ACCOUNT_NAME),
        account_key=kwargs.pop("account_key", ACCOUNT_KEY),
        container=kwargs.pop("container", CONTAINER),
        http_client=transport.client(),
        **kwargs,
    )


def list_blobs_xml(names, next_marker: str = "") -> str:
    """Render a minimal EnumerationResults document."""
    blobs = "".join(
        f"<Blob><Name>{name}</Name><Properties>"
        f"<Content-Length>{len(name)}</Content-Length>"
        f"<Content-Type>text/plain</Content-Type>"
        f"<Last-Modified>Mon, 01 Jan 2024 00:00:00 GMT</Last-Modified>"
        f"</Properties></Blob>"
        for name in names
    )
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        f'<EnumerationResults ContainerName="{CONTAINER_URL}">'
        f"<Blobs>{blobs}</Blobs><NextMarker>{next_marker}</NextMarker>"
        "</EnumerationResults>"
    )


def error_xml(code: str, message: str) -> str:
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        f"<Error><Code>{code}</Code><Message>{message}</Message></Error>"
    )


@pytest.fixture
def transport():
    return RecordingTransport()


def _logger_levels():
    return {
        name: logger.level
        for name, logger in logging.root.manager.loggerDict.items()
        if isinstance(logger, logging.Logger)
    }


@pytest.fixture(autouse=True)
def isolated_logging():
    """Undo setup_logging() after each test: handlers, root level and module levels."""
    root_logger = logging.getLogger()
    root_level = root_logger.level
    levels = _logger_levels()

    yield

    for handler in list(root_logger.handlers):
        if any(isinstance(f, SensitiveDataFilter) for f in handler.filters):
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.setLevel(root_level)
    for name, logger in logging.root.manager.loggerDict.items():
        if isinstance(logger, logging.Logger):
            logger.setLevel(levels.get(name, logging.NOTSET))
