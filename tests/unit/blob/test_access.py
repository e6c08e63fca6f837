"""Tests for the container access level cache."""

import httpx
import pytest

from tests.conftest import RecordingTransport, make_client
from zureblob.blob.access import ContainerAccessCache
from zureblob.blob.models import PublicAccessLevel
from zureblob.exceptions import StorageError


class TestContainerAccessCache:
    """At most one ACL read per cache lifetime."""

    def test_fetches_once(self):
        transport = RecordingTransport(
            httpx.Response(200, headers={"x-ms-blob-public-access": "container"})
        )
        cache = ContainerAccessCache(make_client(transport))

        assert cache.get() is PublicAccessLevel.CONTAINER
        assert cache.get() is PublicAccessLevel.CONTAINER
        assert transport.call_count == 1

    def test_not_known_until_fetched(self, transport):
        cache = ContainerAccessCache(make_client(transport))

        assert cache.is_known is False
        cache.get()
        assert cache.is_known is True

    def test_set_then_get_does_not_read(self):
        transport = RecordingTransport(httpx.Response(200))
        cache = ContainerAccessCache(make_client(transport))

        cache.set(PublicAccessLevel.BLOB)

        assert cache.get() is PublicAccessLevel.BLOB
        assert transport.call_count == 1
        assert transport.last_request.method == "PUT"

    def test_set_accepts_level_name(self):
        transport = RecordingTransport(httpx.Response(200))
        cache = ContainerAccessCache(make_client(transport))

        cache.set("blob")

        assert cache.get() is PublicAccessLevel.BLOB
        assert cache.get().is_public
        assert transport.last_request.headers["x-ms-blob-public-access"] == "blob"

    def test_set_rejects_unknown_level(self, transport):
        cache = ContainerAccessCache(make_client(transport))

        with pytest.raises(ValueError):
            cache.set("everyone")

        assert transport.call_count == 0
        assert cache.is_known is False

    def test_failed_set_keeps_previous_value(self):
        transport = RecordingTransport(
            httpx.Response(200),
            httpx.Response(403),
        )
        cache = ContainerAccessCache(make_client(transport))
        assert cache.get() is PublicAccessLevel.PRIVATE

        with pytest.raises(StorageError):
            cache.set(PublicAccessLevel.CONTAINER)

        assert cache.get() is PublicAccessLevel.PRIVATE
        assert transport.call_count == 2

    def test_failed_get_is_not_cached(self):
        transport = RecordingTransport(
            httpx.Response(403),
            httpx.Response(200, headers={"x-ms-blob-public-access": "blob"}),
        )
        cache = ContainerAccessCache(make_client(transport))

        with pytest.raises(StorageError):
            cache.get()

        assert cache.is_known is False
        assert cache.get() is PublicAccessLevel.BLOB

    def test_invalidate_forces_refetch(self):
        transport = RecordingTransport(httpx.Response(200))
        cache = ContainerAccessCache(make_client(transport))

        cache.get()
        cache.invalidate()
        cache.get()

        assert transport.call_count == 2
