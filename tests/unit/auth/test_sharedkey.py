"""Tests for SharedKey request signing."""

import base64
import hashlib
import hmac

import pytest

from zureblob.auth.sharedkey import (
    RequestSigner,
    SharedKeyCredentials,
    build_canonicalized_headers,
    build_canonicalized_resource,
    build_string_to_sign,
    compute_signature,
)
from zureblob.exceptions import InvalidConfigurationError

DATE = "Mon, 01 Jan 2024 00:00:00 GMT"


@pytest.fixture
def account_key():
    return base64.b64encode(b"test-key-1234567890").decode()


@pytest.fixture
def signer(account_key):
    return RequestSigner(SharedKeyCredentials("testaccount", account_key), "testcontainer")


def expected_signature(string_to_sign: str, account_key: str) -> str:
    digest = hmac.new(
        base64.b64decode(account_key), string_to_sign.encode("utf-8"), hashlib.sha256
    ).digest()
    return base64.b64encode(digest).decode()


class TestCredentials:
    """Credential validation happens at construction."""

    def test_valid_credentials(self, account_key):
        creds = SharedKeyCredentials("testaccount", account_key)

        assert creds.key_bytes == b"test-key-1234567890"

    def test_missing_account_name(self, account_key):
        with pytest.raises(InvalidConfigurationError, match="account name"):
            SharedKeyCredentials("", account_key)

    def test_missing_account_key(self):
        with pytest.raises(InvalidConfigurationError, match="account key is required"):
            SharedKeyCredentials("testaccount", "")

    def test_undecodable_account_key(self):
        with pytest.raises(InvalidConfigurationError, match="base64"):
            SharedKeyCredentials("testaccount", "not base64 at all!")

    def test_key_not_in_repr(self, account_key):
        assert account_key not in repr(SharedKeyCredentials("testaccount", account_key))

    def test_missing_container(self, account_key):
        with pytest.raises(InvalidConfigurationError, match="container"):
            RequestSigner(SharedKeyCredentials("testaccount", account_key), "")


class TestCanonicalizedHeaders:
    """Header selection, normalization and ordering."""

    def test_basic_headers(self):
        headers = {"x-ms-version": "2023-08-03", "x-ms-date": DATE}

        assert build_canonicalized_headers(headers) == (
            f"x-ms-date:{DATE}\nx-ms-version:2023-08-03\n"
        )

    def test_non_ms_headers_excluded(self):
        headers = {
            "Content-Type": "text/plain",
            "Authorization": "SharedKey a:b",
            "x-ms-version": "2023-08-03",
        }

        assert build_canonicalized_headers(headers) == "x-ms-version:2023-08-03\n"

    def test_names_lowercased_and_values_trimmed(self):
        headers = {"X-MS-Blob-Type": "  BlockBlob  ", "X-Ms-Date": DATE}

        assert build_canonicalized_headers(headers) == (
            f"x-ms-blob-type:BlockBlob\nx-ms-date:{DATE}\n"
        )

    def test_independent_of_insertion_order_and_case(self):
        first = {"x-ms-version": "v", "x-ms-date": DATE, "x-ms-blob-type": "BlockBlob"}
        second = {"X-MS-BLOB-TYPE": "BlockBlob", "X-MS-DATE": DATE, "X-MS-VERSION": "v"}

        assert build_canonicalized_headers(first) == build_canonicalized_headers(second)

    def test_empty_headers(self):
        assert build_canonicalized_headers({}) == ""


class TestCanonicalizedResource:
    """Resource path and query parameter canonicalization."""

    def test_container_only(self):
        assert build_canonicalized_resource("acct", "box") == "/acct/box"

    def test_blob_path(self):
        assert build_canonicalized_resource("acct", "box", "dir/file.txt") == "/acct/box/dir/file.txt"

    def test_leading_slash_ignored(self):
        assert build_canonicalized_resource("acct", "box", "/file.txt") == "/acct/box/file.txt"

    def test_query_params_sorted_by_key(self):
        params = {"restype": "container", "comp": "list", "maxresults": 5000, "prefix": "a/"}

        resource = build_canonicalized_resource("acct", "box", "", params)

        assert resource == (
            "/acct/box\ncomp:list\nmaxresults:5000\nprefix:a/\nrestype:container"
        )


class TestStringToSign:
    """The fixed 13-line layout."""

    def test_layout(self):
        string_to_sign = build_string_to_sign(
            verb="put",
            content_length=11,
            content_type="text/plain",
            headers={"x-ms-date": DATE, "x-ms-version": "2023-08-03"},
            canonicalized_resource="/acct/box/file.txt",
        )

        lines = string_to_sign.split("\n")
        assert lines[0] == "PUT"
        assert lines[3] == "11"
        assert lines[5] == "text/plain"
        assert lines[1:3] == ["", ""]
        assert lines[6:12] == [""] * 6
        assert string_to_sign.endswith(
            f"x-ms-date:{DATE}\nx-ms-version:2023-08-03\n/acct/box/file.txt"
        )

    def test_zero_content_length_is_empty_field(self):
        string_to_sign = build_string_to_sign("PUT", 0, "", {}, "/acct/box")

        assert string_to_sign.split("\n")[3] == ""
        assert "\n0\n" not in string_to_sign

    def test_exact_string(self):
        string_to_sign = build_string_to_sign("GET", 0, "", {"x-ms-date": DATE}, "/acct/box/f")

        assert string_to_sign == "GET\n\n\n\n\n\n\n\n\n\n\n\n" + f"x-ms-date:{DATE}\n/acct/box/f"


class TestRequestSigner:
    """End-to-end signatures."""

    def test_signature_matches_reference_hmac(self, signer, account_key):
        headers = {"x-ms-date": DATE, "x-ms-version": "2023-08-03"}

        signature = signer.sign("GET", "file.txt", headers)

        string_to_sign = (
            "GET\n\n\n\n\n\n\n\n\n\n\n\n"
            f"x-ms-date:{DATE}\nx-ms-version:2023-08-03\n/testaccount/testcontainer/file.txt"
        )
        assert signature == expected_signature(string_to_sign, account_key)

    def test_deterministic(self, signer):
        headers = {"x-ms-date": DATE}

        assert signer.sign("GET", "a.txt", headers) == signer.sign("GET", "a.txt", headers)

    def test_header_order_does_not_matter(self, signer):
        one = signer.sign("GET", "a.txt", {"x-ms-date": DATE, "x-ms-version": "v"})
        two = signer.sign("GET", "a.txt", {"X-MS-VERSION": "v", "X-MS-DATE": DATE})

        assert one == two

    @pytest.mark.parametrize(
        "changes",
        [
            {"verb": "PUT"},
            {"path": "b.txt"},
            {"headers": {"x-ms-date": "Tue, 02 Jan 2024 00:00:00 GMT"}},
            {"content_length": 5},
            {"content_type": "text/plain"},
            {"query_params": {"comp": "acl"}},
        ],
    )
    def test_any_field_change_changes_signature(self, signer, changes):
        base = {"verb": "GET", "path": "a.txt", "headers": {"x-ms-date": DATE}}

        assert signer.sign(**{**base, **changes}) != signer.sign(**base)

    def test_zero_length_signs_like_empty(self, signer):
        headers = {"x-ms-date": DATE}

        assert signer.sign("PUT", "a", headers, content_length=0) == signer.sign("PUT", "a", headers)

    def test_authorization_header(self, signer):
        header = signer.authorization_header("GET", "a.txt", {"x-ms-date": DATE})

        assert header.startswith("SharedKey testaccount:")
        assert header.split(":", 1)[1] == signer.sign("GET", "a.txt", {"x-ms-date": DATE})


class TestComputeSignature:
    def test_known_vector(self):
        key = b"secret"
        expected = base64.b64encode(hmac.new(key, b"payload", hashlib.sha256).digest()).decode()

        assert compute_signature("payload", key) == expected
