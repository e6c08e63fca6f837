"""
Tests for logging infrastructure.
"""

import json
import logging

import pytest

from zureblob.core.logging_config import (
    JSONFormatter,
    SensitiveDataFilter,
    _parse_size,
    log_with_context,
    setup_logging,
)


def make_record(msg, **extra):
    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLoggingSetup:
    """Test suite for logging setup."""

    def test_setup_logging_defaults(self):
        setup_logging()

        root_logger = logging.getLogger()
        assert root_logger.level == logging.INFO
        assert len(root_logger.handlers) == 1

    def test_setup_logging_with_level(self):
        setup_logging(level="debug")

        assert logging.getLogger().level == logging.DEBUG

    def test_setup_logging_with_file(self, tmp_path):
        log_file = tmp_path / "logs" / "zureblob.log"
        setup_logging(log_file=str(log_file))

        logging.getLogger("zureblob.test").info("Uploaded blob")

        assert "Uploaded blob" in log_file.read_text()

    def test_module_levels(self):
        setup_logging(level="INFO", module_levels={"zureblob.blob.client": "DEBUG"})

        assert logging.getLogger("zureblob.blob.client").isEnabledFor(logging.DEBUG)
        assert not logging.getLogger("zureblob.other").isEnabledFor(logging.DEBUG)

    def test_httpx_quieted(self):
        setup_logging(level="DEBUG")

        assert logging.getLogger("httpx").level == logging.WARNING

    def test_file_output_is_redacted(self, tmp_path):
        log_file = tmp_path / "zureblob.log"
        setup_logging(log_file=str(log_file))

        logging.getLogger("zureblob.test").info("Authorization: SharedKey acct:c2lnbmF0dXJl")

        content = log_file.read_text()
        assert "c2lnbmF0dXJl" not in content
        assert "***REDACTED***" in content


class TestJSONFormatter:
    """Test suite for JSON formatter."""

    def test_format_basic_message(self):
        data = json.loads(JSONFormatter().format(make_record("Test message")))

        assert data["level"] == "INFO"
        assert data["module"] == "test"
        assert data["message"] == "Test message"
        assert "timestamp" in data

    def test_format_with_context(self):
        record = make_record("Deleted", context={"prefix": "dir/", "deleted": 3})

        data = json.loads(JSONFormatter().format(record))

        assert data["context"] == {"prefix": "dir/", "deleted": 3}


class TestSensitiveDataFilter:
    """Credential redaction."""

    @pytest.mark.parametrize(
        "message, secret",
        [
            ("SharedKey myaccount:abc123def456=", "abc123def456="),
            ("DefaultEndpointsProtocol=https;AccountKey=c2VjcmV0;EndpointSuffix=x", "c2VjcmV0"),
            ('{"account_key": "c2VjcmV0"}', "c2VjcmV0"),
            ("GET https://a.blob.core.windows.net/c/b?sp=r&sig=abcDEF%3D&sv=1", "abcDEF%3D"),
        ],
    )
    def test_redacts(self, message, secret):
        record = make_record(message)

        assert SensitiveDataFilter().filter(record) is True
        assert secret not in record.msg
        assert "***REDACTED***" in record.msg

    def test_keeps_account_name(self):
        record = make_record("SharedKey myaccount:abc123")

        SensitiveDataFilter().filter(record)

        assert "myaccount" in record.msg

    def test_plain_message_untouched(self):
        record = make_record("Listing prefix dir/")

        SensitiveDataFilter().filter(record)

        assert record.msg == "Listing prefix dir/"


class TestHelpers:
    @pytest.mark.parametrize(
        "size, expected",
        [("10MB", 10 * 1024 ** 2), ("1GB", 1024 ** 3), ("512KB", 512 * 1024), ("100B", 100), ("42", 42)],
    )
    def test_parse_size(self, size, expected):
        assert _parse_size(size) == expected

    def test_log_with_context(self, caplog):
        logger = logging.getLogger("zureblob.test.context")

        with caplog.at_level(logging.INFO, logger="zureblob.test.context"):
            log_with_context(logger, logging.INFO, "Deleted virtual directory", deleted=2)

        assert caplog.records[-1].context == {"deleted": 2}
