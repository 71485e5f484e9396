"""Tests for logging configuration utilities."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

from gensaga.core.utils.logging import (
    StructuredJSONFormatter,
    configure_logging,
    mask_token,
)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="gensaga.test",
        level=logging.INFO,
        pathname="/path/to/file.py",
        lineno=42,
        msg="Slot %s acquired",
        args=("gen_1",),
        exc_info=None,
    )
    record.funcName = "acquire"
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredJSONFormatter:
    """Test suite for StructuredJSONFormatter."""

    def test_basic_log_format(self) -> None:
        """Test basic log record formatting to JSON."""
        data = json.loads(StructuredJSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["message"] == "Slot gen_1 acquired"
        assert "timestamp" in data
        assert data["context"]["logger_name"] == "gensaga.test"
        assert data["context"]["function"] == "acquire"
        assert data["context"]["line"] == 42

    def test_extra_fields(self) -> None:
        """Test fields passed through extra= land in the context."""
        data = json.loads(
            StructuredJSONFormatter().format(_record(invocation_id="inv-1", credits=6))
        )

        assert data["context"]["invocation_id"] == "inv-1"
        assert data["context"]["credits"] == 6

    def test_exception_info(self) -> None:
        """Test exception details are included."""
        try:
            raise ValueError("bad slot")
        except ValueError:
            record = _record(exc_info=sys.exc_info())

        data = json.loads(StructuredJSONFormatter().format(record))

        assert data["context"]["error_type"] == "ValueError"
        assert data["context"]["error_message"] == "bad slot"
        assert "Traceback" in data["context"]["stack_trace"]


class TestConfigureLogging:
    """Test suite for configure_logging."""

    def test_file_output_structured(self, tmp_path: Path) -> None:
        """Test structured logs are written to a file."""
        log_file = tmp_path / "gensaga.jsonl"
        configure_logging(level="debug", filename=str(log_file), structured=True)

        logging.getLogger("gensaga.file").info("hello")
        for handler in logging.getLogger().handlers:
            handler.flush()

        line = log_file.read_text().strip().splitlines()[-1]
        assert json.loads(line)["message"] == "hello"
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.ERROR


def test_mask_token() -> None:
    """Test tokens are truncated for logs."""
    assert mask_token(None) == "null"
    assert mask_token("abcdefghijkl") == "abcdef..."
