# tests/unit/logging/test_logger.py
"""Tests for logging/logger.py: formatters and root logger setup."""

from __future__ import annotations

import io
import json
import logging
import sys

import pytest

from newsforge.logging.context import (
    clear_context,
    set_article_context,
    set_pipeline_context,
    set_step_context,
)
from newsforge.logging.logger import JsonFormatter, TextFormatter, build_formatter, setup_logging


def _record(msg: str = "Hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test", level=logging.INFO, pathname="", lineno=0,
        msg=msg, args=(), exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        record = _record()
        record.created = 0.0
        parsed = json.loads(JsonFormatter().format(record))
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Hello"
        assert parsed["timestamp"].startswith("1970-01-01T00:00:00")
        assert "context" not in parsed

    def test_format_with_context(self):
        set_article_context("art1", "run1")
        set_pipeline_context("digest")
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["context"] == {"article_id": "art1", "run_id": "run1", "pipeline": "digest"}

    def test_format_with_data(self):
        parsed = json.loads(JsonFormatter().format(_record(data={"step": "STEP_1_REQUEST"})))
        assert parsed["data"] == {"step": "STEP_1_REQUEST"}

    def test_format_with_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _record(exc_info=sys.exc_info())
        parsed = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: boom" in parsed["exception"]


class TestTextFormatter:
    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        output = TextFormatter().format(_record("Hello text"))
        assert "Hello text" in output
        assert "INFO" in output

    def test_format_with_context(self):
        set_article_context("art1")
        set_step_context("write_article")
        output = TextFormatter().format(_record())
        assert "<art1>" in output
        assert "(write_article)" in output

    def test_run_id_joined_to_article(self):
        set_article_context("art1", "run9")
        assert "<art1/run9>" in TextFormatter().format(_record())


class TestBuildFormatter:
    def test_known_formats(self):
        assert isinstance(build_formatter("json"), JsonFormatter)
        assert isinstance(build_formatter("text"), TextFormatter)

    def test_unknown_format(self):
        with pytest.raises(ValueError, match="Unknown log format"):
            build_formatter("xml")


class TestSetupLogging:
    def teardown_method(self):
        root = logging.getLogger("newsforge")
        for handler in root.handlers:
            handler.close()
        root.handlers.clear()
        root.setLevel(logging.NOTSET)

    def test_setup_json(self):
        root = setup_logging(level="DEBUG", log_format="json")
        assert root is logging.getLogger("newsforge")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_console_defaults_to_stderr(self):
        root = setup_logging()
        assert root.handlers[0].stream is sys.stderr

    def test_custom_stream(self):
        stream = io.StringIO()
        setup_logging(log_format="text", stream=stream)
        logging.getLogger("newsforge.pipeline").info("run started")
        assert "run started" in stream.getvalue()

    def test_setup_text_with_file(self, tmp_path):
        root = setup_logging(level="INFO", log_format="text", log_file=str(tmp_path / "app.log"))
        assert root.level == logging.INFO
        assert len(root.handlers) == 2
        assert all(isinstance(h.formatter, TextFormatter) for h in root.handlers)

    def test_reinit_replaces_handlers(self, tmp_path):
        setup_logging(log_file=str(tmp_path / "app.log"))
        setup_logging()
        assert len(logging.getLogger("newsforge").handlers) == 1

    def test_quiets_http_loggers(self):
        setup_logging(quiet=("httpx",))
        assert logging.getLogger("httpx").level == logging.WARNING
