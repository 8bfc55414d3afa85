#  Kube Wait - Structured Logging Tests
#
#  Tests for JSON formatter and wait_id propagation.
#
#  Depends on: kwait/logging_config.py
#  Used by:    pytest

import json
import logging
import sys

import pytest

from kwait.logging_config import JSONFormatter, set_wait_id, setup_logging, wait_id_var


def _record(msg="hello world"):
    return logging.LogRecord(
        name="kwait.test", level=logging.INFO, pathname="", lineno=0,
        msg=msg, args=(), exc_info=None,
    )


class TestJSONFormatter:
    def test_output_is_valid_json(self):
        data = json.loads(JSONFormatter().format(_record()))
        assert data["level"] == "INFO"
        assert data["logger"] == "kwait.test"
        assert data["message"] == "hello world"
        assert data["timestamp"].endswith("Z")

    def test_wait_id_included_when_set(self):
        token = set_wait_id("abc123")
        try:
            data = json.loads(JSONFormatter().format(_record()))
            assert data["wait_id"] == "abc123"
        finally:
            wait_id_var.reset(token)

    def test_reset_restores_outer_wait_id(self):
        outer = set_wait_id("outer")
        try:
            inner = set_wait_id("inner")
            wait_id_var.reset(inner)
            data = json.loads(JSONFormatter().format(_record()))
            assert data["wait_id"] == "outer"
        finally:
            wait_id_var.reset(outer)
        assert wait_id_var.get() is None

    def test_wait_id_absent_when_not_set(self):
        data = json.loads(JSONFormatter().format(_record()))
        assert "wait_id" not in data

    def test_exception_included(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord(
                name="kwait.test", level=logging.ERROR, pathname="", lineno=0,
                msg="failed", args=(), exc_info=sys.exc_info(),
            )
        data = json.loads(JSONFormatter().format(record))
        assert "ValueError: boom" in data["exception"]


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def _clean_root(self):
        root = logging.getLogger("kwait")
        saved = root.handlers[:], root.level
        root.handlers.clear()
        yield
        root.handlers[:], root.level = saved[0], saved[1]

    def test_json_handler(self):
        setup_logging("DEBUG", "json")
        root = logging.getLogger("kwait")
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_text_handler(self):
        setup_logging("warning", "text")
        root = logging.getLogger("kwait")
        assert root.level == logging.WARNING
        assert not isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_idempotent(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger("kwait").handlers) == 1

    def test_quiets_kubernetes(self):
        setup_logging()
        assert logging.getLogger("urllib3").level == logging.WARNING
