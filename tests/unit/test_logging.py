"""Tests for structured JSON logging."""

import json
import logging
import sys

from tala_audit.common.logging import JSONFormatter, chain_context, setup_logging


def _record(msg="Audit chain broken", exc_info=None, **extra):
    record = logging.LogRecord(
        "tala_audit.audit.verifier", logging.WARNING, __file__, 1, msg, (), exc_info,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_basic_fields(self):
        line = json.loads(JSONFormatter().format(_record()))
        assert line["level"] == "WARNING"
        assert line["logger"] == "tala_audit.audit.verifier"
        assert line["message"] == "Audit chain broken"
        assert "timestamp" in line
        assert "tenant_id" not in line

    def test_chain_context_lifted(self):
        extra = chain_context("t1", "JournalEntry", "JE-1", log_id="log-9", sequence=3)
        line = json.loads(JSONFormatter().format(_record(**extra)))
        assert line["tenant_id"] == "t1"
        assert line["entity_type"] == "JournalEntry"
        assert line["entity_id"] == "JE-1"
        assert line["log_id"] == "log-9"
        assert line["sequence"] == 3

    def test_exception_included(self):
        try:
            raise ValueError("store down")
        except ValueError:
            record = _record(exc_info=sys.exc_info())
        line = json.loads(JSONFormatter().format(record))
        assert "ValueError: store down" in line["exception"]


class TestSetupLogging:
    def test_idempotent(self):
        setup_logging("DEBUG")
        setup_logging("DEBUG")
        logger = logging.getLogger("tala_audit")
        json_handlers = [h for h in logger.handlers if isinstance(h.formatter, JSONFormatter)]
        assert len(json_handlers) == 1
        assert logger.level == logging.DEBUG
        assert logger.propagate is False
