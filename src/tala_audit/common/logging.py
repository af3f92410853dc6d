"""Structured JSON logging for Tala-Audit."""

import logging
import json
import sys
from datetime import datetime, timezone

# Audit context attached with ``extra=`` and lifted to top-level JSON keys.
CONTEXT_FIELDS = ("tenant_id", "entity_type", "entity_id", "log_id", "sequence")


class JSONFormatter(logging.Formatter):
    """One JSON object per line, carrying any audit context passed as ``extra``."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_entry[name] = value
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO") -> None:
    """Route the tala_audit logger tree to stdout as JSON lines."""
    root = logging.getLogger("tala_audit")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not any(isinstance(h.formatter, JSONFormatter) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        root.addHandler(handler)
    root.propagate = False


def chain_context(tenant_id: str, entity_type: str, entity_id: str, **more) -> dict:
    """Build the ``extra`` mapping for a log line about one entity chain."""
    return {"tenant_id": tenant_id, "entity_type": entity_type, "entity_id": entity_id, **more}
