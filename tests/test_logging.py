"""
Tests for the structured JSON log formatter.
"""
from __future__ import annotations

import json
import logging

from baseline.core.logging import JsonFormatter, get_logger


def _record(message: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("baseline.test", logging.WARNING, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formats_core_fields():
    payload = json.loads(JsonFormatter().format(_record("fetched 3 candidates")))
    assert payload["level"] == "WARNING"
    assert payload["module"] == "baseline.test"
    assert payload["message"] == "fetched 3 candidates"
    assert payload["timestamp"].endswith("Z")


def test_includes_path_and_context_when_present():
    payload = json.loads(
        JsonFormatter().format(_record("boom", path="/api/cron/daily", context={"date": "2024-03-01"}))
    )
    assert payload["path"] == "/api/cron/daily"
    assert payload["context"] == {"date": "2024-03-01"}


def test_get_logger_is_idempotent():
    logger = get_logger("baseline.test_logging_idempotent")
    again = get_logger("baseline.test_logging_idempotent")
    assert logger is again
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, JsonFormatter)
