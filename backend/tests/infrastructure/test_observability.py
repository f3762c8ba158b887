"""Structured Logging — tests for the JSON formatter's extra fields."""

import json
import logging

from thumbnail_ai.infrastructure.observability import JSONFormatter


def test_json_formatter_surfaces_known_extras():
    record = logging.LogRecord("thumbnail_ai.test", logging.INFO, __file__, 1, "hello %s", ("x",), None)
    record.trial_session_id = "session_1"
    record.cache_hit = False
    record.unrelated = "dropped"

    data = json.loads(JSONFormatter().format(record))
    assert data["message"] == "hello x"
    assert data["level"] == "INFO"
    assert data["trial_session_id"] == "session_1"
    assert data["cache_hit"] is False
    assert "unrelated" not in data
