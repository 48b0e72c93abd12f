import json
import logging
import sys

from genai_core.infrastructure.logging.logger import JsonFormatter, logger, setup_logger


def _record(msg, extra=None, exc_info=None):
    record = logging.LogRecord("genai_core", logging.WARNING, __file__, 1, msg, None, exc_info)
    if extra is not None:
        record.extra = extra
    return record


def test_json_formatter_merges_extra():
    line = JsonFormatter().format(_record("Stored chat turn", {"model": "models/a", "history_length": 2}))
    payload = json.loads(line)
    assert payload["msg"] == "Stored chat turn"
    assert payload["level"] == "WARNING"
    assert payload["model"] == "models/a"
    assert payload["history_length"] == 2
    assert payload["ts"].endswith("Z")


def test_json_formatter_includes_exception():
    try:
        raise ValueError("boom")
    except ValueError:
        line = JsonFormatter().format(_record("failed", exc_info=sys.exc_info()))
    assert "ValueError: boom" in json.loads(line)["exc"]


def test_setup_logger_is_idempotent():
    handlers = list(logger.handlers)
    assert setup_logger() is logger
    assert logger.handlers == handlers
