"""Unit tests for log formatters and logger naming."""

import json
import logging
import sys

from modelbridge.core import logging as logging_module
from modelbridge.core.config import Settings
from modelbridge.core.logging import ColoredFormatter, JSONFormatter, get_logger, setup_logging


def _record(msg="hello %s", args=("world",), **extra):
    record = logging.LogRecord("modelbridge.test", logging.INFO, __file__, 12, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extras():
    data = json.loads(JSONFormatter().format(_record(request_id="req-1", model="gpt-test")))

    assert data["message"] == "hello world"
    assert data["level"] == "INFO"
    assert data["logger"] == "modelbridge.test"
    assert data["request_id"] == "req-1"
    assert data["model"] == "gpt-test"


def test_json_formatter_exception():
    try:
        raise ValueError("boom")
    except ValueError:
        record = logging.LogRecord("modelbridge.test", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())

    data = json.loads(JSONFormatter().format(record))

    assert data["exception"]["type"] == "ValueError"
    assert data["exception"]["message"] == "boom"


def test_colored_formatter_plain_output():
    line = ColoredFormatter(use_colors=False).format(_record(request_id="req-1"))

    assert " - INFO - modelbridge.test - hello world" in line
    assert line.endswith("| request_id=req-1")
    assert "\033[" not in line


def test_get_logger_namespacing():
    assert get_logger("modelbridge.llm.client").name == "modelbridge.llm.client"
    assert get_logger("modelbridge").name == "modelbridge"
    assert get_logger("scripts.demo").name == "modelbridge.scripts.demo"


def test_setup_logging_configures_once(monkeypatch, tmp_path):
    settings = Settings(
        _env_file=None,
        MODELBRIDGE_LOG_FORMAT="json",
        MODELBRIDGE_LOG_LEVEL="INFO",
        MODELBRIDGE_LOG_DIR=str(tmp_path),
    )
    monkeypatch.setattr(logging_module, "_LOGGING_CONFIGURED", False)
    monkeypatch.setattr(logging_module, "get_settings_instance", lambda: settings)

    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging()
        handlers = root.handlers[:]
        setup_logging()

        assert root.handlers == handlers
        assert len(handlers) == 2
        assert all(isinstance(h.formatter, JSONFormatter) for h in handlers)
        assert logging.getLogger("httpx").level == logging.WARNING
        assert (tmp_path / "modelbridge.log").exists()
    finally:
        for handler in root.handlers:
            if handler not in saved_handlers:
                handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
