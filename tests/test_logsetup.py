import io
import json
import logging
import re
from datetime import datetime

import pytest

from asteroidnet.logsetup import ConsoleFormatter, JsonFormatter, configure_logging

_ANSI = re.compile(r"\x1b\[[0-9;]*m")


class _TtyStream(io.StringIO):
    def isatty(self):
        return True


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def _json_lines(stream):
    return [json.loads(line) for line in stream.getvalue().splitlines()]


def test_configure_replaces_handlers_and_enables_debug(root_logger):
    stream = io.StringIO()
    handler = configure_logging(stream)
    assert root_logger.handlers == [handler]
    assert handler.stream is stream
    assert root_logger.level == logging.DEBUG


def test_non_terminal_uses_json(root_logger):
    stream = io.StringIO()
    handler = configure_logging(stream)
    assert isinstance(handler.formatter, JsonFormatter)

    logging.getLogger("asteroidnet.test").debug("hello", extra={"count": 3})
    (entry,) = _json_lines(stream)
    assert entry["msg"] == "hello"
    assert entry["count"] == 3
    assert entry["level"] == "DEBUG"
    assert datetime.fromisoformat(entry["time"]).utcoffset() is not None


def test_json_renders_errors_as_text(root_logger):
    stream = io.StringIO()
    configure_logging(stream)
    logging.getLogger("asteroidnet.test").warning(
        "failed", extra={"error": ValueError("boom")}
    )
    (entry,) = _json_lines(stream)
    assert entry["error"] == "boom"
    assert entry["level"] == "WARN"


def test_terminal_uses_console_format(root_logger):
    stream = _TtyStream()
    handler = configure_logging(stream)
    assert isinstance(handler.formatter, ConsoleFormatter)

    key, value = "count", 3
    logging.getLogger("asteroidnet.test").info("hello", extra={key: value})
    raw = stream.getvalue().rstrip("\n")
    plain = _ANSI.sub("", raw)
    tokens = plain.split(" ")
    assert tokens[1] == "INF"
    assert tokens[2] == "hello"
    assert tokens[3] == f"{key}={value}"
    assert raw != plain


def test_console_error_value(root_logger):
    stream = _TtyStream()
    configure_logging(stream)
    message = "boom"
    logging.getLogger("asteroidnet.test").error("failed", extra={"error": ValueError(message)})
    plain = _ANSI.sub("", stream.getvalue())
    assert plain.rstrip("\n").endswith(f"error={message}")