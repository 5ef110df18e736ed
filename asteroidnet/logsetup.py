"""Process-wide logging setup: coloured lines on a terminal, JSON otherwise."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from typing import Any, TextIO

_RESET = "\x1b[0m"
_FAINT = "\x1b[2m"
_BRIGHT_RED = "\x1b[91m"
_BRIGHT_GREEN = "\x1b[92m"
_BRIGHT_YELLOW = "\x1b[93m"

_RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "taskName",
}


def _attributes(record: logging.LogRecord) -> dict[str, Any]:
    """Return the extra key/value pairs attached to a record."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED and not key.startswith("_")
    }


def _needs_quoting(text: str) -> bool:
    return not text or any(ch.isspace() or ch in '="' for ch in text)


class ConsoleFormatter(logging.Formatter):
    """Short coloured lines: time, level, message, then key=value pairs."""

    _LEVELS = {
        logging.DEBUG: ("DBG", ""),
        logging.INFO: ("INF", _BRIGHT_GREEN),
        logging.WARNING: ("WRN", _BRIGHT_YELLOW),
        logging.ERROR: ("ERR", _BRIGHT_RED),
        logging.CRITICAL: ("ERR", _BRIGHT_RED),
    }

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        name, colour = self._LEVELS.get(record.levelno, (record.levelname[:3], ""))
        level = f"{colour}{name}{_RESET}" if colour else name
        parts = [f"{_FAINT}{stamp}{_RESET}", level, record.getMessage()]
        for key, value in _attributes(record).items():
            if isinstance(value, BaseException):
                rendered = f"{_BRIGHT_RED}{value}{_RESET}"
            else:
                text = str(value)
                rendered = json.dumps(text) if _needs_quoting(text) else text
            parts.append(f"{_FAINT}{key}={_RESET}{rendered}")
        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class JsonFormatter(logging.Formatter):
    """One JSON object per record with time, level, msg and extra fields."""

    _LEVELS = {logging.WARNING: "WARN", logging.CRITICAL: "ERROR"}

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created).astimezone().isoformat(),
            "level": self._LEVELS.get(record.levelno, record.levelname),
            "msg": record.getMessage(),
        }
        for key, value in _attributes(record).items():
            entry[key] = str(value) if isinstance(value, BaseException) else value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(stream: TextIO | None = None) -> logging.Handler:
    """Route all logging at DEBUG and above to ``stream`` (standard error by default)."""
    if stream is None:
        stream = sys.stderr
    handler = logging.StreamHandler(stream)
    isatty = getattr(stream, "isatty", None)
    if isatty is not None and isatty():
        handler.setFormatter(ConsoleFormatter())
    else:
        handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)
    return handler