"""
Structured logging for extbuf.

Every module logs through ``scoped_logger(scope)`` on the single ``extbuf``
logger. Call-site ``extra`` fields become record attributes: the JSON
formatter emits them under ``attributes`` (OpenTelemetry Logging Data
Model), the human formatter appends them as ``key=value`` pairs.

Usage::

    from ._logging import scoped_logger

    log = scoped_logger("buffer")
    log.warning("bad string length 2 < 6", extra={"requested": 6, "available": 2})
    log.critical("out of memory allocating 17 bytes", extra={"nbytes": 17})

Environment::

    EXTBUF_LOG_LEVEL=debug|info|warn|error|fatal|off (default: info)
    EXTBUF_LOG_FORMAT=json|human (default: human if tty, json if piped)
"""

from __future__ import annotations

import json
import logging
import os
import sys
from collections.abc import MutableMapping
from datetime import datetime, timezone
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from typing import Any

__all__ = ["logger", "setup_logging", "scoped_logger"]

# OpenTelemetry severity text per Python level
_SEVERITY = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "FATAL",
}

_OFF = logging.CRITICAL + 10

_LEVEL_NAMES = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "critical": logging.CRITICAL,
    "off": _OFF,
}

# Growth and measurement chatter (DEBUG) and failures carry a code location
_LOCATED_LEVELS = frozenset({logging.DEBUG, logging.ERROR, logging.CRITICAL})

# Attributes of a bare LogRecord; anything else arrived through ``extra``
_RECORD_FIELDS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "scope"}


def _package_version() -> str:
    try:
        return get_version("extbuf")
    except PackageNotFoundError:
        return "0.0.0"


def _scope(record: logging.LogRecord) -> str:
    """Scope set by ``scoped_logger``, else the last logger name component."""
    return getattr(record, "scope", None) or record.name.rsplit(".", 1)[-1]


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RECORD_FIELDS and not key.startswith("_")
    }


def _location(record: logging.LogRecord) -> tuple[str, int] | None:
    if record.levelno not in _LOCATED_LEVELS:
        return None
    path = record.pathname.replace(os.sep, "/")
    marker = "extbuf/"
    if marker in path:
        path = path[path.rindex(marker) + len(marker) :]
    return path, record.lineno


class JsonFormatter(logging.Formatter):
    """One OpenTelemetry log record per line."""

    def __init__(self) -> None:
        super().__init__()
        self._resource = {"service.name": "extbuf", "service.version": _package_version()}

    def format(self, record: logging.LogRecord) -> str:
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        # RFC3339 with nanosecond precision
        timestamp = dt.strftime("%Y-%m-%dT%H:%M:%S") + f".{dt.microsecond * 1000:09d}Z"

        attributes: dict[str, Any] = {"scope": _scope(record), **_extras(record)}
        location = _location(record)
        if location:
            attributes["code.filepath"], attributes["code.lineno"] = location

        return json.dumps(
            {
                "timestamp": timestamp,
                "severityText": _SEVERITY.get(record.levelno, "INFO"),
                "body": record.getMessage(),
                "attributes": attributes,
                "resource": self._resource,
            },
            separators=(",", ":"),
            default=repr,
        )


class HumanFormatter(logging.Formatter):
    """``HH:MM:SS LEVEL [scope] message key=value ... [file:line]``."""

    _RESET = "\x1b[0m"
    _CYAN = "\x1b[36m"
    _LEVEL_COLORS = {
        logging.DEBUG: "\x1b[2m",
        logging.WARNING: "\x1b[33m",
        logging.ERROR: "\x1b[31m",
        logging.CRITICAL: "\x1b[31m",
    }

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self._use_colors = use_colors

    def _paint(self, text: str, color: str | None) -> str:
        if self._use_colors and color:
            return f"{color}{text}{self._RESET}"
        return text

    def format(self, record: logging.LogRecord) -> str:
        time_str = datetime.fromtimestamp(record.created, tz=timezone.utc).strftime("%H:%M:%S")
        severity = f"{_SEVERITY.get(record.levelno, 'INFO'):<5}"

        parts = [
            time_str,
            self._paint(severity, self._LEVEL_COLORS.get(record.levelno)),
            self._paint(f"[{_scope(record)}]", self._CYAN),
            record.getMessage(),
        ]
        parts.extend(f"{key}={value}" for key, value in _extras(record).items())

        location = _location(record)
        if location:
            parts.append(self._paint(f"[{location[0]}:{location[1]}]", "\x1b[2m"))

        return " ".join(parts)


def _resolve_level(level: str | int | None) -> int:
    if level is None:
        level = os.environ.get("EXTBUF_LOG_LEVEL", "info")
    if isinstance(level, int):
        return level
    return _LEVEL_NAMES.get(level.lower(), logging.INFO)


def _create_handler(format: str | None = None) -> logging.Handler:
    """stderr handler with the requested, configured or auto-detected format."""
    fmt = (format or os.environ.get("EXTBUF_LOG_FORMAT") or "").lower()
    if not fmt:
        fmt = "human" if sys.stderr.isatty() else "json"

    handler = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(HumanFormatter(use_colors=sys.stderr.isatty()))
    return handler


logger = logging.getLogger("extbuf")


def setup_logging(level: str | int = "INFO", format: str | None = None) -> None:
    """
    Configure extbuf logging, replacing any handlers already installed.

    Parameters
    ----------
    level : str or int, default "INFO"
        Level name ("debug", "info", "warn", "error", "fatal", "off") or a
        ``logging`` constant. "off" silences even the out-of-memory
        diagnostic, which is then printed to stderr directly.

    format : str, optional
        "json" or "human". Defaults to EXTBUF_LOG_FORMAT, else human on a
        terminal and JSON otherwise.

    Examples
    --------
    ::

        >>> import extbuf
        >>> extbuf.setup_logging("debug", format="human")
    """
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.addHandler(_create_handler(format))
    logger.setLevel(_resolve_level(level))


class _ScopedLoggerAdapter(logging.LoggerAdapter):
    """Adds a fixed scope while keeping the call site's ``extra``."""

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def scoped_logger(scope: str) -> logging.LoggerAdapter:
    """Adapter on the ``extbuf`` logger tagging every record with ``scope``."""
    return _ScopedLoggerAdapter(logger, {"scope": scope})


# Leave handlers alone if the application configured them first
if not logger.handlers:
    logger.addHandler(_create_handler())
    logger.setLevel(_resolve_level(None))
