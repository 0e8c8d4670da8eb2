"""Logging helpers shared across the project.

Modules log through ``logging.getLogger(__name__)`` and attach structured
fields with ``extra=extra_context(...)``. ``configure_logging`` installs a
single root handler that renders those fields either as ``key=value`` pairs
or as JSON lines.
"""
from __future__ import annotations

import json
import logging
import os
import sys
import time
import urllib.parse
from typing import Any, Dict, Optional

from constants import Constants

# Attribute name used to carry structured fields on LogRecord instances
_CONTEXT_ATTR = "ff_context"
_HANDLER_NAME = "feedfetch-console"


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra=`` mapping carrying structured fields; None values are dropped."""
    return {_CONTEXT_ATTR: {k: v for k, v in fields.items() if v is not None}}


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records would be emitted by ``logger``."""
    return logger.isEnabledFor(logging.DEBUG)


def safe_url(url: Optional[str]) -> str:
    """Return ``url`` without credentials, query string or fragment."""
    if not url:
        return ""
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return "<invalid-url>"
    netloc = parts.hostname or ""
    if parts.port:
        netloc = f"{netloc}:{parts.port}"
    return urllib.parse.urlunsplit((parts.scheme, netloc, parts.path, "", ""))


class Timer:
    """Context manager measuring elapsed wall time."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)


class ContextFormatter(logging.Formatter):
    """Human-readable formatter appending structured fields as key=value."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        context = getattr(record, _CONTEXT_ATTR, None)
        if not context:
            return base
        pairs = " ".join(f"{k}={v}" for k, v in context.items())
        return f"{base} [{pairs}]"


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = getattr(record, _CONTEXT_ATTR, None)
        if context:
            payload.update(context)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging() -> None:
    """Install the console handler on the root logger.

    Level comes from FEEDFETCH_LOG_LEVEL (default INFO) and format from
    FEEDFETCH_LOG_FORMAT ("text" or "json"). Calling it again replaces the
    previously installed handler instead of stacking another one.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    if os.environ.get("FEEDFETCH_LOG_FORMAT", "text").lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(ContextFormatter(Constants.LOG_FORMAT))
    root.addHandler(handler)

    level_name = os.environ.get("FEEDFETCH_LOG_LEVEL", "INFO").upper()
    root.setLevel(getattr(logging, level_name, logging.INFO))
