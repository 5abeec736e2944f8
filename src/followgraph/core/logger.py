"""
Structured logging for engine operations.

Every component logs an event name plus key=value context, e.g.
``query_completed relays=4 answered=3 events=37``. Context that applies to
a whole operation (the viewer being scored, the identity being resolved)
is attached once with [Logger.bind()][followgraph.core.logger.Logger.bind]
instead of being repeated on every call.

Context travels on the stdlib ``LogRecord`` in the ``structured_kv``
extra; rendering is the formatter's job:

- [StructuredFormatter][followgraph.core.logger.StructuredFormatter]:
  ``level name message key=value ...`` for terminals.
- [JsonFormatter][followgraph.core.logger.JsonFormatter]: one JSON object
  per line for log shippers.

The CLI installs one of them on the root handler, so plain
``logging.getLogger()`` calls from the nips and utils layers share the
same output shape.

Examples:
    ```python
    from followgraph.core.logger import Logger

    logger = Logger("scoring").bind(viewer=pubkey)
    logger.info("interactions_scored", contacts=120, nonzero=17)
    # info followgraph.scoring interactions_scored viewer=3bf0... contacts=120 nonzero=17
    ```
"""

from __future__ import annotations

import datetime
import json
import logging
from collections.abc import Set
from typing import Any


MAX_VALUE_LENGTH = 1000


def render_value(value: Any) -> str:
    """Render one context value as text.

    Lists, tuples and sets (e.g. a relay set) are comma-joined so they stay
    a single token; everything else goes through ``str()`` (``Relay``
    renders as its URL).
    """
    if isinstance(value, (list, tuple, Set)):
        return ",".join(str(item) for item in value)
    return str(value)


def format_kv_pairs(
    kwargs: dict[str, Any],
    max_value_length: int | None = MAX_VALUE_LENGTH,
    prefix: str = " ",
) -> str:
    """Format a dictionary as space-separated key=value pairs.

    Values longer than ``max_value_length`` are truncated. Values containing
    whitespace, equals signs, or quotes are escaped and quoted.

    Returns:
        Formatted string, e.g. ' key1=value1 key2="value with spaces"'.
        Returns empty string if kwargs is empty.
    """
    if not kwargs:
        return ""

    parts = []
    for k, v in kwargs.items():
        s = render_value(v)
        if max_value_length and len(s) > max_value_length:
            s = s[:max_value_length] + f"...<truncated {len(s) - max_value_length} chars>"
        if not s or any(c in s for c in " =\"'"):
            escaped = s.replace("\\", "\\\\").replace('"', '\\"')
            parts.append(f'{k}="{escaped}"')
        else:
            parts.append(f"{k}={s}")

    return prefix + " ".join(parts)


class StructuredFormatter(logging.Formatter):
    """Formats all log records as ``level name message key=value ...``."""

    def format(self, record: logging.LogRecord) -> str:
        base = f"{record.levelname.lower()} {record.name} {record.getMessage()}"
        base += format_kv_pairs(getattr(record, "structured_kv", {}))
        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)
        return base


class JsonFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects.

    Context keys are merged at the top level next to ``timestamp``,
    ``level``, ``logger`` and ``message``; sequence values become JSON
    arrays of strings.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.datetime.fromtimestamp(record.created, datetime.UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for k, v in getattr(record, "structured_kv", {}).items():
            if isinstance(v, (list, tuple, Set)):
                payload[k] = [str(item) for item in v]
            elif isinstance(v, (bool, int, float)) or v is None:
                payload[k] = v
            else:
                payload[k] = str(v)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


class Logger:
    """Named logger under the ``followgraph.`` namespace with bound context.

    Keyword arguments passed to the log methods are merged over the bound
    context and attached to the record.
    """

    def __init__(self, name: str, **context: Any) -> None:
        self._logger = logging.getLogger(
            name if name.startswith("followgraph.") else f"followgraph.{name}"
        )
        self._context = context

    @property
    def name(self) -> str:
        return self._logger.name

    @property
    def context(self) -> dict[str, Any]:
        return dict(self._context)

    def bind(self, **context: Any) -> Logger:
        """Return a logger with the same name and *context* added to every record."""
        return Logger(self._logger.name, **{**self._context, **context})

    def _log(self, level: int, msg: str, kwargs: dict[str, Any], *, exc_info: bool = False) -> None:
        if not self._logger.isEnabledFor(level):
            return
        fields = {**self._context, **kwargs}
        self._logger.log(level, msg, extra={"structured_kv": fields}, exc_info=exc_info)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, kwargs)

    def exception(self, msg: str, **kwargs: Any) -> None:
        """Log at ERROR level with the current exception's traceback."""
        self._log(logging.ERROR, msg, kwargs, exc_info=True)
