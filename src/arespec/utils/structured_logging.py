r"""Structured logging utilities for machine-readable log output.

Logging in arespec is plain ``logging`` with module-level loggers. This
module adds an opt-in JSON formatter and a request ID context variable,
so log records of related requests can be grouped by log aggregation
systems.

Example:
    Enable structured logging for arespec:

    ```python
    import logging
    from arespec.utils.structured_logging import StructuredFormatter, set_request_id

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())

    logger = logging.getLogger("arespec")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    set_request_id("checkout-42")
    ```

"""

from __future__ import annotations

__all__ = [
    "StructuredFormatter",
    "clear_request_id",
    "get_request_id",
    "log_structured",
    "set_request_id",
]

import contextvars
import json
import logging
import time
from typing import Any

# Request ID of the current context (thread-safe and async-safe)
_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "arespec_request_id", default=None
)

# Attributes every LogRecord carries; anything else came from ``extra``
_RECORD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def get_request_id() -> str | None:
    """Get the request ID of the current context.

    Example:
        ```pycon
        >>> from arespec.utils.structured_logging import get_request_id, set_request_id
        >>> set_request_id("req-123")
        >>> get_request_id()
        'req-123'

        ```
    """
    return _request_id.get()


def set_request_id(request_id: str) -> None:
    """Set the request ID of the current context.

    Args:
        request_id: The ID attached to every structured log record emitted
            from this context.
    """
    _request_id.set(request_id)


def clear_request_id() -> None:
    """Clear the request ID of the current context."""
    _request_id.set(None)


class StructuredFormatter(logging.Formatter):
    r"""JSON formatter for structured logging.

    Each record becomes one JSON object with the fields ``timestamp``
    (ISO 8601, UTC), ``level``, ``logger``, ``message``, ``module``,
    ``function`` and ``line``, plus ``request_id`` when set, ``exception``
    when the record carries exception info, and every field passed
    through ``extra``. Values that are not JSON-serializable are rendered
    with ``repr``.

    Example:
        ```pycon
        >>> import json
        >>> import logging
        >>> from io import StringIO
        >>> from arespec.utils.structured_logging import StructuredFormatter
        >>> stream = StringIO()
        >>> handler = logging.StreamHandler(stream)
        >>> handler.setFormatter(StructuredFormatter())
        >>> logger = logging.getLogger("doctest_structured")
        >>> logger.addHandler(handler)
        >>> logger.setLevel(logging.INFO)
        >>> logger.info("Request sent", extra={"path": "/users"})
        >>> json.loads(stream.getvalue())["path"]
        '/users'

        ```
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        request_id = get_request_id()
        if request_id is not None:
            log_data["request_id"] = request_id
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRIBUTES:
                log_data[key] = value
        return json.dumps(log_data, default=repr)

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: N802
        return (
            time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created))
            + f".{int(record.msecs):03d}Z"
        )


def log_structured(logger: logging.Logger, level: int, message: str, **extra: Any) -> None:
    """Log a message with structured fields.

    Args:
        logger: Logger to use.
        level: Log level (e.g., ``logging.DEBUG``).
        message: Log message.
        **extra: Fields included in the JSON output of
            ``StructuredFormatter``.
    """
    logger.log(level, message, extra=extra)
