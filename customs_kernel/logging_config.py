"""
Structured JSON logging for the customs kernel.

Every record under the ``customs_kernel`` logger namespace is written as
one JSON object per line:

    {"ts": ..., "level": "INFO", "logger": "customs_kernel.engines.valuation",
     "message": "valuation_completed", "declaration_ref": "DEC-001",
     "policy_id": "CM-GUCE-2024-v1@v1", "routing_destination": "SGS", ...}

Declaration context:
    ``LogContext.bind(declaration_ref=..., policy_id=...)`` tags every
    record emitted inside the block. Batch re-rating binds the policy once
    and each declaration reference per item.

Errors:
    A record logged with ``exc_info`` carries an ``error`` object. For
    kernel errors it holds the machine-readable ``code`` and the
    exception's structured details (``field``, ``line_index``,
    ``rate_value`` ...); these are expected business outcomes, so no
    traceback is attached. Any other exception also gets a traceback.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

from customs_kernel.domain.values import Money
from customs_kernel.exceptions import CustomsKernelError

# ---------------------------------------------------------------------------
# Declaration context
# ---------------------------------------------------------------------------

_context: ContextVar[Mapping[str, str]] = ContextVar("customs_log_context", default={})


class LogContext:
    """Context-local fields added to every record (thread and async safe)."""

    @staticmethod
    def get_all() -> dict[str, str]:
        return dict(_context.get())

    @staticmethod
    def clear() -> None:
        _context.set({})

    @staticmethod
    @contextmanager
    def bind(
        *,
        declaration_ref: str | None = None,
        policy_id: str | None = None,
    ) -> Iterator[None]:
        """Add fields for the duration of the block; the outer values come back on exit."""
        fields = {
            key: val
            for key, val in (("declaration_ref", declaration_ref), ("policy_id", policy_id))
            if val is not None
        }
        token = _context.set({**_context.get(), **fields})
        try:
            yield
        finally:
            _context.reset(token)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


def _to_json(obj: Any) -> Any:
    if isinstance(obj, Money):
        return {"amount": str(obj.amount), "currency": obj.currency.code}
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    if isinstance(obj, Path):
        return obj.as_posix()
    return str(obj)


def _error_payload(exc: BaseException) -> dict[str, Any]:
    error: dict[str, Any] = {"type": type(exc).__name__, "message": str(exc)}
    if isinstance(exc, CustomsKernelError):
        error["code"] = exc.code
        error.update(exc.details())
    return error


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_context.get())
        payload.update(
            (key, val) for key, val in vars(record).items()
            if key not in _STDLIB_KEYS and key not in payload
        )

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            payload["error"] = _error_payload(exc)
            if not isinstance(exc, CustomsKernelError):
                payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_to_json)


# ---------------------------------------------------------------------------
# Logger factory and initialization
# ---------------------------------------------------------------------------

_LOGGER_PREFIX = "customs_kernel"

_configured = False
_lock = threading.Lock()


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the customs_kernel namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach one JSON handler to the customs_kernel logger. Later calls are no-ops."""
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    h.setFormatter(StructuredFormatter())

    root_logger = logging.getLogger(_LOGGER_PREFIX)
    root_logger.setLevel(level.upper() if isinstance(level, str) else level)
    root_logger.propagate = False
    root_logger.addHandler(h)


def reset_logging() -> None:
    """Reset logging configuration. FOR TESTING ONLY."""
    global _configured
    with _lock:
        _configured = False
    logger = logging.getLogger(_LOGGER_PREFIX)
    logger.handlers.clear()
    logger.setLevel(logging.WARNING)
    logger.propagate = True
