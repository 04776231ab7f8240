"""
Structured JSON logging for paybook.

Every paybook logger lives under the ``paybook`` namespace and writes one
JSON object per line:

    {"ts": "...", "level": "INFO", "logger": "paybook.modules.payroll.service",
     "message": "payroll_record_voided", "company_id": "...", "record_id": "..."}

Messages are snake_case event names; structured data travels in ``extra``.
Request-scoped identifiers (company, actor, record, journal entry) are
bound once with ``LogContext.bind`` and stamped on every line emitted
underneath.
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
from enum import Enum
from types import MappingProxyType
from typing import Any

_LOGGER_PREFIX = "paybook"

CONTEXT_FIELDS: tuple[str, ...] = (
    "correlation_id",
    "company_id",
    "actor_id",
    "record_id",
    "entry_id",
)

_EMPTY: Mapping[str, str] = MappingProxyType({})
_context: ContextVar[Mapping[str, str]] = ContextVar("paybook_log_context", default=_EMPTY)


def _merged(fields: dict[str, Any]) -> Mapping[str, str]:
    unknown = set(fields) - set(CONTEXT_FIELDS)
    if unknown:
        raise KeyError(f"Unknown log context field(s): {sorted(unknown)}")
    current = dict(_context.get())
    current.update({name: str(value) for name, value in fields.items() if value is not None})
    return MappingProxyType(current)


class LogContext:
    """
    Identifiers stamped on every log line of the current task or thread.

    Backed by a single ``ContextVar`` holding an immutable mapping, so
    threads and asyncio tasks each see their own values.  ``None`` values
    are ignored rather than clearing a field.
    """

    @staticmethod
    def set(**fields: Any) -> None:
        _context.set(_merged(fields))

    @staticmethod
    def get_all() -> dict[str, str]:
        return dict(_context.get())

    @staticmethod
    def clear() -> None:
        _context.set(_EMPTY)

    @staticmethod
    @contextmanager
    def bind(**fields: Any) -> Iterator[type["LogContext"]]:
        """Add fields for the duration of a ``with`` block; the outer values come back on exit."""
        token = _context.set(_merged(fields))
        try:
            yield LogContext
        finally:
            _context.reset(token)


# Attributes every LogRecord carries; anything else on a record came from ``extra``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _to_json(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    # Decimal, UUID and the rest become strings; Decimal keeps its exact cents
    return str(obj)


class _JSONEncoder(json.JSONEncoder):
    def default(self, obj: Any) -> Any:
        return _to_json(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    # PaybookError subclasses keep their structured data as public attributes
    for name, value in vars(exc).items():
        if name != "code" and not name.startswith("_"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: header, bound context, extras, then exception data."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for name, value in vars(record).items():
            if name not in _RECORD_ATTRS:
                payload.setdefault(name, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, cls=_JSONEncoder)


def get_logger(name: str) -> logging.Logger:
    """``get_logger("modules.payroll.service")`` -> ``paybook.modules.payroll.service``."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the ``paybook`` logger.

    Only the first call has any effect until ``reset_logging`` runs.  The
    ``paybook`` logger does not propagate, so host applications keep their
    own root configuration untouched.
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())

    paybook_logger = logging.getLogger(_LOGGER_PREFIX)
    paybook_logger.setLevel(level)
    paybook_logger.propagate = False
    paybook_logger.addHandler(handler)


def reset_logging() -> None:
    """Drop the handlers installed by ``configure_logging``.  Used by tests."""
    global _configured
    with _lock:
        _configured = False
    paybook_logger = logging.getLogger(_LOGGER_PREFIX)
    paybook_logger.handlers.clear()
    paybook_logger.setLevel(logging.WARNING)
