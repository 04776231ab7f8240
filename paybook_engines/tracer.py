"""
paybook_engines.tracer -- one debug log line per engine call.

``@traced_engine(name, version, fingerprint_fields=...)`` records which
engine ran, at what version, over which inputs (as a short SHA-256
fingerprint) and how long it took.  Two calls with equal inputs log the
same fingerprint, which is how a recomputed payroll record can be matched
to the run that first produced it.

The decorator only logs.  Return values and exceptions pass through
untouched, and a call that raises logs nothing.

    @traced_engine("payroll", "1.0", fingerprint_fields=("payroll_input",))
    def calculate_payroll(payroll_input, rules): ...
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import time
from collections.abc import Callable, Mapping
from typing import Any

from paybook_kernel.logging_config import get_logger

logger = get_logger("engines.tracer")

FINGERPRINT_LENGTH = 16


def _stable_repr(value: Any) -> str:
    """``repr`` with mappings in key order, so dict ordering never changes a fingerprint."""
    if value is None:
        return "null"
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        pairs = sorted((str(k), _stable_repr(v)) for k, v in value.items())
        return "{" + ",".join(f"{k}:{v}" for k, v in pairs) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(map(_stable_repr, value)) + "]"
    return repr(value)


def compute_input_fingerprint(fields: tuple[str, ...], arguments: Mapping[str, Any]) -> str:
    """Hex SHA-256 prefix over ``name=value`` for each field; absent fields count as null."""
    text = "|".join(f"{name}={_stable_repr(arguments.get(name))}" for name in fields)
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            # Positional and keyword calls bind to the same parameter names
            arguments = signature.bind(*args, **kwargs).arguments if fingerprint_fields else {}
            started = time.perf_counter()
            result = func(*args, **kwargs)
            logger.debug(
                "engine_trace",
                extra={
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": (
                        compute_input_fingerprint(fingerprint_fields, arguments)
                        if fingerprint_fields else ""
                    ),
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
