"""
customs_engines.tracer -- Engine invocation tracer emitting CUSTOMS_ENGINE_TRACE.

Responsibility:
    Provide a lightweight decorator (``@traced_engine``) that wraps pure
    engine invocations with structured trace logging. The trace captures
    engine_name, engine_version, input_fingerprint (deterministic SHA-256
    hash of selected inputs) and duration_ms.

Invariants enforced:
    - Fingerprints are deterministic: _canonicalize produces stable string
      representations of Decimal, Enum, dataclass, mapping and sequence
      values; mapping keys are sorted.
    - Engine purity: the decorator only reads arguments and emits a log
      record. It does not mutate inputs and its timing never reaches the
      engine's return value.

Usage:
    from customs_engines.tracer import traced_engine

    @traced_engine("valuation", "1.0", fingerprint_fields=("request", "policy"))
    def evaluate(request, policy):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import inspect
import logging
import time
from collections.abc import Callable, Mapping
from decimal import Decimal
from enum import Enum
from typing import Any

# Uses its own logger namespace; configured by the application root.
_logger = logging.getLogger("customs_kernel.engines.tracer")


def _canonicalize(value: Any) -> str:
    """Produce a stable string representation of a value for fingerprinting."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, Decimal):
        # normalize() so 1.50 and 1.5 fingerprint identically
        return str(value.normalize())
    if isinstance(value, (int, str)):
        return str(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        items = [(f.name, getattr(value, f.name)) for f in dataclasses.fields(value)]
        return (
            type(value).__name__
            + "{"
            + ",".join(f"{k}:{_canonicalize(v)}" for k, v in items)
            + "}"
        )
    if isinstance(value, Mapping):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        return "{" + ",".join(f"{k}:{_canonicalize(v)}" for k, v in items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """Compute a 16-char SHA-256 prefix over the named arguments.

    Missing fields are recorded as "null".
    """
    parts = [
        f"{name}={_canonicalize(arguments.get(name))}" for name in fingerprint_fields
    ]
    canonical = "|".join(parts)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorator that emits CUSTOMS_ENGINE_TRACE for pure engine invocations.

    Positional and keyword arguments are both bound to parameter names,
    so the fingerprint does not depend on the calling convention.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fp = ""
            if fingerprint_fields:
                bound = signature.bind_partial(*args, **kwargs)
                fp = compute_input_fingerprint(fingerprint_fields, bound.arguments)

            t0 = time.monotonic()
            result = func(*args, **kwargs)
            duration_ms = round((time.monotonic() - t0) * 1000, 2)

            _logger.info(
                "CUSTOMS_ENGINE_TRACE",
                extra={
                    "trace_type": "CUSTOMS_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fp,
                    "duration_ms": duration_ms,
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
