"""
inventory_engines.tracer -- Engine invocation tracer emitting INVENTORY_ENGINE_TRACE.

Responsibility:
    Provide a decorator (``@traced_engine``) that wraps pure engine calls
    with one structured trace record: engine name and version, a
    deterministic fingerprint of selected keyword inputs, and duration.

Architecture position:
    Engines -- infrastructure support for the pure calculation layer.
    Emits a log record only; it never mutates inputs.

Invariants enforced:
    - Fingerprints are deterministic: dict keys are sorted, sequences keep
      their order, dataclasses are canonicalized field by field, and the
      SHA-256 digest is truncated to 16 hex chars.

Usage:
    @traced_engine("fifo", "1.0", fingerprint_fields=("layers", "quantity"))
    def plan_fifo_depletion(*, product_id, layers, quantity):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import time
from collections.abc import Callable
from enum import Enum
from typing import Any

from inventory_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")


def _canonicalize(value: Any) -> str:
    """Stable string form of ``value`` for fingerprinting."""
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        return "{" + ",".join(f"{k}:{_canonicalize(v)}" for k, v in items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        fields = {
            f.name: getattr(value, f.name) for f in dataclasses.fields(value)
        }
        return type(value).__name__ + _canonicalize(fields)
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: dict[str, Any],
) -> str:
    """
    Hash the canonical form of the named keyword inputs.

    Missing fields are recorded as "null".
    """
    canonical = "|".join(
        f"{name}={_canonicalize(kwargs.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorator that emits INVENTORY_ENGINE_TRACE for a pure engine call."""

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fp = ""
            if fingerprint_fields:
                fp = compute_input_fingerprint(fingerprint_fields, kwargs)

            t0 = time.monotonic()
            result = func(*args, **kwargs)
            duration_ms = round((time.monotonic() - t0) * 1000, 2)

            _logger.debug(
                "INVENTORY_ENGINE_TRACE",
                extra={
                    "trace_type": "INVENTORY_ENGINE_TRACE",
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
