"""
fieldops_engines.tracer -- ENGINE_TRACE records for pure engine calls.

Responsibility:
    ``@traced_engine`` logs one debug record per engine invocation with the
    engine name and version, a fingerprint of the inputs that identify the
    calculation, and its duration.  Two calls with the same fingerprint and
    version are expected to return the same result.

Architecture position:
    Engines -- support for the pure calculation layer.  Emits a log record
    and nothing else.

Invariants enforced:
    - Arguments are bound against the engine's signature, so a field is
      fingerprinted the same way whether it was passed by position or by
      keyword.
    - The fingerprint is the first 16 hex chars of a SHA-256 over a
      canonical rendering (mapping keys sorted, sets sorted).

Failure modes:
    - Arguments that do not bind are left for the engine call itself to
      reject with its usual TypeError.
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import time
from collections.abc import Callable, Mapping
from decimal import Decimal
from typing import Any

from fieldops_kernel.domain.values import Money
from fieldops_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")

TRACE_TYPE = "ENGINE_TRACE"


def _canonical(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, Money):
        return f"{value.amount}:{value.currency.code}"
    if isinstance(value, Decimal):
        return format(value.normalize(), "f")
    if isinstance(value, Mapping):
        return "{" + ",".join(
            f"{k}:{_canonical(v)}" for k, v in sorted(value.items(), key=lambda kv: str(kv[0]))
        ) + "}"
    if isinstance(value, (set, frozenset)):
        return "{" + ",".join(sorted(_canonical(v) for v in value)) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonical(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(fields: tuple[str, ...], arguments: Mapping[str, Any]) -> str:
    """Fingerprint the named ``fields`` of a bound argument mapping."""
    canonical = "|".join(f"{name}={_canonical(arguments.get(name))}" for name in fields)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """
    Decorate a pure engine function or method with ENGINE_TRACE logging.

    ``fingerprint_fields`` name the parameters that identify the
    calculation (for example the amount and currency being allocated).
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)
        unknown = [f for f in fingerprint_fields if f not in signature.parameters]
        if unknown:
            raise ValueError(f"{func.__qualname__} has no parameter(s) {unknown}")

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = ""
            if fingerprint_fields:
                try:
                    bound = signature.bind(*args, **kwargs)
                except TypeError:
                    return func(*args, **kwargs)
                bound.apply_defaults()
                fingerprint = compute_input_fingerprint(fingerprint_fields, bound.arguments)

            started = time.perf_counter()
            result = func(*args, **kwargs)
            _logger.debug(
                TRACE_TYPE,
                extra={
                    "trace_type": TRACE_TYPE,
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fingerprint,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 3),
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
