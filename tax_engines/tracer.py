"""
Engine tracing -- one TAX_ENGINE_TRACE record per engine call.

``@traced_engine`` tags a pure engine function with a name and version
and, after each successful call, logs which engine ran, how long it took
and a fingerprint of the inputs that determine its result. Two calls with
the same fingerprint and version must produce the same output, so the
trace is enough to tell whether an invoice was computed from the same
lines and rates.

The decorator never alters values. A one-shot iterator named in
``fingerprint_fields`` is read once into a tuple, and that tuple is both
hashed and handed to the engine.
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import json
import time
from collections.abc import Callable, Iterator, Mapping
from typing import Any, TypeVar

from tax_kernel.domain.tax_codes import TaxCode
from tax_kernel.logging_config import get_logger

logger = get_logger("engines.tracer")

F = TypeVar("F", bound=Callable[..., Any])

FINGERPRINT_LENGTH = 16


def _canonical(value: Any) -> Any:
    """Reduce reference data to the parts that affect a calculation."""
    if isinstance(value, TaxCode):
        return {"id": value.id, "rate": str(value.rate), "type": value.type.value}
    if isinstance(value, Mapping):
        return {str(k): _canonical(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonical(v) for v in value]
    return value


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """
    SHA-256 prefix over the named arguments.

    Arguments are serialized as canonical JSON (sorted keys). Tax codes
    contribute only id, rate and type; values JSON cannot represent, such
    as Money or LineItem, fall back to their deterministic ``str``. An
    absent argument hashes like ``None``.
    """
    selected = {name: _canonical(arguments.get(name)) for name in fingerprint_fields}
    canonical = json.dumps(selected, sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable[[F], F]:
    """
    Decorate an engine function with TAX_ENGINE_TRACE logging.

    Args:
        engine_name: Stable engine identifier, e.g. ``"line_item_tax"``.
        engine_version: Bumped whenever the engine's arithmetic changes.
        fingerprint_fields: Parameter names hashed into the fingerprint,
            whether passed positionally, by keyword or left at their
            default.

    A call that raises is not traced; the exception propagates unchanged.
    """

    def decorator(func: F) -> F:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = ""
            if fingerprint_fields:
                bound = signature.bind(*args, **kwargs)
                bound.apply_defaults()
                for name in fingerprint_fields:
                    if isinstance(bound.arguments.get(name), Iterator):
                        bound.arguments[name] = tuple(bound.arguments[name])
                fingerprint = compute_input_fingerprint(fingerprint_fields, bound.arguments)
                args, kwargs = bound.args, bound.kwargs

            started = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed_ms = (time.perf_counter() - started) * 1000

            logger.info("TAX_ENGINE_TRACE", extra={
                "trace_type": "TAX_ENGINE_TRACE",
                "engine_name": engine_name,
                "engine_version": engine_version,
                "input_fingerprint": fingerprint,
                "duration_ms": round(elapsed_ms, 3),
                "function": func.__qualname__,
            })
            return result

        wrapper.engine_name = engine_name  # type: ignore[attr-defined]
        wrapper.engine_version = engine_version  # type: ignore[attr-defined]
        return wrapper  # type: ignore[return-value]

    return decorator
