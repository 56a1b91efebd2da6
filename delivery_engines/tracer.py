"""
delivery_engines.tracer -- DELIVERY_ENGINE_TRACE records for engine calls.

Responsibility:
    ``@traced_engine`` logs one record per call of a pure engine function:
    engine name and version, a fingerprint of selected arguments, the
    elapsed time, and the size of the result when it has one.  Two calls
    with equal fingerprinted arguments produce equal fingerprints, so a
    change-set can be tied back to the order and timestamp it came from.

Architecture position:
    Engines -- the only side effect is the log record.

Usage:
    @traced_engine("projection", "1.0", fingerprint_fields=("purchase_order_id",))
    def project_submission(groups, statuses, purchase_order_id, ...):
        ...
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import time
from collections.abc import Callable, Mapping
from dataclasses import asdict, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from delivery_kernel.logging_config import get_logger

logger = get_logger("engines.tracer")


def _canonical(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, datetime):
        return value.isoformat()
    if is_dataclass(value) and not isinstance(value, type):
        return _canonical(asdict(value))
    if isinstance(value, Mapping):
        pairs = sorted((str(k), _canonical(v)) for k, v in value.items())
        return "{" + ",".join(f"{k}:{v}" for k, v in pairs) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonical(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """First 16 hex chars of SHA-256 over ``field=value`` pairs, in field order."""
    canonical = "|".join(
        f"{field}={_canonical(arguments.get(field))}" for field in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """
    Decorate a pure engine function with DELIVERY_ENGINE_TRACE logging.

    Fingerprinted arguments are matched by parameter name whether they
    were passed positionally or by keyword.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = ""
            if fingerprint_fields:
                bound = signature.bind_partial(*args, **kwargs)
                fingerprint = compute_input_fingerprint(
                    fingerprint_fields, bound.arguments
                )

            started = time.monotonic()
            result = func(*args, **kwargs)
            elapsed_ms = round((time.monotonic() - started) * 1000, 2)

            extra: dict[str, Any] = {
                "trace_type": "DELIVERY_ENGINE_TRACE",
                "engine_name": engine_name,
                "engine_version": engine_version,
                "input_fingerprint": fingerprint,
                "duration_ms": elapsed_ms,
                "function": func.__qualname__,
            }
            if isinstance(result, (tuple, list)):
                extra["result_size"] = len(result)
            logger.info("DELIVERY_ENGINE_TRACE", extra=extra)
            return result

        return wrapper

    return decorator
