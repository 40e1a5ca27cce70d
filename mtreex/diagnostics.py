from __future__ import annotations

import logging
import resource
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator

from mtreex import config as mx_config


def _cpu_user_seconds() -> float:
    return float(resource.getrusage(resource.RUSAGE_SELF).ru_utime)


def _format_fields(fields: Dict[str, Any]) -> str:
    parts = []
    for key, value in fields.items():
        if isinstance(value, float):
            parts.append(f"{key}={value:.3f}")
        else:
            parts.append(f"{key}={value}")
    return " ".join(parts)


@contextmanager
def log_operation(logger: logging.Logger, op: str, **fields: Any) -> Iterator[Dict[str, Any]]:
    """Time the wrapped block and emit a single ``op=...`` INFO record.

    The yielded dict may be updated inside the block; its contents are
    appended to the record. Nothing is logged when diagnostics are disabled
    or when the block raises.
    """

    extra: Dict[str, Any] = dict(fields)
    if not mx_config.runtime_config().enable_diagnostics:
        yield extra
        return

    wall_start = time.perf_counter()
    cpu_start = _cpu_user_seconds()
    yield extra
    wall_ms = (time.perf_counter() - wall_start) * 1e3
    cpu_ms = (_cpu_user_seconds() - cpu_start) * 1e3
    message = f"op={op} wall_ms={wall_ms:.3f} cpu_user_ms={cpu_ms:.3f}"
    if extra:
        message = f"{message} {_format_fields(extra)}"
    logger.info(message)


__all__ = ["log_operation"]
