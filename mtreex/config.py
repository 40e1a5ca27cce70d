from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict

from mtreex.errors import ConfigurationError

_LOGGER = logging.getLogger("mtreex")

_SPLIT_POLICIES = {"first_coordinate", "farthest_pair"}
_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}
_DEFAULT_METRIC = "euclidean"
_DEFAULT_MAX_NODE_SIZE = 4
_DEFAULT_SPLIT_POLICY = "first_coordinate"


def _bool_from_env(value: str | None, *, default: bool) -> bool:
    if value is None:
        return default
    value = value.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_optional_int(raw: str | None) -> int | None:
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid integer value '{raw}'") from exc


def _parse_max_node_size(raw: str | None) -> int:
    value = _parse_optional_int(raw)
    if value is None:
        return _DEFAULT_MAX_NODE_SIZE
    if value < 1:
        raise ConfigurationError(f"MTREEX_MAX_NODE_SIZE must be >= 1, got {value}.")
    return value


def _parse_split_policy(value: str | None) -> str:
    if value is None or value.strip() == "":
        return _DEFAULT_SPLIT_POLICY
    policy = value.strip().lower()
    if policy not in _SPLIT_POLICIES:
        raise ConfigurationError(
            f"Unsupported split policy '{policy}'. Expected one of {sorted(_SPLIT_POLICIES)}."
        )
    return policy


def _parse_metric(value: str | None) -> str:
    name = (value or "").strip().lower() or _DEFAULT_METRIC
    from mtreex.core.metrics import available_metrics

    known = available_metrics()
    if name not in known:
        raise ConfigurationError(
            f"Unsupported metric '{name}'. Expected one of {sorted(known)}."
        )
    return name


def _parse_log_level(value: str | None) -> str:
    level = (value or "INFO").strip().upper()
    if level not in _LOG_LEVELS:
        raise ConfigurationError(
            f"Unsupported log level '{level}'. Expected one of {sorted(_LOG_LEVELS)}."
        )
    return level


@dataclass(frozen=True)
class RuntimeConfig:
    metric: str
    max_node_size: int
    split_policy: str
    check_invariants: bool
    enable_diagnostics: bool
    log_level: str

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        metric = _parse_metric(os.getenv("MTREEX_METRIC"))
        max_node_size = _parse_max_node_size(os.getenv("MTREEX_MAX_NODE_SIZE"))
        split_policy = _parse_split_policy(os.getenv("MTREEX_SPLIT_POLICY"))
        check_invariants = _bool_from_env(
            os.getenv("MTREEX_CHECK_INVARIANTS"), default=False
        )
        enable_diagnostics = _bool_from_env(
            os.getenv("MTREEX_ENABLE_DIAGNOSTICS"), default=True
        )
        log_level = _parse_log_level(os.getenv("MTREEX_LOG_LEVEL"))
        return cls(
            metric=metric,
            max_node_size=max_node_size,
            split_policy=split_policy,
            check_invariants=check_invariants,
            enable_diagnostics=enable_diagnostics,
            log_level=log_level,
        )


def _configure_logging(level: str) -> None:
    logger = logging.getLogger("mtreex")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        formatter = logging.Formatter("%(levelname)s %(name)s: %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)


@lru_cache(maxsize=None)
def runtime_config() -> RuntimeConfig:
    config = RuntimeConfig.from_env()
    _configure_logging(config.log_level)
    _LOGGER.debug("runtime config resolved: %s", config)
    return config


def reset_runtime_config_cache() -> None:
    runtime_config.cache_clear()


def describe_runtime() -> Dict[str, Any]:
    """Return a serialisable view of the active runtime configuration."""

    config = runtime_config()
    return {
        "metric": config.metric,
        "max_node_size": config.max_node_size,
        "split_policy": config.split_policy,
        "check_invariants": config.check_invariants,
        "enable_diagnostics": config.enable_diagnostics,
        "log_level": config.log_level,
    }


__all__ = [
    "RuntimeConfig",
    "runtime_config",
    "reset_runtime_config_cache",
    "describe_runtime",
]
