from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

import numpy as np

from mtreex import config as mx_config

ArrayLike = Any


class PointwiseKernel(Protocol):
    def __call__(self, lhs: np.ndarray, rhs: np.ndarray) -> float:
        ...


class PairwiseKernel(Protocol):
    def __call__(self, lhs: np.ndarray, rhs: np.ndarray) -> np.ndarray:
        ...


@dataclass(frozen=True)
class Metric:
    """Distance function used by the tree for routing, pruning and matching.

    ``pointwise_kernel`` compares two 1-D vectors. ``pairwise_kernel`` is an
    optional vectorised form comparing one vector against the rows of a 2-D
    array; when absent it is derived from the pointwise kernel.
    """

    name: str
    pointwise_kernel: PointwiseKernel
    pairwise_kernel: Optional[PairwiseKernel] = None

    def __call__(self, lhs: ArrayLike, rhs: ArrayLike) -> float:
        return self.distance(lhs, rhs)

    def distance(self, lhs: ArrayLike, rhs: ArrayLike) -> float:
        lhs_arr = np.asarray(lhs, dtype=np.float64)
        rhs_arr = np.asarray(rhs, dtype=np.float64)
        if lhs_arr.shape != rhs_arr.shape:
            raise ValueError("Pointwise metric operands must have identical shapes.")
        return float(self.pointwise_kernel(lhs_arr, rhs_arr))

    def to_many(self, query: ArrayLike, rows: ArrayLike) -> np.ndarray:
        """Distances from ``query`` to every row of ``rows``."""

        query_arr = np.asarray(query, dtype=np.float64)
        rows_arr = np.asarray(rows, dtype=np.float64)
        if rows_arr.ndim == 1:
            rows_arr = rows_arr[None, :]
        if rows_arr.shape[0] == 0:
            return np.zeros(0, dtype=np.float64)
        if self.pairwise_kernel is not None:
            return np.asarray(self.pairwise_kernel(query_arr, rows_arr), dtype=np.float64)
        return np.fromiter(
            (self.pointwise_kernel(query_arr, row) for row in rows_arr),
            dtype=np.float64,
            count=rows_arr.shape[0],
        )


class MetricRegistry:
    """Minimal registry for runtime-selectable metrics."""

    def __init__(self) -> None:
        self._metrics: Dict[str, Metric] = {}

    def register(self, metric: Metric, *, overwrite: bool = False) -> None:
        name = metric.name.lower()
        if not overwrite and name in self._metrics:
            raise ValueError(f"Metric '{metric.name}' already registered.")
        self._metrics[name] = metric

    def get(self, name: str) -> Metric:
        key = name.lower()
        if key not in self._metrics:
            raise KeyError(f"Metric '{name}' not registered.")
        return self._metrics[key]

    def names(self) -> Tuple[str, ...]:
        return tuple(sorted(self._metrics.keys()))


def _euclidean_pointwise(lhs: np.ndarray, rhs: np.ndarray) -> float:
    diff = lhs - rhs
    return float(np.sqrt(np.sum(diff * diff)))


def _euclidean_pairwise(query: np.ndarray, rows: np.ndarray) -> np.ndarray:
    diff = rows - query[None, :]
    return np.sqrt(np.sum(diff * diff, axis=-1))


def _manhattan_pointwise(lhs: np.ndarray, rhs: np.ndarray) -> float:
    return float(np.sum(np.abs(lhs - rhs)))


def _manhattan_pairwise(query: np.ndarray, rows: np.ndarray) -> np.ndarray:
    return np.sum(np.abs(rows - query[None, :]), axis=-1)


def _chebyshev_pointwise(lhs: np.ndarray, rhs: np.ndarray) -> float:
    if lhs.size == 0:
        return 0.0
    return float(np.max(np.abs(lhs - rhs)))


def _chebyshev_pairwise(query: np.ndarray, rows: np.ndarray) -> np.ndarray:
    if rows.shape[1] == 0:
        return np.zeros(rows.shape[0], dtype=np.float64)
    return np.max(np.abs(rows - query[None, :]), axis=-1)


def _load_runtime_registry() -> MetricRegistry:
    registry = MetricRegistry()
    registry.register(Metric("euclidean", _euclidean_pointwise, _euclidean_pairwise))
    registry.register(Metric("manhattan", _manhattan_pointwise, _manhattan_pairwise))
    registry.register(Metric("chebyshev", _chebyshev_pointwise, _chebyshev_pairwise))
    return registry


_REGISTRY = _load_runtime_registry()

EUCLIDEAN = _REGISTRY.get("euclidean")


def get_metric(name: str | None = None) -> Metric:
    """Return a registered metric, defaulting to the runtime-selected metric."""

    if name is None:
        name = mx_config.runtime_config().metric
    return _REGISTRY.get(name)


def register_metric(metric: Metric, *, overwrite: bool = False) -> None:
    _REGISTRY.register(metric, overwrite=overwrite)


def available_metrics() -> Tuple[str, ...]:
    return _REGISTRY.names()


def resolve_metric(metric: Metric | str | Callable[[Any, Any], float] | None) -> Metric:
    """Coerce a metric name, ``Metric`` or plain two-argument callable."""

    if metric is None or isinstance(metric, str):
        return get_metric(metric)
    if isinstance(metric, Metric):
        return metric
    if callable(metric):
        name = getattr(metric, "__name__", "custom")
        return Metric(name=name, pointwise_kernel=metric)
    raise TypeError(f"Cannot interpret {metric!r} as a distance metric.")


__all__ = [
    "EUCLIDEAN",
    "Metric",
    "MetricRegistry",
    "available_metrics",
    "get_metric",
    "register_metric",
    "resolve_metric",
]
