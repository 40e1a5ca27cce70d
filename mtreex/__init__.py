"""mtreex: a metric tree (M-tree) for range queries over arbitrary metrics.

Quick Start
-----------
>>> from mtreex import MTree
>>>
>>> tree = MTree(max_node_size=2)
>>> for coords in ([0, 0], [1, 0], [10, 10], [10, 11], [11, 10]):
...     _ = tree.insert(coords)
>>> len(tree.search([0, 0], 1.5))
2

Custom metrics
--------------
>>> tree = MTree(max_node_size=8, metric="manhattan")
>>> tree = MTree(max_node_size=8, metric=lambda a, b: float(abs(a - b).max()))

Classes
-------
MTree : The index; ``insert`` points, ``search`` by center and radius.
Point : Immutable coordinates plus an opaque payload.
Metric : Named distance function accepted by the tree.
"""

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

try:
    __version__ = _pkg_version("mtreex")
except PackageNotFoundError:  # pragma: no cover - running from a source checkout
    __version__ = "0.1.0"

from .core import (
    EUCLIDEAN,
    InternalNode,
    LeafNode,
    Metric,
    MetricRegistry,
    MTree,
    Point,
    TreeStats,
    available_metrics,
    get_metric,
    register_metric,
)
from .errors import ConfigurationError, DimensionMismatch, InvariantViolation, MTreeError
from .queries import bruteforce_range, range_search, range_search_sorted

__all__ = [
    "__version__",
    "MTree",
    "Point",
    "Metric",
    "MetricRegistry",
    "TreeStats",
    "LeafNode",
    "InternalNode",
    "EUCLIDEAN",
    "available_metrics",
    "get_metric",
    "register_metric",
    "range_search",
    "range_search_sorted",
    "bruteforce_range",
    "MTreeError",
    "DimensionMismatch",
    "ConfigurationError",
    "InvariantViolation",
]
