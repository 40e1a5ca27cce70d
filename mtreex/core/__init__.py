"""Core data structures of the metric tree."""

from .metrics import (
    EUCLIDEAN,
    Metric,
    MetricRegistry,
    available_metrics,
    get_metric,
    register_metric,
    resolve_metric,
)
from .node import InternalNode, LeafNode, Node, Point
from .tree import MTree, TreeStats

__all__ = [
    "EUCLIDEAN",
    "InternalNode",
    "LeafNode",
    "MTree",
    "Metric",
    "MetricRegistry",
    "Node",
    "Point",
    "TreeStats",
    "available_metrics",
    "get_metric",
    "register_metric",
    "resolve_metric",
]
