from __future__ import annotations

import numbers
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Sequence, Tuple, Union

import numpy as np

from mtreex import config as mx_config
from mtreex.algo.split import get_split_policy
from mtreex.core.metrics import Metric, resolve_metric
from mtreex.core.node import InternalNode, LeafNode, Node, Point
from mtreex.diagnostics import log_operation
from mtreex.errors import ConfigurationError, DimensionMismatch, InvariantViolation
from mtreex.logging import get_logger
from mtreex.queries.range import range_search, range_search_sorted

LOGGER = get_logger("core.tree")

_VALIDATE_RTOL = 1e-9
_VALIDATE_ATOL = 1e-9

MetricLike = Union[Metric, str, Callable[[Any, Any], float], None]


@dataclass(frozen=True)
class TreeStats:
    points: int
    leaves: int
    internal_nodes: int
    depth: int
    splits: int
    dimension: int | None


def _validate_max_node_size(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ConfigurationError(f"max_node_size must be an integer, got {value!r}.")
    if value < 1:
        raise ConfigurationError(f"max_node_size must be >= 1, got {value}.")
    return int(value)


class MTree:
    """Metric tree answering range queries over points of a fixed dimension.

    Leaves hold up to ``max_node_size`` points; an overflowing leaf is split
    into two leaves and takes their place as an internal node. Every node
    keeps the mean of its subtree as centroid and a covering radius bounding
    every point below it, refreshed along the whole insertion path.

    Args:
        max_node_size: leaf capacity (>= 1). Defaults to ``MTREEX_MAX_NODE_SIZE``.
        metric: a :class:`Metric`, a registered metric name or a plain
            ``(a, b) -> float`` callable. Defaults to ``MTREEX_METRIC``.
        split_policy: ``"first_coordinate"`` or ``"farthest_pair"``.
            Defaults to ``MTREEX_SPLIT_POLICY``.
        check_invariants: verify covering radii while searching and raise
            :class:`InvariantViolation` on a stale bound.
    """

    def __init__(
        self,
        max_node_size: int | None = None,
        metric: MetricLike = None,
        *,
        split_policy: str | None = None,
        check_invariants: bool | None = None,
    ) -> None:
        config = mx_config.runtime_config()
        if max_node_size is None:
            max_node_size = config.max_node_size
        self.max_node_size = _validate_max_node_size(max_node_size)
        self.metric = resolve_metric(metric)
        self.split_policy = (split_policy or config.split_policy).strip().lower()
        self._split_entries = get_split_policy(self.split_policy)
        if check_invariants is None:
            check_invariants = config.check_invariants
        self.check_invariants = bool(check_invariants)
        self.root: Node = LeafNode()
        self._dimension: int | None = None
        self._size = 0
        self._splits = 0

    @classmethod
    def from_points(
        cls,
        points: Iterable[Point | Sequence[float]],
        max_node_size: int | None = None,
        metric: MetricLike = None,
        **kwargs: Any,
    ) -> "MTree":
        tree = cls(max_node_size, metric, **kwargs)
        with log_operation(LOGGER, "build", max_node_size=tree.max_node_size) as extra:
            tree.insert_many(points)
            extra["points"] = len(tree)
            extra["splits"] = tree._splits
        return tree

    @property
    def dimension(self) -> int | None:
        return self._dimension

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[Point]:
        return self.root.iter_points()

    def __repr__(self) -> str:
        return (
            f"MTree(points={self._size}, dimension={self._dimension}, "
            f"max_node_size={self.max_node_size}, metric={self.metric.name!r})"
        )

    # ---------- insertion ----------

    def insert(self, point: Point | Sequence[float], payload: Any = None) -> Point:
        """Store ``point`` and return the stored :class:`Point`.

        Raw coordinates are wrapped together with ``payload``. The first
        insertion fixes the tree's dimension.
        """

        if isinstance(point, Point):
            if payload is not None:
                raise ValueError("payload must not be given together with a Point.")
        else:
            point = Point(point, payload)
        if point.dimension == 0:
            raise ValueError("Points need at least one coordinate.")
        self._check_dimension(point.dimension, operation="insert")

        path: List[InternalNode] = []
        node = self.root
        while not node.is_leaf:
            path.append(node)
            node = self._choose_subtree(node, point.coords)

        node.entries.append(point)
        if len(node.entries) > self.max_node_size:
            self._split(node, path)
        else:
            node.refresh(self.metric)
        self._refresh_path(path)

        if self._dimension is None:
            self._dimension = point.dimension
        self._size += 1
        return point

    def insert_many(self, points: Iterable[Point | Sequence[float]]) -> List[Point]:
        return [self.insert(point) for point in points]

    def _choose_subtree(self, node: InternalNode, coords: np.ndarray) -> Node:
        best = node.children[0]
        best_dist = self.metric.distance(best.centroid, coords)
        for child in node.children[1:]:
            dist = self.metric.distance(child.centroid, coords)
            if dist < best_dist:
                best, best_dist = child, dist
        return best

    def _split(self, leaf: LeafNode, path: List[InternalNode]) -> None:
        left_entries, right_entries = self._split_entries(leaf.entries, self.metric)
        left = LeafNode(entries=list(left_entries))
        right = LeafNode(entries=list(right_entries))
        left.refresh(self.metric)
        right.refresh(self.metric)
        internal = InternalNode(children=[left, right])
        internal.refresh(self.metric)

        if path:
            parent = path[-1]
            slot = next(i for i, child in enumerate(parent.children) if child is leaf)
            parent.children[slot] = internal
        else:
            self.root = internal
        leaf.entries = []
        self._splits += 1
        LOGGER.debug(
            "split leaf at depth %d into %d/%d entries (policy=%s)",
            len(path),
            len(left.entries),
            len(right.entries),
            self.split_policy,
        )

    def _refresh_path(self, path: List[InternalNode]) -> None:
        for ancestor in reversed(path):
            ancestor.refresh(self.metric)

    def _check_dimension(self, actual: int, *, operation: str) -> None:
        if self._dimension is not None and actual != self._dimension:
            raise DimensionMismatch(self._dimension, actual, operation=operation)

    # ---------- queries ----------

    def _coerce_query(self, center: Sequence[float]) -> np.ndarray | None:
        query = np.asarray(center, dtype=np.float64)
        if query.ndim != 1:
            raise ValueError(f"Query center must be a 1-D vector, got shape {query.shape}.")
        self._check_dimension(int(query.shape[0]), operation="search")
        if self._dimension is None:
            return None
        return query

    def search(
        self,
        center: Sequence[float],
        radius: float,
        *,
        return_distances: bool = False,
    ) -> List[Point] | Tuple[List[Point], List[float]]:
        """Points within ``radius`` of ``center`` in no particular order."""

        return range_search(self, center, radius, return_distances=return_distances)

    def search_sorted(self, center: Sequence[float], radius: float) -> List[Tuple[Point, float]]:
        return range_search_sorted(self, center, radius)

    # ---------- introspection ----------

    def iter_nodes(self) -> Iterator[Tuple[Node, int]]:
        """Yield ``(node, depth)`` pairs depth-first, root first."""

        stack: List[Tuple[Node, int]] = [(self.root, 0)]
        while stack:
            node, depth = stack.pop()
            yield node, depth
            if not node.is_leaf:
                stack.extend((child, depth + 1) for child in reversed(node.children))

    def stats(self) -> TreeStats:
        leaves = internal = depth = 0
        for node, level in self.iter_nodes():
            depth = max(depth, level)
            if node.is_leaf:
                leaves += 1
            else:
                internal += 1
        return TreeStats(
            points=self._size,
            leaves=leaves,
            internal_nodes=internal,
            depth=depth,
            splits=self._splits,
            dimension=self._dimension,
        )

    def validate(self) -> None:
        """Recompute every node bottom-up and compare with the stored values.

        Raises :class:`InvariantViolation` when a centroid or covering radius
        is stale, a leaf exceeds capacity, or an internal node does not own
        exactly two children.
        """

        fresh: Dict[int, Tuple[int, np.ndarray | None, float]] = {}
        order = [node for node, _ in self.iter_nodes()]
        for node in reversed(order):
            if node.is_leaf:
                if len(node.entries) > self.max_node_size:
                    raise InvariantViolation(
                        f"Leaf holds {len(node.entries)} entries, capacity is {self.max_node_size}."
                    )
                if not node.entries:
                    if node is not self.root:
                        raise InvariantViolation("Non-root leaf is empty.")
                    fresh[id(node)] = (0, None, 0.0)
                    continue
                coords = np.stack([entry.coords for entry in node.entries])
                centroid = coords.mean(axis=0)
                radius = max(self.metric.distance(centroid, row) for row in coords)
                count = len(node.entries)
                total = coords.sum(axis=0)
            else:
                if len(node.children) != 2:
                    raise InvariantViolation(
                        f"Internal node owns {len(node.children)} children, expected 2."
                    )
                summaries = [fresh[id(child)] for child in node.children]
                count = sum(summary[0] for summary in summaries)
                total = np.sum([summary[1] for summary in summaries], axis=0)
                centroid = total / count
                radius = max(
                    self.metric.distance(centroid, summary[1] / summary[0]) + summary[2]
                    for summary in summaries
                )
            self._compare(node, count, centroid, radius)
            fresh[id(node)] = (count, total, radius)

        if fresh[id(self.root)][0] != self._size:
            raise InvariantViolation(
                f"Tree reports {self._size} points but holds {fresh[id(self.root)][0]}."
            )

    @staticmethod
    def _compare(node: Node, count: int, centroid: np.ndarray, radius: float) -> None:
        if node.count != count:
            raise InvariantViolation(f"Stored count {node.count} differs from actual {count}.")
        if not np.allclose(node.centroid, centroid, rtol=_VALIDATE_RTOL, atol=_VALIDATE_ATOL):
            raise InvariantViolation(
                f"Stale centroid {node.centroid!r}, expected {centroid!r}."
            )
        if not np.isclose(node.covering_radius, radius, rtol=_VALIDATE_RTOL, atol=_VALIDATE_ATOL):
            raise InvariantViolation(
                f"Stale covering radius {node.covering_radius!r}, expected {radius!r}."
            )


__all__ = ["MTree", "TreeStats"]
