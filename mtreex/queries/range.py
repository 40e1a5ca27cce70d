from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Sequence, Tuple

import numpy as np

from mtreex.core.metrics import Metric
from mtreex.core.node import Node, Point
from mtreex.diagnostics import log_operation
from mtreex.errors import InvariantViolation
from mtreex.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - typing only
    from mtreex.core.tree import MTree


LOGGER = get_logger("queries.range")

# Slack on the pruning test only; leaf matches are always compared exactly.
_PRUNE_TOLERANCE = 1e-9


def _validate_radius(radius: Any) -> float:
    try:
        value = float(radius)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Search radius must be a real number, got {radius!r}.") from exc
    if not value >= 0.0:
        raise ValueError(f"Search radius must be non-negative, got {radius!r}.")
    return value


def _check_leaf(node: Node, metric: Metric) -> None:
    bound = node.covering_radius + _PRUNE_TOLERANCE
    for entry in node.entries:
        if metric.distance(node.centroid, entry.coords) > bound:
            raise InvariantViolation(
                f"Leaf covering radius {node.covering_radius:.6g} does not bound entry {entry!r}."
            )


def _check_child(parent: Node, child: Node, metric: Metric) -> None:
    reach = metric.distance(parent.centroid, child.centroid) + child.covering_radius
    if reach > parent.covering_radius + _PRUNE_TOLERANCE:
        raise InvariantViolation(
            f"Internal covering radius {parent.covering_radius:.6g} does not bound child "
            f"ball of reach {reach:.6g}."
        )


def _collect(
    root: Node,
    center: np.ndarray,
    radius: float,
    metric: Metric,
    *,
    check_invariants: bool,
) -> Tuple[List[Point], List[float], int]:
    matches: List[Point] = []
    distances: List[float] = []
    visited = 0
    stack: List[Node] = [root]
    while stack:
        node = stack.pop()
        visited += 1
        if node.is_leaf:
            if not node.entries:
                continue
            if check_invariants:
                _check_leaf(node, metric)
            coords = np.stack([entry.coords for entry in node.entries])
            dists = metric.to_many(center, coords)
            for entry, dist in zip(node.entries, dists):
                if dist <= radius:
                    matches.append(entry)
                    distances.append(float(dist))
            continue
        for child in reversed(node.children):
            if check_invariants:
                _check_child(node, child, metric)
            lower_bound = metric.distance(child.centroid, center) - child.covering_radius
            if lower_bound <= radius + _PRUNE_TOLERANCE:
                stack.append(child)
    return matches, distances, visited


def range_search(
    tree: "MTree",
    center: Sequence[float],
    radius: float,
    *,
    return_distances: bool = False,
) -> List[Point] | Tuple[List[Point], List[float]]:
    """Return every stored point within ``radius`` of ``center``.

    Subtrees whose covering ball cannot meet the query ball are skipped. The
    result carries no ordering guarantee; use :func:`range_search_sorted` when
    callers need nearest-first output.
    """

    value = _validate_radius(radius)
    query = tree._coerce_query(center)
    if query is None:
        return ([], []) if return_distances else []

    with log_operation(LOGGER, "range_search", radius=value) as extra:
        matches, distances, visited = _collect(
            tree.root,
            query,
            value,
            tree.metric,
            check_invariants=tree.check_invariants,
        )
        extra["visited"] = visited
        extra["matches"] = len(matches)
    if return_distances:
        return matches, distances
    return matches


def range_search_sorted(
    tree: "MTree", center: Sequence[float], radius: float
) -> List[Tuple[Point, float]]:
    """Range query ordered by ascending distance, ties kept in visit order."""

    matches, distances = range_search(tree, center, radius, return_distances=True)
    pairs = list(zip(matches, distances))
    pairs.sort(key=lambda pair: pair[1])
    return pairs


def bruteforce_range(
    points: Sequence[Point],
    center: Sequence[float],
    radius: float,
    metric: Metric,
) -> List[Point]:
    """Linear scan used as a reference for the tree query."""

    value = _validate_radius(radius)
    if not points:
        return []
    coords = np.stack([point.coords for point in points])
    dists = metric.to_many(np.asarray(center, dtype=np.float64), coords)
    return [point for point, dist in zip(points, dists) if dist <= value]


__all__ = ["bruteforce_range", "range_search", "range_search_sorted"]
