from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, List, Union

import numpy as np

from mtreex.core.metrics import Metric


def _freeze_coords(coords: Any) -> np.ndarray:
    arr = np.array(coords, dtype=np.float64, copy=True)
    if arr.ndim != 1:
        raise ValueError(f"Point coordinates must be a 1-D sequence, got shape {arr.shape}.")
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"Point coordinates must be finite, got {arr.tolist()!r}.")
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class Point:
    """A coordinate vector plus an opaque payload carried through unchanged.

    Points compare by identity, so two points with equal coordinates are
    distinct entries of a tree.
    """

    coords: np.ndarray
    payload: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "coords", _freeze_coords(self.coords))

    @property
    def dimension(self) -> int:
        return int(self.coords.shape[0])

    def __repr__(self) -> str:
        coords = ", ".join(f"{value:g}" for value in self.coords)
        return f"Point([{coords}], payload={self.payload!r})"


@dataclass(eq=False)
class LeafNode:
    """Node owning points directly."""

    entries: List[Point] = field(default_factory=list)
    centroid: np.ndarray | None = None
    covering_radius: float = 0.0
    count: int = 0
    coord_sum: np.ndarray | None = None

    is_leaf = True

    def refresh(self, metric: Metric) -> None:
        """Recompute centroid (entry mean) and covering radius from the entries."""

        self.count = len(self.entries)
        if not self.entries:
            self.centroid = None
            self.coord_sum = None
            self.covering_radius = 0.0
            return
        stacked = np.stack([entry.coords for entry in self.entries])
        self.coord_sum = stacked.sum(axis=0)
        self.centroid = self.coord_sum / self.count
        self.covering_radius = float(np.max(metric.to_many(self.centroid, stacked)))

    def iter_points(self) -> Iterator[Point]:
        yield from self.entries


@dataclass(eq=False)
class InternalNode:
    """Node routing to exactly two children and owning no points itself."""

    children: List["Node"] = field(default_factory=list)
    centroid: np.ndarray | None = None
    covering_radius: float = 0.0
    count: int = 0
    coord_sum: np.ndarray | None = None

    is_leaf = False

    def refresh(self, metric: Metric) -> None:
        """Recompute centroid and covering radius from the children's summaries.

        The centroid is the mean over every point in the subtree; the radius
        bounds each child's ball: ``max(d(centroid, c.centroid) + c.radius)``.
        """

        populated = [child for child in self.children if child.count > 0]
        self.count = sum(child.count for child in populated)
        if not populated:
            self.centroid = None
            self.coord_sum = None
            self.covering_radius = 0.0
            return
        self.coord_sum = np.sum([child.coord_sum for child in populated], axis=0)
        self.centroid = self.coord_sum / self.count
        self.covering_radius = max(
            metric.distance(self.centroid, child.centroid) + child.covering_radius
            for child in populated
        )

    def iter_points(self) -> Iterator[Point]:
        stack: List[Node] = list(reversed(self.children))
        while stack:
            node = stack.pop()
            if node.is_leaf:
                yield from node.entries
            else:
                stack.extend(reversed(node.children))


Node = Union[LeafNode, InternalNode]


__all__ = ["Point", "LeafNode", "InternalNode", "Node"]
