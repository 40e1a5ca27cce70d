from __future__ import annotations

from typing import Callable, Dict, List, Sequence, Tuple

import numpy as np

from mtreex.core.metrics import Metric
from mtreex.core.node import Point
from mtreex.errors import ConfigurationError

SplitPolicy = Callable[[Sequence[Point], Metric], Tuple[List[Point], List[Point]]]


def split_first_coordinate(
    entries: Sequence[Point], metric: Metric
) -> Tuple[List[Point], List[Point]]:
    """Stable-sort by first coordinate and bisect at ``len // 2``.

    Not distance-aware; skewed data can produce lopsided leaves.
    """

    if len(entries) < 2:
        raise ValueError("Cannot split fewer than two entries.")
    ordered = sorted(entries, key=lambda entry: float(entry.coords[0]))
    midpoint = len(ordered) // 2
    return ordered[:midpoint], ordered[midpoint:]


def split_farthest_pair(
    entries: Sequence[Point], metric: Metric
) -> Tuple[List[Point], List[Point]]:
    """Seed with the two mutually farthest entries and assign by proximity."""

    if len(entries) < 2:
        raise ValueError("Cannot split fewer than two entries.")
    coords = np.stack([entry.coords for entry in entries])
    best = (-1.0, 0, 1)
    for i in range(len(entries) - 1):
        dists = metric.to_many(coords[i], coords[i + 1 :])
        j = int(np.argmax(dists))
        if float(dists[j]) > best[0]:
            best = (float(dists[j]), i, i + 1 + j)
    _, seed_a, seed_b = best

    to_a = metric.to_many(coords[seed_a], coords)
    to_b = metric.to_many(coords[seed_b], coords)
    left: List[Point] = []
    right: List[Point] = []
    for index, entry in enumerate(entries):
        if index == seed_a:
            left.append(entry)
        elif index == seed_b:
            right.append(entry)
        elif to_a[index] <= to_b[index]:
            left.append(entry)
        else:
            right.append(entry)
    if not left or not right:
        return split_first_coordinate(entries, metric)
    return left, right


_POLICIES: Dict[str, SplitPolicy] = {
    "first_coordinate": split_first_coordinate,
    "farthest_pair": split_farthest_pair,
}


def get_split_policy(name: str) -> SplitPolicy:
    key = name.strip().lower()
    if key not in _POLICIES:
        raise ConfigurationError(
            f"Unsupported split policy '{name}'. Expected one of {sorted(_POLICIES)}."
        )
    return _POLICIES[key]


def available_split_policies() -> Tuple[str, ...]:
    return tuple(sorted(_POLICIES))


__all__ = [
    "SplitPolicy",
    "available_split_policies",
    "get_split_policy",
    "split_farthest_pair",
    "split_first_coordinate",
]
