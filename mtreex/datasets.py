"""Sample data for demos and the command line search tool."""

from __future__ import annotations

from typing import List, Tuple

from mtreex.core.node import Point

_POINTS_OF_INTEREST: Tuple[Tuple[str, Tuple[float, float]], ...] = (
    ("Restaurant A", (40.7128, -74.0060)),
    ("Park B", (40.7158, -74.0020)),
    ("Store C", (40.7120, -74.0100)),
    ("Museum D", (40.7200, -74.0000)),
    ("Restaurant E", (40.7250, -74.0050)),
)


def points_of_interest() -> List[Point]:
    """Five named latitude/longitude points in lower Manhattan."""

    return [Point(coords, payload=name) for name, coords in _POINTS_OF_INTEREST]


__all__ = ["points_of_interest"]
