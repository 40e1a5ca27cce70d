#!/usr/bin/env python
"""Quick-start guide for mtreex library usage.

Run with: python -m mtreex

This module intentionally avoids importing mtreex internals to provide
a fast, clean startup for displaying help text.
"""

from __future__ import annotations

QUICKSTART = """\
================================================================================
                                  MTREEX
           Metric tree (M-tree) index for range queries in any metric
================================================================================

INSTALLATION
------------
    pip install mtreex

BASIC USAGE (Euclidean range search)
------------------------------------
    from mtreex import MTree, Point

    tree = MTree(max_node_size=4)
    tree.insert(Point([40.7128, -74.0060], payload="Restaurant A"))
    tree.insert([40.7158, -74.0020], payload="Park B")

    # All points within 0.005 of the center, in no particular order
    matches = tree.search([40.7130, -74.0050], 0.005)

    # Nearest first, with distances
    for point, distance in tree.search_sorted([40.7130, -74.0050], 0.005):
        print(point.payload, distance)

OTHER METRICS
-------------
    MTree(metric="manhattan")
    MTree(metric="chebyshev")
    MTree(metric=my_distance)   # any (a, b) -> float obeying the triangle inequality

CONFIGURATION (environment)
---------------------------
    MTREEX_MAX_NODE_SIZE      leaf capacity used when none is given (default 4)
    MTREEX_METRIC             default metric name (default euclidean)
    MTREEX_SPLIT_POLICY       first_coordinate | farthest_pair
    MTREEX_CHECK_INVARIANTS   verify covering radii while searching
    MTREEX_ENABLE_DIAGNOSTICS log op=... timing lines (default on)
    MTREEX_LOG_LEVEL          logging level for the "mtreex" logger

COMMAND LINE SEARCH
-------------------
    python -m cli.search --center 40.7130,-74.0050 --radius 0.005
    python -m cli.search --points pois.json --center 1,2 --radius 3 --stats

================================================================================
"""


def main() -> None:
    """Print quick-start guide."""
    print(QUICKSTART)


if __name__ == "__main__":
    main()
