from __future__ import annotations

import argparse
import json
import time
from dataclasses import asdict, dataclass
from typing import Dict, List

import numpy as np
from numpy.random import default_rng

from mtreex import MTree, Point
from mtreex.queries import bruteforce_range
from tests.utils.datasets import gaussian_points


@dataclass(frozen=True)
class RangeBenchmarkResult:
    tree_points: int
    queries: int
    dimension: int
    radius: float
    max_node_size: int
    split_policy: str
    build_seconds: float
    tree_seconds: float
    bruteforce_seconds: float
    mean_matches: float
    depth: int
    leaves: int
    speedup: float
    latency_ms: Dict[str, float]


def _ms(value: float) -> float:
    return float(value) * 1e3


def _metric_summary(values: np.ndarray) -> Dict[str, float]:
    arr = np.asarray(values, dtype=np.float64)
    finite = arr[np.isfinite(arr)]
    if finite.size == 0:
        return {}
    summary: Dict[str, float] = {
        "samples": float(finite.size),
        "min": float(np.min(finite)),
        "max": float(np.max(finite)),
        "mean": float(np.mean(finite)),
    }
    for pct in (50, 90, 99):
        summary[f"p{pct}"] = float(np.percentile(finite, pct))
    return summary


def run_benchmark(
    *,
    tree_points: int,
    queries: int,
    dimension: int,
    radius: float,
    max_node_size: int,
    split_policy: str,
    seed: int,
) -> RangeBenchmarkResult:
    rng = default_rng(seed)
    coords = gaussian_points(rng, tree_points, dimension)
    query_coords = gaussian_points(rng, queries, dimension)
    points = [Point(row, payload=index) for index, row in enumerate(coords)]

    start = time.perf_counter()
    tree = MTree.from_points(points, max_node_size, split_policy=split_policy)
    build_seconds = time.perf_counter() - start

    match_counts: List[int] = []
    latencies_ms: List[float] = []
    for query in query_coords:
        tick = time.perf_counter()
        match_counts.append(len(tree.search(query, radius)))
        latencies_ms.append(_ms(time.perf_counter() - tick))
    tree_seconds = sum(latencies_ms) / 1e3

    start = time.perf_counter()
    for query in query_coords:
        bruteforce_range(points, query, radius, tree.metric)
    bruteforce_seconds = time.perf_counter() - start

    stats = tree.stats()
    return RangeBenchmarkResult(
        tree_points=tree_points,
        queries=queries,
        dimension=dimension,
        radius=radius,
        max_node_size=max_node_size,
        split_policy=split_policy,
        build_seconds=build_seconds,
        tree_seconds=tree_seconds,
        bruteforce_seconds=bruteforce_seconds,
        mean_matches=float(np.mean(match_counts)) if match_counts else 0.0,
        depth=stats.depth,
        leaves=stats.leaves,
        speedup=bruteforce_seconds / tree_seconds if tree_seconds > 0 else float("inf"),
        latency_ms=_metric_summary(np.asarray(latencies_ms)),
    )


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Time M-tree range queries against a linear scan.")
    parser.add_argument("--tree-points", type=int, default=4_096)
    parser.add_argument("--queries", type=int, default=256)
    parser.add_argument("--dimension", type=int, default=3)
    parser.add_argument("--radius", type=float, default=0.25)
    parser.add_argument("--max-node-size", type=int, default=16)
    parser.add_argument(
        "--split-policy",
        choices=("first_coordinate", "farthest_pair"),
        default="first_coordinate",
    )
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--json", action="store_true", help="Emit a JSON record instead of text.")
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    result = run_benchmark(
        tree_points=args.tree_points,
        queries=args.queries,
        dimension=args.dimension,
        radius=args.radius,
        max_node_size=args.max_node_size,
        split_policy=args.split_policy,
        seed=args.seed,
    )
    if args.json:
        print(json.dumps(asdict(result)))
        return
    print(
        f"mtree | build={result.build_seconds:.4f}s "
        f"query={result.tree_seconds:.4f}s latency_p50={result.latency_ms.get('p50', 0.0):.4f}ms "
        f"latency_p99={result.latency_ms.get('p99', 0.0):.4f}ms "
        f"depth={result.depth} leaves={result.leaves} "
        f"matches/query={result.mean_matches:.1f}"
    )
    print(
        f"bruteforce | query={result.bruteforce_seconds:.4f}s "
        f"speedup={result.speedup:.2f}x"
    )


if __name__ == "__main__":
    main()
