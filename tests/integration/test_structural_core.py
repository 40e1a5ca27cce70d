import itertools

import numpy as np
import pytest

from mtreex import MTree, Point, get_metric
from mtreex.queries import bruteforce_range
from tests.utils.datasets import clustered_points, gaussian_points, labelled_points


def _fresh_radius(node, metric) -> float:
    """Distance from the stored centroid to the farthest point below ``node``."""

    coords = np.stack([point.coords for point in node.iter_points()])
    return float(np.max(metric.to_many(node.centroid, coords)))


@pytest.mark.parametrize(
    "max_node_size, split_policy, metric_name",
    list(itertools.product([1, 2, 4], ["first_coordinate", "farthest_pair"], ["euclidean", "manhattan"])),
)
def test_invariants_hold_after_every_insert(max_node_size, split_policy, metric_name):
    rng = np.random.default_rng(max_node_size * 7 + len(split_policy))
    coords = gaussian_points(rng, 70, 3)
    tree = MTree(max_node_size, metric_name, split_policy=split_policy)

    for row in coords:
        tree.insert(row)
        tree.validate()

    for node, _ in tree.iter_nodes():
        assert _fresh_radius(node, tree.metric) <= node.covering_radius + 1e-9
        members = np.stack([point.coords for point in node.iter_points()])
        assert np.allclose(node.centroid, members.mean(axis=0))


def test_sibling_insertions_keep_ancestor_radius_current():
    tree = MTree(max_node_size=2)
    for coords in ([0.0, 0.0], [1.0, 0.0], [2.0, 0.0]):
        tree.insert(coords)
    before = tree.root.covering_radius

    far = tree.insert([50.0, 50.0])

    assert tree.root.covering_radius > before
    assert far in tree.search([0.0, 0.0], 71.0)
    assert far in tree.search([49.0, 49.0], 1.5)
    tree.validate()


def test_interleaved_inserts_and_queries_have_no_false_negatives():
    rng = np.random.default_rng(101)
    coords = clustered_points(rng, clusters=5, per_cluster=40, dimension=2, spread=0.3)
    order = rng.permutation(coords.shape[0])
    points = labelled_points(coords[order])
    metric = get_metric("euclidean")
    tree = MTree(max_node_size=3)

    inserted: list[Point] = []
    for index, point in enumerate(points):
        tree.insert(point)
        inserted.append(point)
        if index % 10 == 0:
            query = rng.uniform(-10.0, 10.0, size=2)
            radius = float(rng.uniform(0.5, 6.0))
            expected = {p.payload for p in bruteforce_range(inserted, query, radius, metric)}
            assert {p.payload for p in tree.search(query, radius)} == expected

    assert len(tree) == len(points)
