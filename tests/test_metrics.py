import numpy as np
import pytest

from mtreex import config as mx_config
from mtreex import MTree, Point
from mtreex.core.metrics import (
    EUCLIDEAN,
    Metric,
    MetricRegistry,
    available_metrics,
    get_metric,
    register_metric,
    resolve_metric,
)
from mtreex.queries import bruteforce_range


@pytest.fixture(autouse=True)
def reset_runtime_config(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("MTREEX_METRIC", raising=False)
    mx_config.reset_runtime_config_cache()
    yield
    mx_config.reset_runtime_config_cache()


def test_euclidean_distance_matches_manual():
    metric = get_metric("euclidean")

    assert metric.distance([0.0, 0.0], [3.0, 4.0]) == pytest.approx(5.0)
    assert metric([1.0, 1.0], [1.0, 1.0]) == 0.0


def test_default_metric_is_euclidean():
    assert get_metric() is EUCLIDEAN


def test_default_metric_follows_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("MTREEX_METRIC", "Manhattan")
    mx_config.reset_runtime_config_cache()

    assert get_metric().name == "manhattan"
    assert MTree(max_node_size=2).metric.name == "manhattan"


def test_builtin_metrics_are_registered():
    assert {"euclidean", "manhattan", "chebyshev"} <= set(available_metrics())


@pytest.mark.parametrize(
    "name, expected",
    [("euclidean", 5.0), ("manhattan", 7.0), ("chebyshev", 4.0)],
)
def test_builtin_metric_values(name, expected):
    assert get_metric(name).distance([1.0, 2.0], [4.0, 6.0]) == pytest.approx(expected)


@pytest.mark.parametrize("name", ["euclidean", "manhattan", "chebyshev"])
def test_to_many_agrees_with_pointwise(name):
    metric = get_metric(name)
    rng = np.random.default_rng(7)
    query = rng.normal(size=4)
    rows = rng.normal(size=(9, 4))

    many = metric.to_many(query, rows)
    single = [metric.distance(query, row) for row in rows]

    assert many.shape == (9,)
    assert np.allclose(many, single)


@pytest.mark.parametrize("name", ["euclidean", "manhattan", "chebyshev"])
def test_metric_axioms_hold_on_samples(name):
    metric = get_metric(name)
    rng = np.random.default_rng(13)
    samples = rng.normal(size=(12, 3))

    for a in samples:
        assert metric.distance(a, a) == 0.0
        for b in samples:
            assert metric.distance(a, b) == pytest.approx(metric.distance(b, a))
            for c in samples[:4]:
                assert metric.distance(a, c) <= metric.distance(a, b) + metric.distance(b, c) + 1e-12


def test_pointwise_rejects_shape_mismatch():
    with pytest.raises(ValueError):
        EUCLIDEAN.distance([0.0, 0.0], [0.0, 0.0, 0.0])


def test_to_many_without_pairwise_kernel_falls_back_to_pointwise():
    calls = []

    def _abs_diff(lhs, rhs):
        calls.append(1)
        return float(np.abs(lhs - rhs).sum())

    metric = Metric("absdiff", _abs_diff)
    result = metric.to_many([0.0], [[1.0], [2.0], [3.0]])

    assert np.allclose(result, [1.0, 2.0, 3.0])
    assert len(calls) == 3
    assert metric.to_many([0.0], np.zeros((0, 1))).shape == (0,)


def test_metric_registry_registers_and_retrieves():
    registry = MetricRegistry()
    custom = Metric("Custom", lambda lhs, rhs: 0.0)
    registry.register(custom)

    assert registry.get("custom") is custom
    assert registry.names() == ("custom",)
    with pytest.raises(ValueError):
        registry.register(custom)
    registry.register(custom, overwrite=True)
    with pytest.raises(KeyError):
        registry.get("missing")


def test_register_metric_makes_name_resolvable():
    hamming = Metric("hamming_test", lambda lhs, rhs: float(np.count_nonzero(lhs != rhs)))
    register_metric(hamming, overwrite=True)

    tree = MTree(max_node_size=2, metric="hamming_test")
    tree.insert([0, 0, 1], payload="a")
    tree.insert([0, 1, 1], payload="b")
    tree.insert([1, 1, 0], payload="c")

    assert {p.payload for p in tree.search([0, 0, 1], 1)} == {"a", "b"}


def test_resolve_metric_accepts_callables():
    metric = resolve_metric(lambda lhs, rhs: float(np.abs(lhs - rhs).max()))

    assert isinstance(metric, Metric)
    assert metric.distance([0.0, 0.0], [2.0, -3.0]) == pytest.approx(3.0)
    assert resolve_metric(EUCLIDEAN) is EUCLIDEAN
    assert resolve_metric("chebyshev").name == "chebyshev"
    with pytest.raises(TypeError):
        resolve_metric(42)


def test_unknown_metric_name_raises_key_error():
    with pytest.raises(KeyError):
        MTree(max_node_size=2, metric="cosine")


@pytest.mark.parametrize("name", ["manhattan", "chebyshev"])
def test_tree_with_non_euclidean_metric_matches_bruteforce(name):
    rng = np.random.default_rng(31)
    coords = rng.normal(size=(90, 3))
    points = [Point(row, payload=i) for i, row in enumerate(coords)]
    tree = MTree.from_points(points, 3, name)
    tree.validate()

    for query in rng.normal(size=(8, 3)):
        expected = bruteforce_range(points, query, 1.3, tree.metric)
        assert sorted(p.payload for p in tree.search(query, 1.3)) == sorted(p.payload for p in expected)
