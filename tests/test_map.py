import math

import numpy as np
import pytest

from psptree import DimensionMismatchError, Entry, Neighbor, PSPTreeMap
from psptree import config as ps_config
from tests.utils.datasets import gaussian_points
from tests.utils.trees import check_invariants


@pytest.fixture(autouse=True)
def _fresh_runtime(monkeypatch: pytest.MonkeyPatch):
    for key in ("PSPTREE_METRIC", "PSPTREE_SENTINEL_SEED", "PSPTREE_ENABLE_DIAGNOSTICS"):
        monkeypatch.delenv(key, raising=False)
    ps_config.reset_runtime_config_cache()
    yield
    ps_config.reset_runtime_config_cache()


def _scenario() -> PSPTreeMap:
    index = PSPTreeMap("euclidean", dimension=2, sentinel_seed=0)
    index.put((0, 0), "a")
    index.put((3, 4), "b")
    index.put((1, 1), "c")
    return index


def test_three_point_scenario():
    index = _scenario()

    assert index.size() == 3
    assert index.get((3, 4)) == "b"

    # The stored point at the query is its own nearest neighbour.
    neighbors = index.k_nearest_neighbor((0, 0), 2)
    assert [n.key for n in neighbors] == [(0.0, 0.0), (1.0, 1.0)]
    assert [n.value for n in neighbors] == ["a", "c"]
    assert neighbors[0].distance == 0.0
    assert neighbors[1].distance == pytest.approx(math.sqrt(2.0))

    others = [n for n in index.k_nearest_neighbor((0, 0), 3) if n.distance > 0.0]
    assert [(n.key, n.value) for n in others] == [((1.0, 1.0), "c"), ((3.0, 4.0), "b")]
    assert [n.distance for n in others] == pytest.approx([math.sqrt(2.0), 5.0])

    assert index.remove((1, 1)) == "c"
    assert index.size() == 2
    assert index.get((1, 1)) is None
    check_invariants(index.tree)


def test_neighbor_unpacks_as_distance_and_entry():
    index = _scenario()

    distance, (key, value) = index.k_nearest_neighbor((3, 4), 1)[0]

    assert distance == 0.0
    assert key == (3.0, 4.0)
    assert value == "b"
    assert index.nearest((2.9, 4.1)) == Neighbor(
        pytest.approx(math.hypot(0.1, 0.1)), Entry((3.0, 4.0), "b")
    )


def test_put_returns_previous_value_and_keeps_size():
    index = _scenario()
    before = index.tree.nodes.points.copy()

    assert index.put((3, 4), "B") == "b"
    assert index.put((3.0, 4.0), "B2") == "B"
    assert index.size() == 3
    assert index.get((3, 4)) == "B2"
    np.testing.assert_array_equal(index.tree.nodes.points, before)


def test_round_trip_and_size_consistency():
    rng = np.random.default_rng(3)
    points = gaussian_points(rng, 300, 3)
    index = PSPTreeMap(dimension=3, sentinel_seed=1)

    for row, point in enumerate(points):
        assert index.put(point, row) is None
    assert len(index) == 300

    removed = set(rng.choice(300, size=120, replace=False).tolist())
    for row in removed:
        assert index.remove(points[row]) == row
    assert len(index) == 180

    for row, point in enumerate(points):
        if row in removed:
            assert index.get(point) is None
            assert point not in index
        else:
            assert index.get(point) == row
            assert index.contains_key(point)
    check_invariants(index.tree)


def test_remove_missing_point_is_a_no_op():
    index = _scenario()

    assert index.remove((9, 9)) is None
    assert index.size() == 3
    with pytest.raises(KeyError):
        del index[(9, 9)]


@pytest.mark.parametrize("metric", ["euclidean", "squared_euclidean"])
def test_points_at_underflowing_distance_stay_distinct(metric):
    index = PSPTreeMap(metric, dimension=1, sentinel_seed=0)
    index.put((0.0,), "zero")
    index.put((1e-200,), "tiny")

    assert index.metric.distance(np.array([0.0]), np.array([1e-200])) == 0.0
    assert len(index) == 2
    assert index.get((0.0,)) == "zero"
    assert index.get((1e-200,)) == "tiny"

    assert index.put((1e-200,), "tiny2") == "tiny"
    assert len(index) == 2

    assert index.remove((1e-200,)) == "tiny2"
    assert len(index) == 1
    assert index.get((1e-200,)) is None
    assert index.get((0.0,)) == "zero"
    check_invariants(index.tree)


def test_delitem_searches_the_tree_once(monkeypatch: pytest.MonkeyPatch):
    import importlib

    delete_module = importlib.import_module("psptree.algo.delete")

    index = _scenario()
    calls = []
    real_locate = delete_module.locate

    def counting_locate(tree, query):
        calls.append(query)
        return real_locate(tree, query)

    monkeypatch.setattr(delete_module, "locate", counting_locate)
    monkeypatch.setattr("psptree.api.map.locate", counting_locate)

    del index[(3, 4)]
    assert len(calls) == 1
    assert len(index) == 2

    with pytest.raises(KeyError):
        del index[(3, 4)]
    assert len(calls) == 2


def test_clear_drops_everything_and_redraws_sentinel():
    index = _scenario()
    old_sentinel = index.tree.point(0).copy()

    index.clear()

    assert index.size() == 0
    assert index.is_empty()
    for key in [(0, 0), (3, 4), (1, 1)]:
        assert index.get(key) is None
    assert index.k_nearest_neighbor((0, 0), 3) == []
    assert not np.array_equal(index.tree.point(0), old_sentinel)

    index.put((5, 5), "z")
    assert index.get((5, 5)) == "z"
    assert index.size() == 1


def test_contains_value_scans_past_other_types():
    index = PSPTreeMap(dimension=1, sentinel_seed=0)
    index.put((0.0,), 1)
    index.put((1.0,), "one")
    index.put((2.0,), [1, 2])

    assert index.contains_value("one")
    assert index.contains_value([1, 2])
    assert index.contains_value(1)
    assert not index.contains_value("two")


def test_none_values_read_as_absent_but_count():
    index = PSPTreeMap(dimension=2, sentinel_seed=0)
    index.put((1, 2), None)

    assert index.size() == 1
    assert index.get((1, 2)) is None
    assert index.get((1, 2), "fallback") == "fallback"
    assert not index.contains_key((1, 2))
    assert (1, 2) not in index
    with pytest.raises(KeyError):
        index[(1, 2)]
    assert list(index.items()) == [((1.0, 2.0), None)]
    assert list(index.values()) == [None]
    assert index.remove((1, 2)) is None
    assert index.size() == 0


def test_snapshots_cover_all_entries():
    index = _scenario()

    assert index.key_set() == {(0.0, 0.0), (3.0, 4.0), (1.0, 1.0)}
    assert sorted(index.value_list()) == ["a", "b", "c"]
    assert sorted(index.entry_set()) == [
        Entry((0.0, 0.0), "a"),
        Entry((1.0, 1.0), "c"),
        Entry((3.0, 4.0), "b"),
    ]
    assert dict(index.items()) == {(0.0, 0.0): "a", (3.0, 4.0): "b", (1.0, 1.0): "c"}
    assert index == {(0.0, 0.0): "a", (3.0, 4.0): "b", (1.0, 1.0): "c"}


def test_mapping_protocol():
    index = PSPTreeMap(dimension=2, sentinel_seed=0)
    index[(0, 1)] = "x"
    index.update({(2, 3): "y"})
    index.put_all([((4, 5), "z")])

    assert index[(0, 1)] == "x"
    assert set(index) == {(0.0, 1.0), (2.0, 3.0), (4.0, 5.0)}
    assert index.pop((2, 3)) == "y"
    del index[(4, 5)]
    assert len(index) == 1
    assert repr(index) == "PSPTreeMap({(0.0, 1.0): 'x'})"
    with pytest.raises(TypeError):
        index.update(a=1)


def test_dimension_mismatch_fails_fast():
    index = _scenario()

    with pytest.raises(DimensionMismatchError):
        index.put((1, 2, 3), "bad")
    with pytest.raises(DimensionMismatchError):
        index.get((1,))
    with pytest.raises(DimensionMismatchError):
        index.k_nearest_neighbor([[0, 0]], 1)
    with pytest.raises(ValueError):
        index.put((float("nan"), 0.0), "bad")
    assert index.size() == 3


def test_constructor_validates_arguments():
    with pytest.raises(ValueError):
        PSPTreeMap(dimension=0)
    with pytest.raises(ValueError):
        PSPTreeMap(dimension=2.5)
    with pytest.raises(ValueError):
        PSPTreeMap(dimension=2.0)
    assert PSPTreeMap(dimension=np.int64(3), sentinel_seed=0).dimension == 3
    with pytest.raises(KeyError):
        PSPTreeMap("no-such-metric", dimension=2)
    with pytest.raises(TypeError):
        PSPTreeMap(42, dimension=2)


def test_default_metric_and_seed_come_from_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PSPTREE_METRIC", "squared_euclidean")
    monkeypatch.setenv("PSPTREE_SENTINEL_SEED", "11")
    ps_config.reset_runtime_config_cache()

    first = PSPTreeMap(dimension=3)
    second = PSPTreeMap(dimension=3)

    assert first.metric.name == "squared_euclidean"
    np.testing.assert_array_equal(first.tree.point(0), second.tree.point(0))


def test_custom_callable_metric():
    def manhattan(a, b):
        return float(np.abs(a - b).sum())

    index = PSPTreeMap(manhattan, dimension=2, sentinel_seed=0)
    index.put((0, 0), "origin")
    index.put((1, 2), "p")
    index.put((-4, 0), "q")

    hits = index.k_nearest_neighbor((1, 1), 3)
    assert [n.value for n in hits] == ["p", "origin", "q"]
    assert [n.distance for n in hits] == [1.0, 2.0, 6.0]
