import numpy as np
import pytest

from psptree import PSPTreeMap
from psptree.core.metrics import Metric
from tests.utils.datasets import bruteforce_knn_distances, gaussian_dataset


def _build(points: np.ndarray, metric: str = "euclidean", seed: int = 0) -> PSPTreeMap:
    index = PSPTreeMap(metric, dimension=points.shape[1], sentinel_seed=seed)
    for row, point in enumerate(points):
        index.put(point, row)
    return index


@pytest.mark.parametrize("dimension", [1, 2, 5])
@pytest.mark.parametrize("k", [1, 3, 10])
def test_knn_matches_bruteforce_distances(dimension: int, k: int):
    rng = np.random.default_rng(100 + dimension)
    points, queries = gaussian_dataset(rng, tree_points=200, queries=20, dimension=dimension)
    index = _build(points)

    for query in queries:
        hits = index.k_nearest_neighbor(query, k)
        expected = bruteforce_knn_distances(points, query, k)
        assert len(hits) == k
        np.testing.assert_allclose([h.distance for h in hits], expected, rtol=1e-12, atol=1e-12)
        for hit in hits:
            row = hit.value
            assert hit.key == tuple(points[row].tolist())
            assert hit.distance == pytest.approx(float(np.linalg.norm(points[row] - query)))


def test_knn_squared_euclidean_reports_squared_distances():
    rng = np.random.default_rng(7)
    points, queries = gaussian_dataset(rng, tree_points=150, queries=10, dimension=3)
    index = _build(points, metric="squared_euclidean")

    for query in queries:
        hits = index.k_nearest_neighbor(query, 4)
        expected = bruteforce_knn_distances(points, query, 4, squared=True)
        np.testing.assert_allclose([h.distance for h in hits], expected, rtol=1e-12, atol=1e-12)
    for row, point in enumerate(points):
        assert index.get(point) == row


def test_knn_zero_and_oversized_k():
    rng = np.random.default_rng(1)
    points, _ = gaussian_dataset(rng, tree_points=12, queries=0, dimension=2)
    index = _build(points)
    query = np.zeros(2)

    assert index.k_nearest_neighbor(query, 0) == []

    hits = index.k_nearest_neighbor(query, 50)
    assert len(hits) == 12
    distances = [h.distance for h in hits]
    assert distances == sorted(distances)
    assert {h.value for h in hits} == set(range(12))


def test_knn_rejects_negative_k():
    index = _build(np.eye(2))
    with pytest.raises(ValueError):
        index.k_nearest_neighbor((0.0, 0.0), -1)


def test_knn_on_empty_index_returns_nothing():
    index = PSPTreeMap(dimension=3, sentinel_seed=0)
    assert index.k_nearest_neighbor((0.0, 0.0, 0.0), 5) == []
    assert index.nearest((0.0, 0.0, 0.0)) is None


def test_knn_survives_interleaved_inserts_and_deletes():
    rng = np.random.default_rng(29)
    points, queries = gaussian_dataset(rng, tree_points=240, queries=15, dimension=3)
    index = _build(points[:160], seed=4)
    live = set(range(160))

    for row in rng.choice(160, size=70, replace=False).tolist():
        assert index.remove(points[row]) == row
        live.discard(row)
    for row in range(160, 240):
        index.put(points[row], row)
        live.add(row)

    remaining = points[sorted(live)]
    for query in queries:
        hits = index.k_nearest_neighbor(query, 6)
        assert {h.value for h in hits} <= live
        np.testing.assert_allclose(
            [h.distance for h in hits],
            bruteforce_knn_distances(remaining, query, 6),
            rtol=1e-12,
            atol=1e-12,
        )


def test_knn_results_are_exact_when_pruning_is_disabled():
    unpruned = Metric(
        name="unpruned_euclidean",
        kernel=lambda a, b: float(np.linalg.norm(a - b)),
        bound_transform=None,
    )
    rng = np.random.default_rng(5)
    points, queries = gaussian_dataset(rng, tree_points=60, queries=5, dimension=2)
    index = PSPTreeMap(unpruned, dimension=2, sentinel_seed=0)
    for row, point in enumerate(points):
        index.put(point, row)

    for query in queries:
        hits = index.k_nearest_neighbor(query, 5)
        np.testing.assert_allclose(
            [h.distance for h in hits], bruteforce_knn_distances(points, query, 5)
        )


def test_knn_tie_keeps_first_candidate_found():
    index = PSPTreeMap(dimension=1, sentinel_seed=0)
    index.put((-1.0,), "left")
    index.put((1.0,), "right")
    index.put((5.0,), "far")

    hits = index.k_nearest_neighbor((0.0,), 1)

    assert hits[0].value == "left"
    assert hits[0].distance == 1.0
