from __future__ import annotations

import argparse
import time
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from psptree import PSPTreeMap


@dataclass(frozen=True)
class BenchmarkResult:
    mode: str
    elapsed_seconds: float
    operations: int
    throughput_ops_per_sec: float


def _result(mode: str, elapsed: float, operations: int) -> BenchmarkResult:
    throughput = operations / elapsed if elapsed > 0 else float("inf")
    return BenchmarkResult(
        mode=mode,
        elapsed_seconds=elapsed,
        operations=operations,
        throughput_ops_per_sec=throughput,
    )


def benchmark_insert(
    *,
    dimension: int,
    points: int,
    seed: int,
    metric: str = "euclidean",
) -> Tuple[PSPTreeMap, np.ndarray, BenchmarkResult]:
    rng = np.random.default_rng(seed)
    data = rng.normal(size=(points, dimension))
    index = PSPTreeMap(metric, dimension=dimension, sentinel_seed=seed)
    start = time.perf_counter()
    for row, point in enumerate(data):
        index.put(point, row)
    elapsed = time.perf_counter() - start
    return index, data, _result("insert", elapsed, points)


def benchmark_knn(
    index: PSPTreeMap,
    data: np.ndarray,
    *,
    queries: int,
    k: int,
    seed: int,
    verify: bool = True,
) -> BenchmarkResult:
    """Time k-NN queries; with ``verify`` each answer is checked against a dense scan."""

    rng = np.random.default_rng(seed)
    query_points = rng.normal(size=(queries, index.dimension))
    answers = []
    start = time.perf_counter()
    for query in query_points:
        answers.append(index.k_nearest_neighbor(query, k))
    elapsed = time.perf_counter() - start
    if verify:
        for query, answer in zip(query_points, answers):
            dists = np.linalg.norm(data - query[None, :], axis=1)
            expected = np.sort(dists)[: min(k, data.shape[0])]
            got = np.asarray([neighbor.distance for neighbor in answer])
            if not np.allclose(got, expected):
                raise AssertionError("k-NN result disagrees with brute force scan.")
    return _result("knn", elapsed, queries)


def benchmark_delete(
    index: PSPTreeMap,
    data: np.ndarray,
    *,
    deletes: int,
    seed: int,
) -> BenchmarkResult:
    rng = np.random.default_rng(seed)
    count = min(deletes, data.shape[0])
    rows = rng.choice(data.shape[0], size=count, replace=False)
    start = time.perf_counter()
    for row in rows:
        index.remove(data[row])
    elapsed = time.perf_counter() - start
    return _result("delete", elapsed, count)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Benchmark insert, k-NN and delete throughput for PSPTreeMap."
    )
    parser.add_argument("--dimension", type=int, default=3, help="Dimensionality of generated points.")
    parser.add_argument("--points", type=int, default=4096, help="Number of points to insert.")
    parser.add_argument("--queries", type=int, default=256, help="Number of k-NN queries.")
    parser.add_argument("--k", type=int, default=8, help="Neighbours per query.")
    parser.add_argument("--deletes", type=int, default=1024, help="Number of points to delete.")
    parser.add_argument(
        "--metric",
        default="euclidean",
        help="Registered metric name used to build the index.",
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed for data generation.")
    parser.add_argument(
        "--no-verify",
        action="store_true",
        help="Skip the brute-force check of k-NN answers.",
    )
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    index, data, insert_result = benchmark_insert(
        dimension=args.dimension,
        points=args.points,
        seed=args.seed,
        metric=args.metric,
    )
    knn_result = benchmark_knn(
        index,
        data,
        queries=args.queries,
        k=args.k,
        seed=args.seed + 1,
        verify=not args.no_verify and args.metric == "euclidean",
    )
    delete_result = benchmark_delete(
        index,
        data,
        deletes=args.deletes,
        seed=args.seed + 2,
    )
    for result in (insert_result, knn_result, delete_result):
        print(
            f"{result.mode} | ops={result.operations} "
            f"time={result.elapsed_seconds:.4f}s "
            f"throughput={result.throughput_ops_per_sec:,.1f} ops/s"
        )


if __name__ == "__main__":
    main()
