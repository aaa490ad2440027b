from __future__ import annotations

import heapq
import math
from typing import Any, List, Tuple

import numpy as np

from psptree.core.tree import INNER, NIL, OUTER, PSPTree
from psptree.diagnostics import log_operation
from psptree.logging import get_logger
from psptree.queries.range import _range_impl

LOGGER = get_logger("queries.knn")

Hit = Tuple[float, int]


def _ordered_children(tree: PSPTree, idx: int, dist: float) -> Tuple[int, int]:
    """Return ``(first, second)``: the side the query falls on comes first."""

    if dist <= tree.radius(idx):
        return tree.child(idx, INNER), tree.child(idx, OUTER)
    return tree.child(idx, OUTER), tree.child(idx, INNER)


def _single_query_knn(tree: PSPTree, query: np.ndarray, k: int) -> List[Hit]:
    """Branch-and-bound walk collecting the ``k`` nearest nodes to ``query``."""

    root = tree.root
    if root == NIL or k <= 0:
        return []

    metric = tree.metric
    prunes = metric.prunes
    best: List[Tuple[float, int]] = []  # max-heap of (-distance, -index)
    tau = math.inf
    lifted_tau = math.inf

    stack: List[Tuple[int, float]] = [(root, tree.distance_to(root, query))]
    while stack:
        idx, dist = stack.pop()
        if prunes and len(best) == k:
            if metric.lift(dist) - tree.reach(idx) > lifted_tau:
                continue

        if len(best) < k:
            heapq.heappush(best, (-dist, -idx))
        elif dist < tau:
            heapq.heapreplace(best, (-dist, -idx))
        if len(best) == k:
            tau = -best[0][0]
            lifted_tau = metric.lift(tau)

        first, second = _ordered_children(tree, idx, dist)
        for child in (second, first):
            if child == NIL:
                continue
            child_dist = tree.distance_to(child, query)
            if prunes and len(best) == k:
                if metric.lift(child_dist) - tree.reach(child) > lifted_tau:
                    continue
            stack.append((child, child_dist))

    return sorted((-neg_dist, -neg_idx) for neg_dist, neg_idx in best)


def _knn_impl(tree: PSPTree, query: np.ndarray, k: int) -> List[Hit]:
    if k < 0:
        raise ValueError("k must be non-negative.")
    return _single_query_knn(tree, query, min(int(k), tree.size))


def knn(tree: PSPTree, query_point: Any, *, k: int) -> List[Hit]:
    """Return up to ``k`` ``(distance, node)`` pairs, nearest first."""

    query = tree.coerce(query_point)
    with log_operation(LOGGER, "knn_query") as op_log:
        hits = _knn_impl(tree, query, k)
        op_log.add_metadata(k=k, returned=len(hits), size=tree.size)
    return hits


def nearest_neighbor(tree: PSPTree, query: np.ndarray) -> int:
    """Index of the stored node nearest to ``query``, or ``NIL`` for an empty tree."""

    hits = _knn_impl(tree, query, 1)
    if not hits:
        return NIL
    return hits[0][1]


def locate(tree: PSPTree, query: np.ndarray) -> int:
    """Index of the node stored exactly at ``query``, or ``NIL``.

    Distinct points can sit at kernel distance 0 from each other when the
    kernel underflows, so every zero-distance node is checked, not just the
    nearest one.
    """

    if tree.is_empty():
        return NIL
    for _, idx in _range_impl(tree, query, 0.0):
        if tree.is_at(idx, query):
            return idx
    return NIL


__all__ = ["knn", "locate", "nearest_neighbor"]
