from __future__ import annotations

from typing import Any, List, Tuple

import numpy as np

from psptree.core.tree import INNER, NIL, OUTER, PSPTree
from psptree.diagnostics import log_operation
from psptree.logging import get_logger

LOGGER = get_logger("queries.range")

Hit = Tuple[float, int]


def _range_impl(tree: PSPTree, query: np.ndarray, radius: float) -> List[Hit]:
    root = tree.root
    if root == NIL:
        return []

    metric = tree.metric
    prunes = metric.prunes
    lifted_radius = metric.lift(radius)
    hits: List[Hit] = []

    stack = [root]
    while stack:
        idx = stack.pop()
        dist = tree.distance_to(idx, query)
        if dist <= radius:
            hits.append((dist, idx))
        if prunes and metric.lift(dist) - tree.reach(idx) > lifted_radius:
            continue
        for side in (OUTER, INNER):
            child = tree.child(idx, side)
            if child != NIL:
                stack.append(child)

    hits.sort()
    return hits


def range_search(tree: PSPTree, query_point: Any, *, radius: float) -> List[Hit]:
    """Return every ``(distance, node)`` within ``radius`` of the query, nearest first."""

    radius = float(radius)
    if not radius >= 0.0:
        raise ValueError("radius must be a non-negative number.")
    query = tree.coerce(query_point)
    with log_operation(LOGGER, "range_search") as op_log:
        hits = _range_impl(tree, query, radius)
        op_log.add_metadata(radius=radius, returned=len(hits), size=tree.size)
    return hits


__all__ = ["range_search"]
