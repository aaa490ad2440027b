from __future__ import annotations

from typing import Any

from psptree.core.tree import NIL, OUTER, SENTINEL, PSPTree
from psptree.diagnostics import log_operation
from psptree.logging import get_logger
from psptree.queries.knn import locate, nearest_neighbor

LOGGER = get_logger("algo.insert")


def _graft(tree: PSPTree, start: int, side: str, subtree: int) -> int:
    """Hang ``subtree`` at the end of ``start``'s chain along ``side``."""

    host = start
    nxt = tree.child(host, side)
    while nxt != NIL:
        host = nxt
        nxt = tree.child(host, side)
    tree.set_child(host, side, subtree)
    tree.extend_reach(host, subtree, tree.reach(subtree))
    return host


def relocate(tree: PSPTree, idx: int) -> int:
    """Splice the detached node ``idx`` (and any subtree it owns) into the tree.

    The node is attached under its nearest stored neighbour, on the side
    chosen by that neighbour's radius, and takes over whatever subtree held
    that slot. Returns the new parent.
    """

    host = nearest_neighbor(tree, tree.point(idx))
    if host == NIL:
        host = SENTINEL
    tree.nodes.radii[idx] = tree.distance(host, idx)
    side = OUTER if host == SENTINEL else tree.side_for(host, idx)

    displaced = tree.child(host, side)
    tree.set_child(host, side, idx)
    tree.extend_reach(host, idx, tree.reach(idx))
    if displaced != NIL:
        _graft(tree, idx, side, displaced)
    return host


def insert(tree: PSPTree, point: Any, value: Any) -> Any:
    """Store ``value`` at ``point``; return the value it replaced, if any."""

    query = tree.coerce(point)
    with log_operation(LOGGER, "insert") as op_log:
        existing = locate(tree, query)
        if existing != NIL:
            previous = tree.nodes.values[existing]
            tree.nodes.values[existing] = value
            op_log.add_metadata(replaced=True, size=tree.size)
            return previous

        idx = tree.nodes.allocate(query, value)
        host = relocate(tree, idx)
        tree.size += 1
        op_log.add_metadata(replaced=False, size=tree.size, host=host)
    return None


__all__ = ["insert", "relocate"]
