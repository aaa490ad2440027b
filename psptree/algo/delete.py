from __future__ import annotations

from typing import Any

from psptree.algo.insert import relocate
from psptree.core.tree import INNER, NIL, OUTER, PSPTree
from psptree.diagnostics import log_operation
from psptree.logging import get_logger
from psptree.queries.knn import locate

LOGGER = get_logger("algo.delete")


def delete(tree: PSPTree, point: Any, *, default: Any = None) -> Any:
    """Remove the entry stored at ``point`` and return its value (``default`` if absent).

    A node with two children is cut out together with both subtrees; the
    inner subtree root and then the outer one are relocated whole, each
    under its nearest neighbour in what remains of the tree.
    """

    query = tree.coerce(point)
    with log_operation(LOGGER, "delete") as op_log:
        idx = locate(tree, query)
        if idx == NIL:
            op_log.add_metadata(found=False, size=tree.size)
            return default

        parent = tree.parent(idx)
        side = tree.slot_of(idx)
        inner = tree.child(idx, INNER)
        outer = tree.child(idx, OUTER)

        if inner == NIL and outer == NIL:
            tree.set_child(parent, side, NIL)
            children = 0
        elif inner == NIL or outer == NIL:
            tree.set_child(parent, side, outer if inner == NIL else inner)
            children = 1
        else:
            tree.set_child(parent, side, NIL)
            tree.detach(inner)
            tree.detach(outer)
            relocate(tree, inner)
            relocate(tree, outer)
            children = 2

        value = tree.nodes.values[idx]
        tree.nodes.release(idx)
        tree.size -= 1
        op_log.add_metadata(found=True, children=children, size=tree.size)
    return value


__all__ = ["delete"]
