from __future__ import annotations

import operator
from typing import Any, Iterator, List

import numpy as np

from psptree.core.metrics import Metric
from psptree.core.points import Key, as_point, to_key

NIL = -1
SENTINEL = 0
INNER = "inner"
OUTER = "outer"

_INITIAL_CAPACITY = 16


class NodeArena:
    """Index-addressed node pool.

    Links are arena indices with ``NIL`` for "absent". ``inner``/``outer`` own
    their children; ``parents`` is a back-reference only.
    """

    __slots__ = (
        "dimension",
        "points",
        "radii",
        "reach",
        "parents",
        "inner",
        "outer",
        "values",
        "_free",
        "_next",
    )

    def __init__(self, dimension: int, capacity: int = _INITIAL_CAPACITY) -> None:
        capacity = max(int(capacity), 1)
        self.dimension = dimension
        self.points = np.zeros((capacity, dimension), dtype=np.float64)
        self.radii = np.zeros(capacity, dtype=np.float64)
        self.reach = np.zeros(capacity, dtype=np.float64)
        self.parents = np.full(capacity, NIL, dtype=np.int64)
        self.inner = np.full(capacity, NIL, dtype=np.int64)
        self.outer = np.full(capacity, NIL, dtype=np.int64)
        self.values: List[Any] = [None] * capacity
        self._free: List[int] = []
        self._next = 0

    @property
    def capacity(self) -> int:
        return int(self.points.shape[0])

    def _grow(self) -> None:
        old = self.capacity
        new = old * 2
        points = np.zeros((new, self.dimension), dtype=np.float64)
        points[:old] = self.points
        self.points = points
        self.radii = np.concatenate([self.radii, np.zeros(old, dtype=np.float64)])
        self.reach = np.concatenate([self.reach, np.zeros(old, dtype=np.float64)])
        pad = np.full(old, NIL, dtype=np.int64)
        self.parents = np.concatenate([self.parents, pad])
        self.inner = np.concatenate([self.inner, pad])
        self.outer = np.concatenate([self.outer, pad])
        self.values.extend([None] * old)

    def allocate(self, point: np.ndarray, value: Any) -> int:
        if self._free:
            idx = self._free.pop()
        else:
            if self._next >= self.capacity:
                self._grow()
            idx = self._next
            self._next += 1
        self.points[idx] = point
        self.radii[idx] = 0.0
        self.reach[idx] = 0.0
        self.parents[idx] = NIL
        self.inner[idx] = NIL
        self.outer[idx] = NIL
        self.values[idx] = value
        return idx

    def release(self, idx: int) -> None:
        self.parents[idx] = NIL
        self.inner[idx] = NIL
        self.outer[idx] = NIL
        self.values[idx] = None
        self._free.append(idx)

    def child(self, idx: int, side: str) -> int:
        links = self.inner if side == INNER else self.outer
        return int(links[idx])

    def is_leaf(self, idx: int) -> bool:
        return bool(self.inner[idx] == NIL and self.outer[idx] == NIL)


class PSPTree:
    """Hypersphere space-partitioning tree over a fixed-dimension point space.

    Every node splits its children into an *inner* side (within its radius)
    and an *outer* side (beyond it). The user-visible root hangs off the
    ``outer`` slot of a valueless sentinel placed at a random point of the
    unit hypercube, so insertion and deletion never special-case an empty
    tree. Algorithms live in :mod:`psptree.algo` and :mod:`psptree.queries`;
    this class owns the storage and the link bookkeeping they share.
    """

    def __init__(
        self,
        metric: Metric,
        dimension: int,
        *,
        sentinel_seed: int | None = None,
    ) -> None:
        try:
            dimension = operator.index(dimension)
        except TypeError:
            raise ValueError(f"dimension must be an integer, got {dimension!r}.") from None
        if dimension < 1:
            raise ValueError("dimension must be a positive integer.")
        self.metric = metric
        self.dimension = dimension
        self.size = 0
        self._rng = np.random.default_rng(sentinel_seed)
        self.nodes = NodeArena(self.dimension)
        self._plant_sentinel()

    def _plant_sentinel(self) -> None:
        origin = self._rng.random(self.dimension)
        idx = self.nodes.allocate(origin, None)
        assert idx == SENTINEL

    def reset(self) -> None:
        """Drop every node and redraw the sentinel."""

        self.nodes = NodeArena(self.dimension)
        self.size = 0
        self._plant_sentinel()

    @property
    def root(self) -> int:
        return int(self.nodes.outer[SENTINEL])

    def is_empty(self) -> bool:
        return self.size == 0

    def coerce(self, point: Any) -> np.ndarray:
        return as_point(point, self.dimension)

    def point(self, idx: int) -> np.ndarray:
        return self.nodes.points[idx]

    def key(self, idx: int) -> Key:
        return to_key(self.nodes.points[idx])

    def value(self, idx: int) -> Any:
        return self.nodes.values[idx]

    def radius(self, idx: int) -> float:
        return float(self.nodes.radii[idx])

    def reach(self, idx: int) -> float:
        return float(self.nodes.reach[idx])

    def parent(self, idx: int) -> int:
        return int(self.nodes.parents[idx])

    def child(self, idx: int, side: str) -> int:
        return self.nodes.child(idx, side)

    def is_at(self, idx: int, point: np.ndarray) -> bool:
        return bool(np.array_equal(self.nodes.points[idx], point))

    def distance(self, a: int, b: int) -> float:
        return self.metric.distance(self.nodes.points[a], self.nodes.points[b])

    def distance_to(self, idx: int, point: np.ndarray) -> float:
        return self.metric.distance(self.nodes.points[idx], point)

    def side_for(self, host: int, idx: int) -> str:
        """Side of ``host`` that ``idx`` belongs on; the boundary is inner."""

        if self.distance(host, idx) > self.nodes.radii[host]:
            return OUTER
        return INNER

    def slot_of(self, idx: int) -> str:
        """Which slot of its current parent holds ``idx``."""

        parent = self.parent(idx)
        if parent == NIL:
            raise ValueError(f"Node {idx} is not attached to the tree.")
        if self.nodes.inner[parent] == idx:
            return INNER
        if self.nodes.outer[parent] == idx:
            return OUTER
        raise ValueError(f"Node {idx} is not a child of its recorded parent {parent}.")

    def set_child(self, parent: int, side: str, child: int) -> None:
        links = self.nodes.inner if side == INNER else self.nodes.outer
        links[parent] = child
        if child != NIL:
            self.nodes.parents[child] = parent

    def detach(self, idx: int) -> None:
        self.nodes.parents[idx] = NIL

    def extend_reach(self, start: int, subtree: int, extent: float) -> None:
        """Widen ``reach`` from ``start`` up to the root so it covers ``subtree``.

        ``extent`` is the reach already known for ``subtree`` itself.
        """

        if not self.metric.prunes:
            return
        node = start
        while node != NIL and node != SENTINEL:
            bound = self.metric.lift(self.distance(node, subtree)) + extent
            if bound > self.nodes.reach[node]:
                self.nodes.reach[node] = bound
            node = self.parent(node)

    def iter_nodes(self, start: int | None = None) -> Iterator[int]:
        """Pre-order walk: node, inner subtree, outer subtree."""

        first = self.root if start is None else start
        if first == NIL:
            return
        stack = [first]
        while stack:
            idx = stack.pop()
            yield idx
            outer = int(self.nodes.outer[idx])
            inner = int(self.nodes.inner[idx])
            if outer != NIL:
                stack.append(outer)
            if inner != NIL:
                stack.append(inner)


__all__ = ["INNER", "NIL", "NodeArena", "OUTER", "PSPTree", "SENTINEL"]
