from __future__ import annotations

from collections.abc import (
    ItemsView,
    Iterable,
    Iterator,
    Mapping,
    MutableMapping,
    ValuesView,
)
from typing import Any, List, NamedTuple, Set, Tuple

from psptree import config as ps_config
from psptree.algo.delete import delete as delete_point
from psptree.algo.insert import insert as insert_point
from psptree.core.metrics import Metric, resolve_metric
from psptree.core.points import Key
from psptree.core.tree import NIL, PSPTree
from psptree.queries.knn import knn as knn_query
from psptree.queries.knn import locate
from psptree.queries.range import range_search as range_query

_MISSING = object()


class Entry(NamedTuple):
    key: Key
    value: Any


class Neighbor(NamedTuple):
    distance: float
    entry: Entry

    @property
    def key(self) -> Key:
        return self.entry.key

    @property
    def value(self) -> Any:
        return self.entry.value


class _EntriesView(ItemsView):
    # Iterates nodes directly so entries holding None are still listed.
    def __iter__(self) -> Iterator[Entry]:
        yield from self._mapping.entry_set()


class _ValuesView(ValuesView):
    def __iter__(self) -> Iterator[Any]:
        yield from self._mapping.value_list()


class PSPTreeMap(MutableMapping):
    """Map from fixed-dimension points to values, backed by a :class:`PSPTree`.

    Keys may be any length-``dimension`` sequence of reals and come back as
    tuples of floats. ``None`` is treated as "no value": ``get`` cannot tell
    a stored ``None`` apart from a missing key, and such a key is reported
    as absent by ``in``, ``contains_key`` and ``[]`` even though it still
    counts towards ``len``.
    """

    def __init__(
        self,
        metric: Metric | str | Any = None,
        dimension: int = 2,
        *,
        sentinel_seed: int | None = None,
    ) -> None:
        runtime = ps_config.runtime_config()
        if sentinel_seed is None:
            sentinel_seed = runtime.sentinel_seed
        self._tree = PSPTree(
            resolve_metric(metric),
            dimension,
            sentinel_seed=sentinel_seed,
        )

    @property
    def tree(self) -> PSPTree:
        return self._tree

    @property
    def metric(self) -> Metric:
        return self._tree.metric

    @property
    def dimension(self) -> int:
        return self._tree.dimension

    # -- core map operations -------------------------------------------------

    def put(self, point: Any, value: Any) -> Any:
        return insert_point(self._tree, point, value)

    def get(self, point: Any, default: Any = None) -> Any:
        idx = locate(self._tree, self._tree.coerce(point))
        if idx == NIL:
            return default
        value = self._tree.value(idx)
        return default if value is None else value

    def remove(self, point: Any) -> Any:
        return delete_point(self._tree, point)

    def contains_key(self, point: Any) -> bool:
        return self.get(point) is not None

    def contains_value(self, value: Any) -> bool:
        return any(stored == value for stored in self._iter_values())

    def size(self) -> int:
        return self._tree.size

    def is_empty(self) -> bool:
        return self._tree.is_empty()

    def clear(self) -> None:
        self._tree.reset()

    def put_all(self, other: Mapping | Iterable[Tuple[Any, Any]]) -> None:
        pairs = other.items() if isinstance(other, Mapping) else other
        for point, value in pairs:
            self.put(point, value)

    # -- snapshots -----------------------------------------------------------

    def key_set(self) -> Set[Key]:
        return set(self)

    def value_list(self) -> List[Any]:
        return list(self._iter_values())

    def entry_set(self) -> List[Entry]:
        tree = self._tree
        return [Entry(tree.key(idx), tree.value(idx)) for idx in tree.iter_nodes()]

    def _iter_values(self) -> Iterator[Any]:
        tree = self._tree
        for idx in tree.iter_nodes():
            yield tree.value(idx)

    # -- proximity queries ---------------------------------------------------

    def _neighbor(self, distance: float, idx: int) -> Neighbor:
        return Neighbor(distance, Entry(self._tree.key(idx), self._tree.value(idx)))

    def k_nearest_neighbor(self, point: Any, k: int) -> List[Neighbor]:
        """Return the ``min(k, len(self))`` entries nearest ``point``, nearest first."""

        hits = knn_query(self._tree, point, k=k)
        return [self._neighbor(distance, idx) for distance, idx in hits]

    knn = k_nearest_neighbor

    def nearest(self, point: Any) -> Neighbor | None:
        hits = self.k_nearest_neighbor(point, 1)
        return hits[0] if hits else None

    def range_search(self, point: Any, radius: float) -> List[Neighbor]:
        """Return every entry within ``radius`` of ``point``, nearest first."""

        hits = range_query(self._tree, point, radius=radius)
        return [self._neighbor(distance, idx) for distance, idx in hits]

    # -- MutableMapping protocol ---------------------------------------------

    def __getitem__(self, point: Any) -> Any:
        value = self.get(point)
        if value is None:
            raise KeyError(point)
        return value

    def __setitem__(self, point: Any, value: Any) -> None:
        self.put(point, value)

    def __delitem__(self, point: Any) -> None:
        if delete_point(self._tree, point, default=_MISSING) is _MISSING:
            raise KeyError(point)

    def __contains__(self, point: object) -> bool:
        return self.contains_key(point)

    def __iter__(self) -> Iterator[Key]:
        tree = self._tree
        for idx in tree.iter_nodes():
            yield tree.key(idx)

    def __len__(self) -> int:
        return self._tree.size

    def items(self) -> ItemsView:
        return _EntriesView(self)

    def values(self) -> ValuesView:
        return _ValuesView(self)

    def update(self, other: Any = (), /, **kwargs: Any) -> None:
        if kwargs:
            raise TypeError("PSPTreeMap keys are points; keyword arguments are not supported.")
        self.put_all(other)

    def __repr__(self) -> str:
        body = ", ".join(f"{key!r}: {value!r}" for key, value in self.entry_set())
        return f"{type(self).__name__}({{{body}}})"


__all__ = ["Entry", "Neighbor", "PSPTreeMap"]
