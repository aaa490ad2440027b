"""psptree: hypersphere space-partitioning tree keyed by points.

Quick Start
-----------
>>> from psptree import PSPTreeMap
>>>
>>> index = PSPTreeMap("euclidean", dimension=2)
>>> index.put((0.0, 0.0), "a")
>>> index.put((3.0, 4.0), "b")
>>> index.put((1.0, 1.0), "c")
>>> index.get((3.0, 4.0))
'b'
>>> [(n.distance, n.key) for n in index.k_nearest_neighbor((0.0, 0.0), 2)]
[(1.4142135623730951, (1.0, 1.0)), (5.0, (3.0, 4.0))]

Classes
-------
PSPTreeMap : Mutable mapping with exact lookup, k-NN and range queries.
PSPTree : Underlying node arena, sentinel and link bookkeeping.
Metric : Distance kernel plus the bound transform used for pruning.
"""

from importlib.metadata import version as _pkg_version

try:
    __version__ = _pkg_version("psptree")
except Exception:  # pragma: no cover - best effort during local development
    __version__ = "0.1.0"

from . import config
from .api import Entry, Neighbor, PSPTreeMap
from .core import (
    DimensionMismatchError,
    Metric,
    MetricRegistry,
    NodeArena,
    PSPTree,
    available_metrics,
    euclidean,
    get_metric,
    register_metric,
    resolve_metric,
    squared_euclidean,
)

__all__ = [
    "__version__",
    "config",
    "PSPTreeMap",
    "Entry",
    "Neighbor",
    "PSPTree",
    "NodeArena",
    "Metric",
    "MetricRegistry",
    "DimensionMismatchError",
    "available_metrics",
    "euclidean",
    "get_metric",
    "register_metric",
    "resolve_metric",
    "squared_euclidean",
]
