"""Core data structures and distance metrics for psptree."""

from .metrics import (
    Metric,
    MetricRegistry,
    available_metrics,
    euclidean,
    get_metric,
    register_metric,
    resolve_metric,
    squared_euclidean,
)
from .points import DimensionMismatchError, Key, as_point, to_key
from .tree import INNER, NIL, OUTER, SENTINEL, NodeArena, PSPTree

__all__ = [
    "INNER",
    "NIL",
    "OUTER",
    "SENTINEL",
    "DimensionMismatchError",
    "Key",
    "Metric",
    "MetricRegistry",
    "NodeArena",
    "PSPTree",
    "as_point",
    "available_metrics",
    "euclidean",
    "get_metric",
    "register_metric",
    "resolve_metric",
    "squared_euclidean",
    "to_key",
]
