"""Read-only queries over a :class:`~psptree.core.tree.PSPTree`."""

from .knn import knn, locate, nearest_neighbor
from .range import range_search

__all__ = ["knn", "locate", "nearest_neighbor", "range_search"]
