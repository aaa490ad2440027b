"""Public map façade for psptree."""

from .map import Entry, Neighbor, PSPTreeMap

__all__ = ["Entry", "Neighbor", "PSPTreeMap"]
