from __future__ import annotations

from typing import Any, Tuple

import numpy as np

Key = Tuple[float, ...]


class DimensionMismatchError(ValueError):
    """Raised when a point does not have the dimension a tree or metric expects."""


def as_point(value: Any, dimension: int) -> np.ndarray:
    """Coerce ``value`` into a 1-D float64 array of length ``dimension``."""

    arr = np.asarray(value, dtype=np.float64)
    if arr.ndim != 1:
        raise DimensionMismatchError(
            f"Expected a 1-D point of dimension {dimension}, got an array of shape {arr.shape}."
        )
    if arr.shape[0] != dimension:
        raise DimensionMismatchError(
            f"Expected a point of dimension {dimension}, got {arr.shape[0]}."
        )
    if not np.all(np.isfinite(arr)):
        raise ValueError("Point coordinates must be finite.")
    return arr


def to_key(point: np.ndarray) -> Key:
    return tuple(float(x) for x in point)


__all__ = ["DimensionMismatchError", "Key", "as_point", "to_key"]
