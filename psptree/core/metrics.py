from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

import numpy as np

from psptree import config as ps_config
from psptree.core.points import DimensionMismatchError


class DistanceKernel(Protocol):
    def __call__(self, lhs: np.ndarray, rhs: np.ndarray) -> float:
        ...


BoundTransform = Callable[[float], float]


def _identity(value: float) -> float:
    return value


@dataclass(frozen=True)
class Metric:
    """Distance kernel plus the transform used for pruning bounds.

    ``bound_transform`` maps kernel distances monotonically onto values that
    obey the triangle inequality. Search prunes subtrees in those units, so a
    kernel such as squared Euclidean keeps exact results. ``None`` means no
    such transform is known and every node is visited.
    """

    name: str
    kernel: DistanceKernel
    bound_transform: Optional[BoundTransform] = _identity

    def distance(self, lhs: np.ndarray, rhs: np.ndarray) -> float:
        return self.kernel(lhs, rhs)

    @property
    def prunes(self) -> bool:
        return self.bound_transform is not None

    def lift(self, distance: float) -> float:
        if self.bound_transform is None:
            return distance
        return self.bound_transform(distance)


class MetricRegistry:
    """Minimal registry for runtime-selectable metrics."""

    def __init__(self) -> None:
        self._metrics: Dict[str, Metric] = {}

    def register(self, metric: Metric, *, overwrite: bool = False) -> None:
        name = metric.name.lower()
        if not overwrite and name in self._metrics:
            raise ValueError(f"Metric '{metric.name}' already registered.")
        self._metrics[name] = metric

    def get(self, name: str) -> Metric:
        key = name.lower()
        if key not in self._metrics:
            raise KeyError(f"Metric '{name}' not registered.")
        return self._metrics[key]

    def names(self) -> Tuple[str, ...]:
        return tuple(sorted(self._metrics.keys()))


def _check_operands(lhs: np.ndarray, rhs: np.ndarray) -> None:
    if lhs.shape != rhs.shape:
        raise DimensionMismatchError(
            f"Metric operands must have identical shapes, got {lhs.shape} and {rhs.shape}."
        )


def _squared_euclidean_kernel(lhs: np.ndarray, rhs: np.ndarray) -> float:
    _check_operands(lhs, rhs)
    diff = lhs - rhs
    return float(np.dot(diff, diff))


def _euclidean_kernel(lhs: np.ndarray, rhs: np.ndarray) -> float:
    return math.sqrt(_squared_euclidean_kernel(lhs, rhs))


euclidean = Metric(name="euclidean", kernel=_euclidean_kernel)
squared_euclidean = Metric(
    name="squared_euclidean",
    kernel=_squared_euclidean_kernel,
    bound_transform=math.sqrt,
)


def _load_registry() -> MetricRegistry:
    registry = MetricRegistry()
    registry.register(euclidean)
    registry.register(squared_euclidean)
    return registry


_REGISTRY = _load_registry()


def get_metric(name: str | None = None) -> Metric:
    """Return a registered metric, defaulting to the runtime-selected metric."""

    if name is None:
        name = ps_config.runtime_config().metric
    return _REGISTRY.get(name)


def register_metric(metric: Metric, *, overwrite: bool = False) -> None:
    _REGISTRY.register(metric, overwrite=overwrite)


def available_metrics() -> Tuple[str, ...]:
    return _REGISTRY.names()


def resolve_metric(metric: Any) -> Metric:
    """Turn a metric name, ``Metric``, plain callable or ``None`` into a ``Metric``.

    Plain callables are assumed to be true metrics.
    """

    if metric is None or isinstance(metric, str):
        return get_metric(metric)
    if isinstance(metric, Metric):
        return metric
    if callable(metric):
        name = getattr(metric, "__name__", type(metric).__name__)
        return Metric(name=name, kernel=metric)
    raise TypeError(f"Cannot interpret {metric!r} as a distance metric.")


__all__ = [
    "DistanceKernel",
    "Metric",
    "MetricRegistry",
    "available_metrics",
    "euclidean",
    "get_metric",
    "register_metric",
    "resolve_metric",
    "squared_euclidean",
]
