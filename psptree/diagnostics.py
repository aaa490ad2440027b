from __future__ import annotations

import logging
import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator

from psptree import config as ps_config

try:  # pragma: no cover - platform dependent
    import resource
except ImportError:  # pragma: no cover - e.g. Windows
    resource = None  # type: ignore[assignment]


@dataclass
class ResourceSnapshot:
    wall: float
    cpu_user: float | None
    rss: int | None


@dataclass
class OperationLog:
    """Collects metadata for one logged operation."""

    op: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    def add_metadata(self, **fields: Any) -> None:
        self.metadata.update(fields)


def _max_rss_bytes(usage: Any) -> int:
    # ru_maxrss is reported in bytes on macOS and kilobytes elsewhere.
    if sys.platform == "darwin":
        return int(usage.ru_maxrss)
    return int(usage.ru_maxrss) * 1024


def _snapshot(enable_diagnostics: bool) -> ResourceSnapshot:
    wall = time.perf_counter()
    if not enable_diagnostics or resource is None:
        return ResourceSnapshot(wall=wall, cpu_user=None, rss=None)
    usage = resource.getrusage(resource.RUSAGE_SELF)
    return ResourceSnapshot(wall=wall, cpu_user=usage.ru_utime, rss=_max_rss_bytes(usage))


def _format_value(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.3f}"
    return str(value)


def _format_message(
    op_log: OperationLog, start: ResourceSnapshot, end: ResourceSnapshot
) -> str:
    wall_ms = (end.wall - start.wall) * 1e3
    if start.cpu_user is None or end.cpu_user is None:
        cpu_user = "NA"
    else:
        cpu_user = f"{(end.cpu_user - start.cpu_user) * 1e3:.3f}"
    if start.rss is None or end.rss is None:
        rss_delta = "NA"
    else:
        rss_delta = str(end.rss - start.rss)
    parts = [
        f"op={op_log.op}",
        f"wall_ms={wall_ms:.3f}",
        f"cpu_user_ms={cpu_user}",
        f"rss_delta={rss_delta}",
    ]
    parts.extend(f"{key}={_format_value(value)}" for key, value in op_log.metadata.items())
    return " ".join(parts)


@contextmanager
def log_operation(
    logger: logging.Logger,
    op: str,
    *,
    level: int = logging.DEBUG,
) -> Iterator[OperationLog]:
    """Time the wrapped block and emit a single ``op=...`` line on success."""

    op_log = OperationLog(op=op)
    if not logger.isEnabledFor(level):
        yield op_log
        return
    enable_diagnostics = ps_config.runtime_config().enable_diagnostics
    start = _snapshot(enable_diagnostics)
    yield op_log
    end = _snapshot(enable_diagnostics)
    logger.log(level, _format_message(op_log, start, end))


__all__ = ["OperationLog", "log_operation"]
