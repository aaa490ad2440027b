"""Namespaced loggers for psptree modules."""

from __future__ import annotations

import logging

_ROOT = "psptree"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the ``psptree.<name>`` logger (the package logger when ``name`` is empty)."""

    if not name:
        return logging.getLogger(_ROOT)
    return logging.getLogger(f"{_ROOT}.{name}")


__all__ = ["get_logger"]
