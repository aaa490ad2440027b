from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict

_LOGGER_NAME = "psptree"
_DEFAULT_METRIC = "euclidean"
_DEFAULT_LOG_LEVEL = "INFO"
_SUPPORTED_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}


def _bool_from_env(value: str | None, *, default: bool) -> bool:
    if value is None:
        return default
    value = value.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_optional_int(raw: str | None) -> int | None:
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid integer value '{raw}'") from exc


def _normalise_log_level(value: str | None) -> str:
    if value is None or value.strip() == "":
        return _DEFAULT_LOG_LEVEL
    level = value.strip().upper()
    if level not in _SUPPORTED_LOG_LEVELS:
        raise ValueError(
            f"Unsupported log level '{value}'. Expected one of {sorted(_SUPPORTED_LOG_LEVELS)}."
        )
    return level


@dataclass(frozen=True)
class RuntimeConfig:
    metric: str
    log_level: str
    enable_diagnostics: bool
    sentinel_seed: int | None

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        metric = os.getenv("PSPTREE_METRIC", _DEFAULT_METRIC).strip().lower() or _DEFAULT_METRIC
        log_level = _normalise_log_level(os.getenv("PSPTREE_LOG_LEVEL"))
        enable_diagnostics = _bool_from_env(
            os.getenv("PSPTREE_ENABLE_DIAGNOSTICS"), default=True
        )
        sentinel_seed = _parse_optional_int(os.getenv("PSPTREE_SENTINEL_SEED"))
        return cls(
            metric=metric,
            log_level=log_level,
            enable_diagnostics=enable_diagnostics,
            sentinel_seed=sentinel_seed,
        )


def _configure_logging(level: str) -> None:
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        formatter = logging.Formatter("%(levelname)s %(name)s: %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)


@lru_cache(maxsize=None)
def runtime_config() -> RuntimeConfig:
    config = RuntimeConfig.from_env()
    _configure_logging(config.log_level)
    return config


def reset_runtime_config_cache() -> None:
    runtime_config.cache_clear()


def describe_runtime() -> Dict[str, Any]:
    """Return a serialisable view of the active runtime configuration."""

    config = runtime_config()
    return {
        "metric": config.metric,
        "log_level": config.log_level,
        "enable_diagnostics": config.enable_diagnostics,
        "sentinel_seed": config.sentinel_seed,
    }


__all__ = [
    "RuntimeConfig",
    "describe_runtime",
    "reset_runtime_config_cache",
    "runtime_config",
]
