from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict

_LOGGER = logging.getLogger("forestmap")

_SUPPORTED_INDEX_DTYPES = {"int32", "int64"}
_DEFAULT_ARENA_CAPACITY = 16
_DEFAULT_ARENA_GROWTH = 2.0
_DEFAULT_INDEX_DTYPE = "int64"


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


def _parse_optional_float(raw: str | None) -> float | None:
    if raw is None or raw.strip() == "":
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid float value '{raw}'") from exc


def _normalise_index_dtype(value: str | None) -> str:
    if value is None:
        return _DEFAULT_INDEX_DTYPE
    value = value.strip().lower()
    if value not in _SUPPORTED_INDEX_DTYPES:
        raise ValueError(
            f"Unsupported index dtype '{value}'. Expected one of {_SUPPORTED_INDEX_DTYPES}."
        )
    return value


def _parse_arena_capacity(raw: str | None) -> int:
    capacity = _parse_optional_int(raw)
    if capacity is None:
        return _DEFAULT_ARENA_CAPACITY
    if capacity <= 0:
        raise ValueError(f"Arena capacity must be positive, got {capacity}.")
    return capacity


def _parse_arena_growth(raw: str | None) -> float:
    growth = _parse_optional_float(raw)
    if growth is None:
        return _DEFAULT_ARENA_GROWTH
    if growth <= 1.0:
        raise ValueError(f"Arena growth factor must exceed 1.0, got {growth}.")
    return growth


@dataclass(frozen=True)
class RuntimeConfig:
    log_level: str
    enable_diagnostics: bool
    arena_capacity: int
    arena_growth: float
    index_dtype: str
    prune_on_delete: bool
    validate: bool

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        log_level = os.getenv("FORESTMAP_LOG_LEVEL", "INFO").strip().upper() or "INFO"
        enable_diagnostics = _bool_from_env(
            os.getenv("FORESTMAP_ENABLE_DIAGNOSTICS"), default=True
        )
        arena_capacity = _parse_arena_capacity(os.getenv("FORESTMAP_ARENA_CAPACITY"))
        arena_growth = _parse_arena_growth(os.getenv("FORESTMAP_ARENA_GROWTH"))
        index_dtype = _normalise_index_dtype(os.getenv("FORESTMAP_INDEX_DTYPE"))
        prune_on_delete = _bool_from_env(
            os.getenv("FORESTMAP_PRUNE_ON_DELETE"), default=False
        )
        validate = _bool_from_env(os.getenv("FORESTMAP_VALIDATE"), default=False)
        return cls(
            log_level=log_level,
            enable_diagnostics=enable_diagnostics,
            arena_capacity=arena_capacity,
            arena_growth=arena_growth,
            index_dtype=index_dtype,
            prune_on_delete=prune_on_delete,
            validate=validate,
        )


def _configure_logging(level: str) -> None:
    logger = logging.getLogger("forestmap")
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
    if config.validate:
        _LOGGER.info("Invariant validation enabled; every mutation is checked.")
    return config


def reset_runtime_config_cache() -> None:
    runtime_config.cache_clear()


def describe_runtime() -> Dict[str, Any]:
    """Return a serialisable view of the active runtime configuration."""

    config = runtime_config()
    return {
        "log_level": config.log_level,
        "enable_diagnostics": config.enable_diagnostics,
        "arena_capacity": config.arena_capacity,
        "arena_growth": config.arena_growth,
        "index_dtype": config.index_dtype,
        "prune_on_delete": config.prune_on_delete,
        "validate": config.validate,
    }


__all__ = [
    "RuntimeConfig",
    "describe_runtime",
    "reset_runtime_config_cache",
    "runtime_config",
]
