from __future__ import annotations

import logging
import os
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator

try:  # pragma: no cover - platform specific fallback
    import resource
except ImportError:  # pragma: no cover - Windows fallback
    resource = None  # type: ignore

from forestmap import config as fm_config


def _read_rss_bytes() -> int | None:
    try:
        with open("/proc/self/statm", "r", encoding="utf-8") as handle:
            contents = handle.readline().strip().split()
        if len(contents) >= 2:
            rss_pages = int(contents[1])
            page_size = os.sysconf("SC_PAGE_SIZE")
            return int(rss_pages * page_size)
    except (OSError, ValueError, AttributeError):
        pass
    if resource is None:  # pragma: no cover - Windows fallback
        return None
    usage = resource.getrusage(resource.RUSAGE_SELF)
    if getattr(usage, "ru_maxrss", 0):
        return int(usage.ru_maxrss * 1024)
    return None


def _cpu_user_seconds() -> float | None:
    if resource is None:  # pragma: no cover - Windows fallback
        return None
    return float(resource.getrusage(resource.RUSAGE_SELF).ru_utime)


def _format_value(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.3f}"
    return str(value)


@dataclass
class OperationLog:
    """Collects metadata for one logged container operation."""

    op: str
    diagnostics: bool
    metadata: Dict[str, Any] = field(default_factory=dict)
    _wall_start: float = 0.0
    _cpu_start: float | None = None
    _rss_start: int | None = None

    def start(self) -> None:
        self._wall_start = time.perf_counter()
        if self.diagnostics:
            self._cpu_start = _cpu_user_seconds()
            self._rss_start = _read_rss_bytes()

    def add_metadata(self, **values: Any) -> None:
        self.metadata.update(values)

    def render(self) -> str:
        wall_ms = (time.perf_counter() - self._wall_start) * 1e3
        cpu_ms = "NA"
        rss_delta = "NA"
        if self.diagnostics:
            cpu_now = _cpu_user_seconds()
            if cpu_now is not None and self._cpu_start is not None:
                cpu_ms = f"{(cpu_now - self._cpu_start) * 1e3:.3f}"
            rss_now = _read_rss_bytes()
            if rss_now is not None and self._rss_start is not None:
                rss_delta = str(rss_now - self._rss_start)
        parts = [
            f"op={self.op}",
            f"wall_ms={wall_ms:.3f}",
            f"cpu_user_ms={cpu_ms}",
            f"rss_delta={rss_delta}",
        ]
        parts.extend(f"{key}={_format_value(value)}" for key, value in self.metadata.items())
        return " ".join(parts)


@contextmanager
def log_operation(logger: logging.Logger, op: str) -> Iterator[OperationLog | None]:
    """Time the enclosed block and emit one DEBUG record describing it.

    Yields ``None`` when ``logger`` is not enabled for DEBUG so callers can
    skip assembling metadata. Nothing is logged if the block raises.
    """

    if not logger.isEnabledFor(logging.DEBUG):
        yield None
        return
    runtime = fm_config.runtime_config()
    op_log = OperationLog(op=op, diagnostics=runtime.enable_diagnostics)
    op_log.start()
    yield op_log
    logger.debug(op_log.render())


__all__ = ["OperationLog", "log_operation"]
