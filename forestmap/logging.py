from __future__ import annotations

import logging

_ROOT = "forestmap"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger nested under the package namespace."""

    if not name:
        return logging.getLogger(_ROOT)
    return logging.getLogger(f"{_ROOT}.{name}")


__all__ = ["get_logger"]
