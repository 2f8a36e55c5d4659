from __future__ import annotations

from typing import Any


class ForestError(Exception):
    """Base class for container errors."""


class KeyExistsError(ForestError, KeyError):
    """Raised when inserting a key that is already stored."""

    def __init__(self, key: Any) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"key already exists: {self.key!r}"


class EmptyKeyError(ForestError, ValueError):
    """Raised when a prefix map receives a zero-length key on insert."""

    def __init__(self) -> None:
        super().__init__("key must not be empty")


class InvariantError(ForestError, AssertionError):
    """Raised by the validators when a tree invariant does not hold."""


__all__ = ["EmptyKeyError", "ForestError", "InvariantError", "KeyExistsError"]
