"""Forestmap: in-memory ordered maps backed by balanced and ternary trees.

Quick Start
-----------
>>> from forestmap import BalancedMap, PrefixMap
>>>
>>> # AVL-backed map over scalar keys
>>> scores = BalancedMap()
>>> scores.insert(42, "answer")
>>> scores.search(42)
('answer', True)
>>>
>>> # Ternary search tree over sequence keys with prefix enumeration
>>> words = PrefixMap()
>>> for i, word in enumerate(["hello", "world", "heaven", "hell", "healthy"], 1):
...     words.insert(word, i)
>>> words.entries("hea")
[('healthy', 5), ('heaven', 3)]

Classes
-------
BalancedMap : AVL tree keyed by one totally-ordered key.
PrefixMap : Ternary search tree keyed by symbol sequences.
"""

from importlib.metadata import version as _pkg_version

try:
    __version__ = _pkg_version("forestmap")
except Exception:  # pragma: no cover - best effort during local development
    __version__ = "0.0.1"

from .config import describe_runtime, reset_runtime_config_cache, runtime_config
from .core import (
    BalancedMap,
    NodeArena,
    PrefixMap,
    avl_inorder,
    avl_shape,
    validate_balanced_map,
    validate_prefix_map,
)
from .errors import EmptyKeyError, ForestError, InvariantError, KeyExistsError

__all__ = [
    "__version__",
    # Containers
    "BalancedMap",
    "PrefixMap",
    # Errors
    "ForestError",
    "KeyExistsError",
    "EmptyKeyError",
    "InvariantError",
    # Internal
    "NodeArena",
    "avl_inorder",
    "avl_shape",
    "validate_balanced_map",
    "validate_prefix_map",
    "describe_runtime",
    "reset_runtime_config_cache",
    "runtime_config",
]
