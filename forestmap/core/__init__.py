"""Core tree containers and their node storage."""

from .arena import NIL, NodeArena
from .avl import BalancedMap
from .tst import PrefixMap
from .validation import (
    avl_inorder,
    avl_shape,
    validate_balanced_map,
    validate_prefix_map,
)

__all__ = [
    "NIL",
    "NodeArena",
    "BalancedMap",
    "PrefixMap",
    "avl_inorder",
    "avl_shape",
    "validate_balanced_map",
    "validate_prefix_map",
]
