"""Structural invariant checks for the tree containers.

These walk the whole tree and are meant for tests and for the
``FORESTMAP_VALIDATE`` debug mode, not for hot paths.
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from forestmap.core.arena import NIL
from forestmap.core.avl import LEFT, PARENT, RIGHT, BalancedMap
from forestmap.core.tst import EQ, GT, LT, PrefixMap
from forestmap.errors import InvariantError

Shape = Optional[Tuple[Any, Any, Any]]


def validate_balanced_map(tree: BalancedMap) -> int:
    """Check ordering, links, cached heights and balance; return the height."""

    arena = tree._arena
    root = tree._root
    if root != NIL and arena.link(root, PARENT) != NIL:
        raise InvariantError("root node has a parent link")

    visited = 0
    # (node, expanded) pairs drive an iterative post-order walk.
    heights: dict[int, int] = {}
    stack: List[Tuple[int, bool]] = [(root, False)] if root != NIL else []
    while stack:
        node, expanded = stack.pop()
        left = arena.link(node, LEFT)
        right = arena.link(node, RIGHT)
        if not expanded:
            stack.append((node, True))
            for child in (right, left):
                if child == NIL:
                    continue
                if arena.link(child, PARENT) != node:
                    raise InvariantError(
                        f"node {child} does not point back to parent {node}"
                    )
                stack.append((child, False))
            continue
        left_height = heights.pop(left, 0) if left != NIL else 0
        right_height = heights.pop(right, 0) if right != NIL else 0
        height = 1 + max(left_height, right_height)
        if int(arena.aux[node]) != height:
            raise InvariantError(
                f"node {node} caches height {int(arena.aux[node])}, expected {height}"
            )
        balance = right_height - left_height
        if balance < -1 or balance > 1:
            raise InvariantError(f"node {node} has balance factor {balance}")
        heights[node] = height
        visited += 1

    keys = _avl_inorder_keys(tree)
    for before, after in zip(keys, keys[1:]):
        if not before < after:
            raise InvariantError(f"keys out of order: {before!r} then {after!r}")

    if visited != len(tree):
        raise InvariantError(f"reachable nodes {visited} != size {len(tree)}")
    return heights.get(root, 0) if root != NIL else 0


def _avl_inorder_keys(tree: BalancedMap) -> List[Any]:
    arena = tree._arena
    keys: List[Any] = []
    stack: List[int] = []
    node = tree._root
    while stack or node != NIL:
        while node != NIL:
            stack.append(node)
            node = arena.link(node, LEFT)
        node = stack.pop()
        keys.append(arena.keys[node])
        node = arena.link(node, RIGHT)
    return keys


def avl_inorder(tree: BalancedMap) -> List[Any]:
    """Return the stored keys in in-order sequence."""

    return _avl_inorder_keys(tree)


def avl_shape(tree: BalancedMap) -> Shape:
    """Return the tree as nested ``(key, left, right)`` tuples."""

    arena = tree._arena

    def build(node: int) -> Shape:
        if node == NIL:
            return None
        return (
            arena.keys[node],
            build(arena.link(node, LEFT)),
            build(arena.link(node, RIGHT)),
        )

    return build(tree._root)


def validate_prefix_map(tree: PrefixMap) -> None:
    """Check per-level symbol ordering, the key count and the length cap."""

    arena = tree._arena
    terminals = 0
    # (node, depth, lower bound, upper bound) for the lt/gt ordering check.
    stack: List[Tuple[int, int, Any, Any]] = []
    if tree._root != NIL:
        stack.append((tree._root, 1, None, None))
    while stack:
        node, depth, low, high = stack.pop()
        split = arena.keys[node]
        if low is not None and not low < split:
            raise InvariantError(f"symbol {split!r} is not greater than {low!r}")
        if high is not None and not split < high:
            raise InvariantError(f"symbol {split!r} is not less than {high!r}")
        if arena.aux[node]:
            terminals += 1
            if depth > tree.max_key_length:
                raise InvariantError(
                    f"stored key of length {depth} exceeds cap {tree.max_key_length}"
                )
        lt = arena.link(node, LT)
        eq = arena.link(node, EQ)
        gt = arena.link(node, GT)
        if lt != NIL:
            stack.append((lt, depth, low, split))
        if gt != NIL:
            stack.append((gt, depth, split, high))
        if eq != NIL:
            stack.append((eq, depth + 1, None, None))
    if terminals != len(tree):
        raise InvariantError(f"terminal nodes {terminals} != size {len(tree)}")


__all__ = [
    "avl_inorder",
    "avl_shape",
    "validate_balanced_map",
    "validate_prefix_map",
]
