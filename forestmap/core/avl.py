from __future__ import annotations

from typing import Any, Generic, Iterable, Protocol, Tuple, TypeVar

from forestmap import config as fm_config
from forestmap.core.arena import NIL, NodeArena
from forestmap.diagnostics import log_operation
from forestmap.errors import KeyExistsError
from forestmap.logging import get_logger

LOGGER = get_logger("core.avl")

PARENT = 0
LEFT = 1
RIGHT = 2


class SupportsOrdering(Protocol):
    def __lt__(self, other: Any, /) -> bool:
        ...


K = TypeVar("K", bound=SupportsOrdering)
V = TypeVar("V")


class BalancedMap(Generic[K, V]):
    """Ordered map backed by an AVL tree.

    Nodes live in a :class:`NodeArena` with ``parent``/``left``/``right``
    link columns; ``aux`` caches each node's height (leaf = 1). Search,
    insert and delete are ``O(log n)``.

    Insertion never overwrites: inserting a stored key raises
    :class:`KeyExistsError`. ``search`` and ``delete`` report a missing key
    through the ``found`` flag of their ``(value, found)`` result.
    """

    def __init__(
        self,
        *,
        capacity: int | None = None,
        validate: bool | None = None,
    ) -> None:
        runtime = fm_config.runtime_config()
        self._arena = NodeArena(3, capacity=capacity)
        self._root = NIL
        self._validate = runtime.validate if validate is None else bool(validate)

    @classmethod
    def from_items(
        cls, items: Iterable[Tuple[K, V]], **kwargs: Any
    ) -> "BalancedMap[K, V]":
        tree = cls(**kwargs)
        with log_operation(LOGGER, "avl_bulk_insert") as op_log:
            count = 0
            for key, value in items:
                tree.insert(key, value)
                count += 1
            if op_log is not None:
                op_log.add_metadata(items=count, size=len(tree), height=tree.height)
        return tree

    def __len__(self) -> int:
        return len(self._arena)

    def __contains__(self, key: object) -> bool:
        return self._find(key) != NIL

    def __repr__(self) -> str:
        return f"{type(self).__name__}(size={len(self)}, height={self.height})"

    @property
    def height(self) -> int:
        return self._height(self._root)

    def get(self, key: K, default: Any = None) -> Any:
        value, found = self.search(key)
        return value if found else default

    def clear(self) -> None:
        self._arena = NodeArena(3, capacity=self._arena.capacity)
        self._root = NIL

    def copy(self) -> "BalancedMap[K, V]":
        clone = type(self).__new__(type(self))
        clone._arena = self._arena.copy()
        clone._root = self._root
        clone._validate = self._validate
        return clone

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def insert(self, key: K, value: V) -> None:
        arena = self._arena
        if self._root == NIL:
            self._root = self._new_node(key, value, NIL)
            self._check()
            return

        node = self._root
        while True:
            split = arena.keys[node]
            if key < split:
                column = LEFT
            elif split < key:
                column = RIGHT
            else:
                raise KeyExistsError(key)
            child = arena.link(node, column)
            if child == NIL:
                break
            node = child

        leaf = self._new_node(key, value, node)
        arena.set_link(node, column, leaf)
        self._rebalance_after_insert(node)
        self._check()

    def search(self, key: K) -> Tuple[V | None, bool]:
        node = self._find(key)
        if node == NIL:
            return None, False
        return self._arena.values[node], True

    def delete(self, key: K) -> Tuple[V | None, bool]:
        node = self._find(key)
        if node == NIL:
            return None, False

        arena = self._arena
        value = arena.values[node]
        target = node
        if arena.link(node, LEFT) != NIL and arena.link(node, RIGHT) != NIL:
            # Move the in-order predecessor up and remove its node instead.
            target = self._subtree_max(arena.link(node, LEFT))
            arena.keys[node] = arena.keys[target]
            arena.values[node] = arena.values[target]

        parent = self._splice_out(target)
        rotations = self._rebalance_after_delete(parent)
        if rotations > 1:
            LOGGER.debug("op=avl_delete rotations=%d size=%d", rotations, len(self))
        self._check()
        return value, True

    # ------------------------------------------------------------------
    # Node helpers
    # ------------------------------------------------------------------

    def _new_node(self, key: K, value: V, parent: int) -> int:
        index = self._arena.allocate(key, value)
        self._arena.set_link(index, PARENT, parent)
        self._arena.aux[index] = 1
        return index

    def _find(self, key: Any) -> int:
        arena = self._arena
        node = self._root
        while node != NIL:
            split = arena.keys[node]
            if key < split:
                node = arena.link(node, LEFT)
            elif split < key:
                node = arena.link(node, RIGHT)
            else:
                return node
        return NIL

    def _subtree_max(self, node: int) -> int:
        arena = self._arena
        child = arena.link(node, RIGHT)
        while child != NIL:
            node = child
            child = arena.link(node, RIGHT)
        return node

    def _height(self, node: int) -> int:
        if node == NIL:
            return 0
        return int(self._arena.aux[node])

    def _update_height(self, node: int) -> None:
        arena = self._arena
        left = self._height(arena.link(node, LEFT))
        right = self._height(arena.link(node, RIGHT))
        arena.aux[node] = 1 + max(left, right)

    def _balance_factor(self, node: int) -> int:
        arena = self._arena
        return self._height(arena.link(node, RIGHT)) - self._height(arena.link(node, LEFT))

    def _replace_child(self, parent: int, old: int, new: int) -> None:
        """Point ``parent``'s slot holding ``old`` at ``new`` (or the root)."""

        if parent == NIL:
            self._root = new
        elif self._arena.link(parent, LEFT) == old:
            self._arena.set_link(parent, LEFT, new)
        else:
            self._arena.set_link(parent, RIGHT, new)

    def _splice_out(self, node: int) -> int:
        """Unlink a node with at most one child; return its former parent."""

        arena = self._arena
        child = arena.link(node, LEFT)
        if child == NIL:
            child = arena.link(node, RIGHT)
        parent = arena.link(node, PARENT)
        if child != NIL:
            arena.set_link(child, PARENT, parent)
        self._replace_child(parent, node, child)
        arena.release(node)
        return parent

    # ------------------------------------------------------------------
    # Rotations
    # ------------------------------------------------------------------

    def _rotate_left(self, node: int) -> int:
        # A          B
        #  \        / \
        #   B   => A   D
        #  / \      \
        # C   D      C
        arena = self._arena
        pivot = arena.link(node, RIGHT)
        parent = arena.link(node, PARENT)
        inner = arena.link(pivot, LEFT)

        arena.set_link(node, RIGHT, inner)
        if inner != NIL:
            arena.set_link(inner, PARENT, node)
        arena.set_link(pivot, LEFT, node)
        arena.set_link(node, PARENT, pivot)
        arena.set_link(pivot, PARENT, parent)
        self._replace_child(parent, node, pivot)

        self._update_height(node)
        self._update_height(pivot)
        return pivot

    def _rotate_right(self, node: int) -> int:
        #     A      B
        #    /      / \
        #   B   => C   A
        #  / \        /
        # C   D      D
        arena = self._arena
        pivot = arena.link(node, LEFT)
        parent = arena.link(node, PARENT)
        inner = arena.link(pivot, RIGHT)

        arena.set_link(node, LEFT, inner)
        if inner != NIL:
            arena.set_link(inner, PARENT, node)
        arena.set_link(pivot, RIGHT, node)
        arena.set_link(node, PARENT, pivot)
        arena.set_link(pivot, PARENT, parent)
        self._replace_child(parent, node, pivot)

        self._update_height(node)
        self._update_height(pivot)
        return pivot

    def _restructure(self, node: int) -> int:
        """Apply one single or double rotation at a node with balance +-2."""

        arena = self._arena
        if self._balance_factor(node) > 0:
            right = arena.link(node, RIGHT)
            if self._balance_factor(right) < 0:
                self._rotate_right(right)
            return self._rotate_left(node)
        left = arena.link(node, LEFT)
        if self._balance_factor(left) > 0:
            self._rotate_left(left)
        return self._rotate_right(node)

    def _rebalance_after_insert(self, node: int) -> None:
        arena = self._arena
        while node != NIL:
            old_height = self._height(node)
            self._update_height(node)
            if abs(self._balance_factor(node)) > 1:
                # One rotation restores the pre-insert height of this subtree.
                self._restructure(node)
                return
            if self._height(node) == old_height:
                return
            node = arena.link(node, PARENT)

    def _rebalance_after_delete(self, node: int) -> int:
        arena = self._arena
        rotations = 0
        while node != NIL:
            old_height = self._height(node)
            self._update_height(node)
            if abs(self._balance_factor(node)) > 1:
                node = self._restructure(node)
                rotations += 1
            if self._height(node) == old_height:
                break
            node = arena.link(node, PARENT)
        return rotations

    def _check(self) -> None:
        if self._validate:
            from forestmap.core.validation import validate_balanced_map

            validate_balanced_map(self)


__all__ = ["BalancedMap"]
