from __future__ import annotations

from typing import Any, Callable, Generic, Iterable, List, Sequence, Tuple, TypeVar

from forestmap import config as fm_config
from forestmap.core.arena import NIL, NodeArena
from forestmap.diagnostics import log_operation
from forestmap.errors import EmptyKeyError, KeyExistsError
from forestmap.logging import get_logger

LOGGER = get_logger("core.tst")

LT = 0
EQ = 1
GT = 2

_VISIT = 0
_DESCEND = 1

S = TypeVar("S")
V = TypeVar("V")
R = TypeVar("R")

KeyFactory = Callable[[List[Any]], Any]


def _join_text(symbols: List[Any]) -> str:
    return "".join(symbols)


def _infer_key_factory(key: Sequence[Any]) -> KeyFactory:
    if isinstance(key, str):
        return _join_text
    if isinstance(key, (bytes, bytearray)):
        return bytes
    return tuple


def _as_symbols(key: Iterable[Any] | None) -> Sequence[Any]:
    if key is None:
        return ()
    if isinstance(key, (str, bytes, bytearray, tuple, list)):
        return key
    return tuple(key)


class PrefixMap(Generic[S, V]):
    """Ternary search tree mapping symbol sequences to values.

    Each node holds one split symbol and ``lt``/``eq``/``gt`` links in a
    :class:`NodeArena`; ``aux`` is the end-of-key flag. Point operations cost
    ``O(len(key))`` comparisons along a path independent of the map size, and
    prefix enumeration returns keys in lexicographic order.

    Keys may be ``str``, ``bytes``, tuples, lists or any finite iterable of
    mutually comparable symbols. Enumerated keys are rebuilt with
    ``key_factory``; by default it is inferred from the first inserted key
    (``str`` keys come back as ``str``, ``bytes`` as ``bytes``, anything else
    as a tuple).

    Point operations expect an iterable key and raise ``TypeError`` otherwise;
    ``in`` reports non-iterable keys as absent.
    """

    def __init__(
        self,
        *,
        key_factory: KeyFactory | None = None,
        prune: bool | None = None,
        capacity: int | None = None,
        validate: bool | None = None,
    ) -> None:
        runtime = fm_config.runtime_config()
        self._arena = NodeArena(3, capacity=capacity)
        self._root = NIL
        self._count = 0
        self._max_key_len = 0
        self._explicit_key_factory = key_factory
        self._key_factory = key_factory
        self._prune = runtime.prune_on_delete if prune is None else bool(prune)
        self._validate = runtime.validate if validate is None else bool(validate)

    @classmethod
    def from_items(
        cls, items: Iterable[Tuple[Iterable[S], V]], **kwargs: Any
    ) -> "PrefixMap[S, V]":
        tree = cls(**kwargs)
        with log_operation(LOGGER, "tst_bulk_insert") as op_log:
            count = 0
            for key, value in items:
                tree.insert(key, value)
                count += 1
            if op_log is not None:
                op_log.add_metadata(
                    items=count, size=len(tree), nodes=len(tree._arena)
                )
        return tree

    def __len__(self) -> int:
        return self._count

    def __contains__(self, key: object) -> bool:
        try:
            symbols = _as_symbols(key)  # type: ignore[arg-type]
        except TypeError:
            return False
        return self.search(symbols)[1]

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(size={self._count}, "
            f"max_key_length={self._max_key_len}, nodes={len(self._arena)})"
        )

    @property
    def max_key_length(self) -> int:
        return self._max_key_len

    def get(self, key: Iterable[S], default: Any = None) -> Any:
        value, found = self.search(key)
        return value if found else default

    def clear(self) -> None:
        self._arena = NodeArena(3, capacity=self._arena.capacity)
        self._root = NIL
        self._count = 0
        self._max_key_len = 0
        self._key_factory = self._explicit_key_factory

    def copy(self) -> "PrefixMap[S, V]":
        clone = type(self).__new__(type(self))
        clone._arena = self._arena.copy()
        clone._root = self._root
        clone._count = self._count
        clone._max_key_len = self._max_key_len
        clone._explicit_key_factory = self._explicit_key_factory
        clone._key_factory = self._key_factory
        clone._prune = self._prune
        clone._validate = self._validate
        return clone

    # ------------------------------------------------------------------
    # Point operations
    # ------------------------------------------------------------------

    def insert(self, key: Iterable[S], value: V) -> None:
        symbols = _as_symbols(key)
        size = len(symbols)
        if size == 0:
            raise EmptyKeyError()

        arena = self._arena
        parent, column = NIL, LT
        node = self._root
        position = 0
        while True:
            symbol = symbols[position]
            if node == NIL:
                node = arena.allocate(symbol)
                if parent == NIL:
                    self._root = node
                else:
                    arena.set_link(parent, column, node)
            split = arena.keys[node]
            if symbol < split:
                column = LT
            elif split < symbol:
                column = GT
            elif position + 1 < size:
                column = EQ
                position += 1
            else:
                break
            parent, node = node, arena.link(node, column)

        if arena.aux[node]:
            # Every node on this path already existed, so nothing was created.
            raise KeyExistsError(key)
        arena.aux[node] = 1
        arena.values[node] = value
        self._count += 1
        if size > self._max_key_len:
            self._max_key_len = size
        if self._key_factory is None:
            self._key_factory = _infer_key_factory(symbols)
        self._check()

    def search(self, key: Iterable[S]) -> Tuple[V | None, bool]:
        symbols = _as_symbols(key)
        if len(symbols) == 0:
            return None, False
        node = self._find(symbols)
        if node == NIL or not self._arena.aux[node]:
            return None, False
        return self._arena.values[node], True

    def delete(self, key: Iterable[S]) -> Tuple[V | None, bool]:
        symbols = _as_symbols(key)
        if len(symbols) == 0:
            return None, False
        path: List[Tuple[int, int]] = []
        node = self._find(symbols, path=path)
        arena = self._arena
        if node == NIL or not arena.aux[node]:
            return None, False

        value = arena.values[node]
        arena.aux[node] = 0
        arena.values[node] = None
        self._count -= 1
        if self._prune:
            self._prune_path(node, path)
        self._check()
        return value, True

    # ------------------------------------------------------------------
    # Prefix enumeration
    # ------------------------------------------------------------------

    def apply(
        self,
        prefix: Iterable[S] | None,
        callback: Callable[[Any, V], R],
    ) -> List[R]:
        """Map ``callback(key, value)`` over entries under ``prefix`` in order.

        An empty or ``None`` prefix covers every entry. When the prefix is
        itself a stored key it is visited first.
        """

        symbols = _as_symbols(prefix)
        with log_operation(LOGGER, "tst_apply") as op_log:
            results = self._walk(symbols, callback)
            if op_log is not None:
                op_log.add_metadata(prefix_len=len(symbols), results=len(results))
        return results

    def entries(self, prefix: Iterable[S] | None = None) -> List[Tuple[Any, V]]:
        return self.apply(prefix, lambda key, value: (key, value))

    def keys(self, prefix: Iterable[S] | None = None) -> List[Any]:
        return self.apply(prefix, lambda key, value: key)

    def values(self, prefix: Iterable[S] | None = None) -> List[V]:
        return self.apply(prefix, lambda key, value: value)

    def _walk(self, prefix: Sequence[Any], callback: Callable[[Any, V], R]) -> List[R]:
        if len(prefix) > self._max_key_len or self._root == NIL:
            return []

        arena = self._arena
        make_key = self._key_factory or tuple
        buffer: List[Any] = [None] * self._max_key_len
        results: List[R] = []

        start = self._root
        depth = 0
        if prefix:
            node = self._find(prefix)
            if node == NIL:
                return []
            depth = len(prefix)
            buffer[:depth] = prefix
            if arena.aux[node]:
                results.append(callback(make_key(buffer[:depth]), arena.values[node]))
            start = arena.link(node, EQ)

        # lt subtree, then this node (its own key and eq subtree), then gt.
        stack: List[Tuple[int, int, int]] = []
        if start != NIL:
            stack.append((_VISIT, start, depth))
        while stack:
            action, node, level = stack.pop()
            if action == _VISIT:
                gt = arena.link(node, GT)
                if gt != NIL:
                    stack.append((_VISIT, gt, level))
                stack.append((_DESCEND, node, level))
                lt = arena.link(node, LT)
                if lt != NIL:
                    stack.append((_VISIT, lt, level))
                continue
            buffer[level] = arena.keys[node]
            if arena.aux[node]:
                results.append(
                    callback(make_key(buffer[: level + 1]), arena.values[node])
                )
            eq = arena.link(node, EQ)
            if eq != NIL:
                stack.append((_VISIT, eq, level + 1))
        return results

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _find(self, symbols: Sequence[Any], *, path: List[Tuple[int, int]] | None = None) -> int:
        """Return the node matching the last symbol, or ``NIL``.

        When ``path`` is given it receives the ``(parent, column)`` edge used
        to reach every node after the root.
        """

        arena = self._arena
        node = self._root
        size = len(symbols)
        position = 0
        while node != NIL:
            symbol = symbols[position]
            split = arena.keys[node]
            if symbol < split:
                column = LT
            elif split < symbol:
                column = GT
            elif position + 1 < size:
                column = EQ
                position += 1
            else:
                return node
            if path is not None:
                path.append((node, column))
            node = arena.link(node, column)
        return NIL

    def _prune_path(self, node: int, path: List[Tuple[int, int]]) -> None:
        """Release childless non-terminal nodes from ``node`` upwards."""

        arena = self._arena
        released = 0
        while node != NIL and not arena.aux[node]:
            if any(arena.link(node, column) != NIL for column in (LT, EQ, GT)):
                break
            if path:
                parent, column = path.pop()
                arena.set_link(parent, column, NIL)
            else:
                parent = NIL
                self._root = NIL
            arena.release(node)
            released += 1
            node = parent
        if released:
            LOGGER.debug("op=tst_prune released=%d nodes=%d", released, len(arena))

    def _check(self) -> None:
        if self._validate:
            from forestmap.core.validation import validate_prefix_map

            validate_prefix_map(self)

    # Alias kept last so the builtin ``list`` stays visible in the class body.
    def list(self, prefix: Iterable[S] | None = None) -> List[Any]:
        return self.keys(prefix)


__all__ = ["PrefixMap"]
