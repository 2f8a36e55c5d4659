from __future__ import annotations

from typing import Any, List

import numpy as np

from forestmap import config as fm_config

NIL = -1


class NodeArena:
    """Index-addressed node storage shared by the tree containers.

    Links live in a ``(capacity, num_links)`` integer table initialised to
    ``NIL``; ``aux`` holds one integer per node (subtree height for AVL nodes,
    end-of-key flag for TST nodes). Keys and values stay in Python lists so
    they can hold arbitrary objects. Released slots are recycled LIFO.
    """

    __slots__ = ("links", "aux", "keys", "values", "_free", "_live", "_growth", "_dtype")

    def __init__(
        self,
        num_links: int,
        *,
        capacity: int | None = None,
        growth: float | None = None,
        index_dtype: str | None = None,
    ) -> None:
        if num_links <= 0:
            raise ValueError("NodeArena requires at least one link column.")
        runtime = fm_config.runtime_config()
        capacity = runtime.arena_capacity if capacity is None else int(capacity)
        if capacity <= 0:
            raise ValueError("NodeArena capacity must be positive.")
        self._growth = runtime.arena_growth if growth is None else float(growth)
        if self._growth <= 1.0:
            raise ValueError("NodeArena growth factor must exceed 1.0.")
        self._dtype = np.dtype(index_dtype or runtime.index_dtype)
        self.links = np.full((capacity, num_links), NIL, dtype=self._dtype)
        self.aux = np.zeros(capacity, dtype=self._dtype)
        self.keys: List[Any] = []
        self.values: List[Any] = []
        self._free: List[int] = []
        self._live = 0

    def __len__(self) -> int:
        return self._live

    @property
    def capacity(self) -> int:
        return int(self.links.shape[0])

    @property
    def num_links(self) -> int:
        return int(self.links.shape[1])

    def _grow(self) -> None:
        current = self.capacity
        target = max(current + 1, int(current * self._growth))
        pad = np.full((target - current, self.num_links), NIL, dtype=self._dtype)
        self.links = np.concatenate([self.links, pad], axis=0)
        self.aux = np.concatenate([self.aux, np.zeros(target - current, dtype=self._dtype)])

    def allocate(self, key: Any, value: Any = None) -> int:
        if self._free:
            index = self._free.pop()
            self.keys[index] = key
            self.values[index] = value
        else:
            index = len(self.keys)
            if index >= self.capacity:
                self._grow()
            self.keys.append(key)
            self.values.append(value)
        self._live += 1
        return index

    def release(self, index: int) -> None:
        if index < 0 or index >= len(self.keys):
            raise ValueError(f"Node index {index} is out of range.")
        if self.keys[index] is None and index in self._free:
            raise ValueError(f"Node {index} has already been released.")
        self.links[index, :] = NIL
        self.aux[index] = 0
        self.keys[index] = None
        self.values[index] = None
        self._free.append(index)
        self._live -= 1

    def link(self, index: int, column: int) -> int:
        return int(self.links[index, column])

    def set_link(self, index: int, column: int, target: int) -> None:
        self.links[index, column] = target

    def copy(self) -> "NodeArena":
        clone = NodeArena.__new__(NodeArena)
        clone.links = self.links.copy()
        clone.aux = self.aux.copy()
        clone.keys = list(self.keys)
        clone.values = list(self.values)
        clone._free = list(self._free)
        clone._live = self._live
        clone._growth = self._growth
        clone._dtype = self._dtype
        return clone


__all__ = ["NIL", "NodeArena"]
