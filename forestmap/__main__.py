#!/usr/bin/env python
"""Quick-start guide for forestmap library usage.

Run with: python -m forestmap

This module intentionally avoids importing forestmap internals to provide
a fast, clean startup for displaying help text.
"""

from __future__ import annotations

QUICKSTART = """\
================================================================================
                                  FORESTMAP
        In-memory ordered maps: AVL tree and ternary search tree
================================================================================

INSTALLATION
------------
    pip install forestmap

BALANCED MAP (AVL tree, scalar keys)
------------------------------------
    from forestmap import BalancedMap, KeyExistsError

    index = BalancedMap()
    index.insert(10, "ten")
    index.insert(11, "eleven")

    value, found = index.search(10)     # ("ten", True)
    value, found = index.search(99)     # (None, False)

    try:
        index.insert(10, "again")       # no overwrite
    except KeyExistsError:
        pass

    value, found = index.delete(11)     # ("eleven", True)

PREFIX MAP (ternary search tree, sequence keys)
-----------------------------------------------
    from forestmap import PrefixMap

    words = PrefixMap()
    for i, word in enumerate(["hello", "world", "heaven", "hell", "healthy"], 1):
        words.insert(word, i)

    words.entries()        # all pairs, lexicographic order
    words.entries("hea")   # [("healthy", 5), ("heaven", 3)]
    words.keys("hell")     # ["hell", "hello"]
    words.values("hell")   # [4, 1]
    words.apply("he", lambda key, value: f"{key}={value}")

    # Non-string keys work too; they come back as tuples.
    routes = PrefixMap()
    routes.insert((10, 0, 0), "private")

CONFIGURATION (environment)
---------------------------
    FORESTMAP_LOG_LEVEL            logger level for "forestmap" (INFO)
    FORESTMAP_ENABLE_DIAGNOSTICS   cpu/rss sampling in operation logs (1)
    FORESTMAP_ARENA_CAPACITY       initial node slots per container (16)
    FORESTMAP_ARENA_GROWTH         arena growth factor (2.0)
    FORESTMAP_INDEX_DTYPE          node index dtype: int32 | int64 (int64)
    FORESTMAP_PRUNE_ON_DELETE      release dead prefix-map nodes on delete (0)
    FORESTMAP_VALIDATE             check tree invariants after every mutation (0)

THREAD SAFETY
-------------
    Containers do no internal locking. Guard shared instances with your
    own lock, e.g. one threading.Lock per container.

================================================================================
"""


def main() -> None:
    """Print quick-start guide."""
    print(QUICKSTART)


if __name__ == "__main__":
    main()
