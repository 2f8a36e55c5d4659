import pytest
from numpy.random import default_rng

from forestmap import EmptyKeyError, KeyExistsError, PrefixMap, validate_prefix_map
from tests.utils.datasets import random_words

WORDS = ["hello", "world", "heaven", "hell", "healthy"]


def _words_map(**kwargs) -> PrefixMap:
    tst = PrefixMap(**kwargs)
    for i, word in enumerate(WORDS, 1):
        tst.insert(word, i)
    return tst


def test_insert_accepts_different_keys_and_shared_prefixes():
    tst = PrefixMap()
    for key in ["hello", "world", "hell", "hello😺", "heaven"]:
        tst.insert(key, 0)

    assert len(tst) == 5
    assert tst.max_key_length == 6
    validate_prefix_map(tst)


def test_insert_rejects_duplicate_and_keeps_first_value():
    tst = PrefixMap()
    tst.insert("hello", 1)
    nodes = len(tst._arena)

    with pytest.raises(KeyExistsError):
        tst.insert("hello", 2)

    assert tst.search("hello") == (1, True)
    assert len(tst) == 1
    assert len(tst._arena) == nodes


@pytest.mark.parametrize("key", ["", [], (), b"", None])
def test_empty_keys_are_rejected_without_mutation(key):
    tst = PrefixMap()
    tst.insert("hello", 1)
    nodes = len(tst._arena)

    with pytest.raises(EmptyKeyError):
        tst.insert(key, 0)
    assert tst.search(key) == (None, False)
    assert tst.delete(key) == (None, False)

    assert len(tst) == 1
    assert len(tst._arena) == nodes
    assert tst.search("hello") == (1, True)


def test_empty_key_error_is_a_value_error():
    with pytest.raises(ValueError):
        PrefixMap().insert("", 0)


def test_search_keys_with_shared_prefixes():
    tst = PrefixMap()
    for value, key in enumerate(["hello", "hell", "hello😺", "heaven"], 1):
        tst.insert(key, value)

    assert tst.search("hello") == (1, True)
    assert tst.search("hell") == (2, True)
    assert tst.search("hello😺") == (3, True)
    assert tst.search("heaven") == (4, True)


def test_prefix_of_a_key_is_not_itself_found():
    tst = PrefixMap()
    tst.insert("hello", 1)

    assert tst.search("hel") == (None, False)
    assert tst.search("helloo") == (None, False)
    assert "hel" not in tst


def test_suffix_is_not_a_match():
    tst = PrefixMap()
    tst.insert("cat", 1)

    assert tst.search("at") == (None, False)
    assert tst.delete("at") == (None, False)
    assert tst.search("cat") == (1, True)


def test_entries_are_lexicographic():
    tst = _words_map()

    assert tst.entries() == [
        ("healthy", 5),
        ("heaven", 3),
        ("hell", 4),
        ("hello", 1),
        ("world", 2),
    ]
    assert tst.entries(None) == tst.entries("")


def test_entries_scoped_to_prefix():
    tst = _words_map()

    assert tst.entries("hea") == [("healthy", 5), ("heaven", 3)]
    assert tst.entries("hell") == [("hell", 4), ("hello", 1)]
    assert tst.entries("w") == [("world", 2)]
    assert tst.entries("x") == []
    assert tst.entries("hellx") == []


def test_keys_values_and_list():
    tst = _words_map()

    assert tst.keys("he") == ["healthy", "heaven", "hell", "hello"]
    assert tst.values("he") == [5, 3, 4, 1]
    assert tst.list("hell") == ["hell", "hello"]


def test_apply_maps_callback_in_order():
    tst = _words_map()

    result = tst.apply("hel", lambda key, value: f"{key}:{value}")

    assert result == ["hell:4", "hello:1"]


def test_too_long_prefix_matches_nothing():
    tst = PrefixMap()
    tst.insert("foo", 1)

    assert tst.entries("fooo") == []


def test_empty_map_enumerates_nothing():
    tst = PrefixMap()

    assert tst.entries() == []
    assert tst.keys("a") == []


def test_delete_returns_value_and_hides_key():
    tst = PrefixMap()
    for value, key in enumerate(["hello", "hell", "hello😺", "heaven"], 1):
        tst.insert(key, value)

    assert tst.delete("hello") == (1, True)
    assert tst.search("hello") == (None, False)
    assert tst.delete("hello") == (None, False)
    assert tst.keys("hell") == ["hell", "hello😺"]

    assert tst.delete("hell") == (2, True)
    assert tst.delete("hello😺") == (3, True)
    assert tst.delete("heaven") == (4, True)
    assert len(tst) == 0
    assert tst.entries() == []


def test_delete_of_a_bare_prefix_is_not_found():
    tst = PrefixMap()
    tst.insert("hello", 1)

    assert tst.delete("hel") == (None, False)
    assert len(tst) == 1


def test_delete_keeps_nodes_by_default():
    tst = _words_map(prune=False)
    nodes = len(tst._arena)

    tst.delete("healthy")

    assert len(tst._arena) == nodes
    assert tst.entries("hea") == [("heaven", 3)]


def test_prune_releases_dead_chains_only():
    kept = _words_map(prune=False)
    pruned = _words_map(prune=True)
    nodes = len(pruned._arena)

    for tst in (kept, pruned):
        tst.delete("healthy")
        tst.delete("hello")

    # "lthy" and the trailing "o" are gone; "hell" still needs its path.
    assert len(pruned._arena) == nodes - 5
    assert pruned.entries() == kept.entries()
    assert pruned.search("hell") == (4, True)
    validate_prefix_map(pruned)

    for word in ("hell", "heaven", "world"):
        pruned.delete(word)
    assert len(pruned._arena) == 0
    assert pruned._root == -1

    pruned.insert("healthy", 7)
    assert pruned.entries() == [("healthy", 7)]


def test_reinsert_after_delete():
    tst = _words_map()

    tst.delete("hell")
    tst.insert("hell", 40)

    assert tst.search("hell") == (40, True)
    assert tst.entries("hell") == [("hell", 40), ("hello", 1)]


def test_tuple_keys_come_back_as_tuples():
    tst = PrefixMap()
    tst.insert((10, 0, 0, 1), "host")
    tst.insert((10, 0), "net")
    tst.insert([10, 1], "other")

    assert tst.entries((10,)) == [((10, 0), "net"), ((10, 0, 0, 1), "host"), ((10, 1), "other")]
    assert tst.search([10, 0]) == ("net", True)


def test_bytes_keys_come_back_as_bytes():
    tst = PrefixMap()
    tst.insert(b"abc", 1)
    tst.insert(b"abd", 2)

    assert tst.keys(b"ab") == [b"abc", b"abd"]


def test_explicit_key_factory():
    tst = PrefixMap(key_factory=lambda symbols: "/".join(symbols))
    tst.insert(["usr", "lib"], 1)
    tst.insert(["usr", "bin"], 2)

    assert tst.keys(["usr"]) == ["usr/bin", "usr/lib"]


def test_generator_keys_are_accepted():
    tst = PrefixMap()
    tst.insert((c for c in "abc"), 1)

    assert tst.search("abc") == (1, True)


def test_enumeration_matches_sorted_reference():
    rng = default_rng(11)
    words = random_words(rng, 300)
    tst = PrefixMap.from_items((word, i) for i, word in enumerate(words))
    reference = {word: i for i, word in enumerate(words)}
    validate_prefix_map(tst)

    assert tst.entries() == sorted(reference.items())
    for prefix in ("a", "ab", "fce", "b"):
        expected = sorted(
            (word, value) for word, value in reference.items() if word.startswith(prefix)
        )
        assert tst.entries(prefix) == expected

    removed = words[::3]
    for word in removed:
        assert tst.delete(word) == (reference.pop(word), True)
    assert tst.entries() == sorted(reference.items())
    assert len(tst) == len(reference)


def test_long_sibling_chain_does_not_recurse():
    tst = PrefixMap()
    for symbol in range(1500):
        tst.insert((symbol,), symbol)

    values = tst.values()

    assert values == list(range(1500))


def test_copy_and_clear():
    tst = _words_map()
    clone = tst.copy()

    tst.clear()
    clone.insert("help", 6)

    assert len(tst) == 0
    assert tst.entries() == []
    assert clone.keys("hel") == ["hell", "hello", "help"]


def test_clear_forgets_inferred_key_factory():
    tst = PrefixMap()
    tst.insert("ab", 1)

    tst.clear()
    tst.insert((1, 2), "x")

    assert tst.entries() == [((1, 2), "x")]


def test_clear_keeps_explicit_key_factory():
    tst = PrefixMap(key_factory=lambda symbols: "/".join(symbols))
    tst.insert(["usr", "lib"], 1)

    tst.clear()
    tst.insert(["opt"], 2)

    assert tst.keys() == ["opt"]


def test_get_and_membership():
    tst = _words_map()

    assert "world" in tst
    assert "wor" not in tst
    assert tst.get("heaven") == 3
    assert tst.get("nope", "missing") == "missing"


def test_non_iterable_keys():
    tst = _words_map()

    assert 5 not in tst
    assert None not in tst
    with pytest.raises(TypeError):
        tst.search(5)
    with pytest.raises(TypeError):
        tst.delete(5)
    assert len(tst) == len(WORDS)
