import operator

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from immutrees.hamt import (
    HASH_MASK,
    HASH_SHIFT,
    HASH_WIDTH,
    CollisionNode,
    Drain,
    Iter,
    Node,
    ValueEntry,
    hash_key,
    mask,
)

KEY = operator.itemgetter(0)

HASHERS = {
    "real": hash_key,
    "colliding": lambda k: k % 4,
    "deep": lambda k: (k % 3) << 25,
}


def _build(pairs, hasher):
    root = Node(KEY)
    model = {}
    for key, tag in pairs:
        old = root.insert(hasher(key), 0, (key, tag))
        assert old == ((key, model[key]) if key in model else None)
        model[key] = tag
    return root, model


def _contents(root, size):
    return sorted(value for value, _ in Iter(root, size))


def test_hash_key_fits_width_and_is_stable():
    for key in [0, 1, -1, 2**70, "abc", (1, 2)]:
        h = hash_key(key)
        assert 0 <= h < 2**HASH_WIDTH
        assert h == hash_key(key)


def test_mask_selects_level_bits():
    assert mask(0xFFFFFFFF, 0) == HASH_MASK
    for x in range(HASH_WIDTH):
        assert mask(x << HASH_SHIFT, HASH_SHIFT) == x
        assert mask(x << HASH_SHIFT, 0) == 0


def test_mask_at_last_level_keeps_top_bits():
    assert mask(0xFFFFFFFF, 30) == 3


@settings(max_examples=60)
@given(
    st.lists(st.tuples(st.booleans(), st.integers(0, 60), st.integers(0, 5)), max_size=120),
    st.sampled_from(sorted(HASHERS)),
)
def test_insert_remove_matches_dict(ops, hasher_name):
    hasher = HASHERS[hasher_name]
    root = Node(KEY)
    model = {}
    for is_insert, key, tag in ops:
        if is_insert:
            old = root.insert(hasher(key), 0, (key, tag))
            assert old == ((key, model[key]) if key in model else None)
            model[key] = tag
        else:
            removed = root.remove(hasher(key), 0, key)
            assert removed == ((key, model.pop(key)) if key in model else None)
    for key in range(61):
        expected = (key, model[key]) if key in model else None
        assert root.get(hasher(key), 0, key) == expected
    assert _contents(root, len(model)) == sorted(model.items())


@settings(max_examples=40)
@given(st.lists(st.integers(0, 200), unique=True, max_size=80), st.sampled_from(sorted(HASHERS)))
def test_iter_yields_hashes_and_length_hint(keys, hasher_name):
    hasher = HASHERS[hasher_name]
    root, model = _build([(k, 0) for k in keys], hasher)
    it = Iter(root, len(model))
    assert it.__length_hint__() == len(model)
    items = list(it)
    assert it.__length_hint__() == 0
    assert len(items) == len(keys)
    for value, h in items:
        assert h == hasher(value[0])


@settings(max_examples=40)
@given(st.lists(st.integers(0, 200), unique=True, max_size=80), st.sampled_from(sorted(HASHERS)))
def test_drain_yields_everything_and_leaves_root_intact(keys, hasher_name):
    hasher = HASHERS[hasher_name]
    root, model = _build([(k, 1) for k in keys], hasher)
    drained = list(Drain(root, len(model)))
    assert sorted(v for v, _ in drained) == sorted(model.items())
    assert all(h == hasher(v[0]) for v, h in drained)
    assert _contents(root, len(model)) == sorted(model.items())


@settings(max_examples=40)
@given(st.lists(st.integers(0, 100), unique=True, min_size=1, max_size=60), st.sampled_from(sorted(HASHERS)))
def test_copy_is_persistent(keys, hasher_name):
    hasher = HASHERS[hasher_name]
    root, model = _build([(k, 0) for k in keys], hasher)
    snapshot = root.copy()
    before = _contents(snapshot, len(model))
    for k in keys[::2]:
        root.remove(hasher(k), 0, k)
    for k in keys[1::2]:
        root.insert(hasher(k), 0, (k, 9))
    root.insert(hasher(1000), 0, (1000, 0))
    assert _contents(snapshot, len(model)) == before


def test_merge_values_same_hash_builds_collision_at_bottom():
    h = 12345
    node = Node.merge_values(KEY, ("a", 1), h, ("b", 2), h, 0)
    assert node.get(h, 0, "a") == ("a", 1)
    assert node.get(h, 0, "b") == ("b", 2)
    assert node.get(h, 0, "c") is None
    depth = 0
    entry = node
    while isinstance(entry, Node):
        assert len(entry) == 1
        entry = next(iter(entry.data.values()))
        depth += 1
    assert isinstance(entry, CollisionNode)
    assert depth * HASH_SHIFT >= HASH_WIDTH
    assert entry.hash_bits == h


def test_merge_values_different_slots_make_pair():
    node = Node.merge_values(KEY, ("a", 1), 1, ("b", 2), 2, 0)
    assert node.data == {1: ValueEntry(("a", 1), 1), 2: ValueEntry(("b", 2), 2)}


def test_removal_collapses_deep_subtree():
    root = Node(KEY)
    root.insert(7 << 20, 0, ("x", 0))
    root.insert(7 << 20 | 1 << 25, 0, ("y", 0))
    root.insert(3, 0, ("z", 0))
    assert isinstance(root.data[0], Node)
    assert root.remove(7 << 20 | 1 << 25, 0, "y") == ("y", 0)
    assert root.data[0] == ValueEntry(("x", 0), 7 << 20)
    assert root.get(7 << 20, 0, "x") == ("x", 0)


def test_collision_removal_leaves_value_entry():
    root = Node(KEY)
    root.insert(5, 0, ("a", 1))
    root.insert(5, 0, ("b", 2))
    assert root.remove(5, 0, "a") == ("a", 1)
    assert root.remove(5, 0, "missing") is None
    assert _contents(root, 1) == [("b", 2)]
    assert root.remove(5, 0, "b") == ("b", 2)
    assert len(root) == 0


def test_collision_node_operations():
    coll = CollisionNode(9, [("a", 1), ("b", 2)], KEY)
    assert len(coll) == 2
    assert coll.get("b") == ("b", 2)
    assert coll.get("c") is None
    assert coll.insert(("a", 5)) == ("a", 1)
    assert coll.insert(("c", 3)) is None
    assert len(coll) == 3
    assert coll.remove("b") == ("b", 2)
    assert coll.remove("b") is None
    assert coll.pop() == ValueEntry(("c", 3), 9)
    assert coll.values == [("a", 5)]


def test_unit_and_single_child():
    leaf = Node.unit(KEY, 4, ValueEntry(("k", 1), 4 << HASH_SHIFT))
    parent = Node.single_child(KEY, 0, leaf)
    assert len(parent) == 1
    assert parent.get(4 << HASH_SHIFT, 0, "k") == ("k", 1)
    assert parent.get(4 << HASH_SHIFT, 0, "q") is None


def test_iter_on_empty_node_stops():
    assert list(Iter(Node(), 0)) == []
    with pytest.raises(StopIteration):
        next(Drain(Node(), 0))