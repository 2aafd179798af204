import random

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from immutrees.btree import Node, Split, Update
from immutrees.btree_diff import Add, Change, ConsumingIter, DiffIter, Remove


def _insert(root, value):
    result = root.insert(value)
    if isinstance(result, Split):
        return Node.from_split(result.left, result.median, result.right)
    return root


def _remove(root, key):
    result = root.remove(key)
    if isinstance(result, Update):
        return result.node
    return root


def _build(values, key_fn=None):
    root = Node.empty() if key_fn is None else Node.empty(key_fn)
    for value in values:
        root = _insert(root, value)
    return root


def _shuffled(n, seed=7):
    values = list(range(n))
    random.Random(seed).shuffle(values)
    return values


def test_consuming_iter_forward_is_sorted():
    root = _build(_shuffled(300))
    it = ConsumingIter(root, 300)
    assert len(it) == 300
    assert list(it) == list(range(300))
    assert len(it) == 0


def test_consuming_iter_backward_is_descending():
    root = _build(_shuffled(300))
    it = ConsumingIter(root, 300)
    out = []
    while True:
        try:
            out.append(it.next_back())
        except StopIteration:
            break
    assert out == list(range(299, -1, -1))
    assert len(it) == 0


def test_consuming_iter_ends_meet_without_overlap():
    root = _build(_shuffled(257))
    it = ConsumingIter(root, 257)
    front, back = [], []
    done = False
    while not done:
        try:
            front.append(next(it))
            back.append(it.next_back())
        except StopIteration:
            done = True
    assert front + back[::-1] == list(range(257))
    assert len(it) == 0


def test_consuming_iter_empty_tree():
    it = ConsumingIter(Node.empty(), 0)
    with pytest.raises(StopIteration):
        next(it)
    with pytest.raises(StopIteration):
        it.next_back()
    assert len(it) == 0


def test_consuming_iter_len_counts_down():
    root = _build([3, 1, 2])
    it = ConsumingIter(root, 3)
    assert next(it) == 1
    assert len(it) == 2
    assert it.next_back() == 3
    assert len(it) == 1


def test_diff_of_same_tree_is_empty():
    root = _build(_shuffled(500))
    assert list(DiffIter(root, root)) == []


def test_diff_of_equal_trees_built_separately_is_empty():
    old = _build(_shuffled(200, seed=1))
    new = _build(_shuffled(200, seed=2))
    assert list(DiffIter(old, new)) == []


def test_diff_reports_added_value():
    old = _build(range(0, 400, 2))
    new = _insert(old.copy(), 101)
    assert list(DiffIter(old, new)) == [Add(101)]


def test_diff_reports_removed_value():
    old = _build(range(400))
    new = _remove(old.copy(), 250)
    assert list(DiffIter(old, new)) == [Remove(250)]


def test_diff_reports_changed_value():
    def key_fn(pair):
        return pair[0]

    old = _build([(i, "a") for i in range(150)], key_fn)
    new = _insert(old.copy(), (42, "b"))
    assert list(DiffIter(old, new)) == [Change((42, "a"), (42, "b"))]


def test_diff_against_empty():
    tree = _build([5, 1, 3])
    assert list(DiffIter(Node.empty(), tree)) == [Add(1), Add(3), Add(5)]
    assert list(DiffIter(tree, Node.empty())) == [Remove(1), Remove(3), Remove(5)]


def test_diff_leaves_trees_unchanged():
    old = _build(range(200))
    new = _remove(_insert(old.copy(), 500), 10)
    list(DiffIter(old, new))
    assert list(ConsumingIter(old, 200)) == list(range(200))
    assert list(ConsumingIter(new, 200)) == [i for i in range(200) if i != 10] + [500]


@settings(max_examples=60, deadline=None)
@given(
    st.sets(st.integers(min_value=0, max_value=2000), max_size=300),
    st.sets(st.integers(min_value=0, max_value=2000), max_size=300),
)
def test_diff_matches_set_model(before, after):
    old = _build(sorted(before))
    new = old.copy()
    for value in after - before:
        new = _insert(new, value)
    for value in before - after:
        new = _remove(new, value)
    expected = []
    for value in sorted(before | after):
        if value in before and value not in after:
            expected.append(Remove(value))
        elif value in after and value not in before:
            expected.append(Add(value))
    assert list(DiffIter(old, new)) == expected
    assert list(ConsumingIter(new, len(after))) == sorted(after)


@settings(max_examples=40, deadline=None)
@given(st.lists(st.integers(min_value=-1000, max_value=1000), unique=True, max_size=400))
def test_consuming_iter_matches_sorted(values):
    root = _build(values)
    assert list(ConsumingIter(root, len(values))) == sorted(values)