# immutrees

Tree nodes for building persistent (immutable) collections. Both node types
work copy-on-write. An `insert` or `remove` changes the node it is called on,
but it copies every child node on the path before changing it. To keep an old
version, call `copy()` on the root and work on the copy. The unchanged
subtrees stay shared between the two versions.

## Modules

- `immutrees.btree`: a sorted B-tree node, `Node`, with at most 64 values
  per node.
  - Constructors: `Node.empty(key_fn)`, `Node.unit(value, key_fn)` and
    `Node.from_split(left, median, right)`. The `key_fn` argument picks the
    sort key out of a stored value.
  - Lookups: `lookup`, `lookup_prev`, `lookup_next`, `min` and `max`. Each
    returns the stored value, or `None` when there is none.
  - `insert(value)` returns `Added`, `Replaced(old_value)` or
    `Split(left, median, right)`. On a `Split` from the root, build a new
    root with `Node.from_split`.
  - `remove(key)`, `remove_lowest()` and `remove_highest()` return
    `NoChange`, `Removed(value)` or `Update(value, node)`. After an `Update`,
    `node` replaces the root.
  - `path_first`, `path_last`, `path_next` and `path_prev` return the
    `(node, index)` path to a value.
- `immutrees.btree_iter`: `Iter(root, size, start, end)`. It iterates over the
  values in a key range. Each end is given as `Bound.included(key)`,
  `Bound.excluded(key)` or `Bound.unbounded()`. Iterate it forwards, or from
  the high end with `next_back()` or `reversed()`. The two ends never cross.
- `immutrees.btree_diff`:
  - `ConsumingIter(root, total)` yields every value, from either end, and
    supports `len()` for what remains.
  - `DiffIter(old, new)` yields the differences between two trees in key
    order, as `Add(value)`, `Remove(value)` and `Change(old, new)`. It skips
    subtrees that both trees share.
- `immutrees.hamt`: a hash array mapped trie node, `Node`, with 32-way
  branching.
  - `Node.get(hash_bits, shift, key)`, `Node.insert(hash_bits, shift, value)`
    and `Node.remove(hash_bits, shift, key)`. Use `shift` 0 at the root.
  - `hash_key(key)` gives the 32-bit hash to pass in. `mask(hash_bits, shift)`
    gives the slot index for one level.
  - Values whose hashes are identical share a `CollisionNode`.
  - `Iter(root, size)` yields `(value, hash)` pairs and leaves the trie
    intact. `Drain(root, size)` takes the pairs out of a copy of the trie.

## Install

```
pip install immutrees
```

## Examples

A B-tree holding plain values:

```python
from immutrees.btree import Node, Split
from immutrees.btree_iter import Iter, Bound

root = Node.empty(lambda v: v)
for value in [5, 1, 9, 3]:
    result = root.insert(value)
    if isinstance(result, Split):
        root = Node.from_split(result.left, result.median, result.right)

print(root.lookup(3))        # 3
print(root.lookup_next(4))   # 5
print(list(Iter(root, 4, Bound.included(2), Bound.unbounded())))  # [3, 5, 9]
```

A B-tree of `(key, value)` pairs, and the difference between two versions:

```python
from immutrees.btree import Node
from immutrees.btree_diff import DiffIter

old = Node.empty(lambda pair: pair[0])
old.insert((1, "a"))
old.insert((2, "b"))

new = old.copy()
new.insert((2, "B"))
new.insert((3, "c"))

print(new.lookup(2))             # (2, 'B')
print(list(DiffIter(old, new)))
# [Change(old=(2, 'b'), new=(2, 'B')), Add(value=(3, 'c'))]
```

A hash trie:

```python
from immutrees.hamt import Node, Iter, hash_key

root = Node()
root.insert(hash_key("apple"), 0, "apple")
print(root.get(hash_key("apple"), 0, "apple"))  # apple
print([value for value, _ in Iter(root, 1)])    # ['apple']
```

## What this package does not do

The package provides nodes, not finished collections. It has no map, set or
vector type that tracks its own size, root and version. The caller keeps
those and passes the size to the iterators. There is also no node type for
indexed sequences; only sorted trees and hash tries are provided.

## Tests

```
pip install immutrees[test]
pytest
```