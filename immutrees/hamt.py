"""Hash array mapped trie nodes, with copy-on-write structural sharing.

Every node holds up to ``HASH_WIDTH`` entries, indexed by ``HASH_SHIFT``
bits of a value's hash. An entry is a single value, a nested node, or a
collision node holding values whose hashes are identical.

A node's ``insert`` and ``remove`` change the node they are called on,
but never change a child node or collision node in place: each one on the
path walked is copied first. A caller that wants to keep an old version
calls ``copy()`` on the root and works on the copy.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union

HASH_SHIFT = 5
HASH_WIDTH = 1 << HASH_SHIFT
HASH_MASK = HASH_WIDTH - 1
_HASH_BITS_MASK = (1 << HASH_WIDTH) - 1


def _identity(value: Any) -> Any:
    return value


def hash_key(key: Any) -> int:
    """The ``HASH_WIDTH``-bit hash of a key."""
    return hash(key) & _HASH_BITS_MASK


def mask(hash_bits: int, shift: int) -> int:
    """The slot index that ``hash_bits`` selects at the level of ``shift``."""
    return (hash_bits >> shift) & HASH_MASK


@dataclass(frozen=True)
class ValueEntry:
    """A single value stored in a node, with its hash."""

    value: Any
    hash_bits: int


class CollisionNode:
    """Values whose hashes are identical in every bit."""

    __slots__ = ("hash_bits", "values", "key_fn")

    def __init__(
        self,
        hash_bits: int,
        values: List[Any],
        key_fn: Callable[[Any], Any] = _identity,
    ) -> None:
        self.hash_bits = hash_bits
        self.values = list(values)
        self.key_fn = key_fn

    def _copy(self) -> "CollisionNode":
        return CollisionNode(self.hash_bits, self.values, self.key_fn)

    def __len__(self) -> int:
        return len(self.values)

    def __repr__(self) -> str:
        return f"CollisionNode({self.values!r} :: {self.hash_bits})"

    def get(self, key: Any) -> Any:
        """The value with this key, or None."""
        for value in self.values:
            if self.key_fn(value) == key:
                return value
        return None

    def insert(self, value: Any) -> Any:
        """Add or replace ``value``; returns the replaced value, or None."""
        key = self.key_fn(value)
        for index, item in enumerate(self.values):
            if self.key_fn(item) == key:
                self.values[index] = value
                return item
        self.values.append(value)
        return None

    def remove(self, key: Any) -> Any:
        """Remove the value with this key; returns it, or None."""
        location = None
        for index, item in enumerate(self.values):
            if self.key_fn(item) == key:
                location = index
        if location is None:
            return None
        return self.values.pop(location)

    def pop(self) -> ValueEntry:
        """Remove the last value and return it as a value entry."""
        return ValueEntry(self.values.pop(), self.hash_bits)


Entry = Union[ValueEntry, CollisionNode, "Node"]


class Node:
    """A trie node: a sparse array of entries indexed by hash bits."""

    __slots__ = ("data", "key_fn")

    def __init__(self, key_fn: Callable[[Any], Any] = _identity) -> None:
        self.data: Dict[int, Entry] = {}
        self.key_fn = key_fn

    @classmethod
    def unit(cls, key_fn: Callable[[Any], Any], index: int, entry: Entry) -> "Node":
        """A node with one entry."""
        node = cls(key_fn)
        node.data[index] = entry
        return node

    @classmethod
    def pair(
        cls,
        key_fn: Callable[[Any], Any],
        index1: int,
        entry1: Entry,
        index2: int,
        entry2: Entry,
    ) -> "Node":
        """A node with two entries."""
        node = cls(key_fn)
        node.data[index1] = entry1
        node.data[index2] = entry2
        return node

    @classmethod
    def single_child(cls, key_fn: Callable[[Any], Any], index: int, node: "Node") -> "Node":
        """A node whose only entry is a child node."""
        return cls.unit(key_fn, index, node)

    @classmethod
    def merge_values(
        cls,
        key_fn: Callable[[Any], Any],
        value1: Any,
        hash1: int,
        value2: Any,
        hash2: int,
        shift: int,
    ) -> "Node":
        """A subtree holding two values with distinct keys."""
        index1 = mask(hash1, shift)
        index2 = mask(hash2, shift)
        if index1 != index2:
            return cls.pair(
                key_fn,
                index1,
                ValueEntry(value1, hash1),
                index2,
                ValueEntry(value2, hash2),
            )
        if shift + HASH_SHIFT >= HASH_WIDTH:
            return cls.unit(key_fn, index1, CollisionNode(hash1, [value1, value2], key_fn))
        child = cls.merge_values(key_fn, value1, hash1, value2, hash2, shift + HASH_SHIFT)
        return cls.single_child(key_fn, index1, child)

    def copy(self) -> "Node":
        """A shallow copy sharing the child nodes."""
        node = Node(self.key_fn)
        node.data = dict(self.data)
        return node

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        parts = [f"{index}: {self.data[index]!r}" for index in sorted(self.data)]
        return "Node[" + ", ".join(parts) + "]"

    def _entries(self) -> List[Entry]:
        return [self.data[index] for index in sorted(self.data)]

    def _pop(self) -> Entry:
        return self.data.pop(min(self.data))

    def get(self, hash_bits: int, shift: int, key: Any) -> Any:
        """The value with this key and hash, or None."""
        node = self
        while True:
            entry = node.data.get(mask(hash_bits, shift))
            if entry is None:
                return None
            if isinstance(entry, ValueEntry):
                return entry.value if node.key_fn(entry.value) == key else None
            if isinstance(entry, CollisionNode):
                return entry.get(key)
            node = entry
            shift += HASH_SHIFT

    def insert(self, hash_bits: int, shift: int, value: Any) -> Any:
        """Add or replace ``value``; returns the replaced value, or None."""
        index = mask(hash_bits, shift)
        entry = self.data.get(index)
        if entry is None:
            self.data[index] = ValueEntry(value, hash_bits)
            return None
        if isinstance(entry, CollisionNode):
            collision = entry._copy()
            self.data[index] = collision
            return collision.insert(value)
        if isinstance(entry, Node):
            child = entry.copy()
            self.data[index] = child
            return child.insert(hash_bits, shift + HASH_SHIFT, value)
        if self.key_fn(entry.value) == self.key_fn(value):
            self.data[index] = ValueEntry(value, hash_bits)
            return entry.value
        if shift + HASH_SHIFT >= HASH_WIDTH:
            self.data[index] = CollisionNode(hash_bits, [entry.value, value], self.key_fn)
        else:
            self.data[index] = Node.merge_values(
                self.key_fn,
                entry.value,
                entry.hash_bits,
                value,
                hash_bits,
                shift + HASH_SHIFT,
            )
        return None

    def remove(self, hash_bits: int, shift: int, key: Any) -> Any:
        """Remove the value with this key and hash; returns it, or None."""
        index = mask(hash_bits, shift)
        entry = self.data.get(index)
        if entry is None:
            return None
        if isinstance(entry, ValueEntry):
            if self.key_fn(entry.value) != key:
                return None
            del self.data[index]
            return entry.value
        if isinstance(entry, CollisionNode):
            collision = entry._copy()
            removed = collision.remove(key)
            if len(collision) == 1:
                self.data[index] = collision.pop()
            else:
                self.data[index] = collision
            return removed
        child = entry.copy()
        removed = child.remove(hash_bits, shift + HASH_SHIFT, key)
        if removed is None:
            return None
        if len(child) == 1 and isinstance(child.data[min(child.data)], ValueEntry):
            # A child left with a single value is pulled up into this node.
            self.data[index] = child._pop()
        else:
            self.data[index] = child
        return removed


def _walk(root: Node) -> Iterator[Tuple[Any, int]]:
    stack: List[Iterator[Entry]] = [iter(root._entries())]
    while stack:
        entry = next(stack[-1], None)
        if entry is None:
            stack.pop()
        elif isinstance(entry, ValueEntry):
            yield entry.value, entry.hash_bits
        elif isinstance(entry, CollisionNode):
            for value in list(entry.values):
                yield value, entry.hash_bits
        else:
            stack.append(iter(entry._entries()))


class Iter:
    """An iterator over ``(value, hash)`` pairs of a trie, leaving it intact."""

    def __init__(self, root: Node, size: int) -> None:
        self._count = size
        self._walk = _walk(root)

    def __iter__(self) -> "Iter":
        return self

    def __next__(self) -> Tuple[Any, int]:
        if self._count == 0:
            raise StopIteration
        item = next(self._walk)
        self._count -= 1
        return item

    def __length_hint__(self) -> int:
        return self._count


class Drain:
    """An iterator taking ``(value, hash)`` pairs out of a copy of a trie."""

    def __init__(self, root: Node, size: int) -> None:
        self._count = size
        self._stack: List[Node] = []
        self._current = root.copy()
        self._collision: Optional[Tuple[List[Any], int]] = None

    def __iter__(self) -> "Drain":
        return self

    def __next__(self) -> Tuple[Any, int]:
        while True:
            if self._count == 0:
                raise StopIteration
            if self._collision is not None:
                values, hash_bits = self._collision
                if values:
                    self._count -= 1
                    return values.pop(), hash_bits
                self._collision = None
                continue
            if self._current.data:
                entry = self._current._pop()
                if isinstance(entry, ValueEntry):
                    self._count -= 1
                    return entry.value, entry.hash_bits
                if isinstance(entry, CollisionNode):
                    self._collision = (list(entry.values), entry.hash_bits)
                else:
                    self._stack.append(self._current)
                    self._current = entry.copy()
                continue
            if not self._stack:
                raise StopIteration
            self._current = self._stack.pop()

    def __length_hint__(self) -> int:
        return self._count