"""B-tree nodes holding sorted values, with copy-on-write structural sharing.

A node's ``insert`` and ``remove`` change the node they are called on,
but never change a child node in place: every child on the path they
walk is copied first. A caller that wants to keep an old version calls
``copy()`` on the root and works on the copy.
"""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

NODE_SIZE = 64
MEDIAN = (NODE_SIZE + 1) >> 1

_LOWEST = object()
_HIGHEST = object()
_MISSING = object()


def _identity(value: Any) -> Any:
    return value


@dataclass(frozen=True)
class Added:
    """A new value went into the tree."""


@dataclass(frozen=True)
class Replaced:
    """A value with the same key was replaced; ``value`` is the old one."""

    value: Any


@dataclass(frozen=True)
class Split:
    """The node overflowed and split around ``median``."""

    left: "Node"
    median: Any
    right: "Node"


@dataclass(frozen=True)
class NoChange:
    """Nothing matched, so nothing was removed."""


@dataclass(frozen=True)
class Removed:
    """``value`` was removed from the tree."""

    value: Any


@dataclass(frozen=True)
class Update:
    """``value`` was removed and ``node`` replaces the node removed from."""

    value: Any
    node: "Node"


Path = List[Tuple["Node", int]]


class Node:
    """A B-tree node: sorted values and the child nodes between them."""

    __slots__ = ("keys", "children", "key_fn")

    def __init__(
        self,
        keys: List[Any],
        children: List[Optional["Node"]],
        key_fn: Callable[[Any], Any] = _identity,
    ) -> None:
        self.keys = keys
        self.children = children
        self.key_fn = key_fn

    @classmethod
    def empty(cls, key_fn: Callable[[Any], Any] = _identity) -> "Node":
        """An empty root node."""
        return cls([], [None], key_fn)

    @classmethod
    def unit(cls, value: Any, key_fn: Callable[[Any], Any] = _identity) -> "Node":
        """A leaf holding a single value."""
        return cls([value], [None, None], key_fn)

    @classmethod
    def from_split(cls, left: "Node", median: Any, right: "Node") -> "Node":
        """A new root over the two halves of a split."""
        return cls([median], [left, right], left.key_fn)

    def copy(self) -> "Node":
        """A shallow copy sharing the child nodes."""
        return Node(list(self.keys), list(self.children), self.key_fn)

    def is_empty(self) -> bool:
        return not self.keys

    def __repr__(self) -> str:
        return f"Node({self.keys!r})"

    # Internal helpers

    def _has_room(self) -> bool:
        return len(self.keys) < NODE_SIZE

    def _too_small(self) -> bool:
        return len(self.keys) < MEDIAN

    def _search(self, key: Any) -> Tuple[bool, int]:
        index = bisect_left(self.keys, key, key=self.key_fn)
        found = index < len(self.keys) and self.key_fn(self.keys[index]) == key
        return found, index

    def _contains(self, key: Any) -> bool:
        node: Optional[Node] = self
        while node is not None and node.keys:
            found, index = node._search(key)
            if found:
                return True
            node = node.children[index]
        return False

    def _child_contains(self, index: int, key: Any) -> bool:
        if 0 <= index < len(self.children):
            child = self.children[index]
            return child is not None and child._contains(key)
        return False

    # Lookups

    def min(self) -> Any:
        """The smallest value, or None if the tree is empty."""
        node = self
        while node.children[0] is not None:
            node = node.children[0]
        return node.keys[0] if node.keys else None

    def max(self) -> Any:
        """The largest value, or None if the tree is empty."""
        node = self
        while node.children[-1] is not None:
            node = node.children[-1]
        return node.keys[-1] if node.keys else None

    def lookup(self, key: Any) -> Any:
        """The value with this key, or None."""
        node: Optional[Node] = self
        while node is not None and node.keys:
            found, index = node._search(key)
            if found:
                return node.keys[index]
            node = node.children[index]
        return None

    def _prev(self, key: Any) -> Any:
        if not self.keys:
            return _MISSING
        found, index = self._search(key)
        if found:
            return self.keys[index]
        child = self.children[index]
        if child is not None:
            result = child._prev(key)
            if result is not _MISSING:
                return result
        return self.keys[index - 1] if index > 0 else _MISSING

    def _next(self, key: Any) -> Any:
        if not self.keys:
            return _MISSING
        found, index = self._search(key)
        if found:
            return self.keys[index]
        child = self.children[index]
        if child is not None:
            result = child._next(key)
            if result is not _MISSING:
                return result
        return self.keys[index] if index < len(self.keys) else _MISSING

    def lookup_prev(self, key: Any) -> Any:
        """The value with the greatest key not above ``key``, or None."""
        result = self._prev(key)
        return None if result is _MISSING else result

    def lookup_next(self, key: Any) -> Any:
        """The value with the smallest key not below ``key``, or None."""
        result = self._next(key)
        return None if result is _MISSING else result

    # Paths: lists of (node, index) from the root down

    def path_first(self, path: Optional[Path] = None) -> Path:
        """The path to the smallest value."""
        path = [] if path is None else path
        if not self.keys:
            return []
        path.append((self, 0))
        child = self.children[0]
        return path if child is None else child.path_first(path)

    def path_last(self, path: Optional[Path] = None) -> Path:
        """The path to the largest value."""
        path = [] if path is None else path
        if not self.keys:
            return []
        end = len(self.children) - 1
        child = self.children[end]
        if child is None:
            path.append((self, end - 1))
            return path
        path.append((self, end))
        return child.path_last(path)

    def path_next(self, key: Any, path: Optional[Path] = None) -> Path:
        """The path to the smallest value whose key is not below ``key``."""
        path = [] if path is None else path
        if not self.keys:
            return []
        found, index = self._search(key)
        if found:
            path.append((self, index))
            return path
        child = self.children[index]
        if child is not None:
            path.append((self, index))
            return child.path_next(key, path)
        if index < len(self.keys):
            path.append((self, index))
            return path
        while path and len(path[-1][0].keys) == path[-1][1]:
            path.pop()
        return path

    def path_prev(self, key: Any, path: Optional[Path] = None) -> Path:
        """The path to the largest value whose key is not above ``key``."""
        path = [] if path is None else path
        if not self.keys:
            return []
        found, index = self._search(key)
        if found:
            path.append((self, index))
            return path
        child = self.children[index]
        if child is not None:
            path.append((self, index))
            return child.path_prev(key, path)
        if index > 0:
            path.append((self, index - 1))
            return path
        while path:
            node, idx = path[-1]
            if idx == 0:
                path.pop()
            else:
                path[-1] = (node, idx - 1)
                break
        return path

    # Insertion

    def _split(
        self, value: Any, ins_left: Optional["Node"], ins_right: Optional["Node"]
    ) -> Split:
        _, index = self._search(self.key_fn(value))
        keys = self.keys
        children = self.children
        if index < MEDIAN:
            children[index] = ins_left
            left_keys = keys[:index] + [value] + keys[index : MEDIAN - 1]
            left_children = children[: index + 1] + [ins_right] + children[index + 1 : MEDIAN]
            median = keys[MEDIAN - 1]
            right_keys = keys[MEDIAN:]
            right_children = children[MEDIAN:]
        elif index > MEDIAN:
            children[index] = ins_left
            left_keys = keys[:MEDIAN]
            left_children = children[: MEDIAN + 1]
            median = keys[MEDIAN]
            right_keys = keys[MEDIAN + 1 : index] + [value] + keys[index:]
            right_children = (
                children[MEDIAN + 1 : index + 1] + [ins_right] + children[index + 1 :]
            )
        else:
            left_keys = keys[:MEDIAN]
            left_children = children[:MEDIAN] + [ins_left]
            median = value
            right_keys = keys[MEDIAN:]
            right_children = [ins_right] + children[MEDIAN + 1 :]
        return Split(
            Node(left_keys, left_children, self.key_fn),
            median,
            Node(right_keys, right_children, self.key_fn),
        )

    def insert(self, value: Any) -> Any:
        """Insert ``value``; returns Added, Replaced or Split."""
        if not self.keys:
            self.keys.append(value)
            self.children.append(None)
            return Added()
        found, index = self._search(self.key_fn(value))
        if found:
            old = self.keys[index]
            self.keys[index] = value
            return Replaced(old)
        has_room = self._has_room()
        child = self.children[index]
        if child is None:
            if has_room:
                self.keys.insert(index, value)
                self.children.insert(index + 1, None)
                return Added()
            return self._split(value, None, None)
        child = child.copy()
        self.children[index] = child
        result = child.insert(value)
        if not isinstance(result, Split):
            return result
        if has_room:
            self.children[index] = result.left
            self.keys.insert(index, result.median)
            self.children.insert(index + 1, result.right)
            return Added()
        return self._split(result.median, result.left, result.right)

    # Removal

    def remove(self, key: Any) -> Any:
        """Remove the value with this key; returns NoChange, Removed or Update."""
        return self._remove_target(key)

    def remove_lowest(self) -> Any:
        """Remove the smallest value."""
        return self._remove_target(_LOWEST)

    def remove_highest(self) -> Any:
        """Remove the largest value."""
        return self._remove_target(_HIGHEST)

    def _merge_children(self, index: int) -> "Node":
        left = self.children.pop(index)
        right = self.children[index]
        self.children[index] = None
        middle = self.keys.pop(index)
        assert left is not None and right is not None
        return Node(
            left.keys + [middle] + right.keys,
            left.children + right.children,
            self.key_fn,
        )

    def _remove_target(self, target: Any) -> Any:
        keys = self.keys
        children = self.children
        is_key = target is not _LOWEST and target is not _HIGHEST
        if is_key:
            found, index = self._search(target)
        else:
            if not keys:
                return NoChange()
            found, index = False, (0 if target is _LOWEST else len(keys))

        if found:
            left, right = children[index], children[index + 1]
            if left is None and right is None:
                return self._delete_at(index)
            if left is None or right is None:
                raise AssertionError("branch node is missing children")
            if not left._too_small():
                return self._pull_up(_HIGHEST, index, index)
            if not right._too_small():
                return self._pull_up(_LOWEST, index, index + 1)
            return self._merge_and_remove(index, target)

        child = children[index]
        if child is None:
            if is_key:
                return NoChange()
            return self._delete_at(0 if target is _LOWEST else len(keys) - 1)
        if not child._too_small():
            return self._continue_down(index, target)
        left_sibling = children[index - 1] if index > 0 else None
        right_sibling = children[index + 1] if index + 1 < len(children) else None
        if left_sibling is not None and not left_sibling._too_small():
            return self._steal_from_left(index, target)
        if right_sibling is not None and not right_sibling._too_small():
            return self._steal_from_right(index, target)
        if right_sibling is not None:
            return self._merge_first(index, target)
        if left_sibling is not None:
            return self._merge_first(index - 1, target)
        raise AssertionError("child node has no siblings")

    def _delete_at(self, index: int) -> Removed:
        value = self.keys.pop(index)
        self.children.pop(index)
        return Removed(value)

    def _pull_up(self, boundary: object, pull_to: int, child_index: int) -> Removed:
        child = self.children[child_index].copy()
        self.children[child_index] = child
        result = child._remove_target(boundary)
        if isinstance(result, NoChange):
            raise AssertionError("boundary removal found nothing")
        old = self.keys[pull_to]
        self.keys[pull_to] = result.value
        if isinstance(result, Update):
            self.children[child_index] = result.node
        return Removed(old)

    def _merge_and_remove(self, index: int, target: Any) -> Any:
        merged = self._merge_children(index)
        result = merged._remove_target(target)
        if isinstance(result, NoChange):
            raise AssertionError("merged node lost the target")
        new_child = result.node if isinstance(result, Update) else merged
        if not self.keys:
            return Update(result.value, new_child)
        self.children[index] = new_child
        return Removed(result.value)

    def _steal_from_left(self, index: int, target: Any) -> Any:
        left = self.children[index - 1].copy()
        child = self.children[index].copy()
        child._push_min(left.children[-1], self.keys[index - 1])
        result = child._remove_target(target)
        if isinstance(result, NoChange):
            return result
        left_value, _ = left._pop_max()
        self.keys[index - 1] = left_value
        self.children[index - 1] = left
        self.children[index] = result.node if isinstance(result, Update) else child
        return Removed(result.value)

    def _steal_from_right(self, index: int, target: Any) -> Any:
        child = self.children[index].copy()
        right = self.children[index + 1].copy()
        child._push_max(right.children[0], self.keys[index])
        result = child._remove_target(target)
        if isinstance(result, NoChange):
            return result
        right_value, _ = right._pop_min()
        self.keys[index] = right_value
        self.children[index + 1] = right
        self.children[index] = result.node if isinstance(result, Update) else child
        return Removed(result.value)

    def _merge_first(self, index: int, target: Any) -> Any:
        if target is not _LOWEST and target is not _HIGHEST:
            own_key = self.key_fn(self.keys[index])
            if own_key < target and not self._child_contains(index + 1, target):
                return NoChange()
            if own_key > target and not self._child_contains(index, target):
                return NoChange()
        merged = self._merge_children(index)
        result = merged._remove_target(target)
        if isinstance(result, NoChange):
            raise RuntimeError("caught an absent key too late while merging")
        new_child = result.node if isinstance(result, Update) else merged
        if not self.keys:
            return Update(result.value, new_child)
        self.children[index] = new_child
        return Removed(result.value)

    def _continue_down(self, index: int, target: Any) -> Any:
        child = self.children[index].copy()
        result = child._remove_target(target)
        if isinstance(result, NoChange):
            return result
        self.children[index] = result.node if isinstance(result, Update) else child
        return Removed(result.value)

    def _pop_min(self) -> Tuple[Any, Optional["Node"]]:
        return self.keys.pop(0), self.children.pop(0)

    def _pop_max(self) -> Tuple[Any, Optional["Node"]]:
        return self.keys.pop(), self.children.pop()

    def _push_min(self, child: Optional["Node"], value: Any) -> None:
        self.keys.insert(0, value)
        self.children.insert(0, child)

    def _push_max(self, child: Optional["Node"], value: Any) -> None:
        self.keys.append(value)
        self.children.append(child)