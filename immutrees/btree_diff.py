"""Consuming iteration over a B-tree, and the differences between two B-trees."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from immutrees.btree import Node

_CONSIDER = 0
_YIELD = 1

_StackItem = Tuple[int, Any]


@dataclass(frozen=True)
class Add:
    """``value`` is in the new tree but not in the old one."""

    value: Any


@dataclass(frozen=True)
class Change:
    """The value under one key differs between the two trees."""

    old: Any
    new: Any


@dataclass(frozen=True)
class Remove:
    """``value`` is in the old tree but not in the new one."""

    value: Any


def _push_node(stack: List[_StackItem], node: Optional[Node]) -> None:
    if node is not None:
        stack.append((_CONSIDER, node))


def _push_ascending(stack: List[_StackItem], node: Node) -> None:
    """Push a node's contents so that popping yields them smallest first."""
    for child, value in zip(reversed(node.children[1:]), reversed(node.keys)):
        _push_node(stack, child)
        stack.append((_YIELD, value))
    _push_node(stack, node.children[0])


def _push_descending(stack: List[_StackItem], node: Node) -> None:
    """Push a node's contents so that popping yields them largest first."""
    for child, value in zip(node.children, node.keys):
        _push_node(stack, child)
        stack.append((_YIELD, value))
    _push_node(stack, node.children[-1])


class ConsumingIter:
    """An iterator yielding every value of a B-tree, from either end."""

    def __init__(self, root: Node, total: int) -> None:
        self._key_fn = root.key_fn
        self._fwd_stack: List[_StackItem] = [(_CONSIDER, root)]
        self._back_stack: List[_StackItem] = [(_CONSIDER, root)]
        self._has_fwd_last = False
        self._fwd_last: Any = None
        self._has_back_last = False
        self._back_last: Any = None
        self._remaining = total

    def __iter__(self) -> "ConsumingIter":
        return self

    def _exhaust(self) -> None:
        self._fwd_stack.clear()
        self._back_stack.clear()
        self._remaining = 0

    def __next__(self) -> Any:
        while self._fwd_stack:
            kind, item = self._fwd_stack.pop()
            if kind == _CONSIDER:
                _push_ascending(self._fwd_stack, item)
                continue
            if self._has_back_last and not (
                self._key_fn(item) < self._key_fn(self._back_last)
            ):
                self._exhaust()
                raise StopIteration
            self._remaining -= 1
            self._has_fwd_last = True
            self._fwd_last = item
            return item
        self._remaining = 0
        raise StopIteration

    def next_back(self) -> Any:
        """The next value from the high end; raises StopIteration when done."""
        while self._back_stack:
            kind, item = self._back_stack.pop()
            if kind == _CONSIDER:
                _push_descending(self._back_stack, item)
                continue
            if self._has_fwd_last and not (
                self._key_fn(item) > self._key_fn(self._fwd_last)
            ):
                self._exhaust()
                raise StopIteration
            self._remaining -= 1
            self._has_back_last = True
            self._back_last = item
            return item
        self._remaining = 0
        raise StopIteration

    def __len__(self) -> int:
        return self._remaining


class DiffIter:
    """An iterator over the differences between two B-trees, in key order.

    Subtrees shared by both trees are skipped without being walked.
    """

    def __init__(self, old: Node, new: Node) -> None:
        self._key_fn = new.key_fn
        self._old_stack: List[_StackItem] = [] if old.is_empty() else [(_CONSIDER, old)]
        self._new_stack: List[_StackItem] = [] if new.is_empty() else [(_CONSIDER, new)]

    def __iter__(self) -> "DiffIter":
        return self

    def __next__(self) -> Any:
        key = self._key_fn
        old_stack = self._old_stack
        new_stack = self._new_stack
        while True:
            if not old_stack and not new_stack:
                raise StopIteration
            if not old_stack:
                kind, new = new_stack.pop()
                if kind == _CONSIDER:
                    _push_ascending(new_stack, new)
                    continue
                return Add(new)
            if not new_stack:
                kind, old = old_stack.pop()
                if kind == _CONSIDER:
                    _push_ascending(old_stack, old)
                    continue
                return Remove(old)

            old_kind, old = old_stack.pop()
            new_kind, new = new_stack.pop()
            if old_kind == _CONSIDER and new_kind == _CONSIDER:
                if old is new:
                    continue
                old_first = key(old.keys[0])
                new_first = key(new.keys[0])
                if old_first < new_first:
                    _push_ascending(old_stack, old)
                    new_stack.append((_CONSIDER, new))
                elif old_first > new_first:
                    old_stack.append((_CONSIDER, old))
                    _push_ascending(new_stack, new)
                else:
                    _push_ascending(old_stack, old)
                    _push_ascending(new_stack, new)
            elif old_kind == _CONSIDER:
                _push_ascending(old_stack, old)
                new_stack.append((_YIELD, new))
            elif new_kind == _CONSIDER:
                old_stack.append((_YIELD, old))
                _push_ascending(new_stack, new)
            else:
                old_key = key(old)
                new_key = key(new)
                if old_key < new_key:
                    new_stack.append((_YIELD, new))
                    return Remove(old)
                if old_key > new_key:
                    old_stack.append((_YIELD, old))
                    return Add(new)
                if old != new:
                    return Change(old, new)