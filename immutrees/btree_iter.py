"""Double-ended iteration over a range of a B-tree."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Tuple

from immutrees.btree import Node

Path = List[Tuple[Node, int]]


class BoundKind(enum.Enum):
    """How one end of a range is limited."""

    INCLUDED = "included"
    EXCLUDED = "excluded"
    UNBOUNDED = "unbounded"


@dataclass(frozen=True)
class Bound:
    """One end of a key range."""

    kind: BoundKind
    key: Any = None

    @classmethod
    def included(cls, key: Any) -> "Bound":
        return cls(BoundKind.INCLUDED, key)

    @classmethod
    def excluded(cls, key: Any) -> "Bound":
        return cls(BoundKind.EXCLUDED, key)

    @classmethod
    def unbounded(cls) -> "Bound":
        return cls(BoundKind.UNBOUNDED)


def _get(path: Path) -> Tuple[bool, Any]:
    if not path:
        return False, None
    node, index = path[-1]
    return True, node.keys[index]


def _step_forward(path: Path) -> None:
    if not path:
        return
    node, index = path.pop()
    index += 1
    child = node.children[index]
    if child is not None:
        path.append((node, index))
        path.append((child, 0))
        current = child
        while current.children[0] is not None:
            current = current.children[0]
            path.append((current, 0))
        return
    if index < len(node.keys):
        path.append((node, index))
        return
    while path:
        node, index = path.pop()
        if index < len(node.keys):
            path.append((node, index))
            return


def _step_back(path: Path) -> None:
    if not path:
        return
    node, index = path.pop()
    child = node.children[index]
    if child is not None:
        path.append((node, index))
        end = len(child.keys) - 1
        path.append((child, end))
        current = child
        while current.children[end + 1] is not None:
            current = current.children[end + 1]
            end = len(current.keys) - 1
            path.append((current, end))
        return
    if index > 0:
        path.append((node, index - 1))
        return
    while path:
        node, index = path.pop()
        if index > 0:
            path.append((node, index - 1))
            return


class Iter:
    """An iterator over the values of a B-tree within a key range.

    It can be consumed from both ends; the two ends never cross.
    """

    def __init__(
        self,
        root: Node,
        size: int,
        start: Optional[Bound] = None,
        end: Optional[Bound] = None,
    ) -> None:
        start = start if start is not None else Bound.unbounded()
        end = end if end is not None else Bound.unbounded()
        self._key_fn = root.key_fn
        self.remaining = size

        if start.kind is BoundKind.INCLUDED:
            fwd = root.path_next(start.key, [])
        elif start.kind is BoundKind.EXCLUDED:
            fwd = root.path_next(start.key, [])
            found, value = _get(fwd)
            if found and self._key_fn(value) == start.key:
                _step_forward(fwd)
        else:
            fwd = root.path_first([])

        if end.kind is BoundKind.INCLUDED:
            back = root.path_prev(end.key, [])
        elif end.kind is BoundKind.EXCLUDED:
            back = root.path_prev(end.key, [])
            found, value = _get(back)
            if found and self._key_fn(value) == end.key:
                _step_back(back)
        else:
            back = root.path_last([])

        self._fwd_path: Path = fwd
        self._back_path: Path = back

    def __iter__(self) -> "Iter":
        return self

    def __next__(self) -> Any:
        found, value = _get(self._fwd_path)
        if not found:
            raise StopIteration
        found_last, last = _get(self._back_path)
        if not found_last or self._key_fn(value) > self._key_fn(last):
            raise StopIteration
        _step_forward(self._fwd_path)
        self.remaining -= 1
        return value

    def next_back(self) -> Any:
        """The next value from the high end; raises StopIteration when done."""
        found, value = _get(self._back_path)
        if not found:
            raise StopIteration
        found_first, first = _get(self._fwd_path)
        if not found_first or self._key_fn(value) < self._key_fn(first):
            raise StopIteration
        _step_back(self._back_path)
        self.remaining -= 1
        return value

    def __reversed__(self) -> Iterator[Any]:
        while True:
            try:
                value = self.next_back()
            except StopIteration:
                return
            yield value