"""Lazy integer expression graph with cycle-tolerant evaluation.

Nodes are evaluated on demand and nothing is memoized, so appending a child
anywhere in the graph is visible on the next `evaluate` call. A composite node
reached again while it is already on the current evaluation path contributes
0 to that branch instead of recursing forever.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol


class Value(Protocol):
    """Node of the value graph."""

    def evaluate(self, visited: frozenset[int] | None = None) -> int:
        """Compute the node value; `visited` holds ids of nodes on the current path."""
        raise NotImplementedError


class Const:
    """Fixed value without children."""

    __slots__ = ("value",)

    def __init__(self, value: int) -> None:
        self.value = value

    def evaluate(self, visited: frozenset[int] | None = None) -> int:
        return self.value

    def __repr__(self) -> str:
        return f"Const({self.value})"


class _Composite:
    __slots__ = ("children",)

    def __init__(self, children: Iterable[Value] = ()) -> None:
        self.children: list[Value] = list(children)

    def add(self, child: Value) -> None:
        self.children.append(child)

    def evaluate(self, visited: frozenset[int] | None = None) -> int:
        return _evaluate(self, visited)

    def _combine(self, total: int | None, value: int) -> int:
        raise NotImplementedError


class Sum(_Composite):
    """Sum of children values; 0 without children."""

    __slots__ = ()

    def _combine(self, total: int | None, value: int) -> int:
        return value if total is None else total + value


class Max(_Composite):
    """Maximum of children values; 0 without children."""

    __slots__ = ()

    def _combine(self, total: int | None, value: int) -> int:
        return value if total is None else max(total, value)


class _Frame:
    __slots__ = ("node", "index", "total")

    def __init__(self, node: _Composite) -> None:
        self.node = node
        self.index = 0
        self.total: int | None = None

    def fold(self, value: int) -> None:
        self.total = self.node._combine(self.total, value)


def _evaluate(root: _Composite, visited: frozenset[int] | None) -> int:
    # `path` holds the ids of the frames on `stack` plus the caller's `visited`.
    path = set(visited or ())
    if id(root) in path:
        return 0
    path.add(id(root))
    stack = [_Frame(root)]
    result = 0
    while stack:
        frame = stack[-1]
        children = frame.node.children
        if frame.index < len(children):
            child = children[frame.index]
            frame.index += 1
            if isinstance(child, Const):
                frame.fold(child.value)
            elif isinstance(child, _Composite):
                if id(child) in path:
                    frame.fold(0)
                else:
                    path.add(id(child))
                    stack.append(_Frame(child))
            else:
                frame.fold(child.evaluate(frozenset(path)))
            continue

        stack.pop()
        path.discard(id(frame.node))
        value = 0 if frame.total is None else frame.total
        if stack:
            stack[-1].fold(value)
        else:
            result = value
    return result
