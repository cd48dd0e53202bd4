"""
Rendering context: the stack of scopes names are resolved against.

Sections push the value they iterate over; lookups search the stack from the
most recently pushed scope down to the root data. Dotted paths always start
at the root data.
"""

from __future__ import annotations

import sys
from collections.abc import Mapping
from contextlib import contextmanager
from typing import Any, Iterator, List, Tuple

from .errors import RecursionLimitError

DEFAULT_MAX_DEPTH = 100

# Interpreter frames kept free below sys.getrecursionlimit() for compiling and
# rendering one more nested template
FRAME_RESERVE = 200

_NOT_FOUND: Tuple[bool, Any] = (False, None)


def _lookup(frame: Any, key: str) -> Tuple[bool, Any]:
    """
    Look a single key up in one scope.

    Mappings are searched by key, lists and tuples by numeric key, other
    objects by public attribute. Strings and numbers have no members.

    Returns:
        (found, value)
    """
    if frame is None or isinstance(frame, (str, bytes, int, float, bool)):
        return _NOT_FOUND
    if isinstance(frame, Mapping):
        if key in frame:
            return True, frame[key]
        return _NOT_FOUND
    if isinstance(frame, (list, tuple)):
        if key.isascii() and key.isdecimal() and int(key) < len(frame):
            return True, frame[int(key)]
        return _NOT_FOUND
    if not key.startswith("_") and hasattr(frame, key):
        return True, getattr(frame, key)
    return _NOT_FOUND


def _stack_depth() -> int:
    frame = sys._getframe()
    depth = 0
    while frame is not None:
        depth += 1
        frame = frame.f_back
    return depth


class Context:
    """
    Stack of scopes with Mustache lookup rules.

    A Context belongs to a single render call: sections push and pop scopes on
    it while the template renders, so it must not be shared between concurrent
    renders.
    """

    def __init__(self, data: Any = None, max_depth: int = DEFAULT_MAX_DEPTH):
        """
        Args:
            data: Root scope (omitted when None)
            max_depth: Limit of nested partial/lambda renders
        """
        self._stack: List[Any] = []
        if data is not None:
            self._stack.append(data)
        self.max_depth = max_depth
        self.depth = 0

    def push(self, value: Any) -> None:
        self._stack.append(value)

    def pop(self) -> Any:
        if not self._stack:
            raise RuntimeError("Cannot pop from an empty context stack")
        return self._stack.pop()

    def __len__(self) -> int:
        return len(self._stack)

    @contextmanager
    def scope(self, value: Any) -> Iterator[None]:
        """Push a scope for the duration of the block; popped on every exit path."""
        self.push(value)
        try:
            yield
        finally:
            self.pop()

    @contextmanager
    def descend(self) -> Iterator[None]:
        """
        Guard one level of nested rendering (partial or lambda).

        Raises:
            RecursionLimitError: If the nesting exceeds max_depth, or the
                interpreter stack is too deep to render another level
        """
        if self.depth >= self.max_depth or _stack_depth() > sys.getrecursionlimit() - FRAME_RESERVE:
            raise RecursionLimitError(self.max_depth)
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1

    def find(self, name: str) -> Any:
        """Value of the first scope (from the top) that defines name, else None."""
        for frame in reversed(self._stack):
            found, value = _lookup(frame, name)
            if found:
                return value
        return None

    def find_dot(self, path: str) -> Any:
        """
        Resolve a dotted path such as "a.b.c".

        Dotted paths always start at the root scope, so sections pushed since
        do not change the result. Every segment is looked up only inside the
        value reached so far; a broken chain yields None.
        """
        if not self._stack:
            return None
        value = self._stack[0]
        for part in path.split("."):
            found, value = _lookup(value, part)
            if not found:
                return None
        return value

    def last(self) -> Any:
        """Current top of the stack ({{.}})."""
        return self._stack[-1] if self._stack else None


__all__ = ["Context", "DEFAULT_MAX_DEPTH"]
