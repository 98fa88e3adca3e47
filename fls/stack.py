"""Bounded LIFO stack of absolute paths, owned by the daemon."""

from __future__ import annotations

from collections import deque
from typing import Iterator

from .config import STACK_MAX


class StackError(Exception):
    """Base class for stack rejections; each maps to a protocol reason."""

    pass


class StackFullError(StackError):
    pass


class StackEmptyError(StackError):
    pass


class StackIndexError(StackError):
    pass


class FileStack:
    """LIFO list of path strings with a fixed capacity.

    Index 0 is always the top (most recently pushed) entry. Rejected
    operations raise before touching the contents.
    """

    def __init__(self, capacity: int = STACK_MAX):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        # left end is the top
        self._entries: deque[str] = deque()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        """Iterate from top to bottom."""
        return iter(list(self._entries))

    def __repr__(self) -> str:
        return f"FileStack({len(self)}/{self.capacity})"

    @property
    def is_full(self) -> bool:
        return len(self._entries) >= self.capacity

    def push(self, path: str) -> None:
        if self.is_full:
            raise StackFullError(f"stack holds {self.capacity} entries")
        self._entries.appendleft(path)

    def peek(self) -> str:
        if not self._entries:
            raise StackEmptyError("stack is empty")
        return self._entries[0]

    def pop(self) -> str:
        if not self._entries:
            raise StackEmptyError("stack is empty")
        return self._entries.popleft()

    def pick(self, index: int) -> str:
        """Return the entry `index` places below the top."""
        if index < 0 or index >= len(self._entries):
            raise StackIndexError(f"index {index} outside stack of depth {len(self._entries)}")
        return self._entries[index]
