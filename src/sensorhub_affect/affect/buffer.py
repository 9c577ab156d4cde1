"""Fixed-capacity circular buffer shared by the windows and history stores."""

from __future__ import annotations

from typing import Generic, Iterator, TypeVar

T = TypeVar("T")


class RingBuffer(Generic[T]):
    """Insertion-ordered buffer that evicts its oldest item once full.

    Storage is preallocated; a write cursor and a length counter keep
    ``append`` O(1) with no reallocation.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._items: list[T | None] = [None] * capacity
        self._cursor = 0  # next write slot
        self._length = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def full(self) -> bool:
        return self._length == self._capacity

    def __len__(self) -> int:
        return self._length

    def __iter__(self) -> Iterator[T]:
        start = (self._cursor - self._length) % self._capacity
        for i in range(self._length):
            yield self._items[(start + i) % self._capacity]  # type: ignore[misc]

    def append(self, item: T) -> T | None:
        """Store *item*; return the evicted item when the buffer was full."""
        evicted = self._items[self._cursor] if self.full else None
        self._items[self._cursor] = item
        self._cursor = (self._cursor + 1) % self._capacity
        if self._length < self._capacity:
            self._length += 1
        return evicted

    def newest(self, offset: int = 0) -> T | None:
        """Return the item *offset* places back from the newest, or ``None``."""
        if offset < 0 or offset >= self._length:
            return None
        return self._items[(self._cursor - 1 - offset) % self._capacity]

    def last(self, n: int) -> list[T]:
        """Return up to the *n* newest items, oldest first."""
        if n <= 0:
            return []
        items = list(self)
        return items[-n:]

    def to_list(self) -> list[T]:
        return list(self)

    def clear(self) -> None:
        self._items = [None] * self._capacity
        self._cursor = 0
        self._length = 0
