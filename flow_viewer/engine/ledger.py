"""
Capacity-bounded, newest-first event ledger.

push() is O(1): deque(maxlen) drops the oldest entry from the tail
when a new one is added at the head.
"""

from __future__ import annotations

from collections import deque
from typing import Generic, Iterator, TypeVar

T = TypeVar("T")

TRADE_CAPACITY = 200
PRINT_CAPACITY = 200
AUTO_TRADE_CAPACITY = 50


class BoundedLedger(Generic[T]):
    """
    FIFO collection capped at `capacity` records.

    Index 0 is always the most recently pushed record. Records keep
    arrival order; they are never re-sorted by timestamp.

    Thread-safety: NOT thread-safe. Designed for single-threaded async use.
    """

    __slots__ = ('capacity', '_records')

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._records: deque[T] = deque(maxlen=capacity)

    def push(self, record: T) -> None:
        self._records.appendleft(record)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[T]:
        return iter(self._records)

    def __getitem__(self, index: int) -> T:
        return self._records[index]

    def snapshot(self) -> list[T]:
        """Copy of the records, newest first."""
        return list(self._records)
