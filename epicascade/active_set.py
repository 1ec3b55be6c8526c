"""
Bounded FIFO of node ids waiting to act as providers.

The queue lives in a numpy array pre-sized to ``capacity + 1`` slots.  Head
and tail indices wrap around; one slot is always left unused so that
``head == tail`` means empty and ``head == (tail + 1) % size`` means full.
Nodes leave in the order they were pushed, i.e. in order of infection.
"""

from __future__ import annotations

import numpy as np


class ActiveSet:
    """Fixed-capacity ring buffer of node ids."""

    __slots__ = ("_slots", "_head", "_tail")

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0; got {capacity}.")
        self._slots = np.empty(capacity + 1, dtype=np.int64)
        self._head = 0
        self._tail = 0

    @property
    def capacity(self) -> int:
        return self._slots.shape[0] - 1

    def is_empty(self) -> bool:
        return self._head == self._tail

    def is_full(self) -> bool:
        return self._head == (self._tail + 1) % self._slots.shape[0]

    def __len__(self) -> int:
        return (self._tail - self._head) % self._slots.shape[0]

    def push(self, node: int) -> None:
        """Append ``node`` at the tail.

        Raises
        ------
        OverflowError
            If the set already holds ``capacity`` nodes.
        """
        if self.is_full():
            raise OverflowError(f"ActiveSet is full (capacity {self.capacity}).")
        self._slots[self._tail] = node
        self._tail = (self._tail + 1) % self._slots.shape[0]

    def pop(self) -> int:
        """Remove and return the node at the head.

        Raises
        ------
        IndexError
            If the set is empty.
        """
        if self.is_empty():
            raise IndexError("pop from an empty ActiveSet.")
        node = int(self._slots[self._head])
        self._head = (self._head + 1) % self._slots.shape[0]
        return node
