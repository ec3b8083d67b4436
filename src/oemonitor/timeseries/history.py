"""
Bounded per-key history buffers.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from typing import NamedTuple

__all__ = ["History", "Observation"]


class Observation(NamedTuple):
    """One appended poll result. ``value`` is None when the poll had no usable value."""

    timestamp: int
    value: float | None

    @property
    def observed(self) -> bool:
        return self.value is not None


class History:
    """Append-only, time-ordered FIFO of observations for one series key.

    Appending beyond ``capacity`` evicts the oldest observation. Timestamps are
    stored as given; the single sequential poller keeps them non-decreasing.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"History capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._entries: deque[Observation] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, timestamp: int, value: float | None) -> None:
        self._entries.append(Observation(timestamp, value))

    def snapshot(self) -> tuple[Observation, ...]:
        """Immutable copy of the current contents, oldest first."""
        return tuple(self._entries)

    def latest(self) -> Observation | None:
        return self._entries[-1] if self._entries else None

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Observation]:
        return iter(tuple(self._entries))
