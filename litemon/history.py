"""Bounded per-series sample history for sparklines."""

from __future__ import annotations

from collections import deque


class HistoryBuffer:
    """One fixed-capacity FIFO of samples per key.

    Series are created on first push and never removed; a key that stops
    receiving samples simply keeps its last ``capacity`` values.
    """

    def __init__(self, capacity: int = 50) -> None:
        if capacity < 1:
            raise ValueError(f"history capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._series: dict[str, deque[float]] = {}

    @property
    def capacity(self) -> int:
        return self._capacity

    def push(self, key: str, value: float) -> None:
        series = self._series.get(key)
        if series is None:
            series = self._series[key] = deque(maxlen=self._capacity)
        series.append(value)

    def series(self, key: str) -> tuple[float, ...]:
        """Samples for *key*, oldest first.  Empty for unknown keys."""
        return tuple(self._series.get(key, ()))

    def keys(self) -> list[str]:
        return list(self._series)

    def __contains__(self, key: object) -> bool:
        return key in self._series

    def __len__(self) -> int:
        return len(self._series)
