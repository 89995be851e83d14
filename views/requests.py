from __future__ import annotations

import itertools


class RequestGeneration:
    """Monotonic request tokens; only the latest token may apply its result."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._current = 0

    def next(self) -> int:
        self._current = next(self._counter)
        return self._current

    def is_current(self, token: int) -> bool:
        return token == self._current

    def invalidate(self) -> None:
        self._current = next(self._counter)
