"""Bounded rolling history of check runs."""

import logging
from collections import deque
from collections.abc import Iterable

from .models import CheckRun

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_CAPACITY = 100


class RollingHistory:
    """Most-recent-N check runs, newest first.

    Appending when full evicts the oldest run. Entries passed in beyond the
    capacity (e.g. after the capacity was lowered) are dropped oldest-first.

    Example:
        history = RollingHistory(store.load_history(), capacity=100)
        history.append(run)
        store.save_history(history.all())
    """

    def __init__(self, entries: Iterable[CheckRun] = (), capacity: int = DEFAULT_HISTORY_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"History capacity must be at least 1 (got {capacity})")
        self._capacity = capacity
        self._runs: deque[CheckRun] = deque(maxlen=capacity)
        # Entries arrive newest first, so the tail past capacity is the oldest.
        for run in entries:
            if len(self._runs) == capacity:
                break
            self._runs.append(run)

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, run: CheckRun) -> None:
        """Add a run as the newest entry, evicting the oldest when full."""
        if len(self._runs) == self._capacity:
            evicted = self._runs.pop()
            logger.debug("History full, evicted run from %s", evicted.observed_at.isoformat())
        self._runs.appendleft(run)

    def all(self) -> list[CheckRun]:
        """Return all runs, newest first."""
        return list(self._runs)

    def __len__(self) -> int:
        return len(self._runs)
