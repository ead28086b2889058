"""
Agent metric snapshot.

The poll loop writes it, the report loop reads a consistent copy of it.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

from ..utils.rwlock import ReadWriteLock

POLL_COUNT = "PollCount"
RANDOM_VALUE = "RandomValue"


@dataclass
class SnapshotView:
    """Point-in-time copy of a snapshot, safe to use without the lock."""
    gauges: dict[str, float] = field(default_factory=dict)
    counters: dict[str, int] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.gauges) + len(self.counters)


class Snapshot:
    """Gauges and counters collected by the agent since start."""

    def __init__(self):
        self.gauges: dict[str, float] = {}
        self.counters: dict[str, int] = {}
        self._lock = ReadWriteLock()

    @contextmanager
    def write(self) -> Iterator["Snapshot"]:
        """Exclusive section for mutating ``gauges`` and ``counters``."""
        with self._lock.write_locked():
            yield self

    def view(self) -> SnapshotView:
        with self._lock.read_locked():
            return SnapshotView(gauges=dict(self.gauges), counters=dict(self.counters))

    @property
    def poll_count(self) -> int:
        with self._lock.read_locked():
            return self.counters.get(POLL_COUNT, 0)
