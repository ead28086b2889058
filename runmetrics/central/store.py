"""
Server Metric Store.

Authoritative in-memory maps for gauges and counters. Entries are created
on first write and never removed.
"""

import logging

from ..metrics import wrap_int64
from ..utils.rwlock import ReadWriteLock

logger = logging.getLogger(__name__)


class MetricStore:
    """
    Concurrency-safe gauge and counter storage.

    Features:
    - One reader/writer lock per store (writes exclusive, reads shared)
    - Gauge writes replace, counter writes add
    - List operations return copies, never the live maps
    """

    def __init__(self):
        self._gauges: dict[str, float] = {}
        self._counters: dict[str, int] = {}
        self._lock = ReadWriteLock()

    def update_gauge(self, name: str, value: float) -> None:
        """Replace the value of gauge ``name``."""
        _require_name(name)
        with self._lock.write_locked():
            self._gauges[name] = float(value)
        logger.debug(f"gauge {name} set to {value}")

    def update_counter(self, name: str, delta: int) -> int:
        """Add ``delta`` to counter ``name`` and return the new total."""
        _require_name(name)
        with self._lock.write_locked():
            total = wrap_int64(self._counters.get(name, 0) + int(delta))
            self._counters[name] = total
        logger.debug(f"counter {name} += {delta} (total {total})")
        return total

    def get_gauge(self, name: str) -> tuple[float, bool]:
        with self._lock.read_locked():
            if name in self._gauges:
                return self._gauges[name], True
        return 0.0, False

    def get_counter(self, name: str) -> tuple[int, bool]:
        with self._lock.read_locked():
            if name in self._counters:
                return self._counters[name], True
        return 0, False

    def list_gauges(self) -> dict[str, float]:
        """Copy of all gauges."""
        with self._lock.read_locked():
            return dict(self._gauges)

    def list_counters(self) -> dict[str, int]:
        """Copy of all counters."""
        with self._lock.read_locked():
            return dict(self._counters)

    def stats(self) -> dict:
        with self._lock.read_locked():
            return {
                "gauges": len(self._gauges),
                "counters": len(self._counters),
            }


def _require_name(name: str) -> None:
    if not name:
        raise ValueError("metric name cannot be empty")
