"""
Runtime Metrics Collector.

Reads the memory and garbage-collector accounting of the agent's own
process and writes it into the agent snapshot, together with a random
gauge and the poll counter.
"""

import asyncio
import gc
import random
import sys
import threading
import time
from typing import Optional
import psutil

from ..snapshot import POLL_COUNT, RANDOM_VALUE, Snapshot

DEFAULT_STACK_SIZE = 8 * 1024 * 1024

RUNTIME_GAUGES = (
    "Alloc",
    "BuckHashSys",
    "Frees",
    "GCCPUFraction",
    "GCSys",
    "HeapAlloc",
    "HeapIdle",
    "HeapInuse",
    "HeapObjects",
    "HeapReleased",
    "HeapSys",
    "LastGC",
    "Lookups",
    "MCacheInuse",
    "MCacheSys",
    "MSpanInuse",
    "MSpanSys",
    "Mallocs",
    "NextGC",
    "NumForcedGC",
    "NumGC",
    "OtherSys",
    "PauseTotalNs",
    "StackInuse",
    "StackSys",
    "Sys",
    "TotalAlloc",
)


class GCTracker:
    """Measures collector pauses through ``gc.callbacks``."""

    def __init__(self):
        self.pause_total_ns = 0
        self.last_gc_ns = 0
        self.collections = 0
        self._started_at: Optional[int] = None

    def install(self) -> None:
        if self._on_gc not in gc.callbacks:
            gc.callbacks.append(self._on_gc)

    def uninstall(self) -> None:
        if self._on_gc in gc.callbacks:
            gc.callbacks.remove(self._on_gc)

    def _on_gc(self, phase: str, info: dict) -> None:
        if phase == "start":
            self._started_at = time.perf_counter_ns()
        elif phase == "stop" and self._started_at is not None:
            self.pause_total_ns += time.perf_counter_ns() - self._started_at
            self.last_gc_ns = time.time_ns()
            self.collections += 1
            self._started_at = None


# One hook per process; several collectors share it.
_gc_tracker = GCTracker()


class RuntimeCollector:
    """Collects runtime memory statistics of the current process using psutil and gc."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._process = psutil.Process()
        self._rng = rng or random.Random()
        self._peak_rss = 0
        _gc_tracker.install()

    def read_stats(self) -> dict[str, float]:
        """Return the 27 runtime gauges as floats."""
        mem = self._process.memory_info()
        cpu = self._process.cpu_times()
        os_threads = self._process.num_threads()

        rss = mem.rss
        vms = mem.vms
        shared = getattr(mem, "shared", 0)
        text = getattr(mem, "text", 0)
        lib = getattr(mem, "lib", 0)
        data = getattr(mem, "data", 0) or vms
        dirty = getattr(mem, "dirty", 0)

        self._peak_rss = max(self._peak_rss, rss)

        gen_stats = gc.get_stats()
        gen_counts = gc.get_count()
        threshold = gc.get_threshold()
        collected = sum(s["collected"] for s in gen_stats)
        blocks = sys.getallocatedblocks()

        stack_size = threading.stack_size() or DEFAULT_STACK_SIZE
        stack_inuse = threading.active_count() * stack_size
        stack_sys = max(os_threads, threading.active_count()) * stack_size

        heap_inuse = max(rss - shared, 0)
        cpu_ns = (cpu.user + cpu.system) * 1e9
        gc_fraction = min(_gc_tracker.pause_total_ns / cpu_ns, 1.0) if cpu_ns > 0 else 0.0

        stats = {
            "Alloc": rss,
            "BuckHashSys": 0,  # no runtime equivalent
            "Frees": collected,
            "GCCPUFraction": gc_fraction,
            "GCSys": sum(gen_counts),
            "HeapAlloc": rss,
            "HeapIdle": max(data - heap_inuse, 0),
            "HeapInuse": heap_inuse,
            "HeapObjects": blocks,
            "HeapReleased": max(vms - rss, 0),
            "HeapSys": data,
            "LastGC": _gc_tracker.last_gc_ns,
            "Lookups": 0,  # no runtime equivalent
            "MCacheInuse": shared,
            "MCacheSys": lib,
            "MSpanInuse": dirty,
            "MSpanSys": text,
            "Mallocs": blocks + collected,
            "NextGC": max(threshold[0] - gen_counts[0], 0),
            "NumForcedGC": gen_stats[-1]["collections"],
            "NumGC": sum(s["collections"] for s in gen_stats),
            "OtherSys": max(vms - data - stack_sys, 0),
            "PauseTotalNs": _gc_tracker.pause_total_ns,
            "StackInuse": stack_inuse,
            "StackSys": stack_sys,
            "Sys": vms,
            "TotalAlloc": self._peak_rss,
        }
        return {name: float(stats[name]) for name in RUNTIME_GAUGES}

    def collect_sync(self, snapshot: Snapshot) -> int:
        """One poll: refresh every gauge and bump PollCount. Returns the new PollCount."""
        stats = self.read_stats()
        random_value = self._rng.random()

        with snapshot.write() as snap:
            snap.gauges.update(stats)
            snap.gauges[RANDOM_VALUE] = random_value
            snap.counters[POLL_COUNT] = snap.counters.get(POLL_COUNT, 0) + 1
            return snap.counters[POLL_COUNT]

    async def collect(self, snapshot: Snapshot) -> int:
        """Run collect_sync in the default executor; psutil calls block."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.collect_sync, snapshot)
