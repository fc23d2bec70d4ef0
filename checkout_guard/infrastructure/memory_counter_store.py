"""In-Process Counter Store — per-instance fixed-window counters with a background sweeper.

Invariants:
    - Each key's read-modify-write happens under that key's lock
    - A window whose lifetime has elapsed is replaced by a fresh window on the next hit
    - sweep() removes only expired windows, is idempotent, and never waits on a
      key lock held by a request (it skips that key until the next pass)
    - Counts are per process: this store is a degraded fallback, not a global limit

Design Decisions:
    - Striped threading.Locks (key hash → stripe): bounded lock memory, keys on
      different stripes never contend, sync callers in a threadpool are covered too
    - Clock injected as a ms-returning callable: deterministic window tests
"""

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)

LOCK_STRIPES = 64


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


@dataclass
class _Window:
    count: int
    expires_at: int


class InMemoryCounterStore:
    """CounterStore backed by a process-local dict."""

    backend = "memory"

    def __init__(
        self, clock: Callable[[], int] = monotonic_ms, stripes: int = LOCK_STRIPES,
    ):
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._locks = tuple(threading.Lock() for _ in range(stripes))

    def _lock_for(self, key: str) -> threading.Lock:
        return self._locks[hash(key) % len(self._locks)]

    def _live_window(self, key: str, now: int) -> _Window | None:
        window = self._windows.get(key)
        if window is None or now >= window.expires_at:
            return None
        return window

    async def get(self, key: str) -> int | None:
        with self._lock_for(key):
            window = self._live_window(key, self._clock())
            return window.count if window else None

    async def increment_with_expiry(self, key: str, window_ms: int) -> int:
        with self._lock_for(key):
            now = self._clock()
            window = self._live_window(key, now)
            if window is None:
                window = _Window(count=0, expires_at=now + window_ms)
                self._windows[key] = window
            window.count += 1
            return window.count

    async def time_to_live(self, key: str) -> int | None:
        with self._lock_for(key):
            now = self._clock()
            window = self._live_window(key, now)
            return window.expires_at - now if window else None

    def sweep(self) -> int:
        """Evict expired windows. Returns how many were removed."""
        now = self._clock()
        removed = 0
        for key, window in list(self._windows.items()):
            if now < window.expires_at:
                continue
            lock = self._lock_for(key)
            if not lock.acquire(blocking=False):
                continue
            try:
                current = self._windows.get(key)
                if current is not None and now >= current.expires_at:
                    del self._windows[key]
                    removed += 1
            finally:
                lock.release()
        return removed

    def __len__(self) -> int:
        return len(self._windows)


async def run_sweeper(store: InMemoryCounterStore, interval_seconds: float) -> None:
    """Sweep on a fixed cadence until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            removed = store.sweep()
        except Exception as e:
            logger.error(f"Rate-limit sweep failed: {e}", exc_info=True)
            continue
        if removed:
            logger.debug(f"Rate-limit sweep evicted {removed} window(s)")
