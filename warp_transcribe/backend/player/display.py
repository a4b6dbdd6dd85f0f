"""Rate limiting for position display refreshes."""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional, TypeVar

T = TypeVar("T")

Scheduler = Callable[[float, Callable[[], None]], None]


def start_timer(delay: float, callback: Callable[[], None]) -> None:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()


class RefreshThrottle:
    """Calls ``refresh`` at most once per ``interval`` seconds.

    A request arriving inside the interval is held back and one trailing
    refresh is scheduled for the end of the interval. It reads the then-current
    state, so the updates made in between reach the display.
    """

    def __init__(
        self,
        refresh: Callable[[T], None],
        interval: float = 0.1,
        *,
        clock: Callable[[], float] = time.monotonic,
        schedule: Scheduler = start_timer,
    ) -> None:
        self._refresh = refresh
        self.interval = max(0.0, interval)
        self._clock = clock
        self._schedule = schedule
        self._last: Optional[float] = None
        self._pending: Optional[Callable[[], T]] = None
        self._scheduled = False
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def request(self, produce: Callable[[], T]) -> bool:
        now = self._clock()
        delay: Optional[float] = None
        with self._lock:
            if self._last is not None and now - self._last < self.interval:
                self._pending = produce
                if self._scheduled:
                    return False
                self._scheduled = True
                delay = self._last + self.interval - now
            else:
                self._last = now
                self._pending = None
        if delay is not None:
            self._schedule(delay, self._fire_pending)
            return False
        self._refresh(produce())
        return True

    def flush(self, produce: Callable[[], T]) -> None:
        with self._lock:
            self._last = self._clock()
            self._pending = None
        self._refresh(produce())

    def cancel(self) -> None:
        with self._lock:
            self._pending = None

    def _fire_pending(self) -> None:
        with self._lock:
            self._scheduled = False
            produce, self._pending = self._pending, None
            if produce is None:
                return
            self._last = self._clock()
        self._refresh(produce())


__all__ = ["RefreshThrottle", "Scheduler", "start_timer"]
