"""Sources of time for logged entries and periodic work."""

from __future__ import annotations

import queue
import threading
import time
from datetime import datetime, timedelta
from typing import Protocol, Union

Interval = Union[float, int, timedelta]


def _to_seconds(interval: Interval) -> float:
    if isinstance(interval, timedelta):
        return interval.total_seconds()
    return float(interval)


class Ticker:
    """Delivers the current time to ``channel`` every ``interval``.

    Like a channel with one slot, ticks that nobody collects are dropped.
    """

    def __init__(self, interval: Interval) -> None:
        seconds = _to_seconds(interval)
        if seconds <= 0:
            raise ValueError("non-positive interval for Ticker")
        self.interval = seconds
        self.channel: queue.Queue[datetime] = queue.Queue(maxsize=1)
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, name="ticker", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        next_tick = time.monotonic() + self.interval
        while not self._stopped.wait(max(0.0, next_tick - time.monotonic())):
            try:
                self.channel.put_nowait(datetime.now().astimezone())
            except queue.Full:
                pass
            next_tick += self.interval
            now = time.monotonic()
            if next_tick < now:
                next_tick = now + self.interval

    def stop(self) -> None:
        """Stop delivering ticks. Ticks already queued stay in the channel."""
        self._stopped.set()
        if threading.current_thread() is not self._thread:
            self._thread.join()


class Clock(Protocol):
    """A source of time."""

    def now(self) -> datetime: ...

    def new_ticker(self, interval: Interval) -> Ticker: ...


class SystemClock:
    """A clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now().astimezone()

    def new_ticker(self, interval: Interval) -> Ticker:
        return Ticker(interval)


DEFAULT_CLOCK = SystemClock()