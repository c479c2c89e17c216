"""A write syncer that batches writes in memory and flushes them periodically."""

from __future__ import annotations

import queue
import threading
from contextlib import suppress
from datetime import timedelta
from typing import Any

from zaplog.clock import DEFAULT_CLOCK

_DEFAULT_BUFFER_SIZE = 256 * 1024
_DEFAULT_FLUSH_INTERVAL = 30.0


def _raise_combined(errors: list[BaseException]) -> None:
    if not errors:
        return
    if len(errors) == 1:
        raise errors[0]
    raise OSError("; ".join(str(err) for err in errors)) from errors[0]


class _BufWriter:
    """A fixed-size write buffer that remembers the first write error."""

    def __init__(self, ws: Any, size: int) -> None:
        self._ws = ws
        self._size = size
        self._buf = bytearray()
        self._err: BaseException | None = None

    def available(self) -> int:
        return self._size - len(self._buf)

    def buffered(self) -> int:
        return len(self._buf)

    def _write_through(self, data: bytes) -> int:
        try:
            written = self._ws.write(data)
        except Exception as exc:
            self._err = exc
            raise
        return len(data) if written is None else written

    def flush(self) -> None:
        if self._err is not None:
            raise self._err
        if not self._buf:
            return
        pending = bytes(self._buf)
        written = self._write_through(pending)
        if written < len(pending):
            if written > 0:
                del self._buf[:written]
            self._err = OSError("short write")
            raise self._err
        self._buf.clear()

    def write(self, data: bytes) -> int:
        data = bytes(data)
        total = 0
        while len(data) > self.available():
            if self._err is not None:
                raise self._err
            if not self._buf:
                written = self._write_through(data)
                if written < len(data):
                    self._err = OSError("short write")
                    raise self._err
            else:
                written = self.available()
                self._buf.extend(data[:written])
                self.flush()
            total += written
            data = data[written:]
        if self._err is not None:
            raise self._err
        self._buf.extend(data)
        return total + len(data)


class BufferedWriteSyncer:
    """Buffers writes in memory and flushes them to ``ws`` when the buffer
    fills up or every ``flush_interval``, whichever comes first.

    Safe for concurrent use. ``size`` defaults to 256 kB and
    ``flush_interval`` to 30 seconds; ``clock`` defaults to the system clock.
    """

    def __init__(
        self,
        ws: Any,
        size: int = 0,
        flush_interval: float | timedelta | None = None,
        clock: Any = None,
    ) -> None:
        self.ws = ws
        self.size = size
        self.flush_interval = flush_interval
        self.clock = clock
        self._lock = threading.Lock()
        self._initialized = False
        self._stopped = False
        self._writer: _BufWriter | None = None
        self._ticker: Any = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def _initialize(self) -> None:
        size = self.size or _DEFAULT_BUFFER_SIZE
        interval = self.flush_interval or _DEFAULT_FLUSH_INTERVAL
        if self.clock is None:
            self.clock = DEFAULT_CLOCK
        self._ticker = self.clock.new_ticker(interval)
        self._writer = _BufWriter(self.ws, size)
        self._initialized = True
        self._thread = threading.Thread(
            target=self._flush_loop,
            args=(self._ticker.channel, self._stop_event),
            name="buffered-write-syncer",
            daemon=True,
        )
        self._thread.start()

    def write(self, data: bytes) -> int:
        """Buffer ``data``, flushing first if it would not fit whole."""
        with self._lock:
            if not self._initialized:
                self._initialize()
            writer = self._writer
            if len(data) > writer.available() and writer.buffered() > 0:
                writer.flush()
            return writer.write(data)

    def sync(self) -> None:
        """Flush buffered data and sync the wrapped write syncer."""
        with self._lock:
            errors: list[BaseException] = []
            if self._initialized:
                try:
                    self._writer.flush()
                except Exception as exc:
                    errors.append(exc)
            try:
                self.ws.sync()
            except Exception as exc:
                errors.append(exc)
            _raise_combined(errors)

    def _flush_loop(self, channel: queue.Queue, stop_event: threading.Event) -> None:
        while True:
            channel.get()
            if stop_event.is_set():
                return
            # Errors are kept by the buffer and surface from sync or stop.
            with suppress(Exception):
                self.sync()

    def stop(self) -> None:
        """Stop periodic flushing and flush what remains.

        Consecutive calls after the first do nothing.
        """
        thread = None
        with self._lock:
            stopped = self._stopped
            if self._initialized and not stopped:
                self._stopped = True
                self._ticker.stop()
                self._stop_event.set()
                channel = self._ticker.channel
                with suppress(queue.Empty):
                    while True:
                        channel.get_nowait()
                with suppress(queue.Full):
                    channel.put_nowait(None)
                thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        if not stopped:
            self.sync()