"""Write syncers: wrapping, locking, fan-out and opening by URL."""

from __future__ import annotations

import json
import threading
from collections.abc import Callable
from contextlib import suppress
from typing import Any

from zaplog.sink import new_sink


class _Discard:
    def write(self, data: bytes) -> int:
        return len(data)


def _raise_combined(errors: list[BaseException]) -> None:
    if not errors:
        return
    if len(errors) == 1:
        raise errors[0]
    raise OSError("; ".join(str(err) for err in errors)) from errors[0]


class WriterSyncer:
    """Gives a plain writer a sync method."""

    def __init__(self, writer: Any) -> None:
        self._writer = writer

    def write(self, data: bytes) -> int:
        written = self._writer.write(data)
        return len(data) if written is None else written

    def sync(self) -> None:
        """Flush the wrapped writer if it can be flushed."""
        flush = getattr(self._writer, "flush", None)
        if callable(flush):
            flush()


def add_sync(writer: Any) -> Any:
    """Return ``writer`` if it can already sync, else wrap it."""
    if callable(getattr(writer, "write", None)) and callable(
        getattr(writer, "sync", None)
    ):
        return writer
    return WriterSyncer(writer)


class LockedWriteSyncer:
    """Serializes writes and syncs to a wrapped write syncer."""

    def __init__(self, ws: Any) -> None:
        self._ws = ws
        self._lock = threading.Lock()

    def write(self, data: bytes) -> int:
        with self._lock:
            return self._ws.write(data)

    def sync(self) -> None:
        with self._lock:
            self._ws.sync()


class MultiWriteSyncer:
    """Duplicates writes and syncs to every wrapped write syncer."""

    def __init__(self, *writers: Any) -> None:
        self._writers = tuple(writers)

    def write(self, data: bytes) -> int:
        errors: list[BaseException] = []
        for writer in self._writers:
            try:
                written = writer.write(data)
            except Exception as exc:
                errors.append(exc)
                continue
            if written != len(data):
                errors.append(OSError("short write"))
        _raise_combined(errors)
        return len(data)

    def sync(self) -> None:
        errors: list[BaseException] = []
        for writer in self._writers:
            try:
                writer.sync()
            except Exception as exc:
                errors.append(exc)
        _raise_combined(errors)


def combine_write_syncers(*writers: Any) -> Any:
    """Combine write syncers into one locked syncer; none gives a discarder."""
    if not writers:
        return WriterSyncer(_Discard())
    return LockedWriteSyncer(MultiWriteSyncer(*writers))


def open_paths(*paths: str) -> tuple[Any, Callable[[], None]]:
    """Open every URL or path and combine them into one locked write syncer.

    Returns the writer and a function that closes what was opened. If any
    path fails, everything already opened is closed and OSError is raised
    describing every failure.
    """
    sinks = []
    failures = []
    for path in paths:
        try:
            sinks.append(new_sink(path))
        except Exception as exc:
            failures.append(f"couldn't open sink {json.dumps(path)}: {exc}")

    def close() -> None:
        for sink in sinks:
            with suppress(Exception):
                sink.close()

    if failures:
        close()
        raise OSError("; ".join(failures))
    return combine_write_syncers(*sinks), close