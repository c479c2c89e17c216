"""Helpers for testing log output: scaled timeouts and spy writers."""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import TypeVar

_log = logging.getLogger(__name__)


@dataclass
class _Settings:
    timeout_scale: float = 1.0


_settings = _Settings()

_Duration = TypeVar("_Duration", float, int, timedelta)


def timeout(base: _Duration) -> _Duration:
    """Scale a duration by the configured timeout scale."""
    return base * _settings.timeout_scale


def sleep(base: float | timedelta) -> None:
    """Sleep for ``base`` seconds, scaled by the timeout scale."""
    scaled = timeout(base)
    if isinstance(scaled, timedelta):
        scaled = scaled.total_seconds()
    time.sleep(scaled)


def initialize(factor: str) -> Callable[[], None]:
    """Set the timeout scale from text; return a function that undoes it."""
    original = _settings.timeout_scale
    _settings.timeout_scale = float(factor)

    def restore() -> None:
        _settings.timeout_scale = original

    return restore


_env_scale = os.environ.get("TEST_TIMEOUT_SCALE", "")
if _env_scale:
    initialize(_env_scale)
    _log.info("Scaling timeouts by %sx.", _settings.timeout_scale)


class Syncer:
    """A spy for sync: records calls and raises a chosen error."""

    def __init__(self) -> None:
        self._err: BaseException | None = None
        self._called = False

    def set_error(self, err: BaseException | None) -> None:
        self._err = err

    def sync(self) -> None:
        self._called = True
        if self._err is not None:
            raise self._err

    def called(self) -> bool:
        return self._called


class Discarder(Syncer):
    """Accepts and drops all writes."""

    def write(self, data: bytes) -> int:
        return len(data)


class FailWriter(Syncer):
    """Fails every write."""

    def write(self, data: bytes) -> int:
        raise OSError("failed")


class ShortWriter(Syncer):
    """Reports one byte fewer than it was given."""

    def write(self, data: bytes) -> int:
        return len(data) - 1


class Buffer(Syncer):
    """Collects writes in memory."""

    def __init__(self) -> None:
        super().__init__()
        self._data = bytearray()

    def write(self, data: bytes) -> int:
        self._data.extend(data)
        return len(data)

    def getvalue(self) -> str:
        return self._data.decode("utf-8", errors="replace")

    def lines(self) -> list[str]:
        """The contents split on newlines, without the final piece."""
        return self.getvalue().split("\n")[:-1]

    def stripped(self) -> str:
        """The contents with trailing newlines removed."""
        return self.getvalue().rstrip("\n")