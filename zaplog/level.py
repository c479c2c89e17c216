"""Logging levels, level enablers and a thread-safe dynamic level."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum


class Level(IntEnum):
    """A logging priority. Higher levels are more important."""

    DEBUG = -1
    INFO = 0
    WARN = 1
    ERROR = 2
    DPANIC = 3
    PANIC = 4
    FATAL = 5

    def __str__(self) -> str:
        return self.name.lower()

    def enabled(self, level: int) -> bool:
        """Report whether ``level`` is at or above this level."""
        return level >= self


_TEXT_TO_LEVEL = {
    "debug": Level.DEBUG,
    "info": Level.INFO,
    "": Level.INFO,
    "warn": Level.WARN,
    "error": Level.ERROR,
    "dpanic": Level.DPANIC,
    "panic": Level.PANIC,
    "fatal": Level.FATAL,
}


def parse_level(text: str | bytes) -> Level:
    """Parse a level name, case-insensitively; the empty string means INFO."""
    if isinstance(text, (bytes, bytearray)):
        text = bytes(text).decode("utf-8", errors="replace")
    try:
        return _TEXT_TO_LEVEL[text.lower()]
    except KeyError:
        raise ValueError(f"unrecognized level: {text!r}") from None


@dataclass(frozen=True)
class LevelEnablerFunc:
    """Adapts a plain predicate into a level enabler."""

    func: Callable[[int], bool]

    def enabled(self, level: int) -> bool:
        return bool(self.func(level))


class AtomicLevel:
    """A logging level that can be changed safely while loggers use it."""

    def __init__(self, level: Level = Level.INFO) -> None:
        self._lock = threading.Lock()
        self._level = Level(level)

    def enabled(self, level: int) -> bool:
        return self.level().enabled(level)

    def level(self) -> Level:
        """Return the minimum enabled level."""
        with self._lock:
            return self._level

    def set_level(self, level: Level) -> None:
        """Change the minimum enabled level."""
        new_level = Level(level)
        with self._lock:
            self._level = new_level

    def unmarshal_text(self, text: str | bytes) -> None:
        """Set the level from its text form; raises ValueError if unknown."""
        self.set_level(parse_level(text))

    def marshal_text(self) -> bytes:
        return str(self.level()).encode("ascii")

    def __str__(self) -> str:
        return str(self.level())

    def __repr__(self) -> str:
        return f"AtomicLevel({self.level()!s})"