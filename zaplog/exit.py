"""Process termination that tests can intercept."""

from __future__ import annotations

import sys
from collections.abc import Callable
from dataclasses import dataclass, field


def _terminate() -> None:
    for stream in (sys.stdout, sys.stderr):
        if stream is not None:
            stream.flush()
    sys.exit(1)


_real: Callable[[], None] = _terminate


def exit() -> None:
    """Terminate the process with status 1, unless a stub is installed."""
    _real()


@dataclass
class StubbedExit:
    """Records whether exit() was called while it was installed."""

    exited: bool = False
    _prev: Callable[[], None] = field(default=_terminate, repr=False)

    def unstub(self) -> None:
        """Restore the exit function that was in place before this stub."""
        global _real
        _real = self._prev

    def _exit(self) -> None:
        self.exited = True


def stub() -> StubbedExit:
    """Replace process termination with a recording fake."""
    global _real
    stubbed = StubbedExit(_prev=_real)
    _real = stubbed._exit
    return stubbed


def with_stub(func: Callable[[], object]) -> StubbedExit:
    """Run ``func`` with exit() stubbed and return the stub used."""
    stubbed = stub()
    try:
        func()
    finally:
        stubbed.unstub()
    return stubbed