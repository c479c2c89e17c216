"""Capture of the current call stack as text."""

import inspect
import sys


def _function_name(frame) -> str:
    code = frame.f_code
    name = code.co_qualname if sys.version_info >= (3, 11) else code.co_name
    module = inspect.getmodulename(code.co_filename)
    return f"{module}.{name}" if module else name


def take_stacktrace(skip: int = 0) -> str:
    """Return the stack, innermost first, starting at the caller.

    ``skip`` drops that many further frames. Each frame is written as the
    function name, a newline, a tab and ``file:line``; frames are separated
    by newlines.
    """
    frame = inspect.currentframe()
    try:
        frame = frame.f_back if frame is not None else None
        for _ in range(skip):
            if frame is None:
                break
            frame = frame.f_back
        entries = []
        while frame is not None:
            entries.append(
                f"{_function_name(frame)}\n\t{frame.f_code.co_filename}:{frame.f_lineno}"
            )
            frame = frame.f_back
        return "\n".join(entries)
    finally:
        del frame