"""Registry of log destinations addressed by URL."""

from __future__ import annotations

import json
import os
import sys
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol
from urllib.parse import SplitResult, unquote, urlsplit

SCHEME_FILE = "file"


class WriteSyncer(Protocol):
    """A destination that accepts bytes and can flush them."""

    def write(self, data: bytes) -> int: ...

    def sync(self) -> None: ...


class Sink(WriteSyncer, Protocol):
    """A write syncer that can also be closed."""

    def close(self) -> None: ...


SinkFactory = Callable[[SplitResult], Sink]


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


class SinkNotFoundError(ValueError):
    """Raised when no factory is registered for a URL's scheme."""

    def __init__(self, scheme: str) -> None:
        super().__init__(f"no sink found for scheme {_quote(scheme)}")
        self.scheme = scheme


@dataclass
class NopCloserSink:
    """A sink whose close leaves the wrapped destination open."""

    ws: Any
    closed: bool = field(default=False, init=False)

    def write(self, data: bytes) -> int:
        return self.ws.write(data)

    def sync(self) -> None:
        self.ws.sync()

    def close(self) -> None:
        """Mark the sink closed without closing the destination it wraps."""
        self.closed = True


class _StandardStream:
    """Writes bytes to a standard stream, looked up at write time."""

    def __init__(self, lookup: Callable[[], Any]) -> None:
        self._lookup = lookup

    def write(self, data: bytes) -> int:
        stream = self._lookup()
        buffer = getattr(stream, "buffer", None)
        if buffer is not None:
            stream.flush()
            written = buffer.write(data)
            return len(data) if written is None else written
        stream.write(bytes(data).decode("utf-8", errors="replace"))
        return len(data)

    def sync(self) -> None:
        self._lookup().flush()


class _FileSink:
    """An unbuffered file opened for appending."""

    def __init__(self, path: str) -> None:
        try:
            self._file = open(path, "ab", buffering=0)
        except OSError as exc:
            reason = exc.strerror or str(exc)
            reason = reason[:1].lower() + reason[1:]
            raise OSError(exc.errno, f"open {path}: {reason}") from exc
        self.path = path

    def write(self, data: bytes) -> int:
        written = self._file.write(data)
        return len(data) if written is None else written

    def sync(self) -> None:
        self._file.flush()
        os.fsync(self._file.fileno())

    def close(self) -> None:
        self._file.close()


def _split_host_port(hostport: str) -> tuple[str, str]:
    if hostport.startswith("["):
        end = hostport.find("]")
        if end < 0:
            return hostport, ""
        rest = hostport[end + 1 :]
        return hostport[1:end], rest[1:] if rest.startswith(":") else ""
    host, sep, port = hostport.rpartition(":")
    if not sep:
        return hostport, ""
    return host, port


def _new_file_sink(url: SplitResult) -> Sink:
    shown = url.geturl()
    _, at, hostport = url.netloc.rpartition("@")
    if at:
        raise ValueError(f"user and password not allowed with file URLs: got {shown}")
    if url.fragment:
        raise ValueError(f"fragments not allowed with file URLs: got {shown}")
    if url.query:
        raise ValueError(f"query parameters not allowed with file URLs: got {shown}")
    host, port = _split_host_port(hostport)
    if port:
        raise ValueError(f"ports not allowed with file URLs: got {shown}")
    if host and host != "localhost":
        raise ValueError(
            f"file URLs must leave host empty or use localhost: got {shown}"
        )
    path = unquote(url.path)
    if path == "stdout":
        return NopCloserSink(_StandardStream(lambda: sys.stdout))
    if path == "stderr":
        return NopCloserSink(_StandardStream(lambda: sys.stderr))
    return _FileSink(path)


_lock = threading.Lock()
_factories: dict[str, SinkFactory] = {}


def reset_sink_registry() -> None:
    """Forget all registered factories except the built-in file one."""
    with _lock:
        _factories.clear()
        _factories[SCHEME_FILE] = _new_file_sink


reset_sink_registry()


def normalize_scheme(scheme: str) -> str:
    """Lower-case a URL scheme and check it against RFC 3986, section 3.1."""
    scheme = scheme.lower()
    if not scheme or not ("a" <= scheme[0] <= "z"):
        raise ValueError("must start with a letter")
    for char in scheme[1:]:
        if "a" <= char <= "z" or "0" <= char <= "9" or char in ".+-":
            continue
        raise ValueError(f"may not contain {char!r}")
    return scheme


def register_sink(scheme: str, factory: SinkFactory) -> None:
    """Register a factory for every sink URL with the given scheme."""
    with _lock:
        if scheme == "":
            raise ValueError("can't register a sink factory for empty string")
        try:
            normalized = normalize_scheme(scheme)
        except ValueError as exc:
            raise ValueError(f"{_quote(scheme)} is not a valid scheme: {exc}") from None
        if normalized in _factories:
            raise ValueError(
                f"sink factory already registered for scheme {_quote(normalized)}"
            )
        _factories[normalized] = factory


def _scheme_of(raw_url: str) -> str:
    for position, char in enumerate(raw_url):
        if char.isascii() and char.isalpha():
            continue
        if (char.isascii() and char.isdigit()) or char in "+-.":
            if position == 0:
                return ""
            continue
        if char == ":":
            if position == 0:
                raise ValueError("missing protocol scheme")
            return raw_url[:position].lower()
        return ""
    return ""


def new_sink(raw_url: str) -> Sink:
    """Open the sink a URL names; URLs without a scheme are file paths."""
    try:
        scheme = _scheme_of(raw_url)
        url = urlsplit(raw_url if scheme else f"{SCHEME_FILE}:{raw_url}")
    except ValueError as exc:
        raise ValueError(f"can't parse {_quote(raw_url)} as a URL: {exc}") from None
    with _lock:
        factory = _factories.get(url.scheme)
    if factory is None:
        raise SinkNotFoundError(url.scheme)
    return factory(url)