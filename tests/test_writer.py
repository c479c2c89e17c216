import io
import threading

import pytest

from zaplog.sink import NopCloserSink, register_sink, reset_sink_registry
from zaplog.writer import (
    LockedWriteSyncer,
    MultiWriteSyncer,
    WriterSyncer,
    add_sync,
    combine_write_syncers,
    open_paths,
)
from zaplog.ztest import Buffer, FailWriter, ShortWriter


@pytest.fixture(autouse=True)
def _clean_registry():
    reset_sink_registry()
    yield
    reset_sink_registry()


class _Recorder:
    def __init__(self):
        self.writes = []

    def write(self, data):
        self.writes.append(bytes(data))
        return len(data)

    def sync(self):
        return None


def test_open_no_paths():
    ws, close = open_paths()
    assert ws.write(b"foo") == 3
    close()
    assert ws.write(b"") == 0


@pytest.mark.parametrize(
    "templates",
    [
        ["stdout"],
        ["stderr"],
        ["{tmp}"],
        ["file://{tmp}"],
        ["file://localhost{tmp}"],
    ],
)
def test_open_succeeds(tmp_path, templates):
    target = tmp_path / "zap-open-test"
    ws, close = open_paths(*(t.format(tmp=target) for t in templates))
    try:
        assert ws.write(b"") == 0
    finally:
        close()
    assert target.exists() == any("{tmp}" in t for t in templates)


@pytest.mark.parametrize(
    "templates, expected",
    [
        (["/foo/bar/baz"], ["open /foo/bar/baz: no such file or directory"]),
        (
            ["file://localhost/foo/bar/baz"],
            ["open /foo/bar/baz: no such file or directory"],
        ),
        (
            ["stdout", "/foo/bar/baz", "{tmp}", "file:///baz/quux"],
            [
                "open /foo/bar/baz: no such file or directory",
                "open /baz/quux: no such file or directory",
            ],
        ),
        (["file://host01.test.com{tmp}"], ["empty or use localhost"]),
        (["file://user@localhost{tmp}"], ["user and password not allowed"]),
        (["file://localhost{tmp}#foo"], ["fragments not allowed"]),
        (["file://localhost{tmp}?foo=bar"], ["query parameters not allowed"]),
        (["file://localhost:8080{tmp}"], ["ports not allowed"]),
    ],
)
def test_open_errors(tmp_path, templates, expected):
    target = tmp_path / "zap-open-test"
    with pytest.raises(OSError) as exc:
        open_paths(*(t.format(tmp=target) for t in templates))
    message = str(exc.value)
    for fragment in expected:
        assert fragment in message


def test_open_relative_path(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    name = "test-relative-path.txt"
    assert not (tmp_path / name).exists()
    ws, close = open_paths(name)
    try:
        assert ws.write(b"test") == 4
    finally:
        close()
    assert (tmp_path / name).read_bytes() == b"test"


@pytest.mark.parametrize(
    "paths",
    [
        ["./non-existent-dir/file"],
        ["stdout", "./non-existent-dir/file"],
        ["://foo.log"],
        ["mem://somewhere"],
    ],
)
def test_open_fails(tmp_path, monkeypatch, paths):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(OSError) as exc:
        open_paths(*paths)
    assert "couldn't open sink" in str(exc.value)


def test_open_with_erroring_sink_factory():
    message = "expected factory error"

    def factory(url):
        raise ValueError(message)

    register_sink("test", factory)
    with pytest.raises(OSError) as exc:
        open_paths("test://some/path")
    assert message in str(exc.value)


def test_open_registered_schemes():
    buf = io.BytesIO()
    calls = {"m": 0, "no-op.1234": 0}

    def mem_factory(url):
        calls[url.scheme] += 1
        return NopCloserSink(add_sync(buf))

    def nop_factory(url):
        calls[url.scheme] += 1
        return NopCloserSink(add_sync(io.BytesIO()))

    register_sink("M", mem_factory)
    register_sink("no-op.1234", nop_factory)
    ws, close = open_paths("m://somewhere", "no-op.1234://somewhere-else")
    try:
        assert calls == {"m": 1, "no-op.1234": 1}
        assert ws.write(b"foo") == 3
        assert buf.getvalue() == b"foo"
    finally:
        close()


def test_combine_write_syncers():
    recorder = _Recorder()
    ws = combine_write_syncers(recorder)
    assert ws.write(b"test") == 4
    assert recorder.writes == [b"test"]


def test_add_sync_keeps_write_syncers():
    recorder = _Recorder()
    assert add_sync(recorder) is recorder


def test_add_sync_wraps_plain_writer():
    buf = io.BytesIO()
    ws = add_sync(buf)
    assert ws.write(b"abc") == 3
    ws.sync()
    assert buf.getvalue() == b"abc"


def test_writer_syncer_counts_when_writer_returns_none():
    class Silent:
        def __init__(self):
            self.data = b""

        def write(self, data):
            self.data += data

    silent = Silent()
    assert WriterSyncer(silent).write(b"xyz") == 3
    assert silent.data == b"xyz"


def test_multi_write_syncer_reports_failures_but_writes_all():
    buf = Buffer()
    ws = MultiWriteSyncer(FailWriter(), buf)
    with pytest.raises(OSError, match="failed"):
        ws.write(b"foo")
    assert buf.getvalue() == "foo"


def test_multi_write_syncer_short_write():
    with pytest.raises(OSError, match="short write"):
        MultiWriteSyncer(ShortWriter()).write(b"foo")


def test_multi_write_syncer_combines_errors():
    ws = MultiWriteSyncer(FailWriter(), ShortWriter())
    with pytest.raises(OSError) as exc:
        ws.write(b"foo")
    assert "failed" in str(exc.value)
    assert "short write" in str(exc.value)


def test_multi_write_syncer_sync_propagates():
    good = Buffer()
    bad = Buffer()
    err = OSError("fail")
    bad.set_error(err)
    with pytest.raises(OSError) as exc:
        MultiWriteSyncer(good, bad).sync()
    assert exc.value is err
    assert good.called() and bad.called()


def test_locked_write_syncer_serializes():
    buf = Buffer()
    ws = LockedWriteSyncer(buf)

    def worker():
        for _ in range(100):
            ws.write(b"ab\n")

    threads = [threading.Thread(target=worker) for _ in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert buf.lines() == ["ab"] * 500