# zaplog

Building blocks for leveled logging, with no third-party dependencies:

- `zaplog.level` – the `Level` enum (`DEBUG`, `INFO`, `WARN`, `ERROR`,
  `DPANIC`, `PANIC`, `FATAL`), `parse_level`, `LevelEnablerFunc` and the
  thread-safe, changeable `AtomicLevel`.
- `zaplog.sink` – a registry of log destinations addressed by URL:
  `register_sink`, `reset_sink_registry`, `new_sink`, `normalize_scheme`,
  `NopCloserSink` and `SinkNotFoundError`.
- `zaplog.writer` – write syncers: `add_sync`, `WriterSyncer`,
  `LockedWriteSyncer`, `MultiWriteSyncer`, `combine_write_syncers` and
  `open_paths`.
- `zaplog.buffered` – `BufferedWriteSyncer`, which batches writes in memory.
- `zaplog.clock` – `SystemClock`, `Ticker` and the `Clock` protocol.
- Helpers: `zaplog.stacktrace.take_stacktrace`,
  `zaplog.timeutil.time_to_millis`, ANSI colours in `zaplog.color.Color`,
  a stubbable process exit in `zaplog.exit`, and spy writers and scaled
  timeouts for tests in `zaplog.ztest`.

## Installation

```
pip install zaplog
```

## Levels

```python
from zaplog.level import AtomicLevel, parse_level

level = AtomicLevel(parse_level("info"))
level.enabled(parse_level("debug"))   # False
level.unmarshal_text("debug")
level.enabled(parse_level("debug"))   # True
str(level)                            # "debug"
level.marshal_text()                  # b"debug"
```

`parse_level` accepts the names case-insensitively, as `str` or `bytes`; the
empty string means `INFO`. An unknown name raises `ValueError`.

## Sinks and writers

```python
from zaplog.writer import open_paths

ws, close = open_paths("stdout", "/tmp/app.log")
ws.write(b"hello\n")
ws.sync()
close()
```

Plain paths and `file:` URLs open files for appending (created if missing,
relative paths allowed); the paths `stdout` and `stderr` mean the standard
streams. `file:` URLs may not carry a user, password, port, query or
fragment, and their host must be empty or `localhost`. If any path fails,
everything already opened is closed and `OSError` is raised naming every
failure. With no paths, `open_paths` returns a writer that discards
everything.

`register_sink(scheme, factory)` adds a factory for another scheme; the
factory receives the `urllib.parse.SplitResult` of the URL. Schemes are
lower-cased and must start with a letter and contain only letters, digits,
`.`, `+` and `-`. Registering an empty scheme, an invalid one, or one that
already has a factory (including the built-in `file`) raises `ValueError`.
Opening a URL whose scheme has no factory raises `SinkNotFoundError`.

`add_sync` returns an object unchanged if it already has `write` and `sync`,
and otherwise wraps it so that `sync` calls its `flush`.
`combine_write_syncers` fans writes out to several write syncers behind a
lock.

## Buffered writing

```python
import io
from zaplog.buffered import BufferedWriteSyncer
from zaplog.writer import add_sync

out = io.BytesIO()
ws = BufferedWriteSyncer(add_sync(out), size=5)
ws.write(b"foo")
ws.sync()      # the buffered bytes reach out
ws.stop()      # stops the background flusher; a second stop does nothing
```

The buffer defaults to 256 kB and the flush interval to 30 seconds; a clock
other than the system one may be passed as `clock`. Data is flushed when the
buffer fills, on every interval, on `sync()` and on `stop()`. A write that
does not fit in the remaining space first flushes what is already buffered.
Write errors are kept and raised again by later writes, `sync()` and
`stop()`.

## Benchmark tables

The `zaplog-readme` command runs `go test -bench=<name> -benchmem` in a
`benchmarks` directory below the current one, for
`BenchmarkAddingFields`, `BenchmarkAccumulatedContext` and
`BenchmarkWithoutFields`. It reads a template on standard input, replaces
`{{.BenchmarkAddingFields}}` and the like with Markdown tables comparing each
logging library's time against zap's, and writes the result to standard
output. It needs the Go toolchain on the `PATH`.

```
zaplog-readme < template.md > README.out.md
```

## What this package does not do

There is no logger object here: nothing formats log entries, encodes them as
JSON or console text, attaches fields or callers, or builds a logger from a
configuration. The package provides the levels, destinations and writers
such a logger would use.

## Running the tests

```
pip install "zaplog[test]"
pytest
```