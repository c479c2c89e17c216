"""Builds the benchmark tables of the README from ``go test -bench`` output."""

from __future__ import annotations

import argparse
import math
import re
import subprocess
import sys
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

LIBRARY_NAME_TO_MARKDOWN_NAME = {
    "Zap": ":zap: zap",
    "Zap.Sugar": ":zap: zap (sugared)",
    "stdlib.Println": "standard library",
    "sirupsen/logrus": "logrus",
    "go-kit/kit/log": "go-kit",
    "inconshreveable/log15": "log15",
    "apex/log": "apex/log",
    "rs/zerolog": "zerolog",
}

BENCHMARK_NAMES = (
    "BenchmarkAddingFields",
    "BenchmarkAccumulatedContext",
    "BenchmarkWithoutFields",
)

_TABLE_HEADER = (
    "| Package | Time | Time % to zap | Objects Allocated |",
    "| :------ | :--: | :-----------: | :---------------: |",
)

_UNIT_NANOS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

_DURATION_PART = re.compile(r"(\d*)(?:\.(\d*))?([^\d.]+)")
_TEMPLATE_FIELD = re.compile(r"\{\{-?\s*\.(\w+)\s*-?\}\}")


def parse_go_duration(text: str) -> int:
    """Parse a duration such as ``"1.5ms"`` or ``"2h45m"`` into nanoseconds."""
    original = text
    sign = 1
    if text[:1] in "+-" and text:
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return 0
    if not text:
        raise ValueError(f"invalid duration {original!r}")
    total = Decimal(0)
    position = 0
    while position < len(text):
        match = _DURATION_PART.match(text, position)
        if match is None:
            raise ValueError(f"invalid duration {original!r}")
        whole, fraction, unit = match.groups()
        if not whole and not fraction:
            raise ValueError(f"invalid duration {original!r}")
        if unit not in _UNIT_NANOS:
            raise ValueError(f"unknown unit {unit!r} in duration {original!r}")
        try:
            number = Decimal(f"{whole or '0'}.{fraction or '0'}")
        except InvalidOperation:
            raise ValueError(f"invalid duration {original!r}") from None
        total += number * _UNIT_NANOS[unit]
        position = match.end()
    return sign * int(total)


def _percent(value: int, baseline: int) -> str:
    if baseline == 0:
        ratio = math.nan if value == 0 else math.copysign(math.inf, value)
    else:
        ratio = value / baseline
    result = ratio * 100 - 100
    if math.isnan(result):
        return "+NaN%"
    if math.isinf(result):
        return "+Inf%" if result > 0 else "-Inf%"
    return f"{result:+.0f}%"


@dataclass
class BenchmarkRow:
    """One library's result in one benchmark, with the zap baseline."""

    name: str
    time: int
    allocated_bytes: int
    allocated_objects: int
    zap_time: int = 0
    zap_allocated_bytes: int = 0
    zap_allocated_objects: int = 0

    def __str__(self) -> str:
        return (
            f"| {self.name} | {self.time} ns/op | "
            f"{_percent(self.time, self.zap_time)} | "
            f"{self.allocated_objects} allocs/op"
        )


def find_unique_substring(lines: list[str], substring: str) -> str:
    """Return the one line containing ``substring``, or "" if none does.

    Raises ValueError if more than one line contains it.
    """
    found = ""
    for line in lines:
        if substring in line:
            if found:
                raise ValueError(f"input has duplicate substring {substring}")
            found = line
    return found


def get_benchmark_row(
    lines: list[str],
    benchmark_name: str,
    library_name: str,
    baseline: BenchmarkRow | None,
) -> BenchmarkRow | None:
    """Parse a library's row for a benchmark; None if it did not run."""
    line = find_unique_substring(lines, f"{benchmark_name}/{library_name}-")
    if not line:
        return None
    columns = line.split("\t")
    if len(columns) < 5:
        raise ValueError(f"unknown benchmark line: {line}")
    duration = parse_go_duration(
        columns[2].strip().removesuffix("/op").replace(" ", "")
    )
    allocated_bytes = int(columns[3].strip().removesuffix(" B/op"))
    allocated_objects = int(columns[4].strip().removesuffix(" allocs/op"))
    row = BenchmarkRow(
        name=LIBRARY_NAME_TO_MARKDOWN_NAME.get(library_name, ""),
        time=duration,
        allocated_bytes=allocated_bytes,
        allocated_objects=allocated_objects,
    )
    if baseline is not None:
        row.zap_time = baseline.time
        row.zap_allocated_bytes = baseline.allocated_bytes
        row.zap_allocated_objects = baseline.allocated_objects
    return row


def sort_rows(rows: list[BenchmarkRow]) -> list[BenchmarkRow]:
    """Zap's rows first, then every group by ascending time."""
    return sorted(rows, key=lambda row: ("zap" not in row.name, row.time))


def get_benchmark_output(benchmark_name: str) -> list[str]:
    """Run one benchmark in the ``benchmarks`` directory and return its lines."""
    command = ["go", "test", f"-bench={benchmark_name}", "-benchmem"]
    try:
        result = subprocess.run(
            command,
            cwd="benchmarks",
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
        )
    except OSError as exc:
        raise RuntimeError(
            f"error running 'go test -bench={benchmark_name!r}': {exc}"
        ) from exc
    output = result.stdout.decode("utf-8", errors="replace")
    if result.returncode != 0:
        raise RuntimeError(
            f"error running 'go test -bench={benchmark_name!r}': "
            f"exit status {result.returncode}\n{output}"
        )
    return output.split("\n")


def get_benchmark_rows(benchmark_name: str) -> str:
    """Run a benchmark and render its results as a Markdown table."""
    output = get_benchmark_output(benchmark_name)
    baseline = get_benchmark_row(output, benchmark_name, "Zap", None)
    rows = []
    for library_name in LIBRARY_NAME_TO_MARKDOWN_NAME:
        row = get_benchmark_row(output, benchmark_name, library_name, baseline)
        if row is not None:
            rows.append(row)
    table = list(_TABLE_HEADER)
    table.extend(str(row) for row in sort_rows(rows))
    return "\n".join(table)


def _template_data() -> dict[str, str]:
    return {name: get_benchmark_rows(name) for name in BENCHMARK_NAMES}


def _render_template(template: str, data: dict[str, str]) -> str:
    def substitute(match: re.Match) -> str:
        key = match.group(1)
        if key not in data:
            raise ValueError(f"can't evaluate field {key} in template")
        return data[key]

    return _TEMPLATE_FIELD.sub(substitute, template)


def main(argv: list[str] | None = None) -> int:
    """Read a README template on stdin and write it filled in to stdout."""
    parser = argparse.ArgumentParser(
        description="Fill the README template on stdin with benchmark tables."
    )
    parser.parse_args(argv)
    try:
        data = _template_data()
        template = sys.stdin.read()
        sys.stdout.write(_render_template(template, data))
    except (OSError, ValueError, RuntimeError) as exc:
        print(exc, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())