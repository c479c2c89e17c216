from zaplog.stacktrace import take_stacktrace


def test_take_stacktrace():
    trace = take_stacktrace(0)
    lines = trace.split("\n")
    assert lines
    assert "test_stacktrace.test_take_stacktrace" in lines[0]
    assert lines[1].startswith("\t")
    assert "test_stacktrace.py:" in lines[1]


def test_take_stacktrace_with_skip():
    trace = take_stacktrace(1)
    lines = trace.split("\n")
    assert lines
    assert "test_take_stacktrace_with_skip" not in lines[0]
    assert "pytest" in lines[0]


def test_take_stacktrace_with_skip_inner_func():
    def inner():
        return take_stacktrace(2)

    trace = inner()
    lines = trace.split("\n")
    assert len(lines) >= 2
    assert "inner" not in lines[0]
    assert "test_take_stacktrace_with_skip_inner_func" not in lines[0]
    assert "pytest" in lines[0]


def test_take_stacktrace_frame_count_is_even():
    lines = take_stacktrace(0).split("\n")
    assert len(lines) % 2 == 0
    assert all(line.startswith("\t") for line in lines[1::2])


def test_take_stacktrace_skip_beyond_stack_is_empty():
    assert take_stacktrace(10_000) == ""