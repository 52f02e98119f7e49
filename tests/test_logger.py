import contextvars
import io
import threading
from typing import Any, List

import pytest

from sinklog import (
    ListSink,
    LogFormat,
    LogLevel,
    ScopeProvider,
    SinkLogger,
    StreamSink,
    TypedSinkLogger,
    create_logger,
)


def hello_formatter(state: Any, error: Any) -> str:
    return str(state)


class Orders:
    pass


def raise_and_catch() -> ValueError:
    try:
        try:
            raise KeyError("missing")
        except KeyError as inner:
            raise ValueError("bad order") from inner
    except ValueError as exc:
        return exc
    raise AssertionError("unreachable")


def test_requires_output_sink():
    with pytest.raises(ValueError):
        SinkLogger(None)  # type: ignore[arg-type]


def test_defaults(sink: ListSink):
    logger = SinkLogger(sink)
    assert logger.category_name is None
    assert logger.level is LogLevel.INFORMATION
    assert logger.output_format is LogFormat.NORMAL
    assert isinstance(logger.scope_provider, ScopeProvider)


@pytest.mark.parametrize("minimum", list(LogLevel))
def test_is_enabled_threshold(sink: ListSink, minimum: LogLevel):
    logger = SinkLogger(sink, level=minimum)
    for level in LogLevel:
        assert logger.is_enabled(level) is (level >= minimum)


def test_below_minimum_never_writes_or_formats(sink: ListSink):
    calls: List[Any] = []

    def formatter(state: Any, error: Any) -> str:
        calls.append(state)
        return str(state)

    logger = SinkLogger(sink, "Cat", LogLevel.WARNING)
    logger.log(LogLevel.INFORMATION, 0, "quiet", None, formatter)
    logger.debug("also quiet")
    assert len(sink) == 0
    assert calls == []


def test_normal_format(sink: ListSink):
    SinkLogger(sink, "Cat").log(LogLevel.INFORMATION, 0, "hi", None, hello_formatter)
    assert sink.lines == ["info: [Cat] \n      hi"]


@pytest.mark.parametrize("output_format", [LogFormat.MINIMAL, LogFormat.COMPRESSED])
def test_minimal_and_compressed_formats(sink: ListSink, output_format: LogFormat):
    SinkLogger(sink, "Cat", output_format=output_format).log(
        LogLevel.INFORMATION, 0, "hi", None, hello_formatter
    )
    assert sink.lines == ["info: [Cat]       hi"]


@pytest.mark.parametrize("category", [None, "", "   "])
def test_blank_category_omitted(sink: ListSink, category):
    SinkLogger(sink, category).log(LogLevel.WARNING, 0, "hi", None, hello_formatter)
    assert sink.lines == ["warn: \n      hi"]


def test_multiline_message_not_indented(sink: ListSink):
    SinkLogger(sink, "Cat").log(LogLevel.ERROR, 0, "one\ntwo", None, hello_formatter)
    assert sink.lines == ["fail: [Cat] \none\ntwo"]


def test_unformatted_writes_message_verbatim(sink: ListSink):
    logger = SinkLogger(sink, "Cat", output_format=LogFormat.UNFORMATTED)
    with logger.begin_scope("req-42"):
        logger.log(LogLevel.INFORMATION, 0, "hello", raise_and_catch(), hello_formatter)
    assert sink.lines == ["hello"]


def test_error_appended_with_chained_cause(sink: ListSink):
    error = raise_and_catch()
    SinkLogger(sink, "Cat").log(LogLevel.ERROR, 0, "failed", error, hello_formatter)
    (line,) = sink.lines
    assert line.startswith("fail: [Cat] \n      failed\nTraceback (most recent call last):")
    assert "KeyError: 'missing'" in line
    assert "The above exception was the direct cause" in line
    assert line.endswith("ValueError: bad order")


def test_error_without_message_has_no_blank_line(sink: ListSink):
    error = ValueError("boom")
    SinkLogger(sink, "Cat", output_format=LogFormat.MINIMAL).log(
        LogLevel.CRITICAL, 0, "", error, hello_formatter
    )
    assert sink.lines == ["crit: [Cat]       ValueError: boom"]


def test_scope_suffix_normal(sink: ListSink):
    logger = SinkLogger(sink, "Cat")
    with logger.begin_scope("req-42"):
        logger.info("hi")
    logger.info("after")
    assert sink.lines == [
        "info: [Cat] \n      hi\n       => req-42",
        "info: [Cat] \n      after",
    ]


def test_nested_scopes_outermost_first(sink: ListSink):
    logger = SinkLogger(sink, "Cat", output_format=LogFormat.MINIMAL)
    with logger.begin_scope("outer"), logger.begin_scope({"id": 7}):
        logger.info("hi")
    assert sink.lines == ["info: [Cat]       hi => outer => {'id': 7}"]


def test_scope_released_on_error(sink: ListSink):
    logger = SinkLogger(sink, "Cat", output_format=LogFormat.MINIMAL)
    with pytest.raises(RuntimeError):
        with logger.begin_scope("doomed"):
            raise RuntimeError("unwind")
    logger.info("hi")
    assert " => " not in sink.lines[0]


def test_scope_released_out_of_order(sink: ListSink):
    logger = SinkLogger(sink, output_format=LogFormat.MINIMAL)
    outer = logger.begin_scope("outer")
    inner = logger.begin_scope("inner")
    outer.close()
    logger.info("one")
    inner.close()
    inner.close()
    logger.info("two")
    assert sink.lines == ["info:       one => inner", "info:       two"]


def test_scopes_are_not_shared_between_threads(sink: ListSink):
    logger = SinkLogger(sink, output_format=LogFormat.MINIMAL)
    seen: List[tuple] = []
    with logger.begin_scope("main-only"):
        worker = threading.Thread(target=lambda: seen.append(logger.scope_provider.scopes()))
        worker.start()
        worker.join()
        assert logger.scope_provider.scopes() == ("main-only",)
    assert seen == [()]


def test_formatter_errors_propagate(sink: ListSink):
    def broken(state: Any, error: Any) -> str:
        raise ZeroDivisionError("formatter bug")

    with pytest.raises(ZeroDivisionError):
        SinkLogger(sink).log(LogLevel.INFORMATION, 0, "x", None, broken)
    assert len(sink) == 0


def test_unknown_level_code(sink: ListSink):
    SinkLogger(sink, "Cat", LogLevel.TRACE).log(42, 0, "odd", None, hello_formatter)
    assert sink.lines == ["????: [Cat] \n      odd"]


def test_default_formatter_uses_str(sink: ListSink):
    SinkLogger(sink, output_format=LogFormat.UNFORMATTED).log(LogLevel.INFORMATION, 7, {"a": 1})
    assert sink.lines == ["{'a': 1}"]


def test_convenience_methods(sink: ListSink):
    logger = SinkLogger(sink, "Cat", LogLevel.TRACE, LogFormat.UNFORMATTED)
    logger.trace("t %s", 1)
    logger.debug("d")
    logger.info("%(who)s arrived", {"who": "bob"})
    logger.warning("50%")
    logger.error("e %d%%", 5)
    logger.critical("c")
    assert sink.lines == ["t 1", "d", "bob arrived", "50%", "e 5%", "c"]


def test_exception_attaches_current_error(sink: ListSink):
    logger = SinkLogger(sink, "Cat")
    try:
        raise RuntimeError("kaput")
    except RuntimeError:
        logger.exception("handled %s", "badly")
    (line,) = sink.lines
    assert line.startswith("fail: [Cat] \n      handled badly\nTraceback")
    assert line.endswith("RuntimeError: kaput")


def test_stream_sink_writes_lines():
    stream = io.StringIO()
    SinkLogger(StreamSink(stream), "Cat", output_format=LogFormat.MINIMAL).info("hi")
    assert stream.getvalue() == "info: [Cat]       hi\n"


def test_typed_logger_category_from_type(sink: ListSink):
    logger = TypedSinkLogger(sink, Orders)
    assert logger.category_name == f"{__name__}.Orders"
    assert TypedSinkLogger(sink, Orders, name="custom").category_name == "custom"
    assert TypedSinkLogger(sink, int).category_name == "int"


def test_create_logger_factory(sink: ListSink):
    shared = ScopeProvider()
    logger = create_logger(sink, "Cat", LogLevel.DEBUG, LogFormat.MINIMAL, shared)
    assert type(logger) is SinkLogger
    assert logger.scope_provider is shared
    assert logger.level is LogLevel.DEBUG
    typed = create_logger(sink, for_type=Orders)
    assert isinstance(typed, TypedSinkLogger)
    assert typed.category_name.endswith("test_logger.Orders")


def test_scope_storage_does_not_grow_per_provider():
    def open_and_close_scopes() -> None:
        baseline = len(contextvars.copy_context())
        for index in range(200):
            provider = ScopeProvider()
            logger = SinkLogger(ListSink(), "Cat", scope_provider=provider)
            with logger.begin_scope(f"req-{index}"):
                logger.info("hi")
        assert len(contextvars.copy_context()) <= baseline + 1

    contextvars.copy_context().run(open_and_close_scopes)


def test_scope_providers_see_only_their_own_scopes(sink: ListSink):
    first = SinkLogger(sink, "A", output_format=LogFormat.MINIMAL)
    second = SinkLogger(sink, "B", output_format=LogFormat.MINIMAL)
    with first.begin_scope("mine"):
        second.info("hi")
        assert first.scope_provider.scopes() == ("mine",)
    assert sink.lines == ["info: [B]       hi"]
