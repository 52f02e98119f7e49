from __future__ import annotations

import sys, traceback
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, Type, TypeVar, Union

from .config import DEFAULT_LOG_FORMAT, DEFAULT_LOG_LEVEL, LogFormat, LogLevel, level_code
from .scopes import Scope, ScopeProvider
from .sinks import OutputSink

T = TypeVar("T")

Formatter = Callable[[Any, Optional[BaseException]], str]

_INDENT = "      "


def _default_formatter(state: Any, error: Optional[BaseException]) -> str:
    return str(state)


def _render_error(error: BaseException) -> str:
    return "".join(traceback.format_exception(type(error), error, error.__traceback__)).rstrip(
        "\n"
    )


def type_name(cls: type) -> str:
    """Fully-qualified name used as the category of typed loggers."""

    module = getattr(cls, "__module__", None)
    qualname = getattr(cls, "__qualname__", cls.__name__)
    return qualname if module in (None, "builtins") else f"{module}.{qualname}"


def _render_unformatted(
    level: int,
    category: Optional[str],
    message: str,
    error: Optional[BaseException],
    scopes: ScopeProvider,
) -> str:
    return message


def _decorate(
    level: int,
    category: Optional[str],
    message: str,
    error: Optional[BaseException],
    scopes: ScopeProvider,
    *,
    newline: bool,
) -> str:
    parts: List[str] = [level_code(level), ": "]
    if category and category.strip():
        parts += ["[", category, "] "]
    if newline:
        parts.append("\n")
    if "\n" not in message:
        parts.append(_INDENT)
    parts.append(message)
    if error is not None:
        if message:
            parts.append("\n")
        parts.append(_render_error(error))

    def _append_scope(scope: Any, out: List[str]) -> None:
        if newline:
            out += ["\n", _INDENT]
        out += [" => ", str(scope)]

    scopes.for_each_scope(_append_scope, parts)
    return "".join(parts)


def _render_normal(
    level: int,
    category: Optional[str],
    message: str,
    error: Optional[BaseException],
    scopes: ScopeProvider,
) -> str:
    return _decorate(level, category, message, error, scopes, newline=True)


def _render_minimal(
    level: int,
    category: Optional[str],
    message: str,
    error: Optional[BaseException],
    scopes: ScopeProvider,
) -> str:
    return _decorate(level, category, message, error, scopes, newline=False)


_RENDERERS: Dict[LogFormat, Callable[..., str]] = {
    LogFormat.MINIMAL: _render_minimal,
    LogFormat.COMPRESSED: _render_minimal,
    LogFormat.NORMAL: _render_normal,
    LogFormat.UNFORMATTED: _render_unformatted,
}


class SinkLogger:
    """Logger writing each enabled record as one line to an output sink.

    Output in the default ``NORMAL`` format looks like::

        info: [Category]
              message
        <exception>
              => outer scope
              => inner scope

    ``UNFORMATTED`` writes the message exactly as produced by the formatter,
    which suits libraries that already emit structured (e.g. JSON) text.
    """

    def __init__(
        self,
        output: OutputSink,
        category_name: Optional[str] = None,
        level: Optional[LogLevel] = None,
        output_format: Optional[LogFormat] = None,
        scope_provider: Optional[ScopeProvider] = None,
    ):
        if output is None:
            raise ValueError("An output sink is required.")
        self._output = output
        self._category_name = category_name
        self._level = DEFAULT_LOG_LEVEL if level is None else LogLevel(level)
        self._output_format = DEFAULT_LOG_FORMAT if output_format is None else output_format
        self._scope_provider = scope_provider if scope_provider is not None else ScopeProvider()

    @property
    def output(self) -> OutputSink:
        return self._output

    @property
    def category_name(self) -> Optional[str]:
        return self._category_name

    @property
    def level(self) -> LogLevel:
        return self._level

    @property
    def output_format(self) -> LogFormat:
        return self._output_format

    @property
    def scope_provider(self) -> ScopeProvider:
        return self._scope_provider

    def is_enabled(self, level: Union[LogLevel, int]) -> bool:
        return level >= self._level

    def begin_scope(self, state: Any) -> Scope:
        return self._scope_provider.push(state)

    def log(
        self,
        level: Union[LogLevel, int],
        event_id: Any,
        state: Any,
        error: Optional[BaseException] = None,
        formatter: Optional[Formatter] = None,
    ) -> None:
        if not self.is_enabled(level):
            return
        message = (formatter or _default_formatter)(state, error)
        render = _RENDERERS[self._output_format]
        self._output.write_line(
            render(level, self._category_name, message, error, self._scope_provider)
        )

    def _log_message(
        self,
        level: LogLevel,
        msg: Any,
        args: tuple,
        error: Optional[BaseException],
        event_id: Any,
    ) -> None:
        if not self.is_enabled(level):
            return
        # same %-style rules as logging.LogRecord.getMessage
        fmt_args: Any = args
        if len(args) == 1 and isinstance(args[0], Mapping) and args[0]:
            fmt_args = args[0]
        self.log(level, event_id, msg, error, lambda m, _: str(m) % fmt_args if args else str(m))

    def trace(
        self, msg: Any, *args: Any, error: Optional[BaseException] = None, event_id: Any = 0
    ) -> None:
        self._log_message(LogLevel.TRACE, msg, args, error, event_id)

    def debug(
        self, msg: Any, *args: Any, error: Optional[BaseException] = None, event_id: Any = 0
    ) -> None:
        self._log_message(LogLevel.DEBUG, msg, args, error, event_id)

    def info(
        self, msg: Any, *args: Any, error: Optional[BaseException] = None, event_id: Any = 0
    ) -> None:
        self._log_message(LogLevel.INFORMATION, msg, args, error, event_id)

    def warning(
        self, msg: Any, *args: Any, error: Optional[BaseException] = None, event_id: Any = 0
    ) -> None:
        self._log_message(LogLevel.WARNING, msg, args, error, event_id)

    def error(
        self, msg: Any, *args: Any, error: Optional[BaseException] = None, event_id: Any = 0
    ) -> None:
        self._log_message(LogLevel.ERROR, msg, args, error, event_id)

    def critical(
        self, msg: Any, *args: Any, error: Optional[BaseException] = None, event_id: Any = 0
    ) -> None:
        self._log_message(LogLevel.CRITICAL, msg, args, error, event_id)

    def exception(self, msg: Any, *args: Any, event_id: Any = 0) -> None:
        """Log at ERROR with the exception currently being handled."""

        self._log_message(LogLevel.ERROR, msg, args, sys.exc_info()[1], event_id)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(category_name={self._category_name!r}, "
            f"level={self._level.name}, output_format={self._output_format.name})"
        )


class TypedSinkLogger(SinkLogger, Generic[T]):
    """SinkLogger whose category defaults to the fully-qualified name of ``for_type``."""

    def __init__(
        self,
        output: OutputSink,
        for_type: Type[T],
        name: Optional[str] = None,
        level: Optional[LogLevel] = None,
        output_format: Optional[LogFormat] = None,
        scope_provider: Optional[ScopeProvider] = None,
    ):
        super().__init__(
            output,
            name if name is not None else type_name(for_type),
            level,
            output_format,
            scope_provider,
        )
        self.for_type = for_type


def create_logger(
    output: OutputSink,
    name: Optional[str] = None,
    level: Optional[LogLevel] = None,
    output_format: Optional[LogFormat] = None,
    scope_provider: Optional[ScopeProvider] = None,
    for_type: Optional[type] = None,
) -> SinkLogger:
    if for_type is not None:
        return TypedSinkLogger(output, for_type, name, level, output_format, scope_provider)
    return SinkLogger(output, name, level, output_format, scope_provider)
