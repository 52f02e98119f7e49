from __future__ import annotations
import threading
from typing import Any, Dict, Optional

from .config import (
    DEFAULT_LOG_FORMAT,
    DEFAULT_LOG_LEVEL,
    ConfigurationSource,
    LogFormat,
    LogLevel,
    SinkLogConfig,
    resolve_config,
)
from .logger import SinkLogger, create_logger, type_name
from .scopes import Scope, ScopeProvider
from .sinks import OutputSink


class SinkLoggerProvider:
    """Hands out one cached SinkLogger per category, all bound to the same sink.

    The sink is fixed for the provider's lifetime; to log to another
    destination create another provider. Every logger shares the provider's
    ScopeProvider, so a scope opened through one logger decorates lines from
    all of them.
    """

    def __init__(
        self,
        output: OutputSink,
        level: Optional[LogLevel] = None,
        output_format: Optional[LogFormat] = None,
    ):
        if output is None:
            raise ValueError("An output sink is required.")
        self._output = output
        self._settings = SinkLogConfig(
            level=DEFAULT_LOG_LEVEL if level is None else LogLevel(level),
            output_format=DEFAULT_LOG_FORMAT if output_format is None else output_format,
        )
        self._scope_provider = ScopeProvider()
        self._loggers: Dict[Optional[str], SinkLogger] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_configuration(
        cls, output: OutputSink, configuration: Optional[ConfigurationSource]
    ) -> SinkLoggerProvider:
        """Read level and format from ``configuration``.

        Level keys, first parseable wins: ``Logging:LogLevel:Xunit:LogLevel``,
        ``Logging:Xunit:LogLevel``, ``Logging:LogLevel:Xunit``,
        ``Logging:LogLevel:Default``. Format keys: ``Logging:Xunit:LogFormat``,
        ``Logging:LogLevel:Xunit:LogFormat``.

        A key whose value does not parse is skipped and the next key is tried,
        rather than stopping at the first key present and falling back to the
        default when its value is malformed.
        """

        if output is None:
            raise ValueError("An output sink is required.")
        settings = resolve_config(configuration)
        return cls(output, settings.level, settings.output_format)

    @property
    def output(self) -> OutputSink:
        return self._output

    @property
    def settings(self) -> SinkLogConfig:
        return self._settings

    @property
    def level(self) -> LogLevel:
        return self._settings.level

    @property
    def output_format(self) -> LogFormat:
        return self._settings.output_format

    @property
    def scope_provider(self) -> ScopeProvider:
        return self._scope_provider

    def create_logger(self, category_name: Optional[str]) -> SinkLogger:
        logger = self._loggers.get(category_name)
        if logger is not None:
            return logger
        with self._lock:
            logger = self._loggers.get(category_name)
            if logger is None:
                logger = create_logger(
                    self._output,
                    category_name,
                    self._settings.level,
                    self._settings.output_format,
                    self._scope_provider,
                )
                self._loggers[category_name] = logger
            return logger

    def create_logger_for(self, cls: type) -> SinkLogger:
        return self.create_logger(type_name(cls))

    def begin_scope(self, state: Any) -> Scope:
        return self._scope_provider.push(state)

    def close(self) -> None:
        """Forget cached loggers. The sink is owned by the caller and left open."""

        with self._lock:
            self._loggers.clear()

    def __enter__(self) -> SinkLoggerProvider:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def loggers(self) -> Dict[Optional[str], SinkLogger]:
        """Snapshot of the cached loggers by category."""

        with self._lock:
            return dict(self._loggers)
