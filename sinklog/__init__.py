"""Top‑level package for sinklog.

Routes log calls into a per-run output sink (typically one pytest test's
captured output). Exposes `SinkLogger`, `SinkLoggerProvider`, the `LogLevel`
and `LogFormat` enums, the sinks, configuration sources and the stdlib
`logging` bridge. See module docstrings for usage examples.
"""

from .config import (
    ConfigurationSource,
    EnvironmentConfiguration,
    LogFormat,
    LogLevel,
    MappingConfiguration,
    SinkLogConfig,
    resolve_config,
)
from .sinks import ListSink, OutputSink, StreamSink
from .scopes import Scope, ScopeProvider
from .logger import SinkLogger, TypedSinkLogger, create_logger
from .provider import SinkLoggerProvider
from .adapter import SinkHandler, attach_handler

__all__ = [
    "ConfigurationSource",
    "EnvironmentConfiguration",
    "ListSink",
    "LogFormat",
    "LogLevel",
    "MappingConfiguration",
    "OutputSink",
    "Scope",
    "ScopeProvider",
    "SinkHandler",
    "SinkLogConfig",
    "SinkLogger",
    "SinkLoggerProvider",
    "StreamSink",
    "TypedSinkLogger",
    "attach_handler",
    "create_logger",
    "resolve_config",
]
