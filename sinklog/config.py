from __future__ import annotations
import logging, os
from enum import Enum, IntEnum
from typing import Any, Dict, Iterator, Mapping, Optional, Protocol, Sequence, Tuple, Union

try:
    from chz import chz, field
except Exception as exc:  # pragma: no cover
    raise ImportError("chz is required: https://github.com/openai/chz") from exc


class LogLevel(IntEnum):
    TRACE = 0
    DEBUG = 1
    INFORMATION = 2
    WARNING = 3
    ERROR = 4
    CRITICAL = 5
    NONE = 6


class LogFormat(Enum):
    MINIMAL = "Minimal"
    COMPRESSED = "Compressed"
    NORMAL = "Normal"
    UNFORMATTED = "Unformatted"


DEFAULT_LOG_LEVEL = LogLevel.INFORMATION
DEFAULT_LOG_FORMAT = LogFormat.NORMAL

LEVEL_KEYS: Tuple[str, ...] = (
    "Logging:LogLevel:Xunit:LogLevel",
    "Logging:Xunit:LogLevel",
    "Logging:LogLevel:Xunit",
    "Logging:LogLevel:Default",
)
FORMAT_KEYS: Tuple[str, ...] = (
    "Logging:Xunit:LogFormat",
    "Logging:LogLevel:Xunit:LogFormat",
)

_LEVEL_CODES = {
    LogLevel.TRACE: "trce",
    LogLevel.DEBUG: "dbug",
    LogLevel.INFORMATION: "info",
    LogLevel.WARNING: "warn",
    LogLevel.ERROR: "fail",
    LogLevel.CRITICAL: "crit",
    LogLevel.NONE: "none",
}

TRACE = 5  # stdlib logging has no level below DEBUG
logging.addLevelName(TRACE, "TRACE")

_STDLIB_LEVELS = {
    LogLevel.TRACE: TRACE,
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFORMATION: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.CRITICAL: logging.CRITICAL,
    LogLevel.NONE: logging.CRITICAL + 10,
}


def level_code(level: Union[LogLevel, int]) -> str:
    """Four character code used as the line prefix; ``????`` for unknown values."""

    try:
        return _LEVEL_CODES[LogLevel(level)]
    except ValueError:
        return "????"


def to_stdlib_level(level: LogLevel) -> int:
    return _STDLIB_LEVELS[LogLevel(level)]


def from_stdlib_level(levelno: int) -> LogLevel:
    """Map stdlib logging levels onto LogLevel, rounding down between bands."""

    if levelno < logging.DEBUG:
        return LogLevel.TRACE
    if levelno < logging.INFO:
        return LogLevel.DEBUG
    if levelno < logging.WARNING:
        return LogLevel.INFORMATION
    if levelno < logging.ERROR:
        return LogLevel.WARNING
    if levelno < logging.CRITICAL:
        return LogLevel.ERROR
    if levelno < _STDLIB_LEVELS[LogLevel.NONE]:
        return LogLevel.CRITICAL
    return LogLevel.NONE


def _is_number(text: str) -> bool:
    digits = text[1:] if text.startswith("-") else text
    return digits.isascii() and digits.isdecimal()


def parse_level(value: Optional[str]) -> Optional[LogLevel]:
    if value is None:
        return None
    text = str(value).strip()
    if _is_number(text):
        try:
            return LogLevel(int(text))
        except ValueError:
            return None
    return LogLevel.__members__.get(text.upper())


def parse_format(value: Optional[str]) -> Optional[LogFormat]:
    if value is None:
        return None
    text = str(value).strip()
    if _is_number(text):
        members = list(LogFormat)
        index = int(text)
        return members[index] if 0 <= index < len(members) else None
    return LogFormat.__members__.get(text.upper())


class ConfigurationSource(Protocol):
    """Read-only hierarchical lookup by ``:`` delimited key."""

    def get(self, key: str) -> Optional[str]: ...


class MappingConfiguration:
    """ConfigurationSource over a nested mapping, with case-insensitive keys."""

    def __init__(self, data: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, str] = dict(_flatten(data or {}))

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key.lower())

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._values

    def __len__(self) -> int:
        return len(self._values)


def _flatten(value: Any, prefix: str = "") -> Iterator[Tuple[str, str]]:
    if isinstance(value, Mapping):
        for key, child in value.items():
            yield from _flatten(child, f"{prefix}:{key}" if prefix else str(key))
    elif isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        for index, child in enumerate(value):
            yield from _flatten(child, f"{prefix}:{index}" if prefix else str(index))
    elif value is not None and prefix:
        yield prefix.lower(), str(value)


class EnvironmentConfiguration(MappingConfiguration):
    """ConfigurationSource over environment variables, ``__`` separating levels."""

    def __init__(self, prefix: str = "", environ: Optional[Mapping[str, str]] = None):
        source = os.environ if environ is None else environ
        flat = {
            name[len(prefix) :].replace("__", ":"): value
            for name, value in source.items()
            if name.lower().startswith(prefix.lower())
        }
        super().__init__(flat)


@chz
class SinkLogConfig:
    level: LogLevel = field(default=DEFAULT_LOG_LEVEL)
    output_format: LogFormat = field(default=DEFAULT_LOG_FORMAT)


def _first(source: ConfigurationSource, keys: Sequence[str], parse: Any) -> Any:
    for key in keys:
        parsed = parse(source.get(key))
        if parsed is not None:
            return parsed
    return None


def resolve_config(source: Optional[ConfigurationSource]) -> SinkLogConfig:
    """Probe the level and format keys in priority order, falling back to defaults."""

    if source is None:
        raise ValueError("A configuration source is required.")
    level = _first(source, LEVEL_KEYS, parse_level)
    output_format = _first(source, FORMAT_KEYS, parse_format)
    return SinkLogConfig(
        level=level if level is not None else DEFAULT_LOG_LEVEL,
        output_format=output_format if output_format is not None else DEFAULT_LOG_FORMAT,
    )
