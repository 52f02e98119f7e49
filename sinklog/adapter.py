from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Union

from .config import LogLevel, from_stdlib_level, to_stdlib_level
from .provider import SinkLoggerProvider


def _record_formatter(record: logging.LogRecord, _: Optional[BaseException]) -> str:
    return record.getMessage()


class SinkHandler(logging.Handler):
    """Route stdlib logging records to the provider's logger for ``record.name``."""

    def __init__(self, provider: SinkLoggerProvider, level: int = logging.NOTSET):
        super().__init__(level)
        self.provider = provider

    def emit(self, record: logging.LogRecord) -> None:
        try:
            logger = self.provider.create_logger(record.name)
            error = record.exc_info[1] if record.exc_info else None
            logger.log(from_stdlib_level(record.levelno), 0, record, error, _record_formatter)
        except RecursionError:  # See issue 36272
            raise
        except Exception:
            self.handleError(record)


@contextmanager
def attach_handler(
    provider: SinkLoggerProvider,
    logger: Union[logging.Logger, str, None] = None,
    level: Optional[LogLevel] = None,
) -> Iterator[SinkHandler]:
    """Install a SinkHandler on ``logger`` (root by default) for the block's duration."""

    target = logger if isinstance(logger, logging.Logger) else logging.getLogger(logger)
    threshold = to_stdlib_level(provider.level if level is None else level)
    handler = SinkHandler(provider, threshold)
    previous = target.level
    if previous == logging.NOTSET or previous > threshold:
        target.setLevel(threshold)
    target.addHandler(handler)
    try:
        yield handler
    finally:
        target.removeHandler(handler)
        target.setLevel(previous)
        handler.close()
