import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from sinklog import ListSink, SinkLoggerProvider  # noqa: E402

pytest_plugins = ["pytester"]


@pytest.fixture(autouse=True)
def reset_logging_state() -> Iterator[None]:
    """Ensure each test starts and ends with the root logger untouched."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.fixture
def sink() -> ListSink:
    return ListSink()


@pytest.fixture
def provider(sink: ListSink) -> Iterator[SinkLoggerProvider]:
    with SinkLoggerProvider(sink) as p:
        yield p
