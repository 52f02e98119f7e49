"""pytest integration: per-test sinks, providers and loggers.

Lines written to a test's sink are attached to that test's report as a
``sinklog`` section, shown by pytest as ``Captured sinklog <phase>``.

Configure with ini options ``sinklog_level`` / ``sinklog_format`` or the
``--sinklog-level`` / ``--sinklog-format`` command line options.
"""

from __future__ import annotations
from typing import Dict, Generator, Iterator, Optional

import pytest

from .adapter import SinkHandler, attach_handler
from .config import MappingConfiguration, SinkLogConfig, resolve_config
from .logger import SinkLogger
from .provider import SinkLoggerProvider
from .sinks import ListSink

SECTION = "sinklog"


class TestOutputSink(ListSink):
    """ListSink bound to one test item; remembers how much was already reported."""

    __test__ = False

    def __init__(self, nodeid: str) -> None:
        super().__init__()
        self.nodeid = nodeid
        self._reported = 0

    def take_unreported(self) -> str:
        lines = self.lines
        new, self._reported = lines[self._reported :], len(lines)
        return "\n".join(new)


_sink_key = pytest.StashKey[TestOutputSink]()
_settings_key = pytest.StashKey[SinkLogConfig]()


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("sinklog", "per-test log output")
    group.addoption(
        "--sinklog-level",
        dest="sinklog_level",
        default=None,
        help="Minimum level written to the per-test sink (e.g. Debug, Warning).",
    )
    group.addoption(
        "--sinklog-format",
        dest="sinklog_format",
        default=None,
        help="Output format: Minimal, Compressed, Normal or Unformatted.",
    )
    parser.addini("sinklog_level", "Minimum level written to the per-test sink.")
    parser.addini("sinklog_format", "Output format of the per-test sink.")


def _option(config: pytest.Config, name: str) -> Optional[str]:
    value = config.getoption(name)
    if value is None:
        value = config.getini(name)
    return value or None


def pytest_configure(config: pytest.Config) -> None:
    values: Dict[str, Optional[str]] = {
        "Logging:Xunit:LogLevel": _option(config, "sinklog_level"),
        "Logging:Xunit:LogFormat": _option(config, "sinklog_format"),
    }
    config.stash[_settings_key] = resolve_config(MappingConfiguration(values))


def _report(item: pytest.Item, when: str) -> None:
    sink = item.stash.get(_sink_key, None)
    if sink is None:
        return
    text = sink.take_unreported()
    if text:
        item.add_report_section(when, SECTION, text)


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_setup(item: pytest.Item) -> Generator[None, None, None]:
    yield
    _report(item, "setup")


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_call(item: pytest.Item) -> Generator[None, None, None]:
    yield
    _report(item, "call")


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_teardown(item: pytest.Item) -> Generator[None, None, None]:
    yield
    _report(item, "teardown")
    if _sink_key in item.stash:
        del item.stash[_sink_key]


@pytest.fixture
def sinklog_output(request: pytest.FixtureRequest) -> TestOutputSink:
    """The current test's output sink."""

    sink = TestOutputSink(request.node.nodeid)
    request.node.stash[_sink_key] = sink
    return sink


@pytest.fixture
def sinklog_provider(
    request: pytest.FixtureRequest, sinklog_output: TestOutputSink
) -> Iterator[SinkLoggerProvider]:
    settings = request.config.stash[_settings_key]
    with SinkLoggerProvider(sinklog_output, settings.level, settings.output_format) as provider:
        yield provider


@pytest.fixture
def sinklog(request: pytest.FixtureRequest, sinklog_provider: SinkLoggerProvider) -> SinkLogger:
    """Logger whose category is the test's name."""

    return sinklog_provider.create_logger(request.node.name)


@pytest.fixture
def sinklog_capture(sinklog_provider: SinkLoggerProvider) -> Iterator[SinkHandler]:
    """Route stdlib ``logging`` records to the current test's sink."""

    with attach_handler(sinklog_provider) as handler:
        yield handler
