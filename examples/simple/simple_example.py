"""Simple sinklog example with CLI-configurable settings via chz."""

from __future__ import annotations

import logging
import sys

import chz

from sinklog import (
    LogLevel,
    MappingConfiguration,
    SinkLoggerProvider,
    StreamSink,
    attach_handler,
)


@chz.chz
class SimpleAppConfig:
    log_level: str = "Debug"
    log_format: str = "Normal"
    category: str = "orders"


def run_example(settings: SimpleAppConfig) -> None:
    configuration = MappingConfiguration(
        {"Logging": {"Xunit": {"LogLevel": settings.log_level, "LogFormat": settings.log_format}}}
    )
    provider = SinkLoggerProvider.from_configuration(StreamSink(sys.stdout), configuration)
    log = provider.create_logger(settings.category)

    with log.begin_scope("request_id=req-1234"), log.begin_scope("user_id=user-5"):
        log.info("checkout started for %s", "ord-99")
        try:
            raise ZeroDivisionError("simulated failure")
        except ZeroDivisionError:
            log.exception("error during checkout")

    log.log(LogLevel.DEBUG, 0, {"cart": 3}, None, lambda state, _: f"cart size {state['cart']}")

    # stdlib loggers reach the same sink
    with attach_handler(provider):
        logging.getLogger("orders.payments").warning("card declined")
    provider.close()


def main(settings: SimpleAppConfig) -> None:
    run_example(settings)


if __name__ == "__main__":
    chz.entrypoint(main)
