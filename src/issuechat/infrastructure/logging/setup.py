"""Logging setup module using structlog."""

import logging
import sys
from typing import TextIO

import structlog
from structlog.stdlib import BoundLogger

from issuechat.config.models import LoggingConfig

# Third-party loggers that are too chatty below DEBUG
NOISY_LOGGERS = ("aiohttp.access", "asyncio")


def _shared_processors() -> list[structlog.typing.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def setup_logging(config: LoggingConfig, stream: TextIO | None = None) -> None:
    """Route structlog and stdlib logging through one stdout handler.

    Args:
        config: Logging configuration specifying level and format.
        stream: Output stream, defaults to the current sys.stdout.
    """
    log_level = logging.getLevelName(config.level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(log_level)
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(
            logging.DEBUG if config.level == "DEBUG" else logging.WARNING
        )

    shared_processors = _shared_processors()
    renderer: structlog.typing.Processor
    if config.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )


def get_logger(name: str | None = None) -> BoundLogger:
    """Get a logger instance.

    Args:
        name: Logger name, typically the module or component name.

    Returns:
        A bound logger instance.
    """
    return structlog.stdlib.get_logger(name)
