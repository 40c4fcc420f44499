"""Central logging configuration using a Loguru stderr sink."""

from __future__ import annotations

import logging
import os
import sys

from loguru import logger as loguru_logger

HUMAN_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <7}</level> | {message}"


class InterceptHandler(logging.Handler):
    """Forward stdlib log records to Loguru, keeping the originating logger name."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        loguru_logger.bind(logger_name=record.name).opt(exception=record.exc_info).log(
            level, record.getMessage()
        )


def configure_logging(level: str | None = None, serialize: bool | None = None) -> None:
    """Route stdlib logging through a single Loguru sink on stderr.

    ``LOG_LEVEL`` and ``LOG_FORMAT=json`` are honoured when the arguments are
    omitted. JSON lines are meant for CI; the default is a compact format for
    operators running the scripts by hand.
    """
    level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    if serialize is None:
        serialize = os.environ.get("LOG_FORMAT", "").lower() == "json"

    loguru_logger.remove()
    loguru_logger.add(
        sys.stderr,
        level=level,
        format=HUMAN_FORMAT,
        serialize=serialize,
        colorize=None if not serialize else False,
        enqueue=False,
        backtrace=False,
        diagnose=False,
    )

    logging.basicConfig(
        handlers=[InterceptHandler()],
        level=getattr(logging, level, logging.INFO),
        force=True,
    )
    # httpx logs every request at INFO; keep it for --verbose runs only.
    logging.getLogger("httpx").setLevel(logging.DEBUG if level == "DEBUG" else logging.WARNING)
