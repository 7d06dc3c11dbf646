"""Logging configuration using structlog."""

import logging
import sys
from typing import Any

import structlog

# Third-party loggers that are noisy at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def configure_logging(log_level: str = "info", log_format: str = "json") -> None:
    """Configure structlog for the server.

    Args:
        log_level: Logging level (debug, info, warning, error, critical)
        log_format: "json" for JSON lines, "console" for human-readable output
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    # stdout carries MCP stdio frames, so every log line goes to stderr
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=numeric_level,
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "console":
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.extend([
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ])

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
