"""structlog configuration for the API server and the CLI."""

from __future__ import annotations

import logging
import os
from typing import Optional

import structlog

LOG_JSON_ENV = "RECAPMAIL_LOG_JSON"


def _json_requested() -> bool:
    return os.environ.get(LOG_JSON_ENV, "").lower() in {"1", "true", "yes"}


def configure_logging(json_output: Optional[bool] = None, level: int = logging.INFO) -> None:
    """Configure structlog processors; JSON lines in production, console otherwise."""

    if json_output is None:
        json_output = _json_requested()

    logging.basicConfig(format="%(message)s", level=level)

    shared_processors: list = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        shared_processors.append(structlog.processors.JSONRenderer())
    else:
        shared_processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
