from __future__ import annotations

import logging
import sys
from typing import Any, Callable, MutableMapping, Optional, cast

import structlog

from sync_guesty.config import LOG_LEVEL

# Type alias for structlog processor
Processor = Callable[[Any, str, MutableMapping[str, Any]], Any]

NOISY_LOGGERS = (
    "urllib3",
    "requests",
    "sqlalchemy.engine",
    "alembic",
    "uvicorn.access",
)


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure structured logging for the API process and the CLI poller.

    INFO and above render JSON lines for log aggregation; DEBUG renders the
    colored console format.

    Args:
        level: Override for LOG_LEVEL (e.g. "DEBUG" from a CLI flag)
    """
    log_level = (level or LOG_LEVEL).upper()

    logging.basicConfig(
        format="[%(asctime)s] %(levelname)s in %(name)s:%(lineno)d: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        level=log_level,
    )

    for noisy_logger in NOISY_LOGGERS:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    renderer: Processor = cast(
        Processor,
        (
            structlog.dev.ConsoleRenderer(colors=True)
            if log_level == "DEBUG"
            else structlog.processors.JSONRenderer()
        ),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(log_level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
